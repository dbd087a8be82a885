"""Tool definition: navigate_to_view — switch the visible screen."""

from carevoice.models import View

TOOL_NAME = "navigate_to_view"

SCHEMA = {
    "type": "function",
    "function": {
        "name": "navigate_to_view",
        "description": "Navigates to a specific view in the application.",
        "parameters": {
            "type": "object",
            "properties": {
                "view": {
                    "type": "string",
                    "enum": [v.value for v in View],
                    "description": "The view to navigate to."
                }
            },
            "required": ["view"]
        }
    }
}

SYSTEM_PROMPT_RULE = (
    "To open a screen, call navigate_to_view. "
    "Examples: 'show my pills' → MEDICATIONS, 'go home' → DASHBOARD, "
    "'who do I call in an emergency' → EMERGENCY."
)
