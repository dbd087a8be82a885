"""Tool definition: get_daily_summary — what's left for today."""

TOOL_NAME = "get_daily_summary"

SCHEMA = {
    "type": "function",
    "function": {
        "name": "get_daily_summary",
        "description": (
            "Reads a summary of today's remaining medications "
            "and upcoming appointments."
        ),
        "parameters": {
            "type": "object",
            "properties": {},
            "required": []
        }
    }
}

SYSTEM_PROMPT_RULE = (
    "For questions like 'what's on today' or 'what do I have left', "
    "call get_daily_summary."
)
