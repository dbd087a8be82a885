"""Tool definition: mark_medication_taken — tick off a dose."""

TOOL_NAME = "mark_medication_taken"

SCHEMA = {
    "type": "function",
    "function": {
        "name": "mark_medication_taken",
        "description": "Marks a specific medication as taken for the day.",
        "parameters": {
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "The name of the medication to mark as taken."
                }
            },
            "required": ["name"]
        }
    }
}

SYSTEM_PROMPT_RULE = (
    "When the user says they took a medication, call "
    "mark_medication_taken with just the medication name."
)
