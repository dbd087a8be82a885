"""Tool definition: add_medication — put a medication on the daily schedule."""

TOOL_NAME = "add_medication"

SCHEMA = {
    "type": "function",
    "function": {
        "name": "add_medication",
        "description": "Adds a new medication to the user's schedule.",
        "parameters": {
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "The name of the medication."
                },
                "dosage": {
                    "type": "string",
                    "description": "The dosage, e.g. '1 pill', '10ml'."
                },
                "time": {
                    "type": "string",
                    "description": "The time to take the medication in 24-hour HH:MM format."
                }
            },
            "required": ["name", "dosage", "time"]
        }
    }
}

SYSTEM_PROMPT_RULE = (
    "To schedule a medication, call add_medication with the time "
    "converted to 24-hour HH:MM ('8 in the evening' → 20:00)."
)
