"""Tool definition: add_appointment — put an appointment on the calendar."""

TOOL_NAME = "add_appointment"

SCHEMA = {
    "type": "function",
    "function": {
        "name": "add_appointment",
        "description": (
            "Adds a new appointment to the calendar. "
            "The date should be in YYYY-MM-DD format."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "The title of the appointment."
                },
                "date": {
                    "type": "string",
                    "description": "The date of the appointment in YYYY-MM-DD format."
                },
                "time": {
                    "type": "string",
                    "description": "The time of the appointment in 24-hour HH:MM format."
                },
                "location": {
                    "type": "string",
                    "description": "The location of the appointment."
                }
            },
            "required": ["title", "date", "time"]
        }
    }
}

SYSTEM_PROMPT_RULE = (
    "To book an appointment, call add_appointment. Resolve relative "
    "dates ('tomorrow', 'next Tuesday') against the current date given "
    "in the message."
)
