"""CareVoice: voice commands and reminders for medications and appointments."""

__version__ = "0.1.0"
