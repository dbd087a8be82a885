"""Tool definitions offered to the language model.

Each .py file in this package defines one tool with standardized attributes:
    TOOL_NAME: str           -- OpenAI function name (matches intents.INTENT_BY_TOOL)
    SCHEMA: dict             -- OpenAI-compatible tool schema
    SYSTEM_PROMPT_RULE: str  -- Per-tool rule for the LLM system prompt

Tools here have no handler: every call comes back to the app as an Intent
and is applied by the CommandDispatcher.
"""
