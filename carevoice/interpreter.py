"""
Command Interpreter

Sends a finalized transcript, plus today's date, to an OpenAI-compatible
chat completions server with the intent tools attached, and turns the
reply into an ordered list of Intents.

Degradation rules:
  - tool calls in the reply   -> one Intent per call, in order
  - plain text, no tool calls -> [Speak(text)]
  - neither                   -> [Speak(NOT_UNDERSTOOD_MESSAGE)]
  - any transport/server/JSON failure -> [Speak(CONNECTION_ERROR_MESSAGE)]

Nothing in here raises to the caller.
"""

import json
import threading
from datetime import date
from typing import List, Optional

import requests

from carevoice.intents import Intent, Speak, parse_intent
from carevoice.logger import get_logger
from carevoice.tool_registry import build_tool_prompt_rules, tool_list


CONNECTION_ERROR_MESSAGE = "I'm having trouble connecting. Please try again later."
NOT_UNDERSTOOD_MESSAGE = "Sorry, I couldn't understand that. Please try again."

SYSTEM_INSTRUCTION = (
    "You are a helpful assistant for a senior care application. Your role is "
    "to understand the user's voice commands and translate them into specific "
    "function calls. Be concise. Infer dates and times from phrases like "
    "'tomorrow' or 'next week'."
)


class CommandInterpreter:
    """Transcript -> Intents, via a remote tool-calling LLM."""

    def __init__(self, config):
        """
        Initialize the interpreter

        Args:
            config: Configuration object
        """
        self.config = config
        self.logger = get_logger(__name__, config)

        base_url = config.get("llm.base_url", "http://127.0.0.1:8080").rstrip("/")
        self.endpoint = f"{base_url}/v1/chat/completions"
        self.model = config.get("llm.model", "local")
        self.timeout = config.get("llm.timeout_seconds", 30)
        self.temperature = config.get("llm.temperature", 0.2)
        self.api_key = config.get_env(config.get("llm.api_key_env"))

        self._busy = threading.Lock()
        self.last_call_info = None

        self.logger.info(f"Command interpreter using {self.endpoint} (model={self.model})")

    @property
    def is_processing(self) -> bool:
        """True while a request is outstanding."""
        return self._busy.locked()

    @staticmethod
    def build_prompt(transcript: str, context_date: date) -> str:
        return (f"The current date is {context_date.strftime('%a %b %d %Y')}. "
                f"The user says: \"{transcript}\"")

    def _build_payload(self, transcript: str, context_date: date) -> dict:
        system_prompt = f"{SYSTEM_INSTRUCTION}\n\n{build_tool_prompt_rules()}"
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": self.build_prompt(transcript, context_date)},
            ],
            "tools": tool_list(),
            "tool_choice": "auto",
            "temperature": self.temperature,
        }

    def interpret(self, transcript: str, context_date: Optional[date] = None) -> List[Intent]:
        """Translate a transcript into Intents.

        Returns [] only when another request is already in flight; callers
        should check is_processing before invoking.
        """
        if not self._busy.acquire(blocking=False):
            self.logger.warning("Interpreter busy, ignoring transcript")
            return []
        try:
            return self._interpret(transcript, context_date or date.today())
        finally:
            self._busy.release()

    def _interpret(self, transcript: str, context_date: date) -> List[Intent]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = requests.post(
                self.endpoint,
                json=self._build_payload(transcript, context_date),
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            message = response.json()["choices"][0]["message"]
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as e:
            self.logger.error(f"Error processing transcript with LLM: {e}")
            self.last_call_info = {"error": str(e)}
            return [Speak(CONNECTION_ERROR_MESSAGE)]

        if not isinstance(message, dict):
            self.logger.error(f"Unexpected LLM message shape: {message!r}")
            return [Speak(CONNECTION_ERROR_MESSAGE)]

        raw_calls = message.get("tool_calls")
        if not isinstance(raw_calls, list):
            raw_calls = []
        tool_calls = [tc for tc in raw_calls if isinstance(tc, dict)]
        self.last_call_info = {"error": None, "tool_calls": len(tool_calls)}

        if tool_calls:
            intents = [self._to_intent(tc) for tc in tool_calls]
            self.logger.info(f"Interpreted '{transcript}' as {[type(i).__name__ for i in intents]}")
            return intents

        text = self._content_text(message.get("content"))
        if text:
            return [Speak(text)]

        return [Speak(NOT_UNDERSTOOD_MESSAGE)]

    @staticmethod
    def _content_text(content) -> str:
        """Reply text, whether content is a string or a list of parts."""
        if isinstance(content, str):
            return content.strip()
        if isinstance(content, list):
            parts = [p.get("text") for p in content if isinstance(p, dict)]
            return "".join(p for p in parts if isinstance(p, str)).strip()
        return ""

    def _to_intent(self, tool_call: dict) -> Intent:
        function = tool_call.get("function")
        if not isinstance(function, dict):
            function = {}
        name = str(function.get("name") or "")
        raw_args = function.get("arguments") or {}
        if isinstance(raw_args, str):
            try:
                raw_args = json.loads(raw_args) if raw_args.strip() else {}
            except json.JSONDecodeError:
                self.logger.warning(f"Undecodable arguments for tool '{name}': {raw_args!r}")
                raw_args = {}
        return parse_intent(name, raw_args)
