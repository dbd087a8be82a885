"""Tool Registry — auto-discovers tool definitions for the interpreter.

Each tool is a Python module in carevoice/tools/ with standardized
attributes. This module scans that package at import time and assembles:
    - ALL_TOOLS: dict mapping tool_name -> schema
    - build_tool_prompt_rules(): numbered rules for the LLM system prompt
    - tool_list(): schemas in a stable order for the request payload
"""

import importlib
import logging
from pathlib import Path

logger = logging.getLogger("carevoice.tool_registry")


# ---------------------------------------------------------------------------
# Auto-discovery
# ---------------------------------------------------------------------------

_tool_modules = []

_tools_dir = Path(__file__).parent / "tools"
for _path in sorted(_tools_dir.glob("*.py")):
    if _path.name.startswith("_"):
        continue
    _mod_name = f"carevoice.tools.{_path.stem}"
    try:
        _mod = importlib.import_module(_mod_name)
    except Exception as _e:
        logger.error(f"Failed to load tool module {_mod_name}: {_e}")
        continue
    _missing = [a for a in ("TOOL_NAME", "SCHEMA", "SYSTEM_PROMPT_RULE")
                if not hasattr(_mod, a)]
    if _missing:
        logger.error(f"Tool module {_mod_name} missing required attributes: {_missing}")
        continue
    _tool_modules.append(_mod)


ALL_TOOLS = {_mod.TOOL_NAME: _mod.SCHEMA for _mod in _tool_modules}

logger.debug(f"Tool registry: {len(ALL_TOOLS)} tools discovered")


def tool_list() -> list:
    """Schemas for every discovered tool, ordered by tool name."""
    return [ALL_TOOLS[name] for name in sorted(ALL_TOOLS)]


# ---------------------------------------------------------------------------
# System prompt rules assembly
# ---------------------------------------------------------------------------

_GLOBAL_RULES_PREFIX = [
    "You help an older adult manage medications and appointments by voice. "
    "Translate each request into tool calls. Be concise.",
]

_GLOBAL_RULES_SUFFIX = [
    "If the user asks for MULTIPLE things (e.g. 'add aspirin at 8 and "
    "read my summary'), call ALL relevant tools in the order asked.",
    "If no tool fits, answer in one or two short, plain sentences.",
]


def build_tool_prompt_rules(active_tool_names=None) -> str:
    """Assemble the numbered system prompt rules.

    Args:
        active_tool_names: Optional set of tool names to include rules for.
                           Defaults to every discovered tool.
    """
    if active_tool_names is None:
        active_tool_names = set(ALL_TOOLS)

    rules = list(_GLOBAL_RULES_PREFIX)
    for mod in _tool_modules:
        if mod.TOOL_NAME in active_tool_names and mod.SYSTEM_PROMPT_RULE:
            rules.append(mod.SYSTEM_PROMPT_RULE)
    rules.extend(_GLOBAL_RULES_SUFFIX)

    numbered = "\n".join(f"{i + 1}. {r}" for i, r in enumerate(rules))
    return "RULES — follow these EXACTLY:\n" + numbered
