"""Input validation helpers for MCP tool parameters."""

from typing import Any, List, Mapping

from .tools import get_tool

DEFAULT_MESSAGE_COUNT = 50
MAX_MESSAGE_COUNT = 100


def validate_tool_input(tool_name: str, args: Mapping[str, Any]) -> List[str]:
    """Return one error string per problem; an empty list means valid.

    A required parameter counts as missing when it is absent, None, or an
    empty string. Unknown and optional parameters are never reported.
    """
    tool = get_tool(tool_name)
    if tool is None:
        return [f"Unknown tool: {tool_name}"]

    errors = []
    for param in tool.required:
        value = args.get(param)
        if value is None or value == "":
            errors.append(f"Missing required parameter: {param}")
    return errors


def clamp_int(val, default: int, lo: int, hi: int) -> int:
    """Clamp an integer parameter to safe range."""
    try:
        v = int(val) if val is not None else default
    except (TypeError, ValueError):
        return default
    return max(lo, min(hi, v))


def parse_count(val) -> int:
    """Message count from a string argument: default 50, at most 100."""
    if val == "":
        return DEFAULT_MESSAGE_COUNT
    # Discord rejects a history limit below 1, so zero and negatives read one message.
    return clamp_int(val, DEFAULT_MESSAGE_COUNT, 1, MAX_MESSAGE_COUNT)
