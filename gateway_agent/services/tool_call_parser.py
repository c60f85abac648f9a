"""Detection of tool invocation requests embedded in model output.

The model is asked to answer with a JSON object of the form
``{"tool_name": ..., "tool_input": {...}}`` (or a list of them), either as the
whole reply or inside a fenced ``json`` block. Anything else is a final answer.
"""

import json
import re
from dataclasses import dataclass
from typing import Any

from cuid2 import cuid_wrapper

from gateway_agent.models.tools import ToolCall
from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()

# Fenced json block anywhere, or a bare object/array spanning the trimmed text
TOOL_CALL_PATTERN = re.compile(r"```json\s*([\s\S]+?)\s*```|^\s*(\{[\s\S]*\}|\[[\s\S]*\])\s*$")


@dataclass(frozen=True)
class Found:
    calls: list[ToolCall]


@dataclass(frozen=True)
class NotFound:
    reason: str


ParseResult = Found | NotFound


@dataclass
class ParsedResponse:
    """Model output split into a final answer or tool calls, never both."""

    text_response: str
    tool_calls: list[ToolCall] | None = None


def find_tool_calls(text: str) -> ParseResult:
    """Look for tool calls in ``text``.

    Only the first candidate region is considered. Invalid JSON and
    candidates without ``tool_name``/``tool_input`` both give ``NotFound``.
    """
    match = TOOL_CALL_PATTERN.search(text)
    if not match:
        return NotFound("no JSON candidate")

    candidate = match.group(1) or match.group(2)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        return NotFound(f"candidate is not valid JSON: {e}")

    items = data if isinstance(data, list) else [data]
    calls = [call for call in (_to_tool_call(item) for item in items) if call is not None]
    if not calls:
        return NotFound("candidate has no tool_name and tool_input")
    return Found(calls)


def _to_tool_call(item: Any) -> ToolCall | None:
    if not isinstance(item, dict):
        return None

    name = item.get("tool_name")
    if not isinstance(name, str) or not name.strip():
        return None
    if "tool_input" not in item:
        return None

    args = item["tool_input"]
    if args is None:
        args = {}
    if not isinstance(args, dict):
        return None

    return ToolCall(id=f"tool_{cuid()}", name=name.strip(), args=args)


def parse_tool_calls(text: str) -> ParsedResponse:
    """Split aggregated model text into a final answer or a list of tool calls."""
    match find_tool_calls(text):
        case Found(calls=calls):
            logger.info(f"Detected {len(calls)} tool call(s): {', '.join(c.name for c in calls)}")
            return ParsedResponse(text_response="", tool_calls=calls)
        case NotFound(reason=reason):
            logger.debug(f"No tool call in response: {reason}")
            return ParsedResponse(text_response=text.strip())
