"""
Call-text protocol parser for models without native tool calling.

A model reply looks like:

    Optional free text the user never sees
    TARGET system
    writeFile("notes.md", `# Title
    multi-line body`)

`TARGET system` carries a call expression, `TARGET user` carries the answer.
Arguments are a JSON argument list in which backtick blocks may stand in for
string literals spanning several lines.

All functions here are pure.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

from assistant_chat.domain.exceptions import ArgumentDecodeError, InvalidCallSyntaxError

_TARGET_LINE = re.compile(r"^\s*TARGET\s+([A-Za-z_][A-Za-z0-9_]*)\s*$")
_FENCED = re.compile(r"^```(?:[A-Za-z0-9_+-]+\n|\n)?([\s\S]+?)\n?```$")
_CALL = re.compile(r"([a-zA-Z_][a-zA-Z0-9_]*)\(([\s\S]*)\)")
_RAW_BLOCK = re.compile(r"`([^`]*)`")


@dataclass(frozen=True)
class TargetBody:
    preamble: Optional[str]
    target: Optional[str]
    body: str


@dataclass(frozen=True)
class ParsedCall:
    name: str
    arguments: List[Any] = field(default_factory=list)


def split_preamble_target_body(text: str) -> TargetBody:
    """
    Split a reply at its first `TARGET <name>` line.

    Without such a line the whole (stripped) text is the body and both
    preamble and target are None.
    """
    lines = (text or "").split("\n")
    for i, line in enumerate(lines):
        m = _TARGET_LINE.match(line)
        if not m:
            continue
        preamble = "\n".join(lines[:i]).strip()
        body = "\n".join(lines[i + 1:]).strip()
        return TargetBody(preamble=preamble or None, target=m.group(1), body=body)
    return TargetBody(preamble=None, target=None, body=(text or "").strip())


def unwrap_fence(text: str, result_if_not_wrapped: bool = True) -> Optional[str]:
    """
    Return the content of a reply that is entirely one ``` fenced block.

    A language tag after the opening fence is dropped. Text that is not
    fenced comes back stripped, or None when result_if_not_wrapped is False.
    """
    stripped = (text or "").strip()
    m = _FENCED.match(stripped)
    # A fence line inside means several blocks, not one wrapped reply
    if m and not any(line.lstrip().startswith("```") for line in m.group(1).split("\n")):
        return m.group(1).strip()
    return stripped if result_if_not_wrapped else None


def _unescape_newlines(value: Any) -> Any:
    if isinstance(value, str):
        return value.replace("\\n", "\n")
    if isinstance(value, list):
        return [_unescape_newlines(v) for v in value]
    if isinstance(value, dict):
        return {k: _unescape_newlines(v) for k, v in value.items()}
    return value


def parse_call_expression(text: str) -> ParsedCall:
    """
    Parse `name(arg, ...)` into a name and positional argument values.

    Raises:
        InvalidCallSyntaxError: the text is not an identifier followed by a
            parenthesised argument list ending the text
        ArgumentDecodeError: the argument list is not decodable as JSON
    """
    stripped = (text or "").strip()
    m = _CALL.fullmatch(stripped)
    if not m:
        raise InvalidCallSyntaxError(stripped)

    name, raw = m.group(1), m.group(2)
    raw = _RAW_BLOCK.sub(lambda block: json.dumps(block.group(1)), raw)
    if not raw.strip():
        return ParsedCall(name=name, arguments=[])

    try:
        arguments = json.loads(f"[{raw}]")
    except json.JSONDecodeError as e:
        raise ArgumentDecodeError(str(e), raw) from e
    return ParsedCall(name=name, arguments=_unescape_newlines(arguments))


__all__ = [
    "TargetBody",
    "ParsedCall",
    "split_preamble_target_body",
    "unwrap_fence",
    "parse_call_expression",
]
