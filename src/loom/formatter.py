"""Formatter for the Loom compact text protocol.

``format_loom`` is the inverse of :func:`src.loom.parser.parse_loom` for any
value built from string-keyed dicts, lists and primitive leaves (``None``,
``bool``, ``int``, finite ``float``, ``str``). Strings that the parser would
re-type (``"true"``, ``"42"``, text with commas, padded text, ...) are
written as JSON string literals.
"""

from __future__ import annotations

import json
import math
from typing import Any

from src.loom.parser import looks_like_pair, parse_scalar

MAX_INLINE_ITEMS = 5

_PRIMITIVES = (str, int, float, bool, type(None))


def _breaks_line(s: str) -> bool:
    """True when ``str.splitlines`` would split ``s`` (\\x0c, \\x1c, \\u2028 ...)."""
    return s.splitlines() != [s]


def _quote(s: str) -> str:
    # Escape line-breaking characters so a quoted token stays on one line
    return json.dumps(s, ensure_ascii=_breaks_line(s))


def _string_needs_quotes(s: str) -> bool:
    if not s or s != s.strip():
        return True
    if _breaks_line(s) or s.startswith('"'):
        return True
    if looks_like_pair(s):
        return True
    parsed = parse_scalar(s)
    return not (isinstance(parsed, str) and parsed == s)


def _key_needs_quotes(key: str) -> bool:
    if not key or key != key.strip():
        return True
    return ":" in key or _breaks_line(key) or key.startswith(("-", "#", '"'))


def format_scalar(value: Any) -> str:
    """Render a primitive leaf so that it parses back to the same value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Cannot format non-finite number: {value!r}")
        return repr(value)
    if isinstance(value, str):
        return _quote(value) if _string_needs_quotes(value) else value
    raise TypeError(f"Unsupported Loom value type: {type(value).__name__}")


def _format_key(key: Any) -> str:
    if not isinstance(key, str):
        raise TypeError(f"Loom object keys must be strings, got {type(key).__name__}")
    return _quote(key) if _key_needs_quotes(key) else key


def _can_inline(items: list[Any]) -> bool:
    if not 2 <= len(items) <= MAX_INLINE_ITEMS:
        return False
    for item in items:
        if not isinstance(item, _PRIMITIVES):
            return False
        if isinstance(item, str) and ("," in item or _string_needs_quotes(item)):
            return False
    return True


class _Formatter:
    def __init__(self, indent: int = 2, sort_keys: bool = False):
        self.indent = indent
        self.sort_keys = sort_keys

    def _pad(self, level: int) -> str:
        return " " * (level * self.indent)

    def _keys(self, obj: dict[str, Any]) -> list[str]:
        return sorted(obj) if self.sort_keys else list(obj)

    def object_lines(self, obj: dict[str, Any], level: int) -> list[str]:
        pad = self._pad(level)
        lines: list[str] = []
        for key in self._keys(obj):
            value = obj[key]
            name = _format_key(key)
            if isinstance(value, dict):
                if value:
                    lines.append(f"{pad}{name}:")
                    lines.extend(self.object_lines(value, level + 1))
                else:
                    lines.append(f"{pad}{name}: {{}}")
            elif isinstance(value, list):
                if not value:
                    lines.append(f"{pad}{name}: []")
                elif _can_inline(value):
                    lines.append(f"{pad}{name}: {','.join(format_scalar(v) for v in value)}")
                else:
                    lines.append(f"{pad}{name}:")
                    lines.extend(self.array_lines(value, level + 1))
            else:
                lines.append(f"{pad}{name}: {format_scalar(value)}")
        return lines

    def array_lines(self, items: list[Any], level: int) -> list[str]:
        pad = self._pad(level)
        lines: list[str] = []
        for item in items:
            if isinstance(item, dict) and item:
                nested = self.object_lines(item, level + 1)
                if self.indent == 2:
                    # First pair shares the dash line: "- key: value"
                    nested[0] = f"{pad}- {nested[0].lstrip(' ')}"
                else:
                    lines.append(f"{pad}-")
                lines.extend(nested)
            elif isinstance(item, list) and item:
                lines.append(f"{pad}-")
                lines.extend(self.array_lines(item, level + 1))
            elif isinstance(item, dict):
                lines.append(f"{pad}- {{}}")
            elif isinstance(item, list):
                lines.append(f"{pad}- []")
            else:
                lines.append(f"{pad}- {format_scalar(item)}")
        return lines


def format_loom(value: Any, *, indent: int = 2, sort_keys: bool = False) -> str:
    """Format a value as a Loom document.

    Args:
        value: Dict or list (primitive leaves only)
        indent: Spaces per nesting level
        sort_keys: Emit object keys in sorted order

    Returns:
        Loom text without a trailing newline
    """
    formatter = _Formatter(indent=indent, sort_keys=sort_keys)
    if isinstance(value, dict):
        lines = formatter.object_lines(value, 0)
    elif isinstance(value, list):
        lines = formatter.array_lines(value, 0) if value else ["[]"]
    else:
        lines = [format_scalar(value)]
    return "\n".join(lines).strip()


def format_compact(value: Any) -> str:
    """Format with the default two-space layout."""
    return format_loom(value)


def format_pretty(value: Any) -> str:
    """Format with sorted keys, for stable diffs and prompts."""
    return format_loom(value, sort_keys=True)
