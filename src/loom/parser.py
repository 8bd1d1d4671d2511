"""Parser for the Loom compact text protocol.

Loom is an indentation-based ``key: value`` format used to move structured
plan data through model turns. Parsing never raises: malformed input is
reported through :class:`ParseResult` so callers can treat bad model output
as recoverable.

Scalars are auto-typed:

- ``''`` -> ``''``
- ``null`` / ``nil`` -> ``None``
- ``true`` / ``false`` -> ``bool``
- numeric literals -> ``int`` / ``float``
- ``[]`` / ``{}`` -> empty list / dict
- ``"..."`` -> JSON string literal
- text containing commas -> inline list of scalars
- anything else -> the text itself
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

NUMBER_RE = re.compile(r"-?\d+(\.\d+)?([eE][+-]?\d+)?")

# "key: value" or "key:" as it may appear after an array dash
_PAIR_RE = re.compile(r'[^\s"\-#:][^:]*:(\s|$)')

_json_decoder = json.JSONDecoder()


class ParseError(BaseModel):
    """A single syntax problem found while parsing."""

    line: int = Field(..., description="1-based line number")
    message: str
    content: str = ""

    def __str__(self) -> str:
        return f"line {self.line}: {self.message} ({self.content!r})"


class ParseResult(BaseModel):
    """Discriminated parse outcome."""

    success: bool
    data: Any = None
    errors: list[ParseError] = Field(default_factory=list)


class LoomParseError(ValueError):
    """Raised by :func:`parse_strict` when the document has syntax errors."""

    def __init__(self, errors: list[ParseError]):
        self.errors = errors
        detail = "; ".join(str(e) for e in errors[:3])
        super().__init__(f"Invalid Loom document: {detail}")


@dataclass
class _Line:
    number: int
    indent: int
    text: str


def parse_scalar(raw: str) -> Any:
    """Convert a scalar token to its typed value."""
    s = raw.strip()
    if not s:
        return ""
    if s.startswith('"'):
        try:
            value = json.loads(s)
        except ValueError:
            return s
        if isinstance(value, str):
            return value
        return s
    if s == "[]":
        return []
    if s == "{}":
        return {}
    if s in ("null", "nil"):
        return None
    if s == "true":
        return True
    if s == "false":
        return False
    if NUMBER_RE.fullmatch(s):
        if "." in s or "e" in s or "E" in s:
            return float(s)
        return int(s)
    if "," in s:
        return [parse_scalar(part) for part in s.split(",")]
    return s


def split_pair(text: str) -> tuple[str, str] | None:
    """Split ``key: value`` into its parts, honouring JSON-quoted keys.

    Returns None when the text is not a pair.
    """
    if text.startswith('"'):
        try:
            key, end = _json_decoder.raw_decode(text)
        except ValueError:
            return None
        rest = text[end:].lstrip()
        if not isinstance(key, str) or not rest.startswith(":"):
            return None
        return key, rest[1:].strip()
    key, sep, rest = text.partition(":")
    if not sep or not key.strip():
        return None
    return key.strip(), rest.strip()


def looks_like_pair(text: str) -> bool:
    """Whether an array item body would be read as an inline object."""
    if text.startswith('"'):
        return split_pair(text) is not None
    return _PAIR_RE.match(text) is not None


class _Parser:
    def __init__(self, text: str):
        self.errors: list[ParseError] = []
        self.lines = self._tokenize(text)

    @staticmethod
    def _tokenize(text: str) -> list[_Line]:
        lines: list[_Line] = []
        # Only \n, \r\n and \r end a line; other Unicode breaks are content
        physical = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        for number, raw in enumerate(physical, start=1):
            stripped = raw.strip()
            if not stripped or stripped.startswith("#"):
                continue
            indent = len(raw) - len(raw.lstrip())
            if stripped.startswith("-") and len(stripped) > 1 and stripped[1] in " \t":
                body = stripped[1:].strip()
                if looks_like_pair(body):
                    # "- key: value" opens an object item whose first pair
                    # sits at the column of the body text
                    offset = len(stripped) - len(body)
                    lines.append(_Line(number, indent, "-"))
                    lines.append(_Line(number, indent + offset, body))
                    continue
            lines.append(_Line(number, indent, stripped))
        return lines

    def _error(self, line: _Line, message: str) -> None:
        self.errors.append(ParseError(line=line.number, message=message, content=line.text))

    def _block_end(self, start: int, end: int, parent_indent: int) -> int:
        j = start
        while j < end and self.lines[j].indent > parent_indent:
            j += 1
        return j

    @staticmethod
    def _is_item(line: _Line) -> bool:
        return line.text == "-" or line.text.startswith(("- ", "-\t"))

    def parse_document(self) -> Any:
        if not self.lines:
            return {}
        if len(self.lines) == 1 and self.lines[0].text in ("[]", "{}"):
            return parse_scalar(self.lines[0].text)
        return self._parse_block(0, len(self.lines))

    def _parse_block(self, start: int, end: int) -> Any:
        if self._is_item(self.lines[start]):
            return self._parse_array(start, end)
        return self._parse_object(start, end)

    def _parse_object(self, start: int, end: int) -> dict[str, Any]:
        result: dict[str, Any] = {}
        i = start
        while i < end:
            line = self.lines[i]
            child_end = self._block_end(i + 1, end, line.indent)
            if self._is_item(line):
                self._error(line, "Array items must be under a key")
                i = child_end
                continue
            pair = split_pair(line.text)
            if pair is None:
                self._error(line, "Invalid syntax: expected key:value")
                i = child_end
                continue
            key, rest = pair
            if rest:
                result[key] = parse_scalar(rest)
                if child_end > i + 1:
                    self._error(self.lines[i + 1], "Unexpected indentation")
            elif child_end > i + 1:
                result[key] = self._parse_block(i + 1, child_end)
            else:
                result[key] = ""
            i = child_end
        return result

    def _parse_array(self, start: int, end: int) -> list[Any]:
        items: list[Any] = []
        i = start
        while i < end:
            line = self.lines[i]
            child_end = self._block_end(i + 1, end, line.indent)
            if not self._is_item(line):
                self._error(line, "Expected array item")
                i = child_end
                continue
            body = line.text[1:].strip()
            if body:
                items.append(parse_scalar(body))
                if child_end > i + 1:
                    self._error(self.lines[i + 1], "Unexpected indentation")
            elif child_end > i + 1:
                items.append(self._parse_block(i + 1, child_end))
            else:
                items.append("")
            i = child_end
        return items


def parse_loom(text: str) -> ParseResult:
    """Parse a Loom document.

    Args:
        text: Loom source text (typically a model response with fences stripped)

    Returns:
        ParseResult with ``success`` False and a list of errors when the
        document is malformed. ``data`` holds whatever could be recovered.
    """
    parser = _Parser(text or "")
    data = parser.parse_document()
    return ParseResult(success=not parser.errors, data=data, errors=parser.errors)


def parse_strict(text: str) -> Any:
    """Parse a Loom document, raising :class:`LoomParseError` on syntax errors."""
    result = parse_loom(text)
    if not result.success:
        raise LoomParseError(result.errors)
    return result.data


_FENCE_RE = re.compile(r"^\s*```[\w-]*[ \t]*\n(.*?)\n?```\s*$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence wrapping a whole model response."""
    if not text:
        return ""
    match = _FENCE_RE.match(text)
    return (match.group(1) if match else text).strip()
