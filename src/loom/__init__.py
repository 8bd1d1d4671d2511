"""Loom compact text protocol.

Indentation-based ``key: value`` format used to carry structured plan data
through model turns.
"""

from src.loom.formatter import format_compact, format_loom, format_pretty, format_scalar
from src.loom.parser import (
    LoomParseError,
    ParseError,
    ParseResult,
    parse_loom,
    parse_scalar,
    parse_strict,
    strip_code_fences,
)

__all__ = [
    "LoomParseError",
    "ParseError",
    "ParseResult",
    "format_compact",
    "format_loom",
    "format_pretty",
    "format_scalar",
    "parse_loom",
    "parse_scalar",
    "parse_strict",
    "strip_code_fences",
]
