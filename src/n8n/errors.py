"""Classification of n8n API failures into user-facing messages.

An HTTP status carried by the error decides the category first. Otherwise
patterns are checked in order and the first match wins, so more specific
patterns come before generic ones.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

import httpx

from src.exceptions import StageTimeoutError

DEFAULT_HOST = "localhost:5678"


class ErrorCategory(StrEnum):
    TIMEOUT = "timeout"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorClassification:
    category: ErrorCategory
    user_message: str
    technical_message: str


@dataclass(frozen=True)
class _Pattern:
    needles: tuple[str, ...]
    category: ErrorCategory
    message: Callable[[str | None], str]


ERROR_PATTERNS: tuple[_Pattern, ...] = (
    _Pattern(
        ("timeout", "econnaborted"),
        ErrorCategory.TIMEOUT,
        lambda base: f"n8n API request timed out. Check if n8n is running at {base or DEFAULT_HOST}",
    ),
    _Pattern(
        ("fetch", "network", "econnrefused", "connection"),
        ErrorCategory.NETWORK,
        lambda base: f"Failed to connect to n8n at {base or DEFAULT_HOST}. Ensure n8n is running.",
    ),
    _Pattern(
        ("401", "unauthorized"),
        ErrorCategory.AUTHENTICATION,
        lambda _: "n8n API key is invalid or missing. Check the API key in your settings.",
    ),
    _Pattern(
        ("403", "forbidden"),
        ErrorCategory.AUTHORIZATION,
        lambda _: "n8n API key does not have permission to create workflows.",
    ),
    _Pattern(
        ("500", "internal server"),
        ErrorCategory.SERVER_ERROR,
        lambda _: "n8n server error. Check n8n logs for details.",
    ),
)

_TIMEOUT_TYPES = (asyncio.TimeoutError, TimeoutError, StageTimeoutError, httpx.TimeoutException)

_PATTERN_BY_CATEGORY = {pattern.category: pattern for pattern in ERROR_PATTERNS}

# Categories that cannot apply once n8n has answered with a status
_TRANSPORT_CATEGORIES = frozenset({ErrorCategory.TIMEOUT, ErrorCategory.NETWORK})


def _category_for_status(status: int) -> ErrorCategory | None:
    # 0 marks a request that never got a response
    if status == 0:
        return ErrorCategory.NETWORK
    if status == 401:
        return ErrorCategory.AUTHENTICATION
    if status == 403:
        return ErrorCategory.AUTHORIZATION
    if status == 408:
        return ErrorCategory.TIMEOUT
    if status >= 500:
        return ErrorCategory.SERVER_ERROR
    return None


def classify_error(error: BaseException, base_url: str | None = None) -> ErrorClassification:
    """Classify an error by type, then by HTTP status, then by its message.

    Args:
        error: The failure raised while talking to n8n
        base_url: n8n base URL used in the user-facing message

    Returns:
        ErrorClassification; unmatched errors pass their message through
    """
    technical = str(error) or type(error).__name__

    if isinstance(error, _TIMEOUT_TYPES):
        return ErrorClassification(
            ErrorCategory.TIMEOUT, ERROR_PATTERNS[0].message(base_url), technical
        )

    status = getattr(error, "status_code", None)
    answered = False
    if isinstance(status, int):
        category = _category_for_status(status)
        if category is not None:
            message = _PATTERN_BY_CATEGORY[category].message(base_url)
            return ErrorClassification(category, message, technical)
        answered = True

    lowered = technical.lower()
    for pattern in ERROR_PATTERNS:
        if answered and pattern.category in _TRANSPORT_CATEGORIES:
            continue
        if any(needle in lowered for needle in pattern.needles):
            return ErrorClassification(pattern.category, pattern.message(base_url), technical)

    return ErrorClassification(ErrorCategory.UNKNOWN, technical, technical)
