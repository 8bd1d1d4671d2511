"""Explicit time budgets for pipeline operations.

Only the executor's n8n call is bounded; the budget comes from settings.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from src.exceptions import StageTimeoutError

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], seconds: float, operation: str) -> T:
    """Await ``awaitable``, cancelling it after ``seconds``.

    Raises:
        StageTimeoutError: If the budget is exceeded
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as e:
        raise StageTimeoutError(
            f"{operation} timed out after {seconds:g}s",
            timeout=seconds,
        ) from e
