"""Run context for passing per-invocation data through the graph.

Uses Python contextvars to propagate the session id and the token sink
from the orchestrator into graph nodes. LangGraph copies the context into
the tasks it schedules, so nodes see the values set around ``ainvoke``.
"""

from contextvars import ContextVar, Token
from dataclasses import dataclass

from src.llm.streaming import TokenCallback


@dataclass
class RunContext:
    """Metadata about the current graph invocation."""

    session_id: str | None = None
    on_token: TokenCallback | None = None


_run_context: ContextVar[RunContext | None] = ContextVar("run_context", default=None)


def set_run_context(ctx: RunContext) -> Token:
    """Set the run context for the current async task.

    Returns:
        Token for resetting the context
    """
    return _run_context.set(ctx)


def get_run_context() -> RunContext:
    """Current RunContext, or an empty one outside a run."""
    return _run_context.get() or RunContext()


def reset_run_context(token: Token) -> None:
    _run_context.reset(token)
