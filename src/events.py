"""Structured event helpers for pipeline observability.

Thin wrappers around :meth:`EventNotifier.publish` that emit standardized
events. All helpers are fire-and-forget: subscriber failures are swallowed
and logged at debug level so observability never affects the pipeline.

Event format::

    {
        "domain": "workflow" | "agent" | "graph" | "error",
        "event": "started" | "completed" | "handoff" | "created" | "failed" | "api" | "agent" | "validation",
        "session_id": "...",
        ...payload keys...,
        "ts": 1234567890.0,
    }
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Literal

logger = logging.getLogger(__name__)

EventDomain = Literal["workflow", "agent", "graph", "error"]
Event = dict[str, Any]
Subscriber = Callable[[Event], None]


class EventNotifier:
    """In-process publish/subscribe bus for pipeline events."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a subscriber.

        Returns:
            A callable that removes the subscription
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: Event) -> Event:
        """Stamp ``ts`` and deliver to every subscriber."""
        stamped = {**event, "ts": time.time()}
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(stamped)
            except Exception:
                logger.debug("Event subscriber failed", exc_info=True)
        return stamped

    def __len__(self) -> int:
        return len(self._subscribers)


def log_subscriber(event: Event) -> None:
    """Log every event; errors at WARNING, the rest at DEBUG."""
    level = logging.WARNING if event.get("domain") == "error" else logging.DEBUG
    details = {k: v for k, v in event.items() if k not in ("domain", "event", "ts")}
    logger.log(level, "[%s] %s %s", event.get("domain"), event.get("event"), details)


notifier = EventNotifier()
notifier.subscribe(log_subscriber)


def _publish(domain: EventDomain, event: str, **payload: Any) -> None:
    notifier.publish({"domain": domain, "event": event, **payload})


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------


def emit_graph_started(session_id: str | None = None) -> None:
    _publish("graph", "started", session_id=session_id)


def emit_graph_completed(session_id: str | None = None) -> None:
    _publish("graph", "completed", session_id=session_id)


def emit_graph_handoff(
    from_step: str,
    to_step: str | None,
    reason: str | None = None,
    session_id: str | None = None,
) -> None:
    """Emit a stage transition. ``to_step`` is None when the run terminates."""
    _publish(
        "graph",
        "handoff",
        from_step=from_step,
        to_step=to_step,
        reason=reason,
        session_id=session_id,
    )


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------


def emit_agent_started(agent: str, action: str, session_id: str | None = None) -> None:
    _publish("agent", "started", agent=agent, action=action, session_id=session_id)


def emit_agent_completed(
    agent: str,
    session_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    _publish("agent", "completed", agent=agent, metadata=metadata or {}, session_id=session_id)


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


def emit_workflow_created(workflow: dict[str, Any], workflow_id: str) -> None:
    _publish(
        "workflow",
        "created",
        workflow_id=workflow_id,
        workflow_name=workflow.get("name"),
        node_count=len(workflow.get("nodes") or []),
    )


def emit_workflow_failed(workflow: dict[str, Any], error: BaseException | str) -> None:
    _publish("workflow", "failed", workflow_name=workflow.get("name"), error=str(error))


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


def emit_api_error(
    error: BaseException | str,
    source: str,
    context: dict[str, Any] | None = None,
) -> None:
    """Emit an API failure. ``context`` must not carry secrets."""
    message = str(error)
    _publish(
        "error",
        "api",
        error=message,
        source=source,
        context=context or {},
        user_message=f"API error in {source}: {message}",
    )


def emit_agent_error(
    agent: str,
    error: BaseException | str,
    session_id: str | None = None,
    context: dict[str, Any] | None = None,
) -> None:
    _publish(
        "error",
        "agent",
        agent=agent,
        error=str(error),
        context=context or {},
        session_id=session_id,
    )


def emit_validation_error(
    error: BaseException | str,
    source: str,
    context: dict[str, Any] | None = None,
) -> None:
    _publish(
        "error",
        "validation",
        error=str(error),
        source=source,
        context=context or {},
        user_message=f"Validation failed in {source}",
    )
