"""Routing controller for the workflow-authoring pipeline.

``route`` decides which stage runs next from the routing-relevant parts of
the state. It is pure and deterministic: identical ``current_step``,
``requirements_status``, ``validation_status`` and ``step_history`` always
give the same decision, which checkpoint replay depends on.

| current stage | rule                                               | next        |
|---------------|----------------------------------------------------|-------------|
| enrichment    | hasAllRequiredInfo and confidence > 0.8            | planner     |
| enrichment    | otherwise                                          | enrichment  |
| planner       | always                                             | validator   |
| validator     | valid                                              | executor    |
| validator     | invalid, fewer than 3 validator→planner retries    | planner     |
| validator     | invalid, retries exhausted                         | executor    |
| executor      | terminal                                           | TERMINATE   |

Retries are counted over the whole ``step_history`` of the session, across
user turns.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from src.graph.state import OrchestratorState, Stage

CONFIDENCE_THRESHOLD = 0.8
MAX_VALIDATION_RETRIES = 3


class _Terminate:
    """Sentinel returned by :func:`route` when the run is finished."""

    def __repr__(self) -> str:
        return "TERMINATE"


TERMINATE = _Terminate()

NextStage = Stage | _Terminate


def count_validation_retries(step_history: Sequence[str]) -> int:
    """Count adjacent ``("validator", "planner")`` pairs in the history."""
    return sum(
        1
        for previous, following in zip(step_history, step_history[1:], strict=False)
        if previous == Stage.VALIDATOR and following == Stage.PLANNER
    )


def _get(state: OrchestratorState | Mapping[str, Any], key: str) -> Any:
    if isinstance(state, Mapping):
        return state.get(key)
    return getattr(state, key)


def requirements_ready(requirements_status: Mapping[str, Any] | None) -> bool:
    if not requirements_status:
        return False
    confidence = requirements_status.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return False
    return requirements_status.get("hasAllRequiredInfo") is True and confidence > CONFIDENCE_THRESHOLD


def route(state: OrchestratorState | Mapping[str, Any]) -> NextStage:
    """Pick the next stage for ``state``'s current stage.

    Args:
        state: OrchestratorState or a mapping with the same keys

    Returns:
        The next Stage, or TERMINATE after the executor
    """
    current = Stage(_get(state, "current_step") or Stage.ENRICHMENT)

    if current == Stage.ENRICHMENT:
        if requirements_ready(_get(state, "requirements_status")):
            return Stage.PLANNER
        return Stage.ENRICHMENT

    if current == Stage.PLANNER:
        return Stage.VALIDATOR

    if current == Stage.VALIDATOR:
        validation = _get(state, "validation_status") or {}
        if validation.get("valid") is True:
            return Stage.EXECUTOR
        history = _get(state, "step_history") or []
        if count_validation_retries(history) < MAX_VALIDATION_RETRIES:
            return Stage.PLANNER
        # Retries exhausted: the n8n API is the final arbiter
        return Stage.EXECUTOR

    return TERMINATE


def transition(
    stage: Stage,
    state: OrchestratorState,
    update: dict[str, Any],
) -> tuple[dict[str, Any], NextStage]:
    """Attach routing fields to a stage's state update.

    The next stage is computed on the state as it will look after
    ``update`` is applied. The returned update appends ``stage`` (the
    previous stage tag) to ``step_history`` and points ``current_step`` at
    the next stage; ``current_step`` is left unchanged on TERMINATE.

    Returns:
        ``(update, next_stage)``
    """
    view = {
        "current_step": stage.value,
        "requirements_status": update.get("requirements_status", state.requirements_status),
        "validation_status": update.get("validation_status", state.validation_status),
        "step_history": state.step_history,
    }
    next_stage = route(view)

    routed = {**update, "step_history": [stage.value]}
    if next_stage is not TERMINATE:
        routed["current_step"] = next_stage.value
    return routed, next_stage
