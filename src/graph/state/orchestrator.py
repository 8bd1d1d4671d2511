"""Orchestrator state for the workflow-authoring graph."""

import operator
from typing import Annotated, Any

from pydantic import Field

from .base import MessageState
from .enums import Stage


class OrchestratorState(MessageState):
    """State for the enrichment → planner → validator → executor pipeline.

    Structured values are stored as plain dicts (plan wire format,
    ``{"valid", "errors"}`` etc.) so any checkpointer can serialize them.
    """

    # Routing
    current_step: str | None = Field(
        default=None,
        description="Stage that runs next; None on a fresh session (enrichment)",
    )
    step_history: Annotated[list[str], operator.add] = Field(
        default_factory=list,
        description="Previous-stage tag appended on every transition",
    )

    # Stage outputs
    requirements_status: dict[str, Any] | None = Field(
        default=None,
        description="hasAllRequiredInfo / confidence / missingInfo from enrichment",
    )
    plan: dict[str, Any] | None = Field(
        default=None,
        description="Plan in wire format (camelCase keys)",
    )
    validation_status: dict[str, Any] | None = Field(
        default=None,
        description="valid / errors from the validator",
    )
    workflow_id: str | None = None
    credential_guidance: dict[str, Any] | None = None

    @property
    def stage(self) -> Stage:
        return Stage(self.current_step) if self.current_step else Stage.ENRICHMENT
