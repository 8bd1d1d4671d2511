"""Enums for graph state."""

from enum import StrEnum


class Stage(StrEnum):
    """Pipeline stages, in the order a successful run visits them."""

    ENRICHMENT = "enrichment"
    PLANNER = "planner"
    VALIDATOR = "validator"
    EXECUTOR = "executor"


class SessionStatus(StrEnum):
    """Where a session's run currently stands."""

    GATHERING = "gathering"  # Enrichment waiting for the user's next turn
    AWAITING_APPROVAL = "awaiting_approval"  # Paused before the executor
    COMPLETED = "completed"  # Workflow created
