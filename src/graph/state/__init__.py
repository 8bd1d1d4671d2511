"""State definitions for the workflow-authoring graph.

Provides Pydantic models for graph state management.
"""

from .base import MessageState
from .enums import SessionStatus, Stage
from .orchestrator import OrchestratorState

__all__ = [
    "MessageState",
    "OrchestratorState",
    "SessionStatus",
    "Stage",
]
