"""Read-side view of a session's latest checkpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from src.graph.state import OrchestratorState, Stage

if TYPE_CHECKING:
    from langgraph.types import StateSnapshot


class Checkpoint(BaseModel):
    """Latest persisted state of a session's graph run.

    Attributes:
        session_id: Session (thread) the checkpoint belongs to
        values: Raw state values
        pending_stage: Node the run is paused before, if any
        checkpoint_id: Checkpointer id of this snapshot
    """

    session_id: str
    values: dict[str, Any] = Field(default_factory=dict)
    pending_stage: Stage | None = None
    checkpoint_id: str | None = None

    @property
    def paused_before_executor(self) -> bool:
        return self.pending_stage == Stage.EXECUTOR

    @property
    def workflow_id(self) -> str | None:
        return self.values.get("workflow_id")

    def state(self) -> OrchestratorState:
        return OrchestratorState.model_validate(self.values)


def thread_config(session_id: str) -> dict[str, Any]:
    """Runnable config addressing a session's checkpoint lineage."""
    return {"configurable": {"thread_id": session_id}}


def snapshot_values(snapshot: StateSnapshot) -> dict[str, Any]:
    values = snapshot.values
    if isinstance(values, BaseModel):
        return values.model_dump()
    return dict(values or {})


def checkpoint_from_snapshot(session_id: str, snapshot: StateSnapshot | None) -> Checkpoint | None:
    """Build a Checkpoint from a LangGraph state snapshot.

    Returns:
        None when the thread has never run
    """
    if snapshot is None or not snapshot.values:
        return None

    pending = None
    for name in snapshot.next or ():
        if name in {stage.value for stage in Stage}:
            pending = Stage(name)
            break

    checkpoint_id = (snapshot.config or {}).get("configurable", {}).get("checkpoint_id")
    return Checkpoint(
        session_id=session_id,
        values=snapshot_values(snapshot),
        pending_stage=pending,
        checkpoint_id=checkpoint_id,
    )


async def read_checkpoint(graph: Any, session_id: str) -> Checkpoint | None:
    """Latest checkpoint for ``session_id`` from a compiled graph."""
    snapshot = await graph.aget_state(thread_config(session_id))
    return checkpoint_from_snapshot(session_id, snapshot)
