"""Session registry for live orchestrators.

Maps session ids to their ``WorkflowOrchestrator``. Instances are in-memory
only: removing a session drops the orchestrator, while its checkpoint stays
in the registry's checkpointer, so a re-created orchestrator for the same
session id resumes where the old one stopped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from threading import Lock
from typing import TYPE_CHECKING

from langgraph.checkpoint.memory import MemorySaver

if TYPE_CHECKING:
    from langgraph.checkpoint.base import BaseCheckpointSaver

    from src.graph.workflows import WorkflowOrchestrator

logger = logging.getLogger(__name__)

OrchestratorFactory = Callable[[str], "WorkflowOrchestrator"]


class SessionRegistry:
    """Thread-safe registry of one orchestrator per session.

    Args:
        factory: Builds the orchestrator for a new session id; the default
            builds one from settings on the shared ``checkpointer``
        checkpointer: Checkpoint saver shared by the orchestrators this
            registry builds (in-memory when None)
    """

    def __init__(
        self,
        factory: OrchestratorFactory | None = None,
        checkpointer: BaseCheckpointSaver | None = None,
    ):
        self.checkpointer = checkpointer or MemorySaver()
        self._factory = factory or self._default_factory
        self._sessions: dict[str, WorkflowOrchestrator] = {}
        self._lock = Lock()

    def _default_factory(self, session_id: str) -> WorkflowOrchestrator:
        from src.graph.workflows import WorkflowOrchestrator

        return WorkflowOrchestrator(session_id, checkpointer=self.checkpointer)

    def get_or_create(self, session_id: str) -> WorkflowOrchestrator:
        """Orchestrator for ``session_id``, created on first use."""
        with self._lock:
            orchestrator = self._sessions.get(session_id)
            if orchestrator is None:
                orchestrator = self._factory(session_id)
                self._sessions[session_id] = orchestrator
                logger.debug("Created orchestrator for session %s", session_id)
            return orchestrator

    def get(self, session_id: str) -> WorkflowOrchestrator | None:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        """Drop a session's orchestrator.

        Returns:
            True if the session was registered
        """
        with self._lock:
            removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.debug("Removed orchestrator for session %s", session_id)
        return removed

    def active_sessions(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions
