"""Workflow assistant exception hierarchy.

Base exceptions for all application layers with correlation ID support.

Usage:
    from src.exceptions import ExecutionError, NoPendingWorkflowError

    try:
        await orchestrator.resume()
    except NoPendingWorkflowError as e:
        logger.warning("Nothing to apply (correlation_id=%s)", e.correlation_id)
"""

import uuid
from typing import Any


class AssistantError(Exception):
    """Base exception for all workflow assistant errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class AgentError(AssistantError):
    """Errors from pipeline stage (agent) operations."""

    def __init__(self, message: str, *, agent_role: str | None = None, **kwargs):
        self.agent_role = agent_role
        super().__init__(message, **kwargs)


class PlanGenerationError(AgentError):
    """The planner could not produce a decodable workflow plan.

    The message is user-facing: the turn is aborted and the user is asked
    to rephrase.
    """

    def __init__(self, message: str, *, raw_response: str | None = None, **kwargs):
        self.raw_response = raw_response
        kwargs.setdefault("agent_role", "planner")
        super().__init__(message, **kwargs)


class MissingPlanError(AgentError):
    """A stage that requires a plan was reached without one (programming error)."""

    pass


class N8nClientError(AssistantError):
    """Errors from n8n REST API operations.

    Raised when n8n API calls fail, with optional operation name
    and detail context for diagnostics.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
    ):
        self.operation = operation
        self.details = details or {}
        self.status_code = status_code
        super().__init__(message, correlation_id=correlation_id)


class ExecutionError(AssistantError):
    """Classified failure while applying a workflow to n8n."""

    def __init__(
        self,
        message: str,
        *,
        category: str = "unknown",
        user_message: str | None = None,
        **kwargs,
    ):
        self.category = category
        self.user_message = user_message or message
        super().__init__(message, **kwargs)


class StageTimeoutError(ExecutionError):
    """An operation exceeded its explicit time budget."""

    def __init__(self, message: str, *, timeout: float | None = None, **kwargs):
        self.timeout = timeout
        kwargs.setdefault("category", "timeout")
        super().__init__(message, **kwargs)


class ResumeError(AssistantError):
    """A resume request could not be honoured for the session's checkpoint."""

    def __init__(self, message: str, *, session_id: str | None = None, **kwargs):
        self.session_id = session_id
        super().__init__(message, **kwargs)


class NoPendingWorkflowError(ResumeError):
    """Resume was requested but the session has no checkpoint to apply."""

    pass


class WorkflowAlreadyCreatedError(ResumeError):
    """The session's run already created its workflow."""

    def __init__(self, message: str, *, workflow_id: str | None = None, **kwargs):
        self.workflow_id = workflow_id
        super().__init__(message, **kwargs)


class InvalidResumeError(ResumeError):
    """The checkpoint is not paused before the executor."""

    def __init__(self, message: str, *, pending_stage: str | None = None, **kwargs):
        self.pending_stage = pending_stage
        super().__init__(message, **kwargs)


class LLMError(AssistantError):
    """Errors from LLM provider operations."""

    def __init__(self, message: str, *, provider: str | None = None, **kwargs):
        self.provider = provider
        super().__init__(message, **kwargs)


class ConfigurationError(AssistantError):
    """Errors from application configuration."""

    pass
