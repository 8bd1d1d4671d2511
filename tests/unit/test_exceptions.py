"""Unit tests for the exception hierarchy."""

import pytest

from src.exceptions import (
    AgentError,
    AssistantError,
    ConfigurationError,
    ExecutionError,
    InvalidResumeError,
    LLMError,
    MissingPlanError,
    N8nClientError,
    NoPendingWorkflowError,
    PlanGenerationError,
    ResumeError,
    StageTimeoutError,
    WorkflowAlreadyCreatedError,
)


class TestAssistantError:
    """Base exception."""

    def test_correlation_id_generated(self):
        first, second = AssistantError("a"), AssistantError("b")
        assert first.correlation_id
        assert first.correlation_id != second.correlation_id

    def test_correlation_id_passed(self):
        assert AssistantError("a", correlation_id="abc").correlation_id == "abc"

    @pytest.mark.parametrize(
        "error",
        [
            AgentError("x"),
            N8nClientError("x"),
            ExecutionError("x"),
            ResumeError("x"),
            LLMError("x"),
            ConfigurationError("x"),
        ],
    )
    def test_hierarchy(self, error):
        assert isinstance(error, AssistantError)
        assert str(error) == "x"


class TestStageErrors:
    """Planner and missing-plan errors."""

    def test_plan_generation_defaults_to_planner(self):
        error = PlanGenerationError("could not parse", raw_response="prose")
        assert error.agent_role == "planner"
        assert error.raw_response == "prose"
        assert isinstance(error, AgentError)

    def test_missing_plan_role(self):
        assert MissingPlanError("No plan", agent_role="executor").agent_role == "executor"


class TestExecutionErrors:
    """Classified n8n failures."""

    def test_user_message_defaults_to_message(self):
        error = ExecutionError("boom")
        assert error.user_message == "boom"
        assert error.category == "unknown"

    def test_timeout_category(self):
        error = StageTimeoutError("slow", timeout=5)
        assert error.category == "timeout"
        assert error.timeout == 5

    def test_n8n_client_error_fields(self):
        error = N8nClientError("failed", "create_workflow", {"url": "u"}, status_code=500)
        assert error.operation == "create_workflow"
        assert error.details == {"url": "u"}
        assert error.status_code == 500


class TestResumeErrors:
    """Resume preconditions."""

    def test_distinct_types(self):
        errors = [
            NoPendingWorkflowError("No workflow to apply", session_id="s"),
            WorkflowAlreadyCreatedError("Workflow already created", workflow_id="wf-1"),
            InvalidResumeError("not paused", pending_stage="planner"),
        ]
        assert all(isinstance(e, ResumeError) for e in errors)
        assert len({type(e) for e in errors}) == 3
        assert errors[0].session_id == "s"
        assert errors[1].workflow_id == "wf-1"
        assert errors[2].pending_stage == "planner"
