"""Unit tests for the validator stage."""

import pytest
from langchain_core.messages import HumanMessage

from src.exceptions import MissingPlanError
from src.graph.nodes import format_validation_feedback, run_validator
from src.graph.state import OrchestratorState, Stage
from src.settings import get_settings
from tests.factories import INVALID_REPLY, VALID_REPLY, link, make_plan
from tests.helpers.llm import FakeChatModel

CORRECTED_REPLY = """\
validation:
  status: valid
workflow:
  name: Corrected
  nodes:
    - id: trigger-1
      name: Start
      type: n8n-nodes-base.manualTrigger
"""


def _state(plan=None, history=None) -> OrchestratorState:
    return OrchestratorState(
        messages=[HumanMessage(content="Post to Slack")],
        current_step="validator",
        step_history=history or ["enrichment", "planner"],
        plan=make_plan() if plan is None else plan,
    )


def _dangling_plan():
    plan = make_plan()
    plan["workflow"]["connections"]["Start"]["main"] = link("Ghost")
    return plan


class TestFormatValidationFeedback:
    """Planner feedback turn."""

    def test_numbered_list(self):
        text = format_validation_feedback(["first problem", "second problem"])
        assert text == (
            "VALIDATION ERRORS:\n\n"
            "1. first problem\n"
            "2. second problem\n\n"
            "Please fix these errors and regenerate the workflow plan."
        )


class TestRunValidator:
    """Validator outcomes."""

    @pytest.mark.asyncio
    async def test_valid_plan(self):
        update, next_stage = await run_validator(_state(), llm=FakeChatModel(replies=[VALID_REPLY]))

        assert next_stage == Stage.EXECUTOR
        assert update["validation_status"] == {"valid": True, "errors": []}
        assert update["current_step"] == "executor"
        assert "messages" not in update
        assert "plan" not in update

    @pytest.mark.asyncio
    async def test_corrected_plan_replaces_plan(self):
        update, _ = await run_validator(_state(), llm=FakeChatModel(replies=[CORRECTED_REPLY]))
        assert update["plan"]["workflow"]["name"] == "Corrected"
        assert update["plan"]["title"] == "Test workflow"

    @pytest.mark.asyncio
    async def test_invalid_reply_appends_feedback(self, captured_events):
        update, next_stage = await run_validator(
            _state(), llm=FakeChatModel(replies=[INVALID_REPLY])
        )

        assert next_stage == Stage.PLANNER
        assert update["validation_status"] == {
            "valid": False,
            "errors": ["slack-1: Channel is not set"],
        }
        (feedback,) = update["messages"]
        assert isinstance(feedback, HumanMessage)
        assert feedback.content.startswith("VALIDATION ERRORS:\n\n1. slack-1: Channel is not set")
        event = captured_events[-1]
        assert event["event"] == "validation"
        assert event["context"]["semanticChecked"] is True

    @pytest.mark.asyncio
    async def test_structural_failure_skips_model(self):
        llm = FakeChatModel()

        update, next_stage = await run_validator(_state(plan=_dangling_plan()), llm=llm)

        assert next_stage == Stage.PLANNER
        assert "Ghost" in update["validation_status"]["errors"][0]
        assert llm.invoke_calls == []

    @pytest.mark.asyncio
    async def test_undecodable_reply_is_permissive(self):
        update, next_stage = await run_validator(
            _state(), llm=FakeChatModel(replies=["Looks fine to me"])
        )
        assert next_stage == Stage.EXECUTOR
        assert update["validation_status"]["valid"] is True

    @pytest.mark.asyncio
    async def test_retries_exhausted_goes_to_executor(self):
        history = ["enrichment", "planner"] + ["validator", "planner"] * 3
        update, next_stage = await run_validator(
            _state(history=history), llm=FakeChatModel(replies=[INVALID_REPLY])
        )
        assert next_stage == Stage.EXECUTOR
        assert update["validation_status"]["valid"] is False

    @pytest.mark.asyncio
    async def test_semantic_phase_disabled(self, monkeypatch):
        monkeypatch.setenv("SEMANTIC_VALIDATION_ENABLED", "false")
        get_settings.cache_clear()
        llm = FakeChatModel(replies=[INVALID_REPLY])

        update, next_stage = await run_validator(_state(), llm=llm)

        assert next_stage == Stage.EXECUTOR
        assert llm.invoke_calls == []

    @pytest.mark.asyncio
    async def test_missing_plan(self):
        state = OrchestratorState(current_step="validator")
        with pytest.raises(MissingPlanError) as exc_info:
            await run_validator(state, llm=FakeChatModel())
        assert exc_info.value.agent_role == "validator"
