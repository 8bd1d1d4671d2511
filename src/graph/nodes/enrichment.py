"""Enrichment stage: conversational requirement gathering.

The model talks to the user and reports readiness through two bound tools
instead of free text, so routing never has to infer it from prose.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from langchain_core.messages import AIMessage, BaseMessage, SystemMessage, ToolMessage
from pydantic import BaseModel, Field, ValidationError

from src.graph.routing import NextStage, transition
from src.graph.state import OrchestratorState, Stage
from src.llm.streaming import stream_to_message
from src.prompts import load_system_prompt
from src.settings import get_settings

from ._helpers import get_stage_llm

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel
    from langchain_core.runnables import RunnableConfig

logger = logging.getLogger(__name__)

REPORT_STATUS_TOOL = "report_requirements_status"
SET_CONFIDENCE_TOOL = "set_confidence"


class ReportRequirementsStatus(BaseModel):
    """Report whether enough information has been gathered to plan the workflow."""

    hasAllRequiredInfo: bool = Field(description="True when a complete workflow can be built")
    confidence: float = Field(ge=0, le=1, description="Confidence between 0 and 1")
    missingInfo: list[str] = Field(default_factory=list, description="Open questions")


class SetConfidence(BaseModel):
    """Update the confidence that the requirements are complete."""

    confidence: float = Field(ge=0, le=1, description="Confidence between 0 and 1")
    reasoning: str | None = Field(default=None, description="Why the confidence changed")


def _tool_spec(name: str, schema: type[BaseModel]) -> dict[str, Any]:
    parameters = schema.model_json_schema()
    parameters.pop("title", None)
    parameters.pop("description", None)
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": schema.__doc__ or name,
            "parameters": parameters,
        },
    }


ENRICHMENT_TOOLS = [
    _tool_spec(REPORT_STATUS_TOOL, ReportRequirementsStatus),
    _tool_spec(SET_CONFIDENCE_TOOL, SetConfidence),
]

_TOOL_REPLIES = {
    REPORT_STATUS_TOOL: "Status recorded",
    SET_CONFIDENCE_TOOL: "Confidence recorded",
}


def apply_tool_call(
    status: dict[str, Any] | None,
    name: str,
    args: dict[str, Any],
) -> dict[str, Any] | None:
    """Fold one tool call into the requirements status.

    Invalid arguments leave the status unchanged.
    """
    try:
        if name == REPORT_STATUS_TOOL:
            report = ReportRequirementsStatus.model_validate(args)
            return report.model_dump()
        if name == SET_CONFIDENCE_TOOL:
            update = SetConfidence.model_validate(args)
            base = status or {"hasAllRequiredInfo": False, "confidence": 0.0, "missingInfo": []}
            return {**base, "confidence": update.confidence}
    except ValidationError as e:
        logger.warning("Ignoring %s call with invalid arguments: %s", name, e.errors())
    return status


async def run_enrichment(
    state: OrchestratorState,
    config: RunnableConfig | None = None,
    *,
    llm: BaseChatModel | None = None,
    on_token: Callable[[str], Awaitable[None] | None] | None = None,
) -> tuple[dict[str, Any], NextStage]:
    """Run one enrichment turn.

    Re-invokes the model after answering its tool calls until it replies
    without tool calls, bounded by ``enrichment_max_tool_rounds``.

    Args:
        state: Current orchestrator state
        config: Runnable config forwarded to the model
        llm: Chat model override (built from settings when None)
        on_token: Receives streamed reply tokens

    Returns:
        ``(state update, next stage)``
    """
    settings = get_settings()
    if llm is None:
        llm = get_stage_llm(settings.enrichment_temperature, streaming=True)
    tool_llm = llm.bind_tools(ENRICHMENT_TOOLS)

    system = SystemMessage(content=load_system_prompt("enrichment"))
    history: list[BaseMessage] = [system, *state.messages]
    new_messages: list[BaseMessage] = []
    status = state.requirements_status

    for round_number in range(settings.enrichment_max_tool_rounds + 1):
        response: AIMessage = await stream_to_message(
            tool_llm.astream(history + new_messages, config=config),
            on_token,
        )
        new_messages.append(response)
        if not response.tool_calls:
            break

        for call in response.tool_calls:
            status = apply_tool_call(status, call["name"], call.get("args") or {})
            new_messages.append(
                ToolMessage(
                    content=_TOOL_REPLIES.get(call["name"], f"Unknown tool: {call['name']}"),
                    tool_call_id=call["id"],
                )
            )

        if round_number == settings.enrichment_max_tool_rounds:
            logger.info("Enrichment stopped after %d tool rounds", round_number + 1)

    return transition(
        Stage.ENRICHMENT,
        state,
        {"messages": new_messages, "requirements_status": status},
    )
