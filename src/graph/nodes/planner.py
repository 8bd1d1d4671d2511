"""Planner stage: turn gathered requirements into a workflow plan."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from langchain_core.messages import HumanMessage, SystemMessage

from src.events import emit_agent_error
from src.exceptions import PlanGenerationError
from src.graph.routing import NextStage, transition
from src.graph.state import OrchestratorState, Stage
from src.loom import parse_loom, strip_code_fences
from src.plan import loom_to_plan
from src.prompts import load_request, load_system_prompt
from src.settings import get_settings
from src.validation import NodeTypeRegistry, get_node_registry

from ._helpers import as_ai_message, get_stage_llm, message_text

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel
    from langchain_core.runnables import RunnableConfig

logger = logging.getLogger(__name__)

PLAN_PARSE_FAILURE = (
    "Failed to generate a valid workflow plan. The AI response could not be parsed. "
    "Please try rephrasing your request or providing more details."
)


async def run_planner(
    state: OrchestratorState,
    config: RunnableConfig | None = None,
    *,
    llm: BaseChatModel | None = None,
    registry: NodeTypeRegistry | None = None,
) -> tuple[dict[str, Any], NextStage]:
    """Generate a plan from the conversation.

    Raises:
        PlanGenerationError: If the reply is not a Loom document with a workflow
    """
    if llm is None:
        llm = get_stage_llm(get_settings().planner_temperature)
    registry = registry or get_node_registry()

    request = HumanMessage(content=load_request("planner"))
    system = SystemMessage(content=load_system_prompt("planner", node_types=registry.summary()))

    response = as_ai_message(await llm.ainvoke([system, *state.messages, request], config=config))
    response.name = Stage.PLANNER.value
    raw = message_text(response.content)

    parsed = parse_loom(strip_code_fences(raw))
    data = parsed.data if parsed.success else None
    if not isinstance(data, dict) or not isinstance(data.get("workflow"), dict):
        reason = "; ".join(e.message for e in parsed.errors) or "no workflow in response"
        logger.warning("Planner reply could not be parsed: %s", reason)
        emit_agent_error(
            "planner",
            reason,
            context={"responseLength": len(raw), "errorCount": len(parsed.errors)},
        )
        raise PlanGenerationError(PLAN_PARSE_FAILURE, raw_response=raw)

    plan = loom_to_plan(data)
    logger.info("Planner produced %r with %d nodes", plan.title, plan.node_count)

    return transition(
        Stage.PLANNER,
        state,
        {
            "messages": [request, response],
            "plan": plan.to_wire(),
            "validation_status": None,
        },
    )
