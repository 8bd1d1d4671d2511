"""Validator stage: structural and model-assisted plan checks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from langchain_core.messages import HumanMessage

from src.events import emit_validation_error
from src.exceptions import MissingPlanError
from src.graph.routing import NextStage, transition
from src.graph.state import OrchestratorState, Stage
from src.settings import get_settings
from src.validation import NodeTypeRegistry, ValidationEngine, get_node_registry
from src.validation.semantic import DEFAULT_ERROR

from ._helpers import get_stage_llm

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel
    from langchain_core.runnables import RunnableConfig

logger = logging.getLogger(__name__)


def format_validation_feedback(errors: list[str]) -> str:
    """Feedback turn that sends the planner back with numbered errors."""
    numbered = "\n".join(f"{i}. {error}" for i, error in enumerate(errors, start=1))
    return (
        "VALIDATION ERRORS:\n\n"
        f"{numbered}\n\n"
        "Please fix these errors and regenerate the workflow plan."
    )


async def run_validator(
    state: OrchestratorState,
    config: RunnableConfig | None = None,
    *,
    llm: BaseChatModel | None = None,
    registry: NodeTypeRegistry | None = None,
) -> tuple[dict[str, Any], NextStage]:
    """Validate the current plan.

    The semantic phase only runs when ``semantic_validation_enabled`` is set.

    Raises:
        MissingPlanError: If the state carries no plan
    """
    if not state.plan:
        raise MissingPlanError("No plan to validate", agent_role="validator")

    settings = get_settings()
    if settings.semantic_validation_enabled:
        if llm is None:
            llm = get_stage_llm(settings.validator_temperature)
    else:
        llm = None

    engine = ValidationEngine(registry or get_node_registry())
    report = await engine.validate(state.plan, llm, config=config)

    if report.valid:
        update: dict[str, Any] = {"validation_status": {"valid": True, "errors": []}}
        if report.corrected_plan:
            logger.info("Validator returned a corrected plan")
            update["plan"] = report.corrected_plan
        return transition(Stage.VALIDATOR, state, update)

    errors = report.error_messages() or [DEFAULT_ERROR]
    logger.info("Plan failed validation with %d errors", len(errors))
    emit_validation_error(
        f"{len(errors)} validation errors",
        source="validator",
        context={"errors": errors, "semanticChecked": report.semantic_checked},
    )

    return transition(
        Stage.VALIDATOR,
        state,
        {
            "validation_status": {"valid": False, "errors": errors},
            "messages": [HumanMessage(content=format_validation_feedback(errors))],
        },
    )
