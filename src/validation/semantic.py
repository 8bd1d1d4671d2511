"""Model-assisted semantic validation.

Sits on top of the structural validator. The structural validator checks
shape and references; this module asks the model whether the parameters
make sense. The exchange is Loom in both directions.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, Field

from src.llm.streaming import message_text
from src.loom import format_loom, parse_loom, strip_code_fences
from src.plan.converter import loom_to_plan
from src.plan.models import Plan
from src.prompts import load_request, load_system_prompt

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from src.validation.node_types import NodeTypeRegistry

logger = logging.getLogger(__name__)

DEFAULT_ERROR = "Validation failed"


class SemanticResult(BaseModel):
    """Decoded validator reply.

    Attributes:
        valid: False only when the reply says ``status: invalid``.
        errors: ``"<nodeId>: <issue>"`` strings for invalid replies.
        corrected_plan: Plan wire dict when the reply carried a workflow.
    """

    valid: bool
    errors: list[str] = Field(default_factory=list)
    corrected_plan: dict[str, Any] | None = None


def format_semantic_errors(raw_errors: Any) -> list[str]:
    """Render ``validation.errors`` items as ``"<nodeId>: <issue>"`` strings."""
    if isinstance(raw_errors, dict):
        raw_errors = [raw_errors]
    if not isinstance(raw_errors, list):
        raw_errors = []

    messages = []
    for item in raw_errors:
        if isinstance(item, dict):
            node_id = item.get("nodeId") or "Unknown"
            issue = item.get("issue") or "Unknown error"
            messages.append(f"{node_id}: {issue}")
        elif item not in (None, ""):
            messages.append(f"Unknown: {item}")
    return messages or [DEFAULT_ERROR]


def decode_validator_reply(
    text: str,
    original: dict[str, Any] | None = None,
) -> SemanticResult | None:
    """Decode a validator reply.

    Args:
        text: Raw model reply
        original: Plan wire dict that was validated; fills title, summary and
            credential lists a corrected reply leaves out

    Returns:
        SemanticResult, or None when the reply is not a Loom object
    """
    parsed = parse_loom(strip_code_fences(text))
    if not parsed.success or not isinstance(parsed.data, dict) or not parsed.data:
        return None

    data = parsed.data
    validation = data.get("validation")
    status = validation.get("status") if isinstance(validation, dict) else None

    if isinstance(status, str) and status.strip().lower() == "invalid":
        return SemanticResult(valid=False, errors=format_semantic_errors(validation.get("errors")))

    corrected = None
    workflow = data.get("workflow")
    if isinstance(workflow, dict) and workflow.get("nodes"):
        merged = {k: v for k, v in (original or {}).items() if k != "workflow"}
        merged.update((k, v) for k, v in data.items() if k != "validation")
        corrected = loom_to_plan(merged).to_wire()
    return SemanticResult(valid=True, corrected_plan=corrected)


class SemanticValidator:
    """Asks the model to sanity-check a structurally valid plan.

    Args:
        registry: Node-type registry summarized into the system prompt.
    """

    def __init__(self, registry: NodeTypeRegistry) -> None:
        self._registry = registry

    def build_messages(self, plan: Plan | dict[str, Any]) -> list:
        data = plan.to_wire() if isinstance(plan, Plan) else plan
        return [
            SystemMessage(content=load_system_prompt("validator", node_types=self._registry.summary())),
            HumanMessage(content=load_request("validator", workflow=format_loom(data))),
        ]

    async def validate(
        self,
        plan: Plan | dict[str, Any],
        llm: BaseChatModel,
        config: dict[str, Any] | None = None,
    ) -> SemanticResult | None:
        """Run one validator exchange.

        Returns:
            SemanticResult, or None when the reply could not be decoded
        """
        response = await llm.ainvoke(self.build_messages(plan), config=config)
        data = plan.to_wire() if isinstance(plan, Plan) else plan
        result = decode_validator_reply(message_text(response.content), data)
        if result is None:
            logger.info("Validator reply could not be decoded as Loom")
        return result
