"""Two-phase plan validation.

Phase 1 is structural and always runs. Phase 2 asks the model for a
semantic review, but only when phase 1 found nothing critical and a model
was supplied. Any failure in phase 2 falls back to the phase-1 report.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from src.plan.models import Plan
from src.validation.models import ValidationReport
from src.validation.semantic import SemanticValidator
from src.validation.structural import validate_structure

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from src.validation.node_types import NodeTypeRegistry

logger = logging.getLogger(__name__)


class ValidationEngine:
    """Validates plans against a node-type registry.

    Args:
        registry: Registry used by both phases.
    """

    def __init__(self, registry: NodeTypeRegistry) -> None:
        self.registry = registry
        self.semantic = SemanticValidator(registry)

    async def validate(
        self,
        plan: Plan | dict[str, Any],
        llm: BaseChatModel | None = None,
        config: dict[str, Any] | None = None,
    ) -> ValidationReport:
        """Validate a plan.

        Args:
            plan: Plan model or plan wire dict
            llm: Chat model for the semantic phase; skipped when None
            config: Runnable config forwarded to the model call

        Returns:
            ValidationReport. ``semantic_checked`` is True only when the
            model reply was decoded.
        """
        structural = validate_structure(plan, self.registry)
        if structural.warnings:
            logger.debug("Structural validation produced %d warnings", len(structural.warnings))

        if structural.has_critical:
            logger.info(
                "Structural validation failed with %d critical errors", len(structural.errors)
            )
            return structural

        if llm is None:
            return structural

        try:
            result = await self.semantic.validate(plan, llm, config=config)
        except Exception as e:
            logger.warning("Semantic validation failed, using structural result: %s", e)
            return structural

        if result is None:
            return structural

        return ValidationReport(
            valid=result.valid,
            errors=structural.errors,
            warnings=structural.warnings,
            semantic_checked=True,
            semantic_errors=result.errors,
            corrected_plan=result.corrected_plan,
        )
