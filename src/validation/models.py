"""Validation result models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Severity(StrEnum):
    CRITICAL = "critical"
    WARNING = "warning"


class Category(StrEnum):
    NODE_TYPE = "node_type"
    NODE_STRUCTURE = "node_structure"
    CONNECTION = "connection"
    PARAMETER = "parameter"
    CREDENTIAL = "credential"
    FORMAT = "format"


class ValidationError(BaseModel):
    """A single validation finding with node context.

    Attributes:
        severity: ``critical`` blocks the plan, ``warning`` does not.
        category: Which aspect of the plan is wrong.
        node_id: Id of the offending node, if any.
        node_name: Name of the offending node, if any.
        field: Dotted path of the offending field (e.g. "parameters.url").
        expected: What a valid value looks like.
        actual: What was found.
        suggestion: Human-readable fix.
        available_alternatives: Ranked replacements for unknown node types.
    """

    model_config = ConfigDict(populate_by_name=True)

    severity: Severity
    category: Category
    node_id: str | None = Field(default=None, alias="nodeId")
    node_name: str | None = Field(default=None, alias="nodeName")
    field: str
    expected: str = ""
    actual: str = ""
    suggestion: str = ""
    available_alternatives: list[str] | None = Field(
        default=None,
        alias="availableAlternatives",
    )

    @property
    def is_critical(self) -> bool:
        return self.severity == Severity.CRITICAL

    @property
    def message(self) -> str:
        """Human-readable representation used in planner feedback."""
        label = self.node_name or self.node_id
        text = self.suggestion or f"{self.field}: expected {self.expected}, got {self.actual}"
        return f"{label}: {text}" if label else text

    def __str__(self) -> str:
        return self.message


class ValidationReport(BaseModel):
    """Outcome of validating a plan.

    Attributes:
        valid: True when no critical errors were found.
        errors: Critical findings.
        warnings: Non-blocking findings.
        semantic_checked: Whether the model-assisted phase produced this report.
        corrected_plan: Plan wire dict returned by the semantic phase, if it
            sent back a corrected workflow.
    """

    valid: bool
    errors: list[ValidationError] = Field(default_factory=list)
    warnings: list[ValidationError] = Field(default_factory=list)
    semantic_checked: bool = False
    semantic_errors: list[str] = Field(default_factory=list)
    corrected_plan: dict[str, Any] | None = None

    @property
    def has_critical(self) -> bool:
        return any(e.is_critical for e in self.errors)

    def error_messages(self) -> list[str]:
        """Flat error strings for ``validation_status`` and planner feedback."""
        if self.semantic_errors:
            return list(self.semantic_errors)
        return [e.message for e in self.errors]
