"""Stage functions for the workflow-authoring graph.

Each stage is an async function ``run_<stage>(state, config, **deps)``
returning ``(state update, next stage)``. The graph builder wraps them
into LangGraph nodes.
"""

from src.graph.nodes.enrichment import (
    ENRICHMENT_TOOLS,
    ReportRequirementsStatus,
    SetConfidence,
    apply_tool_call,
    run_enrichment,
)
from src.graph.nodes.executor import run_executor
from src.graph.nodes.planner import PLAN_PARSE_FAILURE, run_planner
from src.graph.nodes.validator import format_validation_feedback, run_validator

__all__ = [
    "ENRICHMENT_TOOLS",
    "PLAN_PARSE_FAILURE",
    "ReportRequirementsStatus",
    "SetConfidence",
    "apply_tool_call",
    "format_validation_feedback",
    "run_enrichment",
    "run_executor",
    "run_planner",
    "run_validator",
]
