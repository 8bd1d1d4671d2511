"""LangGraph workflows for the workflow-authoring pipeline.

Defines the graph that connects the stage nodes into a complete run.
"""

from src.graph.workflows.orchestrator import (
    RunResult,
    WorkflowOrchestrator,
    build_orchestrator_graph,
    compile_orchestrator_graph,
)

__all__ = [
    "RunResult",
    "WorkflowOrchestrator",
    "build_orchestrator_graph",
    "compile_orchestrator_graph",
]
