"""LangGraph wiring for the workflow-authoring pipeline.

Re-exports the LangGraph primitives the stage graph is built from.
"""

from typing import TypeVar

from langgraph.graph import END, START, StateGraph
from langgraph.graph.state import CompiledStateGraph as CompiledGraph

__all__ = [
    "END",
    "START",
    "CompiledGraph",
    "StateGraph",
    "create_graph",
]


S = TypeVar("S")


def create_graph(state_class: type[S]) -> StateGraph[S]:
    """Empty StateGraph over ``state_class``.

    Example:
        >>> from src.graph.state import OrchestratorState
        >>> graph = create_graph(OrchestratorState)
        >>> graph.add_node("enrichment", enrichment_node)
    """
    return StateGraph(state_class)
