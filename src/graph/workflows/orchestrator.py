"""Orchestrator workflow - enrichment → planner → validator → executor.

Conversational requirement gathering, plan generation with a bounded
validation loop, and workflow creation behind a human approval gate
(the graph pauses before the executor).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any, Literal

from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.runnables import RunnableConfig
from langgraph.checkpoint.memory import MemorySaver
from pydantic import BaseModel, Field

from src.events import (
    emit_agent_completed,
    emit_agent_started,
    emit_graph_completed,
    emit_graph_handoff,
    emit_graph_started,
)
from src.exceptions import InvalidResumeError, NoPendingWorkflowError, WorkflowAlreadyCreatedError
from src.graph import END, START, StateGraph, create_graph
from src.graph.checkpoints import Checkpoint, read_checkpoint, thread_config
from src.graph.nodes import run_enrichment, run_executor, run_planner, run_validator
from src.graph.routing import TERMINATE, NextStage
from src.graph.state import OrchestratorState, SessionStatus, Stage
from src.llm.streaming import TokenCallback, message_text
from src.n8n import N8nClient
from src.run_context import RunContext, get_run_context, reset_run_context, set_run_context

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel
    from langgraph.checkpoint.base import BaseCheckpointSaver

    from src.validation import NodeTypeRegistry

logger = logging.getLogger(__name__)

StageRunner = Callable[
    [OrchestratorState, RunnableConfig, RunContext],
    Awaitable[tuple[dict[str, Any], NextStage]],
]

_STAGE_ACTIONS = {
    Stage.ENRICHMENT: "gathering requirements",
    Stage.PLANNER: "generating workflow plan",
    Stage.VALIDATOR: "validating workflow plan",
    Stage.EXECUTOR: "creating workflow in n8n",
}


def _handoff_reason(stage: Stage, update: dict[str, Any], next_stage: NextStage) -> str:
    if next_stage is TERMINATE:
        return "workflow created"
    if stage == Stage.ENRICHMENT:
        return "requirements complete" if next_stage == Stage.PLANNER else "awaiting user input"
    if stage == Stage.VALIDATOR:
        valid = (update.get("validation_status") or {}).get("valid")
        if valid:
            return "validation passed"
        return "validation failed" if next_stage == Stage.PLANNER else "validation retries exhausted"
    return "plan generated"


def _stage_node(stage: Stage, run: StageRunner):
    """Wrap a stage function as a graph node that emits activity events."""

    async def _node(state: OrchestratorState, config: RunnableConfig) -> dict[str, Any]:
        ctx = get_run_context()
        emit_agent_started(stage.value, _STAGE_ACTIONS[stage], session_id=ctx.session_id)
        update, next_stage = await run(state, config, ctx)
        to_step = None if next_stage is TERMINATE else next_stage.value
        emit_agent_completed(stage.value, session_id=ctx.session_id, metadata={"next": to_step})
        emit_graph_handoff(
            stage.value,
            to_step,
            reason=_handoff_reason(stage, update, next_stage),
            session_id=ctx.session_id,
        )
        return update

    _node.__name__ = f"{stage.value}_node"
    return _node


def build_orchestrator_graph(
    llm: BaseChatModel | None = None,
    n8n_client: N8nClient | None = None,
    registry: NodeTypeRegistry | None = None,
) -> StateGraph:
    """Build the orchestrator graph.

    Graph structure:
    ```
    START
      │
      ▼
    enrichment ──(needs more info)──► END
      │
      ▼
    planner  ◄────────────┐
      │                   │
      ▼                   │
    validator ──(invalid, retries left)
      │
      ▼
    executor (HITL: paused before)
      │
      ▼
     END
    ```

    Args:
        llm: Chat model used by every model-backed stage; each stage builds
            its own from settings when None
        n8n_client: n8n client for the executor (built from settings when None)
        registry: Node-type registry (built-in catalog when None)

    Returns:
        Configured StateGraph
    """
    graph = create_graph(OrchestratorState)

    # Define stage runners with injected dependencies
    async def _enrichment(state, config, ctx):
        return await run_enrichment(state, config, llm=llm, on_token=ctx.on_token)

    async def _planner(state, config, ctx):
        return await run_planner(state, config, llm=llm, registry=registry)

    async def _validator(state, config, ctx):
        return await run_validator(state, config, llm=llm, registry=registry)

    async def _executor(state, config, ctx):
        return await run_executor(state, config, n8n_client=n8n_client, registry=registry)

    graph.add_node(Stage.ENRICHMENT.value, _stage_node(Stage.ENRICHMENT, _enrichment))
    graph.add_node(Stage.PLANNER.value, _stage_node(Stage.PLANNER, _planner))
    graph.add_node(Stage.VALIDATOR.value, _stage_node(Stage.VALIDATOR, _validator))
    graph.add_node(Stage.EXECUTOR.value, _stage_node(Stage.EXECUTOR, _executor))

    # Routing follows the current_step each stage wrote
    def route_after_enrichment(state: OrchestratorState) -> Literal["planner", "__end__"]:
        if state.current_step == Stage.PLANNER:
            return "planner"
        return END  # type: ignore[return-value]

    def route_after_validator(state: OrchestratorState) -> Literal["planner", "executor"]:
        if state.current_step == Stage.EXECUTOR:
            return "executor"
        return "planner"

    graph.add_edge(START, Stage.ENRICHMENT.value)
    graph.add_conditional_edges(Stage.ENRICHMENT.value, route_after_enrichment)
    graph.add_edge(Stage.PLANNER.value, Stage.VALIDATOR.value)
    graph.add_conditional_edges(Stage.VALIDATOR.value, route_after_validator)
    graph.add_edge(Stage.EXECUTOR.value, END)

    return graph


def compile_orchestrator_graph(
    checkpointer: BaseCheckpointSaver | None = None,
    **build_kwargs: Any,
) -> Any:
    """Compile the orchestrator graph with the approval interrupt.

    Args:
        checkpointer: Checkpoint saver (in-memory when None)
        **build_kwargs: Passed to :func:`build_orchestrator_graph`

    Returns:
        Compiled graph that pauses before the executor
    """
    graph = build_orchestrator_graph(**build_kwargs)
    return graph.compile(
        checkpointer=checkpointer or MemorySaver(),
        interrupt_before=[Stage.EXECUTOR.value],  # HITL: pause before creating the workflow
    )


class RunResult(BaseModel):
    """Outcome of one ``start`` or ``resume`` call."""

    session_id: str
    response: str = ""
    plan: dict[str, Any] | None = None
    workflow_id: str | None = None
    workflow_url: str | None = None
    credential_guidance: dict[str, Any] | None = None
    requirements_status: dict[str, Any] | None = None
    validation_status: dict[str, Any] | None = None
    pending_stage: Stage | None = None
    paused: bool = Field(default=False, description="Paused before the executor awaiting approval")

    @property
    def status(self) -> SessionStatus:
        if self.workflow_id:
            return SessionStatus.COMPLETED
        if self.paused:
            return SessionStatus.AWAITING_APPROVAL
        return SessionStatus.GATHERING


def _reply_text(messages: Sequence[BaseMessage]) -> str:
    """Text of the last user-facing model reply (planner output excluded)."""
    for message in reversed(messages):
        if isinstance(message, AIMessage) and message.name != Stage.PLANNER.value:
            text = message_text(message.content)
            if text:
                return text
    return ""


class WorkflowOrchestrator:
    """One session's run of the orchestrator graph.

    Args:
        session_id: Session id; also the checkpoint thread id
        graph: Compiled graph (compiled from settings when None)
        n8n_client: n8n client for the executor and deep links
        llm: Chat model override used when compiling the graph
        checkpointer: Checkpoint saver used when compiling the graph
    """

    def __init__(
        self,
        session_id: str,
        graph: Any | None = None,
        n8n_client: N8nClient | None = None,
        llm: BaseChatModel | None = None,
        checkpointer: BaseCheckpointSaver | None = None,
    ) -> None:
        self.session_id = session_id
        self._n8n_client = n8n_client
        self.graph = graph or compile_orchestrator_graph(
            checkpointer=checkpointer, llm=llm, n8n_client=n8n_client
        )
        self._config = thread_config(session_id)
        self._lock = asyncio.Lock()

    async def get_checkpoint(self) -> Checkpoint | None:
        return await read_checkpoint(self.graph, self.session_id)

    async def start(
        self,
        messages: Sequence[BaseMessage],
        on_token: TokenCallback | None = None,
    ) -> RunResult:
        """Run one user turn.

        Runs until enrichment waits for the next turn, the graph pauses
        before the executor, or the run terminates. A turn arriving while a
        plan is pending discards that plan and re-enters enrichment.

        Args:
            messages: The turn's new messages
            on_token: Receives streamed enrichment tokens

        Raises:
            WorkflowAlreadyCreatedError: If this session already created its workflow
        """
        async with self._lock:
            checkpoint = await self.get_checkpoint()
            run_input: dict[str, Any] = {
                "messages": list(messages),
                "current_step": Stage.ENRICHMENT.value,
            }
            if checkpoint is not None:
                if checkpoint.workflow_id:
                    raise WorkflowAlreadyCreatedError(
                        "Workflow already created",
                        session_id=self.session_id,
                        workflow_id=checkpoint.workflow_id,
                    )
                if checkpoint.pending_stage is not None:
                    logger.info(
                        "Session %s: discarding run pending at %s for a new turn",
                        self.session_id,
                        checkpoint.pending_stage,
                    )
                    run_input.update(plan=None, validation_status=None)

            seen = len((checkpoint.values.get("messages") if checkpoint else None) or [])
            await self._invoke(run_input, on_token)
            return await self._result(seen)

    async def resume(self, on_token: TokenCallback | None = None) -> RunResult:
        """Approve the pending plan and run the executor.

        Raises:
            NoPendingWorkflowError: If the session has no checkpoint
            WorkflowAlreadyCreatedError: If the workflow was already created
            InvalidResumeError: If the run is not paused before the executor
        """
        async with self._lock:
            checkpoint = await self.get_checkpoint()
            if checkpoint is None:
                raise NoPendingWorkflowError("No workflow to apply", session_id=self.session_id)
            if checkpoint.workflow_id:
                raise WorkflowAlreadyCreatedError(
                    "Workflow already created",
                    session_id=self.session_id,
                    workflow_id=checkpoint.workflow_id,
                )
            if not checkpoint.paused_before_executor:
                pending = checkpoint.pending_stage.value if checkpoint.pending_stage else None
                raise InvalidResumeError(
                    f"No plan is awaiting approval (pending stage: {pending or 'none'})",
                    session_id=self.session_id,
                    pending_stage=pending,
                )

            seen = len(checkpoint.values.get("messages") or [])
            await self._invoke(None, on_token)
            return await self._result(seen)

    async def _invoke(self, run_input: dict[str, Any] | None, on_token: TokenCallback | None) -> None:
        token = set_run_context(RunContext(session_id=self.session_id, on_token=on_token))
        emit_graph_started(self.session_id)
        try:
            await self.graph.ainvoke(run_input, config=self._config)
        finally:
            reset_run_context(token)
        emit_graph_completed(self.session_id)

    async def _result(self, seen_messages: int) -> RunResult:
        checkpoint = await self.get_checkpoint()
        if checkpoint is None:
            return RunResult(session_id=self.session_id)

        values = checkpoint.values
        workflow_id = values.get("workflow_id")
        new_messages = (values.get("messages") or [])[seen_messages:]
        return RunResult(
            session_id=self.session_id,
            response=_reply_text(new_messages),
            plan=values.get("plan"),
            workflow_id=workflow_id,
            workflow_url=self._workflow_url(workflow_id) if workflow_id else None,
            credential_guidance=values.get("credential_guidance"),
            requirements_status=values.get("requirements_status"),
            validation_status=values.get("validation_status"),
            pending_stage=checkpoint.pending_stage,
            paused=checkpoint.paused_before_executor,
        )

    def _workflow_url(self, workflow_id: str) -> str:
        client = self._n8n_client or N8nClient()
        return client.workflow_url(workflow_id)
