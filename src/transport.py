"""UI/transport boundary for chat sessions.

Inbound requests are validated as a discriminated union on ``type``;
outbound messages are plain dicts built by the ``*_message`` helpers.
``ChatChannel`` handles one connection's requests against the session
registry and posts outbound messages through a caller-supplied ``post``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, Literal

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from pydantic import BaseModel, Field, TypeAdapter

import src.logging_config  # noqa: F401
from src.events import Event, emit_api_error, notifier
from src.exceptions import ExecutionError
from src.sessions import SessionRegistry
from src.settings import get_settings

logger = logging.getLogger(__name__)

OutboundMessage = dict[str, Any]
Post = Callable[[OutboundMessage], Awaitable[None] | None]

APPLYING_PLAN = "\nApplying plan…"
N8N_KEY_MISSING = "n8n API key not set. Configure it in settings to create workflows."


# =============================================================================
# INBOUND
# =============================================================================


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"] = "user"
    text: str


class ChatRequest(BaseModel):
    """A user turn: the new messages only."""

    type: Literal["chat"] = "chat"
    messages: list[ChatMessage] = Field(min_length=1)

    def to_langchain(self) -> list[BaseMessage]:
        return [
            HumanMessage(content=m.text) if m.role == "user" else AIMessage(content=m.text)
            for m in self.messages
        ]


class ApplyPlanRequest(BaseModel):
    """Approval of the pending plan.

    ``plan`` is informational: resuming applies the plan held in the
    session checkpoint, never this payload.
    """

    type: Literal["apply_plan"] = "apply_plan"
    plan: dict[str, Any]


InboundMessage = Annotated[ChatRequest | ApplyPlanRequest, Field(discriminator="type")]

_inbound_adapter: TypeAdapter[ChatRequest | ApplyPlanRequest] = TypeAdapter(InboundMessage)


def parse_inbound(raw: dict[str, Any]) -> ChatRequest | ApplyPlanRequest:
    """Validate a raw inbound message.

    Raises:
        pydantic.ValidationError: If the message is malformed or of unknown type
    """
    return _inbound_adapter.validate_python(raw)


# =============================================================================
# OUTBOUND
# =============================================================================


def token_message(token: str) -> OutboundMessage:
    return {"type": "token", "token": token}


def plan_message(plan: dict[str, Any]) -> OutboundMessage:
    return {"type": "plan", "plan": plan}


def workflow_created_message(workflow_id: str, workflow_url: str) -> OutboundMessage:
    return {"type": "workflow_created", "workflowId": workflow_id, "workflowUrl": workflow_url}


def agent_activity_message(agent: str, activity: str, status: str) -> OutboundMessage:
    return {"type": "agent_activity", "agent": agent, "activity": activity, "status": status}


def error_message(error: str) -> OutboundMessage:
    return {"type": "error", "error": error}


def done_message() -> OutboundMessage:
    return {"type": "done"}


def troubleshooting_message(error: BaseException) -> str:
    """User-facing text for a failed workflow creation."""
    detail = error.user_message if isinstance(error, ExecutionError) else str(error)
    return (
        "Failed to create workflow\n\n"
        f"Error: {detail}\n\n"
        "Troubleshooting:\n"
        "1. Check the server logs for full error details\n"
        "2. Verify n8n is running and accessible\n"
        "3. Ensure API credentials are configured correctly\n"
    )


def n8n_api_key_configured() -> bool:
    return bool(get_settings().n8n_api_key.get_secret_value())


_ACTIVITY_STATUS = {"started": "started", "completed": "complete"}


# =============================================================================
# CHANNEL
# =============================================================================


class ChatChannel:
    """One UI connection bound to a session.

    Args:
        session_id: Session the connection belongs to
        registry: Registry holding the session's orchestrator
        post: Delivers outbound messages; failures are ignored
    """

    def __init__(self, session_id: str, registry: SessionRegistry, post: Post):
        self.session_id = session_id
        self._registry = registry
        self._post = post
        self._disconnected = False

    @property
    def disconnected(self) -> bool:
        return self._disconnected

    async def send(self, message: OutboundMessage) -> None:
        """Post a message unless disconnected; delivery failures are dropped."""
        if self._disconnected:
            return
        try:
            result = self._post(message)
            if result is not None:
                await result
        except Exception:
            logger.debug("Dropping %s message for session %s", message.get("type"), self.session_id)

    async def handle(self, raw: dict[str, Any] | ChatRequest | ApplyPlanRequest) -> None:
        """Handle one inbound message."""
        request = raw if isinstance(raw, (ChatRequest, ApplyPlanRequest)) else parse_inbound(raw)

        activity: list[Event] = []
        unsubscribe = notifier.subscribe(self._activity_collector(activity))
        try:
            if isinstance(request, ChatRequest):
                await self._handle_chat(request, activity)
            else:
                await self._handle_apply_plan(request, activity)
        finally:
            unsubscribe()

    def disconnect(self) -> None:
        """Stop posting and drop the session's orchestrator."""
        self._disconnected = True
        self._registry.remove(self.session_id)

    def _activity_collector(self, sink: list[Event]) -> Callable[[Event], None]:
        def _collect(event: Event) -> None:
            if event.get("domain") == "agent" and event.get("session_id") == self.session_id:
                sink.append(event)

        return _collect

    async def _flush_activity(self, activity: list[Event]) -> None:
        while activity:
            event = activity.pop(0)
            status = _ACTIVITY_STATUS.get(event.get("event", ""), "working")
            await self.send(
                agent_activity_message(
                    event.get("agent", ""), event.get("action") or event.get("event", ""), status
                )
            )

    async def _handle_chat(self, request: ChatRequest, activity: list[Event]) -> None:
        orchestrator = self._registry.get_or_create(self.session_id)

        async def _on_token(token: str) -> None:
            await self._flush_activity(activity)
            await self.send(token_message(token))

        try:
            result = await orchestrator.start(request.to_langchain(), on_token=_on_token)
            await self._flush_activity(activity)
            if result.paused and result.plan:
                if not n8n_api_key_configured():
                    await self.send(error_message(N8N_KEY_MISSING))
                else:
                    await self.send(plan_message(result.plan))
        except Exception as e:
            await self._flush_activity(activity)
            emit_api_error(e, "chat-orchestration", {"sessionId": self.session_id})
            await self.send(error_message(f"Chat failed: {e}"))
        finally:
            await self.send(done_message())

    async def _handle_apply_plan(self, request: ApplyPlanRequest, activity: list[Event]) -> None:
        if not n8n_api_key_configured():
            emit_api_error("n8n API key not set", "apply_plan")
            await self.send(error_message(N8N_KEY_MISSING))
            return

        orchestrator = self._registry.get_or_create(self.session_id)
        await self.send(token_message(APPLYING_PLAN))
        try:
            result = await orchestrator.resume()
            await self._flush_activity(activity)
            if not result.workflow_id or not result.workflow_url:
                raise ExecutionError("Workflow creation did not return a workflow ID")
        except Exception as e:
            await self._flush_activity(activity)
            logger.warning("Applying plan failed for session %s: %s", self.session_id, e)
            await self.send(error_message(troubleshooting_message(e)))
            return

        await self.send(token_message(f"\nCreated workflow: {result.workflow_url}"))
        await self.send(workflow_created_message(result.workflow_id, result.workflow_url))
        await self.send(done_message())
