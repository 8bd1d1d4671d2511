"""Scripted chat model and stream chunk builders for tests.

Centralizes the fake model used by the stage, graph and transport tests
so every test scripts model turns the same way.
"""

import json
from typing import Any

from langchain_core.messages import AIMessage, AIMessageChunk


def make_tool_call_chunk(name: str, args_str: str, call_id: str, index: int = 0) -> AIMessageChunk:
    """Create an AIMessageChunk carrying one tool call chunk."""
    chunk = AIMessageChunk(content="")
    chunk.tool_call_chunks = [{"name": name, "args": args_str, "id": call_id, "index": index}]
    return chunk


def text_turn(text: str) -> list[AIMessageChunk]:
    """Stream chunks for a plain text reply, split on spaces."""
    words = text.split(" ")
    return [
        AIMessageChunk(content=word if i == 0 else f" {word}") for i, word in enumerate(words)
    ]


def tool_turn(name: str, args: dict[str, Any], call_id: str) -> list[AIMessageChunk]:
    """Stream chunks for one tool call, with the arguments split across chunks."""
    args_str = json.dumps(args)
    return [
        make_tool_call_chunk(name, args_str[:8], call_id),
        make_tool_call_chunk("", args_str[8:], "", index=0),
    ]


def status_turn(
    has_all: bool,
    confidence: float,
    missing: list[str] | None = None,
    call_id: str = "call-status",
) -> list[AIMessageChunk]:
    """Stream chunks for a report_requirements_status call."""
    return tool_turn(
        "report_requirements_status",
        {"hasAllRequiredInfo": has_all, "confidence": confidence, "missingInfo": missing or []},
        call_id,
    )


async def async_iter(items):
    """Convert a list to an async iterator."""
    for item in items:
        yield item


class FakeChatModel:
    """Scripted chat model.

    ``astream`` plays the next entry of ``stream_turns`` (a list of chunks);
    ``ainvoke`` returns the next entry of ``replies`` (text, AIMessage or an
    exception to raise).
    """

    def __init__(
        self,
        stream_turns: list[list[AIMessageChunk]] | None = None,
        replies: list[Any] | None = None,
    ):
        self.stream_turns = list(stream_turns or [])
        self.replies = list(replies or [])
        self.bound_tools: list[dict[str, Any]] | None = None
        self.stream_calls: list[list[Any]] = []
        self.invoke_calls: list[list[Any]] = []

    def bind_tools(self, tools: list[dict[str, Any]], **kwargs: Any) -> "FakeChatModel":
        self.bound_tools = tools
        return self

    def astream(self, messages: list[Any], config: Any = None, **kwargs: Any):
        self.stream_calls.append(list(messages))
        if not self.stream_turns:
            raise AssertionError("FakeChatModel ran out of stream turns")
        return async_iter(self.stream_turns.pop(0))

    async def ainvoke(self, messages: list[Any], config: Any = None, **kwargs: Any) -> AIMessage:
        self.invoke_calls.append(list(messages))
        if not self.replies:
            raise AssertionError("FakeChatModel ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, AIMessage):
            return reply
        return AIMessage(content=reply)
