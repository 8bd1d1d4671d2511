"""Stream consumer: consume an LLM astream and yield token events.

The consumer yields ``{"type": "token"}`` events for each content chunk and
accumulates tool call chunks by index. After the stream is exhausted, it
yields a final ``_consume_result`` event containing the collected content
and the parsed tool calls for the caller to inspect.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from langchain_core.messages import AIMessage

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator

logger = logging.getLogger(__name__)

TokenCallback = Callable[[str], Awaitable[None] | None]


def message_text(content: Any) -> str:
    """Flatten message content (string or content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return "" if content is None else str(content)


@dataclass
class ConsumeResult:
    """Result of consuming an LLM stream.

    Attributes:
        collected_content: All text content accumulated from token chunks.
        tool_calls_buffer: Raw tool call buffers accumulated from tool call chunks.
    """

    collected_content: str = ""
    tool_calls_buffer: list[dict[str, str]] = field(default_factory=list)

    @property
    def tool_calls(self) -> list[dict[str, Any]]:
        """Tool calls with JSON-decoded arguments."""
        return parse_tool_calls(self.tool_calls_buffer)

    def to_message(self) -> AIMessage:
        return AIMessage(content=self.collected_content, tool_calls=self.tool_calls)


def parse_tool_calls(buffer: list[dict[str, str]]) -> list[dict[str, Any]]:
    """Decode buffered tool call chunks.

    Calls without a name are dropped; undecodable arguments become ``{}``.
    """
    calls = []
    for index, buf in enumerate(buffer):
        if not buf.get("name"):
            continue
        try:
            args = json.loads(buf.get("args") or "{}")
        except json.JSONDecodeError:
            logger.debug("Undecodable tool arguments for %s: %r", buf["name"], buf.get("args"))
            args = {}
        calls.append(
            {
                "name": buf["name"],
                "args": args if isinstance(args, dict) else {},
                "id": buf.get("id") or f"call_{index}",
            }
        )
    return calls


async def consume_stream(
    astream: AsyncIterator[Any],
) -> AsyncGenerator[dict[str, Any], None]:
    """Consume an LLM astream, yielding token events and accumulating tool chunks.

    For each content chunk (without co-located tool_call_chunks), yields a
    ``{"type": "token"}`` event. Tool call chunks are merged by index into a
    buffer.

    After the stream is exhausted, yields a final internal event
    ``{"type": "_consume_result", "result": ConsumeResult}``.

    Args:
        astream: Async iterator of LLM message chunks (e.g. from ``tool_llm.astream()``).
    """
    collected_content = ""
    tool_calls_buffer: list[dict[str, str]] = []

    async for chunk in astream:
        has_tool_chunks = hasattr(chunk, "tool_call_chunks") and chunk.tool_call_chunks

        # Skip content co-located with tool call chunks; some models leak
        # partial JSON there
        if chunk.content and not has_tool_chunks:
            token = chunk.content if isinstance(chunk.content, str) else str(chunk.content)
            collected_content += token
            yield {"type": "token", "content": token}

        if has_tool_chunks:
            for tc_chunk in chunk.tool_call_chunks:
                idx = tc_chunk.get("index") or 0
                while len(tool_calls_buffer) <= idx:
                    tool_calls_buffer.append({"name": "", "args": "", "id": ""})
                buf = tool_calls_buffer[idx]
                if tc_chunk.get("name"):
                    buf["name"] = tc_chunk["name"]
                if tc_chunk.get("args"):
                    buf["args"] += tc_chunk["args"]
                if tc_chunk.get("id"):
                    buf["id"] = tc_chunk["id"]

    yield {
        "type": "_consume_result",
        "result": ConsumeResult(collected_content, tool_calls_buffer),
    }


async def stream_to_message(
    astream: AsyncIterator[Any],
    on_token: TokenCallback | None = None,
) -> AIMessage:
    """Consume a stream, forwarding tokens to ``on_token``, and return the full message."""
    result = ConsumeResult()
    async for event in consume_stream(astream):
        if event["type"] == "_consume_result":
            result = event["result"]
        elif on_token is not None:
            maybe = on_token(event["content"])
            if maybe is not None:
                await maybe
    return result.to_message()
