"""LLM provider factory and stream consumption."""

from src.llm.factory import PROVIDER_BASE_URLS, get_llm, list_supported_providers
from src.llm.streaming import (
    ConsumeResult,
    consume_stream,
    message_text,
    parse_tool_calls,
    stream_to_message,
)

__all__ = [
    "PROVIDER_BASE_URLS",
    "ConsumeResult",
    "consume_stream",
    "get_llm",
    "list_supported_providers",
    "message_text",
    "parse_tool_calls",
    "stream_to_message",
]
