"""Shared helpers for stage nodes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from langchain_core.messages import AIMessage

from src.llm.streaming import message_text

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel


def get_stage_llm(temperature: float, *, streaming: bool = False) -> BaseChatModel:
    """Chat model for a stage, built from settings."""
    from src.llm import get_llm

    return get_llm(temperature=temperature, streaming=streaming)


def as_ai_message(response: Any) -> AIMessage:
    if isinstance(response, AIMessage):
        return response
    return AIMessage(content=message_text(getattr(response, "content", response)))
