"""Conversation state shared by the stage models."""

from typing import Annotated

from langchain_core.messages import AnyMessage
from langgraph.graph import add_messages
from pydantic import BaseModel, Field


class MessageState(BaseModel):
    """Chat transcript of one session.

    Stages return only their new messages; ``add_messages`` appends them
    and replaces any message whose id is already present.
    """

    messages: Annotated[list[AnyMessage], add_messages] = Field(
        default_factory=list,
        description="User turns, enrichment replies, tool results, planner output and feedback",
    )
