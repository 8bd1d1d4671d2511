"""Unit tests for the model-assisted semantic validator."""

from __future__ import annotations

import pytest
from langchain_core.messages import AIMessage

from src.validation import SemanticValidator, decode_validator_reply, get_node_registry
from src.validation.semantic import DEFAULT_ERROR, format_semantic_errors
from tests.factories import INVALID_REPLY, VALID_REPLY, make_plan
from tests.helpers.llm import FakeChatModel

CORRECTED_REPLY = """\
validation:
  status: valid
workflow:
  name: Fixed workflow
  nodes:
    - id: trigger-1
      name: Start
      type: n8n-nodes-base.manualTrigger
      position: 0,0
"""


class TestDecodeValidatorReply:
    """Reply decoding."""

    def test_valid(self):
        result = decode_validator_reply(VALID_REPLY)
        assert result.valid
        assert result.errors == []
        assert result.corrected_plan is None

    def test_invalid_with_errors(self):
        result = decode_validator_reply(INVALID_REPLY)
        assert not result.valid
        assert result.errors == ["slack-1: Channel is not set"]

    def test_status_is_case_insensitive(self):
        result = decode_validator_reply("validation:\n  status: INVALID")
        assert not result.valid
        assert result.errors == [DEFAULT_ERROR]

    def test_fenced_reply(self):
        assert not decode_validator_reply(f"```loom\n{INVALID_REPLY}```").valid

    def test_undecodable_reply(self):
        assert decode_validator_reply("Everything looks fine to me") is None

    def test_empty_reply(self):
        assert decode_validator_reply("") is None

    def test_object_without_status_counts_as_valid(self):
        assert decode_validator_reply("notes: looks fine").valid

    def test_corrected_plan_keeps_original_fields(self):
        original = make_plan()

        result = decode_validator_reply(CORRECTED_REPLY, original)

        assert result.valid
        corrected = result.corrected_plan
        assert corrected["title"] == "Test workflow"
        assert corrected["workflow"]["name"] == "Fixed workflow"
        assert [n["name"] for n in corrected["workflow"]["nodes"]] == ["Start"]
        assert "validation" not in corrected


class TestFormatSemanticErrors:
    """Error rendering."""

    def test_single_error_object(self):
        assert format_semantic_errors({"nodeId": "n1", "issue": "bad url"}) == ["n1: bad url"]

    def test_missing_fields(self):
        assert format_semantic_errors([{}]) == ["Unknown: Unknown error"]

    def test_plain_items(self):
        assert format_semantic_errors(["wrong", None]) == ["Unknown: wrong"]

    def test_nothing_usable(self):
        assert format_semantic_errors(None) == [DEFAULT_ERROR]
        assert format_semantic_errors([]) == [DEFAULT_ERROR]


class TestSemanticValidator:
    """One validator exchange with the model."""

    def test_messages_include_registry_and_plan(self):
        validator = SemanticValidator(get_node_registry())

        system, request = validator.build_messages(make_plan())

        assert "n8n-nodes-base.slack" in system.content
        assert request.content.startswith("Validate this workflow plan:")
        assert "title: Test workflow" in request.content

    @pytest.mark.asyncio
    async def test_validate_decodes_reply(self):
        llm = FakeChatModel(replies=[INVALID_REPLY])
        result = await SemanticValidator(get_node_registry()).validate(make_plan(), llm)

        assert not result.valid
        assert len(llm.invoke_calls) == 1

    @pytest.mark.asyncio
    async def test_validate_returns_none_for_prose(self):
        llm = FakeChatModel(replies=["I think this is fine"])
        assert await SemanticValidator(get_node_registry()).validate(make_plan(), llm) is None

    @pytest.mark.asyncio
    async def test_validate_reads_content_blocks(self):
        reply = AIMessage(content=[{"type": "text", "text": VALID_REPLY}])
        llm = FakeChatModel(replies=[reply])

        result = await SemanticValidator(get_node_registry()).validate(make_plan(), llm)

        assert result.valid
