"""Unit tests for the two-phase validation engine."""

import pytest

from src.validation import ValidationEngine, get_node_registry
from src.validation.node_types import NodeProperty, NodeType, NodeTypeRegistry
from tests.factories import INVALID_REPLY, VALID_REPLY, NodeFactory, link, make_plan
from tests.helpers.llm import FakeChatModel


@pytest.fixture
def engine() -> ValidationEngine:
    return ValidationEngine(get_node_registry())


def _dangling_plan():
    plan = make_plan()
    plan["workflow"]["connections"]["Start"]["main"] = link("Ghost")
    return plan


class TestStructuralPhase:
    """Phase 1 alone."""

    @pytest.mark.asyncio
    async def test_without_model(self, engine):
        report = await engine.validate(make_plan())
        assert report.valid
        assert not report.semantic_checked

    @pytest.mark.asyncio
    async def test_critical_error_skips_model(self, engine):
        llm = FakeChatModel(replies=[VALID_REPLY])

        report = await engine.validate(_dangling_plan(), llm)

        assert not report.valid
        assert llm.invoke_calls == []
        assert "Ghost" in report.error_messages()[0]


class TestSemanticPhase:
    """Phase 2 on top of a passing phase 1."""

    @pytest.mark.asyncio
    async def test_valid_reply(self, engine):
        report = await engine.validate(make_plan(), FakeChatModel(replies=[VALID_REPLY]))
        assert report.valid
        assert report.semantic_checked

    @pytest.mark.asyncio
    async def test_invalid_reply(self, engine):
        report = await engine.validate(make_plan(), FakeChatModel(replies=[INVALID_REPLY]))

        assert not report.valid
        assert report.semantic_checked
        assert report.error_messages() == ["slack-1: Channel is not set"]

    @pytest.mark.asyncio
    async def test_model_failure_falls_back(self, engine):
        llm = FakeChatModel(replies=[RuntimeError("model unavailable")])

        report = await engine.validate(make_plan(), llm)

        assert report.valid
        assert not report.semantic_checked

    @pytest.mark.asyncio
    async def test_undecodable_reply_falls_back(self, engine):
        report = await engine.validate(make_plan(), FakeChatModel(replies=["Looks good"]))
        assert report.valid
        assert not report.semantic_checked

    @pytest.mark.asyncio
    async def test_structural_warnings_kept(self):
        registry = NodeTypeRegistry(
            [NodeType(name="x.webhook", properties=[NodeProperty(name="path", required=True)])]
        )
        plan = make_plan(nodes=[NodeFactory(type="x.webhook")])

        report = await ValidationEngine(registry).validate(plan, FakeChatModel(replies=[VALID_REPLY]))

        assert report.valid
        assert [w.field for w in report.warnings] == ["parameters.path"]
