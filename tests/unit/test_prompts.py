"""Unit tests for prompt loading."""

import pytest

from src.prompts import load_prompt, load_request, load_system_prompt


class TestPrompts:
    """Stage prompt templates."""

    def test_enrichment_prompt_names_tools(self):
        prompt = load_system_prompt("enrichment")
        assert "report_requirements_status" in prompt

    def test_planner_prompt_formats_node_types(self):
        prompt = load_system_prompt("planner", node_types="- n8n-nodes-base.noOp")
        assert "- n8n-nodes-base.noOp" in prompt
        assert "{node_types}" not in prompt

    def test_validator_request_formats_workflow(self):
        request = load_request("validator", workflow="title: X")
        assert request.endswith("title: X")

    def test_requests_are_stripped(self):
        request = load_request("planner")
        assert request == request.strip()

    def test_missing_template(self):
        with pytest.raises(FileNotFoundError, match="nonexistent.md"):
            load_prompt("nonexistent")
