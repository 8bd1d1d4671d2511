"""Unit tests for the event notifier and emit helpers."""

import logging

from src.events import (
    EventNotifier,
    emit_agent_completed,
    emit_agent_error,
    emit_agent_started,
    emit_api_error,
    emit_graph_handoff,
    emit_validation_error,
    emit_workflow_created,
    emit_workflow_failed,
    log_subscriber,
)


class TestEventNotifier:
    """Publish / subscribe."""

    def test_publish_stamps_ts(self):
        notifier = EventNotifier()
        received = []
        notifier.subscribe(received.append)

        notifier.publish({"domain": "graph", "event": "started"})

        assert received[0]["domain"] == "graph"
        assert isinstance(received[0]["ts"], float)

    def test_unsubscribe(self):
        notifier = EventNotifier()
        received = []
        unsubscribe = notifier.subscribe(received.append)

        unsubscribe()
        unsubscribe()
        notifier.publish({"domain": "graph", "event": "started"})

        assert received == []
        assert len(notifier) == 0

    def test_failing_subscriber_does_not_block_others(self):
        notifier = EventNotifier()
        received = []

        def broken(event):
            raise RuntimeError("subscriber down")

        notifier.subscribe(broken)
        notifier.subscribe(received.append)

        notifier.publish({"domain": "agent", "event": "started"})

        assert len(received) == 1

    def test_log_subscriber_levels(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="src.events"):
            log_subscriber({"domain": "error", "event": "api", "error": "boom", "ts": 1.0})
            log_subscriber({"domain": "graph", "event": "started", "ts": 1.0})

        assert caplog.records[0].levelno == logging.WARNING
        assert "boom" in caplog.records[0].getMessage()
        assert caplog.records[1].levelno == logging.DEBUG


class TestEmitHelpers:
    """Event shapes."""

    def test_agent_events(self, captured_events):
        emit_agent_started("planner", "generating workflow plan", session_id="s1")
        emit_agent_completed("planner", session_id="s1")

        started, completed = captured_events
        assert started["agent"] == "planner"
        assert started["action"] == "generating workflow plan"
        assert started["session_id"] == "s1"
        assert completed["metadata"] == {}

    def test_handoff(self, captured_events):
        emit_graph_handoff("validator", None, reason="workflow created")
        assert captured_events[0]["to_step"] is None
        assert captured_events[0]["reason"] == "workflow created"

    def test_workflow_events(self, captured_events):
        workflow = {"name": "Digest", "nodes": [{}, {}]}
        emit_workflow_created(workflow, "wf-1")
        emit_workflow_failed(workflow, RuntimeError("nope"))

        created, failed = captured_events
        assert created["node_count"] == 2
        assert created["workflow_name"] == "Digest"
        assert failed["error"] == "nope"

    def test_error_events(self, captured_events):
        emit_api_error(RuntimeError("401"), "executor", {"n8nBaseUrl": "http://n8n.test"})
        emit_validation_error("2 validation errors", source="validator")
        emit_agent_error("planner", "unparseable")

        api, validation, agent = captured_events
        assert api["user_message"] == "API error in executor: 401"
        assert api["context"] == {"n8nBaseUrl": "http://n8n.test"}
        assert validation["user_message"] == "Validation failed in validator"
        assert validation["context"] == {}
        assert agent["event"] == "agent"
        assert all(e["domain"] == "error" for e in captured_events)
