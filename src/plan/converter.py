"""Conversion from parsed Loom documents to Plan models.

Model output is loosely typed: ids go missing, positions come back as
strings, prose with commas parses as lists and connection targets arrive
single-nested. Everything here normalizes rather than rejects; the
validation engine is responsible for reporting what is still wrong.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from src.plan.models import CredentialRef, Plan, Workflow, WorkflowNode

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Workflow"
DEFAULT_SUMMARY = "Generated workflow"
DEFAULT_NODE_NAME = "Unnamed Node"
DEFAULT_NODE_TYPE = "n8n-nodes-base.unknown"


def _text(value: Any) -> str:
    """Coerce a loosely typed scalar back to text.

    Unquoted prose containing commas parses as a list; join it back.
    """
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(_text(v) for v in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _optional_text(value: Any) -> str | None:
    text = _text(value)
    return text or None


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _position(value: Any) -> list[float]:
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple)) and len(value) == 2:
        coords = [_number(v) for v in value]
        if all(c is not None for c in coords):
            return [c for c in coords if c is not None]
    return [0.0, 0.0]


def _type_version(value: Any) -> float:
    number = _number(value)
    return number if number is not None and number > 0 else 1


def _credential_refs(raw: Any, *, status_key: str = "requiredFor") -> list[CredentialRef]:
    if not isinstance(raw, list):
        return []
    refs: list[CredentialRef] = []
    for item in raw:
        if isinstance(item, str):
            refs.append(CredentialRef(type=item))
            continue
        if not isinstance(item, dict):
            continue
        refs.append(
            CredentialRef(
                type=_text(item.get("type")),
                name=_optional_text(item.get("name")),
                required_for=_optional_text(item.get(status_key)),
                node_id=_optional_text(item.get("nodeId")),
                node_name=_optional_text(item.get("nodeName")),
            )
        )
    return refs


def convert_node(raw: dict[str, Any]) -> WorkflowNode:
    """Normalize one node dict, filling defaults for missing fields."""
    credentials = raw.get("credentials")
    return WorkflowNode(
        id=_text(raw.get("id")) or str(uuid4()),
        name=_text(raw.get("name")) or DEFAULT_NODE_NAME,
        type=_text(raw.get("type")) or DEFAULT_NODE_TYPE,
        type_version=_type_version(raw.get("typeVersion")),
        position=_position(raw.get("position")),
        parameters=raw["parameters"] if isinstance(raw.get("parameters"), dict) else {},
        credentials=credentials if isinstance(credentials, dict) and credentials else None,
    )


def _target(raw: Any) -> dict[str, Any] | None:
    if isinstance(raw, str) and raw.strip():
        return {"node": raw.strip(), "type": "main", "index": 0}
    if isinstance(raw, dict) and raw.get("node") not in (None, ""):
        index = _number(raw.get("index"))
        return {
            "node": _text(raw["node"]),
            "type": _text(raw.get("type")) or "main",
            "index": int(index) if index is not None else 0,
        }
    return None


def _target_groups(raw: Any) -> list[list[dict[str, Any]]]:
    if not isinstance(raw, list):
        raw = [raw]
    if any(isinstance(item, list) for item in raw):
        groups = []
        for group in raw:
            items = group if isinstance(group, list) else [group]
            groups.append([t for t in (_target(i) for i in items) if t is not None])
        return groups
    return [[t for t in (_target(i) for i in raw) if t is not None]]


def normalize_connections(connections: Any) -> dict[str, dict[str, list[list[dict[str, Any]]]]]:
    """Normalize connections to n8n's double-nested target lists.

    Accepts ``{source: {port: [[target]]}}`` (already normalized),
    ``{source: {port: [target]}}`` (single-nested), ``{source: [target]}``
    and ``{source: "Target Name"}`` shorthands. Targets may be dicts or bare
    node names.
    """
    if not isinstance(connections, dict):
        return {}

    normalized: dict[str, dict[str, list[list[dict[str, Any]]]]] = {}
    for source, outputs in connections.items():
        if not isinstance(outputs, dict) or "node" in outputs:
            outputs = {"main": outputs}
        ports: dict[str, list[list[dict[str, Any]]]] = {}
        for port, targets in outputs.items():
            groups = _target_groups(targets)
            if any(groups):
                ports[str(port)] = groups
        if ports:
            normalized[str(source)] = ports
    return normalized


def loom_to_plan(data: dict[str, Any]) -> Plan:
    """Convert a parsed Loom document into a Plan.

    Args:
        data: Parsed Loom object (``title``, ``summary``, ``workflow``,
            ``credentialsNeeded``, ``credentialsAvailable``)

    Returns:
        Normalized Plan
    """
    title = _text(data.get("title")) or DEFAULT_TITLE
    summary = _text(data.get("summary")) or DEFAULT_SUMMARY

    workflow_raw = data.get("workflow")
    if not isinstance(workflow_raw, dict):
        workflow_raw = {}

    nodes_raw = workflow_raw.get("nodes")
    if isinstance(nodes_raw, dict):
        nodes_raw = [nodes_raw]
    nodes = [convert_node(n) for n in nodes_raw or [] if isinstance(n, dict)]

    available = _credential_refs(data.get("credentialsAvailable"), status_key="status")
    settings = workflow_raw.get("settings")

    plan = Plan(
        title=title,
        summary=summary,
        workflow=Workflow(
            name=_text(workflow_raw.get("name")) or title,
            nodes=nodes,
            connections=normalize_connections(workflow_raw.get("connections")),
            settings=settings if isinstance(settings, dict) else {},
        ),
        credentials_needed=_credential_refs(data.get("credentialsNeeded")),
        credentials_available=available or None,
    )
    logger.debug("Converted Loom plan %r with %d nodes", plan.title, plan.node_count)
    return plan
