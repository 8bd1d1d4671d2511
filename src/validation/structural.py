"""Structural plan validation.

Fast, model-free checks over a plan's workflow: node shape, uniqueness,
node types against the registry and connection references. Runs first;
any critical finding short-circuits the semantic phase.
"""

from __future__ import annotations

from typing import Any

from src.plan.models import Plan
from src.validation.models import Category, Severity, ValidationError, ValidationReport
from src.validation.node_types import NodeTypeRegistry

_REQUIRED_NODE_FIELDS = {
    "id": ("Unique node identifier", 'Each node must have an "id" field'),
    "name": ("Node display name", 'Each node must have a "name" field'),
    "type": ("Valid n8n node type", 'Each node must have a "type" field'),
}

MAX_ALTERNATIVES = 5
MAX_SUGGESTED = 3


def _type_name(value: Any) -> str:
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _critical(category: Category, **kwargs: Any) -> ValidationError:
    return ValidationError(severity=Severity.CRITICAL, category=category, **kwargs)


def _warning(category: Category, **kwargs: Any) -> ValidationError:
    return ValidationError(severity=Severity.WARNING, category=category, **kwargs)


def _iter_targets(targets_list: Any):
    """Yield target dicts from single- or double-nested target lists."""
    if not isinstance(targets_list, list):
        return
    for item in targets_list:
        group = item if isinstance(item, list) else [item]
        for target in group:
            if isinstance(target, dict):
                yield target


def validate_structure(plan: Plan | dict[str, Any], registry: NodeTypeRegistry) -> ValidationReport:
    """Run the structural checks.

    Args:
        plan: Plan model or plan wire dict (as stored in orchestrator state)
        registry: Node-type registry to check types and parameters against

    Returns:
        ValidationReport; ``valid`` is False iff a critical error was found
    """
    data = plan.to_wire() if isinstance(plan, Plan) else plan
    workflow = data.get("workflow") if isinstance(data, dict) else None

    if not isinstance(workflow, dict):
        return ValidationReport(
            valid=False,
            errors=[
                _critical(
                    Category.FORMAT,
                    field="workflow",
                    expected="Workflow object with nodes and connections",
                    actual=_type_name(workflow),
                    suggestion="Plan must include a workflow object",
                )
            ],
        )

    nodes = workflow.get("nodes")
    if not isinstance(nodes, list):
        return ValidationReport(
            valid=False,
            errors=[
                _critical(
                    Category.FORMAT,
                    field="workflow.nodes",
                    expected="Array of nodes",
                    actual=_type_name(nodes),
                    suggestion="Workflow must have a nodes array",
                )
            ],
        )

    errors: list[ValidationError] = []
    warnings: list[ValidationError] = []
    node_names: list[str] = []
    seen_ids: set[str] = set()
    seen_names: set[str] = set()

    for index, node in enumerate(nodes):
        if not isinstance(node, dict):
            errors.append(
                _critical(
                    Category.FORMAT,
                    field=f"workflow.nodes[{index}]",
                    expected="Node object",
                    actual=_type_name(node),
                    suggestion="Each node must be an object",
                )
            )
            continue

        node_id = str(node.get("id") or "")
        node_name = str(node.get("name") or "")
        node_type = str(node.get("type") or "")
        context = {"node_id": node_id or None, "node_name": node_name or None}

        for field, (expected, suggestion) in _REQUIRED_NODE_FIELDS.items():
            if not node.get(field):
                errors.append(
                    _critical(
                        Category.NODE_STRUCTURE,
                        field=field,
                        expected=expected,
                        actual="undefined",
                        suggestion=suggestion,
                        **context,
                    )
                )

        if node_id:
            if node_id in seen_ids:
                errors.append(
                    _critical(
                        Category.NODE_STRUCTURE,
                        field="id",
                        expected="Unique node identifier",
                        actual=node_id,
                        suggestion=f'Node id "{node_id}" is used by more than one node',
                        **context,
                    )
                )
            seen_ids.add(node_id)

        if node_name:
            if node_name in seen_names:
                errors.append(
                    _critical(
                        Category.NODE_STRUCTURE,
                        field="name",
                        expected="Unique node name",
                        actual=node_name,
                        suggestion=f'Node name "{node_name}" is used by more than one node',
                        **context,
                    )
                )
            seen_names.add(node_name)
            node_names.append(node_name)

        parameters = node.get("parameters")
        if node_type:
            if not registry.exists(node_type):
                similar = registry.suggest(node_type, limit=MAX_ALTERNATIVES)
                if similar:
                    suggestion = (
                        f'Node type "{node_type}" doesn\'t exist. '
                        f"Did you mean: {', '.join(similar[:MAX_SUGGESTED])}?"
                    )
                else:
                    suggestion = f'Node type "{node_type}" doesn\'t exist in n8n.'
                errors.append(
                    _critical(
                        Category.NODE_TYPE,
                        field="type",
                        expected="Valid n8n node type from available types",
                        actual=node_type,
                        suggestion=suggestion,
                        available_alternatives=similar,
                        **context,
                    )
                )
            else:
                present = parameters if isinstance(parameters, dict) else {}
                for param in registry.required_parameters(node_type):
                    if param not in present:
                        warnings.append(
                            _warning(
                                Category.PARAMETER,
                                field=f"parameters.{param}",
                                expected=f'Required parameter "{param}"',
                                actual="undefined",
                                suggestion=f'Node type "{node_type}" requires parameter "{param}"',
                                **context,
                            )
                        )

        if not isinstance(parameters, dict):
            warnings.append(
                _warning(
                    Category.NODE_STRUCTURE,
                    field="parameters",
                    expected="Object (can be empty {})",
                    actual=_type_name(parameters),
                    suggestion='Node should have a "parameters" object',
                    **context,
                )
            )

        position = node.get("position")
        if not isinstance(position, list) or len(position) != 2:
            actual = f"Array({len(position)})" if isinstance(position, list) else _type_name(position)
            warnings.append(
                _warning(
                    Category.NODE_STRUCTURE,
                    field="position",
                    expected="Array of two numbers [x, y]",
                    actual=actual,
                    suggestion='Node should have a "position" array with [x, y] coordinates',
                    **context,
                )
            )

    errors.extend(_check_connections(workflow.get("connections"), node_names))

    return ValidationReport(
        valid=not any(e.is_critical for e in errors),
        errors=errors,
        warnings=warnings,
    )


def _check_connections(connections: Any, node_names: list[str]) -> list[ValidationError]:
    if not isinstance(connections, dict):
        return []

    known = set(node_names)
    available = ", ".join(node_names)
    errors: list[ValidationError] = []

    for source, outputs in connections.items():
        if source not in known:
            errors.append(
                _critical(
                    Category.CONNECTION,
                    field=f"connections.{source}",
                    expected="Connection source must reference an existing node name",
                    actual=str(source),
                    suggestion=f'Node "{source}" doesn\'t exist. Available nodes: {available}',
                )
            )
            continue

        if not isinstance(outputs, dict):
            continue

        for port, targets_list in outputs.items():
            for target in _iter_targets(targets_list):
                target_node = str(target.get("node") or "")
                if target_node and target_node not in known:
                    errors.append(
                        _critical(
                            Category.CONNECTION,
                            field=f"connections.{source}.{port}",
                            expected="Connection target must reference an existing node name",
                            actual=target_node,
                            suggestion=(
                                f'Target node "{target_node}" doesn\'t exist. '
                                f"Available nodes: {available}"
                            ),
                        )
                    )
    return errors
