"""
Workflow graph handling: definition parsing, validation and ordering.

A definition is checked as a whole before any node runs. Cycles, dangling
edges and structurally invalid nodes raise MalformedGraphError.
"""

from __future__ import annotations

from collections import deque
from typing import Any

from ..core.exceptions import MalformedGraphError
from .expression_engine import expression_engine
from .types import InputEdge, NodeSpec, NodeType, WorkflowDefinition

CONDITION_BRANCHES = ("true", "false")

# Name under which templates and conditions see the run input
RESERVED_INPUT_NAME = "input"


def definition_from_dict(data: dict[str, Any], workflow_id: str | None = None) -> WorkflowDefinition:
    """Build a WorkflowDefinition from its JSON form."""
    nodes: list[NodeSpec] = []
    for raw in data.get("nodes", []):
        node_id = raw.get("id")
        if not node_id or not isinstance(node_id, str):
            raise MalformedGraphError("Every node needs a string id")

        try:
            node_type = NodeType(raw.get("type"))
        except ValueError:
            raise MalformedGraphError(
                f'Unknown node type "{raw.get("type")}" on node "{node_id}"', node_id=node_id
            ) from None

        join = raw.get("join", "all")
        if join not in ("all", "any"):
            raise MalformedGraphError(f'Invalid join "{join}" on node "{node_id}"', node_id=node_id)

        nodes.append(
            NodeSpec(
                id=node_id,
                type=node_type,
                config=dict(raw.get("config") or {}),
                inputs=tuple(_parse_edge(node_id, e) for e in raw.get("inputs") or []),
                join=join,
                retry_on_fail=int(raw.get("retry_on_fail", 0)),
                retry_delay=int(raw.get("retry_delay", 1000)),
                timeout=raw.get("timeout"),
            )
        )

    return WorkflowDefinition(
        id=workflow_id or data.get("id") or "adhoc",
        name=data.get("name") or workflow_id or "Untitled",
        nodes=tuple(nodes),
        description=data.get("description"),
        settings=dict(data.get("settings") or {}),
    )


def _parse_edge(node_id: str, raw: Any) -> InputEdge:
    if isinstance(raw, str):
        return InputEdge(source=raw)
    if isinstance(raw, dict) and isinstance(raw.get("source"), str):
        return InputEdge(source=raw["source"], branch=raw.get("branch"))
    raise MalformedGraphError(f'Invalid input edge on node "{node_id}": {raw!r}', node_id=node_id)


def definition_to_dict(definition: WorkflowDefinition) -> dict[str, Any]:
    """Convert a WorkflowDefinition to its JSON form."""
    return {
        "id": definition.id,
        "name": definition.name,
        "description": definition.description,
        "settings": definition.settings,
        "nodes": [
            {
                "id": n.id,
                "type": n.type.value,
                "config": n.config,
                "inputs": [
                    e.source if e.branch is None else {"source": e.source, "branch": e.branch}
                    for e in n.inputs
                ],
                "join": n.join,
                "retry_on_fail": n.retry_on_fail,
                "retry_delay": n.retry_delay,
                "timeout": n.timeout,
            }
            for n in definition.nodes
        ],
    }


def validate_graph(definition: WorkflowDefinition) -> list[str]:
    """
    Validate a definition and return its node ids in topological order.

    Raises:
        MalformedGraphError: On duplicate ids, dangling or invalid edges,
            unparsable condition expressions, negative retry settings,
            non-positive timeouts, or cycles.
    """
    node_map: dict[str, NodeSpec] = {}
    for node in definition.nodes:
        if node.id == RESERVED_INPUT_NAME:
            raise MalformedGraphError(
                f'"{RESERVED_INPUT_NAME}" is reserved for the run input', node_id=node.id
            )
        if node.id in node_map:
            raise MalformedGraphError(f'Duplicate node id "{node.id}"', node_id=node.id)
        if node.retry_on_fail < 0 or node.retry_delay < 0:
            raise MalformedGraphError(
                f'Node "{node.id}" has a negative retry setting', node_id=node.id
            )
        if node.timeout is not None and node.timeout <= 0:
            raise MalformedGraphError(f'Node "{node.id}" needs a positive timeout', node_id=node.id)
        node_map[node.id] = node

    for node in definition.nodes:
        for edge in node.inputs:
            source = node_map.get(edge.source)
            if source is None:
                raise MalformedGraphError(
                    f'Node "{node.id}" depends on unknown node "{edge.source}"', node_id=node.id
                )
            if edge.branch is not None:
                if source.type != NodeType.CONDITION:
                    raise MalformedGraphError(
                        f'Edge "{edge.source}" -> "{node.id}" names a branch but '
                        f'"{edge.source}" is not a condition',
                        node_id=node.id,
                    )
                if edge.branch not in CONDITION_BRANCHES:
                    raise MalformedGraphError(
                        f'Unknown branch "{edge.branch}" on edge "{edge.source}" -> "{node.id}"',
                        node_id=node.id,
                    )

        if node.type == NodeType.CONDITION:
            expression = node.config.get("expression")
            if not isinstance(expression, str) or not expression.strip():
                raise MalformedGraphError(
                    f'Condition node "{node.id}" needs an expression', node_id=node.id
                )
            if not expression_engine.is_valid(expression):
                raise MalformedGraphError(
                    f'Condition node "{node.id}" has an unparsable expression', node_id=node.id
                )

    return topological_order(definition)


def topological_order(definition: WorkflowDefinition) -> list[str]:
    """
    Kahn's algorithm over input edges. Ties keep declaration order.

    Raises:
        MalformedGraphError: If the graph contains a cycle.
    """
    indegree: dict[str, int] = {}
    dependents = dependents_map(definition)
    for node in definition.nodes:
        indegree[node.id] = len(node.upstream_ids)

    queue = deque(node_id for node_id, degree in indegree.items() if degree == 0)
    order: list[str] = []

    while queue:
        node_id = queue.popleft()
        order.append(node_id)
        for dependent in dependents.get(node_id, []):
            indegree[dependent] -= 1
            if indegree[dependent] == 0:
                queue.append(dependent)

    if len(order) != len(indegree):
        cyclic = sorted(node_id for node_id, degree in indegree.items() if degree > 0)
        raise MalformedGraphError(f"Workflow contains a cycle through: {', '.join(cyclic)}")

    return order


def dependents_map(definition: WorkflowDefinition) -> dict[str, list[str]]:
    """Map each node id to the ids of nodes that declare it as input."""
    dependents: dict[str, list[str]] = {node.id: [] for node in definition.nodes}
    for node in definition.nodes:
        for upstream in node.upstream_ids:
            dependents.setdefault(upstream, []).append(node.id)
    return dependents
