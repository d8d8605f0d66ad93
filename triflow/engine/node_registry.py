"""Node registry mapping each NodeType to its implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from .types import NodeType

if TYPE_CHECKING:
    from ..nodes.base import BaseNode, NodeProperty


@dataclass
class NodeTypeInfo:
    """Node type information for API responses."""

    type: str
    display_name: str
    description: str
    group: list[str] | None = None
    properties: list[dict[str, Any]] = field(default_factory=list)


class NodeRegistryClass:
    """Registry for workflow node types."""

    def __init__(self) -> None:
        self._instances: dict[NodeType, BaseNode] = {}

    def get(self, node_type: NodeType) -> BaseNode:
        """
        Get the node instance for a type.

        Node instances are stateless, so one instance serves every run.

        Raises:
            ValueError: If node type is not registered
        """
        if node_type not in self._instances:
            raise ValueError(f'Unknown node type: "{node_type}"')
        return self._instances[node_type]

    def register(self, node_class: type[BaseNode]) -> None:
        """Register a node class if not already registered."""
        instance = node_class()
        if instance.type not in self._instances:
            self._instances[instance.type] = instance

    def missing(self) -> set[NodeType]:
        """Node types with no registered implementation."""
        return set(NodeType) - set(self._instances)

    def get_node_info_full(self) -> list[NodeTypeInfo]:
        """Node catalogue with configuration schema."""
        return [self._build_node_type_info(instance) for instance in self._instances.values()]

    def _build_node_type_info(self, instance: BaseNode) -> NodeTypeInfo:
        desc = instance.node_description
        return NodeTypeInfo(
            type=instance.type.value,
            display_name=desc.display_name if desc else instance.type.value,
            description=instance.description,
            group=desc.group if desc else None,
            properties=self._convert_properties(desc.properties) if desc else [],
        )

    def _convert_properties(self, properties: list[NodeProperty]) -> list[dict[str, Any]]:
        """Convert properties to dict format for API responses."""
        result = []
        for prop in properties:
            prop_dict: dict[str, Any] = {
                "displayName": prop.display_name,
                "name": prop.name,
                "type": prop.type,
                "default": prop.default,
            }
            if prop.required:
                prop_dict["required"] = True
            if prop.description:
                prop_dict["description"] = prop.description
            if prop.options:
                prop_dict["options"] = [
                    {"name": o.name, "value": o.value, "description": o.description}
                    for o in prop.options
                ]
            result.append(prop_dict)
        return result


# Singleton instance
node_registry = NodeRegistryClass()


def register_all_nodes() -> NodeRegistryClass:
    """
    Register all built-in nodes.

    Raises:
        RuntimeError: If some NodeType has no implementation.
    """
    from ..nodes import ConditionNode, LLMCallNode, ToolCallNode, TransformNode

    for node_class in [LLMCallNode, TransformNode, ConditionNode, ToolCallNode]:
        node_registry.register(node_class)

    missing = node_registry.missing()
    if missing:
        names = ", ".join(sorted(t.value for t in missing))
        raise RuntimeError(f"No node implementation registered for: {names}")
    return node_registry
