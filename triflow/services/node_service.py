"""Node service for the node type catalogue."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..engine.node_registry import NodeRegistryClass
    from ..engine.tools import ToolRegistry


class NodeService:
    """Service for node operations."""

    def __init__(self, node_registry: NodeRegistryClass, tools: ToolRegistry) -> None:
        self._node_registry = node_registry
        self._tools = tools

    def list_nodes(self) -> list[dict[str, Any]]:
        """List all available node types with schemas."""
        return [
            {
                "type": n.type,
                "displayName": n.display_name,
                "description": n.description,
                "group": n.group,
                "properties": n.properties,
            }
            for n in self._node_registry.get_node_info_full()
        ]

    def list_tools(self) -> list[dict[str, Any]]:
        """Tools available to tool-call nodes."""
        return [
            {"name": t.name, "description": t.description, "credential": t.credential}
            for t in self._tools.list()
        ]
