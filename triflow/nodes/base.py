"""Base node class for all workflow nodes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping, TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine.inference import InferenceGateway
    from ..engine.tools import ToolRegistry
    from ..engine.types import NodeOutcome, NodeSpec, NodeType


@dataclass
class NodePropertyOption:
    """Option for a node property."""

    name: str
    value: str
    description: str | None = None


@dataclass
class NodeProperty:
    """Configuration key accepted by a node type."""

    display_name: str
    name: str
    type: str  # string, number, boolean, options, json
    default: Any = None
    required: bool = False
    description: str | None = None
    options: list[NodePropertyOption] | None = None


@dataclass
class NodeTypeDescription:
    """Full description of a node type for the node catalogue."""

    name: str
    display_name: str
    description: str
    group: list[str] = field(default_factory=lambda: ["transform"])
    properties: list[NodeProperty] = field(default_factory=list)


@dataclass(frozen=True)
class NodeInvocation:
    """
    Everything a node may read during one execution.

    ``upstream`` and ``credentials`` are read-only snapshots; nodes return
    a NodeOutcome and never write run state.
    """

    spec: NodeSpec
    upstream: Mapping[str, Any]
    credentials: Mapping[str, str]
    gateway: InferenceGateway
    tools: ToolRegistry
    run_input: Any = None
    history: tuple[dict[str, str], ...] = ()

    def scope(self) -> dict[str, Any]:
        """Names visible to templates and expressions."""
        return {**self.upstream, "input": self.run_input}


class BaseNode(ABC):
    """
    Abstract base class for all workflow nodes.

    Nodes should define a class-level `node_description` for the catalogue.
    """

    node_description: NodeTypeDescription | None = None

    @property
    @abstractmethod
    def type(self) -> NodeType:
        """Node type identifier."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description of what the node does."""
        ...

    @abstractmethod
    async def execute(self, invocation: NodeInvocation) -> NodeOutcome:
        """Execute the node logic."""
        ...

    def credential_providers(self, spec: NodeSpec, tools: ToolRegistry) -> set[str]:
        """Providers whose credentials this node may need."""
        return set()

    def get_parameter(self, spec: NodeSpec, key: str, default: Any = None) -> Any:
        """Get a config value from the node spec."""
        value = spec.config.get(key)
        if value is None:
            if default is None and self._is_required_parameter(key):
                raise ValueError(f'Missing required parameter "{key}" in node "{spec.id}"')
            return default
        return value

    def _is_required_parameter(self, key: str) -> bool:
        """Check if a parameter is required."""
        if not self.node_description:
            return False
        for prop in self.node_description.properties:
            if prop.name == key:
                return prop.required
        return False

    def outcome(self, output: Any, messages: list[dict[str, str]] | None = None) -> NodeOutcome:
        """Helper to create a node outcome."""
        from ..engine.types import NodeOutcome

        return NodeOutcome(output=output, messages=messages or [])
