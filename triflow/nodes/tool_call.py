"""Tool call node - invoke an external tool with templated arguments."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..engine.expression_engine import expression_engine
from ..engine.types import NodeType
from .base import BaseNode, NodeInvocation, NodeProperty, NodeTypeDescription

if TYPE_CHECKING:
    from ..engine.tools import ToolRegistry
    from ..engine.types import NodeOutcome, NodeSpec


class ToolCallNode(BaseNode):
    """Tool call node - call a registered tool by name."""

    node_description = NodeTypeDescription(
        name="tool-call",
        display_name="Tool Call",
        description="Invoke an external tool with arguments drawn from upstream outputs",
        group=["integration"],
        properties=[
            NodeProperty(
                display_name="Tool",
                name="tool",
                type="string",
                required=True,
                description="Registered tool name, e.g. 'http_request'",
            ),
            NodeProperty(
                display_name="Arguments",
                name="arguments",
                type="json",
                default={},
                description="Tool arguments. String values may contain {{ }} templates.",
            ),
        ],
    )

    @property
    def type(self) -> NodeType:
        return NodeType.TOOL_CALL

    @property
    def description(self) -> str:
        return "Invoke an external tool with arguments drawn from upstream outputs"

    def credential_providers(self, spec: NodeSpec, tools: ToolRegistry) -> set[str]:
        tool = tools.get(spec.config.get("tool", ""))
        return {tool.credential} if tool and tool.credential else set()

    async def execute(self, invocation: NodeInvocation) -> NodeOutcome:
        spec = invocation.spec
        tool = self.get_parameter(spec, "tool")
        arguments = expression_engine.resolve(
            self.get_parameter(spec, "arguments", {}), invocation.scope()
        )
        result = await invocation.tools.call(tool, arguments, invocation.credentials)
        return self.outcome(result)
