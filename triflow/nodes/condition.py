"""Condition node - pick the active branch from a boolean expression."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..engine.expression_engine import expression_engine
from ..engine.types import NodeType
from .base import BaseNode, NodeInvocation, NodeProperty, NodeTypeDescription

if TYPE_CHECKING:
    from ..engine.types import NodeOutcome


class ConditionNode(BaseNode):
    """Condition node - route downstream execution to the true or false branch."""

    node_description = NodeTypeDescription(
        name="condition",
        display_name="Condition",
        description="Route execution based on a condition (true/false branches)",
        group=["flow"],
        properties=[
            NodeProperty(
                display_name="Expression",
                name="expression",
                type="string",
                required=True,
                description="Expression over upstream outputs, e.g. "
                "'length(fetch) > 100' or 'classify.label == \"spam\"'",
            ),
        ],
    )

    @property
    def type(self) -> NodeType:
        return NodeType.CONDITION

    @property
    def description(self) -> str:
        return "Route execution based on a condition (true/false branches)"

    async def execute(self, invocation: NodeInvocation) -> NodeOutcome:
        expression = self.get_parameter(invocation.spec, "expression")
        result = bool(expression_engine.evaluate(expression, invocation.scope()))
        return self.outcome({"result": result, "active": "true" if result else "false"})
