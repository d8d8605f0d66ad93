"""Transform node - pure template substitution over upstream outputs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..engine.expression_engine import expression_engine
from ..engine.types import NodeType
from .base import BaseNode, NodeInvocation, NodeProperty, NodeTypeDescription

if TYPE_CHECKING:
    from ..engine.types import NodeOutcome


class TransformNode(BaseNode):
    """Transform node - build a new value from upstream outputs."""

    node_description = NodeTypeDescription(
        name="transform",
        display_name="Transform",
        description="Build a value from upstream outputs with {{ }} templates",
        group=["transform"],
        properties=[
            NodeProperty(
                display_name="Template",
                name="template",
                type="string",
                description="String template, e.g. 'Title: {{ fetch.title }}'. "
                "A template that is a single reference keeps the value's type.",
            ),
            NodeProperty(
                display_name="Fields",
                name="fields",
                type="json",
                description="Mapping of output keys to templates. Used when no template is set.",
            ),
        ],
    )

    @property
    def type(self) -> NodeType:
        return NodeType.TRANSFORM

    @property
    def description(self) -> str:
        return "Build a value from upstream outputs with {{ }} templates"

    async def execute(self, invocation: NodeInvocation) -> NodeOutcome:
        spec = invocation.spec
        template = spec.config.get("template")
        if template is None:
            template = self.get_parameter(spec, "fields", {})
        return self.outcome(expression_engine.resolve(template, invocation.scope()))
