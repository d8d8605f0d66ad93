"""Built-in workflow node implementations."""

from .base import BaseNode, NodeInvocation
from .condition import ConditionNode
from .llm_call import LLMCallNode
from .tool_call import ToolCallNode
from .transform import TransformNode

__all__ = [
    "BaseNode",
    "NodeInvocation",
    "ConditionNode",
    "LLMCallNode",
    "ToolCallNode",
    "TransformNode",
]
