"""Core workflow engine components."""

from .types import (
    ExecutionEvent,
    ExecutionEventType,
    ExecutionRecord,
    InputEdge,
    NodeResult,
    NodeSpec,
    NodeStatus,
    NodeType,
    RunContext,
    RunStatus,
    SkipReason,
    StoredWorkflow,
    WorkflowDefinition,
)
from .credentials import CredentialResolver
from .expression_engine import ExpressionEngine, expression_engine
from .graph import definition_from_dict, definition_to_dict, validate_graph
from .graph_executor import GraphExecutor
from .inference import CompletionConfig, InferenceGateway, ProviderGateway
from .node_executor import NodeExecutor
from .node_registry import NodeRegistryClass, node_registry, register_all_nodes
from .tools import ToolRegistry, build_tool_registry

__all__ = [
    "ExecutionEvent",
    "ExecutionEventType",
    "ExecutionRecord",
    "InputEdge",
    "NodeResult",
    "NodeSpec",
    "NodeStatus",
    "NodeType",
    "RunContext",
    "RunStatus",
    "SkipReason",
    "StoredWorkflow",
    "WorkflowDefinition",
    "CredentialResolver",
    "ExpressionEngine",
    "expression_engine",
    "definition_from_dict",
    "definition_to_dict",
    "validate_graph",
    "GraphExecutor",
    "CompletionConfig",
    "InferenceGateway",
    "ProviderGateway",
    "NodeExecutor",
    "NodeRegistryClass",
    "node_registry",
    "register_all_nodes",
    "ToolRegistry",
    "build_tool_registry",
]
