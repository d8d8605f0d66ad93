"""Core type definitions for the workflow engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Literal

from ..core.exceptions import ErrorKind


class NodeType(str, Enum):
    """Node types understood by the executor."""

    LLM_CALL = "llm-call"
    TRANSFORM = "transform"
    CONDITION = "condition"
    TOOL_CALL = "tool-call"


class NodeStatus(str, Enum):
    """Terminal state of a single node."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class RunStatus(str, Enum):
    """Overall state of a run."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PARTIALLY_FAILED = "partially-failed"


class SkipReason(str, Enum):
    """Why a node was skipped instead of executed."""

    UPSTREAM_FAILED = "upstream-failed"
    INACTIVE_BRANCH = "inactive-branch"
    CANCELLED = "cancelled"


# --- Workflow Schema Types ---


@dataclass(frozen=True)
class InputEdge:
    """Dependency on an upstream node, optionally on one branch of a condition."""

    source: str
    branch: str | None = None


@dataclass(frozen=True)
class NodeSpec:
    """Definition of a node in a workflow."""

    id: str
    type: NodeType
    config: dict[str, Any] = field(default_factory=dict)
    inputs: tuple[InputEdge, ...] = ()
    join: Literal["all", "any"] = "all"
    retry_on_fail: int = 0
    retry_delay: int = 1000
    timeout: float | None = None

    @property
    def upstream_ids(self) -> list[str]:
        """Distinct upstream node ids, in declaration order."""
        return list(dict.fromkeys(edge.source for edge in self.inputs))


@dataclass(frozen=True)
class WorkflowDefinition:
    """Workflow definition. Immutable for the duration of a run."""

    id: str
    name: str
    nodes: tuple[NodeSpec, ...]
    description: str | None = None
    settings: dict[str, Any] = field(default_factory=dict)

    @property
    def edges(self) -> list[tuple[str, str, str | None]]:
        """All edges as (source, target, branch) triples."""
        return [
            (edge.source, node.id, edge.branch)
            for node in self.nodes
            for edge in node.inputs
        ]

    def node(self, node_id: str) -> NodeSpec | None:
        return next((n for n in self.nodes if n.id == node_id), None)


@dataclass
class StoredWorkflow:
    """Stored workflow with metadata."""

    id: str
    name: str
    definition: WorkflowDefinition
    created_at: datetime
    updated_at: datetime


# --- Run State Types ---


@dataclass
class NodeError:
    """Failure recorded on a node result."""

    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class RunError:
    """Run-level failure (malformed graph, cancellation)."""

    kind: ErrorKind
    message: str


@dataclass
class NodeResult:
    """Terminal outcome of one node."""

    node_id: str
    status: NodeStatus
    output: Any = None
    error: NodeError | None = None
    duration: float = 0.0
    attempts: int = 0
    skip_reason: SkipReason | None = None
    # Thread turns produced by the node; recorded by the executor, never persisted
    messages: list[dict[str, str]] = field(default_factory=list, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.status == NodeStatus.SUCCEEDED


@dataclass
class NodeOutcome:
    """Value returned by a node implementation.

    ``messages`` carries conversation turns the node wants appended to the
    run's thread; the graph executor records them, the node never does.
    """

    output: Any
    messages: list[dict[str, str]] = field(default_factory=list)


@dataclass
class RunContext:
    """Per-execution state, owned by the graph executor."""

    run_id: str
    workflow_id: str
    thread_id: str
    started_at: datetime
    user_id: str | None = None
    status: RunStatus = RunStatus.PENDING
    node_results: dict[str, NodeResult] = field(default_factory=dict)
    credentials: dict[str, str] = field(default_factory=dict, repr=False)
    completed_at: datetime | None = None
    error: RunError | None = None
    thread_messages: list[dict[str, str]] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.completed_at is not None


@dataclass
class ExecutionRecord:
    """Immutable execution record for history. Carries no credentials."""

    id: str
    workflow_id: str
    thread_id: str
    user_id: str | None
    status: RunStatus
    started_at: datetime
    completed_at: datetime | None
    node_results: list[NodeResult] = field(default_factory=list)
    error: RunError | None = None


# --- Events ---


class ExecutionEventType(str, Enum):
    """Types of execution events for SSE streaming."""

    RUN_START = "run:start"
    NODE_START = "node:start"
    NODE_COMPLETE = "node:complete"
    NODE_ERROR = "node:error"
    NODE_SKIPPED = "node:skipped"
    RUN_COMPLETE = "run:complete"


@dataclass
class ExecutionEvent:
    """Real-time execution event."""

    type: ExecutionEventType
    run_id: str
    timestamp: datetime
    node_id: str | None = None
    node_type: str | None = None
    result: NodeResult | None = None
    status: RunStatus | None = None
    progress: dict[str, int] | None = None


# Callback type for receiving execution events
ExecutionEventCallback = Callable[[ExecutionEvent], None]
