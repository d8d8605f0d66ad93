"""Execution-related Pydantic schemas."""

from typing import Any

from pydantic import BaseModel, Field


class ExecuteWorkflowRequest(BaseModel):
    """Request body for executing a stored workflow."""

    input: Any = Field(None, description="Run input, visible to nodes as 'input'")
    thread_id: str | None = Field(None, alias="threadId", description="Conversation thread")

    class Config:
        populate_by_name = True


class NodeErrorSchema(BaseModel):
    kind: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class NodeResultSchema(BaseModel):
    """Terminal outcome of one node."""

    node_id: str = Field(..., alias="nodeId")
    status: str
    output: Any = None
    error: NodeErrorSchema | None = None
    duration: float
    attempts: int
    skip_reason: str | None = Field(None, alias="skipReason")

    class Config:
        populate_by_name = True


class RunErrorSchema(BaseModel):
    """Run-level failure."""

    kind: str
    message: str


class ExecuteWorkflowResponse(BaseModel):
    """Response schema for workflow execution."""

    success: bool = Field(..., description="True when the run status is succeeded")
    execution_id: str = Field(..., alias="executionId")
    thread_id: str = Field(..., alias="threadId")
    status: str = Field(..., description="succeeded, failed or partially-failed")
    node_results: list[NodeResultSchema] = Field(..., alias="nodeResults")
    started_at: str = Field(..., alias="startedAt")
    completed_at: str | None = Field(None, alias="completedAt")
    error: RunErrorSchema | None = None

    class Config:
        populate_by_name = True


class ExecutionListItem(BaseModel):
    """Schema for execution in list response."""

    id: str
    workflow_id: str
    thread_id: str
    status: str
    started_at: str
    completed_at: str | None
    failed_nodes: int


class ExecutionDetailResponse(BaseModel):
    """Detailed execution response."""

    id: str
    workflow_id: str
    thread_id: str
    user_id: str | None
    status: str
    started_at: str
    completed_at: str | None
    node_results: list[NodeResultSchema]
    error: RunErrorSchema | None = None
