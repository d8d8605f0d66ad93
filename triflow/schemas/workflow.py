"""Workflow-related Pydantic schemas."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class InputEdgeSchema(BaseModel):
    """Input edge that depends on one branch of a condition node."""

    source: str = Field(..., description="Upstream node id")
    branch: Literal["true", "false"] | None = Field(None, description="Condition branch")


class NodeSpecSchema(BaseModel):
    """Schema for a node in a workflow."""

    id: str = Field(..., min_length=1, description="Unique id for this node in the workflow")
    type: Literal["llm-call", "transform", "condition", "tool-call"]
    config: dict[str, Any] = Field(default_factory=dict, description="Node configuration")
    inputs: list[str | InputEdgeSchema] = Field(
        default_factory=list, description="Upstream node ids or branch edges"
    )
    join: Literal["all", "any"] = Field("all", description="Run when all or any inputs are satisfied")
    retry_on_fail: int = Field(0, ge=0, description="Number of retries on failure")
    retry_delay: int = Field(1000, ge=0, description="Delay between retries in ms")
    timeout: float | None = Field(None, gt=0, description="Per-node timeout in seconds")

    class Config:
        json_schema_extra = {
            "example": {
                "id": "summarize",
                "type": "llm-call",
                "config": {"provider": "anthropic", "prompt": "Summarize: {{ fetch.body }}"},
                "inputs": ["fetch"],
            }
        }


class WorkflowCreateRequest(BaseModel):
    """Request schema for creating a workflow."""

    id: str | None = Field(None, description="Workflow id; generated when omitted")
    name: str = Field(..., min_length=1, max_length=255, description="Workflow name")
    nodes: list[NodeSpecSchema] = Field(..., min_length=1, description="List of nodes")
    description: str | None = Field(None, max_length=1000, description="Workflow description")
    settings: dict[str, Any] = Field(default_factory=dict, description="Workflow settings")


class WorkflowUpdateRequest(BaseModel):
    """Request schema for updating a workflow."""

    name: str | None = Field(None, min_length=1, max_length=255, description="Workflow name")
    nodes: list[NodeSpecSchema] | None = Field(None, description="List of nodes")
    description: str | None = Field(None, max_length=1000, description="Workflow description")
    settings: dict[str, Any] | None = Field(None, description="Workflow settings")


class WorkflowResponse(BaseModel):
    """Response schema for a created workflow."""

    id: str
    name: str
    created_at: str


class WorkflowListItem(BaseModel):
    """Schema for workflow in list response."""

    id: str
    name: str
    description: str | None
    node_count: int
    created_at: str
    updated_at: str


class WorkflowDetailResponse(BaseModel):
    """Detailed workflow response including the definition."""

    id: str
    name: str
    description: str | None
    definition: dict[str, Any]
    created_at: str
    updated_at: str
