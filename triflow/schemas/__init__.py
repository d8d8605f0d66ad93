"""Pydantic schemas for API requests and responses."""

from .common import ErrorResponse, HealthResponse, RootResponse, SuccessResponse
from .credential import CredentialListResponse, CredentialSetRequest
from .execution import (
    ExecuteWorkflowRequest,
    ExecuteWorkflowResponse,
    ExecutionDetailResponse,
    ExecutionListItem,
    NodeResultSchema,
    RunErrorSchema,
)
from .workflow import (
    InputEdgeSchema,
    NodeSpecSchema,
    WorkflowCreateRequest,
    WorkflowDetailResponse,
    WorkflowListItem,
    WorkflowResponse,
    WorkflowUpdateRequest,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "RootResponse",
    "SuccessResponse",
    "CredentialListResponse",
    "CredentialSetRequest",
    "ExecuteWorkflowRequest",
    "ExecuteWorkflowResponse",
    "ExecutionDetailResponse",
    "ExecutionListItem",
    "NodeResultSchema",
    "RunErrorSchema",
    "InputEdgeSchema",
    "NodeSpecSchema",
    "WorkflowCreateRequest",
    "WorkflowDetailResponse",
    "WorkflowListItem",
    "WorkflowResponse",
    "WorkflowUpdateRequest",
]
