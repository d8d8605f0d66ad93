"""Workflow routes, including the execution entrypoint."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.dependencies import get_current_user, get_execution_service, get_workflow_service
from ..core.exceptions import MalformedGraphError, WorkflowNotFoundError
from ..schemas.common import SuccessResponse
from ..schemas.execution import ExecuteWorkflowRequest, ExecuteWorkflowResponse
from ..schemas.workflow import (
    WorkflowCreateRequest,
    WorkflowDetailResponse,
    WorkflowListItem,
    WorkflowResponse,
    WorkflowUpdateRequest,
)
from ..services.execution_service import ExecutionService
from ..services.workflow_service import WorkflowService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows")


# Type aliases for dependency injection
WorkflowServiceDep = Annotated[WorkflowService, Depends(get_workflow_service)]
ExecutionServiceDep = Annotated[ExecutionService, Depends(get_execution_service)]
CurrentUser = Annotated[str, Depends(get_current_user)]


@router.get("", response_model=list[WorkflowListItem])
async def list_workflows(service: WorkflowServiceDep, user_id: CurrentUser) -> list[WorkflowListItem]:
    """List all workflows."""
    return await service.list_workflows()


@router.get("/{workflow_id}", response_model=WorkflowDetailResponse)
async def get_workflow(
    workflow_id: str,
    service: WorkflowServiceDep,
    user_id: CurrentUser,
) -> WorkflowDetailResponse:
    """Get a single workflow by ID."""
    return await service.get_workflow(workflow_id)


@router.post("", response_model=WorkflowResponse, status_code=201)
async def create_workflow(
    workflow: WorkflowCreateRequest,
    service: WorkflowServiceDep,
    user_id: CurrentUser,
) -> WorkflowResponse:
    """Create a new workflow."""
    return await service.create_workflow(workflow)


@router.put("/{workflow_id}", response_model=WorkflowDetailResponse)
async def update_workflow(
    workflow_id: str,
    workflow: WorkflowUpdateRequest,
    service: WorkflowServiceDep,
    user_id: CurrentUser,
) -> WorkflowDetailResponse:
    """Update an existing workflow."""
    return await service.update_workflow(workflow_id, workflow)


@router.delete("/{workflow_id}", response_model=SuccessResponse)
async def delete_workflow(
    workflow_id: str,
    service: WorkflowServiceDep,
    user_id: CurrentUser,
) -> SuccessResponse:
    """Delete a workflow."""
    await service.delete_workflow(workflow_id)
    return SuccessResponse(message="Workflow deleted")


@router.post("/{workflow_id}/execute", response_model=ExecuteWorkflowResponse)
async def execute_workflow(
    workflow_id: str,
    service: ExecutionServiceDep,
    user_id: CurrentUser,
    body: ExecuteWorkflowRequest | None = None,
):
    """
    Execute a stored workflow.

    Node failures do not fail the request: they are reported per node and
    in the run status. Only a missing or malformed workflow, or an
    unexpected fault, produce an error response.
    """
    body = body or ExecuteWorkflowRequest()
    try:
        context = await service.execute(
            workflow_id,
            body.input,
            thread_id=body.thread_id,
            user_id=user_id,
        )
    except WorkflowNotFoundError:
        return JSONResponse(status_code=404, content={"error": "Workflow not found"})
    except MalformedGraphError as e:
        return JSONResponse(
            status_code=422,
            content={"error": "Malformed workflow graph", "message": e.message},
        )
    except Exception as e:
        logger.exception("Execution of workflow %s failed", workflow_id)
        return JSONResponse(
            status_code=500,
            content={"error": "Workflow execution failed", "message": str(e)},
        )
    return service.to_response(context)
