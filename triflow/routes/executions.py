"""Execution history routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ..core.dependencies import get_current_user, get_execution_service
from ..schemas.common import SuccessResponse
from ..schemas.execution import ExecutionDetailResponse, ExecutionListItem
from ..services.execution_service import ExecutionService

router = APIRouter(prefix="/executions")


# Type aliases for dependency injection
ExecutionServiceDep = Annotated[ExecutionService, Depends(get_execution_service)]
CurrentUser = Annotated[str, Depends(get_current_user)]


@router.get("", response_model=list[ExecutionListItem])
async def list_executions(
    service: ExecutionServiceDep,
    user_id: CurrentUser,
    workflow_id: str | None = Query(None, description="Filter by workflow ID"),
) -> list[ExecutionListItem]:
    """List the caller's execution history."""
    return await service.list_executions(user_id, workflow_id)


@router.get("/{execution_id}", response_model=ExecutionDetailResponse)
async def get_execution(
    execution_id: str,
    service: ExecutionServiceDep,
    user_id: CurrentUser,
) -> ExecutionDetailResponse:
    """Get execution details."""
    return await service.get_execution(execution_id, user_id)


@router.delete("/{execution_id}", response_model=SuccessResponse)
async def delete_execution(
    execution_id: str,
    service: ExecutionServiceDep,
    user_id: CurrentUser,
) -> SuccessResponse:
    """Delete an execution record."""
    await service.delete_execution(execution_id, user_id)
    return SuccessResponse(message="Execution deleted")
