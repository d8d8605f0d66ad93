"""Node catalogue routes."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from ..core.dependencies import get_node_service
from ..services.node_service import NodeService

router = APIRouter(prefix="/nodes")


# Type alias for dependency injection
NodeServiceDep = Annotated[NodeService, Depends(get_node_service)]


@router.get("", response_model=list[dict[str, Any]])
async def list_nodes(service: NodeServiceDep) -> list[dict[str, Any]]:
    """List all available node types with schemas."""
    return service.list_nodes()


@router.get("/tools", response_model=list[dict[str, Any]])
async def list_tools(service: NodeServiceDep) -> list[dict[str, Any]]:
    """List tools callable from tool-call nodes."""
    return service.list_tools()
