"""Combined /api router."""

from fastapi import APIRouter

from .credentials import router as credentials_router
from .execution_stream import router as stream_router
from .executions import router as executions_router
from .nodes import router as nodes_router
from .workflows import router as workflows_router

router = APIRouter(prefix="/api")

router.include_router(workflows_router, tags=["Workflows"])
router.include_router(stream_router, tags=["Streaming"])
router.include_router(executions_router, tags=["Executions"])
router.include_router(credentials_router, tags=["Credentials"])
router.include_router(nodes_router, tags=["Nodes"])
