"""Main entry point for the triflow server."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.exceptions import ErrorKind, ValidationError, WorkflowEngineError
from .core.logging_config import configure_logging
from .db import init_db
from .engine.node_registry import register_all_nodes
from .routes import api_router
from .schemas.common import HealthResponse, RootResponse

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.MALFORMED_GRAPH: 422,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    configure_logging(settings.log_level)

    await init_db()
    logger.info("Database initialized")

    register_all_nodes()
    logger.info("%s v%s started", settings.app_name, settings.app_version)
    logger.info("Running on http://%s:%s", settings.host, settings.port)

    yield

    logger.info("%s stopped", settings.app_name)


async def workflow_error_handler(request: Request, exc: WorkflowEngineError) -> JSONResponse:
    """Translate engine errors into JSON error bodies."""
    if isinstance(exc, ValidationError):
        status_code = 400
    else:
        status_code = _STATUS_BY_KIND.get(exc.kind, 500)

    if status_code == 500:
        logger.error("Unhandled %s in %s %s: %s", exc.kind.value, request.method, request.url.path, exc.message)
    content = {"error": exc.message}
    if status_code == 422:
        content = {"error": "Malformed workflow graph", "message": exc.message}
    return JSONResponse(status_code=status_code, content=content)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Workflow graph execution service",
        version=settings.app_version,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.add_exception_handler(WorkflowEngineError, workflow_error_handler)

    # Include routers
    app.include_router(api_router)

    # Root endpoints
    @app.get("/", response_model=RootResponse)
    async def root() -> RootResponse:
        """Root endpoint."""
        return RootResponse(
            name=settings.app_name,
            version=settings.app_version,
            status="running",
        )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            version=settings.app_version,
        )

    return app


# Create app instance
app = create_app()


def main() -> None:
    """Run the server."""
    uvicorn.run(
        "triflow.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )


if __name__ == "__main__":
    main()
