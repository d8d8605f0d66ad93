"""FastAPI dependency injection for the workflow service."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, AsyncGenerator

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings


# --- Database Session Dependency ---


def get_session_factory():
    """Get the async session factory."""
    from ..db import async_session_factory

    return async_session_factory


async def get_db_session(
    session_factory=Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """Get async database session."""
    async with session_factory() as session:
        yield session


# --- Repository Dependencies ---


def get_workflow_repository(session: AsyncSession = Depends(get_db_session)):
    """Get workflow repository instance."""
    from ..repositories import WorkflowRepository

    return WorkflowRepository(session)


def get_execution_repository(session: AsyncSession = Depends(get_db_session)):
    """Get execution repository instance."""
    from ..repositories import ExecutionRepository

    return ExecutionRepository(session, max_records=settings.max_execution_records)


def get_credential_repository(session: AsyncSession = Depends(get_db_session)):
    """Get credential repository instance."""
    from ..repositories import CredentialRepository

    return CredentialRepository(session)


# --- Engine Dependencies ---


@lru_cache
def get_inference_gateway():
    """Get the shared inference gateway."""
    from ..engine.inference import ProviderGateway

    return ProviderGateway(settings, timeout=settings.node_timeout_seconds)


@lru_cache
def get_tool_registry():
    """Get the shared tool registry."""
    from ..engine.tools import build_tool_registry

    return build_tool_registry(settings)


@lru_cache
def get_node_registry():
    """Get node registry instance."""
    from ..engine.node_registry import register_all_nodes

    return register_all_nodes()


def get_graph_executor(
    gateway=Depends(get_inference_gateway),
    tools=Depends(get_tool_registry),
    node_registry=Depends(get_node_registry),
):
    """Get a graph executor wired to the shared collaborators."""
    from ..engine.graph_executor import GraphExecutor
    from ..engine.node_executor import NodeExecutor

    node_executor = NodeExecutor(
        gateway,
        tools,
        registry=node_registry,
        default_timeout=settings.node_timeout_seconds,
    )
    return GraphExecutor(node_executor, max_concurrency=settings.max_concurrency)


# --- Auth Dependencies ---


@lru_cache
def get_auth_service():
    """Get auth service instance."""
    from ..services.auth_service import AuthService

    return AuthService(settings.api_keys)


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    x_api_key: Annotated[str | None, Header()] = None,
    auth_service=Depends(get_auth_service),
) -> str:
    """Authenticate the request by API key and return the user id."""
    api_key = x_api_key
    if authorization and authorization.lower().startswith("bearer "):
        api_key = authorization[7:].strip()
    return auth_service.authenticate(api_key)


# --- Service Dependencies ---


def get_workflow_service(workflow_repo=Depends(get_workflow_repository)):
    """Get workflow service instance."""
    from ..services.workflow_service import WorkflowService

    return WorkflowService(workflow_repo)


def build_execution_service(session: AsyncSession, graph_executor):
    """Execution service over one database session."""
    from ..engine.credentials import CredentialResolver
    from ..repositories import (
        CredentialRepository,
        ExecutionRepository,
        ThreadRepository,
        WorkflowRepository,
    )
    from ..services.execution_service import ExecutionService

    return ExecutionService(
        workflow_repo=WorkflowRepository(session),
        execution_repo=ExecutionRepository(session, max_records=settings.max_execution_records),
        thread_repo=ThreadRepository(session),
        credential_resolver=CredentialResolver(
            settings.provider_keys(), CredentialRepository(session)
        ),
        graph_executor=graph_executor,
        run_timeout=settings.run_timeout_seconds,
    )


def get_execution_service(
    session: AsyncSession = Depends(get_db_session),
    graph_executor=Depends(get_graph_executor),
):
    """Get execution service instance."""
    return build_execution_service(session, graph_executor)


def get_credential_service(credential_repo=Depends(get_credential_repository)):
    """Get credential service instance."""
    from ..services.credential_service import CredentialService

    return CredentialService(credential_repo, settings.provider_keys())


def get_node_service(
    node_registry=Depends(get_node_registry),
    tools=Depends(get_tool_registry),
):
    """Get node service instance."""
    from ..services.node_service import NodeService

    return NodeService(node_registry, tools)
