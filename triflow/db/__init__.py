"""Database configuration and models."""

from .session import async_session_factory, create_session_factory, engine, get_session, init_db
from .models import ExecutionModel, ThreadMessageModel, UserCredentialModel, WorkflowModel

__all__ = [
    "engine",
    "async_session_factory",
    "create_session_factory",
    "init_db",
    "get_session",
    "WorkflowModel",
    "ExecutionModel",
    "UserCredentialModel",
    "ThreadMessageModel",
]
