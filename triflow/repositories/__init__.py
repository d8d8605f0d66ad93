"""Repository layer for data persistence."""

from .credential_repository import CredentialRepository
from .execution_repository import ExecutionRepository
from .thread_repository import ThreadRepository
from .workflow_repository import WorkflowRepository

__all__ = [
    "CredentialRepository",
    "ExecutionRepository",
    "ThreadRepository",
    "WorkflowRepository",
]
