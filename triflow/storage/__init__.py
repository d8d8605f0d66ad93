"""In-memory storage with the same async contracts as the SQL repositories."""

from .credential_store import CredentialStore
from .execution_store import ExecutionStore
from .thread_store import ThreadStore
from .workflow_store import WorkflowStore

__all__ = [
    "CredentialStore",
    "ExecutionStore",
    "ThreadStore",
    "WorkflowStore",
]
