"""Service layer for business logic."""

from .auth_service import AuthService
from .credential_service import CredentialService
from .execution_service import ExecutionService
from .node_service import NodeService
from .workflow_service import WorkflowService

__all__ = [
    "AuthService",
    "CredentialService",
    "ExecutionService",
    "NodeService",
    "WorkflowService",
]
