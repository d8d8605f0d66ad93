"""Custom exceptions for the workflow engine.

Every exception carries an ``ErrorKind`` so that failures can be recorded
on a node result or surfaced to the HTTP layer without string matching.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Error taxonomy shared by node results and API responses."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not-found"
    MISSING_CREDENTIAL = "missing-credential"
    UNRESOLVED_REFERENCE = "unresolved-reference"
    PROVIDER_ERROR = "provider-error"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    MALFORMED_GRAPH = "malformed-graph"
    INTERNAL = "internal"


class WorkflowEngineError(Exception):
    """Base exception for all workflow engine errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnauthorizedError(WorkflowEngineError):
    """Raised when a request carries no valid API key."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class WorkflowNotFoundError(WorkflowEngineError):
    """Raised when a workflow is not found."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, workflow_id: str) -> None:
        super().__init__(
            message=f"Workflow not found: {workflow_id}",
            details={"workflow_id": workflow_id},
        )
        self.workflow_id = workflow_id


class ExecutionNotFoundError(WorkflowEngineError):
    """Raised when an execution record is not found."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, execution_id: str) -> None:
        super().__init__(
            message=f"Execution not found: {execution_id}",
            details={"execution_id": execution_id},
        )
        self.execution_id = execution_id


class ValidationError(WorkflowEngineError):
    """Raised when a request payload fails validation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(
            message=message,
            details={"field": field} if field else {},
        )
        self.field = field


class MalformedGraphError(WorkflowEngineError):
    """Raised when a workflow graph has a cycle, a dangling edge or a bad node."""

    kind = ErrorKind.MALFORMED_GRAPH

    def __init__(self, message: str, node_id: str | None = None) -> None:
        super().__init__(
            message=message,
            details={"node_id": node_id} if node_id else {},
        )
        self.node_id = node_id


class MissingCredentialError(WorkflowEngineError):
    """Raised when a node needs a provider credential that was not resolved."""

    kind = ErrorKind.MISSING_CREDENTIAL

    def __init__(self, provider: str) -> None:
        super().__init__(
            message=f"No credential configured for provider: {provider}",
            details={"provider": provider},
        )
        self.provider = provider


class UnresolvedReferenceError(WorkflowEngineError):
    """Raised when a template or expression names an unknown upstream output."""

    kind = ErrorKind.UNRESOLVED_REFERENCE

    def __init__(self, reference: str) -> None:
        super().__init__(
            message=f"Unresolved reference: {reference}",
            details={"reference": reference},
        )
        self.reference = reference


class ProviderError(WorkflowEngineError):
    """Raised when an inference provider or tool fails or answers malformed."""

    kind = ErrorKind.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if provider:
            details["provider"] = provider
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message=message, details=details)
        self.provider = provider
        self.status_code = status_code


class NodeTimeoutError(WorkflowEngineError):
    """Raised when an external call exceeds its time budget."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str, timeout: float | None = None) -> None:
        super().__init__(
            message=message,
            details={"timeout": timeout} if timeout is not None else {},
        )
        self.timeout = timeout

