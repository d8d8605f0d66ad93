"""Core module - config, exceptions, logging and dependencies."""

from .config import settings, Settings, get_settings
from .exceptions import (
    ErrorKind,
    WorkflowEngineError,
    UnauthorizedError,
    WorkflowNotFoundError,
    ExecutionNotFoundError,
    ValidationError,
    MalformedGraphError,
    MissingCredentialError,
    UnresolvedReferenceError,
    ProviderError,
    NodeTimeoutError,
)
from .logging_config import configure_logging

__all__ = [
    # Config
    "settings",
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorKind",
    "WorkflowEngineError",
    "UnauthorizedError",
    "WorkflowNotFoundError",
    "ExecutionNotFoundError",
    "ValidationError",
    "MalformedGraphError",
    "MissingCredentialError",
    "UnresolvedReferenceError",
    "ProviderError",
    "NodeTimeoutError",
    # Logging
    "configure_logging",
]
