"""Common schemas used across the API."""

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    """Generic success response."""

    success: bool = True
    message: str | None = None


class ErrorResponse(BaseModel):
    """Error body returned by the API."""

    error: str
    message: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str


class RootResponse(BaseModel):
    """Root endpoint response."""

    name: str
    version: str
    status: str
