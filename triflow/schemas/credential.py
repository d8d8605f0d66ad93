"""Credential-related Pydantic schemas. Secrets are accepted, never returned."""

from pydantic import BaseModel, Field


class CredentialSetRequest(BaseModel):
    """Request body for storing a provider key."""

    api_key: str = Field(..., min_length=1, alias="apiKey")

    class Config:
        populate_by_name = True


class CredentialListResponse(BaseModel):
    """Providers with a user-scoped key, and those with a process-wide key."""

    user: list[str]
    configured: list[str]
