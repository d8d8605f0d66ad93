"""User-scoped credential routes. Secrets are write-only."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.dependencies import get_credential_service, get_current_user
from ..schemas.common import SuccessResponse
from ..schemas.credential import CredentialListResponse, CredentialSetRequest
from ..services.credential_service import CredentialService

router = APIRouter(prefix="/credentials")


# Type aliases for dependency injection
CredentialServiceDep = Annotated[CredentialService, Depends(get_credential_service)]
CurrentUser = Annotated[str, Depends(get_current_user)]


@router.get("", response_model=CredentialListResponse)
async def list_credentials(
    service: CredentialServiceDep,
    user_id: CurrentUser,
) -> CredentialListResponse:
    """Providers the caller has a key for, and providers configured process-wide."""
    return await service.list_credentials(user_id)


@router.put("/{provider}", response_model=SuccessResponse)
async def set_credential(
    provider: str,
    body: CredentialSetRequest,
    service: CredentialServiceDep,
    user_id: CurrentUser,
) -> SuccessResponse:
    """Store the caller's key for a provider."""
    await service.set_credential(user_id, provider, body.api_key)
    return SuccessResponse(message=f"Credential for {provider} saved")


@router.delete("/{provider}", response_model=SuccessResponse)
async def delete_credential(
    provider: str,
    service: CredentialServiceDep,
    user_id: CurrentUser,
):
    """Remove the caller's key for a provider."""
    if not await service.delete_credential(user_id, provider):
        return JSONResponse(status_code=404, content={"error": f"No credential for {provider}"})
    return SuccessResponse(message=f"Credential for {provider} deleted")
