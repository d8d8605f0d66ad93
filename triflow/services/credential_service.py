"""Credential service for user-scoped provider keys."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from ..core.exceptions import ValidationError
from ..schemas.credential import CredentialListResponse

if TYPE_CHECKING:
    from ..repositories import CredentialRepository


class CredentialService:
    """Service for credential operations. Never returns secret values."""

    def __init__(
        self,
        credential_repo: CredentialRepository,
        provider_keys: Mapping[str, str | None],
    ) -> None:
        self._credential_repo = credential_repo
        self._provider_keys = provider_keys

    async def list_credentials(self, user_id: str) -> CredentialListResponse:
        return CredentialListResponse(
            user=await self._credential_repo.list_providers(user_id),
            configured=sorted(p for p, key in self._provider_keys.items() if key),
        )

    async def set_credential(self, user_id: str, provider: str, api_key: str) -> None:
        self._check_provider(provider)
        await self._credential_repo.set(provider, user_id, api_key)

    async def delete_credential(self, user_id: str, provider: str) -> bool:
        self._check_provider(provider)
        return await self._credential_repo.delete(provider, user_id)

    def _check_provider(self, provider: str) -> None:
        if provider not in self._provider_keys:
            known = ", ".join(sorted(self._provider_keys))
            raise ValidationError(f"Unknown provider: {provider}. Expected one of: {known}", field="provider")
