"""In-memory user credential storage."""

from __future__ import annotations


class CredentialStore:
    """User-scoped provider secrets keyed by (provider, user_id)."""

    def __init__(self) -> None:
        self._secrets: dict[tuple[str, str], str] = {}

    async def get(self, provider: str, user_id: str) -> str | None:
        return self._secrets.get((provider, user_id))

    async def set(self, provider: str, user_id: str, secret: str) -> None:
        self._secrets[(provider, user_id)] = secret

    async def delete(self, provider: str, user_id: str) -> bool:
        return self._secrets.pop((provider, user_id), None) is not None

    async def list_providers(self, user_id: str) -> list[str]:
        return sorted(p for p, u in self._secrets if u == user_id)
