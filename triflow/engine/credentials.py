"""Credential resolution: user-scoped keys first, then process-wide configuration."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Protocol

logger = logging.getLogger(__name__)


class UserCredentialStore(Protocol):
    """Read access to credentials stored per (provider, user)."""

    async def get(self, provider: str, user_id: str) -> str | None: ...


class CredentialResolver:
    """
    Resolves provider secrets for a run.

    The process-wide configuration is injected at construction (see
    ``Settings.provider_keys``); the resolver never reads the environment.
    Absence of a key is a normal outcome: callers decide whether it is fatal.
    """

    def __init__(
        self,
        provider_keys: Mapping[str, str | None],
        user_store: UserCredentialStore | None = None,
    ) -> None:
        self._provider_keys = {k: v for k, v in provider_keys.items() if v}
        self._user_store = user_store

    async def get(self, provider: str, user_id: str | None = None) -> str | None:
        """Return the secret for a provider, or None when none is configured."""
        if user_id and self._user_store is not None:
            secret = await self._user_store.get(provider, user_id)
            if secret:
                logger.debug("Resolved %s credential from user store", provider)
                return secret

        secret = self._provider_keys.get(provider)
        if secret:
            logger.debug("Resolved %s credential from configuration", provider)
        return secret

    async def resolve(self, providers: Iterable[str], user_id: str | None = None) -> dict[str, str]:
        """Build the merged credential set for a run, omitting absent providers."""
        credentials: dict[str, str] = {}
        for provider in dict.fromkeys(providers):
            secret = await self.get(provider, user_id)
            if secret:
                credentials[provider] = secret
        return credentials
