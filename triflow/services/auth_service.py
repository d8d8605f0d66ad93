"""API-key authentication."""

from __future__ import annotations

import secrets
from typing import Mapping

from ..core.exceptions import UnauthorizedError


class AuthService:
    """Maps API keys to user ids."""

    def __init__(self, api_keys: Mapping[str, str]) -> None:
        self._api_keys = dict(api_keys)

    def authenticate(self, api_key: str | None) -> str:
        """
        Return the user id for an API key.

        Raises:
            UnauthorizedError: If the key is missing or unknown.
        """
        if not api_key:
            raise UnauthorizedError()
        for key, user_id in self._api_keys.items():
            if secrets.compare_digest(key.encode(), api_key.encode()):
                return user_id
        raise UnauthorizedError("Invalid API key")
