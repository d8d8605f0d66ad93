"""Tests for credential resolution."""

import logging

from triflow.engine.credentials import CredentialResolver
from triflow.storage import CredentialStore


class TestCredentialResolver:
    async def test_user_key_takes_precedence(self):
        store = CredentialStore()
        await store.set("anthropic", "user-1", "sk-user")
        resolver = CredentialResolver({"anthropic": "sk-global"}, store)

        assert await resolver.get("anthropic", "user-1") == "sk-user"
        assert await resolver.get("anthropic", "user-2") == "sk-global"
        assert await resolver.get("anthropic") == "sk-global"

    async def test_missing_key_is_none(self):
        resolver = CredentialResolver({"openai": None, "groq": ""})

        assert await resolver.get("openai") is None
        assert await resolver.get("groq", "user-1") is None
        assert await resolver.get("unknown") is None

    async def test_resolve_omits_absent_providers(self):
        store = CredentialStore()
        await store.set("groq", "user-1", "gsk-user")
        resolver = CredentialResolver({"anthropic": "sk-global", "openai": None}, store)

        credentials = await resolver.resolve(["anthropic", "openai", "groq", "anthropic"], "user-1")

        assert credentials == {"anthropic": "sk-global", "groq": "gsk-user"}

    async def test_secrets_never_logged(self, caplog):
        store = CredentialStore()
        await store.set("anthropic", "user-1", "sk-very-secret")
        resolver = CredentialResolver({"openai": "sk-also-secret"}, store)

        with caplog.at_level(logging.DEBUG, logger="triflow"):
            await resolver.resolve(["anthropic", "openai"], "user-1")

        assert "anthropic" in caplog.text
        assert "secret" not in caplog.text
