"""User-scoped credential repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..db.models import UserCredentialModel


class CredentialRepository:
    """
    Stores provider secrets per user.

    Satisfies the credential resolver's user-store contract through ``get``.
    Secrets are only ever returned by ``get``; listings expose provider names.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, provider: str, user_id: str) -> str | None:
        row = await self._find(provider, user_id)
        return row.secret if row else None

    async def set(self, provider: str, user_id: str, secret: str) -> None:
        """Create or replace the user's key for a provider."""
        row = await self._find(provider, user_id)
        if row:
            row.secret = secret
            row.updated_at = datetime.now()
        else:
            self._session.add(UserCredentialModel(user_id=user_id, provider=provider, secret=secret))
        await self._session.commit()

    async def delete(self, provider: str, user_id: str) -> bool:
        row = await self._find(provider, user_id)
        if not row:
            return False
        await self._session.delete(row)
        await self._session.commit()
        return True

    async def list_providers(self, user_id: str) -> list[str]:
        """Providers the user has stored a key for."""
        statement = (
            select(UserCredentialModel.provider)
            .where(UserCredentialModel.user_id == user_id)
            .order_by(UserCredentialModel.provider)
        )
        result = await self._session.execute(statement)
        return list(result.scalars().all())

    async def _find(self, provider: str, user_id: str) -> UserCredentialModel | None:
        statement = select(UserCredentialModel).where(
            UserCredentialModel.user_id == user_id,
            UserCredentialModel.provider == provider,
        )
        result = await self._session.execute(statement)
        return result.scalars().first()
