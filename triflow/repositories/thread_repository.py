"""Conversation thread repository."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..db.models import ThreadMessageModel


class ThreadRepository:
    """Append-only conversation turns per thread."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def history(self, thread_id: str, limit: int | None = None) -> list[dict[str, str]]:
        """Messages of a thread, oldest first. ``limit`` keeps the most recent."""
        statement = (
            select(ThreadMessageModel)
            .where(ThreadMessageModel.thread_id == thread_id)
            .order_by(ThreadMessageModel.id)
        )
        result = await self._session.execute(statement)
        messages = [{"role": m.role, "content": m.content} for m in result.scalars().all()]
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return messages

    async def append(self, thread_id: str, messages: Iterable[dict[str, str]]) -> int:
        count = 0
        for message in messages:
            self._session.add(
                ThreadMessageModel(
                    thread_id=thread_id,
                    role=message["role"],
                    content=message["content"],
                )
            )
            count += 1
        if count:
            await self._session.commit()
        return count
