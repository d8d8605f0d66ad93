"""In-memory conversation thread storage."""

from __future__ import annotations

from typing import Iterable


class ThreadStore:
    """Append-only conversation turns per thread."""

    def __init__(self) -> None:
        self._threads: dict[str, list[dict[str, str]]] = {}

    async def history(self, thread_id: str, limit: int | None = None) -> list[dict[str, str]]:
        messages = [dict(m) for m in self._threads.get(thread_id, [])]
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return messages

    async def append(self, thread_id: str, messages: Iterable[dict[str, str]]) -> int:
        new = [{"role": m["role"], "content": m["content"]} for m in messages]
        self._threads.setdefault(thread_id, []).extend(new)
        return len(new)
