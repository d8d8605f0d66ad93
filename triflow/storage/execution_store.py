"""In-memory execution history storage."""

from __future__ import annotations

from ..engine.types import ExecutionRecord, RunContext


class ExecutionStore:
    """In-memory execution history storage."""

    def __init__(self, max_records: int = 100) -> None:
        self._executions: dict[str, ExecutionRecord] = {}
        self._max_records = max_records

    async def save(self, context: RunContext) -> ExecutionRecord:
        """Record a terminal run. Credentials are not copied."""
        if not context.is_terminal:
            raise ValueError(f"Run {context.run_id} has not finished")

        record = ExecutionRecord(
            id=context.run_id,
            workflow_id=context.workflow_id,
            thread_id=context.thread_id,
            user_id=context.user_id,
            status=context.status,
            started_at=context.started_at,
            completed_at=context.completed_at,
            node_results=list(context.node_results.values()),
            error=context.error,
        )
        self._executions[record.id] = record
        self._cleanup()
        return record

    async def get(self, execution_id: str) -> ExecutionRecord | None:
        """Get an execution record by ID."""
        return self._executions.get(execution_id)

    async def list(
        self,
        workflow_id: str | None = None,
        user_id: str | None = None,
    ) -> list[ExecutionRecord]:
        """List execution records, newest first."""
        records = list(self._executions.values())

        if workflow_id:
            records = [r for r in records if r.workflow_id == workflow_id]
        if user_id:
            records = [r for r in records if r.user_id == user_id]

        records.sort(key=lambda r: r.started_at, reverse=True)
        return records

    async def delete(self, execution_id: str) -> bool:
        """Delete an execution record."""
        return self._executions.pop(execution_id, None) is not None

    def _cleanup(self) -> None:
        """Remove old records if over max."""
        if len(self._executions) > self._max_records:
            sorted_records = sorted(
                self._executions.items(),
                key=lambda x: x[1].started_at,
            )
            to_delete = sorted_records[: len(sorted_records) - self._max_records]
            for exec_id, _ in to_delete:
                del self._executions[exec_id]
