"""Execution repository for database persistence."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..core.exceptions import ErrorKind
from ..db.models import ExecutionModel
from ..engine.types import (
    ExecutionRecord,
    NodeError,
    NodeResult,
    NodeStatus,
    RunContext,
    RunError,
    RunStatus,
    SkipReason,
)


def node_result_to_dict(result: NodeResult) -> dict[str, Any]:
    """JSON form of a node result. Thread messages are not part of it."""
    data: dict[str, Any] = {
        "node_id": result.node_id,
        "status": result.status.value,
        "output": result.output,
        "duration": result.duration,
        "attempts": result.attempts,
    }
    if result.error:
        data["error"] = {
            "kind": result.error.kind.value,
            "message": result.error.message,
            "details": result.error.details,
        }
    if result.skip_reason:
        data["skip_reason"] = result.skip_reason.value
    return data


def node_result_from_dict(data: dict[str, Any]) -> NodeResult:
    error = data.get("error")
    skip_reason = data.get("skip_reason")
    return NodeResult(
        node_id=data["node_id"],
        status=NodeStatus(data["status"]),
        output=data.get("output"),
        error=NodeError(
            kind=ErrorKind(error["kind"]),
            message=error["message"],
            details=error.get("details") or {},
        ) if error else None,
        duration=data.get("duration", 0.0),
        attempts=data.get("attempts", 0),
        skip_reason=SkipReason(skip_reason) if skip_reason else None,
    )


class ExecutionRepository:
    """Repository for execution history persistence."""

    def __init__(self, session: AsyncSession, max_records: int = 100) -> None:
        self._session = session
        self._max_records = max_records

    async def save(self, context: RunContext) -> ExecutionRecord:
        """Persist a terminal run as an immutable record."""
        if not context.is_terminal:
            raise ValueError(f"Run {context.run_id} has not finished")

        db_execution = ExecutionModel(
            id=context.run_id,
            workflow_id=context.workflow_id,
            thread_id=context.thread_id,
            user_id=context.user_id,
            status=context.status.value,
            node_results=[node_result_to_dict(r) for r in context.node_results.values()],
            error=(
                {"kind": context.error.kind.value, "message": context.error.message}
                if context.error else None
            ),
            started_at=context.started_at,
            completed_at=context.completed_at,
        )

        self._session.add(db_execution)
        await self._session.commit()
        await self._session.refresh(db_execution)

        await self._cleanup()

        return self._to_execution_record(db_execution)

    async def get(self, execution_id: str) -> ExecutionRecord | None:
        """Get an execution record by ID."""
        db_execution = await self._session.get(ExecutionModel, execution_id)
        if not db_execution:
            return None
        return self._to_execution_record(db_execution)

    async def list(
        self,
        workflow_id: str | None = None,
        user_id: str | None = None,
    ) -> list[ExecutionRecord]:
        """List execution records, newest first."""
        statement = select(ExecutionModel).order_by(ExecutionModel.started_at.desc())

        if workflow_id:
            statement = statement.where(ExecutionModel.workflow_id == workflow_id)
        if user_id:
            statement = statement.where(ExecutionModel.user_id == user_id)

        result = await self._session.execute(statement)
        executions = result.scalars().all()

        return [self._to_execution_record(e) for e in executions]

    async def delete(self, execution_id: str) -> bool:
        """Delete an execution record."""
        db_execution = await self._session.get(ExecutionModel, execution_id)
        if not db_execution:
            return False

        await self._session.delete(db_execution)
        await self._session.commit()
        return True

    async def _cleanup(self) -> None:
        """Remove old records if over max."""
        total = (await self._session.execute(select(func.count()).select_from(ExecutionModel))).scalar_one()
        if total <= self._max_records:
            return

        statement = (
            select(ExecutionModel)
            .order_by(ExecutionModel.started_at.desc())
            .offset(self._max_records)
        )
        result = await self._session.execute(statement)
        for execution in result.scalars().all():
            await self._session.delete(execution)
        await self._session.commit()

    def _to_execution_record(self, db_execution: ExecutionModel) -> ExecutionRecord:
        """Convert database model to ExecutionRecord."""
        error = db_execution.error
        return ExecutionRecord(
            id=db_execution.id,
            workflow_id=db_execution.workflow_id,
            thread_id=db_execution.thread_id,
            user_id=db_execution.user_id,
            status=RunStatus(db_execution.status),
            started_at=db_execution.started_at,
            completed_at=db_execution.completed_at,
            node_results=[node_result_from_dict(r) for r in db_execution.node_results],
            error=RunError(kind=ErrorKind(error["kind"]), message=error["message"]) if error else None,
        )
