"""Execution service: the run pipeline and execution history."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from ..core.exceptions import ExecutionNotFoundError, WorkflowNotFoundError
from ..engine.graph import validate_graph
from ..engine.types import ExecutionEventCallback, ExecutionRecord, NodeResult, RunContext, RunError, RunStatus
from ..schemas.execution import (
    ExecuteWorkflowResponse,
    ExecutionDetailResponse,
    ExecutionListItem,
    NodeErrorSchema,
    NodeResultSchema,
    RunErrorSchema,
)

if TYPE_CHECKING:
    from ..engine.credentials import CredentialResolver
    from ..engine.graph_executor import GraphExecutor
    from ..repositories import ExecutionRepository, ThreadRepository, WorkflowRepository

logger = logging.getLogger(__name__)


def node_result_schema(result: NodeResult) -> NodeResultSchema:
    return NodeResultSchema(
        node_id=result.node_id,
        status=result.status.value,
        output=result.output,
        error=NodeErrorSchema(
            kind=result.error.kind.value,
            message=result.error.message,
            details=result.error.details,
        ) if result.error else None,
        duration=result.duration,
        attempts=result.attempts,
        skip_reason=result.skip_reason.value if result.skip_reason else None,
    )


def run_error_schema(error: RunError | None) -> RunErrorSchema | None:
    return RunErrorSchema(kind=error.kind.value, message=error.message) if error else None


class ExecutionService:
    """Service for executing workflows and reading execution history."""

    def __init__(
        self,
        workflow_repo: WorkflowRepository,
        execution_repo: ExecutionRepository,
        thread_repo: ThreadRepository,
        credential_resolver: CredentialResolver,
        graph_executor: GraphExecutor,
        run_timeout: float | None = None,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._execution_repo = execution_repo
        self._thread_repo = thread_repo
        self._credential_resolver = credential_resolver
        self._graph_executor = graph_executor
        self._run_timeout = run_timeout

    async def execute(
        self,
        workflow_id: str,
        input: Any = None,
        *,
        thread_id: str | None = None,
        user_id: str | None = None,
        cancel_event: asyncio.Event | None = None,
        on_event: ExecutionEventCallback | None = None,
    ) -> RunContext:
        """
        Load, validate and run a stored workflow, then persist the result.

        Raises:
            WorkflowNotFoundError: If no workflow has this id.
            MalformedGraphError: If the stored definition is not a valid DAG.
        """
        definition = await self._workflow_repo.get_definition(workflow_id)
        if definition is None:
            raise WorkflowNotFoundError(workflow_id)

        validate_graph(definition)
        logger.info("Executing workflow %s for user %s", workflow_id, user_id or "anonymous")

        credentials = await self._credential_resolver.resolve(
            self._graph_executor.required_providers(definition), user_id
        )
        history = await self._thread_repo.history(thread_id) if thread_id else []

        context = await self._graph_executor.execute(
            definition,
            input,
            thread_id=thread_id,
            user_id=user_id,
            credentials=credentials,
            cancel_event=cancel_event,
            deadline=self._run_timeout,
            history=history,
            on_event=on_event,
        )

        await self._execution_repo.save(context)
        if context.thread_messages:
            await self._thread_repo.append(context.thread_id, context.thread_messages)
        return context

    def to_response(self, context: RunContext) -> ExecuteWorkflowResponse:
        """Response envelope for a finished run. Credentials are not part of it."""
        return ExecuteWorkflowResponse(
            success=context.status == RunStatus.SUCCEEDED,
            execution_id=context.run_id,
            thread_id=context.thread_id,
            status=context.status.value,
            node_results=[node_result_schema(r) for r in context.node_results.values()],
            started_at=context.started_at.isoformat(),
            completed_at=context.completed_at.isoformat() if context.completed_at else None,
            error=run_error_schema(context.error),
        )

    async def list_executions(
        self,
        user_id: str,
        workflow_id: str | None = None,
    ) -> list[ExecutionListItem]:
        """List the user's execution history."""
        executions = await self._execution_repo.list(workflow_id=workflow_id, user_id=user_id)
        return [
            ExecutionListItem(
                id=e.id,
                workflow_id=e.workflow_id,
                thread_id=e.thread_id,
                status=e.status.value,
                started_at=e.started_at.isoformat(),
                completed_at=e.completed_at.isoformat() if e.completed_at else None,
                failed_nodes=sum(1 for r in e.node_results if r.error),
            )
            for e in executions
        ]

    async def get_execution(self, execution_id: str, user_id: str) -> ExecutionDetailResponse:
        """Get execution details."""
        execution = await self._get_owned(execution_id, user_id)
        return ExecutionDetailResponse(
            id=execution.id,
            workflow_id=execution.workflow_id,
            thread_id=execution.thread_id,
            user_id=execution.user_id,
            status=execution.status.value,
            started_at=execution.started_at.isoformat(),
            completed_at=execution.completed_at.isoformat() if execution.completed_at else None,
            node_results=[node_result_schema(r) for r in execution.node_results],
            error=run_error_schema(execution.error),
        )

    async def delete_execution(self, execution_id: str, user_id: str) -> None:
        """Delete an execution record."""
        await self._get_owned(execution_id, user_id)
        await self._execution_repo.delete(execution_id)

    async def _get_owned(self, execution_id: str, user_id: str) -> ExecutionRecord:
        execution = await self._execution_repo.get(execution_id)
        # Other users' runs are reported as missing
        if not execution or execution.user_id != user_id:
            raise ExecutionNotFoundError(execution_id)
        return execution
