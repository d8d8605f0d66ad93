"""Server-Sent Events (SSE) route for real-time execution streaming."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Annotated, Any, AsyncGenerator

from fastapi import APIRouter, Depends
from sse_starlette.sse import EventSourceResponse

from ..core.dependencies import (
    build_execution_service,
    get_current_user,
    get_graph_executor,
    get_session_factory,
)
from ..core.exceptions import WorkflowEngineError
from ..engine.types import ExecutionEvent
from ..schemas.execution import ExecuteWorkflowRequest
from ..services.execution_service import node_result_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows")

# Runs that outlive a disconnected client until they observe cancellation
_background_runs: set[asyncio.Task] = set()


def _event_to_dict(event: ExecutionEvent) -> dict[str, Any]:
    """Convert ExecutionEvent to dict for SSE."""
    result: dict[str, Any] = {
        "type": event.type.value,
        "runId": event.run_id,
        "timestamp": event.timestamp.isoformat(),
    }

    if event.node_id:
        result["nodeId"] = event.node_id
    if event.node_type:
        result["nodeType"] = event.node_type
    if event.result:
        result["result"] = node_result_schema(event.result).model_dump(by_alias=True)
    if event.status:
        result["status"] = event.status.value
    if event.progress:
        result["progress"] = event.progress

    return result


@router.post("/{workflow_id}/execute/stream")
async def execute_workflow_stream(
    workflow_id: str,
    user_id: Annotated[str, Depends(get_current_user)],
    session_factory=Depends(get_session_factory),
    graph_executor=Depends(get_graph_executor),
    body: ExecuteWorkflowRequest | None = None,
) -> EventSourceResponse:
    """Execute a stored workflow and stream its events. Disconnecting cancels the run."""
    body = body or ExecuteWorkflowRequest()
    queue: asyncio.Queue[dict[str, str] | None] = asyncio.Queue()
    cancel_event = asyncio.Event()

    def on_event(event: ExecutionEvent) -> None:
        queue.put_nowait({"event": event.type.value, "data": json.dumps(_event_to_dict(event), default=str)})

    async def run() -> None:
        try:
            async with session_factory() as session:
                service = build_execution_service(session, graph_executor)
                context = await service.execute(
                    workflow_id,
                    body.input,
                    thread_id=body.thread_id,
                    user_id=user_id,
                    cancel_event=cancel_event,
                    on_event=on_event,
                )
                response = service.to_response(context)
                queue.put_nowait({"event": "result", "data": response.model_dump_json(by_alias=True)})
        except WorkflowEngineError as e:
            queue.put_nowait(
                {"event": "error", "data": json.dumps({"error": e.message, "kind": e.kind.value})}
            )
        except Exception as e:
            logger.exception("Streamed execution of workflow %s failed", workflow_id)
            queue.put_nowait(
                {"event": "error", "data": json.dumps({"error": "Workflow execution failed", "message": str(e)})}
            )
        finally:
            queue.put_nowait(None)

    async def event_generator() -> AsyncGenerator[dict[str, str], None]:
        task = asyncio.create_task(run())
        _background_runs.add(task)
        task.add_done_callback(_background_runs.discard)
        try:
            while True:
                item = await queue.get()
                if item is None:
                    break
                yield item
        finally:
            if not task.done():
                logger.info("Client disconnected, cancelling run of workflow %s", workflow_id)
                cancel_event.set()

    return EventSourceResponse(event_generator())
