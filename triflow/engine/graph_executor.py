"""
Graph executor - drives a workflow definition to a terminal RunContext.

Nodes are decided in topological order once every upstream node is terminal.
Runnable nodes run as asyncio tasks bounded by a semaphore; the executor is the
only writer of RunContext, recording results in completion order.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Iterable, TYPE_CHECKING

from ..core.exceptions import ErrorKind, MalformedGraphError
from .graph import dependents_map, validate_graph
from .types import (
    ExecutionEvent,
    ExecutionEventCallback,
    ExecutionEventType,
    NodeError,
    NodeResult,
    NodeSpec,
    NodeStatus,
    RunContext,
    RunError,
    RunStatus,
    SkipReason,
    WorkflowDefinition,
)

if TYPE_CHECKING:
    from .node_executor import NodeExecutor

logger = logging.getLogger(__name__)

# Precedence when several unsatisfied edges explain a skip
_SKIP_PRECEDENCE = (SkipReason.UPSTREAM_FAILED, SkipReason.CANCELLED, SkipReason.INACTIVE_BRANCH)


class GraphExecutor:
    """Executes workflow graphs with bounded node concurrency."""

    def __init__(self, node_executor: NodeExecutor, max_concurrency: int = 8) -> None:
        self._node_executor = node_executor
        self._max_concurrency = max(1, max_concurrency)

    def required_providers(self, definition: WorkflowDefinition) -> set[str]:
        """Providers whose credentials should be resolved before a run."""
        return self._node_executor.required_providers(definition)

    async def execute(
        self,
        definition: WorkflowDefinition,
        input: Any = None,
        *,
        thread_id: str | None = None,
        user_id: str | None = None,
        credentials: dict[str, str] | None = None,
        cancel_event: asyncio.Event | None = None,
        deadline: float | None = None,
        history: Iterable[dict[str, str]] | None = None,
        on_event: ExecutionEventCallback | None = None,
    ) -> RunContext:
        """
        Run a workflow definition.

        Args:
            definition: The workflow to execute
            input: Run input, visible to nodes as ``input``
            thread_id: Conversation thread; generated when omitted
            user_id: Authenticated user, if any
            credentials: Resolved provider credentials for this run
            cancel_event: Set to stop scheduling new nodes
            deadline: Seconds from start after which the run is cancelled
            history: Earlier thread messages for llm-call nodes with use_thread
            on_event: Optional callback for real-time execution events

        Returns:
            Terminal RunContext. Never raises for node or graph faults.
        """
        context = RunContext(
            run_id=str(uuid.uuid4()),
            workflow_id=definition.id,
            thread_id=thread_id or str(uuid.uuid4()),
            user_id=user_id,
            started_at=datetime.now(),
            status=RunStatus.RUNNING,
            credentials=dict(credentials or {}),
        )
        total = len(definition.nodes)
        logger.info(
            "Run %s started for workflow %s (%d nodes)", context.run_id, definition.id, total
        )
        self._emit_event(
            on_event,
            ExecutionEvent(
                type=ExecutionEventType.RUN_START,
                run_id=context.run_id,
                timestamp=datetime.now(),
                status=context.status,
                progress={"completed": 0, "total": total},
            ),
        )

        try:
            order = validate_graph(definition)
        except MalformedGraphError as e:
            logger.warning("Run %s rejected: %s", context.run_id, e.message)
            context.error = RunError(kind=ErrorKind.MALFORMED_GRAPH, message=e.message)
            return self._finish(context, definition, RunStatus.FAILED, on_event)

        loop = asyncio.get_running_loop()
        cutoff = loop.time() + deadline if deadline is not None else None

        def is_cancelled() -> bool:
            if cancel_event is not None and cancel_event.is_set():
                return True
            return cutoff is not None and loop.time() >= cutoff

        node_map = {node.id: node for node in definition.nodes}
        base_history = list(history or [])
        semaphore = asyncio.Semaphore(self._max_concurrency)
        undecided = list(order)
        running: dict[asyncio.Task, str] = {}
        cancelled = False

        try:
            while True:
                cancelled = cancelled or is_cancelled()
                if not cancelled:
                    for node_id in list(undecided):
                        spec = node_map[node_id]
                        if not all(u in context.node_results for u in spec.upstream_ids):
                            continue
                        undecided.remove(node_id)

                        skip_reason = self._skip_reason(spec, context)
                        if skip_reason is not None:
                            self._record(context, self._skipped(node_id, skip_reason), total, on_event)
                            continue

                        upstream = {
                            u: context.node_results[u].output
                            for u in spec.upstream_ids
                            if context.node_results[u].succeeded
                        }
                        task = asyncio.create_task(
                            self._run_node(
                                spec,
                                upstream,
                                context,
                                input,
                                base_history + context.thread_messages,
                                semaphore,
                                is_cancelled,
                                on_event,
                            )
                        )
                        running[task] = node_id

                if not running:
                    break

                done = await self._wait(running, cancel_event, cutoff, cancelled, loop)
                for task in done:
                    node_id = running.pop(task)
                    self._record(context, self._task_result(task, node_id), total, on_event)
        finally:
            for task in running:
                task.cancel()

        if cancelled:
            for node_id in undecided:
                self._record(
                    context, self._skipped(node_id, SkipReason.CANCELLED), total, on_event
                )
            context.error = RunError(kind=ErrorKind.CANCELLED, message="Run cancelled")
            logger.warning("Run %s cancelled", context.run_id)
            return self._finish(context, definition, RunStatus.FAILED, on_event)

        return self._finish(context, definition, self._compute_status(context, definition), on_event)

    async def _run_node(
        self,
        spec: NodeSpec,
        upstream: dict[str, Any],
        context: RunContext,
        run_input: Any,
        history: list[dict[str, str]],
        semaphore: asyncio.Semaphore,
        is_cancelled: Callable[[], bool],
        on_event: ExecutionEventCallback | None,
    ) -> NodeResult | None:
        async with semaphore:
            # Cancelled while queued for a slot: the node never starts
            if is_cancelled():
                return None
            self._emit_event(
                on_event,
                ExecutionEvent(
                    type=ExecutionEventType.NODE_START,
                    run_id=context.run_id,
                    timestamp=datetime.now(),
                    node_id=spec.id,
                    node_type=spec.type.value,
                ),
            )
            return await self._node_executor.run(
                spec,
                upstream,
                context.credentials,
                run_input=run_input,
                history=history,
            )

    async def _wait(
        self,
        running: dict[asyncio.Task, str],
        cancel_event: asyncio.Event | None,
        cutoff: float | None,
        cancelled: bool,
        loop: asyncio.AbstractEventLoop,
    ) -> set[asyncio.Task]:
        """Wait for at least one node task, or for the run to be cancelled."""
        waiters: set[asyncio.Future] = set(running)
        cancel_waiter = None
        timeout = None
        if not cancelled:
            if cancel_event is not None:
                cancel_waiter = asyncio.ensure_future(cancel_event.wait())
                waiters.add(cancel_waiter)
            if cutoff is not None:
                timeout = max(0.0, cutoff - loop.time())

        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        if cancel_waiter is not None and not cancel_waiter.done():
            cancel_waiter.cancel()
        return {task for task in done if task in running}

    def _task_result(self, task: asyncio.Task, node_id: str) -> NodeResult:
        try:
            result = task.result()
        except Exception as e:
            logger.exception("Node task %s raised", node_id)
            return NodeResult(
                node_id=node_id,
                status=NodeStatus.FAILED,
                error=NodeError(kind=ErrorKind.INTERNAL, message=str(e) or type(e).__name__),
                attempts=1,
            )
        if result is None:
            return self._skipped(node_id, SkipReason.CANCELLED)
        return result

    def _skip_reason(self, spec: NodeSpec, context: RunContext) -> SkipReason | None:
        """Decide whether a node whose upstreams are terminal should be skipped."""
        if not spec.inputs:
            return None

        unsatisfied: list[SkipReason] = []
        for edge in spec.inputs:
            source = context.node_results[edge.source]
            if source.status == NodeStatus.SUCCEEDED:
                if edge.branch is None or self._active_branch(source) == edge.branch:
                    continue
                unsatisfied.append(SkipReason.INACTIVE_BRANCH)
            elif source.status == NodeStatus.FAILED:
                unsatisfied.append(SkipReason.UPSTREAM_FAILED)
            else:
                unsatisfied.append(source.skip_reason or SkipReason.UPSTREAM_FAILED)

        if spec.join == "any":
            runnable = len(unsatisfied) < len(spec.inputs)
        else:
            runnable = not unsatisfied
        if runnable:
            return None
        return next(reason for reason in _SKIP_PRECEDENCE if reason in unsatisfied)

    def _active_branch(self, result: NodeResult) -> str | None:
        if isinstance(result.output, dict):
            return result.output.get("active")
        return None

    def _compute_status(self, context: RunContext, definition: WorkflowDefinition) -> RunStatus:
        """
        succeeded: every reachable node succeeded.
        partially-failed: something failed but every reachable sink succeeded.
        failed: some reachable sink did not succeed.
        """
        results = context.node_results
        reachable = [
            r for r in results.values() if r.skip_reason != SkipReason.INACTIVE_BRANCH
        ]
        if all(r.succeeded for r in reachable):
            return RunStatus.SUCCEEDED

        dependents = dependents_map(definition)
        sinks = [results[node_id] for node_id, deps in dependents.items() if not deps]
        reachable_sinks = [r for r in sinks if r.skip_reason != SkipReason.INACTIVE_BRANCH]
        if all(r.succeeded for r in reachable_sinks):
            return RunStatus.PARTIALLY_FAILED
        return RunStatus.FAILED

    def _skipped(self, node_id: str, reason: SkipReason) -> NodeResult:
        return NodeResult(node_id=node_id, status=NodeStatus.SKIPPED, skip_reason=reason)

    def _record(
        self,
        context: RunContext,
        result: NodeResult,
        total: int,
        on_event: ExecutionEventCallback | None,
    ) -> None:
        context.node_results[result.node_id] = result
        if result.succeeded and result.messages:
            context.thread_messages.extend(result.messages)

        if result.status == NodeStatus.SUCCEEDED:
            event_type = ExecutionEventType.NODE_COMPLETE
        elif result.status == NodeStatus.FAILED:
            event_type = ExecutionEventType.NODE_ERROR
        else:
            event_type = ExecutionEventType.NODE_SKIPPED
            logger.debug("Node %s skipped (%s)", result.node_id, result.skip_reason.value)

        self._emit_event(
            on_event,
            ExecutionEvent(
                type=event_type,
                run_id=context.run_id,
                timestamp=datetime.now(),
                node_id=result.node_id,
                result=result,
                progress={"completed": len(context.node_results), "total": total},
            ),
        )

    def _finish(
        self,
        context: RunContext,
        definition: WorkflowDefinition,
        status: RunStatus,
        on_event: ExecutionEventCallback | None,
    ) -> RunContext:
        context.status = status
        context.completed_at = datetime.now()
        logger.info("Run %s finished with status %s", context.run_id, status.value)
        self._emit_event(
            on_event,
            ExecutionEvent(
                type=ExecutionEventType.RUN_COMPLETE,
                run_id=context.run_id,
                timestamp=context.completed_at,
                status=status,
                progress={"completed": len(context.node_results), "total": len(definition.nodes)},
            ),
        )
        return context

    def _emit_event(
        self,
        on_event: ExecutionEventCallback | None,
        event: ExecutionEvent,
    ) -> None:
        """Emit an execution event if a callback is registered."""
        if on_event:
            try:
                on_event(event)
            except Exception:
                logger.exception("Error in execution event callback")
