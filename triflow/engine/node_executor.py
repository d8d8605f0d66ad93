"""
Node executor - runs a single node and converts every failure into a result.

Dispatch is by NodeType through the node registry. Each invocation gets
read-only snapshots of its upstream outputs and of the credential set.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import time
from types import MappingProxyType
from typing import Any, Iterable, Mapping, TYPE_CHECKING

from ..core.exceptions import ErrorKind, NodeTimeoutError, WorkflowEngineError
from .node_registry import NodeRegistryClass, register_all_nodes
from .types import NodeError, NodeResult, NodeSpec, NodeStatus, WorkflowDefinition

if TYPE_CHECKING:
    from .inference import InferenceGateway
    from .tools import ToolRegistry

logger = logging.getLogger(__name__)

RETRYABLE_KINDS = frozenset({ErrorKind.PROVIDER_ERROR, ErrorKind.TIMEOUT})


class NodeExecutor:
    """Executes one node at a time; holds no run state."""

    def __init__(
        self,
        gateway: InferenceGateway,
        tools: ToolRegistry,
        registry: NodeRegistryClass | None = None,
        default_timeout: float = 60.0,
    ) -> None:
        self._gateway = gateway
        self._tools = tools
        self._registry = registry or register_all_nodes()
        self._default_timeout = default_timeout

    def required_providers(self, definition: WorkflowDefinition) -> set[str]:
        """Providers whose credentials the workflow's nodes may need."""
        providers: set[str] = set()
        for spec in definition.nodes:
            node = self._registry.get(spec.type)
            providers |= node.credential_providers(spec, self._tools)
        return providers

    async def run(
        self,
        spec: NodeSpec,
        upstream_outputs: Mapping[str, Any],
        credentials: Mapping[str, str],
        *,
        run_input: Any = None,
        history: Iterable[dict[str, str]] = (),
    ) -> NodeResult:
        """
        Execute a node with timeout and retries.

        Returns a succeeded or failed NodeResult; never raises for node
        faults. Cancellation of the surrounding task still propagates.
        """
        from ..nodes.base import NodeInvocation

        node = self._registry.get(spec.type)
        invocation = NodeInvocation(
            spec=spec,
            upstream=MappingProxyType(copy.deepcopy(dict(upstream_outputs))),
            credentials=MappingProxyType(dict(credentials)),
            gateway=self._gateway,
            tools=self._tools,
            run_input=copy.deepcopy(run_input),
            history=tuple(history),
        )
        timeout = spec.timeout if spec.timeout is not None else self._default_timeout
        max_retries = max(0, spec.retry_on_fail)

        start = time.perf_counter()
        error: NodeError | None = None
        attempts = 0

        for attempt in range(max_retries + 1):
            attempts = attempt + 1
            try:
                outcome = await self._invoke(node.execute(invocation), timeout)
            except WorkflowEngineError as e:
                error = NodeError(kind=e.kind, message=e.message, details=dict(e.details))
                if e.kind in RETRYABLE_KINDS and attempt < max_retries:
                    logger.info(
                        "Node %s failed with %s, retrying (%d/%d)",
                        spec.id, e.kind.value, attempt + 1, max_retries,
                    )
                    await asyncio.sleep(spec.retry_delay / 1000)
                    continue
                break
            except Exception as e:
                logger.exception("Unexpected error in node %s", spec.id)
                error = NodeError(
                    kind=ErrorKind.INTERNAL,
                    message=str(e) or type(e).__name__,
                    details={"exception": type(e).__name__},
                )
                break
            else:
                return NodeResult(
                    node_id=spec.id,
                    status=NodeStatus.SUCCEEDED,
                    output=outcome.output,
                    duration=time.perf_counter() - start,
                    attempts=attempts,
                    messages=list(outcome.messages),
                )

        logger.warning(
            "Node %s failed after %d attempt(s): [%s] %s",
            spec.id, attempts, error.kind.value, error.message,
        )
        return NodeResult(
            node_id=spec.id,
            status=NodeStatus.FAILED,
            error=error,
            duration=time.perf_counter() - start,
            attempts=attempts,
        )

    async def _invoke(self, coro: Any, timeout: float) -> Any:
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise NodeTimeoutError(f"Node exceeded {timeout}s", timeout=timeout) from e
