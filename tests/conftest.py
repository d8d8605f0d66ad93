"""Shared fixtures for the triflow test suite."""

from __future__ import annotations

import inspect
from typing import Any

import pytest

from triflow.engine.graph import definition_from_dict
from triflow.engine.graph_executor import GraphExecutor
from triflow.engine.inference import CompletionConfig
from triflow.engine.node_executor import NodeExecutor
from triflow.engine.node_registry import register_all_nodes
from triflow.engine.tools import ToolRegistry
from triflow.engine.types import WorkflowDefinition


class FakeGateway:
    """Inference gateway double that records every call.

    ``reply`` may be a string, an exception to raise, or a (sync or async)
    callable taking ``(messages, config)``.
    """

    def __init__(self, reply: Any = "ok") -> None:
        self.reply = reply
        self.calls: list[tuple[list[dict[str, str]], CompletionConfig]] = []

    async def complete(self, messages: list[dict[str, str]], config: CompletionConfig) -> str:
        self.calls.append((messages, config))
        if isinstance(self.reply, BaseException):
            raise self.reply
        if callable(self.reply):
            result = self.reply(messages, config)
            if inspect.isawaitable(result):
                result = await result
            return result
        return self.reply


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def tools() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def node_executor(gateway, tools) -> NodeExecutor:
    return NodeExecutor(gateway, tools, registry=register_all_nodes(), default_timeout=5.0)


@pytest.fixture
def graph_executor(node_executor) -> GraphExecutor:
    return GraphExecutor(node_executor, max_concurrency=4)


@pytest.fixture
def make_definition():
    def _make(*nodes: dict[str, Any], workflow_id: str = "wf-test") -> WorkflowDefinition:
        return definition_from_dict({"name": "test", "nodes": list(nodes)}, workflow_id=workflow_id)

    return _make


@pytest.fixture
async def session_factory(tmp_path):
    """Session factory over a throwaway SQLite database."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from triflow.db import create_session_factory, init_db

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'triflow.db'}")
    await init_db(engine)
    yield create_session_factory(engine)
    await engine.dispose()
