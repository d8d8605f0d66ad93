"""Tests for the SQL repositories."""

from datetime import datetime, timedelta

import pytest

from triflow.core.exceptions import ErrorKind
from triflow.engine.graph import definition_from_dict
from triflow.engine.types import (
    NodeError,
    NodeResult,
    NodeStatus,
    RunContext,
    RunError,
    RunStatus,
    SkipReason,
)
from triflow.repositories import (
    CredentialRepository,
    ExecutionRepository,
    ThreadRepository,
    WorkflowRepository,
)

DEFINITION = {
    "name": "Summarize",
    "description": "Fetch then summarize",
    "settings": {"owner": "docs"},
    "nodes": [
        {"id": "fetch", "type": "tool-call", "config": {"tool": "http_request"}},
        {
            "id": "check",
            "type": "condition",
            "config": {"expression": "fetch.status_code == 200"},
            "inputs": ["fetch"],
        },
        {
            "id": "summary",
            "type": "llm-call",
            "config": {"provider": "groq", "prompt": "{{ fetch.body }}"},
            "inputs": [{"source": "check", "branch": "true"}],
            "retry_on_fail": 2,
        },
    ],
}


def finished_run(run_id="run-1", user_id="user-1", started_at=None):
    started = started_at or datetime.now()
    return RunContext(
        run_id=run_id,
        workflow_id="wf-1",
        thread_id="thread-1",
        user_id=user_id,
        started_at=started,
        status=RunStatus.PARTIALLY_FAILED,
        node_results={
            "fetch": NodeResult("fetch", NodeStatus.SUCCEEDED, output={"body": "x"}, duration=0.5, attempts=1),
            "summary": NodeResult(
                "summary",
                NodeStatus.FAILED,
                error=NodeError(ErrorKind.PROVIDER_ERROR, "down", {"provider": "groq"}),
                attempts=3,
            ),
            "report": NodeResult("report", NodeStatus.SKIPPED, skip_reason=SkipReason.UPSTREAM_FAILED),
        },
        credentials={"groq": "gsk-secret"},
        completed_at=started + timedelta(seconds=1),
    )


class TestWorkflowRepository:
    async def test_create_and_get(self, session_factory):
        async with session_factory() as session:
            repo = WorkflowRepository(session)
            created = await repo.create(definition_from_dict(DEFINITION))

            assert created.id.startswith("wf_")
            loaded = await repo.get(created.id)

        assert loaded.name == "Summarize"
        definition = loaded.definition
        assert definition.id == created.id
        assert definition.description == "Fetch then summarize"
        assert definition.settings == {"owner": "docs"}
        assert [n.id for n in definition.nodes] == ["fetch", "check", "summary"]
        summary = definition.nodes[2]
        assert summary.inputs[0].branch == "true"
        assert summary.retry_on_fail == 2

    async def test_explicit_id(self, session_factory):
        async with session_factory() as session:
            repo = WorkflowRepository(session)
            await repo.create(definition_from_dict(DEFINITION), workflow_id="summarize")

            assert (await repo.get_definition("summarize")).name == "Summarize"
            assert await repo.get_definition("missing") is None

    async def test_update_keeps_settings_when_omitted(self, session_factory):
        async with session_factory() as session:
            repo = WorkflowRepository(session)
            await repo.create(definition_from_dict(DEFINITION), workflow_id="wf")

            changed = definition_from_dict(
                {"name": "Renamed", "nodes": DEFINITION["nodes"][:1]}, workflow_id="wf"
            )
            updated = await repo.update("wf", changed)

        assert updated.name == "Renamed"
        assert len(updated.definition.nodes) == 1
        assert updated.definition.settings == {"owner": "docs"}

    async def test_update_and_delete_missing(self, session_factory):
        async with session_factory() as session:
            repo = WorkflowRepository(session)

            assert await repo.update("nope", definition_from_dict(DEFINITION)) is None
            assert await repo.delete("nope") is False

    async def test_list_and_delete(self, session_factory):
        async with session_factory() as session:
            repo = WorkflowRepository(session)
            await repo.create(definition_from_dict(DEFINITION), workflow_id="a")
            await repo.create(definition_from_dict(DEFINITION), workflow_id="b")

            assert {w.id for w in await repo.list()} == {"a", "b"}
            assert await repo.delete("a") is True
            assert [w.id for w in await repo.list()] == ["b"]


class TestExecutionRepository:
    async def test_round_trip(self, session_factory):
        async with session_factory() as session:
            repo = ExecutionRepository(session)
            context = finished_run()
            context.error = RunError(ErrorKind.CANCELLED, "Run cancelled")
            await repo.save(context)

            record = await repo.get("run-1")

        assert record.status == RunStatus.PARTIALLY_FAILED
        assert record.user_id == "user-1"
        assert record.error.kind == ErrorKind.CANCELLED
        results = {r.node_id: r for r in record.node_results}
        assert results["fetch"].output == {"body": "x"}
        assert results["summary"].error.details == {"provider": "groq"}
        assert results["summary"].attempts == 3
        assert results["report"].skip_reason == SkipReason.UPSTREAM_FAILED
        assert not hasattr(record, "credentials")

    async def test_unfinished_run_is_rejected(self, session_factory):
        context = finished_run()
        context.completed_at = None

        async with session_factory() as session:
            with pytest.raises(ValueError):
                await ExecutionRepository(session).save(context)

    async def test_list_filters_by_user(self, session_factory):
        async with session_factory() as session:
            repo = ExecutionRepository(session)
            await repo.save(finished_run("run-1", user_id="alice"))
            await repo.save(finished_run("run-2", user_id="bob"))

            assert [r.id for r in await repo.list(user_id="alice")] == ["run-1"]
            assert await repo.list(workflow_id="other") == []

    async def test_old_records_are_pruned(self, session_factory):
        base = datetime(2026, 1, 1)
        async with session_factory() as session:
            repo = ExecutionRepository(session, max_records=2)
            for i in range(3):
                await repo.save(finished_run(f"run-{i}", started_at=base + timedelta(minutes=i)))

            assert [r.id for r in await repo.list()] == ["run-2", "run-1"]


class TestCredentialRepository:
    async def test_set_replace_and_delete(self, session_factory):
        async with session_factory() as session:
            repo = CredentialRepository(session)
            await repo.set("openai", "alice", "sk-1")
            await repo.set("openai", "alice", "sk-2")
            await repo.set("groq", "alice", "gsk")

            assert await repo.get("openai", "alice") == "sk-2"
            assert await repo.get("openai", "bob") is None
            assert await repo.list_providers("alice") == ["groq", "openai"]

            assert await repo.delete("openai", "alice") is True
            assert await repo.delete("openai", "alice") is False
            assert await repo.list_providers("alice") == ["groq"]


class TestThreadRepository:
    async def test_append_and_history(self, session_factory):
        async with session_factory() as session:
            repo = ThreadRepository(session)
            count = await repo.append(
                "t1",
                [
                    {"role": "user", "content": "Hi"},
                    {"role": "assistant", "content": "Hello"},
                    {"role": "user", "content": "Bye"},
                ],
            )

            assert count == 3
            assert [m["content"] for m in await repo.history("t1")] == ["Hi", "Hello", "Bye"]
            assert await repo.history("t1", limit=1) == [{"role": "user", "content": "Bye"}]
            assert await repo.history("t2") == []
            assert await repo.append("t2", []) == 0
