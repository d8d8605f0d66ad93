"""Tests for the graph executor: ordering, skip propagation, status and cancellation."""

import asyncio

import pytest

from triflow.core.exceptions import ErrorKind, ProviderError
from triflow.engine.graph_executor import GraphExecutor
from triflow.engine.types import ExecutionEventType, NodeStatus, RunStatus, SkipReason

CREDENTIALS = {"anthropic": "sk-ant-test"}


def llm(node_id, prompt, inputs=(), **extra):
    return {
        "id": node_id,
        "type": "llm-call",
        "config": {"provider": "anthropic", "prompt": prompt},
        "inputs": list(inputs),
        **extra,
    }


def transform(node_id, template, inputs=(), **extra):
    return {
        "id": node_id,
        "type": "transform",
        "config": {"template": template},
        "inputs": list(inputs),
        **extra,
    }


class TestSuccessfulRuns:
    async def test_three_node_pipeline(self, graph_executor, gateway, make_definition):
        gateway.reply = lambda messages, config: f"summary of {messages[-1]['content']}"
        definition = make_definition(
            transform("fetch", "{{ input.text }}"),
            llm("summarize", "{{ fetch }}", inputs=["fetch"]),
            transform("report", {"summary": "{{ summarize }}", "length": "{{ input.length }}"}, inputs=["summarize"]),
        )

        context = await graph_executor.execute(
            definition, {"text": "hello", "length": 3}, credentials=CREDENTIALS
        )

        assert context.status == RunStatus.SUCCEEDED
        assert context.error is None
        assert list(context.node_results) == ["fetch", "summarize", "report"]
        assert context.node_results["report"].output == {"summary": "summary of hello", "length": 3}
        assert len(gateway.calls) == 1
        assert gateway.calls[0][1].api_key == "sk-ant-test"
        assert context.completed_at is not None
        assert context.completed_at >= context.started_at

    async def test_thread_id_is_generated_or_kept(self, graph_executor, make_definition):
        definition = make_definition(transform("a", "x"))

        generated = await graph_executor.execute(definition)
        kept = await graph_executor.execute(definition, thread_id="thread-1")

        assert generated.thread_id
        assert kept.thread_id == "thread-1"
        assert generated.run_id != kept.run_id

    async def test_empty_workflow_succeeds(self, graph_executor, make_definition):
        context = await graph_executor.execute(make_definition())
        assert context.status == RunStatus.SUCCEEDED
        assert context.node_results == {}

    async def test_credentials_are_not_in_repr(self, graph_executor, make_definition):
        context = await graph_executor.execute(
            make_definition(transform("a", "x")), credentials=CREDENTIALS
        )
        assert "sk-ant-test" not in repr(context)


class TestOrdering:
    async def test_upstream_finishes_before_dependent_starts(self, graph_executor, gateway, make_definition):
        log = []

        async def reply(messages, config):
            content = messages[-1]["content"]
            log.append(("start", content))
            await asyncio.sleep(0.01)
            log.append(("end", content))
            return f"out:{content}"

        gateway.reply = reply
        definition = make_definition(
            llm("a", "A"),
            llm("b", "B after {{ a }}", inputs=["a"]),
            llm("c", "C after {{ b }}", inputs=["b"]),
        )

        context = await graph_executor.execute(definition, credentials=CREDENTIALS)

        assert context.status == RunStatus.SUCCEEDED
        assert log.index(("end", "A")) < log.index(("start", "B after out:A"))
        assert log.index(("end", "B after out:A")) < log.index(("start", "C after out:B after out:A"))

    async def test_independent_nodes_run_concurrently(self, graph_executor, gateway, make_definition):
        log = []

        async def reply(messages, config):
            content = messages[-1]["content"]
            log.append(("start", content))
            await asyncio.sleep(0.05)
            log.append(("end", content))
            return content

        gateway.reply = reply
        definition = make_definition(llm("a", "A"), llm("b", "B"))

        await graph_executor.execute(definition, credentials=CREDENTIALS)

        assert [kind for kind, _ in log[:2]] == ["start", "start"]

    async def test_max_concurrency_bounds_parallel_nodes(self, node_executor, gateway, make_definition):
        log = []

        async def reply(messages, config):
            log.append("start")
            await asyncio.sleep(0.01)
            log.append("end")
            return "ok"

        gateway.reply = reply
        executor = GraphExecutor(node_executor, max_concurrency=1)
        definition = make_definition(llm("a", "A"), llm("b", "B"), llm("c", "C"))

        context = await executor.execute(definition, credentials=CREDENTIALS)

        assert context.status == RunStatus.SUCCEEDED
        assert log == ["start", "end"] * 3


class TestFailures:
    async def test_missing_credential_skips_gateway_and_dependents(self, graph_executor, gateway, make_definition):
        definition = make_definition(
            llm("summarize", "hi"),
            transform("report", "{{ summarize }}", inputs=["summarize"]),
        )

        context = await graph_executor.execute(definition, credentials={})

        failed = context.node_results["summarize"]
        assert failed.status == NodeStatus.FAILED
        assert failed.error.kind == ErrorKind.MISSING_CREDENTIAL
        assert gateway.calls == []
        assert context.node_results["report"].status == NodeStatus.SKIPPED
        assert context.node_results["report"].skip_reason == SkipReason.UPSTREAM_FAILED
        assert context.status == RunStatus.FAILED

    async def test_provider_error_is_recorded(self, graph_executor, gateway, make_definition):
        gateway.reply = ProviderError("rate limited", provider="anthropic", status_code=429)
        definition = make_definition(llm("a", "hi"))

        context = await graph_executor.execute(definition, credentials=CREDENTIALS)

        result = context.node_results["a"]
        assert result.error.kind == ErrorKind.PROVIDER_ERROR
        assert result.error.details["status_code"] == 429
        assert context.status == RunStatus.FAILED

    async def test_skip_propagates_transitively(self, graph_executor, make_definition):
        definition = make_definition(
            transform("a", "{{ missing.field }}"),
            transform("b", "{{ a }}", inputs=["a"]),
            transform("c", "{{ b }}", inputs=["b"]),
            transform("d", "independent"),
        )

        context = await graph_executor.execute(definition)

        assert context.node_results["a"].error.kind == ErrorKind.UNRESOLVED_REFERENCE
        for node_id in ("b", "c"):
            assert context.node_results[node_id].status == NodeStatus.SKIPPED
            assert context.node_results[node_id].skip_reason == SkipReason.UPSTREAM_FAILED
        assert context.node_results["d"].succeeded
        assert context.status == RunStatus.FAILED

    async def test_join_all_over_failed_and_succeeded_inputs_is_skipped(self, graph_executor, make_definition):
        definition = make_definition(
            transform("a", "{{ missing }}"),
            transform("d", "fine"),
            transform("c", "{{ d }}", inputs=["a", "d"]),
        )

        context = await graph_executor.execute(definition)

        assert context.node_results["a"].status == NodeStatus.FAILED
        assert context.node_results["d"].succeeded
        assert context.node_results["c"].status == NodeStatus.SKIPPED
        assert context.node_results["c"].skip_reason == SkipReason.UPSTREAM_FAILED
        assert context.status == RunStatus.FAILED

    async def test_unexpected_exception_becomes_internal_error(self, graph_executor, gateway, make_definition):
        gateway.reply = RuntimeError("kaboom")
        definition = make_definition(llm("a", "hi"), transform("b", "independent"))

        context = await graph_executor.execute(definition, credentials=CREDENTIALS)

        assert context.node_results["a"].error.kind == ErrorKind.INTERNAL
        assert context.node_results["a"].error.message == "kaboom"
        assert context.node_results["b"].succeeded

    async def test_node_timeout(self, graph_executor, gateway, make_definition):
        async def slow(messages, config):
            await asyncio.sleep(1)
            return "late"

        gateway.reply = slow
        definition = make_definition(llm("a", "hi", timeout=0.05))

        context = await graph_executor.execute(definition, credentials=CREDENTIALS)

        assert context.node_results["a"].error.kind == ErrorKind.TIMEOUT
        assert context.status == RunStatus.FAILED


class TestFetchThenSummarize:
    def _definition(self, tools, make_definition, fetched):
        async def fetch_page(arguments, credentials):
            fetched.append(arguments["url"])
            return "raw text"

        tools.register("fetch_page", fetch_page)
        return make_definition(
            {
                "id": "fetch",
                "type": "tool-call",
                "config": {"tool": "fetch_page", "arguments": {"url": "{{ input.url }}"}},
            },
            llm("summarize", "Summarize: {{ fetch }}", inputs=["fetch"]),
        )

    async def test_summary_sees_fetched_text(self, graph_executor, gateway, tools, make_definition):
        fetched = []
        gateway.reply = "short summary"

        context = await graph_executor.execute(
            self._definition(tools, make_definition, fetched),
            {"url": "https://example.com"},
            credentials=CREDENTIALS,
        )

        assert fetched == ["https://example.com"]
        assert context.node_results["fetch"].output == "raw text"
        assert "raw text" in gateway.calls[0][0][-1]["content"]
        assert list(context.node_results) == ["fetch", "summarize"]
        assert context.node_results["summarize"].output == "short summary"
        assert context.status == RunStatus.SUCCEEDED

    async def test_summary_provider_error(self, graph_executor, gateway, tools, make_definition):
        gateway.reply = ProviderError("overloaded", provider="anthropic", status_code=529)

        context = await graph_executor.execute(
            self._definition(tools, make_definition, []),
            {"url": "https://example.com"},
            credentials=CREDENTIALS,
        )

        assert context.node_results["fetch"].succeeded
        assert context.node_results["fetch"].output == "raw text"
        assert context.node_results["summarize"].error.kind == ErrorKind.PROVIDER_ERROR
        assert list(context.node_results) == ["fetch", "summarize"]
        assert context.status == RunStatus.FAILED

    async def test_cancel_between_fetch_and_summarize(self, graph_executor, gateway, tools, make_definition):
        cancel = asyncio.Event()

        def on_event(event):
            if event.type == ExecutionEventType.NODE_COMPLETE and event.node_id == "fetch":
                cancel.set()

        context = await graph_executor.execute(
            self._definition(tools, make_definition, []),
            {"url": "https://example.com"},
            credentials=CREDENTIALS,
            cancel_event=cancel,
            on_event=on_event,
        )

        assert context.node_results["fetch"].output == "raw text"
        assert context.node_results["summarize"].skip_reason == SkipReason.CANCELLED
        assert gateway.calls == []
        assert context.status == RunStatus.FAILED
        assert context.error.kind == ErrorKind.CANCELLED


class TestMalformedGraphs:
    @pytest.mark.parametrize(
        "nodes",
        [
            [transform("a", "x", inputs=["b"]), transform("b", "y", inputs=["a"])],
            [transform("a", "x", inputs=["ghost"])],
            [transform("a", "x"), transform("a", "y")],
            [transform("a", "x"), transform("b", "y", inputs=[{"source": "a", "branch": "true"}])],
            [{"id": "c", "type": "condition", "config": {"expression": "1 +"}}],
            [transform("a", "x", retry_on_fail=-1)],
        ],
        ids=["cycle", "dangling-edge", "duplicate-id", "branch-on-non-condition", "bad-expression",
             "negative-retries"],
    )
    async def test_rejected_before_any_node_runs(self, graph_executor, gateway, make_definition, nodes):
        context = await graph_executor.execute(make_definition(*nodes), credentials=CREDENTIALS)

        assert context.status == RunStatus.FAILED
        assert context.error.kind == ErrorKind.MALFORMED_GRAPH
        assert context.node_results == {}
        assert gateway.calls == []

    async def test_cycle_error_names_nodes(self, graph_executor, make_definition):
        definition = make_definition(
            transform("a", "x", inputs=["b"]),
            transform("b", "y", inputs=["a"]),
        )
        context = await graph_executor.execute(definition)
        assert "a, b" in context.error.message


class TestBranchesAndAlternatePaths:
    def _branching(self, make_definition):
        return make_definition(
            {"id": "check", "type": "condition", "config": {"expression": "input.score > 5"}},
            transform("high", "high", inputs=[{"source": "check", "branch": "true"}]),
            transform("low", "low", inputs=[{"source": "check", "branch": "false"}]),
            transform("after_low", "{{ low }}", inputs=["low"]),
        )

    async def test_inactive_branch_is_skipped_and_run_succeeds(self, graph_executor, make_definition):
        context = await graph_executor.execute(self._branching(make_definition), {"score": 10})

        assert context.node_results["check"].output == {"result": True, "active": "true"}
        assert context.node_results["high"].output == "high"
        for node_id in ("low", "after_low"):
            assert context.node_results[node_id].skip_reason == SkipReason.INACTIVE_BRANCH
        assert context.status == RunStatus.SUCCEEDED

    async def test_false_branch(self, graph_executor, make_definition):
        context = await graph_executor.execute(self._branching(make_definition), {"score": 1})

        assert context.node_results["high"].skip_reason == SkipReason.INACTIVE_BRANCH
        assert context.node_results["after_low"].output == "low"

    async def test_condition_on_missing_field_fails(self, graph_executor, make_definition):
        context = await graph_executor.execute(self._branching(make_definition), {"other": 1})

        assert context.node_results["check"].error.kind == ErrorKind.UNRESOLVED_REFERENCE
        assert context.node_results["high"].skip_reason == SkipReason.UPSTREAM_FAILED
        assert context.status == RunStatus.FAILED

    async def test_alternate_path_gives_partial_failure(self, graph_executor, make_definition):
        definition = make_definition(
            llm("primary", "hi"),
            transform("fallback", "canned answer"),
            transform("merge", "done", inputs=["primary", "fallback"], join="any"),
        )

        context = await graph_executor.execute(definition, credentials={})

        assert context.node_results["primary"].status == NodeStatus.FAILED
        assert context.node_results["merge"].succeeded
        assert context.status == RunStatus.PARTIALLY_FAILED

    async def test_join_any_with_no_satisfied_input_is_skipped(self, graph_executor, make_definition):
        definition = make_definition(
            transform("a", "{{ nope }}"),
            transform("b", "{{ nope }}"),
            transform("merge", "done", inputs=["a", "b"], join="any"),
        )

        context = await graph_executor.execute(definition)

        assert context.node_results["merge"].skip_reason == SkipReason.UPSTREAM_FAILED
        assert context.status == RunStatus.FAILED


class TestCancellation:
    async def test_cancel_before_start_skips_everything(self, graph_executor, gateway, make_definition):
        cancel = asyncio.Event()
        cancel.set()
        definition = make_definition(llm("a", "hi"), transform("b", "{{ a }}", inputs=["a"]))

        context = await graph_executor.execute(definition, credentials=CREDENTIALS, cancel_event=cancel)

        assert gateway.calls == []
        assert all(r.skip_reason == SkipReason.CANCELLED for r in context.node_results.values())
        assert context.status == RunStatus.FAILED
        assert context.error.kind == ErrorKind.CANCELLED

    async def test_in_flight_node_completes_after_cancel(self, graph_executor, gateway, make_definition):
        cancel = asyncio.Event()

        async def reply(messages, config):
            cancel.set()
            await asyncio.sleep(0.01)
            return "finished"

        gateway.reply = reply
        definition = make_definition(llm("a", "hi"), transform("b", "{{ a }}", inputs=["a"]))

        context = await graph_executor.execute(definition, credentials=CREDENTIALS, cancel_event=cancel)

        assert context.node_results["a"].output == "finished"
        assert context.node_results["b"].skip_reason == SkipReason.CANCELLED
        assert context.error.kind == ErrorKind.CANCELLED

    async def test_deadline_cancels_remaining_nodes(self, graph_executor, gateway, make_definition):
        async def slow(messages, config):
            await asyncio.sleep(0.2)
            return "slow"

        gateway.reply = slow
        definition = make_definition(llm("a", "hi"), transform("b", "{{ a }}", inputs=["a"]))

        context = await graph_executor.execute(definition, credentials=CREDENTIALS, deadline=0.05)

        assert context.node_results["a"].succeeded
        assert context.node_results["b"].skip_reason == SkipReason.CANCELLED
        assert context.status == RunStatus.FAILED
        assert context.error.kind == ErrorKind.CANCELLED


class TestThreadsAndEvents:
    async def test_thread_history_and_new_turns(self, graph_executor, gateway, make_definition):
        gateway.reply = "hello again"
        history = [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]
        node = llm("chat", "{{ input }}")
        node["config"]["use_thread"] = True

        context = await graph_executor.execute(
            make_definition(node), "how are you?", credentials=CREDENTIALS, history=history
        )

        sent = gateway.calls[0][0]
        assert sent[:2] == history
        assert sent[-1] == {"role": "user", "content": "how are you?"}
        assert context.thread_messages == [
            {"role": "user", "content": "how are you?"},
            {"role": "assistant", "content": "hello again"},
        ]

    async def test_events_are_emitted_in_order(self, graph_executor, make_definition):
        events = []
        definition = make_definition(
            transform("a", "{{ nope }}"),
            transform("b", "{{ a }}", inputs=["a"]),
            transform("c", "fine"),
        )

        await graph_executor.execute(definition, on_event=events.append)

        types = [e.type for e in events]
        assert types[0] == ExecutionEventType.RUN_START
        assert types[-1] == ExecutionEventType.RUN_COMPLETE
        assert events[-1].status == RunStatus.FAILED
        assert ExecutionEventType.NODE_ERROR in types
        assert ExecutionEventType.NODE_SKIPPED in types
        assert ExecutionEventType.NODE_COMPLETE in types

    async def test_failing_event_callback_does_not_break_run(self, graph_executor, make_definition):
        def on_event(event):
            raise ValueError("listener bug")

        context = await graph_executor.execute(make_definition(transform("a", "x")), on_event=on_event)

        assert context.status == RunStatus.SUCCEEDED
