"""Tests for single-node execution: dispatch, retries, isolation."""

import pytest

from triflow.core.exceptions import ErrorKind, ProviderError
from triflow.engine.types import InputEdge, NodeSpec, NodeStatus, NodeType

CREDENTIALS = {"openai": "sk-test"}


def llm_spec(**extra):
    return NodeSpec(
        id="ask",
        type=NodeType.LLM_CALL,
        config={"provider": "openai", "prompt": "hi"},
        **extra,
    )


class TestRetries:
    async def test_provider_error_is_retried(self, node_executor, gateway):
        attempts = []

        def reply(messages, config):
            attempts.append(config)
            if len(attempts) == 1:
                raise ProviderError("temporarily unavailable", provider="openai", status_code=503)
            return "second time lucky"

        gateway.reply = reply
        result = await node_executor.run(llm_spec(retry_on_fail=2, retry_delay=0), {}, CREDENTIALS)

        assert result.status == NodeStatus.SUCCEEDED
        assert result.output == "second time lucky"
        assert result.attempts == 2

    async def test_retries_exhausted(self, node_executor, gateway):
        gateway.reply = ProviderError("down", provider="openai")

        result = await node_executor.run(llm_spec(retry_on_fail=2, retry_delay=0), {}, CREDENTIALS)

        assert result.status == NodeStatus.FAILED
        assert result.error.kind == ErrorKind.PROVIDER_ERROR
        assert result.attempts == 3
        assert len(gateway.calls) == 3

    async def test_missing_credential_is_not_retried(self, node_executor, gateway):
        result = await node_executor.run(llm_spec(retry_on_fail=3, retry_delay=0), {}, {})

        assert result.error.kind == ErrorKind.MISSING_CREDENTIAL
        assert result.attempts == 1
        assert gateway.calls == []


class TestIsolation:
    async def test_output_is_a_copy_of_upstream(self, node_executor):
        upstream = {"fetch": {"items": [1, 2]}}
        spec = NodeSpec(
            id="pick",
            type=NodeType.TRANSFORM,
            config={"template": "{{ fetch }}"},
            inputs=(InputEdge("fetch"),),
        )

        result = await node_executor.run(spec, upstream, {})
        result.output["items"].append(3)

        assert upstream == {"fetch": {"items": [1, 2]}}

    async def test_missing_required_parameter_is_internal(self, node_executor):
        spec = NodeSpec(id="t", type=NodeType.TOOL_CALL, config={})

        result = await node_executor.run(spec, {}, {})

        assert result.error.kind == ErrorKind.INTERNAL
        assert "tool" in result.error.message


class TestRequiredProviders:
    def test_collects_llm_and_tool_credentials(self, node_executor, tools, make_definition):
        async def scrape(arguments, credentials):
            return "page"

        tools.register("scrape", scrape, credential="firecrawl")
        definition = make_definition(
            {"id": "a", "type": "llm-call", "config": {"provider": "groq"}},
            {"id": "b", "type": "llm-call", "config": {"provider": "anthropic"}},
            {"id": "c", "type": "tool-call", "config": {"tool": "scrape"}},
            {"id": "d", "type": "tool-call", "config": {"tool": "unknown"}},
            {"id": "e", "type": "transform", "config": {"template": "x"}},
        )

        assert node_executor.required_providers(definition) == {"groq", "anthropic", "firecrawl"}


@pytest.mark.parametrize("node_type", list(NodeType))
def test_every_node_type_is_registered(node_type):
    from triflow.engine.node_registry import register_all_nodes

    registry = register_all_nodes()
    assert registry.get(node_type).type == node_type
    assert not registry.missing()
