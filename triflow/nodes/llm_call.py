"""LLM call node - single completion through the inference gateway."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.exceptions import MissingCredentialError
from ..engine.expression_engine import expression_engine
from ..engine.inference import CompletionConfig
from ..engine.types import NodeType
from .base import (
    BaseNode,
    NodeInvocation,
    NodeProperty,
    NodePropertyOption,
    NodeTypeDescription,
)

if TYPE_CHECKING:
    from ..engine.tools import ToolRegistry
    from ..engine.types import NodeOutcome, NodeSpec


DEFAULT_PROVIDER = "huggingface"


class LLMCallNode(BaseNode):
    """LLM call node - send a prompt built from upstream outputs to a provider."""

    node_description = NodeTypeDescription(
        name="llm-call",
        display_name="LLM Call",
        description="Send a message to an LLM and get a response",
        group=["ai"],
        properties=[
            NodeProperty(
                display_name="Provider",
                name="provider",
                type="options",
                default=DEFAULT_PROVIDER,
                options=[
                    NodePropertyOption(name="Hugging Face", value="huggingface"),
                    NodePropertyOption(name="Cloudflare Workers AI", value="cloudflare"),
                    NodePropertyOption(name="OpenAI", value="openai"),
                    NodePropertyOption(name="Groq", value="groq"),
                    NodePropertyOption(name="Anthropic", value="anthropic"),
                ],
            ),
            NodeProperty(
                display_name="Model",
                name="model",
                type="string",
                description="Provider model id. Defaults to the provider's default model.",
            ),
            NodeProperty(
                display_name="Prompt",
                name="prompt",
                type="string",
                description="User message template, e.g. 'Summarize: {{ fetch }}'. "
                "Without a prompt, upstream text outputs are sent as-is.",
            ),
            NodeProperty(
                display_name="System Prompt",
                name="system_prompt",
                type="string",
                description="System message to set assistant behavior",
            ),
            NodeProperty(
                display_name="Temperature",
                name="temperature",
                type="number",
                default=0.7,
                description="Controls randomness (0-1)",
            ),
            NodeProperty(
                display_name="Max Tokens",
                name="max_tokens",
                type="number",
                default=1024,
                description="Maximum response length",
            ),
            NodeProperty(
                display_name="Use Thread",
                name="use_thread",
                type="boolean",
                default=False,
                description="Prepend the thread's conversation and record this turn",
            ),
        ],
    )

    @property
    def type(self) -> NodeType:
        return NodeType.LLM_CALL

    @property
    def description(self) -> str:
        return "Send a message to an LLM and get a response"

    def credential_providers(self, spec: NodeSpec, tools: ToolRegistry) -> set[str]:
        return {spec.config.get("provider") or DEFAULT_PROVIDER}

    async def execute(self, invocation: NodeInvocation) -> NodeOutcome:
        spec = invocation.spec
        provider = self.get_parameter(spec, "provider", DEFAULT_PROVIDER)

        api_key = invocation.credentials.get(provider)
        if not api_key:
            raise MissingCredentialError(provider)

        user_message = self._build_user_message(invocation)
        use_thread = bool(self.get_parameter(spec, "use_thread", False))

        messages: list[dict[str, str]] = []
        system_prompt = self.get_parameter(spec, "system_prompt")
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        if use_thread:
            messages.extend(invocation.history)
        messages.append({"role": "user", "content": user_message})

        text = await invocation.gateway.complete(
            messages,
            CompletionConfig(
                provider=provider,
                model=self.get_parameter(spec, "model"),
                max_tokens=int(self.get_parameter(spec, "max_tokens", 1024)),
                temperature=float(self.get_parameter(spec, "temperature", 0.7)),
                api_key=api_key,
            ),
        )

        turn = (
            [
                {"role": "user", "content": user_message},
                {"role": "assistant", "content": text},
            ]
            if use_thread
            else None
        )
        return self.outcome(text, turn)

    def _build_user_message(self, invocation: NodeInvocation) -> str:
        prompt = invocation.spec.config.get("prompt")
        if prompt:
            return expression_engine.stringify(expression_engine.resolve(prompt, invocation.scope()))

        # No template: forward upstream text outputs in declaration order
        parts = [
            expression_engine.stringify(invocation.upstream[node_id])
            for node_id in invocation.spec.upstream_ids
            if node_id in invocation.upstream
        ]
        if not parts and invocation.run_input is not None:
            parts.append(expression_engine.stringify(invocation.run_input))
        return "\n\n".join(parts)
