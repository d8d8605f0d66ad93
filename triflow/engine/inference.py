"""Inference gateway over hosted LLM providers.

Public API:
    ProviderGateway(settings).complete(messages, config) -> str

Routing by ``CompletionConfig.provider``:
  - huggingface  -> httpx   (HF Inference API, OpenAI-compatible chat endpoint)
  - cloudflare   -> httpx   (Workers AI REST API)
  - openai       -> openai SDK
  - groq         -> openai SDK  (Groq's OpenAI-compatible endpoint)
  - anthropic    -> anthropic SDK

Every backend failure is raised as ProviderError or NodeTimeoutError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol

import anthropic
import httpx
import openai

from ..core.config import Settings
from ..core.exceptions import NodeTimeoutError, ProviderError


# ---------------------------------------------------------------------------
# Data Classes
# ---------------------------------------------------------------------------


@dataclass
class CompletionConfig:
    """Per-call options. ``api_key`` is never part of the repr."""

    provider: str
    model: str | None = None
    max_tokens: int = 1024
    temperature: float = 0.7
    api_key: str | None = field(default=None, repr=False)


class InferenceGateway(Protocol):
    """Uniform "complete text given messages and config" capability."""

    async def complete(self, messages: list[dict[str, str]], config: CompletionConfig) -> str: ...


# ---------------------------------------------------------------------------
# Model Registry
# ---------------------------------------------------------------------------

DEFAULT_MODELS: dict[str, str] = {
    "huggingface": "meta-llama/Meta-Llama-3-8B-Instruct",
    "cloudflare": "llama-3.3-70b",
    "openai": "gpt-4o-mini",
    "groq": "llama-3.3-70b-versatile",
    "anthropic": "claude-3-5-haiku-latest",
}

CLOUDFLARE_MODELS: dict[str, str] = {
    "llama-3.3-70b": "@cf/meta/llama-3.3-70b-instruct-fp8-fast",
    "deepseek-r1-distill": "@cf/deepseek-ai/deepseek-r1-distill-qwen-32b",
    "gemma-2-27b": "@cf/google/gemma-2-27b-it",
    "mistral-7b": "@cf/mistral/mistral-7b-instruct-v0.2-lora",
    "qwen-2.5-coder": "@cf/qwen/qwen2.5-coder-32b-instruct",
}


Backend = Callable[[list[dict[str, str]], CompletionConfig], Awaitable[str]]


class ProviderGateway:
    """Routes completions to the configured hosted providers."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ) -> None:
        self._settings = settings
        self._http_client = http_client
        self._timeout = timeout
        self._backends: dict[str, Backend] = {
            "huggingface": self._call_huggingface,
            "cloudflare": self._call_cloudflare,
            "openai": self._call_openai,
            "groq": self._call_groq,
            "anthropic": self._call_anthropic,
        }

    async def complete(self, messages: list[dict[str, str]], config: CompletionConfig) -> str:
        """Send a chat completion to ``config.provider`` and return the text."""
        backend = self._backends.get(config.provider)
        if backend is None:
            raise ProviderError(f"Unknown provider: {config.provider}", provider=config.provider)

        if not config.model:
            config = CompletionConfig(
                provider=config.provider,
                model=DEFAULT_MODELS[config.provider],
                max_tokens=config.max_tokens,
                temperature=config.temperature,
                api_key=config.api_key,
            )

        try:
            return await backend(messages, config)
        except httpx.TimeoutException as e:
            raise NodeTimeoutError(
                f"{config.provider} request timed out", timeout=self._timeout
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                f"{config.provider} transport error: {e}", provider=config.provider
            ) from e

    # -----------------------------------------------------------------------
    # Backend: httpx (Hugging Face, Cloudflare)
    # -----------------------------------------------------------------------

    async def _post_json(
        self, url: str, payload: dict[str, Any], headers: dict[str, str]
    ) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(url, json=payload, headers=headers)

    async def _call_huggingface(self, messages: list[dict[str, str]], config: CompletionConfig) -> str:
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"

        response = await self._post_json(
            self._settings.hf_chat_url,
            {
                "model": config.model,
                "messages": messages,
                "max_tokens": config.max_tokens,
                "temperature": config.temperature,
                "stream": False,
            },
            headers,
        )
        if response.is_error:
            raise ProviderError(
                f"HF API error ({response.status_code}): {response.text}",
                provider="huggingface",
                status_code=response.status_code,
            )

        try:
            return response.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError("Malformed HF API response", provider="huggingface") from e

    async def _call_cloudflare(self, messages: list[dict[str, str]], config: CompletionConfig) -> str:
        account_id = self._settings.cloudflare_account_id
        if not account_id:
            raise ProviderError("Cloudflare account id is not configured", provider="cloudflare")

        model_id = CLOUDFLARE_MODELS.get(config.model or "", config.model)
        response = await self._post_json(
            f"{self._settings.cloudflare_api_base}/{account_id}/ai/run/{model_id}",
            {
                "messages": messages,
                "max_tokens": config.max_tokens,
                "temperature": config.temperature,
                "stream": False,
            },
            {
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            },
        )
        if response.is_error:
            raise ProviderError(
                f"Cloudflare Workers AI error ({response.status_code}): {response.text}",
                provider="cloudflare",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError("Malformed Cloudflare response", provider="cloudflare") from e

        if not data.get("success"):
            errors = ", ".join(err.get("message", "") for err in data.get("errors") or [])
            raise ProviderError(f"Cloudflare AI failed: {errors}", provider="cloudflare")

        return (data.get("result") or {}).get("response") or ""

    # -----------------------------------------------------------------------
    # Backend: OpenAI-compatible (OpenAI direct + Groq)
    # -----------------------------------------------------------------------

    async def _call_openai(self, messages: list[dict[str, str]], config: CompletionConfig) -> str:
        return await self._call_openai_compat(config, messages, base_url=None)

    async def _call_groq(self, messages: list[dict[str, str]], config: CompletionConfig) -> str:
        return await self._call_openai_compat(config, messages, base_url=self._settings.groq_base_url)

    async def _call_openai_compat(
        self,
        config: CompletionConfig,
        messages: list[dict[str, str]],
        base_url: str | None,
    ) -> str:
        try:
            async with openai.AsyncOpenAI(
                api_key=config.api_key, base_url=base_url, timeout=self._timeout
            ) as client:
                completion = await client.chat.completions.create(
                    model=config.model,
                    messages=messages,
                    temperature=config.temperature,
                    max_tokens=config.max_tokens,
                )
        except openai.APITimeoutError as e:
            raise NodeTimeoutError(f"{config.provider} request timed out", timeout=self._timeout) from e
        except openai.APIStatusError as e:
            raise ProviderError(
                f"{config.provider} API error ({e.status_code}): {e.message}",
                provider=config.provider,
                status_code=e.status_code,
            ) from e
        except openai.APIError as e:
            raise ProviderError(f"{config.provider} API error: {e}", provider=config.provider) from e

        choice = completion.choices[0] if completion.choices else None
        if choice is None:
            raise ProviderError(f"{config.provider} returned no choices", provider=config.provider)
        return choice.message.content or ""

    # -----------------------------------------------------------------------
    # Backend: Anthropic
    # -----------------------------------------------------------------------

    async def _call_anthropic(self, messages: list[dict[str, str]], config: CompletionConfig) -> str:
        system = next((m["content"] for m in messages if m["role"] == "system"), None)
        api_messages = [m for m in messages if m["role"] != "system"]

        call_kwargs: dict[str, Any] = {
            "model": config.model,
            "messages": api_messages,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
        }
        if system:
            call_kwargs["system"] = system

        try:
            async with anthropic.AsyncAnthropic(api_key=config.api_key, timeout=self._timeout) as client:
                response = await client.messages.create(**call_kwargs)
        except anthropic.APITimeoutError as e:
            raise NodeTimeoutError("anthropic request timed out", timeout=self._timeout) from e
        except anthropic.APIStatusError as e:
            raise ProviderError(
                f"anthropic API error ({e.status_code}): {e.message}",
                provider="anthropic",
                status_code=e.status_code,
            ) from e
        except anthropic.APIError as e:
            raise ProviderError(f"anthropic API error: {e}", provider="anthropic") from e

        return "\n".join(block.text for block in response.content if block.type == "text")
