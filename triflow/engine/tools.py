"""Tool collaborators invoked by tool-call nodes."""

from __future__ import annotations

import base64
import ipaddress
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping
from urllib.parse import urlparse

import httpx

from ..core.config import Settings
from ..core.exceptions import MissingCredentialError, NodeTimeoutError, ProviderError

ToolFunc = Callable[[dict[str, Any], Mapping[str, str]], Awaitable[Any]]


# IP ranges that should be blocked to prevent SSRF
_BLOCKED_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),  # Link-local / cloud metadata
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]


def _is_ssrf_target(url: str) -> bool:
    """Check if a URL targets a private/internal IP address."""
    try:
        hostname = urlparse(url).hostname
        if not hostname:
            return True
        if hostname in ("localhost", "metadata.google.internal"):
            return True
        addr = ipaddress.ip_address(hostname)
        return any(addr in net for net in _BLOCKED_NETWORKS)
    except ValueError:
        # hostname is a domain name, not an IP literal
        return False


@dataclass
class ToolSpec:
    """A registered tool and the credential it needs, if any."""

    name: str
    func: ToolFunc
    description: str = ""
    credential: str | None = None


class ToolRegistry:
    """Registry of tools callable from workflows."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}

    def register(
        self,
        name: str,
        func: ToolFunc,
        *,
        description: str = "",
        credential: str | None = None,
    ) -> None:
        self._tools[name] = ToolSpec(name=name, func=func, description=description, credential=credential)

    def get(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def list(self) -> list[ToolSpec]:
        return list(self._tools.values())

    async def call(self, name: str, arguments: dict[str, Any], credentials: Mapping[str, str]) -> Any:
        """
        Invoke a tool.

        Raises:
            ProviderError: If the tool is unknown or its backend fails.
            MissingCredentialError: If the tool's credential was not resolved.
            NodeTimeoutError: If the tool's HTTP call times out.
        """
        spec = self._tools.get(name)
        if spec is None:
            raise ProviderError(f"Unknown tool: {name}")
        if spec.credential and not credentials.get(spec.credential):
            raise MissingCredentialError(spec.credential)

        try:
            return await spec.func(arguments, credentials)
        except httpx.TimeoutException as e:
            raise NodeTimeoutError(f'Tool "{name}" timed out') from e
        except httpx.HTTPError as e:
            raise ProviderError(f'Tool "{name}" transport error: {e}') from e


class HttpTools:
    """Built-in HTTP tools sharing one client configuration."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._settings = settings
        self._http_client = http_client
        self._timeout = timeout

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.request(method, url, **kwargs)

    async def http_request(self, arguments: dict[str, Any], credentials: Mapping[str, str]) -> Any:
        """Make an HTTP request. Returns status code, headers and body."""
        url = arguments.get("url")
        if not url:
            raise ValueError('http_request needs a "url" argument')
        if _is_ssrf_target(str(url)):
            raise ProviderError(f"Refusing to call internal address: {url}")

        method = str(arguments.get("method", "GET")).upper()
        headers = {"Content-Type": "application/json", **(arguments.get("headers") or {})}

        body = arguments.get("body")
        if isinstance(body, str) and body:
            try:
                body = json.loads(body)
            except json.JSONDecodeError:
                pass  # Keep as string

        response = await self._request(
            method,
            str(url),
            headers=headers,
            json=body if isinstance(body, (dict, list)) else None,
            content=body if isinstance(body, str) else None,
        )
        if response.is_error:
            raise ProviderError(
                f"HTTP {response.status_code} from {url}", status_code=response.status_code
            )

        response_data: Any
        if arguments.get("response_type") == "text":
            response_data = response.text
        else:
            try:
                response_data = response.json()
            except ValueError:
                response_data = response.text

        return {
            "status_code": response.status_code,
            "headers": dict(response.headers),
            "body": response_data,
        }

    async def firecrawl_scrape(self, arguments: dict[str, Any], credentials: Mapping[str, str]) -> str:
        """Scrape a page through Firecrawl and return it as markdown."""
        url = arguments.get("url")
        if not url:
            raise ValueError('firecrawl_scrape needs a "url" argument')

        response = await self._request(
            "POST",
            f"{self._settings.firecrawl_base_url}/scrape",
            headers={"Authorization": f"Bearer {credentials['firecrawl']}"},
            json={"url": url, "formats": ["markdown"]},
        )
        if response.is_error:
            raise ProviderError(
                f"Firecrawl error ({response.status_code}): {response.text}",
                provider="firecrawl",
                status_code=response.status_code,
            )

        try:
            return response.json()["data"]["markdown"]
        except (ValueError, KeyError, TypeError) as e:
            raise ProviderError("Malformed Firecrawl response", provider="firecrawl") from e


    async def hf_text_to_image(self, arguments: dict[str, Any], credentials: Mapping[str, str]) -> str:
        """Generate an image on the Hugging Face Inference API. Returns a PNG data URL."""
        prompt = arguments.get("prompt")
        if not prompt:
            raise ValueError('hf_text_to_image needs a "prompt" argument')

        model = arguments.get("model") or self._settings.hf_image_model
        response = await self._request(
            "POST",
            f"{self._settings.hf_models_url}/{model}",
            headers={"Authorization": f"Bearer {credentials['huggingface']}"},
            json={
                "inputs": str(prompt),
                "parameters": {
                    "width": int(arguments.get("width") or 512),
                    "height": int(arguments.get("height") or 512),
                },
            },
        )
        if response.is_error:
            raise ProviderError(
                f"HF Image API error ({response.status_code}): {response.text}",
                provider="huggingface",
                status_code=response.status_code,
            )

        return "data:image/png;base64," + base64.b64encode(response.content).decode("ascii")


def build_tool_registry(settings: Settings, http_client: httpx.AsyncClient | None = None) -> ToolRegistry:
    """Registry with the built-in tools."""
    http_tools = HttpTools(settings, http_client)
    registry = ToolRegistry()
    registry.register(
        "http_request",
        http_tools.http_request,
        description="Make an HTTP request (url, method, headers, body, response_type)",
    )
    registry.register(
        "firecrawl_scrape",
        http_tools.firecrawl_scrape,
        description="Scrape a web page to markdown (url)",
        credential="firecrawl",
    )
    registry.register(
        "hf_text_to_image",
        http_tools.hf_text_to_image,
        description="Generate an image from a prompt (prompt, width, height, model)",
        credential="huggingface",
    )
    return registry
