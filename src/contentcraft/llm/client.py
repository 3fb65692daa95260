"""Chat-completion clients for the OpenAI-compatible API and Anthropic."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from anthropic import APIError, AsyncAnthropic

from contentcraft.config import Settings
from contentcraft.errors import UpstreamError

logger = logging.getLogger(__name__)


def _token_count(value: object) -> int:
    """Usage counters are informational; anything but a number counts as 0."""
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


class CompletionClient(Protocol):
    """What the analysis pipeline needs from a completion provider."""

    async def generate(
        self,
        system: str,
        messages: list[dict],
        *,
        json_mode: bool = False,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str: ...

    @property
    def usage_summary(self) -> dict: ...

    async def aclose(self) -> None: ...


class ChatCompletionClient:
    """Single-shot POST to an OpenAI-compatible ``/chat/completions`` endpoint.

    There is no retry: every failure is terminal for the user action that
    triggered it and is reported as :class:`UpstreamError`.
    """

    def __init__(
        self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=settings.completion_base_url,
            headers={
                "Authorization": f"Bearer {settings.openai_api_key}",
                "Content-Type": "application/json",
            },
            timeout=settings.request_timeout,
            transport=transport,
        )
        self._model = settings.model
        self._max_tokens = settings.max_tokens
        self._temperature = settings.temperature
        self._total_input_tokens = 0
        self._total_output_tokens = 0

    async def generate(
        self,
        system: str,
        messages: list[dict],
        *,
        json_mode: bool = False,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Send a system prompt plus messages and return the first choice's text."""
        payload: dict = {
            "model": self._model,
            "messages": [{"role": "system", "content": system}, *messages],
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": temperature if temperature is not None else self._temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        try:
            resp = await self._client.post("/chat/completions", json=payload)
            resp.raise_for_status()
            data = resp.json()
            text = data["choices"][0]["message"]["content"]
        except httpx.HTTPError as exc:
            logger.warning("Completion request failed: %s", exc)
            raise UpstreamError(str(exc)) from exc
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("Malformed completion response: %r", exc)
            raise UpstreamError("malformed completion response") from exc

        if not isinstance(text, str):
            raise UpstreamError("completion response has no text content")

        usage = data.get("usage")
        if isinstance(usage, dict):
            self._total_input_tokens += _token_count(usage.get("prompt_tokens"))
            self._total_output_tokens += _token_count(usage.get("completion_tokens"))
        return text

    @property
    def usage_summary(self) -> dict:
        return {
            "total_input_tokens": self._total_input_tokens,
            "total_output_tokens": self._total_output_tokens,
        }

    async def aclose(self) -> None:
        await self._client.aclose()


class ClaudeClient:
    """Same contract on top of the Anthropic SDK."""

    def __init__(self, settings: Settings) -> None:
        # The SDK retries twice by default; a failed call must stay a single attempt.
        self._client = AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.request_timeout,
            max_retries=0,
        )
        self._model = settings.anthropic_model
        self._max_tokens = settings.max_tokens
        self._temperature = settings.temperature
        self._total_input_tokens = 0
        self._total_output_tokens = 0

    async def generate(
        self,
        system: str,
        messages: list[dict],
        *,
        json_mode: bool = False,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Send a message to Claude and return the text response.

        ``json_mode`` is accepted for interface parity; the system prompt
        already spells out the JSON contract.
        """
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens or self._max_tokens,
                temperature=temperature if temperature is not None else self._temperature,
                system=system,
                messages=messages,
            )
        except APIError as exc:
            logger.warning("Claude request failed: %s", exc)
            raise UpstreamError(str(exc)) from exc

        try:
            text = response.content[0].text
        except (IndexError, AttributeError) as exc:
            raise UpstreamError("malformed completion response") from exc

        self._total_input_tokens += response.usage.input_tokens
        self._total_output_tokens += response.usage.output_tokens
        return text

    @property
    def usage_summary(self) -> dict:
        return {
            "total_input_tokens": self._total_input_tokens,
            "total_output_tokens": self._total_output_tokens,
        }

    async def aclose(self) -> None:
        await self._client.close()


def create_completion_client(settings: Settings) -> CompletionClient:
    """Build the client for ``settings.completion_provider``."""
    if settings.completion_provider == "anthropic":
        return ClaudeClient(settings)
    if settings.completion_provider == "openai":
        return ChatCompletionClient(settings)
    raise ValueError(f"Unknown completion provider: {settings.completion_provider!r}")
