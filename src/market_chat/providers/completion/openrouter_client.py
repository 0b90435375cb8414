"""OpenRouter chat-completion client (OpenAI-compatible API)."""
import logging

import httpx

from market_chat.errors import UpstreamCompletionError
from market_chat.providers.completion.models import (ChatMessagePayload,
                                                     CompletionParams)

logger = logging.getLogger(__name__)


class OpenRouterClient:
    """Async client for OpenRouter /chat/completions.

    open_stream() returns the live streaming response once the upstream has
    answered with a success status; the caller owns it and must aclose() it.
    Any refusal or transport failure before that point raises
    UpstreamCompletionError carrying the upstream detail for logging.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "openrouter/free",
        fallback_model: str = "stepfun/step-3.5-flash:free",
        site_url: str = "http://localhost:3000",
        site_name: str = "Market Chat",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._fallback_model = fallback_model
        headers = {
            "HTTP-Referer": site_url,
            "X-Title": site_name,
            "Content-Type": "application/json",
        }
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url, headers=headers, timeout=timeout, transport=transport
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def resolve_model(self, requested: str | None) -> str:
        """Pick the model for a request; deepseek models are served by the fallback."""
        model = requested or self._model
        if "deepseek" in model:
            return self._fallback_model
        return model

    def _params(
        self, messages: list[dict[str, str]], model: str | None, *, stream: bool
    ) -> dict:
        return CompletionParams(
            model=self.resolve_model(model),
            messages=[ChatMessagePayload(**m) for m in messages],
            stream=stream,
        ).model_dump()

    async def open_stream(
        self, messages: list[dict[str, str]], model: str | None = None
    ) -> httpx.Response:
        """Open a streaming completion and return the response after the status line."""
        request = self._client.build_request(
            "POST",
            "/chat/completions",
            json=self._params(messages, model, stream=True),
            headers={"Accept": "text/event-stream"},
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise UpstreamCompletionError(f"Completion connection failed: {exc}") from exc

        if response.is_success:
            return response
        try:
            body = (await response.aread()).decode("utf-8", errors="replace")
        except httpx.HTTPError:
            body = ""
        finally:
            await response.aclose()
        raise UpstreamCompletionError(
            f"Completion upstream returned {response.status_code}: {body[:500]}"
        )

    async def complete(
        self, messages: list[dict[str, str]], model: str | None = None
    ) -> str:
        """Run a non-streaming completion and return the answer text."""
        try:
            response = await self._client.post(
                "/chat/completions", json=self._params(messages, model, stream=False)
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamCompletionError(
                f"Completion upstream returned {exc.response.status_code}: "
                f"{exc.response.text[:500]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamCompletionError(f"Completion request failed: {exc}") from exc

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise UpstreamCompletionError("Invalid response from completion upstream") from exc
        if not content:
            raise UpstreamCompletionError("Empty response from completion upstream")
        return content

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
