"""Client for an OpenAI-compatible chat-completions proxy."""

import asyncio
import logging
from typing import Any

import httpx

from category_diffusion.config import LLMConfig
from category_diffusion.errors import LLMError

logger = logging.getLogger(__name__)


class LLMClient:
    """Send a single-message prompt and return the generated text."""

    def __init__(
        self,
        config: LLMConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.call_count: int = 0

    async def __aenter__(self):
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def complete(self, prompt: str) -> str:
        """Return the model's reply to ``prompt``.

        The whole call, including reading the body, is bounded by
        ``timeout_seconds``. Any failure raises :class:`LLMError`.
        """
        if not self._client:
            raise RuntimeError("LLMClient not initialized. Use 'async with' context manager.")

        payload = {
            "model": self.config.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }
        self.call_count += 1
        try:
            data = await asyncio.wait_for(
                self._post(self._client, payload), timeout=self.config.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise LLMError(f"Model call timed out after {self.config.timeout_seconds:.0f}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"Model call failed: {e}") from e
        except ValueError as e:
            raise LLMError(f"Model proxy returned invalid JSON: {e}") from e

        return _message_content(data)

    async def _post(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> Any:
        response = await client.post(self.config.proxy_url, json=payload)
        response.raise_for_status()
        return response.json()


def _message_content(data: Any) -> str:
    """Extract ``choices[0].message.content``.

    Empty when the reply carries no choice; a message of the wrong shape
    raises :class:`LLMError`.
    """
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices") or []
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        logger.debug("Model response without choices: %s", data)
        return ""
    message = choices[0].get("message") or {}
    if not isinstance(message, dict):
        raise LLMError(f"Unexpected message in model response: {message!r}")
    content = message.get("content") or ""
    if not isinstance(content, str):
        raise LLMError(f"Unexpected message content type: {type(content).__name__}")
    return content
