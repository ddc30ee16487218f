"""Tests for the chat-completions client."""

import asyncio

import httpx
import pytest

from category_diffusion.config import LLMConfig
from category_diffusion.errors import LLMError
from category_diffusion.llm import LLMClient
from fakes import PROXY_URL, FakeLLM


@pytest.mark.asyncio
async def test_sends_configured_payload():
    proxy = FakeLLM(["{}"])
    config = LLMConfig(proxy_url=PROXY_URL, model="m-1", max_tokens=100, temperature=0.3)

    async with LLMClient(config, transport=proxy.transport()) as llm:
        reply = await llm.complete("hello")

    assert reply == "{}"
    assert proxy.payloads == [{
        "model": "m-1",
        "messages": [{"role": "user", "content": "hello"}],
        "max_tokens": 100,
        "temperature": 0.3,
    }]


@pytest.mark.asyncio
async def test_http_error_raises(llm_config):
    proxy = FakeLLM([502])

    async with LLMClient(llm_config, transport=proxy.transport()) as llm:
        with pytest.raises(LLMError):
            await llm.complete("hello")


@pytest.mark.asyncio
async def test_transport_timeout_raises(llm_config):
    request = httpx.Request("POST", PROXY_URL)
    proxy = FakeLLM([httpx.ReadTimeout("timed out", request=request)])

    async with LLMClient(llm_config, transport=proxy.transport()) as llm:
        with pytest.raises(LLMError):
            await llm.complete("hello")


@pytest.mark.asyncio
async def test_overall_timeout_raises():
    async def slow_handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json={})

    config = LLMConfig(proxy_url=PROXY_URL).model_copy(update={"timeout_seconds": 0.05})

    async with LLMClient(config, transport=httpx.MockTransport(slow_handler)) as llm:
        with pytest.raises(LLMError, match="timed out"):
            await llm.complete("hello")


@pytest.mark.asyncio
async def test_missing_choices_gives_empty_text(llm_config):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "overloaded"})

    async with LLMClient(llm_config, transport=httpx.MockTransport(handler)) as llm:
        assert await llm.complete("hello") == ""


@pytest.mark.asyncio
async def test_api_key_sent_as_bearer():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    config = LLMConfig(proxy_url=PROXY_URL, api_key="secret")
    async with LLMClient(config, transport=httpx.MockTransport(handler)) as llm:
        await llm.complete("hello")

    assert seen["auth"] == "Bearer secret"


@pytest.mark.asyncio
async def test_requires_context_manager(llm_config):
    with pytest.raises(RuntimeError):
        await LLMClient(llm_config).complete("hello")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"choices": [{"message": "not an object"}]},
        {"choices": [{"message": {"content": ["list", "content"]}}]},
    ],
)
async def test_malformed_message_raises(llm_config, body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    async with LLMClient(llm_config, transport=httpx.MockTransport(handler)) as llm:
        with pytest.raises(LLMError):
            await llm.complete("hello")
