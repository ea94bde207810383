"""Tests for the OpenAI-compatible provider and the proxy chat client."""

from __future__ import annotations

import functools
import json

import httpx
import pytest

from genai_chat.providers import build_backend, generic_openai
from genai_chat.providers.generic_openai import GenericOpenAIProvider, ProviderBackend
from genai_chat.providers.proxy_client import MODEL_INFO_COMMAND, ProxyChatClient
from genai_chat.config import load_config
from genai_chat.types import ChatClientError, LLMProviderError


def completion(content: str) -> dict:
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 5},
    }


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(generic_openai, "RETRY_BACKOFF", [0.0, 0.0, 0.0])


class Recorder:
    """MockTransport handler replaying scripted responses."""

    def __init__(self, *responses: httpx.Response | Exception):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


# ---------------------------------------------------------------------------
# GenericOpenAIProvider
# ---------------------------------------------------------------------------


class TestGenericOpenAIProvider:
    def make(self, **kwargs) -> GenericOpenAIProvider:
        return GenericOpenAIProvider(
            base_url="http://llm.test/v1/", model="llama3.2:1b", api_key="secret", **kwargs
        )

    def test_endpoint_strips_trailing_slash(self):
        assert self.make().endpoint == "http://llm.test/v1/chat/completions"

    @pytest.mark.asyncio
    async def test_acomplete_builds_request(self):
        rec = Recorder(httpx.Response(200, json=completion("  Hola!  ")))
        provider = self.make(temperature=0.2)
        async with rec.client() as client:
            text = await provider.acomplete("You are a helpful assistant.", "hola", client=client)

        assert text == "Hola!"
        request = rec.requests[0]
        assert str(request.url) == "http://llm.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer secret"
        body = json.loads(request.content)
        assert body["model"] == "llama3.2:1b"
        assert body["messages"] == [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "content": "hola"},
        ]
        assert body["temperature"] == 0.2
        assert "max_tokens" not in body

    @pytest.mark.asyncio
    async def test_retries_transient_status(self):
        rec = Recorder(
            httpx.Response(503, text="busy"),
            httpx.Response(429, text="slow down"),
            httpx.Response(200, json=completion("ok")),
        )
        async with rec.client() as client:
            text = await self.make().acomplete("s", "u", client=client)
        assert text == "ok"
        assert len(rec.requests) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        rec = Recorder(httpx.Response(500, text="broken"))
        async with rec.client() as client:
            with pytest.raises(LLMProviderError) as exc_info:
                await self.make().acomplete("s", "u", client=client)
        assert exc_info.value.status_code == 500
        assert len(rec.requests) == generic_openai.MAX_RETRIES

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        rec = Recorder(httpx.Response(400, text="bad request"))
        async with rec.client() as client:
            with pytest.raises(LLMProviderError, match="HTTP 400"):
                await self.make().acomplete("s", "u", client=client)
        assert len(rec.requests) == 1

    @pytest.mark.asyncio
    async def test_connection_error_retried_then_raised(self):
        rec = Recorder(httpx.ConnectError("refused"))
        async with rec.client() as client:
            with pytest.raises(LLMProviderError, match="HTTP error"):
                await self.make().acomplete("s", "u", client=client)
        assert len(rec.requests) == generic_openai.MAX_RETRIES

    @pytest.mark.asyncio
    async def test_no_choices(self):
        rec = Recorder(httpx.Response(200, json={"choices": []}))
        async with rec.client() as client:
            with pytest.raises(LLMProviderError, match="No response choices"):
                await self.make().acomplete("s", "u", client=client)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"choices": [{"message": {"content": 123}}]},
        {"choices": ["not an object"]},
        {"choices": [{"message": "hola"}]},
        {"choices": {"0": {}}},
    ])
    async def test_malformed_choice(self, body):
        rec = Recorder(httpx.Response(200, json=body))
        async with rec.client() as client:
            with pytest.raises(LLMProviderError, match="Unexpected response body"):
                await self.make().acomplete("s", "u", client=client)
        assert len(rec.requests) == 1

    @pytest.mark.asyncio
    async def test_null_content_is_empty_reply(self):
        rec = Recorder(httpx.Response(200, json={"choices": [{"message": {"content": None}}]}))
        async with rec.client() as client:
            assert await self.make().acomplete("s", "u", client=client) == ""

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        rec = Recorder(httpx.Response(200, text="<html>"))
        async with rec.client() as client:
            with pytest.raises(LLMProviderError, match="Invalid JSON"):
                await self.make().acomplete("s", "u", client=client)

    def test_sync_complete(self, monkeypatch):
        rec = Recorder(httpx.Response(200, json=completion("sync reply")))
        monkeypatch.setattr(
            generic_openai.httpx,
            "Client",
            functools.partial(httpx.Client, transport=httpx.MockTransport(rec)),
        )
        assert self.make().complete("s", "u", max_tokens=64) == "sync reply"
        assert json.loads(rec.requests[0].content)["max_tokens"] == 64

    def test_from_config(self):
        config = load_config(config_dict={"llm": {"base_url": "http://x/v1", "model": "m", "temperature": 0.5}})
        provider = GenericOpenAIProvider.from_config(config.llm)
        assert provider.endpoint == "http://x/v1/chat/completions"
        assert provider.model == "m"
        assert provider.temperature == 0.5


class TestProviderBackend:
    @pytest.mark.asyncio
    async def test_send_and_model(self):
        calls = []

        class Provider:
            model = "direct-model"

            async def acomplete(self, system, user):
                calls.append((system, user))
                return "respuesta"

        backend = ProviderBackend(Provider(), "Be brief.")
        assert await backend.send_message("hola") == "respuesta"
        assert calls == [("Be brief.", "hola")]
        assert await backend.model_info() == "direct-model"


class TestBuildBackend:
    def test_direct_without_server_url(self):
        backend = build_backend(load_config(config_dict={}))
        assert isinstance(backend, ProviderBackend)

    def test_proxy_with_server_url(self):
        backend = build_backend(load_config(config_dict={"chat": {"server_url": "http://localhost:8080/"}}))
        assert isinstance(backend, ProxyChatClient)
        assert backend.base_url == "http://localhost:8080"


# ---------------------------------------------------------------------------
# ProxyChatClient
# ---------------------------------------------------------------------------


class TestProxyChatClient:
    @pytest.mark.asyncio
    async def test_send_message(self):
        rec = Recorder(httpx.Response(200, json={"response": "Hola"}))
        async with rec.client() as client:
            proxy = ProxyChatClient("http://proxy.test", client=client)
            assert await proxy.send_message("hola en español") == "Hola"
        request = rec.requests[0]
        assert str(request.url) == "http://proxy.test/api/chat"
        assert json.loads(request.content) == {"message": "hola en español"}

    @pytest.mark.asyncio
    async def test_model_info_uses_sentinel(self):
        rec = Recorder(httpx.Response(200, json={"model": "llama3.2:1b"}))
        async with rec.client() as client:
            proxy = ProxyChatClient("http://proxy.test", client=client)
            assert await proxy.model_info() == "llama3.2:1b"
        assert json.loads(rec.requests[0].content) == {"message": MODEL_INFO_COMMAND}

    @pytest.mark.asyncio
    async def test_error_body(self):
        rec = Recorder(httpx.Response(500, json={"error": "Failed to get response from LLM"}))
        async with rec.client() as client:
            proxy = ProxyChatClient("http://proxy.test", client=client)
            with pytest.raises(ChatClientError, match="Failed to get response") as exc_info:
                await proxy.send_message("hola")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        rec = Recorder(httpx.Response(502, text="Bad Gateway"))
        async with rec.client() as client:
            proxy = ProxyChatClient("http://proxy.test", client=client)
            with pytest.raises(ChatClientError, match="502"):
                await proxy.send_message("hola")

    @pytest.mark.asyncio
    async def test_missing_response_field(self):
        rec = Recorder(httpx.Response(200, json={"reply": "x"}))
        async with rec.client() as client:
            proxy = ProxyChatClient("http://proxy.test", client=client)
            with pytest.raises(ChatClientError, match="response"):
                await proxy.send_message("hola")

    @pytest.mark.asyncio
    async def test_network_failure(self):
        rec = Recorder(httpx.ConnectError("refused"))
        async with rec.client() as client:
            proxy = ProxyChatClient("http://proxy.test", client=client)
            with pytest.raises(ChatClientError, match="HTTP error"):
                await proxy.model_info()
