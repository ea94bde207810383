"""GenericOpenAIProvider: OpenAI-compatible endpoint via httpx.

Works with llama.cpp, Ollama, vLLM, LM Studio, or any server exposing
/v1/chat/completions.
"""

from __future__ import annotations

import asyncio
import time

import httpx

from ..types import LLMConfig, LLMProviderError

MAX_RETRIES = 3
RETRY_BACKOFF = [1.0, 2.0, 4.0]

PROVIDER_NAME = "generic_openai"


class GenericOpenAIProvider:
    """LLM provider using any OpenAI-compatible chat completions API."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:11434/v1",
        model: str = "llama3.2:1b",
        api_key: str = "not-needed",
        timeout: float = 300.0,
        temperature: float | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.temperature = temperature

    @classmethod
    def from_config(cls, config: LLMConfig) -> GenericOpenAIProvider:
        return cls(
            base_url=config.base_url,
            model=config.model,
            api_key=config.api_key,
            timeout=config.timeout,
            temperature=config.temperature,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _build_payload(self, system: str, user: str, max_tokens: int | None) -> dict:
        payload: dict = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        return payload

    def _extract_text(self, data: dict) -> str:
        choices = data.get("choices") or []
        if not choices:
            raise LLMProviderError(
                "No response choices returned from API", provider=PROVIDER_NAME
            )
        choice = choices[0] if isinstance(choices, list) else None
        message = choice.get("message") if isinstance(choice, dict) else None
        if not isinstance(message, dict):
            raise LLMProviderError("Unexpected response body", provider=PROVIDER_NAME)
        content = message.get("content") or ""
        if not isinstance(content, str):
            raise LLMProviderError("Unexpected response body", provider=PROVIDER_NAME)
        return content.strip()

    def _status_error(self, response: httpx.Response) -> LLMProviderError:
        return LLMProviderError(
            f"HTTP {response.status_code}: {response.text}",
            provider=PROVIDER_NAME,
            status_code=response.status_code,
        )

    def _json(self, response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError as e:
            raise LLMProviderError(
                f"Invalid JSON from upstream: {e}", provider=PROVIDER_NAME
            ) from e
        if not isinstance(data, dict):
            raise LLMProviderError("Unexpected response body", provider=PROVIDER_NAME)
        return data

    @staticmethod
    def _is_transient(response: httpx.Response) -> bool:
        return response.status_code == 429 or response.status_code >= 500

    def complete(self, system: str, user: str, max_tokens: int | None = None) -> str:
        """Send a chat completion request, retrying transient failures."""
        payload = self._build_payload(system, user, max_tokens)
        last_error: Exception | None = None

        for attempt in range(MAX_RETRIES):
            try:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.endpoint, headers=self._headers(), json=payload)

                if response.status_code == 200:
                    return self._extract_text(self._json(response))

                if self._is_transient(response):
                    last_error = self._status_error(response)
                    if attempt < MAX_RETRIES - 1:
                        time.sleep(RETRY_BACKOFF[attempt])
                    continue

                raise self._status_error(response)

            except httpx.HTTPError as e:
                last_error = LLMProviderError(f"HTTP error: {e}", provider=PROVIDER_NAME)
                if attempt < MAX_RETRIES - 1:
                    time.sleep(RETRY_BACKOFF[attempt])
                continue

        raise last_error or LLMProviderError("Max retries exceeded", provider=PROVIDER_NAME)

    async def acomplete(
        self,
        system: str,
        user: str,
        max_tokens: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> str:
        """Async variant of ``complete``; reuses ``client`` when given."""
        payload = self._build_payload(system, user, max_tokens)
        last_error: Exception | None = None

        for attempt in range(MAX_RETRIES):
            try:
                if client is not None:
                    response = await client.post(
                        self.endpoint, headers=self._headers(), json=payload
                    )
                else:
                    async with httpx.AsyncClient(timeout=self.timeout) as own_client:
                        response = await own_client.post(
                            self.endpoint, headers=self._headers(), json=payload
                        )

                if response.status_code == 200:
                    return self._extract_text(self._json(response))

                if self._is_transient(response):
                    last_error = self._status_error(response)
                    if attempt < MAX_RETRIES - 1:
                        await asyncio.sleep(RETRY_BACKOFF[attempt])
                    continue

                raise self._status_error(response)

            except httpx.HTTPError as e:
                last_error = LLMProviderError(f"HTTP error: {e}", provider=PROVIDER_NAME)
                if attempt < MAX_RETRIES - 1:
                    await asyncio.sleep(RETRY_BACKOFF[attempt])
                continue

        raise last_error or LLMProviderError("Max retries exceeded", provider=PROVIDER_NAME)


class ProviderBackend:
    """Chat backend that calls the LLM directly, without the proxy."""

    def __init__(self, provider: GenericOpenAIProvider, system_prompt: str) -> None:
        self.provider = provider
        self.system_prompt = system_prompt

    async def send_message(self, text: str) -> str:
        return await self.provider.acomplete(self.system_prompt, text)

    async def model_info(self) -> str:
        return self.provider.model
