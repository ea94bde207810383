"""ProxyChatClient: talks to the genai-chat proxy's /api/chat endpoint."""

from __future__ import annotations

import logging

import httpx

from ..types import ChatClientError

logger = logging.getLogger(__name__)

MODEL_INFO_COMMAND = "!modelinfo"
CHAT_PATH = "/api/chat"


class ProxyChatClient:
    """Chat backend that posts single messages to the proxy server.

    Pass ``client`` to reuse a configured ``httpx.AsyncClient``; otherwise
    one is created per request.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 300.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _post(self, message: str) -> dict:
        url = f"{self.base_url}{CHAT_PATH}"
        try:
            if self._client is not None:
                resp = await self._client.post(url, json={"message": message})
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(url, json={"message": message})
        except httpx.HTTPError as e:
            raise ChatClientError(f"HTTP error: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            raise ChatClientError(
                f"HTTP {resp.status_code}: non-JSON body", status_code=resp.status_code
            )
        if not isinstance(data, dict):
            raise ChatClientError("Unexpected response body", status_code=resp.status_code)
        if "error" in data:
            raise ChatClientError(str(data["error"]), status_code=resp.status_code)
        if resp.status_code != 200:
            raise ChatClientError(f"HTTP {resp.status_code}", status_code=resp.status_code)
        return data

    async def send_message(self, text: str) -> str:
        data = await self._post(text)
        response = data.get("response")
        if not isinstance(response, str):
            raise ChatClientError("Response body has no 'response' text")
        return response

    async def model_info(self) -> str:
        data = await self._post(MODEL_INFO_COMMAND)
        model = data.get("model")
        if not isinstance(model, str):
            raise ChatClientError("Response body has no 'model' text")
        return model
