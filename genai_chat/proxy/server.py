"""HTTP proxy between the chat client and an OpenAI-compatible LLM.

Takes one user message per request and answers with the model's reply. The
reserved message ``!modelinfo`` answers with the configured model name
instead of calling the LLM.

Usage:
    genai-chat serve --port 8080
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from ..config import load_config
from ..providers.generic_openai import GenericOpenAIProvider
from ..providers.proxy_client import MODEL_INFO_COMMAND
from ..types import GenaiChatConfig, LLMProviderError

logger = logging.getLogger(__name__)

LLM_FAILURE_MESSAGE = "Failed to get response from LLM"

# Accepted request fields carrying the user's text, in priority order
_MESSAGE_FIELDS = ("message", "userMessage")


def _extract_message(body: object) -> str | None:
    if not isinstance(body, dict):
        return None
    for key in _MESSAGE_FIELDS:
        value = body.get(key)
        if isinstance(value, str):
            return value
    return None


def create_app(
    config: GenaiChatConfig | None = None,
    *,
    provider: GenericOpenAIProvider | None = None,
) -> FastAPI:
    """Create the FastAPI proxy application.

    Args:
        config: Loaded configuration; auto-discovered when omitted.
        provider: LLM provider override (tests inject fakes here).
    """
    if config is None:
        config = load_config()
    if provider is None:
        provider = GenericOpenAIProvider.from_config(config.llm)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        logger.info("Using LLM endpoint: %s", provider.endpoint)
        logger.info("Using model: %s", provider.model)
        app.state.http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.llm.timeout, connect=10.0)
        )
        try:
            yield
        finally:
            await app.state.http_client.aclose()
            app.state.http_client = None

    app = FastAPI(title="genai-chat proxy", lifespan=lifespan)
    app.state.config = config
    app.state.provider = provider
    app.state.http_client = None

    @app.get("/health")
    async def health():
        return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.post("/api/chat")
    async def chat(request: Request):
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse({"error": "Request body must be JSON"}, status_code=400)

        message = _extract_message(body)
        if message is None:
            return JSONResponse(
                {"error": "Request must include a 'message' string"}, status_code=400
            )

        if message == MODEL_INFO_COMMAND:
            return {"model": provider.model}

        try:
            # Without a running lifespan the provider opens its own client
            response = await provider.acomplete(
                config.llm.system_prompt, message, client=request.app.state.http_client
            )
        except LLMProviderError as e:
            logger.error("Error calling LLM API: %s", e)
            return JSONResponse({"error": LLM_FAILURE_MESSAGE}, status_code=500)
        return {"response": response}

    # Mounted last so the API routes take precedence over the catch-all
    static_dir = config.server.static_dir
    if static_dir and Path(static_dir).is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    elif static_dir:
        logger.warning("Static directory not found, not serving assets: %s", static_dir)

    return app
