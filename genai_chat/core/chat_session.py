"""ChatSession: the send flow between the session store and a chat backend."""

from __future__ import annotations

import asyncio
import logging

from ..types import ChatBackend, ChatClientError, ChatMessage, LLMProviderError
from .session_store import SessionStore

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Lo siento, encontré un error. Por favor, inténtalo de nuevo."
FALLBACK_MODEL_NAME = "AI Language Model"


class ChatSession:
    """Sends user messages and files the replies.

    Sends are serialized per conversation: a second send to the same thread
    waits until the first reply has been appended. A reply always goes to
    the thread that was active when the send started; if that thread is
    deleted in the meantime the reply is dropped.
    """

    def __init__(
        self,
        store: SessionStore,
        backend: ChatBackend,
        *,
        prompt_suffix: str = "",
    ) -> None:
        self.store = store
        self.backend = backend
        self.prompt_suffix = prompt_suffix
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending: dict[str, int] = {}

    def is_busy(self, conversation_id: str | None = None) -> bool:
        """True while a send for the conversation (default: active) is outstanding."""
        if conversation_id is None:
            conversation_id = self.store.active_conversation_id()
        return bool(conversation_id and self._pending.get(conversation_id))

    async def send(self, text: str) -> ChatMessage | None:
        """Append ``text`` as a user message, then the backend's reply.

        Backend failures are turned into an assistant apology. Returns the
        assistant message, or None if nothing was sent or the thread vanished.
        """
        text = text.strip()
        if not text:
            return None
        conversation_id = self.store.active_conversation_id()
        if conversation_id is None:
            return None

        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._pending[conversation_id] = self._pending.get(conversation_id, 0) + 1
        try:
            async with lock:
                if conversation_id not in self.store:
                    logger.info("Conversation %s deleted before send", conversation_id)
                    return None
                self.store.append_message("user", text, conversation_id=conversation_id)

                try:
                    reply = await self.backend.send_message(text + self.prompt_suffix)
                except (ChatClientError, LLMProviderError) as e:
                    logger.error("Chat request failed: %s", e)
                    reply = APOLOGY_MESSAGE

                if conversation_id not in self.store:
                    logger.info(
                        "Conversation %s deleted while awaiting reply; dropping it",
                        conversation_id,
                    )
                    return None
                return self.store.append_message(
                    "assistant", reply, conversation_id=conversation_id
                )
        finally:
            remaining = self._pending[conversation_id] - 1
            if remaining:
                self._pending[conversation_id] = remaining
            else:
                del self._pending[conversation_id]
                self._locks.pop(conversation_id, None)

    async def model_name(self) -> str:
        try:
            name = await self.backend.model_info()
        except (ChatClientError, LLMProviderError) as e:
            logger.warning("Model info unavailable: %s", e)
            return FALLBACK_MODEL_NAME
        return name or FALLBACK_MODEL_NAME
