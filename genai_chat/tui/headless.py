"""Headless replay runner: no TUI, same store + session pipeline."""

from __future__ import annotations

import asyncio
import sys
import time
from collections.abc import Sequence
from typing import TextIO

from ..core.chat_session import ChatSession
from ..core.session_store import SessionStore
from ..core.store import SnapshotStore
from ..storage import build_snapshot_store
from ..types import ChatBackend, ChatMessage, Conversation, GenaiChatConfig
from ..view import ROLE_LABELS, ScrollAwareView


class ConsoleView(ScrollAwareView):
    """Writes the conversation as plain lines to a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def render_thread_list(self, conversations, active_id) -> None:
        pass

    def render_active_conversation(
        self, name: str, messages: Sequence[ChatMessage]
    ) -> None:
        # History is not replayed; only new messages are printed
        self.update_title(name)
        print(f"  ({len(messages)} earlier messages)", file=self._stream)

    def update_title(self, name: str) -> None:
        print(f"== {name} ==", file=self._stream)

    def is_viewer_near_bottom(self) -> bool:
        return True

    def _clear_messages(self) -> None:
        pass

    def _write_message(self, role: str, content: str) -> None:
        print(f"{ROLE_LABELS[role]}: {content}", file=self._stream)

    def _scroll_to_end(self) -> None:
        pass


class HeadlessRunner:
    """Send prompts through the chat session without a terminal UI.

    Conversations are persisted to the configured store exactly as the
    interactive TUI would. Progress goes to ``stream`` (stderr by default).
    """

    def __init__(
        self,
        config: GenaiChatConfig,
        backend: ChatBackend,
        snapshot_store: SnapshotStore | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self._stream = stream if stream is not None else sys.stderr
        self.view = ConsoleView(self._stream)
        self.store = SessionStore(
            snapshot_store if snapshot_store is not None else build_snapshot_store(config.storage),
            self.view,
            storage_key=config.storage.key,
        )
        self.store.initialize()
        self.session = ChatSession(
            self.store, backend, prompt_suffix=config.chat.prompt_suffix
        )

    def run(self, prompts: Sequence[str], new_conversation: bool = True) -> Conversation:
        """Execute prompts sequentially in one conversation and return it."""
        return asyncio.run(self.arun(prompts, new_conversation=new_conversation))

    async def arun(
        self, prompts: Sequence[str], new_conversation: bool = True
    ) -> Conversation:
        active = self.store.active_conversation()
        # Reuse an untouched conversation instead of leaving an empty one behind
        if new_conversation and (active is None or active.messages):
            active = self.store.create_conversation()

        total = len(prompts)
        for i, prompt in enumerate(prompts, 1):
            print(f"Replay [{i}/{total}]", file=self._stream)
            t0 = time.perf_counter()
            reply = await self.session.send(prompt)
            elapsed_ms = (time.perf_counter() - t0) * 1000
            if reply is None:
                print(f"Turn {i}/{total}: skipped", file=self._stream)
            else:
                print(
                    f"Turn {i}/{total}: {len(reply.content)} chars [{elapsed_ms:.0f}ms]",
                    file=self._stream,
                )

        print(f"Replay complete. {total} turns sent.", file=self._stream)
        return self.store.get(active.id)
