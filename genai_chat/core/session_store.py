"""SessionStore: the single source of truth for chat threads.

Every mutation persists a full snapshot through a ``SnapshotStore`` and
re-renders the affected parts of the injected ``ViewAdapter``.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterator, Mapping
from datetime import datetime
from types import MappingProxyType

from ..naming import default_chat_name, generate_chat_name
from ..storage.codec import conversation_to_dict, decode_conversations, encode_conversations
from ..types import ROLES, ChatMessage, Conversation, SnapshotDecodeError, utc_now
from ..view import NullView, ViewAdapter
from .store import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "genai-chats"


def _new_uuid() -> str:
    return uuid.uuid4().hex


class SessionStore:
    """Owns conversations, the active-thread pointer, naming and persistence.

    Args:
        snapshot_store: Medium the conversation set is saved to.
        view: Rendering surface. Defaults to a ``NullView``.
        storage_key: Identifier the snapshot is stored under.
        clock: Returns the current instant (tz-aware).
        id_factory: Produces candidate conversation ids.
    """

    def __init__(
        self,
        snapshot_store: SnapshotStore,
        view: ViewAdapter | None = None,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = _new_uuid,
    ) -> None:
        self._snapshots = snapshot_store
        self._view: ViewAdapter = view or NullView()
        self._key = storage_key
        self._clock = clock
        self._id_factory = id_factory
        self._conversations: dict[str, Conversation] = {}
        self._active_id: str | None = None
        self._issued_ids: set[str] = set()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def conversations(self) -> Mapping[str, Conversation]:
        return MappingProxyType(self._conversations)

    @property
    def view(self) -> ViewAdapter:
        return self._view

    def active_conversation_id(self) -> str | None:
        return self._active_id

    def active_conversation(self) -> Conversation | None:
        if self._active_id is None:
            return None
        return self._conversations.get(self._active_id)

    def get(self, conversation_id: str) -> Conversation | None:
        return self._conversations.get(conversation_id)

    def sorted_conversations(self) -> list[Conversation]:
        """Conversations by last activity, newest first."""
        return sorted(
            self._conversations.values(),
            key=lambda c: c.last_activity,
            reverse=True,
        )

    def export(self) -> list[dict]:
        return [conversation_to_dict(c) for c in self._conversations.values()]

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations

    def __iter__(self) -> Iterator[Conversation]:
        return iter(list(self._conversations.values()))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load the persisted snapshot and select the most recent thread.

        Malformed data is discarded. When nothing usable was stored a
        default conversation is created.
        """
        self._conversations = {}
        self._active_id = None

        try:
            loaded = decode_conversations(self._snapshots.load(self._key))
        except SnapshotDecodeError as e:
            logger.warning("Discarding malformed conversation snapshot: %s", e)
            loaded = []
        except Exception as e:
            logger.error("Failed to load conversations: %s", e)
            loaded = []

        for conv in loaded:
            self._conversations[conv.id] = conv
            self._issued_ids.add(conv.id)

        if not self._conversations:
            self.create_conversation()
            return

        logger.info("Loaded %d conversations", len(self._conversations))
        self._active_id = self._most_recent().id
        self._refresh_all()

    def close(self) -> None:
        """Release the underlying snapshot store."""
        self._snapshots.close()

    def create_conversation(self) -> Conversation:
        """Add an empty thread with a default name and make it active."""
        now = self._clock()
        conv = Conversation(
            id=self._new_id(),
            name=default_chat_name(len(self._conversations) + 1),
            created_at=now,
            last_activity=now,
        )
        self._conversations[conv.id] = conv
        self._active_id = conv.id
        self._persist()
        self._refresh_all()
        return conv

    def switch_to(self, conversation_id: str) -> None:
        conv = self._conversations.get(conversation_id)
        if conv is None:
            return
        self._active_id = conv.id
        self._refresh_all()

    def rename(self, conversation_id: str, new_name: str) -> None:
        """Rename a thread. A blank name falls back to its positional default."""
        conv = self._conversations.get(conversation_id)
        if conv is None:
            return
        name = new_name.strip()
        if not name:
            position = list(self._conversations).index(conversation_id)
            name = default_chat_name(position + 1)
        conv.name = name
        self._persist()
        self._render_thread_list()
        if conversation_id == self._active_id:
            self._view.update_title(name)

    def delete(self, conversation_id: str) -> None:
        if conversation_id not in self._conversations:
            return
        del self._conversations[conversation_id]
        was_active = conversation_id == self._active_id
        if was_active:
            self._active_id = None
        self._persist()
        self._render_thread_list()

        if was_active:
            if not self._conversations:
                self.create_conversation()
            else:
                self.switch_to(self._most_recent().id)

    def clear_all(self) -> None:
        """Remove every thread, then start a fresh default one."""
        self._conversations.clear()
        self._active_id = None
        self._persist()
        self._render_thread_list()
        self.create_conversation()

    def append_message(
        self,
        role: str,
        content: str,
        should_scroll: bool = True,
        *,
        conversation_id: str | None = None,
    ) -> ChatMessage | None:
        """Append a message to the active thread (or ``conversation_id``).

        The first user message of a thread also names it. Returns the new
        message, or None when the target thread does not exist.
        """
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role!r}")

        target_id = conversation_id if conversation_id is not None else self._active_id
        if target_id is None:
            return None
        conv = self._conversations.get(target_id)
        if conv is None:
            return None

        # Clamp so last_activity never moves backwards if the clock does
        now = max(self._clock(), conv.last_activity)
        is_first_user_message = role == "user" and conv.user_message_count == 0

        message = ChatMessage(role=role, content=content, timestamp=now)
        conv.messages.append(message)
        conv.last_activity = now

        is_active = target_id == self._active_id
        if is_first_user_message:
            conv.name = generate_chat_name(content)
            if is_active:
                self._view.update_title(conv.name)

        self._persist()
        if is_active:
            self._view.append_message_view(role, content, should_scroll)
        self._render_thread_list()
        return message

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_id(self) -> str:
        conv_id = self._id_factory()
        while conv_id in self._issued_ids or conv_id in self._conversations:
            conv_id = self._id_factory()
        self._issued_ids.add(conv_id)
        return conv_id

    def _most_recent(self) -> Conversation:
        return max(self._conversations.values(), key=lambda c: c.last_activity)

    def _persist(self) -> None:
        try:
            payload = encode_conversations(self._conversations.values())
            self._snapshots.save(self._key, payload)
        except Exception as e:
            logger.error("Failed to save conversations: %s", e)

    def _render_thread_list(self) -> None:
        self._view.render_thread_list(self.sorted_conversations(), self._active_id)

    def _refresh_all(self) -> None:
        self._render_thread_list()
        conv = self.active_conversation()
        if conv is not None:
            self._view.render_active_conversation(conv.name, list(conv.messages))
