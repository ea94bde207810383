"""View contract the session store renders into, plus the scroll policy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from .types import ChatMessage, Conversation

NEAR_BOTTOM_THRESHOLD = 100

# Speaker labels shared by every renderer
ROLE_LABELS = {"user": "Tú", "assistant": "Asistente"}


@runtime_checkable
class ViewAdapter(Protocol):
    """Rendering surface driven by ``SessionStore``."""

    def render_thread_list(
        self, conversations: Sequence[Conversation], active_id: str | None
    ) -> None: ...

    def render_active_conversation(
        self, name: str, messages: Sequence[ChatMessage]
    ) -> None: ...

    def update_title(self, name: str) -> None: ...

    def append_message_view(self, role: str, content: str, should_scroll: bool) -> None: ...

    def is_viewer_near_bottom(self) -> bool: ...


def is_near_bottom(
    offset: float,
    viewport: float,
    content: float,
    threshold: float = NEAR_BOTTOM_THRESHOLD,
) -> bool:
    """True when the visible window ends within ``threshold`` of the content end."""
    return offset + viewport >= content - threshold


def should_reveal(role: str, should_scroll: bool, was_near_bottom: bool) -> bool:
    """Whether appending a message may move the viewport to it.

    The caller must ask for it, and either the local user wrote the message
    or the reader was already following the bottom of the conversation.
    """
    return should_scroll and (role == "user" or was_near_bottom)


class ScrollAwareView(ABC):
    """Base for concrete views: applies the scroll policy around two primitives.

    Subclasses draw a message with ``_write_message`` and jump to the end
    with ``_scroll_to_end``; the near-bottom probe is taken before drawing.
    """

    def append_message_view(self, role: str, content: str, should_scroll: bool) -> None:
        was_near_bottom = self.is_viewer_near_bottom()
        self._write_message(role, content)
        if should_reveal(role, should_scroll, was_near_bottom):
            self._scroll_to_end()

    def render_active_conversation(
        self, name: str, messages: Sequence[ChatMessage]
    ) -> None:
        self.update_title(name)
        self._clear_messages()
        last = len(messages) - 1
        for i, message in enumerate(messages):
            self.append_message_view(message.role, message.content, i == last)

    @abstractmethod
    def render_thread_list(
        self, conversations: Sequence[Conversation], active_id: str | None
    ) -> None: ...

    @abstractmethod
    def update_title(self, name: str) -> None: ...

    @abstractmethod
    def is_viewer_near_bottom(self) -> bool: ...

    @abstractmethod
    def _clear_messages(self) -> None: ...

    @abstractmethod
    def _write_message(self, role: str, content: str) -> None: ...

    @abstractmethod
    def _scroll_to_end(self) -> None: ...


class NullView:
    """Renders nothing. For scripted use of the store (CLI, exports)."""

    def render_thread_list(self, conversations, active_id) -> None:
        pass

    def render_active_conversation(self, name, messages) -> None:
        pass

    def update_title(self, name: str) -> None:
        pass

    def append_message_view(self, role: str, content: str, should_scroll: bool) -> None:
        pass

    def is_viewer_near_bottom(self) -> bool:
        return True
