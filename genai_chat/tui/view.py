"""Bridges the session store's view calls onto the Textual widgets."""

from __future__ import annotations

from collections.abc import Sequence

from rich.markup import escape
from textual.widgets import Static

from ..types import Conversation
from ..view import ScrollAwareView
from .widgets.chat_view import ChatView
from .widgets.thread_list import ThreadList


class TextualView(ScrollAwareView):
    """View adapter driving the thread list, title bar and chat log."""

    def __init__(self, chat_view: ChatView, thread_list: ThreadList, title: Static) -> None:
        self._chat_view = chat_view
        self._thread_list = thread_list
        self._title = title

    def render_thread_list(
        self, conversations: Sequence[Conversation], active_id: str | None
    ) -> None:
        self._thread_list.update_threads(conversations, active_id)

    def update_title(self, name: str) -> None:
        self._title.update(f"[bold]{escape(name)}[/bold]")

    def is_viewer_near_bottom(self) -> bool:
        return self._chat_view.is_near_bottom()

    def _clear_messages(self) -> None:
        self._chat_view.reset()

    def _write_message(self, role: str, content: str) -> None:
        self._chat_view.add_message(role, content)

    def _scroll_to_end(self) -> None:
        self._chat_view.scroll_end(animate=False)
