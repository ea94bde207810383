"""Conversation list, most recent first."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from rich.markup import escape
from textual.widgets import RichLog

from ...naming import preview_text, time_ago
from ...types import Conversation


class ThreadList(RichLog):
    """Lists conversations with preview and age. Ctrl+B/F to navigate.

    Uses RichLog for native scrolling; the whole list is redrawn on every
    update since ordering changes with each message.
    """

    DEFAULT_CSS = """
    ThreadList {
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(wrap=True, markup=True, **kwargs)
        self._threads: list[Conversation] = []
        self._active_id: str | None = None

    @property
    def thread_ids(self) -> list[str]:
        return [c.id for c in self._threads]

    @property
    def active_id(self) -> str | None:
        return self._active_id

    def update_threads(
        self,
        conversations: Sequence[Conversation],
        active_id: str | None,
        now: datetime | None = None,
    ) -> None:
        self._threads = list(conversations)
        self._active_id = active_id
        self._refresh_display(now)

    def neighbour(self, step: int) -> str | None:
        """Id of the thread ``step`` rows away from the active one, if any."""
        ids = self.thread_ids
        if not ids or self._active_id not in ids:
            return None
        idx = ids.index(self._active_id) + step
        if 0 <= idx < len(ids):
            return ids[idx]
        return None

    def _refresh_display(self, now: datetime | None = None) -> None:
        self.clear()
        self.write(f"[bold]CHATS[/bold]  [dim]{len(self._threads)}[/dim]")

        active_row = 0
        for i, conv in enumerate(self._threads):
            name = escape(conv.name)
            age = time_ago(conv.last_activity, now)
            if conv.id == self._active_id:
                active_row = 1 + i * 2
                self.write(f"[bold reverse]> {name}[/bold reverse] [dim]{age}[/dim]")
            else:
                self.write(f"  {name} [dim]{age}[/dim]")
            self.write(f"    [dim]{escape(preview_text(conv))}[/dim]")

        self.write("")
        self.write("[dim]Ctrl+T new, Ctrl+R rename, Ctrl+D delete[/dim]")
        self.scroll_to_line(active_row)

    def scroll_to_line(self, line: int) -> None:
        """Scroll so that the given line index is near the middle of the view."""
        height = self.size.height
        if height:
            self.scroll_to(y=max(0, line - height // 2), animate=False)
