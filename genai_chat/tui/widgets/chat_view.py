"""Scrollable chat message display."""

from __future__ import annotations

from rich.markup import escape
from textual.widgets import RichLog

from ...view import ROLE_LABELS, is_near_bottom

WELCOME_MESSAGE = "¡Hola! Soy tu asistente de IA. ¿En qué puedo ayudarte hoy?"

_ROLE_LABELS = {
    "user": f"[bold cyan]{ROLE_LABELS['user']}:[/bold cyan]",
    "assistant": f"[bold green]{ROLE_LABELS['assistant']}:[/bold green]",
}


class ChatView(RichLog):
    """Displays the active conversation. Scrolling is left to the caller."""

    def __init__(self, scroll_threshold: int = 3, **kwargs) -> None:
        super().__init__(markup=True, wrap=True, auto_scroll=False, **kwargs)
        self.scroll_threshold = scroll_threshold
        self.message_count = 0

    def reset(self) -> None:
        """Clear everything and show the greeting."""
        self.clear()
        self.message_count = 0
        self.write(f"{_ROLE_LABELS['assistant']} {WELCOME_MESSAGE}", scroll_end=False)
        self.write("", scroll_end=False)

    def add_message(self, role: str, content: str) -> None:
        self.message_count += 1
        self.write(f"{_ROLE_LABELS[role]} {escape(content)}", scroll_end=False)
        self.write("", scroll_end=False)

    def is_near_bottom(self) -> bool:
        return is_near_bottom(
            self.scroll_y,
            self.size.height,
            self.virtual_size.height,
            threshold=self.scroll_threshold,
        )
