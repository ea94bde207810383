"""Modal for renaming the active conversation."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Static


class RenameModal(ModalScreen[str | None]):
    """Prompts for a new conversation name.

    Dismisses with the typed text on Enter, or None on Escape. Blank names
    are passed through; the store falls back to the default name.
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    DEFAULT_CSS = """
    RenameModal {
        align: center middle;
    }
    RenameModal > Vertical {
        width: 60;
        height: auto;
        border: thick $accent;
        background: $surface;
        padding: 1 2;
    }
    RenameModal #rename-hint {
        margin-top: 1;
    }
    """

    def __init__(self, current_name: str) -> None:
        super().__init__()
        self._current_name = current_name

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("[bold]Renombrar chat[/bold]")
            yield Input(value=self._current_name, id="rename-input")
            yield Static("[dim]Enter to save, Escape to cancel[/dim]", id="rename-hint")

    def on_mount(self) -> None:
        self.query_one("#rename-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.dismiss(event.value)

    def action_cancel(self) -> None:
        self.dismiss(None)
