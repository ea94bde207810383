"""ChatApp: Textual application wiring the session store, backend, and TUI together."""

from __future__ import annotations

import logging

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.logging import TextualHandler
from textual.widgets import Footer, Static

from ..core.chat_session import FALLBACK_MODEL_NAME, ChatSession
from ..core.session_store import SessionStore
from ..core.store import SnapshotStore
from ..providers import build_backend
from ..storage import build_snapshot_store
from ..types import ChatBackend, GenaiChatConfig
from .modals.confirm import ConfirmModal
from .modals.rename import RenameModal
from .view import TextualView
from .widgets.chat_view import ChatView
from .widgets.input_box import InputBox
from .widgets.thread_list import ThreadList

THINKING_LABEL = "Pensando..."


class ChatApp(App):
    """Multi-conversation chat with a thread sidebar."""

    CSS = """
    #main-layout {
        height: 1fr;
    }
    #sidebar {
        width: 36;
        border-right: solid $primary;
    }
    #thread-list {
        height: 1fr;
    }
    #chat-area {
        width: 1fr;
    }
    #chat-title {
        height: 1;
        padding: 0 1;
        background: $boost;
    }
    #chat-view {
        height: 1fr;
        padding: 0 1;
    }
    #input-box {
        height: 5;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+t", "new_chat", "New Chat", priority=True),
        Binding("ctrl+r", "rename_chat", "Rename", priority=True),
        Binding("ctrl+d", "delete_chat", "Delete", priority=True),
        Binding("ctrl+l", "clear_all", "Clear All", priority=True),
        Binding("ctrl+b", "prev_chat", "Prev Chat", priority=True),
        Binding("ctrl+f", "next_chat", "Next Chat", priority=True),
    ]

    def __init__(
        self,
        config: GenaiChatConfig,
        backend: ChatBackend,
        snapshot_store: SnapshotStore | None = None,
        replay_prompts: list[str] | None = None,
    ) -> None:
        super().__init__()
        self.config = config
        self._replay_prompts: list[str] = replay_prompts or []
        self._replaying = False
        self._backend = backend
        self._snapshot_store = snapshot_store
        self.store: SessionStore | None = None
        self.session: ChatSession | None = None
        self.model_name = FALLBACK_MODEL_NAME

    def compose(self) -> ComposeResult:
        with Horizontal(id="main-layout"):
            with Vertical(id="sidebar"):
                yield ThreadList(id="thread-list")
            with Vertical(id="chat-area"):
                yield Static("", id="chat-title")
                yield ChatView(
                    scroll_threshold=self.config.chat.scroll_threshold, id="chat-view"
                )
                yield InputBox(id="input-box")
        yield Footer()

    def on_mount(self) -> None:
        if self._snapshot_store is None:
            self._snapshot_store = build_snapshot_store(self.config.storage)
        view = TextualView(
            self._chat_view, self._thread_list, self.query_one("#chat-title", Static)
        )
        self.store = SessionStore(
            self._snapshot_store, view, storage_key=self.config.storage.key
        )
        self.store.initialize()
        self.session = ChatSession(
            self.store, self._backend, prompt_suffix=self.config.chat.prompt_suffix
        )
        self.sub_title = self.model_name
        self._load_model_info()
        if self._replay_prompts:
            self._replaying = True
            self._input_box.disabled = True
            self._run_replay()
        else:
            self._input_box.focus()

    @property
    def _chat_view(self) -> ChatView:
        return self.query_one("#chat-view", ChatView)

    @property
    def _thread_list(self) -> ThreadList:
        return self.query_one("#thread-list", ThreadList)

    @property
    def _input_box(self) -> InputBox:
        return self.query_one("#input-box", InputBox)

    @work(group="send")
    async def _run_replay(self) -> None:
        """Send queued replay prompts one after another into the active conversation."""
        try:
            for prompt in self._replay_prompts:
                await self.session.send(prompt)
        finally:
            self._replaying = False
            self._sync_input_state()

    @work(exclusive=True, group="model-info")
    async def _load_model_info(self) -> None:
        self.model_name = await self.session.model_name()
        self._input_box.placeholder = f"Envía un mensaje a {self.model_name}..."
        self._sync_input_state()

    def on_input_box_message_submitted(self, event: InputBox.MessageSubmitted) -> None:
        if self.session is None or self._replaying or self.session.is_busy():
            return
        # Disabled before the worker starts so a second Enter cannot slip in
        self._input_box.disabled = True
        self.sub_title = THINKING_LABEL
        self._send_message(event.text)

    @work(group="send")
    async def _send_message(self, text: str) -> None:
        try:
            await self.session.send(text)
        finally:
            self._sync_input_state()

    def _sync_input_state(self) -> None:
        """Enable input unless the active conversation awaits a reply."""
        busy = self._replaying or (self.session is not None and self.session.is_busy())
        self._input_box.disabled = busy
        self.sub_title = THINKING_LABEL if busy else self.model_name
        if not busy and not isinstance(self.screen, (RenameModal, ConfirmModal)):
            self._input_box.focus()

    def action_new_chat(self) -> None:
        self.store.create_conversation()
        self._sync_input_state()

    def action_rename_chat(self) -> None:
        conversation = self.store.active_conversation()
        if conversation is None:
            return

        def apply(name: str | None) -> None:
            if name is not None:
                self.store.rename(conversation.id, name)
            self._sync_input_state()

        self.push_screen(RenameModal(conversation.name), apply)

    def action_delete_chat(self) -> None:
        conversation = self.store.active_conversation()
        if conversation is None:
            return

        def apply(confirmed: bool | None) -> None:
            if confirmed:
                self.store.delete(conversation.id)
            self._sync_input_state()

        self.push_screen(ConfirmModal(f"¿Eliminar «{conversation.name}»?"), apply)

    def action_clear_all(self) -> None:
        def apply(confirmed: bool | None) -> None:
            if confirmed:
                self.store.clear_all()
            self._sync_input_state()

        self.push_screen(
            ConfirmModal("¿Eliminar todas las conversaciones? No se puede deshacer."),
            apply,
        )

    def action_prev_chat(self) -> None:
        """Select the more recent neighbour in the thread list."""
        self._switch_relative(-1)

    def action_next_chat(self) -> None:
        """Select the older neighbour in the thread list."""
        self._switch_relative(1)

    def _switch_relative(self, step: int) -> None:
        target = self._thread_list.neighbour(step)
        if target is not None:
            self.store.switch_to(target)
            self._sync_input_state()


def run_chat(
    config: GenaiChatConfig,
    backend: ChatBackend | None = None,
    snapshot_store: SnapshotStore | None = None,
    replay_prompts: list[str] | None = None,
) -> None:
    """Entry point for the TUI chat."""
    logging.basicConfig(level=logging.INFO, handlers=[TextualHandler()], force=True)
    app = ChatApp(
        config,
        backend if backend is not None else build_backend(config),
        snapshot_store=snapshot_store,
        replay_prompts=replay_prompts,
    )
    try:
        app.run()
    finally:
        if app.store is not None:
            app.store.close()
