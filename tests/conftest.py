"""Shared fixtures for genai-chat tests."""

from __future__ import annotations

import asyncio
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from genai_chat.config import load_config
from genai_chat.core.session_store import SessionStore
from genai_chat.storage.memory import MemorySnapshotStore
from genai_chat.types import ChatClientError, GenaiChatConfig
from genai_chat.view import ScrollAwareView


class FakeClock:
    """Deterministic clock; each call advances by ``step``."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.now = start or datetime(2026, 1, 15, 10, 0, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


class RecordingView(ScrollAwareView):
    """View adapter that records every render call instead of drawing."""

    def __init__(self, near_bottom: bool = True):
        self.near_bottom = near_bottom
        self.calls: list[tuple] = []
        self.thread_lists: list[tuple[list[str], str | None]] = []
        self.titles: list[str] = []
        self.messages: list[tuple[str, str]] = []
        self.scrolls = 0

    def render_thread_list(self, conversations, active_id) -> None:
        self.calls.append(("render_thread_list",))
        self.thread_lists.append(([c.id for c in conversations], active_id))

    def render_active_conversation(self, name, messages) -> None:
        self.calls.append(("render_active_conversation", name, len(messages)))
        super().render_active_conversation(name, messages)

    def update_title(self, name: str) -> None:
        self.calls.append(("update_title", name))
        self.titles.append(name)

    def is_viewer_near_bottom(self) -> bool:
        return self.near_bottom

    def _clear_messages(self) -> None:
        self.messages.clear()

    def _write_message(self, role: str, content: str) -> None:
        self.calls.append(("append_message_view", role, content))
        self.messages.append((role, content))

    def _scroll_to_end(self) -> None:
        self.scrolls += 1

    @property
    def last_thread_list(self) -> tuple[list[str], str | None]:
        return self.thread_lists[-1]


class FakeBackend:
    """Chat backend returning canned replies (no network)."""

    def __init__(self, responses: list[str] | None = None, model: str = "fake-model"):
        self.model = model
        self.sent: list[str] = []
        self._responses = responses or ["Hello! I'm a test assistant."]
        self._call_count = 0

    async def send_message(self, text: str) -> str:
        self.sent.append(text)
        idx = min(self._call_count, len(self._responses) - 1)
        self._call_count += 1
        return self._responses[idx]

    async def model_info(self) -> str:
        return self.model


class FailingBackend:
    """Chat backend whose every call fails like an unreachable proxy."""

    def __init__(self):
        self.sent: list[str] = []

    async def send_message(self, text: str) -> str:
        self.sent.append(text)
        raise ChatClientError("HTTP 500", status_code=500)

    async def model_info(self) -> str:
        raise ChatClientError("connection refused")


class GatedBackend:
    """Chat backend that holds each reply until ``release()`` is called."""

    def __init__(self, reply: str = "late reply"):
        self.reply = reply
        self.sent: list[str] = []
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def send_message(self, text: str) -> str:
        self.sent.append(text)
        await self._gate.wait()
        return self.reply

    async def model_info(self) -> str:
        return "gated-model"


class FakeLLMProvider:
    """Stands in for GenericOpenAIProvider inside the proxy app."""

    def __init__(self, response: str = "Hola desde el modelo", model: str = "test-model"):
        self.model = model
        self.endpoint = "http://llm.test/v1/chat/completions"
        self.response = response
        self.calls: list[dict] = []

    async def acomplete(self, system: str, user: str, max_tokens=None, client=None) -> str:
        self.calls.append({"system": system, "user": user})
        return self.response


@pytest.fixture
def tmp_store_dir():
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def tmp_sqlite_db(tmp_store_dir):
    return tmp_store_dir / "test_chats.db"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_snapshots() -> MemorySnapshotStore:
    return MemorySnapshotStore()


@pytest.fixture
def view() -> RecordingView:
    return RecordingView()


@pytest.fixture
def store(memory_snapshots, view, clock) -> SessionStore:
    s = SessionStore(memory_snapshots, view, clock=clock)
    s.initialize()
    return s


@pytest.fixture
def memory_config() -> GenaiChatConfig:
    return load_config(config_dict={"storage": {"backend": "memory"}})
