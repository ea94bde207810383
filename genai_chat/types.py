"""All dataclasses, Protocols, and type aliases for genai-chat."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Protocol, runtime_checkable

Role = Literal["user", "assistant"]

ROLES: tuple[str, ...] = ("user", "assistant")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Message & Conversation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChatMessage:
    """One chat bubble. Immutable once appended."""
    role: str  # "user" or "assistant"
    content: str
    timestamp: datetime = field(default_factory=utc_now)


@dataclass
class Conversation:
    """A named thread of messages with its own lifecycle."""
    id: str
    name: str
    messages: list[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    last_activity: datetime = field(default_factory=utc_now)

    @property
    def user_message_count(self) -> int:
        return sum(1 for m in self.messages if m.role == "user")

    @property
    def last_message(self) -> ChatMessage | None:
        return self.messages[-1] if self.messages else None


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class LLMProviderError(Exception):
    def __init__(self, message: str, provider: str, status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ChatClientError(Exception):
    """The chat proxy could not produce a reply."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SnapshotDecodeError(ValueError):
    """Persisted conversation data is unparsable or schema-invalid."""


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------

@runtime_checkable
class ChatBackend(Protocol):
    """Anything that turns one user message into one assistant reply."""

    async def send_message(self, text: str) -> str: ...

    async def model_info(self) -> str: ...


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class LLMConfig:
    base_url: str = "http://172.17.0.1:12434/engines/llama.cpp/v1"
    model: str = "ignaciolopezluna020/llama3.2:1b"
    api_key: str = "not-needed"
    system_prompt: str = "You are a helpful assistant."
    timeout: float = 300.0
    temperature: float | None = None


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8080
    static_dir: str | None = None  # built web client, served at "/" when present


@dataclass
class StorageConfig:
    backend: str = "filesystem"  # "filesystem", "sqlite" or "memory"
    root: str = ".genai-chat"
    sqlite_path: str = ".genai-chat/chats.db"
    key: str = "genai-chats"


@dataclass
class ChatConfig:
    server_url: str | None = None  # None: talk to the LLM directly
    prompt_suffix: str = " en español"  # appended to the text sent upstream, never stored
    scroll_threshold: int = 3  # rows from the bottom that still count as "near"


@dataclass
class GenaiChatConfig:
    version: str = "1.0"
    llm: LLMConfig = field(default_factory=LLMConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
