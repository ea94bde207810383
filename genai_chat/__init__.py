"""genai-chat: multi-conversation chat client and proxy for OpenAI-compatible LLMs."""

from .config import load_config
from .core.chat_session import ChatSession
from .core.session_store import SessionStore
from .naming import generate_chat_name, preview_text
from .types import (
    ChatMessage,
    Conversation,
    GenaiChatConfig,
)
from .view import NullView, ScrollAwareView, ViewAdapter

__version__ = "0.1.0"

__all__ = [
    "SessionStore",
    "ChatSession",
    "load_config",
    "generate_chat_name",
    "preview_text",
    "ChatMessage",
    "Conversation",
    "GenaiChatConfig",
    "NullView",
    "ScrollAwareView",
    "ViewAdapter",
]
