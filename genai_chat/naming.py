"""Display text derived from conversation content: names, previews, ages.

Everything here is pure: the same input always yields the same output.
"""

from __future__ import annotations

import re
from datetime import datetime

from .types import Conversation, utc_now

DEFAULT_CHAT_NAME = "Nuevo Chat"
EMPTY_PREVIEW = "Sin mensajes"
ELLIPSIS = "..."

MAX_NAME_CHARS = 40
WORD_BOUNDARY_MIN = 20  # a space must sit past this index to be used as the cut
MAX_PREVIEW_CHARS = 50

# One leading question word, optionally preceded by an opening ¿ or ¡
_QUESTION_WORDS = (
    "qué", "cómo", "cuál", "cuándo", "dónde", "por qué", "quién",
    "what", "how", "which", "when", "where", "why", "who",
)
_LEADING_QUESTION_RE = re.compile(
    r"^[¿¡]?(?:" + "|".join(re.escape(w) for w in _QUESTION_WORDS) + r")\s+",
    flags=re.IGNORECASE,
)


def default_chat_name(n: int) -> str:
    return f"Chat {n}"


def generate_chat_name(first_message: str) -> str:
    """Derive a short thread name from the first user message.

    Strips a single leading interrogative ("¿Qué", "how", ...), cuts the
    rest to 40 characters (backing off to the last word boundary when it
    lies past character 20) and capitalizes the first letter.
    """
    name = first_message.strip()
    name = _LEADING_QUESTION_RE.sub("", name, count=1)

    if len(name) > MAX_NAME_CHARS:
        name = name[:MAX_NAME_CHARS].strip()
        last_space = name.rfind(" ")
        if last_space > WORD_BOUNDARY_MIN:
            name = name[:last_space]
        name += ELLIPSIS

    name = name[:1].upper() + name[1:]
    return name or DEFAULT_CHAT_NAME


def truncate(text: str, limit: int = MAX_PREVIEW_CHARS) -> str:
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def preview_text(conversation: Conversation) -> str:
    """Thread-list preview: the last message, or a placeholder."""
    last = conversation.last_message
    if last is None:
        return EMPTY_PREVIEW
    return truncate(last.content)


def time_ago(instant: datetime, now: datetime | None = None) -> str:
    """Compact age label: "3d", "5h", "12m" or "ahora"."""
    now = now or utc_now()
    seconds = (now - instant).total_seconds()
    days = int(seconds // 86_400)
    hours = int(seconds // 3_600)
    minutes = int(seconds // 60)
    if days > 0:
        return f"{days}d"
    if hours > 0:
        return f"{hours}h"
    if minutes > 0:
        return f"{minutes}m"
    return "ahora"
