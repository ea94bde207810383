"""Snapshot codec: the whole conversation set as one JSON document."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from ..naming import default_chat_name
from ..types import ROLES, ChatMessage, Conversation, SnapshotDecodeError


def dt_to_str(dt: datetime) -> str:
    return dt.isoformat()


def str_to_dt(value: str | int | float) -> datetime:
    """Parse an ISO-8601 string or an epoch-milliseconds number."""
    if isinstance(value, bool):
        raise SnapshotDecodeError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if not isinstance(value, str):
        raise SnapshotDecodeError(f"Invalid timestamp: {value!r}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(value)
    except ValueError as e:
        raise SnapshotDecodeError(f"Invalid timestamp: {value!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def message_to_dict(message: ChatMessage) -> dict:
    return {
        "role": message.role,
        "content": message.content,
        "timestamp": dt_to_str(message.timestamp),
    }


def conversation_to_dict(conversation: Conversation) -> dict:
    return {
        "id": conversation.id,
        "name": conversation.name,
        "messages": [message_to_dict(m) for m in conversation.messages],
        "createdAt": dt_to_str(conversation.created_at),
        "lastActivity": dt_to_str(conversation.last_activity),
    }


def encode_conversations(conversations: Iterable[Conversation]) -> str:
    return json.dumps(
        [conversation_to_dict(c) for c in conversations],
        ensure_ascii=False,
    )


def _require(raw: dict, key: str, kind: type | tuple[type, ...]) -> Any:
    if key not in raw:
        raise SnapshotDecodeError(f"Missing field '{key}'")
    value = raw[key]
    if not isinstance(value, kind):
        raise SnapshotDecodeError(f"Field '{key}' has type {type(value).__name__}")
    return value


def _message_from_dict(raw: Any) -> ChatMessage:
    if not isinstance(raw, dict):
        raise SnapshotDecodeError("Message record is not an object")
    role = _require(raw, "role", str)
    if role not in ROLES:
        raise SnapshotDecodeError(f"Unknown role: {role!r}")
    return ChatMessage(
        role=role,
        content=_require(raw, "content", str),
        timestamp=str_to_dt(_require(raw, "timestamp", (str, int, float))),
    )


def conversation_from_dict(raw: Any, position: int = 0) -> Conversation:
    if not isinstance(raw, dict):
        raise SnapshotDecodeError("Conversation record is not an object")
    conv_id = _require(raw, "id", str)
    if not conv_id:
        raise SnapshotDecodeError("Empty conversation id")
    name = _require(raw, "name", str).strip() or default_chat_name(position + 1)
    messages = [_message_from_dict(m) for m in _require(raw, "messages", list)]
    return Conversation(
        id=conv_id,
        name=name,
        messages=messages,
        created_at=str_to_dt(_require(raw, "createdAt", (str, int, float))),
        last_activity=str_to_dt(_require(raw, "lastActivity", (str, int, float))),
    )


def decode_conversations(text: str | None) -> list[Conversation]:
    """Parse a snapshot. Raises ``SnapshotDecodeError`` on any defect.

    Missing or blank input decodes to an empty list.
    """
    if text is None or not text.strip():
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotDecodeError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise SnapshotDecodeError("Snapshot root must be a list")

    conversations: list[Conversation] = []
    seen: set[str] = set()
    for i, raw in enumerate(data):
        conv = conversation_from_dict(raw, position=i)
        if conv.id in seen:
            raise SnapshotDecodeError(f"Duplicate conversation id: {conv.id}")
        seen.add(conv.id)
        conversations.append(conv)
    return conversations
