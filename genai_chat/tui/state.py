"""Reading replay prompts and writing conversation exports."""

from __future__ import annotations

import json
from pathlib import Path


def save_export(conversations: list[dict], path: str | Path) -> Path:
    """Write exported conversations as pretty JSON. Returns the file path."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(conversations, indent=2, ensure_ascii=False), encoding="utf-8")
    return p


def _user_messages(conversation: dict) -> list[str]:
    return [
        m["content"]
        for m in conversation.get("messages", [])
        if isinstance(m, dict) and m.get("role") == "user" and m.get("content")
    ]


def load_replay_prompts(path: str | Path) -> list[str]:
    """Load prompts from an export, a JSON list, or a plain-text file.

    Supported formats:
    - **Export** (``threads export`` output, or a single conversation
      object): the user messages, in order
    - **JSON list of strings**: used as-is
    - **Plain text**: one prompt per line (blank lines ignored)
    """
    text = Path(path).read_text(encoding="utf-8")

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None

    if isinstance(data, dict) and "messages" in data:
        return _user_messages(data)
    if isinstance(data, list):
        prompts: list[str] = []
        for item in data:
            if isinstance(item, str):
                if item.strip():
                    prompts.append(item)
            elif isinstance(item, dict):
                prompts.extend(_user_messages(item))
        return prompts

    return [line.strip() for line in text.splitlines() if line.strip()]
