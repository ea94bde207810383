"""Configuration loading, validation, and defaults."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv

from .types import ChatConfig, GenaiChatConfig, LLMConfig, ServerConfig, StorageConfig

CONFIG_FILENAMES = [
    "genai-chat.yaml",
    "genai-chat.yml",
    "genai-chat.json",
]

STORAGE_BACKENDS = ("filesystem", "sqlite", "memory")

# Environment variable -> (section, field, converter)
ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "LLM_BASE_URL": ("llm", "base_url", str),
    "LLM_MODEL_NAME": ("llm", "model", str),
    "LLM_API_KEY": ("llm", "api_key", str),
    "PORT": ("server", "port", int),
    "GENAI_CHAT_SERVER_URL": ("chat", "server_url", str),
}


def _discover_config() -> Path | None:
    """Search CWD then parent dirs up to home for a config file."""
    cwd = Path.cwd()
    home = Path.home()
    search = cwd
    while True:
        for name in CONFIG_FILENAMES:
            candidate = search / name
            if candidate.is_file():
                return candidate
        if search == home or search == search.parent:
            break
        search = search.parent
    return None


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name) or {}
    return value if isinstance(value, dict) else {}


def _build_config(raw: dict[str, Any]) -> GenaiChatConfig:
    """Build a GenaiChatConfig from a raw dict."""
    defaults = GenaiChatConfig()

    llm_raw = _section(raw, "llm")
    llm = LLMConfig(
        base_url=llm_raw.get("base_url", defaults.llm.base_url),
        model=llm_raw.get("model", defaults.llm.model),
        api_key=llm_raw.get("api_key", defaults.llm.api_key),
        system_prompt=llm_raw.get("system_prompt", defaults.llm.system_prompt),
        timeout=float(llm_raw.get("timeout", defaults.llm.timeout)),
        temperature=llm_raw.get("temperature", defaults.llm.temperature),
    )

    server_raw = _section(raw, "server")
    server = ServerConfig(
        host=server_raw.get("host", defaults.server.host),
        port=int(server_raw.get("port", defaults.server.port)),
        static_dir=server_raw.get("static_dir", defaults.server.static_dir),
    )

    storage_raw = _section(raw, "storage")
    root = storage_raw.get("root", defaults.storage.root)
    storage = StorageConfig(
        backend=storage_raw.get("backend", defaults.storage.backend),
        root=root,
        sqlite_path=storage_raw.get("sqlite_path", str(Path(root) / "chats.db")),
        key=storage_raw.get("key", defaults.storage.key),
    )

    chat_raw = _section(raw, "chat")
    chat = ChatConfig(
        server_url=chat_raw.get("server_url", defaults.chat.server_url),
        prompt_suffix=chat_raw.get("prompt_suffix", defaults.chat.prompt_suffix) or "",
        scroll_threshold=int(chat_raw.get("scroll_threshold", defaults.chat.scroll_threshold)),
    )

    return GenaiChatConfig(
        version=str(raw.get("version", defaults.version)),
        llm=llm,
        server=server,
        storage=storage,
        chat=chat,
    )


def apply_env_overrides(
    config: GenaiChatConfig,
    environ: dict[str, str] | None = None,
) -> GenaiChatConfig:
    """Overlay environment variables (see ``ENV_OVERRIDES``) onto config."""
    env = os.environ if environ is None else environ
    for var, (section, field_name, convert) in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            setattr(getattr(config, section), field_name, convert(value))
    return config


def validate_config(config: GenaiChatConfig) -> list[str]:
    """Validate a config. Returns list of error strings (empty = valid)."""
    errors: list[str] = []

    if not config.llm.base_url.startswith(("http://", "https://")):
        errors.append(f"llm.base_url must be an http(s) URL, got '{config.llm.base_url}'")

    if not config.llm.model:
        errors.append("llm.model must not be empty")

    if config.llm.timeout <= 0:
        errors.append("llm.timeout must be > 0")

    if not 0 < config.server.port < 65536:
        errors.append(f"server.port out of range: {config.server.port}")

    if config.storage.backend not in STORAGE_BACKENDS:
        errors.append(
            f"Unknown storage backend '{config.storage.backend}' "
            f"(expected one of: {', '.join(STORAGE_BACKENDS)})"
        )

    if not config.storage.key:
        errors.append("storage.key must not be empty")

    if config.chat.scroll_threshold < 0:
        errors.append("chat.scroll_threshold must be >= 0")

    if config.chat.server_url and not config.chat.server_url.startswith(("http://", "https://")):
        errors.append(f"chat.server_url must be an http(s) URL, got '{config.chat.server_url}'")

    return errors


def load_config(
    config_path: str | Path | None = None,
    config_dict: dict | None = None,
    *,
    use_env: bool = True,
) -> GenaiChatConfig:
    """Load config from dict, explicit path, or auto-discover.

    For file or discovered configs, unless ``use_env`` is False, a ``.env``
    file is loaded and environment variables override file values. A
    ``config_dict`` is taken as-is.
    """
    if config_dict is not None:
        return _build_config(config_dict)

    path = Path(config_path) if config_path is not None else _discover_config()
    if path is None:
        config = _build_config({})
    elif not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")
    else:
        text = path.read_text()
        if path.suffix == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.safe_load(text) or {}
        config = _build_config(raw)

    if use_env:
        load_dotenv(find_dotenv(usecwd=True))
        apply_env_overrides(config)
    return config
