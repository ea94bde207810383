"""CLI: genai-chat serve, chat, threads, config validate."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ..config import load_config, validate_config
from ..core.session_store import SessionStore
from ..naming import preview_text, time_ago
from ..storage import build_snapshot_store
from ..view import NullView


def _load(args):
    try:
        return load_config(args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)


def _open_store(config) -> SessionStore:
    store = SessionStore(
        build_snapshot_store(config.storage),
        NullView(),
        storage_key=config.storage.key,
    )
    store.initialize()
    return store


def cmd_serve(args):
    """Run the HTTP proxy."""
    import uvicorn

    from ..proxy import create_app

    config = _load(args)
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port
    if args.static_dir:
        config.server.static_dir = args.static_dir

    errors = validate_config(config)
    if errors:
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        sys.exit(1)

    app = create_app(config)
    print(
        f"genai-chat proxy on {config.server.host}:{config.server.port} "
        f"-> {config.llm.base_url} ({config.llm.model})"
    )
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="debug" if args.verbose else "info",
        timeout_graceful_shutdown=2,
    )


def cmd_chat(args):
    """Launch the interactive TUI chat, or replay prompts headlessly."""
    from ..providers import build_backend

    config = _load(args)
    if args.server:
        config.chat.server_url = args.server

    replay_prompts = None
    if args.replay:
        from ..tui.state import load_replay_prompts

        replay_path = Path(args.replay)
        if not replay_path.exists():
            print(f"Replay file not found: {replay_path}", file=sys.stderr)
            sys.exit(1)
        replay_prompts = load_replay_prompts(replay_path)
        if not replay_prompts:
            print(f"No prompts found in: {replay_path}", file=sys.stderr)
            sys.exit(1)
        print(f"Loaded {len(replay_prompts)} prompts from {replay_path}")

    backend = build_backend(config)

    if args.headless:
        if not replay_prompts:
            print("--headless requires --replay <file>", file=sys.stderr)
            sys.exit(1)

        from ..tui.headless import HeadlessRunner

        runner = HeadlessRunner(config, backend)
        try:
            conversation = runner.run(replay_prompts)
        finally:
            runner.store.close()
        print(f"Conversation: {conversation.name} ({len(conversation.messages)} messages)")
        return

    from ..tui.app import run_chat

    run_chat(config, backend, replay_prompts=replay_prompts)


def cmd_threads_list(args):
    """List stored conversations, most recent first."""
    config = _load(args)
    store = _open_store(config)
    try:
        active_id = store.active_conversation_id()
        print(f"{'':2}{'Name':<42} {'Msgs':>5} {'Age':>6}  Preview")
        print("-" * 90)
        for conv in store.sorted_conversations():
            marker = "* " if conv.id == active_id else "  "
            print(
                f"{marker}{conv.name:<42} {len(conv.messages):>5} "
                f"{time_ago(conv.last_activity):>6}  {preview_text(conv)}"
            )
    finally:
        store.close()


def cmd_threads_export(args):
    """Export all conversations as JSON."""
    import json

    from ..tui.state import save_export

    config = _load(args)
    store = _open_store(config)
    try:
        exported = store.export()
    finally:
        store.close()

    if args.output:
        path = save_export(exported, args.output)
        print(f"Exported {len(exported)} conversations to {path.resolve()}")
    else:
        print(json.dumps(exported, indent=2, ensure_ascii=False))


def cmd_threads_clear(args):
    """Delete every stored conversation."""
    if not args.yes:
        answer = input("Delete all conversations? [y/N] ")
        if answer.strip().lower() not in ("y", "yes", "s", "si", "sí"):
            print("Aborted.")
            return

    config = _load(args)
    store = _open_store(config)
    try:
        store.clear_all()
    finally:
        store.close()
    print("All conversations deleted.")


def cmd_config_validate(args):
    """Validate config file."""
    config = _load(args)

    errors = validate_config(config)
    if errors:
        print("Config validation errors:")
        for err in errors:
            print(f"  - {err}")
        sys.exit(1)
    else:
        print("Config is valid.")
        print(f"  LLM endpoint: {config.llm.base_url}")
        print(f"  Model: {config.llm.model}")
        print(f"  Server: {config.server.host}:{config.server.port}")
        storage = config.storage
        location = storage.sqlite_path if storage.backend == "sqlite" else storage.root
        print(f"  Storage: {storage.backend} ({location}, key '{storage.key}')")
        if config.chat.server_url:
            print(f"  Chat via proxy: {config.chat.server_url}")


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        prog="genai-chat",
        description="Multi-conversation chat client and proxy for OpenAI-compatible LLMs",
    )
    parser.add_argument("--config", "-c", help="Path to config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP proxy to the LLM")
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", "-p", type=int, help="Port (default from config)")
    serve_parser.add_argument("--static-dir", help="Directory of static assets to serve at /")

    # chat
    chat_parser = subparsers.add_parser("chat", help="Interactive terminal chat")
    chat_parser.add_argument("--server", "-s", help="Talk to a running proxy at this URL")
    chat_parser.add_argument("--replay", "-r", help="File of prompts to send on startup")
    chat_parser.add_argument(
        "--headless", action="store_true", help="Replay without the TUI (needs --replay)"
    )

    # threads
    threads_parser = subparsers.add_parser("threads", help="Manage stored conversations")
    threads_sub = threads_parser.add_subparsers(dest="threads_command")
    threads_sub.add_parser("list", help="List conversations by recency")
    export_parser = threads_sub.add_parser("export", help="Export conversations as JSON")
    export_parser.add_argument("--output", "-o", help="Write to file instead of stdout")
    clear_parser = threads_sub.add_parser("clear", help="Delete all conversations")
    clear_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    # config
    config_parser = subparsers.add_parser("config", help="Config management")
    config_sub = config_parser.add_subparsers(dest="config_command")
    config_sub.add_parser("validate", help="Validate config file")

    args = parser.parse_args(argv)

    # The TUI installs its own handler
    if not (args.command == "chat" and not args.headless):
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "chat":
        cmd_chat(args)
    elif args.command == "threads":
        if args.threads_command == "list":
            cmd_threads_list(args)
        elif args.threads_command == "export":
            cmd_threads_export(args)
        elif args.threads_command == "clear":
            cmd_threads_clear(args)
        else:
            print("Usage: genai-chat threads {list,export,clear}")
            sys.exit(1)
    elif args.command == "config":
        if args.config_command == "validate":
            cmd_config_validate(args)
        else:
            print("Usage: genai-chat config validate")
            sys.exit(1)


if __name__ == "__main__":
    main()
