# src/taskpilot/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..cli.commands import ingest_text
from ..cli.commands import registry as command_registry
from ..core.errors import TaskPilotError
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except OSError:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def handle_line(state: AppState, line: str) -> str | None:
    """
    One console line -> reply text.

    Slash commands go through the registry; anything else is free text
    to be turned into a task. Returns None for blank input.
    """
    line = line.strip()
    if not line:
        return None

    def emit(text: str) -> None:
        # Immediate user-visible feedback for slow operations (extraction call).
        print(f"[{_ts_local()}] {text}", flush=True)

    cmd_response = command_registry.handle(state, line, emit=emit)
    if cmd_response is not None:
        return cmd_response

    return ingest_text(state, line)


def run_console_loop(state: AppState) -> None:
    app_name = str(getattr(state.settings, "app_name", "taskpilot"))
    logger.info("Console connector started (extraction=%s).", state.extractor_name)
    _print_ts(
        f"[{app_name}] Type a task in plain language, e.g. 'Call client Rajeev tomorrow 5pm P2'.\n"
        "Use /help for commands. Use /exit to quit.\n"
    )

    try:
        _print_ts(f"Signed in as {state.require_owner()}.")
    except TaskPilotError as e:
        _print_ts(f"Not signed in ({e}). Use /login <token>.")

    while True:
        try:
            user_input = input(">>> You: ").strip()
            sent_ts = _ts_local()
            _rewrite_prev_line(f"[{sent_ts}] >>> You: {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = handle_line(state, user_input)
        except Exception:
            logger.exception("Console handler crashed.")
            response = "Internal error while handling the request."

        if response is not None:
            print(f"[{_ts_local()}] <<< {app_name}: {response}\n")

    logger.info("Console connector finished.")
