# src/taskpilot/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs the console REPL in the
main thread. The task store is closed on the way out.
"""

from __future__ import annotations

import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _handle_sigterm(signum, _frame) -> None:
    """Unwind the console loop the same way Ctrl+C does."""
    logger.info("Signal %s received, shutting down...", signum)
    raise KeyboardInterrupt


def _install_signal_handlers() -> None:
    try:
        signal.signal(signal.SIGTERM, _handle_sigterm)
    except (ValueError, OSError, AttributeError):
        # Not on the main thread, or the platform lacks SIGTERM.
        logger.debug("SIGTERM handler not installed.", exc_info=True)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        repo = state.service.repo
        if hasattr(repo, "close"):
            repo.close()
    except Exception:
        logger.debug("Task store close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/taskpilot")
    setup_logging(log_dir=log_dir, console_level=console_level)

    # keep noisy libs readable
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    logger.info("Starting %s...", getattr(settings, "app_name", "taskpilot"))

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    _install_signal_handlers()
    try:
        run_console_loop(state)
    except KeyboardInterrupt:
        # SIGTERM delivered outside input() (e.g. mid-request).
        logger.info("Console interrupted.")
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
