# src/macaron_todo/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (one-time load of persisted data),
runs the console REPL, then shuts down (optionally recording today's summary).
"""

from __future__ import annotations

import logging
import sys

from ..config import get_settings
from ..logging_setup import setup_logging
from ..storage.kv_store import PersistenceError
from .bootstrap import create_initial_state, shutdown
from .console import run_console_loop

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/macaron")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "macaron-todo"))

    try:
        state = create_initial_state(settings=settings)
    except PersistenceError:
        logger.exception("Cannot load stored tasks from %s", settings.store_db_path)
        return 1

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled; nothing to do.")
    finally:
        try:
            shutdown(state)
        except PersistenceError:
            logger.exception("Shutdown did not complete cleanly.")
        logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
