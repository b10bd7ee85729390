# src/macaron_todo/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "macaron.log"
_APP_PREFIX = "macaron_todo."
_STORAGE_PREFIX = "macaron_todo.storage."


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console rules for the todo REPL:
    - store transitions, loads, imports and command errors are shown
    - the KV store logs every write, so it only reaches the console at WARNING+
    - anything outside the app (captured warnings included) needs ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith(_STORAGE_PREFIX):
            return record.levelno >= logging.WARNING
        if name.startswith(_APP_PREFIX):
            return True
        return record.levelno >= logging.ERROR


def _formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def setup_logging(
    *,
    log_dir: str | Path = ".local/macaron",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Send filtered records to stderr and everything to <log_dir>/macaron.log.

    Replaces handlers already on the root logger, so calling it again does not
    duplicate output. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_formatter())
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    to_file = logging.FileHandler(str(log_file), encoding="utf-8")
    to_file.setLevel(file_level)
    to_file.setFormatter(_formatter())
    root.addHandler(to_file)

    logging.captureWarnings(True)
    return log_file
