# d2builds/logging_setup.py
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from d2builds.config import get_config_dir

# Attributes every LogRecord carries; anything else arrived through extra=
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class EventFormatter(logging.Formatter):
    """Appends the extra= fields of structured events as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if not fields:
            return line
        return line + " " + " ".join(f"{key}={fields[key]}" for key in sorted(fields))


def get_log_file() -> Path:
    """Path of the rotating engine log (~/.d2builds/app.log)."""
    return get_config_dir() / "app.log"


def setup_logging(debug: bool = False) -> None:
    """
    Configure the root logger for the engine and its CLI.

    File output at the chosen level, console output for warnings only
    (everything when debug is set). Calling it again replaces the handlers.
    """
    log_file = get_log_file()
    level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=1_000_000,  # ~1 MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(EventFormatter("%(asctime)s [%(levelname)s] %(name)s - %(message)s"))
    file_handler.setLevel(level)
    root_logger.addHandler(file_handler)

    # The CLI prints results on stdout; keep stderr quiet unless debugging
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(EventFormatter("[%(levelname)s] %(name)s - %(message)s"))
    console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    root_logger.addHandler(console_handler)

    root_logger.debug("Logging initialized", extra={"log_file": str(log_file)})
