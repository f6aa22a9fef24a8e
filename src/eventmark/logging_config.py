"""
Logging setup for eventmark.

Console output goes to stderr. A rotating log file under
~/.eventmark/logs is added unless the [logging] table turns it off:

    [logging]
    file = false        # console only
    level = "INFO"      # file handler level (default DEBUG)
    max_size_mb = 5     # rotate after this many megabytes
    backup_count = 3    # rotated files kept
"""

import logging
import logging.config
import sys

from pathlib import Path
from typing import Any

from eventmark.config import config_section
from eventmark.constants import (
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_MAX_BYTES,
)

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Alembic logs every migration step and mcp every request at INFO
QUIET_LOGGERS = ("alembic", "mcp")

_configured = False


def _positive_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and value > 0


def _file_handler(settings: dict[str, Any], log_dir: Path) -> dict[str, Any]:
    size_mb = settings.get("max_size_mb")
    max_bytes = DEFAULT_LOG_MAX_BYTES
    if _positive_number(size_mb):
        max_bytes = int(size_mb * 1024 * 1024)

    backup_count = settings.get("backup_count")
    if not _positive_number(backup_count):
        backup_count = DEFAULT_LOG_BACKUP_COUNT

    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": str(settings.get("level", "DEBUG")).upper(),
        "formatter": "detailed",
        "filename": str(log_dir / DEFAULT_LOG_FILE),
        "maxBytes": max_bytes,
        "backupCount": int(backup_count),
        "encoding": "utf-8",
        "delay": True,
    }


def build_logging_config(
    settings: dict[str, Any],
    *,
    verbose: bool = False,
    console_format: str | None = None,
    log_dir: Path = DEFAULT_LOG_DIR,
) -> dict[str, Any]:
    """
    Translate the [logging] table into a dictConfig dictionary.

    Out-of-range max_size_mb or backup_count values fall back to the
    defaults. An unknown level is left for dictConfig to reject.
    """
    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if verbose else "INFO",
            "formatter": "console",
            "stream": "ext://sys.stderr",
        },
    }
    if settings.get("file", True):
        handlers["file"] = _file_handler(settings, log_dir)

    quiet_level = "DEBUG" if verbose else "WARNING"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": console_format or DETAILED_FORMAT},
            "detailed": {"format": DETAILED_FORMAT},
        },
        "handlers": handlers,
        "root": {"level": "DEBUG", "handlers": list(handlers)},
        "loggers": {name: {"level": quiet_level} for name in QUIET_LOGGERS},
    }


def setup_logging(
    *,
    verbose: bool = False,
    console_format: str | None = None,
) -> None:
    """
    Configure logging for the process. Only the first call takes effect.

    If the log file cannot be set up (unwritable directory, bad [logging]
    value), logging continues on the console alone and a warning is
    written to stderr.

    Args:
        verbose: Log DEBUG to the console and stop quieting library loggers
        console_format: Console format string; defaults to DETAILED_FORMAT
    """
    global _configured

    if _configured:
        return

    config = build_logging_config(
        config_section("logging"),
        verbose=verbose,
        console_format=console_format,
        log_dir=DEFAULT_LOG_DIR,
    )

    try:
        if "file" in config["handlers"]:
            DEFAULT_LOG_DIR.mkdir(mode=0o700, parents=True, exist_ok=True)
        logging.config.dictConfig(config)
    except (OSError, ValueError, TypeError) as e:
        sys.stderr.write(f"WARNING: File logging disabled: {e}\n")
        logging.config.dictConfig(
            build_logging_config(
                {"file": False}, verbose=verbose, console_format=console_format
            )
        )

    _configured = True
