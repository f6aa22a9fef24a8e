"""
User settings for eventmark.

Settings live in ~/.eventmark/config.toml:

    [database]
    path = "/data/reviews.sqlite"   # used when --db is not given

    [logging]
    file = true                     # see eventmark.logging_config
"""

import logging
import os
import tempfile
import tomllib

from pathlib import Path
from typing import Any

import tomli_w

from eventmark.constants import APP_DIR, DEFAULT_CONFIG_FILE, DEFAULT_DATABASE_PATH

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    """Location of config.toml."""
    return APP_DIR / DEFAULT_CONFIG_FILE


def load_config() -> dict[str, Any]:
    """
    Read every setting.

    A missing file reads as no settings. So does one that cannot be read
    or parsed, with a warning so the user can fix it.
    """
    path = get_config_path()
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        logger.warning(f"Ignoring unreadable config {path}: {e}")
        return {}

    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as e:
        logger.warning(f"Ignoring malformed config {path}: {e}")
        return {}


def config_section(name: str) -> dict[str, Any]:
    """Return one [table] of the config, or {} when absent or not a table."""
    section = load_config().get(name)
    return section if isinstance(section, dict) else {}


def _store_config(config: dict[str, Any]) -> None:
    # Empty settings remove the file rather than leaving an empty one behind
    path = get_config_path()
    if not config:
        path.unlink(missing_ok=True)
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=".config.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            tomli_w.dump(config, f)
        os.replace(temp_name, path)
    except Exception:
        Path(temp_name).unlink(missing_ok=True)
        raise


def get_database_path(explicit_path: str | None = None) -> str:
    """
    Resolve the database path: --db value, then [database] path, then default.

    Args:
        explicit_path: Value from a --db flag (None if not provided)
    """
    if explicit_path:
        return explicit_path

    configured = config_section("database").get("path")
    if isinstance(configured, str) and configured:
        return configured

    return DEFAULT_DATABASE_PATH


def set_database_path(path: str) -> None:
    """Store the database used when --db is not given."""
    config = load_config()
    database = config.get("database")
    if not isinstance(database, dict):
        database = config["database"] = {}

    database["path"] = path
    _store_config(config)
    logger.debug(f"Default database set to {path}")


def unset_database_path() -> None:
    """Forget the stored database path, dropping the table once it is empty."""
    config = load_config()
    database = config.get("database")
    if not isinstance(database, dict) or "path" not in database:
        return

    del database["path"]
    if not database:
        del config["database"]
    _store_config(config)
