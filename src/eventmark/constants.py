"""
Constants and enumerations for eventmark.

Event categories, default file locations, and export layout.
"""

from enum import Enum
from pathlib import Path

# ============================================================================
# Event Categories
# ============================================================================


class EventCategory(str, Enum):
    """Kinds of event type a user can mark while reviewing media."""

    SINGLE = "single"  # Instantaneous marker, start timestamp only
    RANGE = "range"  # Duration-bearing marker, start and end timestamps


EVENT_CATEGORY_VALUES = tuple(category.value for category in EventCategory)

# ============================================================================
# Export
# ============================================================================

CSV_HEADER = ("Event Type", "Start Time", "End Time")
CSV_LINE_TERMINATOR = "\n"
CSV_ENCODING = "utf-8"

# ============================================================================
# Application Defaults
# ============================================================================

APP_DIR = Path.home() / ".eventmark"

DEFAULT_DATABASE_PATH = str(APP_DIR / "app_data.sqlite")
IN_MEMORY_DATABASE = ":memory:"

DEFAULT_LOG_DIR = APP_DIR / "logs"
DEFAULT_LOG_FILE = "eventmark.log"
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_LOG_BACKUP_COUNT = 5

DEFAULT_CONFIG_FILE = "config.toml"
