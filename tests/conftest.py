"""Pytest configuration and fixtures for eventmark tests."""

from pathlib import Path

import pytest

from eventmark.constants import EventCategory
from eventmark.models.analysis import EventType, EventTypeSpec


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that do not require external dependencies"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests combining multiple components"
    )


# =============================================================================
# Database Test Fixtures
# =============================================================================


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Path to a not-yet-created database file in a fresh directory."""
    return tmp_path / "data" / "test_eventmark.sqlite"


@pytest.fixture
def storage(temp_db):
    """Open a fully migrated Storage on a temporary file."""
    from eventmark.database.storage import Storage

    handle = Storage.open(temp_db)
    yield handle
    handle.close()


@pytest.fixture
def repository(storage):
    """Analysis repository bound to the temporary storage."""
    from eventmark.database.repository import AnalysisRepository

    return AnalysisRepository(storage)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the user config file at a temporary location."""
    config_path = tmp_path / "config" / "config.toml"
    monkeypatch.setattr("eventmark.config.get_config_path", lambda: config_path)
    monkeypatch.setattr("eventmark.cli.get_config_path", lambda: config_path)
    return config_path


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def event_type_specs() -> list[EventTypeSpec]:
    """A realistic set of event types for a sports review."""
    return [
        EventTypeSpec(name="Jump", keyboard_key="j", category=EventCategory.SINGLE),
        EventTypeSpec(name="Duck", keyboard_key="d", category=EventCategory.RANGE),
        EventTypeSpec(name="Serve", keyboard_key="s", category=EventCategory.SINGLE),
    ]


@pytest.fixture
def jump_and_duck() -> list[EventType]:
    """Persisted-looking event types: Jump (single) and Duck (range)."""
    return [
        EventType(
            id=1,
            analysis_id=1,
            name="Jump",
            keyboard_key="j",
            category=EventCategory.SINGLE,
        ),
        EventType(
            id=2,
            analysis_id=1,
            name="Duck",
            keyboard_key="d",
            category=EventCategory.RANGE,
        ),
    ]
