"""Pydantic models for analyses, event types, and event occurrences."""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from eventmark.constants import EventCategory


class Analysis(BaseModel):
    """A review session over one media file."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Match 3 review",
                "path": "/videos/match3.mp4",
                "duration": 5412.2,
                "created_at": "2025-01-01T12:00:00",
                "updated_at": "2025-01-01T12:00:00",
                "last_opened_at": "2025-01-01T12:00:00",
            }
        },
    )

    id: int
    name: str
    path: str = Field(description="Location of the media file under review")
    duration: float = Field(description="Media duration in seconds")
    created_at: datetime
    updated_at: datetime
    last_opened_at: datetime


class EventTypeSpec(BaseModel):
    """Definition of an event type supplied when creating an analysis."""

    name: str = Field(min_length=1)
    keyboard_key: str = Field(description="Shortcut label shown to the user")
    category: EventCategory


class EventType(BaseModel):
    """A persisted event type belonging to one analysis."""

    model_config = ConfigDict(frozen=True)

    id: int
    analysis_id: int
    name: str
    keyboard_key: str
    category: EventCategory

    def to_spec(self) -> EventTypeSpec:
        return EventTypeSpec(
            name=self.name, keyboard_key=self.keyboard_key, category=self.category
        )


class AnalysisWithEventTypes(BaseModel):
    """An analysis together with all of its event types."""

    analysis: Analysis
    event_types: list[EventType] = Field(default_factory=list)


class EventOccurrence(BaseModel):
    """
    One marked instance of an event type.

    Only ``event_type_id``, ``start_timestamp`` and ``end_timestamp`` take part
    in export. ``event_id`` and ``category`` are carried for timeline editing.
    """

    event_type_id: int
    start_timestamp: float
    end_timestamp: float | None = None
    event_id: str = Field(default_factory=lambda: uuid4().hex)
    category: EventCategory | None = None

    @property
    def effective_category(self) -> EventCategory:
        """Category as supplied, or inferred from the presence of an end timestamp."""
        if self.category is not None:
            return self.category
        if self.end_timestamp is None:
            return EventCategory.SINGLE
        return EventCategory.RANGE
