"""Pydantic models exchanged across the eventmark boundary."""

from eventmark.models.analysis import (
    Analysis,
    AnalysisWithEventTypes,
    EventOccurrence,
    EventType,
    EventTypeSpec,
)

__all__ = [
    "Analysis",
    "AnalysisWithEventTypes",
    "EventOccurrence",
    "EventType",
    "EventTypeSpec",
]
