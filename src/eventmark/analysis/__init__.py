"""Timeline helpers for recorded event occurrences."""

from eventmark.analysis.timeline import (
    flatten_grouped,
    format_seconds,
    group_events,
    insert_in_order,
    merge_events,
    overlapping_events,
    remove_event,
    split_events,
)

__all__ = [
    "flatten_grouped",
    "format_seconds",
    "group_events",
    "insert_in_order",
    "merge_events",
    "overlapping_events",
    "remove_event",
    "split_events",
]
