"""
Timeline operations over recorded event occurrences.

Grouping, ordering, overlap detection, and merge/split normalization of
occurrences before they are exported. All functions return new lists and
leave their inputs untouched.
"""

from collections import defaultdict
from uuid import uuid4

from eventmark.constants import EventCategory
from eventmark.models.analysis import EventOccurrence


def _end_or_zero(event: EventOccurrence) -> float:
    return event.end_timestamp if event.end_timestamp is not None else 0.0


def _timeline_key(event: EventOccurrence) -> tuple[float, float]:
    return (event.start_timestamp, _end_or_zero(event))


def group_events(events: list[EventOccurrence]) -> dict[int, list[EventOccurrence]]:
    """
    Group occurrences by event type.

    Returns:
        Mapping of event_type_id to its occurrences sorted by start time
    """
    grouped: dict[int, list[EventOccurrence]] = defaultdict(list)
    for event in events:
        grouped[event.event_type_id].append(event)

    return {
        type_id: sorted(group, key=lambda e: e.start_timestamp)
        for type_id, group in grouped.items()
    }


def flatten_grouped(grouped: dict[int, list[EventOccurrence]]) -> list[EventOccurrence]:
    """Flatten grouped occurrences into one list ordered by start, end, then type."""
    return sorted(
        (event for group in grouped.values() for event in group),
        key=lambda e: (e.start_timestamp, _end_or_zero(e), e.event_type_id),
    )


def overlapping_events(
    new_event: EventOccurrence, events: list[EventOccurrence]
) -> list[EventOccurrence]:
    """
    Find occurrences that collide with a new one.

    A single event collides with anything starting at the same instant. A
    range event collides with any occurrence it contains, or that contains
    its start or its end.
    """
    if new_event.effective_category is EventCategory.SINGLE:
        return [e for e in events if e.start_timestamp == new_event.start_timestamp]

    new_start = new_event.start_timestamp
    new_end = _end_or_zero(new_event)

    overlapping = []
    for event in events:
        start = event.start_timestamp
        end = _end_or_zero(event)

        contains_event = new_start <= start and new_end >= start
        contains_new_start = start <= new_start and end >= new_start
        contains_new_end = start <= new_end and end >= new_end

        if contains_event or contains_new_start or contains_new_end:
            overlapping.append(event)

    return overlapping


def insert_in_order(
    events: list[EventOccurrence], new_event: EventOccurrence
) -> list[EventOccurrence]:
    """Return a new list with new_event placed by start then end time."""
    return sorted([*events, new_event], key=_timeline_key)


def remove_event(event_id: str, events: list[EventOccurrence]) -> list[EventOccurrence]:
    return [event for event in events if event.event_id != event_id]


def _dedupe_starts(events: list[EventOccurrence]) -> list[EventOccurrence]:
    seen: set[float] = set()
    unique = []
    for event in events:
        if event.start_timestamp not in seen:
            seen.add(event.start_timestamp)
            unique.append(event)
    return unique


def merge_events(events: list[EventOccurrence]) -> list[EventOccurrence]:
    """
    Collapse each event type's occurrences.

    Single events keep one occurrence per distinct start time. Range events
    become one span from the earliest start to the latest end, keeping the
    identity of the first occurrence.
    """
    grouped = group_events(events)

    for type_id, group in grouped.items():
        if len(group) <= 1:
            continue

        if group[0].effective_category is EventCategory.SINGLE:
            grouped[type_id] = _dedupe_starts(group)
            continue

        ends = [e.end_timestamp for e in group if e.end_timestamp]
        grouped[type_id] = [
            group[0].model_copy(
                update={
                    "start_timestamp": min(e.start_timestamp for e in group),
                    "end_timestamp": max(ends) if ends else group[0].end_timestamp,
                }
            )
        ]

    return flatten_grouped(grouped)


def split_events(events: list[EventOccurrence]) -> list[EventOccurrence]:
    """
    Split each event type's overlapping ranges at every boundary.

    Range occurrences of a type are replaced by consecutive spans between
    their sorted start/end timestamps, skipping zero-length spans. Original
    event ids are reused for the first spans; extra spans get new ids.
    Single events are deduplicated as in merge_events.
    """
    grouped = group_events(events)

    for type_id, group in grouped.items():
        if len(group) <= 1:
            continue

        if group[0].effective_category is EventCategory.SINGLE:
            grouped[type_id] = _dedupe_starts(group)
            continue

        boundaries = sorted(
            t for e in group for t in (e.start_timestamp, _end_or_zero(e))
        )

        ids = [e.event_id for e in group]
        spans = []
        for start, end in zip(boundaries, boundaries[1:]):
            if start == end:
                continue
            event_id = ids[len(spans)] if len(spans) < len(ids) else uuid4().hex
            spans.append(
                group[0].model_copy(
                    update={
                        "event_id": event_id,
                        "start_timestamp": start,
                        "end_timestamp": end,
                    }
                )
            )

        grouped[type_id] = spans

    return flatten_grouped(grouped)


def format_seconds(seconds: float) -> str:
    """
    Format a timestamp for display.

    Examples:
        12.5 -> "12.5s"
        123 -> "2m 3.0s"
    """
    minutes = int(seconds // 60)
    remaining = seconds % 60

    if minutes == 0:
        return f"{remaining:.1f}s"

    return f"{minutes}m {remaining:.1f}s"
