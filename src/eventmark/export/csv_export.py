"""
CSV export of recorded event occurrences.

Maps each occurrence to the name of its event type and renders the result
as an in-memory CSV document. Nothing is written anywhere until every
occurrence has been encoded; writing the bytes out is a separate step.
"""

import csv
import io
import logging
import math
import os
import tempfile

from collections.abc import Iterable, Sequence
from decimal import Decimal
from pathlib import Path

from eventmark.constants import (
    CSV_ENCODING,
    CSV_HEADER,
    CSV_LINE_TERMINATOR,
    EventCategory,
)
from eventmark.exceptions import (
    EmptyEventTypesError,
    EncodingError,
    InconsistentOccurrenceError,
    UnknownEventTypeError,
)
from eventmark.models.analysis import EventOccurrence, EventType

logger = logging.getLogger(__name__)


def format_number(value: float) -> str:
    """
    Render a timestamp as plain decimal text.

    Integral values drop the fractional part (1.0 -> "1"). Everything else
    uses the shortest digits that round-trip, written out positionally
    rather than in exponent form (1e-07 -> "0.0000001").

    Raises:
        EncodingError: If value is NaN or infinite
    """
    value = float(value)
    if not math.isfinite(value):
        raise EncodingError(f"Cannot encode non-finite timestamp: {value}")
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def _check_consistency(event_type: EventType, occurrence: EventOccurrence) -> None:
    if event_type.category is EventCategory.RANGE:
        if occurrence.end_timestamp is None:
            raise InconsistentOccurrenceError(
                f"Range event '{event_type.name}' at {occurrence.start_timestamp} "
                "has no end timestamp"
            )
        if occurrence.end_timestamp < occurrence.start_timestamp:
            raise InconsistentOccurrenceError(
                f"Range event '{event_type.name}' ends ({occurrence.end_timestamp}) "
                f"before it starts ({occurrence.start_timestamp})"
            )
    elif occurrence.end_timestamp is not None:
        raise InconsistentOccurrenceError(
            f"Single event '{event_type.name}' at {occurrence.start_timestamp} "
            "must not have an end timestamp"
        )


def export_csv(
    event_types: Iterable[EventType],
    occurrences: Sequence[EventOccurrence],
    *,
    strict: bool = False,
) -> bytes:
    """
    Encode event occurrences as CSV.

    Output has the header ``Event Type,Start Time,End Time`` followed by one
    row per occurrence in input order. The end time is empty when absent.

    Args:
        event_types: Event types of the analysis the occurrences belong to
        occurrences: Recorded occurrences to export
        strict: Reject occurrences whose end timestamp disagrees with their
            event type's category

    Returns:
        The complete CSV document as UTF-8 bytes

    Raises:
        EmptyEventTypesError: If no event types were supplied
        UnknownEventTypeError: If an occurrence references an unknown type
        InconsistentOccurrenceError: In strict mode, on a category mismatch
        EncodingError: If a row cannot be serialized
    """
    lookup = {event_type.id: event_type for event_type in event_types}
    if not lookup:
        raise EmptyEventTypesError("No event types found for the given analysis")

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator=CSV_LINE_TERMINATOR)

    try:
        writer.writerow(CSV_HEADER)

        for occurrence in occurrences:
            event_type = lookup.get(occurrence.event_type_id)
            if event_type is None:
                raise UnknownEventTypeError(occurrence.event_type_id)

            if strict:
                _check_consistency(event_type, occurrence)

            end_time = (
                format_number(occurrence.end_timestamp)
                if occurrence.end_timestamp is not None
                else ""
            )
            writer.writerow(
                (event_type.name, format_number(occurrence.start_timestamp), end_time)
            )
    except csv.Error as e:
        raise EncodingError(f"Failed to serialize event: {e}") from e

    try:
        data = buffer.getvalue().encode(CSV_ENCODING)
    except UnicodeEncodeError as e:
        raise EncodingError(f"Failed to encode CSV data: {e}") from e

    logger.debug(f"Encoded {len(occurrences)} events ({len(data)} bytes)")
    return data


def write_export(data: bytes, destination: str | os.PathLike[str]) -> Path:
    """
    Write an encoded export to disk atomically.

    Creates the parent directory if it doesn't exist. Uses a temp file in
    the destination directory + rename so a reader never sees a partial
    file.

    Args:
        data: Encoded document
        destination: Target file path

    Returns:
        The destination path

    Raises:
        OSError: If the directory cannot be created or the file written
    """
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(temp_path, path)
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise

    logger.info(f"Exported {len(data)} bytes to {path}")
    return path
