"""
Analysis repository.

The fixed set of access patterns over analyses and their event types:
create an analysis with its event types atomically, list analyses, and
fetch one analysis with its event types.
"""

import logging

from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import Row, insert, select

from eventmark.database.models import analyses_table, event_types_table
from eventmark.database.storage import Storage
from eventmark.exceptions import NotFoundError, PersistenceError
from eventmark.models.analysis import (
    Analysis,
    AnalysisWithEventTypes,
    EventType,
    EventTypeSpec,
)

logger = logging.getLogger(__name__)

EventTypeInput = EventTypeSpec | Mapping[str, Any]

_ANALYSIS_COLUMNS = (
    analyses_table.c.id,
    analyses_table.c.name,
    analyses_table.c.path,
    analyses_table.c.duration,
    analyses_table.c.created_at,
    analyses_table.c.updated_at,
    analyses_table.c.last_opened_at,
)

_EVENT_TYPE_COLUMNS = (
    event_types_table.c.id,
    event_types_table.c.analysis_id,
    event_types_table.c.name,
    event_types_table.c.keyboard_key,
    event_types_table.c.category,
)


def _to_spec(item: EventTypeInput) -> EventTypeSpec:
    if isinstance(item, EventTypeSpec):
        return item
    return EventTypeSpec.model_validate(dict(item))


def _analysis_from_row(row: Row[Any]) -> Analysis:
    return Analysis.model_validate(dict(row._mapping))


def _event_type_from_row(row: Row[Any]) -> EventType:
    return EventType.model_validate(dict(row._mapping))


class AnalysisRepository:
    """Reads and writes analyses through a borrowed Storage handle."""

    def __init__(self, storage: Storage):
        self.storage = storage

    def create_analysis(
        self,
        name: str,
        path: str,
        duration: float,
        event_types: Iterable[EventTypeInput] = (),
    ) -> int:
        """
        Create an analysis and all of its event types in one transaction.

        Either the analysis row and every event type row commit, or nothing
        does.

        Args:
            name: Display name of the analysis
            path: Location of the media file under review
            duration: Media duration in seconds
            event_types: Event type definitions, possibly empty

        Returns:
            The generated analysis id

        Raises:
            PersistenceError: If any insert fails or affects an unexpected
                number of rows. The transaction is rolled back.
        """
        try:
            with self.storage.begin_transaction() as tx:
                result = tx.execute(
                    insert(analyses_table).values(
                        name=name, path=path, duration=duration
                    )
                )
                if result.rows_affected != 1 or result.last_insert_id is None:
                    raise PersistenceError("Failed to insert analysis")

                analysis_id = result.last_insert_id

                try:
                    specs = [_to_spec(item) for item in event_types]
                except (TypeError, ValueError) as e:
                    raise PersistenceError(f"Invalid event type: {e}") from e

                if specs:
                    rows = [
                        {
                            "analysis_id": analysis_id,
                            "name": spec.name,
                            "keyboard_key": spec.keyboard_key,
                            "category": spec.category,
                        }
                        for spec in specs
                    ]
                    result = tx.execute(insert(event_types_table).values(rows))
                    if result.rows_affected != len(rows):
                        raise PersistenceError(
                            f"Inserted {result.rows_affected} of {len(rows)} event types"
                        )

                tx.commit()
        except PersistenceError as e:
            logger.error(f"Failed to create analysis '{name}': {e}")
            raise

        logger.info(
            f"Created analysis {analysis_id} '{name}' with {len(specs)} event types"
        )
        return analysis_id

    def list_analyses(self) -> list[Analysis]:
        """
        Return every analysis.

        No ordering is guaranteed beyond whatever order storage yields.
        """
        rows = self.storage.query(select(*_ANALYSIS_COLUMNS))
        return [_analysis_from_row(row) for row in rows]

    def get_analysis(self, analysis_id: int) -> AnalysisWithEventTypes:
        """
        Return one analysis with all of its event types.

        Raises:
            NotFoundError: If no analysis has this id
        """
        rows = self.storage.query(
            select(*_ANALYSIS_COLUMNS).where(analyses_table.c.id == analysis_id)
        )
        if not rows:
            raise NotFoundError("Analysis", analysis_id)

        return AnalysisWithEventTypes(
            analysis=_analysis_from_row(rows[0]),
            event_types=self.get_event_types(analysis_id),
        )

    def get_event_types(self, analysis_id: int) -> list[EventType]:
        """Return the event types of one analysis (empty if it has none)."""
        rows = self.storage.query(
            select(*_EVENT_TYPE_COLUMNS).where(
                event_types_table.c.analysis_id == analysis_id
            )
        )
        return [_event_type_from_row(row) for row in rows]
