"""
eventmark Server

MCP server exposing the analysis commands used by the review UI: create an
analysis, list analyses, load one analysis with its event types, and save
recorded events to CSV.
"""

import asyncio
import logging

from mcp.server.fastmcp import FastMCP

from eventmark.database.repository import AnalysisRepository
from eventmark.exceptions import EventmarkError
from eventmark.export.csv_export import export_csv, write_export
from eventmark.models.analysis import (
    Analysis,
    AnalysisWithEventTypes,
    EventOccurrence,
    EventTypeSpec,
)

logger = logging.getLogger(__name__)

INSTRUCTIONS = """
eventmark
Time-coded event marking for media review.

You are the eventmark server. You manage analyses (one per reviewed media file),
the event types defined for each analysis, and CSV export of recorded events.

AVAILABLE TOOLS:
- add_analysis: Create an analysis together with its event types
- get_all_analyses: List every analysis
- get_analysis_by_id: Load one analysis with its event types
- save_events_to_csv: Export recorded events of an analysis to a CSV file

EVENT TYPES:
- single: an instantaneous marker (start timestamp only)
- range: a duration-bearing marker (start and end timestamps)

Timestamps are seconds from the start of the media file.
"""


class AnalysisCommands:
    """
    Command surface over an AnalysisRepository.

    Every command runs its storage work off the event loop and reports
    failures as ValueError with a human-readable message.
    """

    def __init__(self, repository: AnalysisRepository):
        self.repository = repository

    async def add_analysis(
        self,
        name: str,
        path: str,
        duration: float,
        event_types: list[EventTypeSpec],
    ) -> int:
        """
        Create an analysis together with its event types.

        Returns:
            The new analysis id
        """
        try:
            return await asyncio.to_thread(
                self.repository.create_analysis, name, path, duration, event_types
            )
        except EventmarkError as e:
            logger.error(f"Error adding analysis: {e}", exc_info=True)
            raise ValueError(f"Error adding analysis: {e}") from e

    async def get_all_analyses(self) -> list[Analysis]:
        """List every analysis."""
        try:
            return await asyncio.to_thread(self.repository.list_analyses)
        except EventmarkError as e:
            logger.error(f"Error listing analyses: {e}", exc_info=True)
            raise ValueError(f"Error listing analyses: {e}") from e

    async def get_analysis_by_id(self, analysis_id: int) -> AnalysisWithEventTypes:
        """Load one analysis with its event types."""
        try:
            return await asyncio.to_thread(self.repository.get_analysis, analysis_id)
        except EventmarkError as e:
            logger.error(f"Error loading analysis {analysis_id}: {e}", exc_info=True)
            raise ValueError(f"Error loading analysis {analysis_id}: {e}") from e

    async def save_events_to_csv(
        self,
        analysis_id: int,
        events: list[EventOccurrence],
        output_path: str,
    ) -> str:
        """
        Export recorded events of an analysis to a CSV file.

        The document is fully encoded before anything is written, and the
        file is replaced atomically.

        Returns:
            Confirmation message naming the written file
        """
        try:
            event_types = await asyncio.to_thread(
                self.repository.get_event_types, analysis_id
            )
            data = export_csv(event_types, events, strict=True)
            written = await asyncio.to_thread(write_export, data, output_path)
        except (EventmarkError, OSError) as e:
            logger.error(f"Error saving events to CSV: {e}", exc_info=True)
            raise ValueError(f"Error saving events to CSV: {e}") from e

        return f"Saved {len(events)} events to {written}"


def create_server(commands: AnalysisCommands) -> FastMCP:
    """
    Build an MCP server whose tools delegate to the given commands.

    Args:
        commands: Command surface bound to an open repository

    Returns:
        Configured FastMCP server (not yet running)
    """
    server = FastMCP(name="eventmark", instructions=INSTRUCTIONS)

    @server.tool("add_analysis")
    async def add_analysis(
        *,
        name: str,
        path: str,
        duration: float,
        event_types: list[EventTypeSpec],
    ) -> int:
        """
        Create an analysis together with its event types.

        Args:
            name: Display name of the analysis
            path: Location of the media file under review
            duration: Media duration in seconds
            event_types: Event types to define (name, keyboard_key, category)

        Returns:
            The new analysis id
        """
        return await commands.add_analysis(name, path, duration, event_types)

    @server.tool("get_all_analyses")
    async def get_all_analyses() -> list[Analysis]:
        """
        List all analyses in the database.

        Returns:
            List of analyses
        """
        return await commands.get_all_analyses()

    @server.tool("get_analysis_by_id")
    async def get_analysis_by_id(*, analysis_id: int) -> AnalysisWithEventTypes:
        """
        Load one analysis with its event types.

        Args:
            analysis_id: Analysis id

        Returns:
            The analysis and its event types
        """
        return await commands.get_analysis_by_id(analysis_id)

    @server.tool("save_events_to_csv")
    async def save_events_to_csv(
        *,
        analysis_id: int,
        events: list[EventOccurrence],
        output_path: str,
    ) -> str:
        """
        Export recorded events of an analysis to a CSV file.

        Args:
            analysis_id: Analysis the events belong to
            events: Recorded events (event_type_id, start_timestamp, end_timestamp)
            output_path: Destination file path

        Returns:
            Confirmation message
        """
        return await commands.save_events_to_csv(analysis_id, events, output_path)

    return server
