"""
Command-line interface for eventmark.

Provides commands for creating and inspecting analyses, exporting recorded
events to CSV, and database management.
"""

import json
import logging

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import click

from pydantic import TypeAdapter, ValidationError

from eventmark.analysis.timeline import format_seconds, merge_events, split_events
from eventmark.config import (
    get_config_path,
    get_database_path,
    load_config,
    set_database_path,
    unset_database_path,
)
from eventmark.constants import EVENT_CATEGORY_VALUES, EventCategory
from eventmark.database.repository import AnalysisRepository
from eventmark.database.storage import Storage
from eventmark.exceptions import EventmarkError
from eventmark.export.csv_export import export_csv, write_export
from eventmark.logging_config import setup_logging
from eventmark.models.analysis import EventOccurrence, EventTypeSpec

logger = logging.getLogger(__name__)

try:
    __version__ = get_version("eventmark")
except PackageNotFoundError:
    __version__ = "dev"

_occurrence_list = TypeAdapter(list[EventOccurrence])


def open_storage(db: str | None) -> Storage:
    """
    Open the database selected by --db, config, or the default path.

    Raises:
        click.ClickException: If the database cannot be initialized
    """
    try:
        return Storage.open(get_database_path(db))
    except EventmarkError as e:
        raise click.ClickException(str(e)) from e


def parse_event_type(value: str) -> EventTypeSpec:
    """
    Parse an event type given as NAME:KEY:CATEGORY.

    Raises:
        click.BadParameter: If the value is malformed
    """
    parts = value.rsplit(":", 2)
    if len(parts) != 3:
        raise click.BadParameter(
            f"'{value}' must look like NAME:KEY:CATEGORY (e.g. Jump:j:single)"
        )

    name, keyboard_key, category = parts
    if category.lower() not in EVENT_CATEGORY_VALUES:
        raise click.BadParameter(
            f"Unknown category '{category}'. Use one of: {', '.join(EVENT_CATEGORY_VALUES)}"
        )

    try:
        return EventTypeSpec(
            name=name,
            keyboard_key=keyboard_key,
            category=EventCategory(category.lower()),
        )
    except ValidationError as e:
        raise click.BadParameter(f"Invalid event type '{value}': {e}") from e


@click.group()
@click.version_option(__version__, prog_name="eventmark")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """eventmark: Time-coded event marking for media review"""
    setup_logging(verbose=verbose, console_format="%(levelname)s: %(message)s")


@cli.command("create-analysis")
@click.argument("name")
@click.argument("media_path")
@click.option(
    "--duration", "-d", type=float, required=True, help="Media duration in seconds"
)
@click.option(
    "--event-type",
    "-e",
    "event_types",
    multiple=True,
    help="Event type as NAME:KEY:CATEGORY (repeatable)",
)
@click.option("--db", type=click.Path(), help="Database path")
def create_analysis(
    name: str,
    media_path: str,
    duration: float,
    event_types: tuple[str, ...],
    db: str | None,
) -> None:
    """Create an analysis with its event types."""
    specs = [parse_event_type(value) for value in event_types]

    with open_storage(db) as storage:
        try:
            analysis_id = AnalysisRepository(storage).create_analysis(
                name, media_path, duration, specs
            )
        except EventmarkError as e:
            raise click.ClickException(f"Failed to create analysis: {e}") from e

    click.echo(f"✓ Created analysis {analysis_id} with {len(specs)} event types")


@cli.command("list-analyses")
@click.option("--db", type=click.Path(), help="Database path")
def list_analyses(db: str | None) -> None:
    """List all analyses in the database."""
    with open_storage(db) as storage:
        try:
            analyses = AnalysisRepository(storage).list_analyses()
        except EventmarkError as e:
            raise click.ClickException(str(e)) from e

    if not analyses:
        click.echo("No analyses found in database")
        return

    click.echo("\nAnalyses:\n")
    for analysis in analyses:
        click.echo(f"[{analysis.id}] {analysis.name}")
        click.echo(f"  Media: {analysis.path}")
        click.echo(f"  Duration: {format_seconds(analysis.duration)}")
        click.echo(f"  Created: {analysis.created_at:%Y-%m-%d %H:%M:%S}")
        click.echo()


@cli.command("show-analysis")
@click.argument("analysis_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.option("--db", type=click.Path(), help="Database path")
def show_analysis(analysis_id: int, as_json: bool, db: str | None) -> None:
    """Show one analysis and its event types."""
    with open_storage(db) as storage:
        try:
            result = AnalysisRepository(storage).get_analysis(analysis_id)
        except EventmarkError as e:
            raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    analysis = result.analysis
    click.echo(f"\nAnalysis {analysis.id}: {analysis.name}")
    click.echo(f"{'=' * 50}")
    click.echo(f"Media: {analysis.path}")
    click.echo(f"Duration: {format_seconds(analysis.duration)}")
    click.echo(f"Last opened: {analysis.last_opened_at:%Y-%m-%d %H:%M:%S}")

    if not result.event_types:
        click.echo("\nNo event types defined")
        return

    click.echo("\nEvent types:")
    for event_type in result.event_types:
        click.echo(
            f"  [{event_type.id}] {event_type.name} "
            f"(key: {event_type.keyboard_key}, {event_type.category.value})"
        )


@cli.command("export-csv")
@click.argument("analysis_id", type=int)
@click.argument("events_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False), required=True, help="CSV file"
)
@click.option(
    "--normalize",
    type=click.Choice(["merge", "split"]),
    help="Merge or split overlapping range events before export",
)
@click.option("--db", type=click.Path(), help="Database path")
def export_events(
    analysis_id: int,
    events_file: str,
    output: str,
    normalize: str | None,
    db: str | None,
) -> None:
    """
    Export recorded events from a JSON file to CSV.

    EVENTS_FILE holds a JSON list of objects with event_type_id,
    start_timestamp and (for range events) end_timestamp.
    """
    try:
        events = _occurrence_list.validate_json(Path(events_file).read_bytes())
    except ValidationError as e:
        raise click.ClickException(f"Invalid events file {events_file}: {e}") from e

    if normalize == "merge":
        events = merge_events(events)
    elif normalize == "split":
        events = split_events(events)

    with open_storage(db) as storage:
        try:
            event_types = AnalysisRepository(storage).get_event_types(analysis_id)
            data = export_csv(event_types, events, strict=True)
        except EventmarkError as e:
            raise click.ClickException(f"Failed to export events: {e}") from e

    try:
        written = write_export(data, output)
    except OSError as e:
        raise click.ClickException(f"Cannot write {output}: {e}") from e

    click.echo(f"✓ Exported {len(events)} events to {written}")


@cli.command()
@click.option("--db", type=click.Path(), help="Database path")
def serve(db: str | None) -> None:
    """Run the MCP server over stdio."""
    from eventmark.server import AnalysisCommands, create_server

    with open_storage(db) as storage:
        server = create_server(AnalysisCommands(AnalysisRepository(storage)))
        server.run()


@cli.group()
def db() -> None:
    """Database management commands."""
    pass


@db.command()
@click.option("--db", type=click.Path(), help="Database path")
def init(db: str | None) -> None:
    """Initialize database (applies pending migrations)."""
    with open_storage(db) as storage:
        click.echo(f"✓ Database initialized at {storage.location}")


@db.command()
@click.option("--db", type=click.Path(), help="Database path")
def status(db: str | None) -> None:
    """Show database location, schema revision, and contents."""
    with open_storage(db) as storage:
        revision = storage.current_revision()
        journal_mode = storage.journal_mode()
        try:
            analysis_count = len(AnalysisRepository(storage).list_analyses())
        except EventmarkError as e:
            raise click.ClickException(str(e)) from e

    click.echo("\n📊 Database Status")
    click.echo(f"{'=' * 50}")
    click.echo(f"Database: {storage.location}")
    click.echo(f"Schema revision: {revision}")
    click.echo(f"Journal mode: {journal_mode}")
    click.echo(f"Analyses: {analysis_count}")


@cli.group()
def config() -> None:
    """Manage eventmark configuration."""
    pass


@config.command("show")
def config_show() -> None:
    """Show current configuration."""
    config_path = get_config_path()
    settings = load_config()

    click.echo(f"Config file: {config_path}")
    if not settings:
        click.echo("No configuration set")
        return

    click.echo(json.dumps(settings, indent=2))


@config.command("set-db-path")
@click.argument("path", type=click.Path())
def config_set_db_path(path: str) -> None:
    """Set the default database path."""
    set_database_path(str(Path(path).expanduser()))
    click.echo(f"✓ Default database set to {path}")


@config.command("unset-db-path")
def config_unset_db_path() -> None:
    """Remove the default database path setting."""
    unset_database_path()
    click.echo("✓ Default database path removed")


if __name__ == "__main__":
    cli()
