"""Entry point for the eventmark server."""

import argparse
import logging

from importlib.metadata import PackageNotFoundError, version

from eventmark.config import get_database_path
from eventmark.database.repository import AnalysisRepository
from eventmark.database.storage import Storage
from eventmark.exceptions import StorageInitError
from eventmark.logging_config import setup_logging
from eventmark.server import AnalysisCommands, create_server

logger = logging.getLogger("eventmark")


def main() -> int:
    """Main entry point for the eventmark server."""
    setup_logging()

    parser = argparse.ArgumentParser(
        description="eventmark: MCP server for time-coded media event analyses"
    )
    parser.add_argument(
        "--database",
        default=None,
        help="Path to database file (default: from config, else ~/.eventmark/app_data.sqlite)",
    )
    args = parser.parse_args()

    try:
        app_version = version("eventmark")
    except PackageNotFoundError:
        app_version = "dev"

    database_path = get_database_path(args.database)
    logger.info(f"Starting eventmark v{app_version}...")
    logger.info(f"Using database: {database_path}")

    try:
        storage = Storage.open(database_path)
    except StorageInitError as e:
        logger.error(f"Server failed to start: {e}", exc_info=True)
        return 1

    try:
        server = create_server(AnalysisCommands(AnalysisRepository(storage)))
        logger.info("Starting MCP server...")
        server.run()
        return 0
    finally:
        storage.close()


if __name__ == "__main__":
    exit(main())
