"""
Main entrypoint for the Crypto Stats application.
Usage: python run.py [api|ingestion|ingest-once]
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

USAGE = """Usage: python run.py [api|ingestion|ingest-once]
  api         - Start the Stats API (runs the ingestion scheduler too)
  ingestion   - Start the ingestion scheduler without the API
  ingest-once - Run a single ingestion pass and exit"""


def setup_logging() -> None:
    """
    Set up consistent logging configuration for the application.
    Uses environment variables for configuration.
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_format = os.getenv(
        "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    log_file = os.getenv("LOG_FILE", "crypto_stats.log")
    log_to_file = os.getenv("LOG_TO_FILE", "true").lower() == "true"

    numeric_level = getattr(logging, log_level, logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_to_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )


logger = logging.getLogger(__name__)


async def main():
    if len(sys.argv) != 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1].lower()

    setup_logging()

    if command == "api":
        from crypto_stats.api.service import main as run_service

        logger.info("Starting API service...")
    elif command == "ingestion":
        from crypto_stats.ingestion.service import main as run_service

        logger.info("Starting ingestion scheduler...")
    elif command == "ingest-once":
        from crypto_stats.ingestion.service import run_once

        logger.info("Running a single ingestion pass...")
        snapshots = await run_once()
        logger.info(f"Ingestion finished, {len(snapshots)} snapshots saved")
        return
    else:
        print(f"Unknown command: {command}")
        print(USAGE)
        sys.exit(1)
    await run_service()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        sys.exit(0)
    except Exception as e:
        print(f"Application failed: {e}")
        sys.exit(1)
