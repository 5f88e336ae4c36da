"""Helper functions for ingest_trends CLI."""

from __future__ import annotations

import argparse
import logging

from common.cli_helpers import parse_csv_list
from ingest_trends.sources import SOURCES

logger = logging.getLogger(__name__)


def parse_sources(value: str | None, default: list[str] | None = None) -> list[str]:
    '''Parse the --sources argument into a list of registered sources.'''

    # No value means the configured default, then every registered source
    if value is None and default:
        value = ",".join(default)
    if not value or value.strip().lower() == "all":
        return list(SOURCES.keys())

    valid_sources = set(SOURCES.keys())
    parsed = [s for s in parse_csv_list(value) if s.lower() != "all"]

    for source in parsed:
        if source not in valid_sources:
            logger.warning("Invalid source: %s", source)

    sources = [s for s in parsed if s in valid_sources]

    if not sources:
        raise ValueError(f"No valid sources provided. Valid sources: {', '.join(sorted(valid_sources))}")

    return sources


def parse_ingest_trends_args() -> argparse.Namespace:
    '''Parse CLI arguments for ingest_trends.'''

    parser = argparse.ArgumentParser(description="Fetch, categorize and store today's trends.")
    parser.add_argument(
        "--config",
        default=None,
        help="Config name or YAML path (default: $TREND_RADAR_CONFIG or 'prod').",
    )
    parser.add_argument(
        "--sources",
        default=None,
        help="Comma-separated list of sources, or 'all' (default: from config).",
    )

    # Output options
    parser.add_argument("--load-rds", action="store_true", help="Persist trends to DATABASE_URL")
    parser.add_argument("--load-s3", action="store_true", help="Upload processed trends to S3")
    parser.add_argument("--load-local", action="store_true", help="Save processed trends to a local file")
    return parser.parse_args()
