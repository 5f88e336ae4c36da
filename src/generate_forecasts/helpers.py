"""Helper functions for generate_forecasts CLI."""

from __future__ import annotations

import argparse
import logging

from categorize_trends.niches import NICHES, match_niche
from common.cli_helpers import parse_csv_list

logger = logging.getLogger(__name__)


def parse_niches(value: str | None) -> list[str]:
    '''Parse the --niches argument into catalog niches (default: all).'''

    if not value or value.strip().lower() == "all":
        return list(NICHES)

    niches = []
    for name in parse_csv_list(value):
        matched = match_niche(name, NICHES)
        if matched is None:
            logger.warning("Unknown niche: %s", name)
        elif matched not in niches:
            niches.append(matched)

    if not niches:
        raise ValueError(f"No valid niches provided. Valid niches: {', '.join(NICHES)}")

    return niches


def parse_generate_forecasts_args() -> argparse.Namespace:
    '''Parse CLI arguments for generate_forecasts.'''

    parser = argparse.ArgumentParser(description="Generate next week's trend forecasts per niche.")
    parser.add_argument(
        "--config",
        default=None,
        help="Config name or YAML path (default: $TREND_RADAR_CONFIG or 'prod').",
    )
    parser.add_argument(
        "--niches",
        default=None,
        help="Comma-separated list of niches, or 'all' (default: all).",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="OpenAI model to use (default: from config).",
    )

    # Output options
    parser.add_argument("--load-rds", action="store_true", help="Read history from and save forecasts to DATABASE_URL")
    parser.add_argument("--load-s3", action="store_true", help="Upload forecasts to S3")
    parser.add_argument("--load-local", action="store_true", help="Save forecasts to a local file")
    return parser.parse_args()
