"""CLI for the weekly forecast run."""

from __future__ import annotations

import logging
import sys

from dotenv import load_dotenv
from openai import OpenAI

from common.cli_helpers import setup_logging
from common.config import get_config, load_config, set_config
from common.snapshots import write_snapshots
from generate_forecasts.generate_forecasts import generate_forecasts
from generate_forecasts.helpers import parse_generate_forecasts_args, parse_niches
from store_trends.sql_store import SqlTrendStore
from store_trends.store import InMemoryTrendStore

load_dotenv()

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    args = parse_generate_forecasts_args()
    if args.config:
        set_config(load_config(args.config))
    config = get_config()

    if not config.openai_api_key:
        logger.error("OPENAI_API_KEY is not set; cannot generate forecasts")
        sys.exit(1)

    niches = parse_niches(args.niches)
    model = args.model or config.forecasts.model

    if args.load_rds:
        try:
            store = SqlTrendStore.from_url(config.database_url)
        except Exception:
            logger.exception("Failed to connect to the trend store")
            sys.exit(1)
    else:
        logger.info("--load-rds not set; forecasts use no stored history and are kept in memory only")
        store = InMemoryTrendStore()

    client = OpenAI(api_key=config.openai_api_key)
    summary = generate_forecasts(
        niches,
        store,
        client,
        model=model,
        history_limit=config.forecasts.history_limit,
    )

    write_snapshots(summary.forecasts, "forecasts", load_s3=args.load_s3, load_local=args.load_local)

    if not summary.generated:
        sys.exit(1)


if __name__ == "__main__":
    main()
