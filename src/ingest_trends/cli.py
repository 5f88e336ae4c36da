"""CLI for the daily trend ingestion run."""

from __future__ import annotations

import asyncio
import logging
import sys

from dotenv import load_dotenv

from categorize_trends.categorize_trends import build_categorizer
from categorize_trends.niches import NICHES
from categorize_trends.rate_limit import FixedDelayLimiter
from common.cli_helpers import setup_logging
from common.config import get_config, load_config, set_config
from common.snapshots import write_snapshots
from ingest_trends.helpers import parse_ingest_trends_args, parse_sources
from ingest_trends.ingest_trends import run_ingestion
from ingest_trends.sources import get_source
from store_trends.sql_store import SqlTrendStore
from store_trends.store import InMemoryTrendStore

load_dotenv()

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    args = parse_ingest_trends_args()
    if args.config:
        set_config(load_config(args.config))
    config = get_config()

    source_names = parse_sources(args.sources, default=config.sources)
    sources = {name: get_source(name) for name in source_names}

    if args.load_rds:
        try:
            store = SqlTrendStore.from_url(config.database_url)
        except Exception:
            logger.exception("Failed to connect to the trend store")
            sys.exit(1)
    else:
        logger.info("--load-rds not set; trends are kept in memory only")
        store = InMemoryTrendStore()

    categorizer = build_categorizer(
        config.openai_api_key,
        model=config.categorizer.model,
        timeout=config.categorizer.timeout_seconds,
    )

    summary = asyncio.run(
        run_ingestion(
            sources,
            categorizer,
            store,
            niches=NICHES,
            limiter=FixedDelayLimiter(config.categorizer.delay_seconds),
            source_timeout=config.source_timeout_seconds,
            categorize_timeout=config.categorizer.timeout_seconds,
            validate_categories=config.categorizer.validate_categories,
            max_batch_operations=config.store.max_batch_operations,
            retention_days=config.store.retention_days,
        )
    )

    if summary.status == "failed":
        logger.error("Ingestion run failed: %s", summary.error)
        sys.exit(1)

    write_snapshots(summary.trends, "processed_trends", load_s3=args.load_s3, load_local=args.load_local)


if __name__ == "__main__":
    main()
