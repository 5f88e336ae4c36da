"""Retention sweep for stale trends."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from common.utils import chunked
from store_trends.store import TrendStore, utc_now
from store_trends.write_trends import DEFAULT_MAX_BATCH_OPERATIONS, WriteSummary, commit_batch

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30


def prune_stale_trends(
    store: TrendStore,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    max_batch_operations: int = DEFAULT_MAX_BATCH_OPERATIONS,
    now: Optional[datetime] = None,
) -> WriteSummary:
    """Delete trends whose processed_at is older than the retention window."""
    cutoff = (now or utc_now()) - timedelta(days=retention_days)
    stale_ids = store.find_trend_ids_processed_before(cutoff)

    summary = WriteSummary()
    if not stale_ids:
        logger.info("No trends processed before %s", cutoff.isoformat())
        return summary

    logger.info("Deleting %d trends processed before %s", len(stale_ids), cutoff.isoformat())
    for chunk in chunked(stale_ids, max_batch_operations):
        batch = store.batch()
        for trend_id in chunk:
            batch.delete_trend(trend_id)
        summary.results.append(commit_batch(batch, "retention delete"))

    logger.info("Deleted %d stale trends (%d failed)", summary.committed, summary.failed)
    return summary
