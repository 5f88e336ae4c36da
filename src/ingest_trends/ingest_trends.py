"""Daily trend ingestion: fetch, categorize, persist, prune."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Mapping, Optional

from categorize_trends.categorize_trends import (
    DEFAULT_TIMEOUT_SECONDS as DEFAULT_CATEGORIZE_TIMEOUT_SECONDS,
    TrendCategorizer,
    categorize_trends,
)
from categorize_trends.rate_limit import FixedDelayLimiter
from ingest_trends.fetch_trends import DEFAULT_SOURCE_TIMEOUT_SECONDS, fetch_trends
from ingest_trends.models import ProcessedTrend
from ingest_trends.sources.base import SourceFetcher
from store_trends.cleanup import DEFAULT_RETENTION_DAYS, prune_stale_trends
from store_trends.store import TrendStore
from store_trends.write_trends import DEFAULT_MAX_BATCH_OPERATIONS, WriteSummary, write_trends

logger = logging.getLogger(__name__)

RunStatus = Literal["pending", "noop", "success", "degraded", "failed"]


@dataclass
class IngestionSummary:
    """Outcome of one ingestion run."""
    started_at: datetime
    status: RunStatus = "pending"
    fetched: int = 0
    failed_sources: list[str] = field(default_factory=list)
    categorization_failures: int = 0
    written: WriteSummary = field(default_factory=WriteSummary)
    pruned: WriteSummary = field(default_factory=WriteSummary)
    prune_error: Optional[str] = None
    error: Optional[str] = None
    trends: list[ProcessedTrend] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(
            self.failed_sources
            or self.categorization_failures
            or not self.written.ok
            or not self.pruned.ok
            or self.prune_error
        )


async def run_ingestion(
    sources: Mapping[str, SourceFetcher],
    categorizer: Optional[TrendCategorizer],
    store: TrendStore,
    niches: Optional[list[str]] = None,
    limiter: Optional[FixedDelayLimiter] = None,
    source_timeout: float = DEFAULT_SOURCE_TIMEOUT_SECONDS,
    categorize_timeout: float = DEFAULT_CATEGORIZE_TIMEOUT_SECONDS,
    validate_categories: bool = True,
    max_batch_operations: int = DEFAULT_MAX_BATCH_OPERATIONS,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    now: Optional[datetime] = None,
) -> IngestionSummary:
    """
    Run one ingestion cycle end to end.

    1. Fetch all sources concurrently (a failed source contributes nothing)
    2. Stop early when nothing was fetched
    3. Categorize sequentially, falling back to Uncategorized per trend
    4. Upsert in bounded sub-batches
    5. Delete trends past the retention window

    Never raises: an unexpected error is logged and reported as a failed
    run, and nothing from that run is persisted unless the write step was
    already reached.

    Returns:
        IngestionSummary describing the run
    """
    summary = IngestionSummary(started_at=now or datetime.now(timezone.utc))
    logger.info("Starting trend ingestion from %d sources", len(sources))

    try:
        fetched = await fetch_trends(sources, timeout=source_timeout, now=summary.started_at)
        summary.fetched = len(fetched.trends)
        summary.failed_sources = fetched.failed_sources

        if not fetched.trends:
            logger.warning("0 trends fetched; nothing to categorize or persist")
            summary.status = "noop"
            return summary

        trends, failures = await categorize_trends(
            fetched.trends,
            categorizer,
            niches=niches,
            limiter=limiter,
            timeout=categorize_timeout,
            validate_categories=validate_categories,
        )
        summary.trends = trends
        summary.categorization_failures = failures

        summary.written = write_trends(trends, store, max_batch_operations=max_batch_operations)
    except Exception as e:
        logger.exception("Trend ingestion run failed")
        summary.status = "failed"
        summary.error = str(e)
        return summary

    try:
        summary.pruned = prune_stale_trends(
            store,
            retention_days=retention_days,
            max_batch_operations=max_batch_operations,
            now=now,
        )
    except Exception as e:
        logger.error("Retention sweep failed: %s", e)
        summary.prune_error = str(e)

    if summary.degraded:
        summary.status = "degraded"
        logger.warning(
            "Trend ingestion degraded: %d fetched, failed sources=%s, %d categorization fallbacks, "
            "%d written, %d write failures, %d pruned",
            summary.fetched,
            summary.failed_sources,
            summary.categorization_failures,
            summary.written.committed,
            summary.written.failed,
            summary.pruned.committed,
        )
    else:
        summary.status = "success"
        logger.info(
            "Trend ingestion complete: %d fetched, %d written, %d pruned",
            summary.fetched,
            summary.written.committed,
            summary.pruned.committed,
        )
    return summary
