"""Batched persistence of processed trends."""

import logging
from dataclasses import dataclass, field
from typing import Union

from common.utils import chunked
from ingest_trends.models import ProcessedTrend
from store_trends.store import TrendStore, WriteBatch

logger = logging.getLogger(__name__)

# Stays under the store's hard limit of 500 operations per commit
DEFAULT_MAX_BATCH_OPERATIONS = 490


@dataclass(frozen=True)
class Committed:
    count: int


@dataclass(frozen=True)
class Failed:
    count: int
    error: str


CommitResult = Union[Committed, Failed]


@dataclass
class WriteSummary:
    """Outcome of every sub-batch commit of one write or cleanup pass."""
    results: list[CommitResult] = field(default_factory=list)

    @property
    def committed(self) -> int:
        return sum(r.count for r in self.results if isinstance(r, Committed))

    @property
    def failed(self) -> int:
        return sum(r.count for r in self.results if isinstance(r, Failed))

    @property
    def ok(self) -> bool:
        return not any(isinstance(r, Failed) for r in self.results)


def commit_batch(batch: WriteBatch, label: str) -> CommitResult:
    """Commit one sub-batch, converting a failure into a Failed result."""
    count = len(batch)
    try:
        batch.commit()
    except Exception as e:
        logger.error("Failed to commit %s batch of %d operations: %s", label, count, e)
        return Failed(count=count, error=str(e))
    logger.info("Committed %s batch of %d operations", label, count)
    return Committed(count=count)


def write_trends(
    trends: list[ProcessedTrend],
    store: TrendStore,
    max_batch_operations: int = DEFAULT_MAX_BATCH_OPERATIONS,
) -> WriteSummary:
    """
    Upsert trends into the store in sub-batches of at most `max_batch_operations`.

    A failed sub-batch is logged and recorded; later sub-batches are still
    attempted and earlier ones stay committed.

    Args:
        trends: Processed trends to persist, upserted by ID
        store: Target store
        max_batch_operations: Operation ceiling per commit

    Returns:
        WriteSummary with one result per sub-batch
    """
    summary = WriteSummary()
    if not trends:
        logger.warning("No trends to write")
        return summary

    for chunk in chunked(trends, max_batch_operations):
        batch = store.batch()
        for trend in chunk:
            batch.upsert_trend(trend.id, trend.to_document())
        summary.results.append(commit_batch(batch, "trend write"))

    logger.info(
        "Wrote %d trends in %d batches (%d failed)",
        summary.committed,
        len(summary.results),
        summary.failed,
    )
    return summary
