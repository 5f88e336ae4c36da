"""Concurrent fetch and normalization of trends from all sources."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Sequence

from common.identifiers import generate_trend_id
from ingest_trends.models import (
    FetchResult,
    InstagramReelTrend,
    Platform,
    ProcessedTrend,
    RawTrend,
    TikTokTrend,
    YoutubeTrend,
)
from ingest_trends.sources.base import SourceError, SourceFetcher

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_TIMEOUT_SECONDS = 30.0


def _from_tiktok(raw: TikTokTrend, discovered_at: datetime) -> ProcessedTrend:
    return ProcessedTrend(
        id=generate_trend_id(raw.url),
        title=raw.title,
        platform=Platform.TIKTOK,
        url=raw.url,
        views=raw.views,
        description=raw.description,
        discovered_at=discovered_at,
    )


def _from_instagram(raw: InstagramReelTrend, discovered_at: datetime) -> ProcessedTrend:
    return ProcessedTrend(
        id=generate_trend_id(raw.url),
        title=raw.title,
        platform=Platform.INSTAGRAM,
        url=raw.url,
        likes=raw.likes,
        description=raw.description,
        discovered_at=discovered_at,
    )


def _from_youtube(raw: YoutubeTrend, discovered_at: datetime) -> ProcessedTrend:
    return ProcessedTrend(
        id=generate_trend_id(raw.url),
        title=raw.title,
        platform=Platform.YOUTUBE,
        url=raw.url,
        views=raw.views,
        description=raw.description,
        discovered_at=discovered_at,
    )


_NORMALIZERS: dict[type, Callable[..., ProcessedTrend]] = {
    TikTokTrend: _from_tiktok,
    InstagramReelTrend: _from_instagram,
    YoutubeTrend: _from_youtube,
}


def normalize_trend(raw: RawTrend, discovered_at: datetime) -> ProcessedTrend:
    """Map a platform-specific trend onto the unified record shape."""
    normalizer = _NORMALIZERS.get(type(raw))
    if normalizer is None:
        raise TypeError(f"Unsupported trend type: {type(raw).__name__}")
    return normalizer(raw, discovered_at)


async def _fetch_source(name: str, fetch: SourceFetcher, timeout: float) -> Sequence[RawTrend]:
    try:
        return await asyncio.wait_for(fetch(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise SourceError(name, f"timed out after {timeout:g}s", original_error=e) from e


async def fetch_trends(
    sources: Mapping[str, SourceFetcher],
    timeout: float = DEFAULT_SOURCE_TIMEOUT_SECONDS,
    now: Optional[datetime] = None,
) -> FetchResult:
    """
    Fetch trends from every source concurrently and merge the successes.

    A failing source is logged and contributes no records; the other
    sources are unaffected. All records share one `discovered_at`.

    Args:
        sources: Mapping of source name to fetch coroutine function
        timeout: Per-source timeout in seconds
        now: Discovery timestamp override (defaults to current UTC time)

    Returns:
        FetchResult with merged trends, per-source counts and failed source names
    """
    discovered_at = now or datetime.now(timezone.utc)
    names = list(sources.keys())

    logger.info("Fetching trends from %d sources", len(names))
    results = await asyncio.gather(
        *(_fetch_source(name, sources[name], timeout) for name in names),
        return_exceptions=True,
    )

    trends: list[ProcessedTrend] = []
    counts: dict[str, int] = {}
    failed: list[str] = []

    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error("Failed to fetch trends from %s: %s", name, result)
            failed.append(name)
            counts[name] = 0
            continue

        try:
            normalized = [normalize_trend(raw, discovered_at) for raw in result]
        except (TypeError, AttributeError) as e:
            logger.error("Failed to normalize trends from %s: %s", name, e)
            failed.append(name)
            counts[name] = 0
            continue

        logger.info("Found %d trends from %s", len(normalized), name)
        counts[name] = len(normalized)
        trends.extend(normalized)

    logger.info("Total trends collected: %d (%d sources failed)", len(trends), len(failed))
    return FetchResult(
        discovered_at=discovered_at,
        trends=trends,
        counts=counts,
        failed_sources=failed,
    )
