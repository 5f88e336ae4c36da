"""Source registry."""

from ingest_trends.sources import instagram, tiktok, youtube
from ingest_trends.sources.base import SourceError, SourceFetcher

# Registry mapping source IDs to their fetch coroutines
SOURCES: dict[str, SourceFetcher] = {
    "tiktok": tiktok.fetch_trends,
    "instagram": instagram.fetch_trends,
    "youtube": youtube.fetch_trends,
}


def get_source(source_id: str) -> SourceFetcher:
    """Get the fetch coroutine for a given source ID."""
    if source_id not in SOURCES:
        raise ValueError(f"Unknown source: {source_id}. Valid sources: {list(SOURCES.keys())}")
    return SOURCES[source_id]


__all__ = ["SOURCES", "SourceError", "SourceFetcher", "get_source"]
