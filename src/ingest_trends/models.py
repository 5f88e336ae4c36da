"""Data models for the trend ingestion pipeline."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from categorize_trends.niches import UNCATEGORIZED


class Platform(str, Enum):
    TIKTOK = "TikTok"
    INSTAGRAM = "Instagram"
    YOUTUBE = "YouTube"


@dataclass
class TikTokTrend:
    """Trending TikTok video as returned by the TikTok source."""
    title: str
    url: str
    views: int
    description: Optional[str] = None


@dataclass
class InstagramReelTrend:
    """Trending Instagram reel as returned by the Instagram source."""
    title: str
    url: str
    likes: int
    description: Optional[str] = None


@dataclass
class YoutubeTrend:
    """Trending YouTube video as returned by the YouTube source."""
    title: str
    url: str
    views: int
    description: Optional[str] = None


RawTrend = Union[TikTokTrend, InstagramReelTrend, YoutubeTrend]


@dataclass
class ProcessedTrend:
    """Unified trend record, keyed by an ID derived from its URL."""
    id: str
    title: str
    platform: Platform
    url: str
    discovered_at: datetime
    views: Optional[int] = None
    likes: Optional[int] = None
    description: Optional[str] = None
    category: Optional[str] = None
    category_confidence: Optional[float] = None
    processed_at: Optional[datetime] = None

    def to_document(self) -> dict[str, Any]:
        """
        Fields written to the store. `processed_at` is assigned by the store on commit.

        An uncategorized trend is written as Uncategorized with confidence 0.
        """
        category = self.category or UNCATEGORIZED
        return {
            "id": self.id,
            "title": self.title,
            "platform": self.platform.value,
            "url": self.url,
            "views": self.views,
            "likes": self.likes,
            "description": self.description,
            "discovered_at": self.discovered_at,
            "category": category,
            "category_confidence": 0.0 if category == UNCATEGORIZED else (self.category_confidence or 0.0),
        }


@dataclass
class FetchResult:
    """Merged output of one fetch across all sources."""
    discovered_at: datetime
    trends: list[ProcessedTrend]
    counts: dict[str, int]
    failed_sources: list[str]
