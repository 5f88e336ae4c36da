"""Instagram Reels trending content source."""

import logging

from ingest_trends.models import InstagramReelTrend

logger = logging.getLogger(__name__)


async def fetch_trends() -> list[InstagramReelTrend]:
    """Fetch trending reels from Instagram.

    Placeholder data until an API integration is available.
    """
    trends = [
        InstagramReelTrend(
            title="Example Reel Trend 1",
            url="https://www.instagram.com/reel/example1",
            likes=250_000,
        ),
    ]
    logger.debug("Instagram source returned %d trends", len(trends))
    return trends
