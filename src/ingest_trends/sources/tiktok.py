"""TikTok trending content source."""

import logging

from ingest_trends.models import TikTokTrend

logger = logging.getLogger(__name__)


async def fetch_trends() -> list[TikTokTrend]:
    """Fetch trending content from TikTok.

    Placeholder data until an API integration is available.
    """
    trends = [
        TikTokTrend(
            title="Example TikTok Trend 1",
            url="https://www.tiktok.com/example1",
            views=1_000_000,
        ),
    ]
    logger.debug("TikTok source returned %d trends", len(trends))
    return trends
