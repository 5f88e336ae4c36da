"""YouTube trending content source."""

import logging

from ingest_trends.models import YoutubeTrend

logger = logging.getLogger(__name__)


async def fetch_trends() -> list[YoutubeTrend]:
    """Fetch trending videos from YouTube.

    Placeholder data until an API integration is available.
    """
    trends = [
        YoutubeTrend(
            title="Example YouTube Trend 1",
            url="https://www.youtube.com/example1",
            views=500_000,
        ),
    ]
    logger.debug("YouTube source returned %d trends", len(trends))
    return trends
