"""Shared types for trend sources."""

from typing import Awaitable, Callable, Sequence

from ingest_trends.models import RawTrend

# A source is a niladic coroutine function returning that platform's trends.
# It returns [] when nothing is trending and raises on transport/auth failure.
SourceFetcher = Callable[[], Awaitable[Sequence[RawTrend]]]


class SourceError(Exception):
    """Exception raised when a trend source fails."""

    def __init__(self, source: str, message: str, original_error: Exception | None = None):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.original_error = original_error
