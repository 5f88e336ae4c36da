"""Document identifier derivation."""

import re
from datetime import datetime

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def generate_trend_id(url: str) -> str:
    """Derive a store-safe trend ID from its URL.

    Every non-alphanumeric character becomes an underscore, so the same URL
    always maps to the same document.
    """
    return _NON_ALNUM.sub("_", url)


def generate_forecast_id(niche: str, week_start_date: datetime) -> str:
    """Build the forecast document ID for a niche and ISO week."""
    iso_year, iso_week, _ = week_start_date.isocalendar()
    return f"{niche}_{iso_year}-{iso_week:02d}"
