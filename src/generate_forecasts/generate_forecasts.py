"""Weekly per-niche trend forecasts generated by an LLM."""

import json
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

from openai import OpenAI

from common.identifiers import generate_forecast_id
from common.utils import clamp
from generate_forecasts.instructions import GENERATE_FORECAST_INSTRUCTIONS, NO_HISTORY
from generate_forecasts.models import (
    ForecastItem,
    ForecastSummary,
    NicheForecast,
    RevivalSuggestion,
)
from store_trends.store import TrendStore

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_HISTORY_LIMIT = 20
MIN_FORECAST_ITEMS = 3
MAX_FORECAST_ITEMS = 5


class ForecastError(Exception):
    """Raised when the LLM forecast is missing or malformed."""


def next_week_start(now: datetime) -> datetime:
    """Midnight UTC of the next Monday (a week ahead when `now` is a Monday)."""
    now = now.astimezone(timezone.utc)
    days_ahead = 7 - now.weekday()
    start = now + timedelta(days=days_ahead)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def summarize_niche_history(store: TrendStore, niche: str, limit: int = DEFAULT_HISTORY_LIMIT) -> str:
    """Summarize the most recent stored trends of a niche for the forecast prompt."""
    trends = store.list_trends(category=niche, limit=limit)
    if not trends:
        return NO_HISTORY

    lines = [f"Recent {niche} trends:"]
    for trend in trends:
        metrics = []
        if trend.get("views") is not None:
            metrics.append(f"{trend['views']} views")
        if trend.get("likes") is not None:
            metrics.append(f"{trend['likes']} likes")
        suffix = f" ({', '.join(metrics)})" if metrics else ""
        lines.append(f"- [{trend.get('platform')}] {trend.get('title')}{suffix}")
    return "\n".join(lines)


def _parse_item(raw: Any) -> ForecastItem:
    if not isinstance(raw, dict):
        raise ForecastError(f"Forecast item is not an object: {raw!r}")

    title = raw.get("title")
    description = raw.get("description")
    if not isinstance(title, str) or not title.strip():
        raise ForecastError("Forecast item is missing a title")
    if not isinstance(description, str) or not description.strip():
        raise ForecastError(f"Forecast item {title!r} is missing a description")

    confidence = raw.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not math.isfinite(confidence):
        confidence = None
    else:
        confidence = clamp(float(confidence))

    hashtags = raw.get("hashtags") or []
    if not isinstance(hashtags, list):
        hashtags = []

    item_id = raw.get("id")
    if not isinstance(item_id, str) or not item_id.strip():
        item_id = uuid4().hex

    return ForecastItem(
        id=item_id.strip(),
        title=title.strip(),
        description=description.strip(),
        confidence=confidence,
        hashtags=[str(tag) for tag in hashtags],
    )


def parse_forecast_response(content: Optional[str]) -> tuple[list[ForecastItem], Optional[RevivalSuggestion]]:
    """Parse the LLM JSON forecast into items and an optional revival suggestion."""
    if not content:
        raise ForecastError("Empty forecast response")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ForecastError(f"Forecast response is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ForecastError("Forecast response is not a JSON object")

    raw_items = data.get("forecast_items")
    if not isinstance(raw_items, list):
        raise ForecastError("Forecast response has no forecast_items list")
    if len(raw_items) < MIN_FORECAST_ITEMS:
        raise ForecastError(
            f"Expected at least {MIN_FORECAST_ITEMS} forecast items, got {len(raw_items)}"
        )
    items = [_parse_item(raw) for raw in raw_items[:MAX_FORECAST_ITEMS]]

    revival = None
    raw_revival = data.get("revival_suggestion")
    if isinstance(raw_revival, dict) and raw_revival.get("title") and raw_revival.get("description"):
        revival = RevivalSuggestion(
            title=str(raw_revival["title"]),
            description=str(raw_revival["description"]),
        )

    return items, revival


def generate_niche_forecast(
    niche: str,
    client: OpenAI,
    model: str = DEFAULT_MODEL,
    historical_data: str = NO_HISTORY,
    now: Optional[datetime] = None,
) -> NicheForecast:
    """Generate next week's forecast for a single niche."""
    if not niche:
        raise ValueError("Niche is required to generate a forecast")

    now = now or datetime.now(timezone.utc)
    week_start = next_week_start(now)

    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": GENERATE_FORECAST_INSTRUCTIONS},
            {
                "role": "user",
                "content": f"Niche: {niche}\n\nHistorical Data Summary:\n{historical_data}",
            },
        ],
        response_format={"type": "json_object"},
    )
    if not response.choices:
        raise ForecastError("Forecast response has no choices")

    items, revival = parse_forecast_response(response.choices[0].message.content)

    return NicheForecast(
        niche=niche,
        week_start_date=week_start,
        generated_at=now,
        forecast_items=items,
        revival_suggestion=revival,
    )


def generate_forecasts(
    niches: list[str],
    store: TrendStore,
    client: OpenAI,
    model: str = DEFAULT_MODEL,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
    now: Optional[datetime] = None,
) -> ForecastSummary:
    """
    Generate and save forecasts for each niche, one at a time.

    A failure for one niche is logged and counted; the others continue.
    Forecasts are merged into `{niche}_{iso_year}-{iso_week}` so re-runs
    within the same week overwrite rather than duplicate.
    """
    summary = ForecastSummary()
    logger.info("Generating forecasts for %d niches", len(niches))

    for niche in niches:
        try:
            history = summarize_niche_history(store, niche, limit=history_limit)
            forecast = generate_niche_forecast(
                niche, client, model=model, historical_data=history, now=now
            )
        except Exception as e:
            logger.error("Failed to generate forecast for niche %s: %s", niche, e)
            summary.failed += 1
            continue

        summary.generated += 1
        summary.forecasts.append(forecast)

        forecast_id = generate_forecast_id(niche, forecast.week_start_date)
        try:
            store.save_forecast(forecast_id, forecast.to_document())
        except Exception as e:
            logger.error("Failed to save forecast %s: %s", forecast_id, e)
            continue
        summary.saved += 1
        logger.info("Saved forecast %s with %d items", forecast_id, len(forecast.forecast_items))

    logger.info(
        "Forecasts: %d generated, %d failed, %d saved",
        summary.generated,
        summary.failed,
        summary.saved,
    )
    return summary
