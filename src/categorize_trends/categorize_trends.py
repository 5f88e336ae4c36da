"""Core trend categorization logic."""

import asyncio
import json
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

from openai import AsyncOpenAI

from categorize_trends.instructions import CATEGORIZE_TREND_INSTRUCTIONS
from categorize_trends.models import CategorizeTrendInput, CategorizeTrendOutput
from categorize_trends.niches import NICHES, UNCATEGORIZED, match_niche
from categorize_trends.rate_limit import FixedDelayLimiter
from common.utils import clamp
from ingest_trends.models import ProcessedTrend

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT_SECONDS = 20.0


class CategorizationError(Exception):
    """Raised when a categorizer returns empty or malformed output."""


class TrendCategorizer(ABC):
    """
    Assigns a niche and confidence to a trend.

    Implementations should answer with a label from `niches` (or
    "Uncategorized") and a confidence in [0, 1], but callers must not
    rely on either.
    """

    @abstractmethod
    async def categorize(self, data: CategorizeTrendInput) -> CategorizeTrendOutput:
        ...


def _format_trend_for_prompt(data: CategorizeTrendInput) -> str:
    lines = [f"Niches: {', '.join(data.niches)}", "", f"Trend Title: {data.trend_title}"]
    if data.trend_description:
        lines.append(f"Trend Description: {data.trend_description}")
    return "\n".join(lines)


def parse_categorization(content: Optional[str]) -> CategorizeTrendOutput:
    """Parse the JSON answer of an LLM categorizer."""
    if not content:
        raise CategorizationError("Empty categorizer response")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise CategorizationError(f"Categorizer response is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise CategorizationError("Categorizer response is not a JSON object")

    category = data.get("category")
    confidence = data.get("confidence")

    if not isinstance(category, str) or not category.strip():
        raise CategorizationError(f"Invalid category: {category!r}")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise CategorizationError(f"Invalid confidence: {confidence!r}")

    return CategorizeTrendOutput(category=category.strip(), confidence=float(confidence))


class OpenAICategorizer(TrendCategorizer):
    """Categorizer backed by an OpenAI chat model answering in JSON."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout)

    async def categorize(self, data: CategorizeTrendInput) -> CategorizeTrendOutput:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": CATEGORIZE_TREND_INSTRUCTIONS},
                {"role": "user", "content": _format_trend_for_prompt(data)},
            ],
            response_format={"type": "json_object"},
            temperature=0,
        )
        if not response.choices:
            raise CategorizationError("Categorizer returned no choices")
        return parse_categorization(response.choices[0].message.content)


def build_categorizer(
    api_key: Optional[str],
    model: str = DEFAULT_MODEL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> Optional[TrendCategorizer]:
    """Build the OpenAI categorizer, or return None when no API key is configured."""
    if not api_key:
        logger.error(
            "OPENAI_API_KEY is not set; every trend will be stored as %s", UNCATEGORIZED
        )
        return None
    return OpenAICategorizer(api_key=api_key, model=model, timeout=timeout)


def resolve_category(
    output: CategorizeTrendOutput,
    niches: list[str],
    validate_categories: bool = True,
) -> tuple[str, float]:
    """
    Turn a categorizer answer into the (category, confidence) pair to store.

    Confidence is clamped into [0, 1]. Unknown labels fall back to
    Uncategorized when `validate_categories` is set, and Uncategorized
    always carries confidence 0.

    Raises:
        CategorizationError: If confidence is not a finite number.
    """
    if not math.isfinite(output.confidence):
        raise CategorizationError(f"Non-finite confidence: {output.confidence}")

    category = output.category
    if category.casefold() == UNCATEGORIZED.casefold():
        return UNCATEGORIZED, 0.0

    if validate_categories:
        matched = match_niche(category, niches)
        if matched is None:
            logger.warning("Categorizer returned unknown niche %r", category)
            return UNCATEGORIZED, 0.0
        category = matched

    return category, clamp(output.confidence)


async def categorize_trends(
    trends: list[ProcessedTrend],
    categorizer: Optional[TrendCategorizer],
    niches: Optional[list[str]] = None,
    limiter: Optional[FixedDelayLimiter] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    validate_categories: bool = True,
) -> tuple[list[ProcessedTrend], int]:
    """
    Categorize trends one at a time, falling back to Uncategorized on failure.

    Calls are strictly sequential and paced by `limiter`. Any exception,
    timeout or malformed answer for one trend only affects that trend.

    Args:
        trends: Trends to categorize
        categorizer: Categorizer to call, or None when unavailable
        niches: Niche catalog offered to the categorizer (default: NICHES)
        limiter: Pacing between calls (default: FixedDelayLimiter())
        timeout: Per-call timeout in seconds
        validate_categories: Reject labels that are not in the catalog

    Returns:
        Tuple of (categorized trends, number of trends that fell back)
    """
    niches = niches or NICHES
    if not trends:
        return [], 0

    if categorizer is None:
        logger.warning("No categorizer available; marking %d trends %s", len(trends), UNCATEGORIZED)
        return [
            replace(trend, category=UNCATEGORIZED, category_confidence=0.0) for trend in trends
        ], len(trends)

    limiter = limiter or FixedDelayLimiter()
    results = []
    failed = 0

    logger.info("Categorizing %d trends", len(trends))
    for trend in trends:
        await limiter.acquire()
        data = CategorizeTrendInput(
            trend_title=trend.title,
            trend_description=trend.description,
            niches=niches,
        )
        try:
            output = await asyncio.wait_for(categorizer.categorize(data), timeout=timeout)
            category, confidence = resolve_category(output, niches, validate_categories)
        except Exception as e:
            logger.warning("Failed to categorize trend %s (%s): %s", trend.id, trend.title, e)
            category, confidence = UNCATEGORIZED, 0.0
            failed += 1

        results.append(replace(trend, category=category, category_confidence=confidence))

    logger.info("Categorized %d trends (%d fell back to %s)", len(results), failed, UNCATEGORIZED)
    return results, failed
