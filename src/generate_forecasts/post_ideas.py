"""Post ideas for a creator who wants to join a current trend."""

import json
import logging
from typing import Optional

from openai import OpenAI

from generate_forecasts.generate_forecasts import DEFAULT_MODEL, ForecastError
from generate_forecasts.instructions import SUGGEST_POST_IDEAS_INSTRUCTIONS

logger = logging.getLogger(__name__)


class PostIdeasError(ForecastError):
    """Raised when the LLM post ideas are missing or malformed."""


def parse_post_ideas_response(content: Optional[str]) -> list[str]:
    if not content:
        raise PostIdeasError("Empty post ideas response")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise PostIdeasError(f"Post ideas response is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise PostIdeasError("Post ideas response is not a JSON object")

    raw_ideas = data.get("post_ideas")
    if not isinstance(raw_ideas, list):
        raise PostIdeasError("Post ideas response has no post_ideas list")

    ideas = []
    for idea in raw_ideas:
        if not isinstance(idea, str) or not idea.strip():
            raise PostIdeasError(f"Post idea is not a non-empty string: {idea!r}")
        ideas.append(idea.strip())

    if not ideas:
        raise PostIdeasError("Post ideas response has no ideas")
    return ideas


def suggest_post_ideas(
    trend_title: str,
    niche: str,
    client: OpenAI,
    model: str = DEFAULT_MODEL,
) -> list[str]:
    """
    Suggest post ideas for joining a trend within a niche.

    Args:
        trend_title: Title of the current trend
        niche: The creator's content niche
        client: OpenAI client
        model: Chat model name

    Returns:
        Non-empty list of post ideas.

    Raises:
        ValueError: If the trend title or niche is empty.
        PostIdeasError: If the model returns no usable ideas.
    """
    if not trend_title or not trend_title.strip():
        raise ValueError("Trend title is required to suggest post ideas")
    if not niche or not niche.strip():
        raise ValueError("Niche is required to suggest post ideas")

    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": SUGGEST_POST_IDEAS_INSTRUCTIONS},
            {"role": "user", "content": f"Trend: {trend_title.strip()}\nNiche: {niche.strip()}"},
        ],
        response_format={"type": "json_object"},
    )
    if not response.choices:
        raise PostIdeasError("Post ideas response has no choices")

    ideas = parse_post_ideas_response(response.choices[0].message.content)
    logger.info("Suggested %d post ideas for trend %r in %s", len(ideas), trend_title, niche)
    return ideas
