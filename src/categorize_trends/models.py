"""Data models for the categorize_trends stage."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class CategorizeTrendInput:
    """Input to a trend categorizer."""
    trend_title: str
    niches: list[str]
    trend_description: Optional[str] = None


@dataclass
class CategorizeTrendOutput:
    """Best-fit niche and confidence returned by a categorizer."""
    category: str
    confidence: float
