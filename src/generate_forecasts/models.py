"""Data models for the generate_forecasts stage."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class ForecastItem:
    """One predicted trend or content format for the coming week."""
    id: str
    title: str
    description: str
    confidence: Optional[float] = None
    hashtags: list[str] = field(default_factory=list)


@dataclass
class RevivalSuggestion:
    """A past trend worth bringing back."""
    title: str
    description: str


@dataclass
class NicheForecast:
    niche: str
    week_start_date: datetime
    generated_at: datetime
    forecast_items: list[ForecastItem]
    revival_suggestion: Optional[RevivalSuggestion] = None

    def to_document(self) -> dict[str, Any]:
        return {
            "niche": self.niche,
            "week_start_date": self.week_start_date,
            "generated_at": self.generated_at,
            "forecast_items": [asdict(item) for item in self.forecast_items],
            "revival_suggestion": asdict(self.revival_suggestion) if self.revival_suggestion else None,
        }


@dataclass
class ForecastSummary:
    generated: int = 0
    failed: int = 0
    saved: int = 0
    forecasts: list[NicheForecast] = field(default_factory=list)
