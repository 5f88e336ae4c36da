"""Tests for categorize_trends.categorize_trends module."""

from __future__ import annotations

import asyncio
import math
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from categorize_trends.categorize_trends import (
    CategorizationError,
    OpenAICategorizer,
    TrendCategorizer,
    build_categorizer,
    categorize_trends,
    parse_categorization,
    resolve_category,
)
from categorize_trends.models import CategorizeTrendInput, CategorizeTrendOutput
from categorize_trends.niches import NICHES, UNCATEGORIZED
from categorize_trends.rate_limit import FixedDelayLimiter
from ingest_trends.models import Platform, ProcessedTrend

NOW = datetime(2024, 6, 19, tzinfo=timezone.utc)


class FakeCategorizer(TrendCategorizer):
    def __init__(self, answer) -> None:
        self.answer = answer
        self.seen: list[CategorizeTrendInput] = []

    async def categorize(self, data):
        self.seen.append(data)
        answer = self.answer(data) if callable(self.answer) else self.answer
        if isinstance(answer, Exception):
            raise answer
        return answer


class SlowCategorizer(TrendCategorizer):
    async def categorize(self, data):
        await asyncio.sleep(10)
        return CategorizeTrendOutput(category="Tech", confidence=0.9)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _trend(n: int, description: str | None = None) -> ProcessedTrend:
    return ProcessedTrend(
        id=f"http___x_{n}",
        title=f"Trend {n}",
        platform=Platform.TIKTOK,
        url=f"http://x/{n}",
        discovered_at=NOW,
        views=n,
        description=description,
    )


def _categorize(trends, categorizer, **kwargs):
    kwargs.setdefault("limiter", FixedDelayLimiter(0))
    return asyncio.run(categorize_trends(trends, categorizer, **kwargs))


class TestParseCategorization:
    def test_valid(self) -> None:
        output = parse_categorization('{"category": " Tech ", "confidence": 0.8}')
        assert output == CategorizeTrendOutput(category="Tech", confidence=0.8)

    def test_integer_confidence(self) -> None:
        assert parse_categorization('{"category": "Tech", "confidence": 1}').confidence == 1.0

    @pytest.mark.parametrize(
        "content",
        [
            None,
            "",
            "not json",
            "[1, 2]",
            '{"confidence": 0.5}',
            '{"category": "", "confidence": 0.5}',
            '{"category": "Tech"}',
            '{"category": "Tech", "confidence": "high"}',
            '{"category": "Tech", "confidence": true}',
        ],
    )
    def test_malformed(self, content) -> None:
        with pytest.raises(CategorizationError):
            parse_categorization(content)


class TestResolveCategory:
    def test_clamps_high_confidence(self) -> None:
        assert resolve_category(CategorizeTrendOutput("Tech", 1.4), NICHES) == ("Tech", 1.0)

    def test_clamps_negative_confidence(self) -> None:
        assert resolve_category(CategorizeTrendOutput("Tech", -0.2), NICHES) == ("Tech", 0.0)

    def test_normalizes_case(self) -> None:
        assert resolve_category(CategorizeTrendOutput("tech", 0.5), NICHES) == ("Tech", 0.5)

    def test_unknown_label_falls_back(self) -> None:
        assert resolve_category(CategorizeTrendOutput("Astrology", 0.9), NICHES) == (UNCATEGORIZED, 0.0)

    def test_unknown_label_kept_without_validation(self) -> None:
        result = resolve_category(CategorizeTrendOutput("Astrology", 0.9), NICHES, validate_categories=False)
        assert result == ("Astrology", 0.9)

    def test_explicit_uncategorized_has_zero_confidence(self) -> None:
        assert resolve_category(CategorizeTrendOutput("uncategorized", 0.7), NICHES) == (UNCATEGORIZED, 0.0)

    @pytest.mark.parametrize("confidence", [math.nan, math.inf, -math.inf])
    def test_non_finite_confidence(self, confidence) -> None:
        with pytest.raises(CategorizationError):
            resolve_category(CategorizeTrendOutput("Tech", confidence), NICHES)


class TestCategorizeTrends:
    def test_empty_input(self) -> None:
        categorizer = FakeCategorizer(CategorizeTrendOutput("Tech", 0.9))
        assert _categorize([], categorizer) == ([], 0)
        assert categorizer.seen == []

    def test_assigns_category(self) -> None:
        categorizer = FakeCategorizer(CategorizeTrendOutput("Tech", 0.9))
        results, failed = _categorize([_trend(1, description="about gadgets")], categorizer)

        assert failed == 0
        assert results[0].category == "Tech"
        assert results[0].category_confidence == 0.9
        assert results[0].id == "http___x_1"
        assert categorizer.seen[0].trend_title == "Trend 1"
        assert categorizer.seen[0].trend_description == "about gadgets"
        assert categorizer.seen[0].niches == NICHES

    def test_clamps_confidence(self) -> None:
        answers = {"Trend 1": CategorizeTrendOutput("Tech", 1.4), "Trend 2": CategorizeTrendOutput("Food", -0.2)}
        categorizer = FakeCategorizer(lambda data: answers[data.trend_title])

        results, _ = _categorize([_trend(1), _trend(2)], categorizer)

        assert [r.category_confidence for r in results] == [1.0, 0.0]

    def test_error_falls_back_per_trend(self) -> None:
        def answer(data):
            if data.trend_title == "Trend 2":
                return RuntimeError("rate limited")
            return CategorizeTrendOutput("Gaming", 0.7)

        results, failed = _categorize([_trend(1), _trend(2), _trend(3)], FakeCategorizer(answer))

        assert failed == 1
        assert [r.category for r in results] == ["Gaming", UNCATEGORIZED, "Gaming"]
        assert results[1].category_confidence == 0.0

    def test_timeout_falls_back(self) -> None:
        results, failed = _categorize([_trend(1)], SlowCategorizer(), timeout=0.01)

        assert failed == 1
        assert results[0].category == UNCATEGORIZED

    def test_non_finite_confidence_falls_back(self) -> None:
        results, failed = _categorize([_trend(1)], FakeCategorizer(CategorizeTrendOutput("Tech", math.nan)))

        assert failed == 1
        assert results[0].category == UNCATEGORIZED
        assert results[0].category_confidence == 0.0

    def test_no_categorizer(self) -> None:
        results, failed = _categorize([_trend(1), _trend(2)], None)

        assert failed == 2
        assert all(r.category == UNCATEGORIZED for r in results)
        assert all(r.category_confidence == 0.0 for r in results)

    def test_custom_niches(self) -> None:
        categorizer = FakeCategorizer(CategorizeTrendOutput("Tech", 0.9))
        results, _ = _categorize([_trend(1)], categorizer, niches=["Food"])

        assert categorizer.seen[0].niches == ["Food"]
        assert results[0].category == UNCATEGORIZED

    def test_paces_calls(self) -> None:
        sleep = RecordingSleep()
        limiter = FixedDelayLimiter(0.2, sleep=sleep)
        categorizer = FakeCategorizer(CategorizeTrendOutput("Tech", 0.9))

        _categorize([_trend(n) for n in range(5)], categorizer, limiter=limiter)

        assert sleep.delays == [0.2] * 4


def _completion(content):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


class TestOpenAICategorizer:
    def test_parses_json_answer(self) -> None:
        client = MagicMock()
        client.chat.completions.create = AsyncMock(
            return_value=_completion('{"category": "Fitness", "confidence": 0.75}')
        )
        categorizer = OpenAICategorizer(api_key="sk-test", model="test-model", client=client)

        output = asyncio.run(
            categorizer.categorize(CategorizeTrendInput(trend_title="Squat challenge", niches=NICHES))
        )

        assert output == CategorizeTrendOutput(category="Fitness", confidence=0.75)
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert "Squat challenge" in kwargs["messages"][1]["content"]

    def test_no_choices(self) -> None:
        response = MagicMock()
        response.choices = []
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=response)
        categorizer = OpenAICategorizer(api_key="sk-test", client=client)

        with pytest.raises(CategorizationError):
            asyncio.run(categorizer.categorize(CategorizeTrendInput(trend_title="T", niches=NICHES)))


class TestBuildCategorizer:
    def test_missing_key(self) -> None:
        assert build_categorizer(None) is None
        assert build_categorizer("") is None

    def test_with_key(self) -> None:
        categorizer = build_categorizer("sk-test", model="test-model")
        assert isinstance(categorizer, OpenAICategorizer)
        assert categorizer.model == "test-model"
