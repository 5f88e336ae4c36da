"""Tests for generate_forecasts.generate_forecasts module."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from generate_forecasts.generate_forecasts import (
    ForecastError,
    generate_forecasts,
    generate_niche_forecast,
    next_week_start,
    parse_forecast_response,
    summarize_niche_history,
)
from generate_forecasts.instructions import NO_HISTORY
from store_trends.store import InMemoryTrendStore

# Wednesday of ISO week 25
NOW = datetime(2024, 6, 19, 15, 30, tzinfo=timezone.utc)
NEXT_MONDAY = datetime(2024, 6, 24, tzinfo=timezone.utc)


def _items(count: int) -> list[dict]:
    return [
        {"title": f"Idea {n}", "description": f"Why idea {n} works.", "confidence": 0.5, "hashtags": ["#a"]}
        for n in range(count)
    ]


def _completion(payload) -> MagicMock:
    content = payload if isinstance(payload, str) else json.dumps(payload)
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


def _client(*payloads) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create.side_effect = [_completion(p) for p in payloads]
    return client


class TestNextWeekStart:
    def test_midweek(self) -> None:
        assert next_week_start(NOW) == NEXT_MONDAY

    def test_monday_goes_to_following_monday(self) -> None:
        monday = datetime(2024, 6, 17, 9, 0, tzinfo=timezone.utc)
        assert next_week_start(monday) == NEXT_MONDAY

    def test_sunday(self) -> None:
        sunday = datetime(2024, 6, 23, 23, 59, tzinfo=timezone.utc)
        assert next_week_start(sunday) == NEXT_MONDAY

    def test_converts_to_utc(self) -> None:
        # Monday 01:00 at UTC+2 is still Sunday in UTC
        local = datetime(2024, 6, 24, 1, 0, tzinfo=timezone(timedelta(hours=2)))
        assert next_week_start(local) == NEXT_MONDAY


class TestParseForecastResponse:
    def test_valid(self) -> None:
        items, revival = parse_forecast_response(
            json.dumps(
                {
                    "forecast_items": _items(3),
                    "revival_suggestion": {"title": "Old dance", "description": "Bring it back."},
                }
            )
        )

        assert [i.title for i in items] == ["Idea 0", "Idea 1", "Idea 2"]
        assert all(i.id for i in items)
        assert len({i.id for i in items}) == 3
        assert revival.title == "Old dance"

    def test_truncates_to_five(self) -> None:
        items, _ = parse_forecast_response(json.dumps({"forecast_items": _items(7)}))
        assert len(items) == 5

    def test_too_few_items(self) -> None:
        with pytest.raises(ForecastError, match="at least 3"):
            parse_forecast_response(json.dumps({"forecast_items": _items(2)}))

    def test_clamps_and_drops_bad_confidence(self) -> None:
        raw = _items(3)
        raw[0]["confidence"] = 1.5
        raw[1]["confidence"] = "high"
        del raw[2]["confidence"]

        items, _ = parse_forecast_response(json.dumps({"forecast_items": raw}))

        assert [i.confidence for i in items] == [1.0, None, None]

    def test_keeps_existing_id(self) -> None:
        raw = _items(3)
        raw[0]["id"] = "keep-me"
        items, _ = parse_forecast_response(json.dumps({"forecast_items": raw}))
        assert items[0].id == "keep-me"

    @pytest.mark.parametrize("bad_id", [42, {"x": 1}, "", "   "])
    def test_non_string_id_is_replaced(self, bad_id) -> None:
        raw = _items(3)
        raw[0]["id"] = bad_id
        items, _ = parse_forecast_response(json.dumps({"forecast_items": raw}))

        assert isinstance(items[0].id, str)
        assert len(items[0].id) == 32

    def test_incomplete_revival_is_dropped(self) -> None:
        _, revival = parse_forecast_response(
            json.dumps({"forecast_items": _items(3), "revival_suggestion": {"title": "Only title"}})
        )
        assert revival is None

    @pytest.mark.parametrize(
        "content",
        [None, "", "nope", "[]", '{"forecast_items": "x"}', '{"forecast_items": [1, 2, 3]}'],
    )
    def test_malformed(self, content) -> None:
        with pytest.raises(ForecastError):
            parse_forecast_response(content)

    def test_item_without_description(self) -> None:
        raw = _items(3)
        raw[1]["description"] = ""
        with pytest.raises(ForecastError, match="description"):
            parse_forecast_response(json.dumps({"forecast_items": raw}))


class TestSummarizeNicheHistory:
    def test_no_history(self) -> None:
        assert summarize_niche_history(InMemoryTrendStore(), "Tech") == NO_HISTORY

    def test_lists_recent_trends(self) -> None:
        store = InMemoryTrendStore()
        batch = store.batch()
        batch.upsert_trend("a", {"title": "Foldable phones", "platform": "TikTok", "category": "Tech", "views": 100})
        batch.upsert_trend("b", {"title": "Reel", "platform": "Instagram", "category": "Tech", "likes": 5})
        batch.upsert_trend("c", {"title": "Pasta", "platform": "YouTube", "category": "Food", "views": 1})
        batch.commit()

        summary = summarize_niche_history(store, "Tech")

        assert "[TikTok] Foldable phones (100 views)" in summary
        assert "[Instagram] Reel (5 likes)" in summary
        assert "Pasta" not in summary


class TestGenerateNicheForecast:
    def test_builds_forecast(self) -> None:
        client = _client({"forecast_items": _items(4)})

        forecast = generate_niche_forecast("Tech", client, model="test-model", historical_data="history", now=NOW)

        assert forecast.niche == "Tech"
        assert forecast.week_start_date == NEXT_MONDAY
        assert forecast.generated_at == NOW
        assert len(forecast.forecast_items) == 4
        assert forecast.revival_suggestion is None

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert "Niche: Tech" in kwargs["messages"][1]["content"]
        assert "history" in kwargs["messages"][1]["content"]

    def test_requires_niche(self) -> None:
        with pytest.raises(ValueError):
            generate_niche_forecast("", MagicMock(), now=NOW)

    def test_no_choices(self) -> None:
        response = MagicMock()
        response.choices = []
        client = MagicMock()
        client.chat.completions.create.return_value = response

        with pytest.raises(ForecastError):
            generate_niche_forecast("Tech", client, now=NOW)


class TestGenerateForecasts:
    def test_saves_per_niche_and_isolates_failures(self) -> None:
        store = InMemoryTrendStore()
        client = _client({"forecast_items": _items(3)}, {"forecast_items": _items(1)})

        summary = generate_forecasts(["Tech", "Food"], store, client, now=NOW)

        assert summary.generated == 1
        assert summary.failed == 1
        assert summary.saved == 1
        doc = store.get_forecast("Tech_2024-26")
        assert doc["niche"] == "Tech"
        assert doc["week_start_date"] == NEXT_MONDAY
        assert len(doc["forecast_items"]) == 3
        assert store.get_forecast("Food_2024-26") is None

    def test_client_error_is_isolated(self) -> None:
        client = MagicMock()
        client.chat.completions.create.side_effect = [
            RuntimeError("api down"),
            _completion({"forecast_items": _items(3)}),
        ]
        store = InMemoryTrendStore()

        summary = generate_forecasts(["Tech", "Food"], store, client, now=NOW)

        assert summary.failed == 1
        assert summary.saved == 1
        assert list(store.forecasts) == ["Food_2024-26"]

    def test_rerun_same_week_overwrites(self) -> None:
        store = InMemoryTrendStore()
        client = _client({"forecast_items": _items(3)}, {"forecast_items": _items(5)})

        generate_forecasts(["Tech"], store, client, now=NOW)
        generate_forecasts(["Tech"], store, client, now=NOW + timedelta(days=1))

        assert list(store.forecasts) == ["Tech_2024-26"]
        assert len(store.get_forecast("Tech_2024-26")["forecast_items"]) == 5

    def test_save_failure_is_counted(self) -> None:
        store = MagicMock()
        store.list_trends.return_value = []
        store.save_forecast.side_effect = RuntimeError("write failed")
        client = _client({"forecast_items": _items(3)})

        summary = generate_forecasts(["Tech"], store, client, now=NOW)

        assert summary.generated == 1
        assert summary.saved == 0
        assert len(summary.forecasts) == 1
