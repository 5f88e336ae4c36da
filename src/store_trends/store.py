"""Store abstraction for trends and forecasts, plus an in-memory implementation."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class WriteOperation:
    kind: Literal["upsert", "delete"]
    trend_id: str
    data: dict[str, Any] = field(default_factory=dict)


class WriteBatch(ABC):
    """
    Operations committed together in one atomic store write.

    Upserts merge the given fields into the trend document (creating it if
    absent); `processed_at` is set by the store at commit time.
    """

    def __init__(self) -> None:
        self.operations: list[WriteOperation] = []

    def upsert_trend(self, trend_id: str, data: dict[str, Any]) -> None:
        self.operations.append(WriteOperation("upsert", trend_id, dict(data)))

    def delete_trend(self, trend_id: str) -> None:
        self.operations.append(WriteOperation("delete", trend_id))

    def __len__(self) -> int:
        return len(self.operations)

    @abstractmethod
    def commit(self) -> int:
        """Apply all operations atomically and return how many were applied."""


class TrendStore(ABC):
    """Document store holding the `trends` and `forecasts` collections."""

    @abstractmethod
    def batch(self) -> WriteBatch:
        ...

    @abstractmethod
    def get_trend(self, trend_id: str) -> Optional[dict[str, Any]]:
        ...

    @abstractmethod
    def list_trends(
        self,
        category: Optional[str] = None,
        platform: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = 50,
    ) -> list[dict[str, Any]]:
        """Trends matching the filters, newest `processed_at` first."""

    @abstractmethod
    def find_trend_ids_processed_before(self, cutoff: datetime) -> list[str]:
        ...

    @abstractmethod
    def save_forecast(self, forecast_id: str, data: dict[str, Any]) -> None:
        """Merge `data` into the forecast document `forecast_id`."""

    @abstractmethod
    def get_forecast(self, forecast_id: str) -> Optional[dict[str, Any]]:
        ...

    @abstractmethod
    def list_forecasts(
        self,
        niche: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = 10,
    ) -> list[dict[str, Any]]:
        """Forecasts matching the filters, newest `week_start_date` first."""


class InMemoryWriteBatch(WriteBatch):
    def __init__(self, store: InMemoryTrendStore) -> None:
        super().__init__()
        self._store = store

    def commit(self) -> int:
        processed_at = self._store.clock()
        trends = copy.deepcopy(self._store.trends)
        for op in self.operations:
            if op.kind == "upsert":
                document = trends.setdefault(op.trend_id, {"id": op.trend_id})
                document.update(op.data)
                document["processed_at"] = processed_at
            else:
                trends.pop(op.trend_id, None)
        self._store.trends = trends
        return len(self.operations)


class InMemoryTrendStore(TrendStore):
    """Dict-backed store for tests and dry runs."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock = clock or utc_now
        self.trends: dict[str, dict[str, Any]] = {}
        self.forecasts: dict[str, dict[str, Any]] = {}

    def batch(self) -> InMemoryWriteBatch:
        return InMemoryWriteBatch(self)

    def get_trend(self, trend_id: str) -> Optional[dict[str, Any]]:
        document = self.trends.get(trend_id)
        return dict(document) if document is not None else None

    def list_trends(
        self,
        category: Optional[str] = None,
        platform: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = 50,
    ) -> list[dict[str, Any]]:
        matches = [
            dict(doc)
            for doc in self.trends.values()
            if (category is None or doc.get("category") == category)
            and (platform is None or doc.get("platform") == platform)
            and (since is None or doc["processed_at"] >= since)
        ]
        matches.sort(key=lambda doc: doc["processed_at"], reverse=True)
        return matches[:limit] if limit is not None else matches

    def find_trend_ids_processed_before(self, cutoff: datetime) -> list[str]:
        return [
            trend_id
            for trend_id, doc in self.trends.items()
            if doc["processed_at"] < cutoff
        ]

    def save_forecast(self, forecast_id: str, data: dict[str, Any]) -> None:
        self.forecasts.setdefault(forecast_id, {"id": forecast_id}).update(copy.deepcopy(data))

    def get_forecast(self, forecast_id: str) -> Optional[dict[str, Any]]:
        document = self.forecasts.get(forecast_id)
        return copy.deepcopy(document) if document is not None else None

    def list_forecasts(
        self,
        niche: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = 10,
    ) -> list[dict[str, Any]]:
        matches = [
            copy.deepcopy(doc)
            for doc in self.forecasts.values()
            if (niche is None or doc.get("niche") == niche)
            and (since is None or doc["week_start_date"] >= since)
        ]
        matches.sort(key=lambda doc: doc["week_start_date"], reverse=True)
        return matches[:limit] if limit is not None else matches
