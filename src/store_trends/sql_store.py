"""SQL-backed trend store (PostgreSQL in production, SQLite in tests)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from store_trends.connection import create_tables, get_engine, get_session_factory
from store_trends.models import ForecastRow, TrendRow
from store_trends.store import Clock, TrendStore, WriteBatch, utc_now

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _as_utc(value: Any) -> Any:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _row_to_dict(row: Any) -> dict[str, Any]:
    return {column.name: _as_utc(getattr(row, column.name)) for column in row.__table__.columns}


def _upsert(session: Session, model: type, values: dict[str, Any]) -> None:
    dialect = session.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise ValueError(f"Upsert not supported for dialect: {dialect}")

    unknown = set(values) - set(model.__table__.columns.keys())
    if unknown:
        raise ValueError(f"Unknown {model.__tablename__} fields: {sorted(unknown)}")

    stmt = insert(model).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["id"],
        set_={key: stmt.excluded[key] for key in values if key != "id"},
    )
    session.execute(stmt)


class SqlWriteBatch(WriteBatch):
    def __init__(self, store: SqlTrendStore) -> None:
        super().__init__()
        self._store = store

    def commit(self) -> int:
        processed_at = self._store.clock()
        with self._store.session_factory() as session, session.begin():
            for op in self.operations:
                if op.kind == "upsert":
                    values = {**op.data, "id": op.trend_id, "processed_at": processed_at}
                    _upsert(session, TrendRow, values)
                else:
                    session.execute(delete(TrendRow).where(TrendRow.id == op.trend_id))
        return len(self.operations)


class SqlTrendStore(TrendStore):
    """Trend store on a relational database via SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker[Session], clock: Optional[Clock] = None) -> None:
        self.session_factory = session_factory
        self.clock = clock or utc_now

    @classmethod
    def from_engine(cls, engine: Engine, clock: Optional[Clock] = None) -> SqlTrendStore:
        create_tables(engine)
        return cls(get_session_factory(engine), clock=clock)

    @classmethod
    def from_url(cls, database_url: Optional[str] = None, clock: Optional[Clock] = None) -> SqlTrendStore:
        return cls.from_engine(get_engine(database_url), clock=clock)

    def batch(self) -> SqlWriteBatch:
        return SqlWriteBatch(self)

    def get_trend(self, trend_id: str) -> Optional[dict[str, Any]]:
        with self.session_factory() as session:
            row = session.get(TrendRow, trend_id)
            return _row_to_dict(row) if row is not None else None

    def list_trends(
        self,
        category: Optional[str] = None,
        platform: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = 50,
    ) -> list[dict[str, Any]]:
        stmt = select(TrendRow)
        if category is not None:
            stmt = stmt.where(TrendRow.category == category)
        if platform is not None:
            stmt = stmt.where(TrendRow.platform == platform)
        if since is not None:
            stmt = stmt.where(TrendRow.processed_at >= since)
        stmt = stmt.order_by(TrendRow.processed_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        with self.session_factory() as session:
            return [_row_to_dict(row) for row in session.scalars(stmt)]

    def find_trend_ids_processed_before(self, cutoff: datetime) -> list[str]:
        stmt = select(TrendRow.id).where(TrendRow.processed_at < cutoff)
        with self.session_factory() as session:
            return list(session.scalars(stmt))

    def save_forecast(self, forecast_id: str, data: dict[str, Any]) -> None:
        with self.session_factory() as session, session.begin():
            _upsert(session, ForecastRow, {**data, "id": forecast_id})

    def get_forecast(self, forecast_id: str) -> Optional[dict[str, Any]]:
        with self.session_factory() as session:
            row = session.get(ForecastRow, forecast_id)
            return _row_to_dict(row) if row is not None else None

    def list_forecasts(
        self,
        niche: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = 10,
    ) -> list[dict[str, Any]]:
        stmt = select(ForecastRow)
        if niche is not None:
            stmt = stmt.where(ForecastRow.niche == niche)
        if since is not None:
            stmt = stmt.where(ForecastRow.week_start_date >= since)
        stmt = stmt.order_by(ForecastRow.week_start_date.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        with self.session_factory() as session:
            return [_row_to_dict(row) for row in session.scalars(stmt)]
