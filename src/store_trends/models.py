"""SQLAlchemy ORM models for the trends and forecasts collections."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, BigInteger, DateTime, Float, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class TrendRow(Base):
    __tablename__ = "trends"

    # Sanitized URL
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    platform: Mapped[str] = mapped_column(String(16), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    views: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    likes: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    discovered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="Uncategorized")
    category_confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    processed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_trends_category_processed_at", "category", "processed_at"),
        Index("ix_trends_platform_processed_at", "platform", "processed_at"),
        Index("ix_trends_processed_at", "processed_at"),
    )


class ForecastRow(Base):
    __tablename__ = "forecasts"

    # "{niche}_{iso_year}-{iso_week}"
    id: Mapped[str] = mapped_column(String(96), primary_key=True)
    niche: Mapped[str] = mapped_column(String(64), nullable=False)
    week_start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    forecast_items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    revival_suggestion: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_forecasts_niche_week_start_date", "niche", "week_start_date"),
    )
