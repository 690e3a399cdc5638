"""Canonical events ready for aggregation."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Float, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class ProcessedEvent(Base):
    """One row per idempotency key; the unique constraint is the final duplicate guard."""

    __tablename__ = "processed_events"
    __table_args__ = (Index("ix_processed_events_client_time", "client_id", "timestamp"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[str] = mapped_column(String(length=128), nullable=False)
    metric: Mapped[Optional[str]] = mapped_column(String(length=128), nullable=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    # ISO-8601 UTC text so range filters compare lexically.
    timestamp: Mapped[str] = mapped_column(String(length=32), nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(length=255), unique=True, nullable=False)
    raw_event_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("raw_events.id"),
        nullable=True,
    )
    processed_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
