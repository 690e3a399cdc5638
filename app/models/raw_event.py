"""Verbatim capture of every inbound submission."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet

from sqlalchemy import Enum as SqlEnum
from sqlalchemy import Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class RawEventStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"
    DUPLICATE = "duplicate"

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS: Dict[RawEventStatus, FrozenSet[RawEventStatus]] = {
    RawEventStatus.PENDING: frozenset({RawEventStatus.PROCESSING}),
    RawEventStatus.PROCESSING: frozenset(
        {RawEventStatus.SUCCESS, RawEventStatus.FAILED, RawEventStatus.DUPLICATE}
    ),
    RawEventStatus.SUCCESS: frozenset(),
    RawEventStatus.FAILED: frozenset(),
    RawEventStatus.DUPLICATE: frozenset(),
}


def can_transition(current: RawEventStatus, target: RawEventStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class RawEvent(Base):
    """Audit record of a submission; only ``processing_status`` ever changes."""

    __tablename__ = "raw_events"
    __table_args__ = (Index("ix_raw_events_source", "source"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    received_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    raw_data: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(String(length=128), nullable=False)
    processing_status: Mapped[RawEventStatus] = mapped_column(
        SqlEnum(
            RawEventStatus,
            name="raw_event_status",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=RawEventStatus.PENDING,
    )
