"""Read-only reporting over canonical, failed and raw events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from app.ingestion.normalizer import format_timestamp, parse_timestamp
from app.models.failed_event import FailedEvent
from app.models.processed_event import ProcessedEvent
from app.models.raw_event import RawEvent, RawEventStatus

MAX_PROCESSED_EVENTS = 100
MAX_FAILED_EVENTS = 50
MAX_RAW_EVENTS = 100

DateBound = Union[datetime, str, None]


class InvalidReportFilterError(ValueError):
    """Raised when a date filter cannot be interpreted."""


@dataclass(frozen=True)
class ClientAggregate:
    client_id: str
    count: int
    total: float
    average: float


@dataclass(frozen=True)
class ProcessingSummary:
    total_processed: int
    total_failed: int
    total_amount: float
    success_rate: str


def _canonical_bound(value: DateBound) -> Optional[str]:
    if value is None or value == "":
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise InvalidReportFilterError(f"Unrecognized date filter: {value!r}")
    return format_timestamp(parsed)


def _clamp(limit: int, ceiling: int) -> int:
    return max(1, min(limit, ceiling))


class ReportingService:
    """Aggregations and bounded listings used by dashboards."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _filtered(
        self,
        stmt: Select,
        *,
        client_id: Optional[str],
        start: DateBound,
        end: DateBound,
    ) -> Select:
        if client_id:
            stmt = stmt.where(ProcessedEvent.client_id == client_id)
        # Stored timestamps share the canonical format, so text comparison orders them.
        lower = _canonical_bound(start)
        if lower is not None:
            stmt = stmt.where(ProcessedEvent.timestamp >= lower)
        upper = _canonical_bound(end)
        if upper is not None:
            stmt = stmt.where(ProcessedEvent.timestamp <= upper)
        return stmt

    def aggregate(
        self,
        *,
        client_id: Optional[str] = None,
        start: DateBound = None,
        end: DateBound = None,
    ) -> List[ClientAggregate]:
        stmt = select(
            ProcessedEvent.client_id,
            func.count(ProcessedEvent.id),
            func.coalesce(func.sum(ProcessedEvent.amount), 0.0),
        ).group_by(ProcessedEvent.client_id)
        stmt = self._filtered(stmt, client_id=client_id, start=start, end=end)

        aggregates = []
        for row_client_id, count, total in self._session.execute(stmt.order_by(ProcessedEvent.client_id)):
            aggregates.append(
                ClientAggregate(
                    client_id=row_client_id,
                    count=int(count),
                    total=float(total),
                    average=float(total) / count,
                )
            )
        return aggregates

    def list_processed_events(
        self,
        *,
        client_id: Optional[str] = None,
        start: DateBound = None,
        end: DateBound = None,
        limit: int = MAX_PROCESSED_EVENTS,
    ) -> List[ProcessedEvent]:
        stmt = self._filtered(select(ProcessedEvent), client_id=client_id, start=start, end=end)
        stmt = stmt.order_by(ProcessedEvent.processed_at.desc(), ProcessedEvent.id.desc())
        return list(self._session.scalars(stmt.limit(_clamp(limit, MAX_PROCESSED_EVENTS))))

    def list_failed_events(self, *, limit: int = MAX_FAILED_EVENTS) -> List[FailedEvent]:
        stmt = select(FailedEvent).order_by(FailedEvent.failed_at.desc(), FailedEvent.id.desc())
        return list(self._session.scalars(stmt.limit(_clamp(limit, MAX_FAILED_EVENTS))))

    def list_raw_events(
        self,
        *,
        source: Optional[str] = None,
        status: Optional[RawEventStatus] = None,
        limit: int = MAX_RAW_EVENTS,
    ) -> List[RawEvent]:
        stmt = select(RawEvent).order_by(RawEvent.received_at.desc(), RawEvent.id.desc())
        if source:
            stmt = stmt.where(RawEvent.source == source)
        if status:
            stmt = stmt.where(RawEvent.processing_status == status)
        return list(self._session.scalars(stmt.limit(_clamp(limit, MAX_RAW_EVENTS))))

    def summary(self) -> ProcessingSummary:
        processed = self._session.scalar(select(func.count(ProcessedEvent.id))) or 0
        failed = self._session.scalar(select(func.count(FailedEvent.id))) or 0
        total_amount = self._session.scalar(select(func.coalesce(func.sum(ProcessedEvent.amount), 0.0)))

        attempted = processed + failed
        success_rate = f"{processed / attempted * 100:.2f}%" if attempted else "N/A"
        return ProcessingSummary(
            total_processed=processed,
            total_failed=failed,
            total_amount=float(total_amount or 0.0),
            success_rate=success_rate,
        )
