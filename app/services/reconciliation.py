"""Rebuilds idempotency registry rows missing for committed events."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.ingestion.idempotency import IdempotencyEngine
from app.ingestion.results import RecordOutcome
from app.models.idempotency_record import IdempotencyRecord
from app.models.processed_event import ProcessedEvent

logger = logging.getLogger("app.services.reconciliation")


@dataclass
class ReconciliationResult:
    """Counts reported after a reconciliation pass."""

    scanned: int
    missing: int
    repaired: int


class IdempotencyReconciler:
    """Closes the gap left when recording a key failed after the canonical write."""

    def __init__(self, session: Session, idempotency: IdempotencyEngine | None = None) -> None:
        self._session = session
        self._idempotency = idempotency or IdempotencyEngine()

    def reconcile(self, *, dry_run: bool = False) -> ReconciliationResult:
        scanned = self._session.scalar(select(func.count(ProcessedEvent.id))) or 0
        orphans = list(
            self._session.execute(
                select(ProcessedEvent.id, ProcessedEvent.idempotency_key)
                .outerjoin(
                    IdempotencyRecord,
                    IdempotencyRecord.idempotency_key == ProcessedEvent.idempotency_key,
                )
                .where(IdempotencyRecord.idempotency_key.is_(None))
                .order_by(ProcessedEvent.id.asc())
            )
        )

        repaired = 0
        for processed_event_id, key in orphans:
            logger.info(
                "idempotency_record_missing",
                extra={"idempotency_key": key, "processed_event_id": processed_event_id, "dry_run": dry_run},
            )
            if dry_run:
                continue
            # Commit per key; record() rolls the session back when it loses a race.
            if self._idempotency.record(self._session, key, processed_event_id) is RecordOutcome.RECORDED:
                self._session.commit()
                repaired += 1

        return ReconciliationResult(scanned=scanned, missing=len(orphans), repaired=repaired)
