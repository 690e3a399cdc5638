"""Processing orchestrator sequencing capture, normalization, dedup and storage.

Every storage step runs in its own unit of work so that earlier writes survive
a later failure:

1. capture the raw document (status ``processing``)
2. normalize; on failure record a ``FailedEvent`` and mark the raw event ``failed``
3. derive the idempotency key
4. look the key up; a hit marks the raw event ``duplicate``
5. insert the ``ProcessedEvent``; a failure leaves the raw event at ``processing``
6. record the key (best effort, failures are only logged)
7. mark the raw event ``success``

Concurrent submissions of the same logical event are arbitrated by the unique
constraint on ``processed_events.idempotency_key``; the loser is reported as a
duplicate of the winner.
"""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Any, Callable, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import session_scope
from app.ingestion.config import get_ingestion_config
from app.ingestion.errors import InvalidStatusTransition, StorageError
from app.ingestion.field_mapping import get_field_mapper
from app.ingestion.idempotency import IdempotencyEngine
from app.ingestion.normalizer import UNKNOWN, Normalizer, resolve_client_id, serialize_document
from app.ingestion.results import NormalizationFailure, ProcessingOutcome, RecordOutcome
from app.ingestion.schemas import NormalizedEvent
from app.models.failed_event import FailedEvent
from app.models.processed_event import ProcessedEvent
from app.models.raw_event import RawEvent, RawEventStatus, can_transition

logger = logging.getLogger("app.ingestion.processor")

SIMULATED_FAILURE_MESSAGE = "Simulated database failure during write"

SessionFactory = Callable[[], AbstractContextManager[Session]]

_processor: Optional["EventProcessor"] = None


class EventProcessor:
    """Runs one submission through the pipeline and classifies the outcome."""

    def __init__(
        self,
        *,
        normalizer: Normalizer,
        idempotency: IdempotencyEngine,
        session_factory: SessionFactory = session_scope,
    ) -> None:
        self._normalizer = normalizer
        self._idempotency = idempotency
        self._session_scope = session_factory

    def process_event(self, document: Any, inject_failure: bool = False) -> ProcessingOutcome:
        """Process ``document``; never raises.

        ``inject_failure`` forces a storage error after the duplicate check and
        before the canonical write. It exists for exercising the retry path.
        """

        try:
            return self._process(document, inject_failure)
        except Exception as exc:  # noqa: BLE001 - downgraded to a retryable outcome
            logger.exception("event_processing_system_error", extra={"error": str(exc)})
            return ProcessingOutcome.system_error(str(exc))

    def _process(self, document: Any, inject_failure: bool) -> ProcessingOutcome:
        raw_event_id = self._capture_raw(document)

        result = self._normalizer.normalize(document)
        if isinstance(result, NormalizationFailure):
            return self._reject(raw_event_id, result)
        event = result.event

        key = self._idempotency.derive_key(event)

        with self._session_scope() as session:
            check = self._idempotency.exists(session, key)
        if check.duplicate:
            self._advance(raw_event_id, RawEventStatus.DUPLICATE)
            logger.info(
                "event_duplicate_detected",
                extra={
                    "raw_event_id": raw_event_id,
                    "idempotency_key": key,
                    "processed_event_id": check.processed_event_id,
                },
            )
            return ProcessingOutcome.duplicate(
                raw_event_id=raw_event_id,
                processed_event_id=check.processed_event_id,
                idempotency_key=key,
            )

        if inject_failure:
            raise StorageError(SIMULATED_FAILURE_MESSAGE)

        try:
            processed_event_id = self._store_canonical(raw_event_id, event, key)
        except IntegrityError:
            return self._resolve_conflict(raw_event_id, key)

        self._record_key(key, processed_event_id)
        self._advance(raw_event_id, RawEventStatus.SUCCESS)

        logger.info(
            "event_processed",
            extra={
                "raw_event_id": raw_event_id,
                "processed_event_id": processed_event_id,
                "idempotency_key": key,
                "client_id": event.client_id,
            },
        )
        return ProcessingOutcome.processed(
            raw_event_id=raw_event_id,
            processed_event_id=processed_event_id,
            idempotency_key=key,
        )

    def _capture_raw(self, document: Any) -> int:
        source = resolve_client_id(document) if isinstance(document, Mapping) else UNKNOWN
        try:
            raw_data = serialize_document(document)
        except (TypeError, ValueError):
            raw_data = repr(document)

        with self._session_scope() as session:
            raw_event = RawEvent(
                raw_data=raw_data,
                source=source,
                processing_status=RawEventStatus.PROCESSING,
            )
            session.add(raw_event)
            session.flush()
            raw_event_id = raw_event.id

        logger.debug("raw_event_captured", extra={"raw_event_id": raw_event_id, "source": source})
        return raw_event_id

    def _reject(self, raw_event_id: int, failure: NormalizationFailure) -> ProcessingOutcome:
        with self._session_scope() as session:
            session.add(
                FailedEvent(
                    raw_event_id=raw_event_id,
                    error_message=failure.error,
                    raw_data=failure.raw_data,
                )
            )
            self._set_status(session, raw_event_id, RawEventStatus.FAILED)

        logger.warning(
            "event_normalization_failed",
            extra={"raw_event_id": raw_event_id, "error": failure.error},
        )
        return ProcessingOutcome.validation_error(raw_event_id=raw_event_id, error=failure.error)

    def _store_canonical(self, raw_event_id: int, event: NormalizedEvent, key: str) -> int:
        with self._session_scope() as session:
            processed = ProcessedEvent(
                client_id=event.client_id,
                metric=event.metric,
                amount=event.amount,
                timestamp=event.timestamp,
                idempotency_key=key,
                raw_event_id=raw_event_id,
            )
            session.add(processed)
            session.flush()
            return processed.id

    def _resolve_conflict(self, raw_event_id: int, key: str) -> ProcessingOutcome:
        """Map a rejected canonical insert onto the row that won."""

        with self._session_scope() as session:
            existing_id = session.scalar(
                select(ProcessedEvent.id).where(ProcessedEvent.idempotency_key == key)
            )
        if existing_id is None:
            raise StorageError(f"Canonical write rejected for key {key}")

        # The registry lagged behind processed_events; repair it on the way out.
        self._record_key(key, existing_id)
        self._advance(raw_event_id, RawEventStatus.DUPLICATE)

        logger.info(
            "event_canonical_conflict_resolved",
            extra={"raw_event_id": raw_event_id, "idempotency_key": key, "processed_event_id": existing_id},
        )
        return ProcessingOutcome.duplicate(
            raw_event_id=raw_event_id,
            processed_event_id=existing_id,
            idempotency_key=key,
        )

    def _record_key(self, key: str, processed_event_id: int) -> None:
        try:
            with self._session_scope() as session:
                outcome = self._idempotency.record(session, key, processed_event_id)
        except Exception:  # noqa: BLE001 - the processed event is already the source of truth
            logger.warning(
                "idempotency_record_failed",
                exc_info=True,
                extra={"idempotency_key": key, "processed_event_id": processed_event_id},
            )
            return

        if outcome is RecordOutcome.ALREADY_RECORDED:
            logger.info(
                "idempotency_record_concurrent_writer",
                extra={"idempotency_key": key, "processed_event_id": processed_event_id},
            )

    def _advance(self, raw_event_id: int, target: RawEventStatus) -> None:
        with self._session_scope() as session:
            self._set_status(session, raw_event_id, target)

    @staticmethod
    def _set_status(session: Session, raw_event_id: int, target: RawEventStatus) -> None:
        raw_event = session.get(RawEvent, raw_event_id)
        if raw_event is None:
            raise StorageError(f"Raw event {raw_event_id} not found")
        if not can_transition(raw_event.processing_status, target):
            raise InvalidStatusTransition(
                f"Raw event {raw_event_id} cannot move from "
                f"{raw_event.processing_status.value} to {target.value}"
            )
        raw_event.processing_status = target
        session.flush()


def build_event_processor() -> EventProcessor:
    config = get_ingestion_config()
    return EventProcessor(
        normalizer=Normalizer(get_field_mapper()),
        idempotency=IdempotencyEngine(bucket_millis=config.bucket_millis),
    )


def get_event_processor() -> EventProcessor:
    """Return the singleton processor for the application."""

    global _processor
    if _processor is None:
        _processor = build_event_processor()
    return _processor


def set_event_processor(processor: Optional[EventProcessor]) -> None:
    """Override the cached processor (primarily for tests)."""

    global _processor
    _processor = processor
