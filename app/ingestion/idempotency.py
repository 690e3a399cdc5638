"""Idempotency key derivation and the committed-key registry.

Producers supply no reliable event id, so the key is derived from content:

    {client_id}-{time_bucket}-{fingerprint}

``fingerprint`` is the first 16 hex characters of a SHA-256 over the sorted
JSON of ``client_id``, ``metric`` and ``amount``. The timestamp is left out of
the fingerprint and contributes only through ``time_bucket``, the epoch
milliseconds divided by the bucket width (one minute by default). Retries with
a jittered clock therefore land on the same key, while events minutes apart do
not. Two genuinely distinct events with equal client, metric and amount inside
one bucket collide; that is accepted.
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.ingestion.results import DuplicateCheck, RecordOutcome
from app.ingestion.schemas import NormalizedEvent
from app.models.idempotency_record import IdempotencyRecord

logger = logging.getLogger("app.ingestion.idempotency")

FINGERPRINT_LENGTH = 16
DEFAULT_BUCKET_MILLIS = 60_000

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def compute_fingerprint(event: NormalizedEvent) -> str:
    canonical = json.dumps(event.fingerprint_fields(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def epoch_millis(timestamp: str) -> int:
    text = timestamp[:-1] + "+00:00" if timestamp.endswith("Z") else timestamp
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) // _MILLISECOND


def time_bucket(timestamp: str, bucket_millis: int = DEFAULT_BUCKET_MILLIS) -> int:
    return epoch_millis(timestamp) // bucket_millis


class IdempotencyEngine:
    """Derives keys and answers existence questions against ``idempotency_keys``.

    Storage errors other than a uniqueness violation propagate to the caller.
    """

    def __init__(self, *, bucket_millis: int = DEFAULT_BUCKET_MILLIS) -> None:
        if bucket_millis <= 0:
            raise ValueError("bucket_millis must be positive")
        self._bucket_millis = bucket_millis

    @property
    def bucket_millis(self) -> int:
        return self._bucket_millis

    def derive_key(self, event: NormalizedEvent) -> str:
        bucket = time_bucket(event.timestamp, self._bucket_millis)
        return f"{event.client_id}-{bucket}-{compute_fingerprint(event)}"

    def exists(self, session: Session, key: str) -> DuplicateCheck:
        row = session.execute(
            select(IdempotencyRecord.processed_event_id).where(IdempotencyRecord.idempotency_key == key)
        ).first()
        if row is None:
            return DuplicateCheck(duplicate=False)
        return DuplicateCheck(duplicate=True, processed_event_id=row.processed_event_id)

    def record(self, session: Session, key: str, processed_event_id: int) -> RecordOutcome:
        """Insert the key unless present; a lost race reports ``ALREADY_RECORDED``."""

        session.add(IdempotencyRecord(idempotency_key=key, processed_event_id=processed_event_id))
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            if not self.exists(session, key).duplicate:
                raise
            logger.info("idempotency_key_already_recorded", extra={"idempotency_key": key})
            return RecordOutcome.ALREADY_RECORDED
        return RecordOutcome.RECORDED
