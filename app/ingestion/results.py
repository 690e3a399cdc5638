"""Tagged results exchanged between pipeline stages and returned to callers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from app.ingestion.schemas import NormalizedEvent


@dataclass(frozen=True)
class NormalizationSuccess:
    event: NormalizedEvent


@dataclass(frozen=True)
class NormalizationFailure:
    error: str
    raw_data: str


NormalizationResult = Union[NormalizationSuccess, NormalizationFailure]


@dataclass(frozen=True)
class DuplicateCheck:
    """Answer from the idempotency registry for a single key."""

    duplicate: bool
    processed_event_id: Optional[int] = None


class RecordOutcome(str, Enum):
    RECORDED = "recorded"
    ALREADY_RECORDED = "already_recorded"


class OutcomeKind(str, Enum):
    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    VALIDATION_ERROR = "validation_error"
    SYSTEM_ERROR = "system_error"


@dataclass(frozen=True)
class ProcessingOutcome:
    """Classification of one submission as seen by the caller."""

    kind: OutcomeKind
    raw_event_id: Optional[int] = None
    processed_event_id: Optional[int] = None
    idempotency_key: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.kind in (OutcomeKind.PROCESSED, OutcomeKind.DUPLICATE)

    @property
    def is_duplicate(self) -> bool:
        return self.kind is OutcomeKind.DUPLICATE

    @property
    def is_system_error(self) -> bool:
        return self.kind is OutcomeKind.SYSTEM_ERROR

    @classmethod
    def processed(cls, *, raw_event_id: int, processed_event_id: int, idempotency_key: str) -> "ProcessingOutcome":
        return cls(
            kind=OutcomeKind.PROCESSED,
            raw_event_id=raw_event_id,
            processed_event_id=processed_event_id,
            idempotency_key=idempotency_key,
        )

    @classmethod
    def duplicate(
        cls,
        *,
        raw_event_id: int,
        processed_event_id: Optional[int],
        idempotency_key: str,
    ) -> "ProcessingOutcome":
        return cls(
            kind=OutcomeKind.DUPLICATE,
            raw_event_id=raw_event_id,
            processed_event_id=processed_event_id,
            idempotency_key=idempotency_key,
        )

    @classmethod
    def validation_error(cls, *, raw_event_id: int, error: str) -> "ProcessingOutcome":
        return cls(kind=OutcomeKind.VALIDATION_ERROR, raw_event_id=raw_event_id, error=error)

    @classmethod
    def system_error(cls, error: str) -> "ProcessingOutcome":
        return cls(kind=OutcomeKind.SYSTEM_ERROR, error=error)

    def as_dict(self) -> Dict[str, Any]:
        """Caller-facing shape; keys that do not apply to the outcome are omitted."""

        body: Dict[str, Any] = {"success": self.success}
        if self.kind is OutcomeKind.SYSTEM_ERROR:
            body.update(error=self.error, is_system_error=True)
            return body
        if self.kind is OutcomeKind.VALIDATION_ERROR:
            body.update(error=self.error, raw_event_id=self.raw_event_id)
            return body
        if self.is_duplicate:
            body.update(is_duplicate=True, message="Event already processed")
        body.update(
            processed_event_id=self.processed_event_id,
            raw_event_id=self.raw_event_id,
            idempotency_key=self.idempotency_key,
        )
        return body
