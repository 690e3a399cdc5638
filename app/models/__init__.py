"""SQLAlchemy ORM models for the event ingestion service."""

from app.models.base import Base  # noqa: F401
from app.models.raw_event import RawEvent, RawEventStatus  # noqa: F401
from app.models.processed_event import ProcessedEvent  # noqa: F401
from app.models.idempotency_record import IdempotencyRecord  # noqa: F401
from app.models.failed_event import FailedEvent  # noqa: F401
