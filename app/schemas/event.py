"""Event submission and listing schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.models.raw_event import RawEventStatus


class EventSubmission(BaseModel):
    """Inbound body of the ingestion endpoint."""

    event: Any = Field(default=None, description="Raw producer document, forwarded verbatim.")
    simulate_failure: bool = Field(
        default=False,
        validation_alias=AliasChoices("simulate_failure", "simulateFailure"),
        description="Force a storage error before the canonical write.",
    )


class ProcessEventResponse(BaseModel):
    """Outcome of a single submission."""

    success: bool
    is_duplicate: Optional[bool] = None
    message: Optional[str] = None
    processed_event_id: Optional[int] = None
    raw_event_id: Optional[int] = None
    idempotency_key: Optional[str] = None
    error: Optional[str] = None
    is_system_error: Optional[bool] = None


class ProcessedEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: str
    metric: Optional[str]
    amount: float
    timestamp: str
    idempotency_key: str
    raw_event_id: Optional[int]
    processed_at: datetime


class FailedEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    raw_event_id: Optional[int]
    error_message: Optional[str]
    raw_data: Optional[str]
    failed_at: datetime


class RawEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    received_at: datetime
    source: str
    processing_status: RawEventStatus
    raw_data: str
