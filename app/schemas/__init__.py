"""Pydantic schemas for API payloads."""

from app.schemas.event import (
    EventSubmission,
    FailedEventResponse,
    ProcessedEventResponse,
    ProcessEventResponse,
    RawEventResponse,
)
from app.schemas.reporting import ClientAggregateResponse, DataEnvelope, SummaryResponse

__all__ = [
    "ClientAggregateResponse",
    "DataEnvelope",
    "EventSubmission",
    "FailedEventResponse",
    "ProcessedEventResponse",
    "ProcessEventResponse",
    "RawEventResponse",
    "SummaryResponse",
]
