"""Event submission and listing endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from app.api.dependencies import get_ingestion_settings, get_processor, get_reporting_service
from app.ingestion.config import IngestionConfig
from app.ingestion.processor import EventProcessor
from app.ingestion.results import OutcomeKind
from app.models.raw_event import RawEventStatus
from app.schemas.event import (
    EventSubmission,
    FailedEventResponse,
    ProcessedEventResponse,
    ProcessEventResponse,
    RawEventResponse,
)
from app.schemas.reporting import DataEnvelope
from app.services.reporting import MAX_FAILED_EVENTS, MAX_PROCESSED_EVENTS, MAX_RAW_EVENTS, ReportingService

router = APIRouter()

RETRY_MESSAGE = "System error during processing. Event may be retried."

_STATUS_BY_OUTCOME = {
    OutcomeKind.PROCESSED: status.HTTP_200_OK,
    OutcomeKind.DUPLICATE: status.HTTP_200_OK,
    OutcomeKind.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    OutcomeKind.SYSTEM_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@router.post(
    "",
    response_model=ProcessEventResponse,
    responses={400: {"model": ProcessEventResponse}, 500: {"model": ProcessEventResponse}},
)
def submit_event(
    submission: EventSubmission,
    processor: EventProcessor = Depends(get_processor),
    config: IngestionConfig = Depends(get_ingestion_settings),
) -> JSONResponse:
    if submission.event is None:
        body = ProcessEventResponse(success=False, error="Missing event in request body")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(exclude_none=True))

    inject_failure = submission.simulate_failure and config.simulate_failure_enabled
    outcome = processor.process_event(submission.event, inject_failure=inject_failure)

    body = ProcessEventResponse(**outcome.as_dict())
    if outcome.is_system_error:
        body.message = RETRY_MESSAGE
    return JSONResponse(status_code=_STATUS_BY_OUTCOME[outcome.kind], content=body.model_dump(exclude_none=True))


@router.get(
    "",
    response_model=DataEnvelope[List[ProcessedEventResponse]],
)
def list_processed_events(
    client_id: Optional[str] = Query(default=None, max_length=128),
    start_date: Optional[str] = Query(default=None),
    end_date: Optional[str] = Query(default=None),
    limit: int = Query(default=MAX_PROCESSED_EVENTS, ge=1, le=MAX_PROCESSED_EVENTS),
    service: ReportingService = Depends(get_reporting_service),
) -> DataEnvelope[List[ProcessedEventResponse]]:
    records = service.list_processed_events(client_id=client_id, start=start_date, end=end_date, limit=limit)
    return DataEnvelope(data=[ProcessedEventResponse.model_validate(record) for record in records])


@router.get(
    "/failed",
    response_model=DataEnvelope[List[FailedEventResponse]],
)
def list_failed_events(
    limit: int = Query(default=MAX_FAILED_EVENTS, ge=1, le=MAX_FAILED_EVENTS),
    service: ReportingService = Depends(get_reporting_service),
) -> DataEnvelope[List[FailedEventResponse]]:
    records = service.list_failed_events(limit=limit)
    return DataEnvelope(data=[FailedEventResponse.model_validate(record) for record in records])


@router.get(
    "/raw",
    response_model=DataEnvelope[List[RawEventResponse]],
)
def list_raw_events(
    source: Optional[str] = Query(default=None, max_length=128),
    processing_status: Optional[RawEventStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=MAX_RAW_EVENTS, ge=1, le=MAX_RAW_EVENTS),
    service: ReportingService = Depends(get_reporting_service),
) -> DataEnvelope[List[RawEventResponse]]:
    records = service.list_raw_events(source=source, status=processing_status, limit=limit)
    return DataEnvelope(data=[RawEventResponse.model_validate(record) for record in records])
