"""Aggregate reporting endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_reporting_service
from app.schemas.reporting import ClientAggregateResponse, DataEnvelope, SummaryResponse
from app.services.reporting import ReportingService

router = APIRouter()


@router.get(
    "/aggregate",
    response_model=DataEnvelope[List[ClientAggregateResponse]],
)
def aggregate(
    client_id: Optional[str] = Query(default=None, max_length=128),
    start_date: Optional[str] = Query(default=None),
    end_date: Optional[str] = Query(default=None),
    service: ReportingService = Depends(get_reporting_service),
) -> DataEnvelope[List[ClientAggregateResponse]]:
    rows = service.aggregate(client_id=client_id, start=start_date, end=end_date)
    return DataEnvelope(data=[ClientAggregateResponse.model_validate(row) for row in rows])


@router.get(
    "/summary",
    response_model=DataEnvelope[SummaryResponse],
)
def summary(service: ReportingService = Depends(get_reporting_service)) -> DataEnvelope[SummaryResponse]:
    return DataEnvelope(data=SummaryResponse.model_validate(service.summary()))
