"""Reporting API schemas."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

DataT = TypeVar("DataT")


class DataEnvelope(BaseModel, Generic[DataT]):
    """``{"success": true, "data": ...}`` wrapper used by read endpoints."""

    success: bool = True
    data: DataT


class ClientAggregateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    client_id: str
    count: int
    total: float
    average: float


class SummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_processed: int
    total_failed: int
    total_amount: float
    success_rate: str
