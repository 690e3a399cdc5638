"""Pydantic models describing canonical events."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class NormalizedEvent(BaseModel):
    """Canonical form of a producer event, immutable once built."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1)
    metric: str
    amount: float
    timestamp: str = Field(..., description="UTC ISO-8601 with millisecond precision.")
    raw_data: str = Field(..., description="Serialized original document.")

    def fingerprint_fields(self) -> dict[str, object]:
        return {"client_id": self.client_id, "metric": self.metric, "amount": self.amount}
