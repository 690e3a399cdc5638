"""Configuration helpers for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from app.core.config import AppSettings, get_settings


@dataclass(frozen=True)
class IngestionConfig:
    """Resolved configuration values for the ingestion pipeline."""

    bucket_seconds: int
    producer_mappings: Mapping[str, Dict[str, str]]
    simulate_failure_enabled: bool

    @property
    def bucket_millis(self) -> int:
        return self.bucket_seconds * 1000


def get_ingestion_config(settings: Optional[AppSettings] = None) -> IngestionConfig:
    """Materialize ingestion configuration from application settings."""

    settings = settings or get_settings()
    return IngestionConfig(
        bucket_seconds=settings.idempotency_bucket_seconds,
        producer_mappings=dict(settings.producer_mappings),
        simulate_failure_enabled=settings.simulate_failure_enabled,
    )
