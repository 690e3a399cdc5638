"""Dependency injection helpers for FastAPI routes."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import AppSettings, get_settings
from app.core.database import get_session
from app.ingestion.config import IngestionConfig, get_ingestion_config
from app.ingestion.processor import EventProcessor, get_event_processor
from app.services.reporting import ReportingService


def get_db_session() -> Session:
    yield from get_session()


def get_app_settings() -> AppSettings:
    return get_settings()


def get_ingestion_settings(settings: AppSettings = Depends(get_app_settings)) -> IngestionConfig:
    return get_ingestion_config(settings)


def get_processor() -> EventProcessor:
    return get_event_processor()


def get_reporting_service(session: Session = Depends(get_db_session)) -> ReportingService:
    return ReportingService(session)
