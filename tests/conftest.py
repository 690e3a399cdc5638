import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("EIC_ENVIRONMENT", "test")
os.environ.setdefault("EIC_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("EIC_LOG_JSON", "false")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import get_settings  # noqa: E402

get_settings.cache_clear()

from app.core.database import engine  # noqa: E402
from app.ingestion.field_mapping import FieldMapper, get_field_mapper  # noqa: E402
from app.ingestion.idempotency import IdempotencyEngine  # noqa: E402
from app.ingestion.normalizer import Normalizer  # noqa: E402
from app.ingestion.processor import EventProcessor, set_event_processor  # noqa: E402
from app.main import create_app  # noqa: E402
from app.models import Base  # noqa: E402

FIXED_NOW = datetime(2024, 3, 1, 12, 30, 15, 250000, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    set_event_processor(None)
    yield
    set_event_processor(None)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def mapper() -> FieldMapper:
    get_field_mapper.cache_clear()
    return get_field_mapper()


@pytest.fixture()
def normalizer(mapper: FieldMapper) -> Normalizer:
    return Normalizer(mapper, clock=lambda: FIXED_NOW)


@pytest.fixture()
def processor(normalizer: Normalizer) -> EventProcessor:
    instance = EventProcessor(normalizer=normalizer, idempotency=IdempotencyEngine())
    set_event_processor(instance)
    return instance


@pytest.fixture()
def client(processor: EventProcessor) -> TestClient:  # noqa: ANN001
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
