"""Ingestion pipeline turning producer documents into canonical events."""

from .field_mapping import FieldMapper, FieldMapping, get_field_mapper  # noqa: F401
from .idempotency import IdempotencyEngine  # noqa: F401
from .normalizer import Normalizer  # noqa: F401
from .processor import EventProcessor, get_event_processor  # noqa: F401
from .results import OutcomeKind, ProcessingOutcome  # noqa: F401
