"""Normalization of producer documents into canonical events."""

from __future__ import annotations

import json
import math
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from email.utils import parsedate_to_datetime
from typing import Any, Callable, List, Mapping, Optional, Tuple

from app.ingestion.field_mapping import FieldMapper, extract_path
from app.ingestion.results import NormalizationFailure, NormalizationResult, NormalizationSuccess
from app.ingestion.schemas import NormalizedEvent

# Producer identity is read from these top-level fields, first match wins.
IDENTITY_FIELDS: Tuple[str, ...] = ("source", "client")
UNKNOWN = "unknown"

_DECIMAL_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
# Numbers above this magnitude are epoch milliseconds, otherwise epoch seconds.
MILLIS_THRESHOLD = 10_000_000_000

_SLASHED_FORMATS: Tuple[str, ...] = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%dT%H:%M:%S",
    "%m/%d/%Y",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def serialize_document(document: Any) -> str:
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False, default=str)


def resolve_client_id(document: Mapping[str, Any]) -> str:
    for field in IDENTITY_FIELDS:
        value = document.get(field)
        if value not in (None, ""):
            return str(value)
    return UNKNOWN


def coerce_amount(value: Any) -> Optional[float]:
    """Numeric value of ``value`` or ``None`` when it is absent or not a finite number."""

    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float, Decimal)):
            number = float(value)
        elif isinstance(value, str):
            text = value.strip()
            if not _DECIMAL_PATTERN.fullmatch(text):
                return None
            number = float(text)
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def coerce_metric(value: Any) -> str:
    """Metric label for ``value``; anything but a non-empty string or a number is ``unknown``."""

    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        return UNKNOWN
    if isinstance(value, str):
        return value or UNKNOWN
    return str(value) if value else UNKNOWN


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_date_string(text: str) -> Optional[datetime]:
    if not text:
        return None

    iso_candidate = text[:-1] + "+00:00" if text[-1] in "Zz" else text
    try:
        return _as_utc(datetime.fromisoformat(iso_candidate))
    except ValueError:
        pass

    for fmt in _SLASHED_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue

    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None
    return _as_utc(parsed) if parsed is not None else None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Interpret epoch numbers and calendar strings; ``None`` when unusable."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            if abs(value) > MILLIS_THRESHOLD:
                return EPOCH + timedelta(milliseconds=value)
            return EPOCH + timedelta(seconds=value)
        except OverflowError:
            return None
    if isinstance(value, str):
        return _parse_date_string(value.strip())
    return None


def format_timestamp(value: datetime) -> str:
    """``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""

    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def validate_normalized(record: Mapping[str, Any]) -> Tuple[bool, List[str]]:
    """Strict check of a canonical record, collecting every problem found."""

    errors: List[str] = []
    for field in ("client_id", "metric"):
        value = record.get(field)
        if not isinstance(value, str) or not value:
            errors.append(f"{field} must be a non-empty string")

    amount = record.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
        errors.append("amount must be a finite number")

    timestamp = record.get("timestamp")
    if not isinstance(timestamp, str) or _parse_date_string(timestamp) is None:
        errors.append("timestamp must be an ISO-8601 date")

    return not errors, errors


class Normalizer:
    """Maps producer documents onto :class:`NormalizedEvent` without side effects."""

    def __init__(self, mapper: FieldMapper, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._mapper = mapper
        self._clock = clock

    def normalize(self, document: Any) -> NormalizationResult:
        try:
            raw_data = serialize_document(document)
        except (TypeError, ValueError) as exc:
            return NormalizationFailure(error=f"Event is not serializable: {exc}", raw_data=repr(document))

        if not isinstance(document, Mapping):
            return NormalizationFailure(error="Event must be a JSON object", raw_data=raw_data)

        client_id = resolve_client_id(document)
        mapping = self._mapper.resolve(client_id)

        amount = coerce_amount(extract_path(document, mapping.amount))
        if amount is None:
            return NormalizationFailure(error="Missing or invalid amount field", raw_data=raw_data)

        # Timestamp is advisory: an unusable value falls back to processing time.
        timestamp = parse_timestamp(extract_path(document, mapping.timestamp)) or self._clock()

        record = {
            "client_id": client_id,
            "metric": coerce_metric(extract_path(document, mapping.metric)),
            "amount": amount,
            "timestamp": format_timestamp(timestamp),
        }
        valid, errors = validate_normalized(record)
        if not valid:
            return NormalizationFailure(error="; ".join(errors), raw_data=raw_data)

        return NormalizationSuccess(NormalizedEvent(raw_data=raw_data, **record))
