from __future__ import annotations

import json

import pytest

from app.ingestion.normalizer import (
    Normalizer,
    coerce_amount,
    format_timestamp,
    parse_timestamp,
    validate_normalized,
)
from app.ingestion.results import NormalizationFailure, NormalizationSuccess


def _ok(normalizer: Normalizer, document: object):
    result = normalizer.normalize(document)
    assert isinstance(result, NormalizationSuccess), result
    return result.event


def test_nested_producer_document_is_normalized(normalizer: Normalizer) -> None:
    document = {
        "source": "client_A",
        "payload": {"metric": "transaction", "amount": "1200", "timestamp": "2024/01/01"},
    }

    event = _ok(normalizer, document)

    assert event.client_id == "client_A"
    assert event.metric == "transaction"
    assert event.amount == 1200
    assert event.timestamp == "2024-01-01T00:00:00.000Z"
    assert json.loads(event.raw_data) == document


def test_flat_producer_document_is_normalized(normalizer: Normalizer) -> None:
    event = _ok(
        normalizer,
        {"client": "client_B", "event_type": "payment", "value": 1200, "event_time": "2024-01-01T00:00:00Z"},
    )

    assert event.client_id == "client_B"
    assert event.metric == "payment"
    assert event.amount == 1200.0
    assert event.timestamp == "2024-01-01T00:00:00.000Z"


def test_string_and_numeric_amounts_normalize_identically(normalizer: Normalizer) -> None:
    as_string = _ok(normalizer, {"source": "client_A", "payload": {"amount": "1200", "timestamp": "2024/01/01"}})
    as_number = _ok(normalizer, {"source": "client_A", "payload": {"amount": 1200, "timestamp": "2024/01/01"}})

    assert as_string.amount == as_number.amount
    assert isinstance(as_string.amount, float)
    assert isinstance(as_number.amount, float)


def test_missing_amount_is_a_validation_failure(normalizer: Normalizer) -> None:
    result = normalizer.normalize({"source": "client_A", "payload": {"metric": "transaction"}})

    assert isinstance(result, NormalizationFailure)
    assert result.error == "Missing or invalid amount field"
    assert json.loads(result.raw_data)["payload"] == {"metric": "transaction"}


@pytest.mark.parametrize(
    "amount", ["abc", "", "12abc", "1_000", "0x10", True, None, "nan", "Infinity", {"value": 1}, [1]]
)
def test_invalid_amounts_fail(normalizer: Normalizer, amount: object) -> None:
    result = normalizer.normalize({"source": "acme", "amount": amount})
    assert isinstance(result, NormalizationFailure)


def test_identity_prefers_source_over_client(normalizer: Normalizer) -> None:
    event = _ok(normalizer, {"source": "client_A", "client": "client_B", "payload": {"amount": 1}})
    assert event.client_id == "client_A"


def test_identity_falls_back_to_unknown_with_default_mapping(normalizer: Normalizer) -> None:
    event = _ok(normalizer, {"amount": 5, "metric": "clicks"})

    assert event.client_id == "unknown"
    assert event.metric == "clicks"
    assert event.amount == 5.0


def test_missing_metric_defaults_to_unknown(normalizer: Normalizer) -> None:
    event = _ok(normalizer, {"source": "acme", "amount": 3})
    assert event.metric == "unknown"


@pytest.mark.parametrize("metric", [False, 0, "", {}, [], None])
def test_falsy_or_structured_metric_defaults_to_unknown(normalizer: Normalizer, metric: object) -> None:
    event = _ok(normalizer, {"source": "acme", "amount": 3, "metric": metric})
    assert event.metric == "unknown"


def test_numeric_metric_is_stringified(normalizer: Normalizer) -> None:
    event = _ok(normalizer, {"source": "acme", "amount": 3, "metric": 42})
    assert event.metric == "42"


@pytest.mark.parametrize("text, expected", [("12", 12.0), (" -3.5 ", -3.5), ("1e3", 1000.0), (".25", 0.25), ("7.", 7.0)])
def test_string_amounts_parse_as_decimal_numbers(text: str, expected: float) -> None:
    assert coerce_amount(text) == expected


@pytest.mark.parametrize(
    "raw_timestamp, expected",
    [
        (1704067200, "2024-01-01T00:00:00.000Z"),
        (1704067200123, "2024-01-01T00:00:00.123Z"),
        (1704067200.5, "2024-01-01T00:00:00.500Z"),
        ("2024-01-01T02:00:00+02:00", "2024-01-01T00:00:00.000Z"),
        ("2024-01-01", "2024-01-01T00:00:00.000Z"),
        ("2024/01/01 13:45:10", "2024-01-01T13:45:10.000Z"),
        ("Mon, 01 Jan 2024 00:00:00 GMT", "2024-01-01T00:00:00.000Z"),
    ],
)
def test_timestamp_formats_are_canonicalized(normalizer: Normalizer, raw_timestamp: object, expected: str) -> None:
    event = _ok(normalizer, {"source": "acme", "amount": 1, "timestamp": raw_timestamp})
    assert event.timestamp == expected


@pytest.mark.parametrize("raw_timestamp", [None, "", "not a date", True, float("nan"), 10**30, {"at": 1}])
def test_unusable_timestamp_falls_back_to_processing_time(normalizer: Normalizer, raw_timestamp: object) -> None:
    document = {"source": "acme", "amount": 1}
    if raw_timestamp is not None:
        document["timestamp"] = raw_timestamp

    event = _ok(normalizer, document)

    assert event.timestamp == "2024-03-01T12:30:15.250Z"


def test_non_object_documents_are_rejected(normalizer: Normalizer) -> None:
    result = normalizer.normalize(["not", "an", "object"])

    assert isinstance(result, NormalizationFailure)
    assert result.error == "Event must be a JSON object"
    assert result.raw_data == '["not","an","object"]'


def test_normalize_is_repeatable(normalizer: Normalizer) -> None:
    document = {"source": "client_A", "payload": {"metric": "m", "amount": "7.25", "timestamp": 1704067200}}

    first = _ok(normalizer, document)
    _ok(normalizer, {"source": "other", "amount": 99})
    second = _ok(normalizer, document)

    assert first == second


def test_coerce_amount_accepts_padded_decimal_strings() -> None:
    assert coerce_amount(" 12.50 ") == 12.5
    assert coerce_amount(-3) == -3.0


def test_parse_and_format_timestamp_round_trip() -> None:
    parsed = parse_timestamp("2024-06-30T23:59:59.999Z")
    assert parsed is not None
    assert format_timestamp(parsed) == "2024-06-30T23:59:59.999Z"


def test_validate_normalized_collects_all_errors() -> None:
    valid, errors = validate_normalized({"client_id": "", "metric": "m", "amount": True, "timestamp": "soon"})

    assert valid is False
    assert errors == [
        "client_id must be a non-empty string",
        "amount must be a finite number",
        "timestamp must be an ISO-8601 date",
    ]


def test_validate_normalized_accepts_canonical_record() -> None:
    valid, errors = validate_normalized(
        {"client_id": "client_A", "metric": "m", "amount": 1.5, "timestamp": "2024-01-01T00:00:00.000Z"}
    )
    assert valid is True
    assert errors == []
