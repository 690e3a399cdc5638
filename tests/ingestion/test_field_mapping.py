from __future__ import annotations

import pytest

from app.ingestion.config import IngestionConfig
from app.ingestion.field_mapping import (
    CANONICAL_FIELDS,
    DEFAULT_MAPPING,
    FieldMapper,
    FieldMapping,
    extract_path,
)


def _config(mappings: dict) -> IngestionConfig:
    return IngestionConfig(bucket_seconds=60, producer_mappings=mappings, simulate_failure_enabled=True)


def test_builtin_producers_resolve_to_their_layouts(mapper: FieldMapper) -> None:
    client_a = mapper.resolve("client_A")
    assert client_a.amount == "payload.amount"
    assert client_a.timestamp == "payload.timestamp"

    client_b = mapper.resolve("client_B")
    assert client_b.metric == "event_type"
    assert client_b.amount == "value"


def test_unknown_producer_uses_flat_default(mapper: FieldMapper) -> None:
    resolved = mapper.resolve("some_new_producer")
    assert resolved is mapper.default
    assert resolved.paths() == {
        "client_id": "source",
        "metric": "metric",
        "amount": "amount",
        "timestamp": "timestamp",
    }


def test_paths_follow_canonical_field_order() -> None:
    mapping = FieldMapping(metric="a.b", amount="c")
    assert tuple(mapping.paths()) == CANONICAL_FIELDS


def test_configured_producer_overlays_builtins() -> None:
    mapper = FieldMapper.from_config(_config({"client_C": {"metric": "type", "amount": "sum"}}))

    client_c = mapper.resolve("client_C")
    assert client_c.metric == "type"
    assert client_c.amount == "sum"
    assert client_c.timestamp == "timestamp"
    assert "client_A" in mapper
    assert mapper.producers() == ("client_A", "client_B", "client_C")


def test_configured_mapping_rejects_unknown_fields() -> None:
    with pytest.raises(ValueError, match="currency"):
        FieldMapper.from_config(_config({"client_C": {"currency": "ccy"}}))


def test_configured_mapping_rejects_client_id_override() -> None:
    with pytest.raises(ValueError, match="client_id"):
        FieldMapper.from_config(_config({"client_C": {"client_id": "meta.owner", "amount": "sum"}}))


def test_configured_mapping_rejects_blank_paths() -> None:
    with pytest.raises(ValueError, match="amount"):
        FieldMapping.from_dict({"amount": "  "})


def test_mapper_is_isolated_from_source_dict() -> None:
    source = {"client_C": FieldMapping(amount="sum")}
    mapper = FieldMapper(source)
    source["client_C"] = FieldMapping(amount="other")

    assert mapper.resolve("client_C").amount == "sum"


def test_extract_path_walks_nested_objects() -> None:
    document = {"payload": {"amount": "12", "meta": {"tags": ["a", {"name": "b"}]}}}

    assert extract_path(document, "payload.amount") == "12"
    assert extract_path(document, "payload.meta.tags.1.name") == "b"


@pytest.mark.parametrize(
    "path",
    ["missing", "payload.missing", "payload.amount.deeper", "payload.meta.tags.5", "payload.meta.tags.x"],
)
def test_extract_path_absent_nodes_yield_none(path: str) -> None:
    document = {"payload": {"amount": "12", "meta": {"tags": ["a"]}}}
    assert extract_path(document, path) is None


def test_default_mapping_constant_matches_default_resolution(mapper: FieldMapper) -> None:
    assert mapper.resolve("unknown") == DEFAULT_MAPPING
