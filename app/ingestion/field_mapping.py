"""Per-producer field mappings into the canonical event shape.

Each producer lays its events out differently. A :class:`FieldMapping` names,
for every canonical field, the dot-delimited path at which that field lives in
the producer's document. The :class:`FieldMapper` is built once at startup and
is read-only afterwards, so it can be shared between requests freely.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from app.ingestion.config import IngestionConfig, get_ingestion_config

CANONICAL_FIELDS: Tuple[str, ...] = ("client_id", "metric", "amount", "timestamp")

_MISSING = object()


@dataclass(frozen=True)
class FieldMapping:
    """Extraction paths for the canonical fields of one producer.

    ``client_id`` records where the producer puts its identity. Identity is
    always resolved from the top-level identity fields before a mapping is
    chosen, so it is informational and cannot be configured.
    """

    client_id: str = "source"
    metric: str = "metric"
    amount: str = "amount"
    timestamp: str = "timestamp"

    def paths(self) -> Dict[str, str]:
        """Canonical field name to path, in canonical field order."""

        return {name: getattr(self, name) for name in CANONICAL_FIELDS}

    @classmethod
    def from_dict(cls, paths: Mapping[str, str]) -> "FieldMapping":
        unknown = sorted(set(paths) - set(CANONICAL_FIELDS))
        if unknown:
            raise ValueError(f"Unknown canonical field(s) in mapping: {', '.join(unknown)}")
        if "client_id" in paths:
            raise ValueError("client_id is resolved from the identity fields and cannot be remapped")
        for name, path in paths.items():
            if not isinstance(path, str) or not path.strip():
                raise ValueError(f"Mapping path for '{name}' must be a non-empty string")
        return cls(**{name: path.strip() for name, path in paths.items()})


DEFAULT_MAPPING = FieldMapping()

BUILTIN_MAPPINGS: Mapping[str, FieldMapping] = MappingProxyType(
    {
        # {"source": "client_A", "payload": {"metric": ..., "amount": ..., "timestamp": ...}}
        "client_A": FieldMapping(
            client_id="source",
            metric="payload.metric",
            amount="payload.amount",
            timestamp="payload.timestamp",
        ),
        # {"client": "client_B", "event_type": ..., "value": ..., "event_time": ...}
        "client_B": FieldMapping(
            client_id="client",
            metric="event_type",
            amount="value",
            timestamp="event_time",
        ),
    }
)


def extract_path(document: Any, path: str, default: Any = None) -> Any:
    """Walk ``path`` through nested objects; absent nodes yield ``default``.

    Numeric segments index into lists, so ``items.0.amount`` reads the first
    element's amount.
    """

    current = document
    for segment in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(segment, _MISSING)
        elif isinstance(current, (list, tuple)) and segment.isdigit():
            index = int(segment)
            current = current[index] if index < len(current) else _MISSING
        else:
            return default
        if current is _MISSING:
            return default
    return current


class FieldMapper:
    """Immutable registry of producer mappings with a flat default."""

    def __init__(
        self,
        mappings: Optional[Mapping[str, FieldMapping]] = None,
        *,
        default: FieldMapping = DEFAULT_MAPPING,
    ) -> None:
        self._mappings: Mapping[str, FieldMapping] = MappingProxyType(dict(mappings or {}))
        self._default = default

    @classmethod
    def from_config(cls, config: IngestionConfig) -> "FieldMapper":
        """Built-in producers overlaid with configured ones."""

        mappings = dict(BUILTIN_MAPPINGS)
        for producer_id, paths in config.producer_mappings.items():
            mappings[producer_id] = FieldMapping.from_dict(paths)
        return cls(mappings)

    @property
    def default(self) -> FieldMapping:
        return self._default

    def resolve(self, producer_id: str) -> FieldMapping:
        return self._mappings.get(producer_id, self._default)

    def producers(self) -> Tuple[str, ...]:
        return tuple(sorted(self._mappings))

    def __contains__(self, producer_id: object) -> bool:
        return producer_id in self._mappings


@lru_cache
def get_field_mapper() -> FieldMapper:
    """Return the process-wide mapper built from settings."""

    return FieldMapper.from_config(get_ingestion_config())
