"""Exceptions raised inside the ingestion pipeline."""

from __future__ import annotations


class IngestionError(RuntimeError):
    """Base class for ingestion pipeline errors."""


class StorageError(IngestionError):
    """Raised when a write to the durable store cannot be completed."""


class InvalidStatusTransition(IngestionError):
    """Raised when a raw event status change would not advance monotonically."""
