"""Omen Event Ingestion Core service package."""


def __getattr__(name):
    """Lazy import so pipeline-only consumers do not pull in FastAPI."""
    if name == "create_app":
        from .main import create_app
        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
