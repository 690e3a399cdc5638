"""Business logic service layer."""

from app.services.reconciliation import IdempotencyReconciler  # noqa: F401
from app.services.reporting import ReportingService  # noqa: F401
