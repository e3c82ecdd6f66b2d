"""Observability infrastructure for structured logging."""

from tunegate.infrastructure.observability.logging import (
    configure_logging,
    get_correlation_id,
    redact_secrets,
    set_correlation_id,
)
from tunegate.infrastructure.observability.middleware import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "configure_logging",
    "get_correlation_id",
    "redact_secrets",
    "set_correlation_id",
]
