"""Observability helpers: structured logging, correlation and redaction."""

from change_gate.observability.logging import (
    LoggingConfig,
    LoggingHandle,
    configure_structlog,
    correlation_scope,
    get_correlation_context,
    redact_text,
    redact_value,
    setup_logging,
    setup_structured_logging,
)

__all__ = [
    "LoggingConfig",
    "LoggingHandle",
    "configure_structlog",
    "correlation_scope",
    "get_correlation_context",
    "redact_text",
    "redact_value",
    "setup_logging",
    "setup_structured_logging",
]
