"""
Holder - Observability Package

Structured logging with OpenTelemetry trace context.

Usage:
    from observability import setup_logging, get_logger

    setup_logging(LoggingConfig(json_format=False))
    logger = get_logger(__name__)
"""
from .logging import (
    LogContext,
    LoggingConfig,
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "LogContext",
    "LoggingConfig",
    "bind_context",
    "clear_context",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
