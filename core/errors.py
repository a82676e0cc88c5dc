"""
Holder - Error Hierarchy

Structured exceptions raised by the holder. Every error carries an error
code, a severity and optional context, and records itself on the current
OpenTelemetry span when one is recording.

Taxonomy:
- ConfigurationError: the definition set cannot be loaded as given
  (duplicate names, cycles, unresolved needs, missing adapters).
- InvalidStateError: an operation was called outside its lifecycle window.

Builder, stop and destroy failures are never wrapped: the caller sees the
exception raised by its own code.
"""

from __future__ import annotations

import sys
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class ErrorSeverity(Enum):
    """Error severity levels."""

    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Structured context attached to an error."""

    operation: str
    component: str = "holder"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    item_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    stack_trace: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            "operation": self.operation,
            "component": self.component,
            "timestamp": self.timestamp.isoformat(),
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "item_name": self.item_name,
            "metadata": self.metadata,
            "stack_trace": self.stack_trace,
        }

    @classmethod
    def from_current_span(
        cls,
        operation: str,
        component: str = "holder",
        **kwargs: Any,
    ) -> "ErrorContext":
        """
        Create context from the current OpenTelemetry span.

        The stack trace is captured only while an exception is being handled.
        """
        span = trace.get_current_span()
        trace_id = None
        span_id = None

        if span and span.is_recording():
            ctx = span.get_span_context()
            if ctx.is_valid:
                trace_id = format(ctx.trace_id, "032x")
                span_id = format(ctx.span_id, "016x")

        return cls(
            operation=operation,
            component=component,
            trace_id=trace_id,
            span_id=span_id,
            stack_trace=traceback.format_exc() if sys.exc_info()[0] is not None else None,
            **kwargs,
        )


class HolderError(Exception):
    """
    Base exception for all holder errors.

    Provides:
    - Structured error context
    - Severity level
    - OpenTelemetry span recording
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "HOLDER_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: Optional[ErrorSeverity] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context
        self.severity = severity or self.default_severity
        self.suggestions = suggestions or []
        self.timestamp = datetime.now(timezone.utc)

        self._record_to_span()

    def _record_to_span(self) -> None:
        """Record exception to current OpenTelemetry span."""
        span = trace.get_current_span()
        if span and span.is_recording():
            span.set_status(Status(StatusCode.ERROR, self.message))
            span.record_exception(self)
            span.set_attribute("error.code", self.error_code)
            span.set_attribute("error.severity", self.severity.value)
            if self.context:
                span.set_attribute("error.component", self.context.component)
                span.set_attribute("error.operation", self.context.operation)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "suggestions": self.suggestions,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context.to_dict() if self.context else None,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ConfigurationError(HolderError):
    """The definition set cannot be loaded as given."""

    error_code = "CONFIG_ERROR"
    default_severity = ErrorSeverity.CRITICAL


class DefinitionError(ConfigurationError):
    """A single definition is malformed."""

    error_code = "DEFINITION_ERROR"

    def __init__(self, message: str, name: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.name = name


class DuplicateDefinitionError(ConfigurationError):
    """Two definitions share the same name."""

    error_code = "DUPLICATE_DEFINITION"

    def __init__(self, name: str, **kwargs: Any):
        super().__init__(f"definition name '{name}' is duplicated", **kwargs)
        self.name = name


class CyclicDependencyError(ConfigurationError):
    """The needs of the definition set form a cycle."""

    error_code = "CYCLIC_DEPENDENCY"

    def __init__(self, cycle: Sequence[str], **kwargs: Any):
        self.cycle = tuple(cycle)
        super().__init__(
            f"Cyclic dependency: {' -> '.join(self.cycle)}",
            suggestions=["Remove one of the needs along the cycle"],
            **kwargs,
        )


class UnresolvedDependencyError(ConfigurationError):
    """A definition needs a name that is not defined."""

    error_code = "UNRESOLVED_DEPENDENCY"

    def __init__(self, dependent: str, missing: str, **kwargs: Any):
        super().__init__(
            f"definition '{dependent}' needs '{missing}', which is not defined",
            **kwargs,
        )
        self.dependent = dependent
        self.missing = missing


class UnknownAdapterError(ConfigurationError):
    """A definition carries a type with no registered adapter."""

    error_code = "UNKNOWN_ADAPTER"

    def __init__(self, type_name: str, definition_name: Optional[str] = None, **kwargs: Any):
        super().__init__(
            f"no adapter registered for definition type '{type_name}'"
            + (f" (definition '{definition_name}')" if definition_name else ""),
            **kwargs,
        )
        self.type_name = type_name
        self.definition_name = definition_name


class AdapterError(ConfigurationError):
    """An adapter produced something that is not a standard definition."""

    error_code = "ADAPTER_ERROR"


class InvalidStateError(HolderError):
    """An operation was called outside its lifecycle window."""

    error_code = "INVALID_STATE"

    def __init__(self, operation: str, expected: str, actual: str, **kwargs: Any):
        super().__init__(
            f"cannot {operation}: expected state {expected}, actual state {actual}",
            **kwargs,
        )
        self.operation = operation
        self.expected = expected
        self.actual = actual
