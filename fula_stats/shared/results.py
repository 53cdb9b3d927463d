"""
Result types for explicit success/failure tracking in a refresh cycle.

Every metric the dashboard shows travels in a Result. A failed Result carries
the ErrorKind of what went wrong, so one failing metric never hides the others
and the presentation layer never has to parse sentinel strings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from fula_stats.shared.exceptions import ErrorKind

T = TypeVar("T")


class ErrorSeverity(Enum):
    """Severity levels for processing errors."""

    WARNING = "warning"  # Field still computed, log issue
    ERROR = "error"  # Field shows an error state
    CRITICAL = "critical"  # Remaining connectivity-bound steps fail


@dataclass
class ProcessingError:
    """
    Represents a single processing error with context.

    Attributes:
        source: Component that generated the error (e.g., "token", "pool1")
        message: Human-readable error description
        severity: How severe the error is (affects display)
        kind: Which failure kind this is
        context: Additional context like address, endpoint, attempt
        exception: Original exception if available
    """

    source: str
    message: str
    severity: ErrorSeverity
    kind: ErrorKind = ErrorKind.TRANSIENT_RPC
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source,
            "message": self.message,
            "severity": self.severity.value,
            "kind": self.kind.value,
            "context": self.context,
        }


@dataclass
class Result(Generic[T]):
    """
    Result type that carries success/failure information.

    Attributes:
        success: Whether the operation succeeded
        data: The result data if successful
        errors: List of errors encountered (can have errors even on success for warnings)
    """

    success: bool
    data: Optional[T] = None
    errors: List[ProcessingError] = field(default_factory=list)

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        """Create a successful result with data."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ProcessingError) -> "Result[T]":
        """Create a failed result with an error."""
        return cls(success=False, errors=[error])

    @classmethod
    def fail_with_message(
        cls,
        source: str,
        message: str,
        kind: ErrorKind,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[Dict[str, Any]] = None,
        exception: Optional[Exception] = None,
    ) -> "Result[T]":
        """Create a failed result with a message (convenience method)."""
        error = ProcessingError(
            source=source,
            message=message,
            severity=severity,
            kind=kind,
            context=context or {},
            exception=exception,
        )
        return cls(success=False, errors=[error])

    @classmethod
    def fail_from_exception(
        cls,
        source: str,
        exception: Exception,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[Dict[str, Any]] = None,
    ) -> "Result[T]":
        """Create a failed result, taking the kind from a tagged exception."""
        kind = getattr(exception, "kind", ErrorKind.TRANSIENT_RPC)
        message = getattr(exception, "message", None) or str(exception)
        return cls.fail_with_message(
            source=source,
            message=message,
            kind=kind,
            severity=severity,
            context=context,
            exception=exception,
        )

    def add_warning(
        self,
        source: str,
        message: str,
        kind: ErrorKind = ErrorKind.TRANSIENT_RPC,
        context: Optional[Dict[str, Any]] = None,
    ) -> "Result[T]":
        """Add a warning to the result (convenience method)."""
        self.errors.append(
            ProcessingError(
                source=source,
                message=message,
                severity=ErrorSeverity.WARNING,
                kind=kind,
                context=context or {},
            )
        )
        return self

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        """Kind of the first ERROR/CRITICAL error, or None on success."""
        for error in self.errors:
            if error.severity != ErrorSeverity.WARNING:
                return error.kind
        return None

    def has_errors(self) -> bool:
        """Check if result has any ERROR or CRITICAL level errors."""
        return any(
            e.severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
            for e in self.errors
        )

    def has_warnings(self) -> bool:
        """Check if result has any WARNING level errors."""
        return any(e.severity == ErrorSeverity.WARNING for e in self.errors)

    def get_error_messages(self) -> List[str]:
        """Get all error messages as strings."""
        return [e.message for e in self.errors]


@dataclass
class RefreshSummary:
    """
    Summary of one refresh cycle.

    Counts which steps produced data and keeps every error (and warning)
    raised along the way, for logging and for the `--json` CLI output.
    """

    started_at: float
    finished_at: Optional[float] = None

    steps_succeeded: int = 0
    steps_failed: int = 0
    errors: List[ProcessingError] = field(default_factory=list)

    def record(self, result: Result) -> None:
        """Count a step result and collect its errors."""
        if result.success:
            self.steps_succeeded += 1
        else:
            self.steps_failed += 1
        self.errors.extend(result.errors)

    def has_errors(self) -> bool:
        """Check if any errors (not just warnings) occurred."""
        return any(
            e.severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
            for e in self.errors
        )

    def error_count(self) -> int:
        """Count total errors (excluding warnings)."""
        return sum(
            1
            for e in self.errors
            if e.severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
        )

    def warning_count(self) -> int:
        """Count total warnings."""
        return sum(
            1 for e in self.errors if e.severity == ErrorSeverity.WARNING
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary for JSON serialization."""
        total = self.steps_succeeded + self.steps_failed
        return {
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "success_rate": f"{self.steps_succeeded}/{total}" if total else "N/A",
            "error_count": self.error_count(),
            "warning_count": self.warning_count(),
            "errors": [e.to_dict() for e in self.errors],
        }
