"""
Result types for explicit success/failure tracking in batch tooling.

The engine raises on failure. Tooling that processes many configs at once
(the ``validate`` CLI command) collects per-file outcomes in these types
instead, so one malformed file never hides the others.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ErrorSeverity(Enum):
    """Severity levels for processing errors."""

    WARNING = "warning"  # Continue processing, log issue
    ERROR = "error"  # Skip this item, continue others
    CRITICAL = "critical"  # Stop processing entirely


@dataclass
class ProcessingError:
    """
    Represents a single processing error with context.

    Attributes:
        source: Component that generated the error (e.g., "codec", "encrypted_codec")
        message: Human-readable error description
        severity: How severe the error is (affects control flow)
        context: Additional context like file, epoch, offset, error type
        exception: Original exception if available
    """

    source: str
    message: str
    severity: ErrorSeverity
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
        }


@dataclass
class Result(Generic[T]):
    """
    Result type that carries success/failure information.

    Attributes:
        success: Whether the operation succeeded
        data: The result data if successful
        errors: Errors encountered (warnings may be present on success)
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
    def from_exception(
        cls,
        source: str,
        exception: Exception,
        context: Optional[Dict[str, Any]] = None,
    ) -> "Result[T]":
        """Create a failed result from a raised exception."""
        ctx = dict(context or {})
        ctx.setdefault("error_type", type(exception).__name__)
        return cls.fail(
            ProcessingError(
                source=source,
                message=str(exception),
                severity=ErrorSeverity.ERROR,
                context=ctx,
                exception=exception,
            )
        )

    def add_warning(
        self,
        source: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> "Result[T]":
        """Add a warning to the result (convenience method)."""
        self.errors.append(
            ProcessingError(
                source=source,
                message=message,
                severity=ErrorSeverity.WARNING,
                context=context or {},
            )
        )
        return self

    def has_errors(self) -> bool:
        """Check if result has any ERROR or CRITICAL level errors."""
        return any(
            e.severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
            for e in self.errors
        )

    def has_warnings(self) -> bool:
        """Check if result has any WARNING level errors."""
        return any(e.severity == ErrorSeverity.WARNING for e in self.errors)

    def unwrap(self) -> T:
        """Return data, or raise RuntimeError carrying the first error message."""
        if not self.success:
            message = self.errors[0].message if self.errors else "failed"
            raise RuntimeError(message)
        return self.data


@dataclass
class ValidationSummary:
    """Outcome of validating a batch of config files."""

    results: Dict[str, Result] = field(default_factory=dict)

    def record(self, name: str, result: Result) -> None:
        self.results[name] = result

    @property
    def valid_count(self) -> int:
        return sum(1 for r in self.results.values() if r.success)

    @property
    def invalid_count(self) -> int:
        return len(self.results) - self.valid_count

    def all_valid(self) -> bool:
        return self.invalid_count == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary for JSON serialization."""
        return {
            "valid": self.valid_count,
            "invalid": self.invalid_count,
            "files": {
                name: {
                    "success": r.success,
                    "errors": [e.to_dict() for e in r.errors],
                }
                for name, r in self.results.items()
            },
        }
