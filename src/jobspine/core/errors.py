"""
Structured error types for job-spine.

Provides a small hierarchy of typed errors with metadata for categorization,
logging and reporting. Every error raised by job-spine code extends
``JobSpineError`` so callers can tell a workbook problem from a store problem
without parsing messages.

Manifesto:
    - **Typed Error Hierarchy:** Workbook, validation, config and database
      failures are distinct types
    - **Rich Context:** Errors carry the file, sheet and job number involved
    - **Error Chaining:** The original exception is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      JobSpineError                          │
        │        (category, retryable, context, cause)                │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  SourceError        ValidationError      ConfigError        │
        │  (SOURCE)           (VALIDATION)         (CONFIG)           │
        │      │                                                       │
        │  SourceNotFoundError                     DatabaseError      │
        │  ParseError (PARSE)                      (DATABASE)         │
        └─────────────────────────────────────────────────────────────┘

Examples:
    Adding context to an error:

    >>> error = SourceError("Workbook has no sheets")
    >>> error.with_context(file_name="jobs.xlsx").context.file_name
    'jobs.xlsx'

    Chaining errors for root cause:

    >>> try:
    ...     raise KeyError("sheet")
    ... except KeyError as e:
    ...     raise ParseError("Failed to read Excel", cause=e)
    Traceback (most recent call last):
    ...
    ParseError: Failed to read Excel

Guardrails:
    ❌ DON'T: Raise a bare Exception from reconciliation code
    ✅ DO: Use the matching JobSpineError subclass

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, error-context, job-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    SOURCE = "SOURCE"             # Workbook missing, unreadable input
    PARSE = "PARSE"               # Corrupt workbook, bad cell data
    VALIDATION = "VALIDATION"     # Row or request shape violations
    CONFIG = "CONFIG"             # Missing or invalid settings
    DATABASE = "DATABASE"         # Store read/write failures
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Typed fields cover the locators a reconciliation run cares about; any
    other key/value pair lands in ``metadata``. ``to_dict()`` serializes the
    non-None fields for logging.

    Attributes:
        file_name: Workbook file name
        sheet_name: Worksheet being processed
        row_ref: Row locator (``"Sheet:R12"``)
        job_number: Natural key of the job involved
        path: Filesystem path of the workbook
        metadata: Additional key-value pairs
    """

    file_name: str | None = None
    sheet_name: str | None = None
    row_ref: str | None = None
    job_number: str | None = None
    path: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["file_name", "sheet_name", "row_ref", "job_number", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class JobSpineError(Exception):
    """
    Base exception for all job-spine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so raising
    sites only pass the message and whatever context they know.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> JobSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SourceError("Failed").with_context(
                file_name="jobs.xlsx",
                sheet_name="Proj Data",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# SOURCE ERRORS
# =============================================================================


class SourceError(JobSpineError):
    """
    Error from the workbook source.

    Default not retryable (missing file, no sheets).
    """

    default_category = ErrorCategory.SOURCE
    default_retryable = False


class SourceNotFoundError(SourceError):
    """Workbook file not found."""

    pass


class ParseError(SourceError):
    """Error parsing workbook contents."""

    default_category = ErrorCategory.PARSE


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(JobSpineError):
    """
    Data validation error.

    Never retryable - the input must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(JobSpineError):
    """Configuration error."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class DatabaseError(JobSpineError):
    """Record store query or transaction error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "JobSpineError",
    "SourceError",
    "SourceNotFoundError",
    "ParseError",
    "ValidationError",
    "ConfigError",
    "MissingConfigError",
    "DatabaseError",
]
