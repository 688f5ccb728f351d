"""
Error handling framework for delimstream.

This module provides:
- Hierarchical exception classes
- Error context preservation
- Structured error responses
"""

from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from contextlib import contextmanager
import traceback

from .logging import get_logger


logger = get_logger("delimstream.errors")


class ErrorSeverity(Enum):
    """Error severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
    FATAL = "fatal"


class ErrorCategory(Enum):
    """Error categories for classification."""
    SOURCE = "source"
    PATTERN = "pattern"
    USAGE = "usage"
    RESOURCE = "resource"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Context information for an error."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    component: Optional[str] = None
    operation: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    stack_trace: Optional[str] = None


@dataclass
class ErrorInfo:
    """Structured error information."""
    code: str
    message: str
    severity: ErrorSeverity
    category: ErrorCategory
    context: ErrorContext
    cause: Optional[Exception] = None
    suggestions: List[str] = field(default_factory=list)
    is_retryable: bool = False


class DelimStreamError(Exception):
    """Base exception for all delimstream errors."""

    code: str = "DELIMSTREAM_ERROR"
    default_message: str = "An error occurred in delimstream"
    severity: ErrorSeverity = ErrorSeverity.ERROR
    category: ErrorCategory = ErrorCategory.UNKNOWN
    is_retryable: bool = False

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        **kwargs
    ):
        """Initialize delimstream error."""
        self.message = message or self.default_message
        self.context = context or ErrorContext()
        self.cause = cause
        self.kwargs = kwargs

        # Capture stack trace of the exception being handled, if any
        if not self.context.stack_trace and cause is not None:
            self.context.stack_trace = "".join(
                traceback.format_exception(type(cause), cause, cause.__traceback__)
            )

        super().__init__(self.message)

    def to_info(self) -> ErrorInfo:
        """Convert to structured error info."""
        return ErrorInfo(
            code=self.code,
            message=self.message,
            severity=self.severity,
            category=self.category,
            context=self.context,
            cause=self.cause,
            suggestions=self.get_suggestions(),
            is_retryable=self.is_retryable
        )

    def get_suggestions(self) -> List[str]:
        """Get error resolution suggestions."""
        return []

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        info = self.to_info()
        return {
            "error": {
                "code": info.code,
                "message": info.message,
                "severity": info.severity.value,
                "category": info.category.value,
                "is_retryable": info.is_retryable,
                "suggestions": info.suggestions,
                "context": {
                    "timestamp": info.context.timestamp.isoformat(),
                    "component": info.context.component,
                    "operation": info.context.operation,
                    "metadata": info.context.metadata
                }
            }
        }


# Source Errors

class SourceReadError(DelimStreamError):
    """The byte source broke the read contract."""
    code = "SOURCE_READ_ERROR"
    default_message = "Failed to read from source"
    category = ErrorCategory.SOURCE

    def get_suggestions(self) -> List[str]:
        return [
            "Wrap a blocking source; non-blocking reads are not supported",
            "Make sure the source returns bytes in binary mode and str in text mode"
        ]


# Pattern Errors

class CompileError(DelimStreamError):
    """A term could not be compiled into a pattern set."""
    code = "COMPILE_ERROR"
    default_message = "Malformed pattern term"
    category = ErrorCategory.PATTERN
    severity = ErrorSeverity.WARNING

    def __init__(self, message: Optional[str] = None, term: Any = None, **kwargs):
        self.term = term
        super().__init__(message, **kwargs)


# Usage Errors

class MisuseError(DelimStreamError):
    """Operation invoked on a closed stream."""
    code = "MISUSE_ERROR"
    default_message = "I/O operation on closed stream"
    category = ErrorCategory.USAGE


class UnsupportedOperationError(DelimStreamError):
    """Operation the stream does not provide."""
    code = "UNSUPPORTED_OPERATION"
    default_message = "Operation not supported on delimited streams"
    category = ErrorCategory.USAGE

    def __init__(self, operation: str, **kwargs):
        self.operation = operation
        message = f"{operation}() is not supported on delimited streams"
        super().__init__(message, **kwargs)


# Resource Errors

class BufferOverflowError(DelimStreamError):
    """No delimiter was found before the buffer cap was reached."""
    code = "BUFFER_OVERFLOW"
    default_message = "Buffer limit reached before a delimiter was found"
    category = ErrorCategory.RESOURCE

    def __init__(self, size: int, limit: int, **kwargs):
        self.size = size
        self.limit = limit
        message = f"No delimiter found within {size} buffered units (limit {limit})"
        super().__init__(message, **kwargs)

    def get_suggestions(self) -> List[str]:
        return [
            "Raise max_buffer_size",
            "Use a pattern with a bounded match length"
        ]


# Configuration Errors

class ConfigurationError(DelimStreamError):
    """Configuration errors."""
    code = "CONFIG_ERROR"
    default_message = "Configuration error"
    category = ErrorCategory.CONFIGURATION

    def get_suggestions(self) -> List[str]:
        return [
            "Check your configuration file syntax",
            "Ensure read_length is a positive integer"
        ]


# Error Context Manager

@contextmanager
def error_context(
    component: str,
    operation: str,
    **metadata
):
    """
    Annotate delimstream errors raised inside the block.

    Args:
        component: Component name
        operation: Operation name
        **metadata: Additional context metadata
    """
    try:
        yield
    except DelimStreamError as e:
        e.context.component = e.context.component or component
        e.context.operation = e.context.operation or operation
        e.context.metadata.update(metadata)
        logger.debug(
            "delimstream_error_in_context",
            code=e.code,
            component=e.context.component,
            operation=e.context.operation,
            error=e.message
        )
        raise


# Export public API
__all__ = [
    # Base classes
    'DelimStreamError',
    'ErrorContext',
    'ErrorInfo',
    'ErrorSeverity',
    'ErrorCategory',

    # Error types
    'SourceReadError',
    'CompileError',
    'MisuseError',
    'UnsupportedOperationError',
    'BufferOverflowError',
    'ConfigurationError',

    # Utilities
    'error_context',
]
