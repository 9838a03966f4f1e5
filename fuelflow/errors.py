"""
Error handling for FuelFlow.

Provides:
- Custom exception types
- A Result type for failures that are recovered locally
- Error boundary wrapper for graceful failure handling
- User-friendly error messages
"""

import traceback
from typing import Optional, Callable, TypeVar, Generic
from dataclasses import dataclass, field
from enum import Enum


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    LOW = "low"           # Recovered locally, caller never sees it
    MEDIUM = "medium"     # Operation failed, caller should report it
    HIGH = "high"         # Wiring or configuration defect
    CRITICAL = "critical" # Fatal, should exit application


class ErrorCategory(Enum):
    """Categories of errors for better handling."""
    CONFIGURATION = "configuration"
    NETWORK = "network"
    API = "api"
    AUTH = "auth"
    STORAGE = "storage"
    USER_INPUT = "user_input"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Context information about an error."""
    category: ErrorCategory
    severity: ErrorSeverity
    operation: str
    user_message: str
    technical_message: str
    recoverable: bool = True
    suggested_action: Optional[str] = None
    original_exception: Optional[Exception] = None
    traceback_str: Optional[str] = None
    metadata: dict = field(default_factory=dict)


class FuelFlowError(Exception):
    """Base exception for FuelFlow errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        user_message: Optional[str] = None,
        recoverable: bool = True,
        suggested_action: Optional[str] = None
    ):
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.user_message = user_message or message
        self.recoverable = recoverable
        self.suggested_action = suggested_action


class ConfigurationError(FuelFlowError):
    """Configuration-related errors."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=kwargs.get("severity", ErrorSeverity.HIGH),
            **{k: v for k, v in kwargs.items() if k != "severity"}
        )


class ContextNotMountedError(ConfigurationError):
    """A service accessor was used with no mounted application context."""

    def __init__(self, service: str):
        super().__init__(
            f"{service} must be used within a mounted AppContext",
            recoverable=False,
            suggested_action="Mount an AppContext before using the service accessors.",
        )
        self.service = service


class APIError(FuelFlowError):
    """Backend communication errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        category = kwargs.pop(
            "category",
            ErrorCategory.API if status_code is not None else ErrorCategory.NETWORK,
        )
        super().__init__(
            message,
            category=category,
            severity=kwargs.get("severity", ErrorSeverity.MEDIUM),
            **{k: v for k, v in kwargs.items() if k != "severity"}
        )
        self.status_code = status_code


class AuthenticationError(FuelFlowError):
    """Login was rejected or could not be completed."""

    def __init__(self, message: str = "Login failed", **kwargs):
        kwargs.setdefault("user_message", "Invalid credentials. Please try again.")
        super().__init__(
            message,
            category=ErrorCategory.AUTH,
            severity=kwargs.get("severity", ErrorSeverity.MEDIUM),
            **{k: v for k, v in kwargs.items() if k != "severity"}
        )


class NotAuthenticatedError(FuelFlowError):
    """A guarded operation was attempted without a session."""

    def __init__(self, message: str = "Not authenticated", **kwargs):
        kwargs.setdefault("suggested_action", "Run 'fuelflow login' first.")
        super().__init__(
            message,
            category=ErrorCategory.AUTH,
            severity=kwargs.get("severity", ErrorSeverity.MEDIUM),
            **{k: v for k, v in kwargs.items() if k != "severity"}
        )


class PermissionDeniedError(FuelFlowError):
    """The current session's role is not allowed to perform an operation."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.AUTH,
            severity=kwargs.get("severity", ErrorSeverity.MEDIUM),
            **{k: v for k, v in kwargs.items() if k != "severity"}
        )


T = TypeVar('T')


@dataclass
class Result(Generic[T]):
    """
    A result type that can hold either a success value or an error.

    Used where a failure is recovered locally but should stay observable.
    """
    value: Optional[T] = None
    error: Optional[ErrorContext] = None

    @property
    def is_ok(self) -> bool:
        """Check if result is successful."""
        return self.error is None

    @property
    def is_err(self) -> bool:
        """Check if result is an error."""
        return self.error is not None

    def unwrap(self) -> T:
        """Get the value, raising if error."""
        if self.error:
            raise ValueError(f"Unwrap called on error: {self.error.user_message}")
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get the value or a default."""
        return self.value if self.is_ok else default

    @staticmethod
    def ok(value: T) -> "Result[T]":
        """Create a success result."""
        return Result(value=value)

    @staticmethod
    def err(error: ErrorContext) -> "Result[T]":
        """Create an error result."""
        return Result(error=error)


class ErrorBoundary:
    """
    Error boundary for wrapping operations with graceful error handling.

    Usage:
        with ErrorBoundary("fetch_station") as boundary:
            station = client.get_station(station_id)

        if boundary.has_error:
            logger.warning(boundary.error_context.technical_message)
    """

    def __init__(
        self,
        operation: str,
        on_error: Optional[Callable[[ErrorContext], None]] = None,
        show_technical_details: bool = False,
        default_category: ErrorCategory = ErrorCategory.UNKNOWN,
        default_severity: ErrorSeverity = ErrorSeverity.MEDIUM
    ):
        """
        Initialize the error boundary.

        Args:
            operation: Name of the operation being wrapped
            on_error: Optional callback when error occurs
            show_technical_details: Whether to include traceback
            default_category: Default error category if not determined
            default_severity: Default error severity if not determined
        """
        self.operation = operation
        self.on_error = on_error
        self.show_technical_details = show_technical_details
        self.default_category = default_category
        self.default_severity = default_severity
        self.error_context: Optional[ErrorContext] = None

    @property
    def has_error(self) -> bool:
        """Check if an error occurred."""
        return self.error_context is not None

    def __enter__(self) -> "ErrorBoundary":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """
        Exit the error boundary, catching and processing any exception.

        Only ``Exception`` subclasses are suppressed; KeyboardInterrupt and
        SystemExit propagate.
        """
        if exc_type is None:
            return False
        if not issubclass(exc_type, Exception):
            return False

        self.error_context = self._exception_to_context(exc_val, exc_tb)

        if self.on_error:
            self.on_error(self.error_context)

        return True

    def _exception_to_context(self, exc: Exception, exc_tb) -> ErrorContext:
        """Convert an exception to an ErrorContext."""
        category = self.default_category
        severity = self.default_severity
        user_message = str(exc)
        suggested_action = None
        recoverable = True

        if isinstance(exc, FuelFlowError):
            category = exc.category
            severity = exc.severity
            user_message = exc.user_message
            suggested_action = exc.suggested_action
            recoverable = exc.recoverable

        elif isinstance(exc, ConnectionError):
            category = ErrorCategory.NETWORK
            user_message = "Could not reach the FuelFlow server."
            suggested_action = "Check the server URL and your network connection."

        elif isinstance(exc, TimeoutError):
            category = ErrorCategory.NETWORK
            user_message = "The FuelFlow server did not respond in time."
            suggested_action = "Try again or increase api.timeout."

        elif isinstance(exc, (OSError, IOError)):
            category = ErrorCategory.STORAGE
            user_message = f"Storage error: {exc}"

        elif isinstance(exc, ValueError):
            category = ErrorCategory.USER_INPUT
            severity = ErrorSeverity.LOW
            user_message = f"Invalid value: {exc}"

        traceback_str = None
        if self.show_technical_details:
            traceback_str = "".join(traceback.format_exception(type(exc), exc, exc_tb))

        return ErrorContext(
            category=category,
            severity=severity,
            operation=self.operation,
            user_message=user_message,
            technical_message=str(exc),
            recoverable=recoverable,
            suggested_action=suggested_action,
            original_exception=exc,
            traceback_str=traceback_str
        )


def safe_execute(
    func: Callable[[], T],
    operation: str,
    on_error: Optional[Callable[[ErrorContext], None]] = None,
    default_category: ErrorCategory = ErrorCategory.UNKNOWN,
) -> Result[T]:
    """
    Execute a function safely and return a Result.

    Args:
        func: The function to execute
        operation: Name of the operation (for error context)
        on_error: Optional error callback
        default_category: Category used for exceptions we don't recognise

    Returns:
        Result containing either the return value or error context
    """
    with ErrorBoundary(
        operation, on_error=on_error, default_category=default_category
    ) as boundary:
        result = func()

    if boundary.has_error:
        return Result.err(boundary.error_context)
    return Result.ok(result)


def format_error_for_user(error) -> str:
    """
    Format an error for display to the user.

    Accepts either an ErrorContext or a FuelFlowError.
    """
    lines = [error.user_message]

    if error.suggested_action:
        lines.append(f"Suggestion: {error.suggested_action}")

    return "\n".join(lines)


def format_error_for_log(context: ErrorContext) -> str:
    """Format an error context for logging."""
    lines = [
        f"[{context.severity.value.upper()}] {context.category.value}: {context.operation}",
        f"  Message: {context.technical_message}",
    ]

    if context.traceback_str:
        lines.append(f"  Traceback:\n{context.traceback_str}")

    return "\n".join(lines)
