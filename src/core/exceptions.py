"""Structured exception hierarchy for consistent error handling.

This module defines the exception system for the Userbase application.
Every exception carries an error code, a severity and a context dictionary
so that handlers at the API boundary can decide both the HTTP status and
the log level without inspecting messages.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for logging and alerting
- **UserbaseError**: Base exception with context and exception chaining
- **Specialized exceptions**: Validation, not-found, malformed requests,
  storage failures and fatal startup failures

Expected errors (validation, not found, malformed payloads) are ordinary
control flow and are logged at warning level. Storage and startup errors
are logged at error/critical level with their cause; their internal details
never reach the HTTP response body.
"""

from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for the Userbase application."""

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    # Request errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """A user record failed the field validation rules."""

    MALFORMED_REQUEST = "MALFORMED_REQUEST"
    """The request body could not be parsed as JSON."""

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    """The requested resource could not be found."""

    # Infrastructure errors
    STORAGE_ERROR = "STORAGE_ERROR"
    """Communicating with or executing against the database failed."""

    STARTUP_ERROR = "STARTUP_ERROR"
    """The database stayed unreachable after every startup attempt."""


class Severity(Enum):
    """Severity levels for errors in the Userbase application."""

    LOW = "LOW"
    """Expected errors caused by client input."""

    MEDIUM = "MEDIUM"
    """Errors that affect a single operation."""

    HIGH = "HIGH"
    """Errors impacting critical functionality, such as the database."""

    CRITICAL = "CRITICAL"
    """Errors that prevent the service from running at all."""


class UserbaseError(Exception):
    """Base exception class for all Userbase application exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message, safe to return to clients
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    @property
    def is_expected(self) -> bool:
        """Determine if this is an expected error based on severity.

        Returns:
            bool: True if the error is expected (LOW or MEDIUM severity)
        """
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    def __str__(self) -> str:
        """Return a string representation of the exception.

        Returns:
            str: A formatted string containing the error code and message
        """
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return a detailed representation of the exception.

        Returns:
            str: A string showing the class name, error code, message, severity,
                and context
        """
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(UserbaseError):
    """Exception raised when a user record fails validation.

    Args:
        message: Summary of the validation failure
        errors: Ordered, human-readable rule violations returned to the client
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.errors = list(errors or [])
        super().__init__(
            ErrorCode.VALIDATION_ERROR, message, Severity.LOW, context, cause
        )


class NotFoundError(UserbaseError):
    """Exception raised when a lookup or mutation target does not exist."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(ErrorCode.NOT_FOUND, message, Severity.LOW, context, cause)


class MalformedRequestError(UserbaseError):
    """Exception raised when a request body cannot be parsed as JSON."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.MALFORMED_REQUEST, message, Severity.LOW, context, cause
        )


class StorageError(UserbaseError):
    """Exception raised when the database cannot be reached or a statement fails.

    The message is a generic, client-safe description of the failed
    operation. The driver error is kept as ``cause`` for the logs only.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.STORAGE_ERROR, message, Severity.HIGH, context, cause
        )


class StartupError(UserbaseError):
    """Exception raised when the database stays unreachable during startup."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.STARTUP_ERROR, message, Severity.CRITICAL, context, cause
        )
