"""DBInterface exception hierarchy.

This module defines the exceptions raised by the database abstraction layer.
Every exception carries an error code, a context dictionary and the optional
original cause so callers can render a message to the user while keeping the
technical detail for diagnostics.

Classes:
    DBInterfaceException: Base exception for all DBInterface operations
    ConfigurationError: Configuration related errors
    ConnectionError: Server connection errors
    IntrospectionError: Schema introspection errors
    DriverError: Raw failure reported by the database driver

Example:
    >>> try:
    ...     await dbi.query("SELECT 1")
    ... except QueryError as e:
    ...     logger.error("Query failed", error_code=e.code, context=e.context)
"""

from typing import Any, Dict, Optional


class DBInterfaceException(Exception):
    """Base exception for all DBInterface operations.

    Attributes:
        code: Unique error code for categorization
        context: Additional context information about the error
        cause: Original exception that caused this error (if any)

    Example:
        >>> raise DBInterfaceException(
        ...     "Operation failed",
        ...     code="OPERATION_FAILED",
        ...     context={"database": "sakila"}
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """Initialize DBInterface exception.

        Args:
            message: Human-readable error description
            code: Unique error code for categorization (defaults to class name)
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message: str = message
        self.code: str = code or self.__class__.__name__
        self.context: Dict[str, Any] = context or {}
        self.cause: Optional[Exception] = cause

    def __str__(self) -> str:
        """Return formatted error message with code."""
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r}, "
            f"cause={self.cause!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(DBInterfaceException):
    """Configuration related errors.

    Raised when configuration is invalid, missing, or cannot be processed.
    """
    pass


class ValidationError(ConfigurationError):
    """Data validation errors.

    Raised when input fails validation rules, including caller contract
    violations such as mismatched column lists.
    """
    pass


class ConnectionError(DBInterfaceException):
    """Server connection related errors.

    Base class for connection establishment, authentication and
    connectivity problems.
    """
    pass


class DatabaseConnectionError(ConnectionError):
    """Raised when the server cannot be reached or the link was lost."""
    pass


class AuthenticationError(ConnectionError):
    """Raised when the server rejects the supplied credentials."""
    pass


class IntrospectionError(DBInterfaceException):
    """Schema introspection related errors.

    Base class for failures while reading server metadata.
    """
    pass


class QueryError(IntrospectionError):
    """SQL statement execution errors.

    Carries the user-facing formatted message; the raw driver error number
    and message are kept in ``context``.
    """
    pass


class DriverError(DBInterfaceException):
    """Failure reported by the underlying database driver.

    Connections implementing the ``Connection`` protocol raise this with the
    server's numeric error code and raw message. The facade turns it into a
    formatted, typed exception.

    Attributes:
        errno: Numeric server or client error code (-1 when unknown)
        raw_message: Message exactly as reported by the driver
    """

    def __init__(
        self,
        errno: int,
        raw_message: str,
        *,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            raw_message,
            code=ErrorCodes.DRIVER_ERROR,
            context={"mysql_error_code": errno, **(context or {})},
            cause=cause,
        )
        self.errno: int = errno
        self.raw_message: str = raw_message


# Error code constants for common scenarios
class ErrorCodes:
    """Common error codes for DBInterface exceptions."""

    # Configuration errors
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    COLUMN_MAP_MISMATCH = "COLUMN_MAP_MISMATCH"

    # Connection errors
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    CONNECTION_LOST = "CONNECTION_LOST"
    NOT_CONNECTED = "NOT_CONNECTED"
    AUTH_FAILED = "AUTH_FAILED"

    # Introspection errors
    QUERY_EXECUTION_FAILED = "QUERY_EXECUTION_FAILED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Driver errors
    DRIVER_ERROR = "DRIVER_ERROR"
