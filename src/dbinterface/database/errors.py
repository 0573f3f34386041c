"""Turning driver error codes into user-facing messages and typed exceptions.

Classes:
    ErrorFormatter: Maps server/client error numbers to actionable messages

Functions:
    format_error: Format with the default formatter
    classify_error: Build the DBInterface exception for a driver failure

Example:
    >>> format_error(2003, "Can't connect to MySQL server on 'db' (111)")
    "#2003 - The server is not responding. (Can't connect to MySQL server on 'db' (111))"
"""

from typing import ClassVar, FrozenSet, Optional

from ..core.exceptions import (
    AuthenticationError,
    DatabaseConnectionError,
    DBInterfaceException,
    ErrorCodes,
    QueryError,
)

# Client library codes for an unreachable server or a dropped link
CONNECTION_ERRORS: FrozenSet[int] = frozenset({2002, 2003, 2006, 2013})
# Server codes for rejected credentials
ACCESS_DENIED_ERRORS: FrozenSet[int] = frozenset({1044, 1045, 1698})
# Server codes for a missing privilege on an otherwise valid statement
PRIVILEGE_ERRORS: FrozenSet[int] = frozenset({1142, 1143, 1227})


class ErrorFormatter:
    """Formats error numbers reported by the server or the client library.

    The formatter never raises. Codes it has no advice for, including the
    negative values drivers use when no code is available, return the raw
    message unchanged.

    Attributes:
        route_prefix: Prefix of application routes linked from messages
    """

    NOT_RESPONDING: ClassVar[str] = "The server is not responding"
    SOCKET_HINT: ClassVar[str] = " (or the local server's socket is not correctly configured)"
    CHECK_PRIVILEGES: ClassVar[str] = "Please check privileges of directory containing database."

    def __init__(self, route_prefix: str = "index.php?route=") -> None:
        self.route_prefix = route_prefix

    def route(self, path: str) -> str:
        return f"{self.route_prefix}{path}"

    def format(self, code: int, message: str) -> str:
        """Return the user-facing text for ``code``.

        Args:
            code: Numeric error code, negative when unknown
            message: Raw message reported by the driver
        """
        message = "" if message is None else str(message)
        try:
            code = int(code)
        except (TypeError, ValueError):
            return message

        if code == 2002:
            return f"#{code} - {self.NOT_RESPONDING}{self.SOCKET_HINT}. ({message})"
        if code == 2003:
            return f"#{code} - {self.NOT_RESPONDING}. ({message})"
        if code == 1698:
            return (
                f"#{code} - {message} "
                f"(log out and log in again: {self.route('/logout')})"
            )
        if code == 1005:
            if "errno: 13" in message:
                return f"#{code} - {message}\n{self.CHECK_PRIVILEGES}"
            return (
                f"#{code} - {message} "
                f"(details: {self.route('/server/engines/InnoDB/Status')})"
            )
        return message


_default_formatter = ErrorFormatter()


def format_error(code: int, message: str) -> str:
    """Format an error with the default route prefix."""
    return _default_formatter.format(code, message)


def classify_error(
    code: int,
    message: str,
    sql: Optional[str] = None,
    *,
    formatter: Optional[ErrorFormatter] = None,
) -> DBInterfaceException:
    """Build the typed exception describing a driver failure.

    The exception message is the formatted, user-facing text; the raw
    driver message and the failed statement stay in ``context``.
    """
    formatted = (formatter or _default_formatter).format(code, message)
    context = {"mysql_error_code": code, "raw_message": message}
    if sql is not None:
        context["sql"] = sql

    if code in CONNECTION_ERRORS:
        error_code = ErrorCodes.CONNECTION_LOST if code in (2006, 2013) else ErrorCodes.CONNECTION_REFUSED
        return DatabaseConnectionError(formatted, code=error_code, context=context)
    if code in ACCESS_DENIED_ERRORS:
        return AuthenticationError(formatted, code=ErrorCodes.AUTH_FAILED, context=context)
    if code in PRIVILEGE_ERRORS:
        return QueryError(formatted, code=ErrorCodes.INSUFFICIENT_PERMISSIONS, context=context)
    return QueryError(formatted, code=ErrorCodes.QUERY_EXECUTION_FAILED, context=context)
