"""Utility functions for DBInterface operations.

This module provides helpers shared by the connection facade and the schema
introspector: identifier validation, SQL quoting, MySQL ``LIKE`` pattern
matching and natural ordering.

Example:
    >>> SqlUtils.backquote("my`db")
    '`my``db`'
"""

import re
from typing import Any, List, Pattern, Tuple, Union

from pymysql.converters import escape_string

# Schemas whose collation and table types are known without asking the server
SYSTEM_SCHEMAS = ("information_schema", "performance_schema", "sys")


class ValidationUtils:
    """Utility class for validation operations."""

    IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

    @classmethod
    def validate_identifier(cls, identifier: str, *, allow_empty: bool = False) -> bool:
        """Validate identifier string.

        Args:
            identifier: String to validate as identifier
            allow_empty: Whether to allow empty strings

        Returns:
            True if identifier is valid

        Example:
            >>> ValidationUtils.validate_identifier("server_1")
            True
            >>> ValidationUtils.validate_identifier("1server")
            False
        """
        if not identifier:
            return allow_empty

        return bool(cls.IDENTIFIER_PATTERN.match(identifier))

    @classmethod
    def validate_port(cls, port: Union[int, str]) -> bool:
        """Validate network port number.

        Args:
            port: Port number to validate

        Returns:
            True if port is valid
        """
        try:
            port_int = int(port)
            return 1 <= port_int <= 65535
        except (ValueError, TypeError):
            return False


class SqlUtils:
    """Quoting and pattern helpers for MySQL statements."""

    @staticmethod
    def backquote(identifier: str) -> str:
        """Quote an identifier with backticks, doubling embedded backticks."""
        return "`" + identifier.replace("`", "``") + "`"

    @staticmethod
    def escape_string(value: str) -> str:
        """Escape a value for use inside a single-quoted literal."""
        return escape_string(value)

    @classmethod
    def quote_string(cls, value: str) -> str:
        """Return ``value`` as an escaped, single-quoted SQL literal."""
        return "'" + cls.escape_string(value) + "'"

    @staticmethod
    def like_to_regex(pattern: str) -> Pattern[str]:
        """Compile a MySQL ``LIKE`` pattern into a regular expression.

        ``%`` matches any run of characters, ``_`` a single character and a
        backslash escapes the next character. Matching is case-insensitive
        like the server's default collations.

        Example:
            >>> bool(SqlUtils.like_to_regex("db\\_%").match("db_one"))
            True
        """
        parts: List[str] = []
        escaped = False
        for char in pattern:
            if escaped:
                parts.append(re.escape(char))
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == "%":
                parts.append(".*")
            elif char == "_":
                parts.append(".")
            else:
                parts.append(re.escape(char))
        if escaped:
            parts.append(re.escape("\\"))
        return re.compile("^" + "".join(parts) + "$", re.IGNORECASE | re.DOTALL)

    @staticmethod
    def is_system_schema(schema_name: str, *, include_mysql: bool = False) -> bool:
        """Check whether ``schema_name`` is one of the server's own schemas.

        Args:
            schema_name: Database name to check
            include_mysql: Also treat the ``mysql`` schema as a system schema

        Returns:
            True for information_schema, performance_schema and sys
        """
        name = schema_name.lower()
        if include_mysql and name == "mysql":
            return True
        return name in SYSTEM_SCHEMAS


_NATURAL_CHUNK = re.compile(r"(\d+)")


def natural_sort_key(value: Any) -> Tuple[Any, ...]:
    """Build a case-insensitive natural ordering key.

    Digit runs compare numerically so ``db2`` sorts before ``db10``.

    Example:
        >>> sorted(["db10", "db2", "DB1"], key=natural_sort_key)
        ['DB1', 'db2', 'db10']
    """
    text = "" if value is None else str(value)
    return tuple(
        (0, int(chunk), "") if chunk.isdigit() else (1, 0, chunk.lower())
        for chunk in _NATURAL_CHUNK.split(text)
        if chunk
    )


def safe_cast(value: Any, target_type: type, *, default: Any = None) -> Any:
    """Safely cast value to target type.

    Args:
        value: Value to cast
        target_type: Target type
        default: Default value if casting fails

    Returns:
        Cast value or default

    Example:
        >>> safe_cast("16384", int)
        16384
        >>> safe_cast(None, int, default=0)
        0
    """
    try:
        return target_type(value)
    except (ValueError, TypeError):
        return default
