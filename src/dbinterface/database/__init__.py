"""DBInterface database layer.

The connection facade and the components it orchestrates: version
parsing, error formatting, the session cache and schema introspection.

Example:
    >>> from dbinterface.database import DatabaseInterface
    >>> async with DatabaseInterface(server_config, system_config) as dbi:
    ...     tables = await dbi.get_tables_full("sakila")
"""

from .cache import SessionCache
from .connectors import MySQLConnection, open_connection
from .dblist import DatabaseList
from .errors import ErrorFormatter, classify_error, format_error
from .interface import ConnectionState, ConnectionType, DatabaseInterface, LinkRunner
from .introspection import SchemaIntrospector
from .models import (
    CurrentUser,
    DatabaseSummary,
    FieldInfo,
    QueryResult,
    ServerVersion,
    TableStatus,
)
from .system import SystemDatabase
from .version import VersionParser, parse_version, version_to_int

__all__ = [
    # Facade
    "DatabaseInterface",
    "ConnectionState",
    "ConnectionType",
    "LinkRunner",

    # Components
    "SessionCache",
    "SchemaIntrospector",
    "DatabaseList",
    "SystemDatabase",
    "ErrorFormatter",
    "VersionParser",
    "MySQLConnection",

    # Functions
    "classify_error",
    "format_error",
    "open_connection",
    "parse_version",
    "version_to_int",

    # Models
    "CurrentUser",
    "DatabaseSummary",
    "FieldInfo",
    "QueryResult",
    "ServerVersion",
    "TableStatus",
]
