"""DBInterface core infrastructure.

This package provides the foundational pieces shared by the rest of the
library: component base classes, the exception hierarchy, protocols and
small utilities.

Modules:
    base: Component base classes
    exceptions: Exception hierarchy
    protocols: Collaborator interfaces
    utils: Quoting, pattern and ordering helpers

Example:
    >>> from dbinterface.core import AsyncComponent, QueryError
    >>> from dbinterface.core.utils import SqlUtils
"""

from .base import AsyncComponent, BaseComponent
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConnectionError,
    DatabaseConnectionError,
    DBInterfaceException,
    DriverError,
    ErrorCodes,
    IntrospectionError,
    QueryError,
    ValidationError,
)
from .protocols import CacheProvider, Connection, QueryRunner
from .utils import SqlUtils, ValidationUtils, natural_sort_key, safe_cast

__all__ = [
    # Base classes
    "BaseComponent",
    "AsyncComponent",

    # Exceptions
    "DBInterfaceException",
    "ConfigurationError",
    "ValidationError",
    "ConnectionError",
    "DatabaseConnectionError",
    "AuthenticationError",
    "IntrospectionError",
    "QueryError",
    "DriverError",
    "ErrorCodes",

    # Protocols
    "Connection",
    "QueryRunner",
    "CacheProvider",

    # Utilities
    "SqlUtils",
    "ValidationUtils",
    "natural_sort_key",
    "safe_cast",
]
