"""DBInterface - database abstraction layer for MySQL/MariaDB administration.

DBInterface wraps a server connection with version detection, vendor
classification, session-scoped caching of lookup queries, collation lookup
and schema introspection through ``SHOW`` commands or information_schema.

Modules:
    core: Base classes, exceptions, protocols and utilities
    config: Configuration models
    logging: Structured logging framework
    database: Connection facade and introspection

Example:
    >>> from dbinterface.config import SystemConfig
    >>> from dbinterface.database import DatabaseInterface
    >>> from dbinterface.logging import configure_logging
    >>>
    >>> config = SystemConfig.from_file("dbinterface.yaml")
    >>> configure_logging(level=config.logging.level, format=config.logging.format)
    >>> async with DatabaseInterface(config.get_server_config("local"), config) as dbi:
    ...     print(await dbi.get_current_user())
"""

from . import config, core, database, logging

__version__ = "0.1.0"
__title__ = "DBInterface"
__description__ = "Database abstraction and introspection layer for MySQL/MariaDB"
__license__ = "MIT"

__all__ = [
    "core",
    "config",
    "logging",
    "database",
    "__version__",
    "__title__",
    "__description__",
    "__license__",
]
