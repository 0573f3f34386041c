"""Driver connections implementing the ``Connection`` protocol."""

from .mysql import MySQLConnection, open_connection

__all__ = ["MySQLConnection", "open_connection"]
