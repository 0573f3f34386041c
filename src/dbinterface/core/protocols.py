"""Protocol definitions for DBInterface components.

These protocols are the seams between the facade and its collaborators. The
facade depends on the narrow ``Connection`` capability rather than on a
concrete driver, so tests and alternative drivers implement it directly.

Protocols:
    Connection: One live link to a server
    QueryRunner: Anything that can run a statement and return rows
    CacheProvider: Key-value memoization store

Example:
    >>> async def server_version(connection: Connection) -> str:
    ...     result = await connection.execute("SELECT @@version")
    ...     return result.scalar()
"""

from typing import TYPE_CHECKING, Any, Iterable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..database.models import QueryResult


@runtime_checkable
class Connection(Protocol):
    """Capability interface for a single server connection.

    Implementations must raise ``DriverError`` for any failure reported by
    the server or the client library, carrying the numeric error code and the
    raw message.
    """

    @property
    def is_open(self) -> bool:
        """Check if the underlying link is usable."""
        ...

    async def execute(self, sql: str) -> "QueryResult":
        """Run one statement and return its buffered result."""
        ...

    async def select_db(self, database: str) -> None:
        """Change the default database of the link."""
        ...

    async def close(self) -> None:
        """Close the link; closing twice is a no-op."""
        ...


@runtime_checkable
class QueryRunner(Protocol):
    """Protocol for objects that run statements on behalf of a caller."""

    async def query(self, sql: str) -> "QueryResult":
        """Run a statement, raising a typed error on failure."""
        ...


@runtime_checkable
class CacheProvider(Protocol):
    """Protocol for session-scoped memoization stores."""

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value or ``default``."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a value."""
        ...

    def has(self, key: str) -> bool:
        """Check if a key is cached, including cached ``None`` values."""
        ...

    def remove(self, key: str) -> None:
        """Drop a key if present."""
        ...

    def keys(self) -> Iterable[str]:
        """Return the cached keys."""
        ...


__all__ = ["Connection", "QueryRunner", "CacheProvider"]
