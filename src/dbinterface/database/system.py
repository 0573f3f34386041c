"""Access to the configuration storage database through the control link."""

from typing import List, Optional

from ..core.protocols import QueryRunner
from ..core.utils import SqlUtils

# Database checked when no storage database is configured
DEFAULT_STORAGE_DB = "phpmyadmin"


class SystemDatabase:
    """View of the configuration storage database.

    Attributes:
        storage_db: Name of the storage database
    """

    def __init__(self, runner: QueryRunner, storage_db: str = DEFAULT_STORAGE_DB) -> None:
        self._runner = runner
        self.storage_db = storage_db or DEFAULT_STORAGE_DB
        self._tables: Optional[List[str]] = None

    @staticmethod
    def tables_sql(database: str) -> str:
        return f"SHOW TABLES FROM {SqlUtils.backquote(database)};"

    async def get_existing_tables(self, *, refresh: bool = False) -> List[str]:
        """Names of the tables in the storage database."""
        if self._tables is None or refresh:
            result = await self._runner.query(self.tables_sql(self.storage_db))
            self._tables = [str(name) for name in result.column_values(0)]
        return list(self._tables)

    async def has_table(self, name: str) -> bool:
        return name in await self.get_existing_tables()

    def __repr__(self) -> str:
        return f"SystemDatabase(storage_db={self.storage_db!r})"
