"""The list of databases visible to the session."""

import re
from typing import Iterator, List, Optional

from ..config.models import ServerConfig
from ..core.protocols import QueryRunner
from ..core.utils import SqlUtils
from ..logging import get_logger


class DatabaseList:
    """Database names the user may see, refreshed from the server.

    ``only_db`` restricts the list to names matching its LIKE patterns
    (``*`` means no restriction); ``hide_db`` removes names matching a
    regular expression.

    Example:
        >>> dblist = DatabaseList(server_config)
        >>> await dblist.refresh(dbi)
        >>> "sakila" in dblist
        True
    """

    def __init__(self, config: ServerConfig, databases: Optional[List[str]] = None) -> None:
        self.config = config
        self.logger = get_logger(__name__)
        self._databases: List[str] = list(databases or [])
        self.loaded = databases is not None

    @property
    def databases(self) -> List[str]:
        return list(self._databases)

    def statements(self) -> List[str]:
        """Statements issued by ``refresh``."""
        patterns = [pattern for pattern in self.config.only_db if pattern]
        if not patterns or "*" in patterns:
            return ["SHOW DATABASES"]
        return [f"SHOW DATABASES LIKE {SqlUtils.quote_string(pattern)}" for pattern in patterns]

    async def refresh(self, runner: QueryRunner) -> List[str]:
        """Reload the names from the server."""
        names: List[str] = []
        for sql in self.statements():
            result = await runner.query(sql)
            for name in result.column_values(0):
                if name is not None and name not in names:
                    names.append(str(name))

        if self.config.hide_db:
            hidden = re.compile(self.config.hide_db)
            names = [name for name in names if not hidden.search(name)]

        self._databases = names
        self.loaded = True
        self.logger.debug("Database list refreshed", server=self.config.id, databases=len(names))
        return self.databases

    def exists(self, *names: str) -> bool:
        """Whether every given name is in the list."""
        return all(name in self._databases for name in names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._databases)

    def __len__(self) -> int:
        return len(self._databases)

    def __contains__(self, name: object) -> bool:
        return name in self._databases

    def __repr__(self) -> str:
        return f"DatabaseList(server={self.config.id!r}, databases={len(self._databases)})"
