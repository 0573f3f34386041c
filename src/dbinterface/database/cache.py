"""Session-scoped memoization of lookup results.

A ``SessionCache`` belongs to one facade, that is one logical server
session. Entries never expire; callers remove a key to force a new lookup.
"""

from typing import Any, Dict, List

import structlog

logger = structlog.get_logger(__name__)

_MISSING = object()


class SessionCache:
    """In-memory key-value store without eviction.

    ``None`` and other falsy values are legitimate cached results, so use
    ``has()`` rather than ``get()`` to tell a hit from a miss.

    Example:
        >>> cache = SessionCache()
        >>> cache.set("is_amazon_rds", False)
        >>> cache.has("is_amazon_rds")
        True
    """

    CURRENT_USER = "mysql_cur_user"
    IS_AMAZON_RDS = "is_amazon_rds"
    SERVER_COLLATION = "server_collation"
    DB_COLLATIONS = "db_collations"

    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}

    @staticmethod
    def db_collation_key(database: str) -> str:
        return f"db_collation:{database}"

    def get(self, key: str, default: Any = None) -> Any:
        value = self._data.get(key, _MISSING)
        if value is _MISSING:
            logger.debug("Session cache miss", cache_key=key)
            return default
        logger.debug("Session cache hit", cache_key=key)
        return value

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> List[str]:
        return list(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"SessionCache(keys={self.keys()!r})"
