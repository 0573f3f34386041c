"""The connection facade used by the administration tool.

``DatabaseInterface`` owns a user link, an optional control link and a
session cache. It runs the post-connect handshake, answers cached lookups
(current user, Amazon RDS detection, collations) and exposes schema
introspection through either ``SHOW`` commands or information_schema.

Example:
    >>> async with DatabaseInterface(server_config, system_config) as dbi:
    ...     print(dbi.get_version_string(), await dbi.get_current_user())
    ...     databases = await dbi.get_databases_full(sort_by="SCHEMA_DATA_LENGTH")
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..config.models import CredentialConfig, ServerConfig, SystemConfig
from ..core import AsyncComponent
from ..core.exceptions import DatabaseConnectionError, DBInterfaceException, DriverError, ErrorCodes
from ..core.protocols import Connection
from ..core.utils import SqlUtils
from ..logging import get_logger, get_performance_logger
from .cache import SessionCache
from .connectors.mysql import open_connection
from .dblist import DatabaseList
from .errors import ErrorFormatter, classify_error
from .introspection import SchemaIntrospector
from .models import CurrentUser, QueryResult, ServerVersion
from .system import DEFAULT_STORAGE_DB, SystemDatabase
from .version import VersionParser

ConnectionFactory = Callable[[ServerConfig, CredentialConfig], Awaitable[Connection]]

# Collation reported for information_schema, performance_schema and sys
SYSTEM_SCHEMA_COLLATION = "utf8_general_ci"


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    READY = "ready"


class ConnectionType(Enum):
    """Which credential context a statement runs under."""
    USER = "user"
    CONTROL = "control"


class LinkRunner:
    """Runs statements on one link of a facade."""

    def __init__(self, dbi: "DatabaseInterface", link: ConnectionType) -> None:
        self._dbi = dbi
        self.link = link

    async def query(self, sql: str) -> QueryResult:
        return await self._dbi.query(sql, link=self.link)


class DatabaseInterface(AsyncComponent[ServerConfig]):
    """Connection facade for one server session.

    Connections may be injected (already open) or are opened by
    ``connect()`` with the configured credentials. The facade is not safe
    for concurrent use: every call awaits its statements one at a time.

    Attributes:
        config: Server configuration
        system_config: Application-wide settings (debug mode, ordering,
            minimum supported version)
        cache: Session cache owned by this facade
    """

    component_name = "DatabaseInterface"

    def __init__(
        self,
        config: ServerConfig,
        system_config: Optional[SystemConfig] = None,
        *,
        connection: Optional[Connection] = None,
        control_connection: Optional[Connection] = None,
        cache: Optional[SessionCache] = None,
        error_formatter: Optional[ErrorFormatter] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> None:
        super().__init__(config)
        self.system_config = system_config or SystemConfig()
        self.cache = cache if cache is not None else SessionCache()
        self.error_formatter = error_formatter or ErrorFormatter()
        self.introspector = SchemaIntrospector()
        self.logger = get_logger(__name__).bind(server=config.id)
        self.perf_logger = get_performance_logger("facade")

        self._connection_factory = connection_factory or open_connection
        self._links: Dict[ConnectionType, Optional[Connection]] = {
            ConnectionType.USER: connection,
            ConnectionType.CONTROL: control_connection,
        }
        self._errors: Dict[ConnectionType, Optional[str]] = {}
        self._current_db: Dict[ConnectionType, str] = {}
        self._state = ConnectionState.CONNECTED if connection is not None else ConnectionState.DISCONNECTED

        self._version: Optional[ServerVersion] = None
        self.charset_connection: Optional[str] = None
        self.collation_connection: Optional[str] = None
        self.database_list = DatabaseList(config)
        self.storage_db: str = config.pmadb

    # Lifecycle

    @property
    def state(self) -> ConnectionState:
        return self._state

    async def connect(self) -> None:
        """Open the links, then run the post-connect handshakes."""
        await self.initialize()

    async def disconnect(self) -> None:
        """Close every link and forget the session's cached lookups."""
        if self.is_initialized:
            await self.cleanup()
        else:
            # Injected links are open without initialize()
            await self._async_cleanup()

    async def _async_initialize(self) -> None:
        if self._links[ConnectionType.USER] is None:
            self._links[ConnectionType.USER] = await self._connection_factory(
                self.config, self.config.credentials
            )
        if self.config.control_credentials is not None and self._links[ConnectionType.CONTROL] is None:
            self._links[ConnectionType.CONTROL] = await self._connection_factory(
                self.config, self.config.control_credentials
            )
        self._state = ConnectionState.CONNECTED
        self.logger.info("Connected", target=self.config.connection_string)

        await self.post_connect()
        await self.post_connect_control()

    async def _async_cleanup(self) -> None:
        for link, connection in self._links.items():
            if connection is not None:
                await connection.close()
            self._links[link] = None
        self.cache.clear()
        self._current_db.clear()
        self._state = ConnectionState.DISCONNECTED
        self.logger.info("Disconnected")

    def _connection(self, link: ConnectionType) -> Connection:
        connection = self._links.get(link)
        if connection is None and link is ConnectionType.CONTROL and not self.config.has_control_user:
            connection = self._links.get(ConnectionType.USER)
        if connection is None or not connection.is_open:
            raise DatabaseConnectionError(
                f"No open {link.value} connection",
                code=ErrorCodes.NOT_CONNECTED,
                context={"server": self.config.id, "link": link.value},
            )
        return connection

    def runner(self, link: ConnectionType = ConnectionType.USER) -> LinkRunner:
        return LinkRunner(self, link)

    # Statements

    async def query(self, sql: str, link: ConnectionType = ConnectionType.USER) -> QueryResult:
        """Run a statement.

        Raises:
            DatabaseConnectionError: If the link is closed or the server went away
            AuthenticationError: If the server rejected the account
            QueryError: For any other failure; the message is user-facing
        """
        connection = self._connection(link)
        try:
            result = await connection.execute(sql)
        except DriverError as e:
            error = classify_error(e.errno, e.raw_message, sql, formatter=self.error_formatter)
            self._errors[link] = error.message
            raise error from e

        self._errors[link] = None
        return result

    async def try_query(self, sql: str, link: ConnectionType = ConnectionType.USER) -> Optional[QueryResult]:
        """Run a statement, returning None instead of raising on failure."""
        try:
            return await self.query(sql, link=link)
        except DBInterfaceException as e:
            self._errors[link] = e.message
            self.logger.warning("Statement failed", sql=sql, link=link.value, error=e.message)
            return None

    async def query_as_control_user(self, sql: str) -> QueryResult:
        """Run a statement with the control user's privileges."""
        return await self.query(sql, link=ConnectionType.CONTROL)

    async def try_query_as_control_user(self, sql: str) -> Optional[QueryResult]:
        return await self.try_query(sql, link=ConnectionType.CONTROL)

    async def fetch_value(
        self,
        sql: str,
        column: Union[int, str] = 0,
        link: ConnectionType = ConnectionType.USER,
    ) -> Any:
        """First row's value of ``column``, or None if the statement failed or returned nothing."""
        result = await self.try_query(sql, link=link)
        if result is None:
            return None
        return result.scalar(column)

    async def fetch_single_row(
        self, sql: str, link: ConnectionType = ConnectionType.USER
    ) -> Optional[Dict[str, Any]]:
        result = await self.try_query(sql, link=link)
        if result is None:
            return None
        return result.first()

    async def fetch_result(
        self,
        sql: str,
        key: Optional[Union[int, str]] = None,
        value: Optional[Union[int, str]] = None,
        link: ConnectionType = ConnectionType.USER,
    ) -> Union[List[Any], Dict[Any, Any]]:
        """Fetch all rows, optionally keyed and/or reduced to one column.

        Without ``key`` a list is returned, with ``key`` a dict keyed by that
        column. ``value`` selects a single column instead of whole rows.
        Failures yield an empty collection.
        """
        result = await self.try_query(sql, link=link)
        rows = result.rows if result is not None else []

        def pick(row: Dict[str, Any], column: Union[int, str]) -> Any:
            if isinstance(column, int):
                return list(row.values())[column]
            return row.get(column)

        if key is None:
            return [pick(row, value) if value is not None else row for row in rows]
        return {
            pick(row, key): pick(row, value) if value is not None else row
            for row in rows
        }

    async def select_db(self, database: str, link: ConnectionType = ConnectionType.USER) -> bool:
        """Change the default database of a link; False on failure."""
        connection = self._connection(link)
        try:
            await connection.select_db(database)
        except DriverError as e:
            self._errors[link] = self.error_formatter.format(e.errno, e.raw_message)
            self.logger.warning("Cannot select database", database=database, error=e.raw_message)
            return False

        self._current_db[link] = database
        return True

    def get_current_db(self, link: ConnectionType = ConnectionType.USER) -> str:
        return self._current_db.get(link, "")

    def get_error(self, link: ConnectionType = ConnectionType.USER) -> Optional[str]:
        """Formatted message of the link's last failed statement."""
        return self._errors.get(link)

    @staticmethod
    def quote_string(value: str) -> str:
        return SqlUtils.quote_string(value)

    @staticmethod
    def backquote(identifier: str) -> str:
        return SqlUtils.backquote(identifier)

    # Handshake and version

    async def post_connect(self) -> None:
        """Detect the server version and configure the session.

        A missing version row is not an error: the version stays unset.
        """
        row = await self.fetch_single_row("SELECT @@version, @@version_comment")
        if row:
            self.set_version(row)
        else:
            self.logger.info("Server version not available")

        if self.get_version() > 50503:
            charset, collation = "utf8mb4", "utf8mb4_general_ci"
        else:
            charset, collation = "utf8", "utf8_general_ci"
        await self.query(f"SET NAMES '{charset}' COLLATE '{collation}';")
        self.charset_connection = charset
        self.collation_connection = collation

        if self.config.lc_messages:
            await self.query(f"SET lc_messages = {SqlUtils.quote_string(self.config.lc_messages)};")

        if self.config.session_time_zone:
            sql = f"SET `time_zone` = {SqlUtils.quote_string(self.config.session_time_zone)}"
            if await self.try_query(sql) is None:
                self.logger.warning(
                    "Unable to use timezone for the session",
                    time_zone=self.config.session_time_zone,
                    error=self.get_error(),
                )

        self._state = ConnectionState.READY

    async def post_connect_control(self) -> None:
        """Reset the database list and locate configuration storage."""
        self.database_list = DatabaseList(self.config)

        if self.config.pmadb:
            self.storage_db = self.config.pmadb
            return
        if not self.config.zero_conf:
            return

        candidate = self.get_current_db() or DEFAULT_STORAGE_DB
        result = await self.try_query_as_control_user(SystemDatabase.tables_sql(candidate))
        if result is not None and any(str(name).startswith("pma__") for name in result.column_values(0)):
            self.storage_db = candidate
            self.logger.info("Configuration storage found", database=candidate)

    def set_version(self, row: Dict[str, Any]) -> None:
        """Store the version parsed from a ``@@version``/``@@version_comment`` row."""
        self._version = VersionParser.from_row(row)
        self.logger.debug(
            "Server version detected",
            version=self._version.raw,
            mariadb=self._version.is_mariadb,
            percona=self._version.is_percona,
        )

    @property
    def server_version(self) -> Optional[ServerVersion]:
        return self._version

    def get_version(self) -> int:
        return self._version.integer if self._version else 0

    def get_version_string(self) -> str:
        return self._version.raw if self._version else ""

    def get_version_comment(self) -> str:
        return self._version.comment if self._version else ""

    def is_mariadb(self) -> bool:
        return bool(self._version and self._version.is_mariadb)

    def is_percona(self) -> bool:
        return bool(self._version and self._version.is_percona)

    def needs_upgrade(self) -> bool:
        """Whether the server is older than the lowest supported version."""
        return VersionParser.needs_upgrade(self.get_version(), self.system_config.mysql_min_version)

    # Cached lookups

    async def get_current_user_and_host(self) -> Tuple[str, str]:
        """Account and host of the session.

        Both are empty when the lookup fails; that answer is cached too.
        """
        if self.cache.has(SessionCache.CURRENT_USER):
            return self.cache.get(SessionCache.CURRENT_USER).as_tuple()

        value = await self.fetch_value("SELECT CURRENT_USER();")
        user = CurrentUser()
        if value:
            parts = str(value).rsplit("@", 1)
            user = CurrentUser(*parts) if len(parts) == 2 else CurrentUser(name=parts[0])

        self.cache.set(SessionCache.CURRENT_USER, user)
        return user.as_tuple()

    async def get_current_user(self) -> str:
        """``user@host`` of the session, ``@`` when unknown."""
        name, host = await self.get_current_user_and_host()
        return f"{name}@{host}"

    async def is_amazon_rds(self) -> bool:
        """Whether the server runs on Amazon RDS, judged by its base directory."""
        if self.cache.has(SessionCache.IS_AMAZON_RDS):
            return self.cache.get(SessionCache.IS_AMAZON_RDS)

        basedir = await self.fetch_value("SELECT @@basedir")
        is_rds = bool(basedir) and str(basedir).lower().startswith("/rdsdbbin/")
        self.cache.set(SessionCache.IS_AMAZON_RDS, is_rds)
        return is_rds

    # Collations

    @property
    def _debug_sql(self) -> bool:
        return self.system_config.debug.sql

    async def get_db_collation(self, database: str) -> str:
        """Default collation of ``database``.

        Debug mode queries the server on every call; otherwise results are
        cached for the session. Every path returns the same value.
        """
        if SqlUtils.is_system_schema(database):
            return SYSTEM_SCHEMA_COLLATION

        if self.config.disable_is:
            key = SessionCache.db_collation_key(database)
            if not self._debug_sql and self.cache.has(key):
                return self.cache.get(key)
            collation = await self._session_db_collation(database)
            if collation is None:
                return ""
            if not self._debug_sql:
                self.cache.set(key, collation)
            return collation

        if self._debug_sql:
            value = await self.fetch_value(
                "SELECT `DEFAULT_COLLATION_NAME` FROM `information_schema`.`SCHEMATA`"
                f" WHERE `SCHEMA_NAME` = {SqlUtils.quote_string(database)} LIMIT 1"
            )
            return "" if value is None else str(value)

        collations = await self._all_db_collations()
        return collations.get(database, "")

    async def _all_db_collations(self) -> Dict[str, str]:
        if self.cache.has(SessionCache.DB_COLLATIONS):
            return self.cache.get(SessionCache.DB_COLLATIONS)

        result = await self.try_query(
            "SELECT `SCHEMA_NAME`, `DEFAULT_COLLATION_NAME` FROM `information_schema`.`SCHEMATA`"
        )
        if result is None:
            return {}
        collations = {
            str(row["SCHEMA_NAME"]): str(row["DEFAULT_COLLATION_NAME"])
            for row in result
        }
        self.cache.set(SessionCache.DB_COLLATIONS, collations)
        return collations

    async def _session_db_collation(self, database: str) -> Optional[str]:
        """Read ``@@collation_database`` after switching to ``database``.

        The session's current database is unchanged afterwards. None when
        the database cannot be selected or the query fails.
        """
        previous = self.get_current_db()
        if not await self.select_db(database):
            return None
        value = await self.fetch_value("SELECT @@collation_database")
        if not previous:
            # The server cannot deselect a database; only the tracked state is restored
            self._current_db.pop(ConnectionType.USER, None)
        elif previous != database:
            await self.select_db(previous)
        return None if value is None else str(value)

    def clear_collation_cache(self) -> None:
        for key in self.cache.keys():
            if key in (SessionCache.DB_COLLATIONS, SessionCache.SERVER_COLLATION) or key.startswith(
                "db_collation:"
            ):
                self.cache.remove(key)

    async def get_server_collation(self) -> str:
        if not self._debug_sql and self.cache.has(SessionCache.SERVER_COLLATION):
            return self.cache.get(SessionCache.SERVER_COLLATION)

        value = await self.fetch_value("SELECT @@collation_server")
        collation = "" if value is None else str(value)
        if not self._debug_sql and value is not None:
            self.cache.set(SessionCache.SERVER_COLLATION, collation)
        return collation

    async def set_collation(self, collation: str) -> None:
        """Set ``collation_connection``; failures are logged, not raised.

        A legacy ``utf8`` connection cannot use ``utf8mb4_*`` collations,
        so those are mapped to their ``utf8_*`` counterpart.
        """
        if self.charset_connection == "utf8" and collation.startswith("utf8mb4_"):
            collation = "utf8_" + collation[len("utf8mb4_"):]

        result = await self.try_query(f"SET collation_connection = {SqlUtils.quote_string(collation)};")
        if result is None:
            self.logger.warning("Failed to set configured collation connection", collation=collation)
            return
        self.collation_connection = collation

    # Introspection

    async def get_tables(self, database: str, link: ConnectionType = ConnectionType.USER) -> List[str]:
        """Table names of ``database``."""
        tables = await self.fetch_result(
            f"SHOW TABLES FROM {SqlUtils.backquote(database)};", value=0, link=link
        )
        return [str(name) for name in tables]

    async def get_tables_full(
        self,
        database: str,
        table: Optional[str] = None,
        table_type: Optional[str] = None,
        link: ConnectionType = ConnectionType.USER,
    ) -> Dict[str, Dict[str, Any]]:
        """Metadata of the tables of ``database`` with legacy and catalog keys."""
        return await self.introspector.list_tables(
            self.runner(link),
            database,
            disable_is=self.config.disable_is,
            table=table,
            table_type=table_type,
        )

    async def get_databases_full(
        self,
        database: Optional[str] = None,
        force_stats: bool = True,
        link: ConnectionType = ConnectionType.USER,
        sort_by: str = "SCHEMA_NAME",
        sort_order: str = "ASC",
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Per-database summaries of the visible databases.

        Args:
            database: MySQL ``LIKE`` pattern restricting the databases
            force_stats: Collect table statistics
            link: Link used for the statistics queries
            sort_by: Summary column to sort by
            sort_order: ``ASC`` or ``DESC``
            offset: Rows to skip after sorting
            limit: Maximum rows to return, None for all
        """
        if not self.database_list.loaded:
            await self.database_list.refresh(self.runner(link))

        with self.perf_logger.measure("get_databases_full", sort_by=sort_by):
            return await self.introspector.list_databases(
                self.runner(link),
                self.database_list.databases,
                disable_is=self.config.disable_is,
                collation_lookup=self.get_db_collation,
                like=database,
                force_stats=force_stats,
                sort_by=sort_by,
                sort_order=sort_order,
                offset=offset,
                limit=limit,
                natural_order=self.system_config.natural_order,
            )

    async def get_column_map_from_sql(
        self, sql: str, view_columns: Sequence[str]
    ) -> List[Dict[str, str]]:
        """Map the columns of ``sql``'s result to ``view_columns``.

        Raises:
            ValidationError: If the column counts differ
        """
        result = await self.try_query(sql)
        if result is None:
            return []
        return self.introspector.get_column_map(result, view_columns)

    def get_system_database(self) -> SystemDatabase:
        """Configuration storage accessed through the control link."""
        return SystemDatabase(self.runner(ConnectionType.CONTROL), self.storage_db)

    def get_health_status(self) -> Dict[str, Any]:
        status = super().get_health_status()
        status.update({
            "state": self._state.value,
            "server": self.config.id,
            "version": self.get_version_string(),
            "cached_keys": self.cache.keys(),
        })
        return status
