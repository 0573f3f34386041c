"""MySQL/MariaDB connection implemented with aiomysql."""

import ssl
import time
from typing import Any, List, Optional

import aiomysql

from ...config.models import CredentialConfig, ServerConfig
from ...core import AsyncComponent
from ...core.exceptions import DatabaseConnectionError, DriverError, ErrorCodes
from ...logging import get_logger, get_performance_logger
from ..models import FieldInfo, QueryResult


def _driver_error(exc: BaseException, **context: Any) -> DriverError:
    """Convert an aiomysql/PyMySQL error to a DriverError.

    PyMySQL errors carry ``(errno, message)`` in ``args``.
    """
    args = getattr(exc, "args", ()) or ()
    errno = args[0] if args and isinstance(args[0], int) else -1
    message = str(args[1]) if len(args) > 1 else str(exc)
    return DriverError(errno, message, context=context, cause=exc if isinstance(exc, Exception) else None)


class MySQLConnection(AsyncComponent[ServerConfig]):
    """One aiomysql link implementing the ``Connection`` protocol.

    Every failure reported by the client library or the server is raised
    as ``DriverError`` with the numeric error code and the raw message.

    Example:
        >>> connection = MySQLConnection(server_config, server_config.credentials)
        >>> await connection.initialize()
        >>> result = await connection.execute("SELECT @@version")
    """

    component_name = "MySQLConnection"
    platform = "mysql"

    def __init__(self, config: ServerConfig, credentials: Optional[CredentialConfig] = None) -> None:
        super().__init__(config)
        self.credentials = credentials or config.credentials
        self.logger = get_logger(f"connector.mysql.{config.id}")
        self.perf_logger = get_performance_logger("connector.mysql")
        self._connection: Optional[aiomysql.Connection] = None

    @property
    def is_open(self) -> bool:
        return self._connection is not None and not self._connection.closed

    def _ssl_context(self) -> Optional[ssl.SSLContext]:
        ssl_config = self.config.ssl_config
        if not ssl_config.enabled:
            return None

        context = ssl.create_default_context(
            cafile=str(ssl_config.ca_file) if ssl_config.ca_file else None
        )
        if ssl_config.cert_file and ssl_config.key_file:
            context.load_cert_chain(str(ssl_config.cert_file), str(ssl_config.key_file))
        if not ssl_config.verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    async def _async_initialize(self) -> None:
        self.logger.info(
            "Opening MySQL connection",
            target=self.config.connection_string,
            user=self.credentials.username,
        )
        options = {
            "user": self.credentials.username,
            "password": self.credentials.password.get_secret_value(),
            "connect_timeout": self.config.connect_timeout,
            "charset": "utf8mb4",
            "autocommit": True,
        }
        if self.config.socket:
            options["unix_socket"] = self.config.socket
        else:
            options["host"] = self.config.host
            options["port"] = self.config.port

        ssl_context = self._ssl_context()
        if ssl_context is not None:
            options["ssl"] = ssl_context

        try:
            self._connection = await aiomysql.connect(**options)
        except aiomysql.Error as e:
            raise _driver_error(e, host=self.config.host, port=self.config.port) from e
        except OSError as e:
            # Socket failures before the handshake carry no server error code
            raise DriverError(
                2002 if self.config.socket else 2003,
                str(e),
                context={"host": self.config.host, "port": self.config.port},
                cause=e,
            ) from e

        self.logger.info("MySQL connection opened")

    async def _async_cleanup(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            self.logger.info("MySQL connection closed")

    def _require_connection(self) -> "aiomysql.Connection":
        if not self.is_open:
            raise DatabaseConnectionError(
                "MySQL connection is not open",
                code=ErrorCodes.NOT_CONNECTED,
                context={"server": self.config.id},
            )
        return self._connection

    @staticmethod
    def _fields(cursor: Any) -> List[FieldInfo]:
        # Relies on PyMySQL internals: the cursor's private ``_result`` holds
        # FieldDescriptorPacket objects, whose ``db`` is left as bytes.
        result = getattr(cursor, "_result", None)
        raw_fields = getattr(result, "fields", None) or []
        return [
            FieldInfo(
                name=field.name,
                table=field.table_name,
                org_name=field.org_name,
                org_table=field.org_table,
                database=field.db.decode() if isinstance(field.db, bytes) else field.db,
            )
            for field in raw_fields
        ]

    async def execute(self, sql: str) -> QueryResult:
        """Run one statement and buffer its result.

        Raises:
            DriverError: If the server or the client library reports an error
            DatabaseConnectionError: If the connection is not open
        """
        connection = self._require_connection()
        start_time = time.perf_counter()

        with self.perf_logger.measure("execute"):
            try:
                async with connection.cursor() as cursor:
                    await cursor.execute(sql)
                    if cursor.description:
                        columns = [description[0] for description in cursor.description]
                        tuples = await cursor.fetchall()
                        return QueryResult(
                            rows=[dict(zip(columns, values)) for values in tuples],
                            columns=columns,
                            fields=self._fields(cursor),
                            row_count=len(tuples),
                            execution_time=time.perf_counter() - start_time,
                        )
                    return QueryResult(
                        affected_rows=max(cursor.rowcount, 0),
                        execution_time=time.perf_counter() - start_time,
                    )
            except aiomysql.Error as e:
                self.logger.debug("Statement failed", error=str(e))
                raise _driver_error(e) from e

    async def select_db(self, database: str) -> None:
        connection = self._require_connection()
        try:
            await connection.select_db(database)
        except aiomysql.Error as e:
            raise _driver_error(e, database=database) from e

    async def close(self) -> None:
        await self.cleanup()


async def open_connection(config: ServerConfig, credentials: CredentialConfig) -> MySQLConnection:
    """Open a MySQL connection for ``credentials``."""
    connection = MySQLConnection(config, credentials)
    await connection.initialize()
    return connection
