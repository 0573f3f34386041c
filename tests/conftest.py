"""Pytest configuration and shared fixtures.

This module provides pytest configuration and shared fixtures for all tests
in the DBInterface test suite.
"""

import pytest
import tempfile
import structlog
from pathlib import Path
from typing import Any, Dict, Generator, Iterable, List, Optional, Union
from unittest.mock import MagicMock

from dbinterface.config.models import CredentialConfig, DebugConfig, ServerConfig, SystemConfig
from dbinterface.core.exceptions import DriverError
from dbinterface.database.interface import DatabaseInterface
from dbinterface.database.models import FieldInfo, QueryResult

# Configure test logging to suppress noise during tests
structlog.configure(
    processors=[structlog.testing.LogCapture()],
    wrapper_class=structlog.BoundLogger,
    logger_factory=structlog.testing.ReturnLoggerFactory(),
    cache_logger_on_first_use=False,
)


class FakeConnection:
    """Scripted implementation of the ``Connection`` protocol.

    Each expected statement is answered once, in the order scripted.
    Statements nobody scripted fail the test with AssertionError so that
    ``try_*`` methods cannot hide them.
    """

    def __init__(self) -> None:
        self._responses: Dict[str, List[Union[QueryResult, Exception]]] = {}
        self.executed: List[str] = []
        self.selected: List[str] = []
        self.select_db_errors: Dict[str, DriverError] = {}
        self.closed = False

    @property
    def is_open(self) -> bool:
        return not self.closed

    def expect(
        self,
        sql: str,
        rows: Optional[Iterable[Dict[str, Any]]] = None,
        *,
        fields: Optional[List[FieldInfo]] = None,
        affected_rows: int = 0,
    ) -> "FakeConnection":
        """Answer ``sql`` with ``rows``."""
        result = QueryResult(
            rows=[dict(row) for row in rows or []],
            fields=list(fields or []),
            affected_rows=affected_rows,
        )
        self._responses.setdefault(sql, []).append(result)
        return self

    def expect_error(self, sql: str, errno: int, message: str) -> "FakeConnection":
        """Fail ``sql`` with a driver error."""
        self._responses.setdefault(sql, []).append(DriverError(errno, message))
        return self

    async def execute(self, sql: str) -> QueryResult:
        self.executed.append(sql)
        queue = self._responses.get(sql)
        if not queue:
            raise AssertionError(f"Unexpected statement: {sql}")
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def select_db(self, database: str) -> None:
        if database in self.select_db_errors:
            raise self.select_db_errors[database]
        self.selected.append(database)

    async def close(self) -> None:
        self.closed = True

    def pending(self) -> List[str]:
        return [sql for sql, queue in self._responses.items() if queue]

    def assert_all_consumed(self) -> None:
        assert self.pending() == [], f"Statements never executed: {self.pending()}"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def mock_logger():
    """Mock structured logger for testing."""
    logger = MagicMock()
    logger.bind.return_value = logger
    logger.info = MagicMock()
    logger.error = MagicMock()
    logger.warning = MagicMock()
    logger.debug = MagicMock()
    return logger


@pytest.fixture
def sample_config_data() -> dict:
    """Sample configuration data for testing."""
    return {
        "app_name": "DBInterface",
        "version": "1.0.0",
        "environment": "development",
        "mysql_min_version": 50500,
        "logging": {
            "level": "DEBUG",
            "format": "json",
            "console_output": True,
        },
        "servers": {
            "local": {
                "host": "localhost",
                "port": 3306,
                "credentials": {
                    "username": "pma",
                    "password": "secret",
                },
                "DisableIS": True,
                "only_db": ["sakila", "world%"],
            },
        },
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config_data: dict) -> Path:
    """Create temporary configuration file."""
    import yaml

    config_path = temp_dir / "dbinterface.yaml"
    with open(config_path, 'w') as f:
        yaml.dump(sample_config_data, f)
    return config_path


@pytest.fixture
def credentials() -> CredentialConfig:
    return CredentialConfig(username="pma", password="secret")


@pytest.fixture
def server_config(credentials: CredentialConfig) -> ServerConfig:
    """Server configuration using information_schema."""
    return ServerConfig(id="test", credentials=credentials)


@pytest.fixture
def system_config() -> SystemConfig:
    return SystemConfig()


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def fake_control_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def make_dbi(credentials: CredentialConfig, fake_connection: FakeConnection):
    """Build a facade around ``fake_connection``.

    Keyword arguments go to ``ServerConfig``; ``debug_sql`` and
    ``natural_order`` configure ``SystemConfig``.
    """
    def _make(
        *,
        debug_sql: bool = False,
        natural_order: bool = True,
        control_connection: Optional[FakeConnection] = None,
        **server_options: Any,
    ) -> DatabaseInterface:
        server_options.setdefault("id", "test")
        server_options.setdefault("credentials", credentials)
        config = ServerConfig(**server_options)
        system = SystemConfig(debug=DebugConfig(sql=debug_sql), natural_order=natural_order)
        return DatabaseInterface(
            config,
            system,
            connection=fake_connection,
            control_connection=control_connection,
        )

    return _make


@pytest.fixture
def dbi(make_dbi) -> DatabaseInterface:
    """Facade on the information_schema strategy."""
    return make_dbi()


# Pytest markers for different test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (slower, real dependencies)"
    )
    config.addinivalue_line(
        "markers", "database: marks tests exercising the database layer"
    )


# Auto-mark tests based on their location
def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Get test file path relative to tests directory
        test_path = Path(item.fspath).relative_to(Path(config.rootdir) / "tests")

        # Auto-mark based on directory structure
        if test_path.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)
        elif test_path.parts[0] == "integration":
            item.add_marker(pytest.mark.integration)

        # Mark database tests
        if "database" in str(test_path) or "connectors" in str(test_path):
            item.add_marker(pytest.mark.database)
