"""Tests for the visible database list and the configuration storage view."""

from unittest.mock import AsyncMock

import pytest

from dbinterface.config.models import ServerConfig
from dbinterface.database.dblist import DatabaseList
from dbinterface.database.models import QueryResult
from dbinterface.database.system import DEFAULT_STORAGE_DB, SystemDatabase


def make_runner(responses):
    runner = AsyncMock()
    runner.query.side_effect = lambda sql: QueryResult.from_tuples(
        ["Database"], [(name,) for name in responses[sql]]
    )
    return runner


class TestDatabaseList:
    """Test cases for DatabaseList."""

    def test_not_loaded_until_refreshed(self, server_config):
        dblist = DatabaseList(server_config)

        assert not dblist.loaded
        assert dblist.databases == []

    def test_given_names_count_as_loaded(self, server_config):
        dblist = DatabaseList(server_config, ["sakila"])

        assert dblist.loaded
        assert "sakila" in dblist
        assert dblist.exists("sakila")
        assert not dblist.exists("sakila", "world")

    def test_statements_without_restriction(self, server_config):
        assert DatabaseList(server_config).statements() == ["SHOW DATABASES"]

    def test_statements_for_only_db(self, credentials):
        config = ServerConfig(credentials=credentials, only_db=["sakila", "world%"])

        assert DatabaseList(config).statements() == [
            "SHOW DATABASES LIKE 'sakila'",
            "SHOW DATABASES LIKE 'world%'",
        ]

    def test_wildcard_only_db_lists_everything(self, credentials):
        config = ServerConfig(credentials=credentials, only_db=["sakila", "*"])

        assert DatabaseList(config).statements() == ["SHOW DATABASES"]

    @pytest.mark.asyncio
    async def test_refresh(self, server_config):
        dblist = DatabaseList(server_config)
        runner = make_runner({"SHOW DATABASES": ["information_schema", "sakila", "world"]})

        names = await dblist.refresh(runner)

        assert names == ["information_schema", "sakila", "world"]
        assert dblist.loaded
        assert len(dblist) == 3
        assert list(dblist) == names

    @pytest.mark.asyncio
    async def test_refresh_merges_patterns_and_hides(self, credentials):
        config = ServerConfig(credentials=credentials, only_db=["sakila", "s%"], hide_db="^sys$")
        dblist = DatabaseList(config)
        runner = make_runner({
            "SHOW DATABASES LIKE 'sakila'": ["sakila"],
            "SHOW DATABASES LIKE 's%'": ["sakila", "sys", "shop"],
        })

        assert await dblist.refresh(runner) == ["sakila", "shop"]

    def test_repr(self, server_config):
        assert repr(DatabaseList(server_config, ["a"])) == "DatabaseList(server='test', databases=1)"


class TestSystemDatabase:
    """Test cases for SystemDatabase."""

    def test_default_storage_db(self):
        assert SystemDatabase(AsyncMock(), "").storage_db == DEFAULT_STORAGE_DB

    @pytest.mark.asyncio
    async def test_existing_tables_are_cached(self):
        runner = make_runner({"SHOW TABLES FROM `phpmyadmin`;": ["pma__bookmark", "pma__history"]})
        system = SystemDatabase(runner)

        assert await system.get_existing_tables() == ["pma__bookmark", "pma__history"]
        assert await system.has_table("pma__history")
        assert not await system.has_table("pma__users")
        assert runner.query.await_count == 1

        await system.get_existing_tables(refresh=True)
        assert runner.query.await_count == 2
