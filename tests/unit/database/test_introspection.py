"""Tests for schema introspection strategies."""

from unittest.mock import AsyncMock

import pytest

from dbinterface.core.exceptions import ErrorCodes, ValidationError
from dbinterface.database.introspection import SchemaIntrospector, status_table_type
from dbinterface.database.models import FieldInfo, QueryResult


def make_runner(responses):
    """Runner answering each statement from ``responses``."""
    runner = AsyncMock()
    runner.query.side_effect = lambda sql: QueryResult(rows=[dict(row) for row in responses[sql]])
    return runner


async def collation_lookup(database):
    return "utf8_general_ci"


def status_row(name, data_length=0, index_length=0, rows=0, engine="InnoDB", comment=""):
    return {
        "Name": name,
        "Engine": engine,
        "Rows": rows,
        "Data_length": data_length,
        "Max_data_length": 0,
        "Index_length": index_length,
        "Data_free": 0,
        "Comment": comment,
    }


@pytest.fixture
def introspector():
    return SchemaIntrospector()


class TestStatusTableType:
    """Test TABLE_TYPE derivation for SHOW TABLE STATUS rows."""

    def test_base_table(self):
        assert status_table_type({"Engine": "InnoDB", "Comment": ""}, "sakila") == "BASE TABLE"

    def test_view(self):
        assert status_table_type({"Engine": None, "Comment": "VIEW"}, "sakila") == "VIEW"

    def test_table_commented_view_is_still_table(self):
        assert status_table_type({"Engine": "InnoDB", "Comment": "VIEW"}, "sakila") == "BASE TABLE"

    def test_system_schema(self):
        assert status_table_type({"Engine": "MEMORY"}, "information_schema") == "SYSTEM VIEW"


class TestTablesSql:
    """Test statements of both strategies."""

    def test_show_table_status(self):
        assert SchemaIntrospector.tables_sql("sakila", disable_is=True) == "SHOW TABLE STATUS FROM `sakila`;"
        assert (
            SchemaIntrospector.tables_sql("sakila", disable_is=True, table="actor")
            == "SHOW TABLE STATUS FROM `sakila` LIKE 'actor';"
        )

    def test_information_schema(self):
        assert SchemaIntrospector.tables_sql("sakila", disable_is=False) == (
            "SELECT * FROM `information_schema`.`TABLES` WHERE `TABLE_SCHEMA` = 'sakila'"
            " ORDER BY `TABLE_NAME` ASC"
        )

    def test_information_schema_filters(self):
        sql = SchemaIntrospector.tables_sql("sakila", disable_is=False, table="actor", table_type="view")

        assert "AND `TABLE_NAME` = 'actor'" in sql
        assert "AND `TABLE_TYPE` IN ('VIEW', 'SYSTEM VIEW')" in sql

        sql = SchemaIntrospector.tables_sql("sakila", disable_is=False, table_type="table")
        assert "AND `TABLE_TYPE` NOT IN ('VIEW', 'SYSTEM VIEW')" in sql

    def test_names_are_quoted(self):
        sql = SchemaIntrospector.tables_sql("it's", disable_is=False)

        assert "`TABLE_SCHEMA` = 'it\\'s'" in sql
        assert SchemaIntrospector.tables_sql("a`b", disable_is=True) == "SHOW TABLE STATUS FROM `a``b`;"


class TestListTables:
    """Test list_tables with both strategies."""

    @pytest.mark.asyncio
    async def test_show_strategy(self, introspector):
        runner = make_runner({
            "SHOW TABLE STATUS FROM `sakila`;": [
                status_row("actor", 16384, 16384, rows=200),
                status_row("actor_info", engine=None, comment="VIEW"),
            ],
        })

        tables = await introspector.list_tables(runner, "sakila", disable_is=True)

        assert list(tables) == ["actor", "actor_info"]
        assert tables["actor"]["TABLE_TYPE"] == "BASE TABLE"
        assert tables["actor"]["TABLE_ROWS"] == 200
        assert "Db" not in tables["actor"]
        assert tables["actor"]["TABLE_SCHEMA"] == "sakila"
        assert tables["actor_info"]["TABLE_TYPE"] == "VIEW"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("table_type, expected", [
        ("view", ["actor_info"]),
        ("table", ["actor"]),
    ])
    async def test_show_strategy_type_filter(self, introspector, table_type, expected):
        runner = make_runner({
            "SHOW TABLE STATUS FROM `sakila`;": [
                status_row("actor"),
                status_row("actor_info", engine=None, comment="VIEW"),
            ],
        })

        tables = await introspector.list_tables(runner, "sakila", disable_is=True, table_type=table_type)

        assert list(tables) == expected

    @pytest.mark.asyncio
    async def test_information_schema_strategy(self, introspector):
        sql = SchemaIntrospector.tables_sql("sakila", disable_is=False)
        runner = make_runner({
            sql: [
                {"TABLE_SCHEMA": "sakila", "TABLE_NAME": "actor", "TABLE_TYPE": "BASE TABLE", "ENGINE": "InnoDB"},
                {"TABLE_SCHEMA": "sakila", "TABLE_NAME": "legacy", "ENGINE": "MyISAM"},
            ],
        })

        tables = await introspector.list_tables(runner, "sakila", disable_is=False)

        runner.query.assert_awaited_once_with(sql)
        assert tables["actor"]["Name"] == "actor"
        assert tables["actor"]["Type"] == "InnoDB"
        assert tables["legacy"]["TABLE_TYPE"] == "BASE TABLE"

    @pytest.mark.asyncio
    async def test_strategies_agree(self, introspector):
        """Test both strategies describe the same table identically."""
        runner = make_runner({
            "SHOW TABLE STATUS FROM `sakila`;": [status_row("actor", 16384, 16384, rows=200)],
            SchemaIntrospector.tables_sql("sakila", disable_is=False): [{
                "TABLE_SCHEMA": "sakila",
                "TABLE_NAME": "actor",
                "TABLE_TYPE": "BASE TABLE",
                "ENGINE": "InnoDB",
                "TABLE_ROWS": 200,
                "DATA_LENGTH": 16384,
                "INDEX_LENGTH": 16384,
            }],
        })

        show = await introspector.list_tables(runner, "sakila", disable_is=True)
        catalog = await introspector.list_tables(runner, "sakila", disable_is=False)

        assert list(show) == list(catalog) == ["actor"]
        for key in ("Name", "Engine", "Rows", "TABLE_NAME", "ENGINE", "TABLE_ROWS", "TABLE_TYPE", "TABLE_SCHEMA"):
            assert show["actor"][key] == catalog["actor"][key], key

    @pytest.mark.asyncio
    async def test_empty_database(self, introspector):
        runner = make_runner({"SHOW TABLE STATUS FROM `empty`;": []})

        assert await introspector.list_tables(runner, "empty", disable_is=True) == {}

    @pytest.mark.asyncio
    async def test_invalid_table_type(self, introspector):
        with pytest.raises(ValidationError):
            await introspector.list_tables(AsyncMock(), "sakila", disable_is=True, table_type="index")


class TestListDatabases:
    """Test database summaries, sorting and slicing."""

    RESPONSES = {
        "SHOW TABLE STATUS FROM `db1`;": [status_row("t1", 16384, 100, rows=5), status_row("t2", 16384, 0)],
        "SHOW TABLE STATUS FROM `db2`;": [status_row("t1", 16324, 0), status_row("t2", 14384, 0, rows=1)],
        "SHOW TABLE STATUS FROM `db10`;": [],
    }

    @pytest.mark.asyncio
    async def test_summaries(self, introspector):
        rows = await introspector.list_databases(
            make_runner(self.RESPONSES),
            ["db1", "db2"],
            disable_is=True,
            collation_lookup=collation_lookup,
        )

        assert [row["SCHEMA_NAME"] for row in rows] == ["db1", "db2"]
        assert rows[0] == {
            "SCHEMA_NAME": "db1",
            "DEFAULT_COLLATION_NAME": "utf8_general_ci",
            "SCHEMA_TABLES": 2,
            "SCHEMA_TABLE_ROWS": 5,
            "SCHEMA_DATA_LENGTH": 32768,
            "SCHEMA_MAX_DATA_LENGTH": 0,
            "SCHEMA_INDEX_LENGTH": 100,
            "SCHEMA_LENGTH": 32868,
            "SCHEMA_DATA_FREE": 0,
        }

    @pytest.mark.asyncio
    async def test_sort_numeric_column(self, introspector):
        rows = await introspector.list_databases(
            make_runner(self.RESPONSES),
            ["db1", "db2", "db10"],
            disable_is=True,
            collation_lookup=collation_lookup,
            sort_by="SCHEMA_DATA_LENGTH",
            sort_order="DESC",
        )

        assert [row["SCHEMA_NAME"] for row in rows] == ["db1", "db2", "db10"]

    @pytest.mark.asyncio
    async def test_natural_name_order(self, introspector):
        rows = await introspector.list_databases(
            make_runner(self.RESPONSES),
            ["db10", "db2", "db1"],
            disable_is=True,
            collation_lookup=collation_lookup,
        )

        assert [row["SCHEMA_NAME"] for row in rows] == ["db1", "db2", "db10"]

    @pytest.mark.asyncio
    async def test_plain_name_order(self, introspector):
        rows = await introspector.list_databases(
            make_runner(self.RESPONSES),
            ["db10", "db2", "db1"],
            disable_is=True,
            collation_lookup=collation_lookup,
            natural_order=False,
        )

        assert [row["SCHEMA_NAME"] for row in rows] == ["db1", "db10", "db2"]

    @pytest.mark.asyncio
    async def test_like_filter_offset_and_limit(self, introspector):
        runner = make_runner(self.RESPONSES)

        rows = await introspector.list_databases(
            runner,
            ["db1", "db2", "db10", "sakila"],
            disable_is=True,
            collation_lookup=collation_lookup,
            like="db%",
            offset=1,
            limit=1,
        )

        assert [row["SCHEMA_NAME"] for row in rows] == ["db2"]
        assert runner.query.await_count == 3

    @pytest.mark.asyncio
    async def test_without_stats(self, introspector):
        runner = make_runner({})

        rows = await introspector.list_databases(
            runner, ["db1"], disable_is=True, collation_lookup=collation_lookup, force_stats=False
        )

        assert rows == [{"SCHEMA_NAME": "db1", "DEFAULT_COLLATION_NAME": "utf8_general_ci"}]
        runner.query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_collation_looked_up_before_tables(self, introspector):
        calls = []
        runner = AsyncMock()

        async def lookup(database):
            calls.append(("collation", database))
            return "utf8mb4_general_ci"

        def query(sql):
            calls.append(("query", sql))
            return QueryResult()

        runner.query.side_effect = query

        await introspector.list_databases(runner, ["a", "b"], disable_is=True, collation_lookup=lookup)

        assert calls == [
            ("collation", "a"),
            ("query", "SHOW TABLE STATUS FROM `a`;"),
            ("collation", "b"),
            ("query", "SHOW TABLE STATUS FROM `b`;"),
        ]


class TestSortSummaries:
    """Test summary ordering."""

    def test_stable_for_ties(self, introspector):
        rows = [
            {"SCHEMA_NAME": "b", "SCHEMA_TABLES": 1},
            {"SCHEMA_NAME": "a", "SCHEMA_TABLES": 1},
            {"SCHEMA_NAME": "c", "SCHEMA_TABLES": 0},
        ]

        ascending = introspector.sort_summaries(rows, sort_by="SCHEMA_TABLES")
        descending = introspector.sort_summaries(rows, sort_by="SCHEMA_TABLES", sort_order="desc")

        assert [row["SCHEMA_NAME"] for row in ascending] == ["c", "b", "a"]
        assert [row["SCHEMA_NAME"] for row in descending] == ["b", "a", "c"]

    def test_unknown_column_falls_back_to_name(self, introspector):
        rows = [{"SCHEMA_NAME": "b"}, {"SCHEMA_NAME": "a"}]

        result = introspector.sort_summaries(rows, sort_by="DROP TABLE")

        assert [row["SCHEMA_NAME"] for row in result] == ["a", "b"]


class TestColumnMap:
    """Test mapping result columns to view columns."""

    def test_column_map(self):
        result = QueryResult(fields=[FieldInfo(name="id", table="meta"), FieldInfo(name="label", table="meta")])

        assert SchemaIntrospector.get_column_map(result, ["view_id", "view_label"]) == [
            {"table_name": "meta", "refering_column": "id", "real_column": "view_id"},
            {"table_name": "meta", "refering_column": "label", "real_column": "view_label"},
        ]

    def test_column_count_mismatch(self):
        result = QueryResult(fields=[FieldInfo(name="id", table="meta")])

        with pytest.raises(ValidationError) as exc_info:
            SchemaIntrospector.get_column_map(result, ["a", "b"])

        assert exc_info.value.code == ErrorCodes.COLUMN_MAP_MISMATCH
