"""Tests for database result and metadata models."""

from dbinterface.database.models import (
    CurrentUser,
    DatabaseSummary,
    FieldInfo,
    QueryResult,
    TableStatus,
)

LEGACY_KEYS = [
    "Db", "Name", "Engine", "Version", "Row_format", "Rows", "Avg_row_length",
    "Data_length", "Max_data_length", "Index_length", "Data_free", "Auto_increment",
    "Create_time", "Update_time", "Check_time", "Collation", "Checksum",
    "Create_options", "Comment", "Type",
]
CATALOG_KEYS = [
    "TABLE_SCHEMA", "TABLE_NAME", "TABLE_TYPE", "ENGINE", "VERSION", "ROW_FORMAT",
    "TABLE_ROWS", "AVG_ROW_LENGTH", "DATA_LENGTH", "MAX_DATA_LENGTH", "INDEX_LENGTH",
    "DATA_FREE", "AUTO_INCREMENT", "CREATE_TIME", "UPDATE_TIME", "CHECK_TIME",
    "TABLE_COLLATION", "CHECKSUM", "CREATE_OPTIONS", "TABLE_COMMENT",
]


class TestQueryResult:
    """Test cases for QueryResult."""

    def test_columns_and_row_count_from_rows(self):
        result = QueryResult(rows=[{"SCHEMA_NAME": "sakila", "DEFAULT_COLLATION_NAME": "utf8mb4_general_ci"}])

        assert result.columns == ["SCHEMA_NAME", "DEFAULT_COLLATION_NAME"]
        assert result.row_count == 1

    def test_empty_result(self):
        result = QueryResult()

        assert result.first() is None
        assert result.scalar() is None
        assert result.column_values(0) == []
        assert list(result) == []

    def test_scalar_by_position_and_name(self):
        result = QueryResult(rows=[{"@@version": "8.0.36", "@@version_comment": "MySQL"}])

        assert result.scalar() == "8.0.36"
        assert result.scalar(1) == "MySQL"
        assert result.scalar(5) is None
        assert result.scalar("@@version_comment") == "MySQL"

    def test_column_values(self):
        result = QueryResult.from_tuples(["Tables_in_sakila"], [("actor",), ("film",)])

        assert result.column_values(0) == ["actor", "film"]
        assert result.column_values("Tables_in_sakila") == ["actor", "film"]
        assert result.row_count == 2

    def test_from_tuples_keeps_extra_attributes(self):
        fields = [FieldInfo(name="id", table="t")]
        result = QueryResult.from_tuples(["id"], [(1,)], fields=fields)

        assert result.rows == [{"id": 1}]
        assert result.fields == fields


class TestCurrentUser:
    """Test cases for CurrentUser."""

    def test_str_and_tuple(self):
        user = CurrentUser("pma", "localhost")

        assert str(user) == "pma@localhost"
        assert user.as_tuple() == ("pma", "localhost")

    def test_unknown_user(self):
        assert str(CurrentUser()) == "@"


class TestTableStatus:
    """Test cases for TableStatus."""

    def test_from_status_row_emits_both_key_sets(self):
        """Test SHOW rows serialize like the statement, plus catalog keys."""
        row = {
            "Name": "actor",
            "Engine": "InnoDB",
            "Rows": 200,
            "Data_length": 16384,
            "Index_length": 16384,
            "Comment": "",
            "Max_index_length": 0,
            "Temporary": "N",
        }

        status = TableStatus.from_status_row(row, "sakila", "BASE TABLE")
        data = status.to_dict()

        assert status.extras == {"Max_index_length": 0, "Temporary": "N"}
        assert list(data) == LEGACY_KEYS[1:] + ["Max_index_length", "Temporary"] + CATALOG_KEYS
        assert "Db" not in data
        assert data["TABLE_SCHEMA"] == "sakila"
        assert data["Name"] == data["TABLE_NAME"] == "actor"
        assert data["Type"] == data["Engine"] == data["ENGINE"] == "InnoDB"
        assert data["Rows"] == data["TABLE_ROWS"] == 200
        assert data["TABLE_TYPE"] == "BASE TABLE"
        assert data["Auto_increment"] is None

    def test_from_catalog_row(self):
        row = {
            "TABLE_CATALOG": "def",
            "TABLE_SCHEMA": "sakila",
            "TABLE_NAME": "actor_info",
            "TABLE_TYPE": "VIEW",
            "ENGINE": None,
            "TABLE_COMMENT": "VIEW",
            "TEMPORARY": "N",
        }

        data = TableStatus.from_catalog_row(row).to_dict()

        assert data["Name"] == "actor_info"
        assert data["Db"] == "sakila"
        assert data["Comment"] == "VIEW"
        assert data["TABLE_TYPE"] == "VIEW"
        assert data["TABLE_CATALOG"] == "def"
        assert data["TEMPORARY"] == "N"
        assert data["Type"] is None

    def test_catalog_key_wins_over_same_named_extra(self):
        data = TableStatus(name="t", engine="MyISAM", extras={"ENGINE": "stale"}).to_dict()

        assert data["ENGINE"] == "MyISAM"


class TestDatabaseSummary:
    """Test cases for DatabaseSummary."""

    def test_length_and_key_order(self):
        summary = DatabaseSummary(
            schema_name="db1",
            default_collation_name="utf8_general_ci",
            tables=2,
            data_length=32768,
            index_length=100,
        )

        data = summary.to_dict()

        assert summary.length == 32868
        assert data["SCHEMA_LENGTH"] == 32868
        assert list(data) == [
            "SCHEMA_NAME",
            "DEFAULT_COLLATION_NAME",
            "SCHEMA_TABLES",
            "SCHEMA_TABLE_ROWS",
            "SCHEMA_DATA_LENGTH",
            "SCHEMA_MAX_DATA_LENGTH",
            "SCHEMA_INDEX_LENGTH",
            "SCHEMA_LENGTH",
            "SCHEMA_DATA_FREE",
        ]
