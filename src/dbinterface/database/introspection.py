"""Schema introspection through ``SHOW`` commands or information_schema.

Two interchangeable strategies read table metadata:

* ``SHOW TABLE STATUS`` (used when information_schema is disabled), whose
  rows carry legacy mixed-case keys such as ``Name`` and ``Rows``;
* one query on ``information_schema.TABLES``, whose rows carry catalog
  keys such as ``TABLE_NAME`` and ``TABLE_ROWS``.

Both build ``TableStatus`` objects and serialize them with both key sets,
so callers never need to know which strategy ran.

Example:
    >>> introspector = SchemaIntrospector()
    >>> tables = await introspector.list_tables(dbi, "sakila", disable_is=True)
    >>> tables["actor"]["Rows"] == tables["actor"]["TABLE_ROWS"]
    True
"""

from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from ..core.exceptions import ErrorCodes, ValidationError
from ..core.protocols import QueryRunner
from ..core.utils import SqlUtils, natural_sort_key, safe_cast
from ..logging import get_logger, get_performance_logger
from .models import SCHEMA_SUM_COLUMNS, DatabaseSummary, QueryResult, TableStatus

CollationLookup = Callable[[str], Awaitable[str]]

VIEW_TYPES = ("VIEW", "SYSTEM VIEW")

SORTABLE_COLUMNS = ("SCHEMA_NAME", "DEFAULT_COLLATION_NAME", "SCHEMA_TABLES") + SCHEMA_SUM_COLUMNS
NUMERIC_COLUMNS = frozenset(("SCHEMA_TABLES",) + SCHEMA_SUM_COLUMNS)


def _to_int(value: Any) -> int:
    return safe_cast(value, int, default=0) or 0


def status_table_type(row: Dict[str, Any], schema: str) -> str:
    """Derive TABLE_TYPE for a ``SHOW TABLE STATUS`` row.

    The statement has no type column: a view has no engine and the
    comment ``VIEW``.
    """
    if SqlUtils.is_system_schema(schema):
        return "SYSTEM VIEW"
    comment = str(row.get("Comment") or "").upper()
    if comment == "VIEW" and not row.get("Engine"):
        return "VIEW"
    return "BASE TABLE"


class SchemaIntrospector:
    """Reads table and database metadata through a query runner.

    The introspector holds no session state; the runner is borrowed for
    the duration of each call.
    """

    def __init__(self) -> None:
        self.logger = get_logger(__name__)
        self.perf_logger = get_performance_logger("introspection")

    @staticmethod
    def tables_sql(
        database: str,
        *,
        disable_is: bool,
        table: Optional[str] = None,
        table_type: Optional[str] = None,
    ) -> str:
        """Statement used to list tables of ``database``."""
        if disable_is:
            sql = f"SHOW TABLE STATUS FROM {SqlUtils.backquote(database)}"
            if table:
                sql += f" LIKE {SqlUtils.quote_string(table)}"
            return sql + ";"

        sql = (
            "SELECT * FROM `information_schema`.`TABLES`"
            f" WHERE `TABLE_SCHEMA` = {SqlUtils.quote_string(database)}"
        )
        if table:
            sql += f" AND `TABLE_NAME` = {SqlUtils.quote_string(table)}"
        if table_type == "view":
            sql += " AND `TABLE_TYPE` IN ('VIEW', 'SYSTEM VIEW')"
        elif table_type == "table":
            sql += " AND `TABLE_TYPE` NOT IN ('VIEW', 'SYSTEM VIEW')"
        return sql + " ORDER BY `TABLE_NAME` ASC"

    async def list_tables(
        self,
        runner: QueryRunner,
        database: str,
        *,
        disable_is: bool,
        table: Optional[str] = None,
        table_type: Optional[str] = None,
    ) -> Dict[str, Dict[str, Any]]:
        """List tables of ``database`` keyed by table name.

        Args:
            runner: Object running statements on the user link
            database: Database to inspect
            disable_is: Use ``SHOW TABLE STATUS`` instead of information_schema
            table: Restrict to one table
            table_type: ``"table"`` or ``"view"`` to restrict by kind

        Returns:
            Mapping of table name to metadata carrying both key sets
        """
        if table_type not in (None, "table", "view"):
            raise ValidationError(
                f"Unknown table type filter: {table_type}",
                context={"table_type": table_type},
            )

        sql = self.tables_sql(database, disable_is=disable_is, table=table, table_type=table_type)
        with self.perf_logger.measure("list_tables", database=database, disable_is=disable_is):
            result = await runner.query(sql)

        tables: Dict[str, Dict[str, Any]] = {}
        for status in self._statuses(result, database, disable_is=disable_is):
            if disable_is and table_type is not None:
                is_view = status.table_type in VIEW_TYPES
                if is_view != (table_type == "view"):
                    continue
            tables[status.name] = status.to_dict()

        self.logger.debug(
            "Listed tables",
            database=database,
            tables=len(tables),
            strategy="show" if disable_is else "information_schema",
        )
        return tables

    @staticmethod
    def _statuses(result: QueryResult, database: str, *, disable_is: bool) -> Iterable[TableStatus]:
        for row in result:
            if disable_is:
                yield TableStatus.from_status_row(row, database, status_table_type(row, database))
            else:
                status = TableStatus.from_catalog_row(row)
                if not status.table_type:
                    status.table_type = "BASE TABLE"
                yield status

    async def summarize_database(
        self,
        runner: QueryRunner,
        database: str,
        *,
        disable_is: bool,
        collation_lookup: CollationLookup,
        force_stats: bool = True,
    ) -> Dict[str, Any]:
        """Roll one database's tables up into a summary row."""
        collation = await collation_lookup(database)
        if not force_stats:
            return {"SCHEMA_NAME": database, "DEFAULT_COLLATION_NAME": collation}

        summary = DatabaseSummary(schema_name=database, default_collation_name=collation)
        tables = await self.list_tables(runner, database, disable_is=disable_is)
        for status in tables.values():
            summary.tables += 1
            summary.table_rows += _to_int(status.get("Rows"))
            summary.data_length += _to_int(status.get("Data_length"))
            summary.max_data_length += _to_int(status.get("Max_data_length"))
            summary.index_length += _to_int(status.get("Index_length"))
            summary.data_free += _to_int(status.get("Data_free"))
        return summary.to_dict()

    async def list_databases(
        self,
        runner: QueryRunner,
        database_names: Iterable[str],
        *,
        disable_is: bool,
        collation_lookup: CollationLookup,
        like: Optional[str] = None,
        force_stats: bool = True,
        sort_by: str = "SCHEMA_NAME",
        sort_order: str = "ASC",
        offset: int = 0,
        limit: Optional[int] = None,
        natural_order: bool = True,
    ) -> List[Dict[str, Any]]:
        """Summarize databases, then sort and slice the summaries.

        Databases are inspected one after another. Ties in the sort column
        keep the order of ``database_names``.

        Args:
            runner: Object running statements on the user link
            database_names: Universe of database names
            disable_is: Use ``SHOW TABLE STATUS`` instead of information_schema
            collation_lookup: Coroutine returning a database's default collation
            like: MySQL ``LIKE`` pattern restricting the names
            force_stats: Collect table statistics, not only name and collation
            sort_by: Summary column to sort by
            sort_order: ``ASC`` or ``DESC``
            offset: Rows to skip after sorting
            limit: Maximum rows to return, None for all
            natural_order: Compare names naturally (db2 before db10)
        """
        names: Sequence[str] = list(database_names)
        if like:
            pattern = SqlUtils.like_to_regex(like)
            names = [name for name in names if pattern.match(name)]

        with self.perf_logger.measure("list_databases", databases=len(names), disable_is=disable_is):
            summaries = [
                await self.summarize_database(
                    runner,
                    name,
                    disable_is=disable_is,
                    collation_lookup=collation_lookup,
                    force_stats=force_stats,
                )
                for name in names
            ]

        summaries = self.sort_summaries(
            summaries, sort_by=sort_by, sort_order=sort_order, natural_order=natural_order
        )
        offset = max(int(offset or 0), 0)
        if limit is None:
            return summaries[offset:]
        return summaries[offset:offset + max(int(limit), 0)]

    def sort_summaries(
        self,
        summaries: List[Dict[str, Any]],
        *,
        sort_by: str = "SCHEMA_NAME",
        sort_order: str = "ASC",
        natural_order: bool = True,
    ) -> List[Dict[str, Any]]:
        """Stable sort of summary rows by one column."""
        if sort_by not in SORTABLE_COLUMNS:
            self.logger.warning("Unknown database sort column", sort_by=sort_by)
            sort_by = "SCHEMA_NAME"

        if sort_by in NUMERIC_COLUMNS:
            def key(row: Dict[str, Any]) -> Any:
                return _to_int(row.get(sort_by))
        elif natural_order:
            def key(row: Dict[str, Any]) -> Any:
                return natural_sort_key(row.get(sort_by))
        else:
            def key(row: Dict[str, Any]) -> Any:
                return str(row.get(sort_by) or "")

        descending = str(sort_order).upper() == "DESC"
        return sorted(summaries, key=key, reverse=descending)

    @staticmethod
    def get_column_map(result: QueryResult, view_columns: Sequence[str]) -> List[Dict[str, str]]:
        """Pair each result column's source with a view column name.

        Raises:
            ValidationError: If the result has a different number of
                columns than ``view_columns``
        """
        fields = result.fields
        if len(fields) != len(view_columns):
            raise ValidationError(
                "Column count of the result does not match the view column list",
                code=ErrorCodes.COLUMN_MAP_MISMATCH,
                context={"fields": len(fields), "view_columns": len(view_columns)},
            )

        return [
            {
                "table_name": field.table,
                "refering_column": field.name,
                "real_column": view_column,
            }
            for field, view_column in zip(fields, view_columns)
        ]
