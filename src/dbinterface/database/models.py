"""Database models for DBInterface."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class FieldInfo:
    """Result-set column metadata as reported by the driver.

    ``table`` and ``name`` are the aliases used in the statement;
    ``org_table`` and ``org_name`` are the underlying table and column.
    """
    name: str
    table: str = ""
    org_name: str = ""
    org_table: str = ""
    database: str = ""


@dataclass
class QueryResult:
    """Buffered result of one statement.

    Rows are dictionaries keyed by column name in select order. A result
    with no rows is still a successful result; failures surface as
    exceptions or, from ``try_*`` methods, as ``None``.
    """
    rows: List[Dict[str, Any]] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)
    fields: List[FieldInfo] = field(default_factory=list)
    row_count: int = 0
    affected_rows: int = 0
    execution_time: float = 0.0
    warnings: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.row_count and self.rows:
            self.row_count = len(self.rows)
        if not self.columns and self.rows:
            self.columns = list(self.rows[0].keys())

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)

    def first(self) -> Optional[Dict[str, Any]]:
        """First row, or None when the result is empty."""
        return self.rows[0] if self.rows else None

    def scalar(self, column: Any = 0) -> Any:
        """Value of one column of the first row.

        Args:
            column: Column name or zero-based position
        """
        row = self.first()
        if row is None:
            return None
        if isinstance(column, int):
            values = list(row.values())
            return values[column] if column < len(values) else None
        return row.get(column)

    def column_values(self, column: Any = 0) -> List[Any]:
        """Values of one column across all rows."""
        if isinstance(column, int):
            if column >= len(self.columns):
                return []
            column = self.columns[column]
        return [row.get(column) for row in self.rows]

    @classmethod
    def from_tuples(
        cls,
        columns: List[str],
        tuples: List[Tuple[Any, ...]],
        **kwargs: Any,
    ) -> "QueryResult":
        """Build a result from positional rows."""
        return cls(
            rows=[dict(zip(columns, values)) for values in tuples],
            columns=list(columns),
            row_count=len(tuples),
            **kwargs,
        )


@dataclass(frozen=True)
class ServerVersion:
    """Parsed server version.

    Attributes:
        raw: Version string as reported by ``@@version``
        integer: major*10000 + minor*100 + patch
        comment: ``@@version_comment``
        is_mariadb: Server is MariaDB
        is_percona: Server is Percona Server
    """
    raw: str = ""
    integer: int = 0
    comment: str = ""
    is_mariadb: bool = False
    is_percona: bool = False

    @property
    def major(self) -> int:
        return self.integer // 10000


@dataclass(frozen=True)
class CurrentUser:
    """Account the server authenticated the session as."""
    name: str = ""
    host: str = ""

    def __str__(self) -> str:
        return f"{self.name}@{self.host}"

    def as_tuple(self) -> Tuple[str, str]:
        return (self.name, self.host)


# canonical field -> (legacy SHOW TABLE STATUS key, information_schema.TABLES key)
TABLE_STATUS_KEYS: Dict[str, Tuple[Optional[str], str]] = {
    "schema": ("Db", "TABLE_SCHEMA"),
    "name": ("Name", "TABLE_NAME"),
    "table_type": (None, "TABLE_TYPE"),
    "engine": ("Engine", "ENGINE"),
    "version": ("Version", "VERSION"),
    "row_format": ("Row_format", "ROW_FORMAT"),
    "rows": ("Rows", "TABLE_ROWS"),
    "avg_row_length": ("Avg_row_length", "AVG_ROW_LENGTH"),
    "data_length": ("Data_length", "DATA_LENGTH"),
    "max_data_length": ("Max_data_length", "MAX_DATA_LENGTH"),
    "index_length": ("Index_length", "INDEX_LENGTH"),
    "data_free": ("Data_free", "DATA_FREE"),
    "auto_increment": ("Auto_increment", "AUTO_INCREMENT"),
    "create_time": ("Create_time", "CREATE_TIME"),
    "update_time": ("Update_time", "UPDATE_TIME"),
    "check_time": ("Check_time", "CHECK_TIME"),
    "collation": ("Collation", "TABLE_COLLATION"),
    "checksum": ("Checksum", "CHECKSUM"),
    "create_options": ("Create_options", "CREATE_OPTIONS"),
    "comment": ("Comment", "TABLE_COMMENT"),
}

_LEGACY_KEYS = {legacy: name for name, (legacy, _) in TABLE_STATUS_KEYS.items() if legacy}
_CATALOG_KEYS = {catalog: name for name, (_, catalog) in TABLE_STATUS_KEYS.items()}


@dataclass
class TableStatus:
    """One table's metadata, independent of how it was read.

    Values are kept as the driver returned them. ``extras`` holds columns
    neither key set knows about (``Max_index_length``, ``TEMPORARY``, ...)
    under their raw key. Statuses read with ``SHOW TABLE STATUS``
    (``from_status``) have no legacy ``Db`` key, as that statement has no
    such column.
    """
    name: str
    schema: str = ""
    table_type: Optional[str] = None
    engine: Any = None
    version: Any = None
    row_format: Any = None
    rows: Any = None
    avg_row_length: Any = None
    data_length: Any = None
    max_data_length: Any = None
    index_length: Any = None
    data_free: Any = None
    auto_increment: Any = None
    create_time: Any = None
    update_time: Any = None
    check_time: Any = None
    collation: Any = None
    checksum: Any = None
    create_options: Any = None
    comment: Any = None
    extras: Dict[str, Any] = field(default_factory=dict)
    from_status: bool = False

    @classmethod
    def _from_row(cls, row: Mapping[str, Any], key_map: Dict[str, str], **defaults: Any) -> "TableStatus":
        values: Dict[str, Any] = dict(defaults)
        extras: Dict[str, Any] = {}
        for key, value in row.items():
            if key in key_map:
                values[key_map[key]] = value
            else:
                extras[key] = value
        values.setdefault("name", "")
        return cls(extras=extras, **values)

    @classmethod
    def from_status_row(cls, row: Mapping[str, Any], schema: str, table_type: str) -> "TableStatus":
        """Build from a ``SHOW TABLE STATUS`` row.

        The statement reports neither the schema nor the table type, so
        both are supplied by the caller.
        """
        return cls._from_row(row, _LEGACY_KEYS, schema=schema, table_type=table_type, from_status=True)

    @classmethod
    def from_catalog_row(cls, row: Mapping[str, Any]) -> "TableStatus":
        """Build from an ``information_schema.TABLES`` row."""
        return cls._from_row(row, _CATALOG_KEYS)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with both the legacy and the catalog key sets."""
        legacy: Dict[str, Any] = {}
        catalog: Dict[str, Any] = {}
        for name, (legacy_key, catalog_key) in TABLE_STATUS_KEYS.items():
            value = getattr(self, name)
            if legacy_key and not (legacy_key == "Db" and self.from_status):
                legacy[legacy_key] = value
            catalog[catalog_key] = value
        legacy["Type"] = self.engine
        return {**legacy, **self.extras, **catalog}


SCHEMA_SUM_COLUMNS = (
    "SCHEMA_TABLE_ROWS",
    "SCHEMA_DATA_LENGTH",
    "SCHEMA_MAX_DATA_LENGTH",
    "SCHEMA_INDEX_LENGTH",
    "SCHEMA_LENGTH",
    "SCHEMA_DATA_FREE",
)


@dataclass
class DatabaseSummary:
    """Per-database rollup of table statistics."""
    schema_name: str
    default_collation_name: str = ""
    tables: int = 0
    table_rows: int = 0
    data_length: int = 0
    max_data_length: int = 0
    index_length: int = 0
    data_free: int = 0

    @property
    def length(self) -> int:
        return self.data_length + self.index_length

    def to_dict(self) -> Dict[str, Any]:
        return {
            "SCHEMA_NAME": self.schema_name,
            "DEFAULT_COLLATION_NAME": self.default_collation_name,
            "SCHEMA_TABLES": self.tables,
            "SCHEMA_TABLE_ROWS": self.table_rows,
            "SCHEMA_DATA_LENGTH": self.data_length,
            "SCHEMA_MAX_DATA_LENGTH": self.max_data_length,
            "SCHEMA_INDEX_LENGTH": self.index_length,
            "SCHEMA_LENGTH": self.length,
            "SCHEMA_DATA_FREE": self.data_free,
        }
