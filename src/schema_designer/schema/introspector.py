"""MySQL table introspection via information_schema.

This module queries the live server to load one table's structure:
- Columns (type, length, default, nullability, key flags, auto increment)
- Index rows (one per indexed column, grouped by the index normalizer)
- Foreign keys
- Triggers

The result seeds both sides of an ``EditSession``.

Usage:
    async with TableIntrospector(database_url) as introspector:
        definition = await introspector.load_table("shop", "users")
"""

import logging
import re

from schema_designer.adapters.base import DatabaseClient
from schema_designer.adapters.mysql import AsyncMySQLAdapter
from schema_designer.schema.models import (
    Column,
    ForeignKey,
    IndexRow,
    TableDefinition,
    Trigger,
)

logger = logging.getLogger(__name__)

_BEGIN_END_RE = re.compile(r"^\s*BEGIN\b(?P<body>.*)\bEND\s*;?\s*$", re.IGNORECASE | re.DOTALL)

# Types whose full definition (scale, value list) lives only in COLUMN_TYPE
_FULL_TYPE_DATA_TYPES = frozenset({"decimal", "numeric", "float", "double", "real", "enum", "set"})
_TYPE_MODIFIERS_RE = re.compile(r"\b(?:unsigned|zerofill)\b", re.IGNORECASE)


class TableIntrospector:
    """Loads a ``TableDefinition`` from a MySQL server.

    Either opens its own adapter from a URL (closed on exit), or uses a
    caller-provided client (left open).

    Usage:
        async with TableIntrospector("mysql://root@localhost/shop") as introspector:
            definition = await introspector.load_table("shop", "users")
    """

    def __init__(
        self,
        database_url: str | None = None,
        client: DatabaseClient | None = None,
    ) -> None:
        if database_url is None and client is None:
            raise ValueError("TableIntrospector needs a database_url or a client")
        self._database_url = database_url
        self._client: DatabaseClient | None = client
        self._owns_client = client is None

    async def __aenter__(self) -> "TableIntrospector":
        if self._client is None:
            self._client = AsyncMySQLAdapter(self._database_url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    async def load_table(self, database: str, table: str) -> TableDefinition:
        """Introspect one table.

        Args:
            database: Database (schema) name.
            table: Table name.

        Returns:
            ``TableDefinition`` with grouped indexes and a fresh surrogate
            id on every column.

        Raises:
            RuntimeError: If used outside ``async with``.
            LookupError: If the table has no columns (does not exist).
        """
        if self._client is None:
            raise RuntimeError("Introspector not connected. Use async with statement.")

        columns = await self.get_columns(database, table)
        if not columns:
            raise LookupError(f"Table {database}.{table} not found")

        definition = TableDefinition.from_introspection(
            columns=columns,
            index_rows=await self.get_index_rows(database, table),
            foreign_keys=await self.get_foreign_keys(database, table),
            triggers=await self.get_triggers(database, table),
        )
        logger.info(
            "Loaded %s.%s: %d columns, %d indexes, %d foreign keys, %d triggers",
            database,
            table,
            len(definition.columns),
            len(definition.indexes),
            len(definition.foreign_keys),
            len(definition.triggers),
        )
        return definition

    async def get_columns(self, database: str, table: str) -> list[Column]:
        """Get columns in ordinal order."""
        query = """
            SELECT
                COLUMN_NAME AS name,
                DATA_TYPE AS data_type,
                COLUMN_TYPE AS column_type,
                CHARACTER_MAXIMUM_LENGTH AS char_length,
                NUMERIC_PRECISION AS numeric_precision,
                COLUMN_DEFAULT AS column_default,
                IS_NULLABLE AS is_nullable,
                COLUMN_KEY AS column_key,
                EXTRA AS extra
            FROM information_schema.COLUMNS
            WHERE TABLE_SCHEMA = :database
              AND TABLE_NAME = :table
            ORDER BY ORDINAL_POSITION
        """
        rows = await self._client.fetch_all(query, {"database": database, "table": table})
        return [self._column_from_row(row) for row in rows]

    def _column_from_row(self, row: dict) -> Column:
        data_type = str(row["data_type"])
        column_type = str(row.get("column_type") or "")
        if column_type and (
            data_type.lower() in _FULL_TYPE_DATA_TYPES or _TYPE_MODIFIERS_RE.search(column_type)
        ):
            # DECIMAL(10,2), ENUM('a','b'), INT UNSIGNED: the length is part of the type
            data_type = format_full_column_type(column_type)
            length = None
        else:
            data_type = data_type.upper()
            length = row.get("char_length") or row.get("numeric_precision") or None
        default = row.get("column_default")
        return Column(
            name=row["name"],
            data_type=data_type,
            length=length,
            default_value=None if default is None else str(default),
            nullable=row.get("is_nullable") == "YES",
            primary_key=row.get("column_key") == "PRI",
            auto_increment="auto_increment" in (row.get("extra") or "").lower(),
            unique=row.get("column_key") == "UNI",
        )

    async def get_index_rows(self, database: str, table: str) -> list[IndexRow]:
        """Get flat index rows, one per indexed column."""
        query = """
            SELECT
                INDEX_NAME AS name,
                COLUMN_NAME AS column_name,
                NON_UNIQUE AS non_unique,
                INDEX_TYPE AS index_type
            FROM information_schema.STATISTICS
            WHERE TABLE_SCHEMA = :database
              AND TABLE_NAME = :table
            ORDER BY INDEX_NAME, SEQ_IN_INDEX
        """
        rows = await self._client.fetch_all(query, {"database": database, "table": table})
        index_rows = []
        for row in rows:
            # Functional key parts have no column name
            if row.get("column_name") is None:
                logger.debug("Skipping functional key part of index %r", row.get("name"))
                continue
            index_rows.append(
                IndexRow(
                    name=row.get("name"),
                    column_name=row["column_name"],
                    non_unique=bool(row.get("non_unique", 1)),
                    index_type=row.get("index_type"),
                )
            )
        return index_rows

    async def get_foreign_keys(self, database: str, table: str) -> list[ForeignKey]:
        """Get foreign keys declared on the table.

        Only the first column of a composite foreign key is kept.
        """
        query = """
            SELECT
                CONSTRAINT_NAME AS constraint_name,
                COLUMN_NAME AS column_name,
                REFERENCED_TABLE_NAME AS referenced_table,
                REFERENCED_COLUMN_NAME AS referenced_column
            FROM information_schema.KEY_COLUMN_USAGE
            WHERE TABLE_SCHEMA = :database
              AND TABLE_NAME = :table
              AND REFERENCED_TABLE_NAME IS NOT NULL
            ORDER BY CONSTRAINT_NAME, ORDINAL_POSITION
        """
        rows = await self._client.fetch_all(query, {"database": database, "table": table})
        foreign_keys: dict[str, ForeignKey] = {}
        for row in rows:
            name = row["constraint_name"]
            if name in foreign_keys:
                logger.warning("Foreign key %r has more than one column; keeping the first", name)
                continue
            foreign_keys[name] = ForeignKey(
                constraint_name=name,
                column_name=row["column_name"],
                referenced_table=row["referenced_table"],
                referenced_column=row["referenced_column"],
            )
        return list(foreign_keys.values())

    async def get_triggers(self, database: str, table: str) -> list[Trigger]:
        """Get row triggers with their bodies (outer BEGIN ... END removed)."""
        query = """
            SELECT
                TRIGGER_NAME AS name,
                ACTION_TIMING AS timing,
                EVENT_MANIPULATION AS event,
                ACTION_STATEMENT AS statement
            FROM information_schema.TRIGGERS
            WHERE EVENT_OBJECT_SCHEMA = :database
              AND EVENT_OBJECT_TABLE = :table
            ORDER BY ACTION_ORDER
        """
        rows = await self._client.fetch_all(query, {"database": database, "table": table})
        return [
            Trigger(
                name=row["name"],
                timing=row["timing"],
                event=row["event"],
                body=unwrap_trigger_body(row.get("statement") or ""),
            )
            for row in rows
        ]


def unwrap_trigger_body(statement: str) -> str:
    """Strip one outer ``BEGIN ... END`` from a trigger action statement.

    Example:
        >>> unwrap_trigger_body("BEGIN SET NEW.total = 0; END")
        'SET NEW.total = 0;'
    """
    match = _BEGIN_END_RE.match(statement)
    if match:
        return match.group("body").strip()
    return statement.strip()


def format_full_column_type(column_type: str) -> str:
    """Upper-case a COLUMN_TYPE, leaving its parenthesised arguments as-is.

    Example:
        >>> format_full_column_type("enum('new','Done')")
        "ENUM('new','Done')"
        >>> format_full_column_type("decimal(10,2) unsigned")
        'DECIMAL(10,2) UNSIGNED'
    """
    head, paren, rest = column_type.strip().partition("(")
    if not paren:
        return head.upper()
    args, _, tail = rest.rpartition(")")
    return f"{head.upper()}({args}){tail.upper()}"
