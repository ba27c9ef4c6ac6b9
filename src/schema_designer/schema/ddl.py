"""DDL statement emitters.

Each function turns one diff item into a literal, ``;``-terminated
statement.  Nothing is parameterized: identifiers are quoted here with
backticks (embedded backticks doubled) and default values are rendered
as SQL literals, so the text can be shown to the user and executed as
is.

Usage:
    from schema_designer.schema.ddl import add_column, quote_ident

    sql = add_column("users", column)
    # 'ALTER TABLE `users` ADD COLUMN `email` VARCHAR(255) NOT NULL;'
"""

import logging
import re

from schema_designer.schema.models import Column, ForeignKey, Index, Trigger

logger = logging.getLogger(__name__)

QUOTE_CHAR = "`"
UNIQUE_INDEX_PREFIX = "uq_"

_NUMBER_RE = re.compile(r"^[+-]?\d+(\.\d+)?$")
_EXPRESSION_RE = re.compile(
    r"^(CURRENT_TIMESTAMP|CURRENT_DATE|CURRENT_TIME|LOCALTIME|LOCALTIMESTAMP|NOW)"
    r"(\(\d*\))?$",
    re.IGNORECASE,
)


# ------------------------------------------------------------------
# Quoting and fragments
# ------------------------------------------------------------------


def quote_ident(identifier: str) -> str:
    """Quote an identifier with backticks.

    Example:
        >>> quote_ident("order`s")
        '`order``s`'
    """
    raw = str(identifier or "").strip()
    return QUOTE_CHAR + raw.replace(QUOTE_CHAR, QUOTE_CHAR * 2) + QUOTE_CHAR


def to_statement(sql: str) -> str:
    """Trim a statement and terminate it with exactly one ``;``."""
    text = sql.strip()
    if text.endswith(";"):
        text = text[:-1]
    return f"{text};"


def format_column_type(column: Column) -> str:
    """Render ``TYPE(length)``; the length is left off when empty or
    when the type text already carries its own parentheses."""
    base_type = str(column.data_type or "").strip()
    length = "" if column.length is None else str(column.length).strip()
    if not length or "(" in base_type:
        return base_type
    return f"{base_type}({length})"


def format_default(value: str | None, nullable: bool) -> str | None:
    """Render a default value as a SQL literal.

    Returns ``None`` when no DEFAULT clause should be emitted: no value,
    an empty value, or the ``NULL`` sentinel on a NOT NULL column.
    """
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None
    if raw.upper() == "NULL":
        return "NULL" if nullable else None
    if (
        _NUMBER_RE.match(raw)
        or _EXPRESSION_RE.match(raw)
        or raw.upper() in ("TRUE", "FALSE")
        or (len(raw) >= 2 and raw[0] == raw[-1] == "'")
        or (raw.startswith("(") and raw.endswith(")"))
        or raw.lower().startswith(("b'", "x'"))
    ):
        return raw
    return "'" + raw.replace("'", "''") + "'"


def column_definition(column: Column) -> str:
    """Type plus nullability, default and auto increment of a column."""
    parts = [format_column_type(column), "NULL" if column.nullable else "NOT NULL"]
    default = format_default(column.default_value, column.nullable)
    if default is not None:
        parts.append(f"DEFAULT {default}")
    if column.auto_increment:
        parts.append("AUTO_INCREMENT")
    return " ".join(parts)


def unique_index_name(column_name: str) -> str:
    return f"{UNIQUE_INDEX_PREFIX}{column_name}"


# ------------------------------------------------------------------
# Columns
# ------------------------------------------------------------------


def add_column(table: str, column: Column) -> str:
    return to_statement(
        f"ALTER TABLE {quote_ident(table)} ADD COLUMN "
        f"{quote_ident(column.name)} {column_definition(column)}"
    )


def drop_column(table: str, column: Column) -> str:
    return to_statement(f"ALTER TABLE {quote_ident(table)} DROP COLUMN {quote_ident(column.name)}")


def change_column(table: str, before: Column, after: Column) -> str:
    """CHANGE COLUMN from the name the server knows to the edited definition.

    The source identifier is the load-time name of the column: the
    server has never seen any name the user typed in between.
    """
    source = before.original_name or before.name
    return to_statement(
        f"ALTER TABLE {quote_ident(table)} CHANGE COLUMN {quote_ident(source)} "
        f"{quote_ident(after.name)} {column_definition(after)}"
    )


def add_unique(table: str, column: Column) -> str:
    name = unique_index_name(column.name)
    return to_statement(
        f"CREATE UNIQUE INDEX {quote_ident(name)} ON {quote_ident(table)} "
        f"({quote_ident(column.name)})"
    )


def drop_unique(table: str, before: Column) -> str:
    """Drop the unique index assumed to back a column.

    Best effort: the name is reconstructed as ``uq_<original name>``,
    which only matches indexes created by ``add_unique``.
    """
    name = unique_index_name(before.original_name or before.name)
    logger.warning(
        "Dropping uniqueness of column %r assumes its index is named %r",
        before.name,
        name,
    )
    return to_statement(f"DROP INDEX {quote_ident(name)} ON {quote_ident(table)}")


# ------------------------------------------------------------------
# Indexes
# ------------------------------------------------------------------


def create_index(table: str, index: Index) -> str | None:
    """CREATE INDEX with columns in stored order; ``None`` for an index
    without columns."""
    if not index.columns:
        logger.warning("Skipping index %r: it has no columns", index.name)
        return None

    if index.unique:
        kind = "UNIQUE "
    elif index.type.upper() == "FULLTEXT":
        kind = "FULLTEXT "
    else:
        kind = ""
    cols = ", ".join(quote_ident(col) for col in index.columns)
    return to_statement(
        f"CREATE {kind}INDEX {quote_ident(index.name)} ON {quote_ident(table)} ({cols})"
    )


def drop_index(table: str, index: Index) -> str:
    return to_statement(f"DROP INDEX {quote_ident(index.name)} ON {quote_ident(table)}")


# ------------------------------------------------------------------
# Foreign keys
# ------------------------------------------------------------------


def add_foreign_key(table: str, fk: ForeignKey) -> str:
    return to_statement(
        f"ALTER TABLE {quote_ident(table)} ADD CONSTRAINT {quote_ident(fk.constraint_name)} "
        f"FOREIGN KEY ({quote_ident(fk.column_name)}) "
        f"REFERENCES {quote_ident(fk.referenced_table)} ({quote_ident(fk.referenced_column)})"
    )


def drop_foreign_key(table: str, fk: ForeignKey) -> str:
    return to_statement(
        f"ALTER TABLE {quote_ident(table)} DROP FOREIGN KEY {quote_ident(fk.constraint_name)}"
    )


# ------------------------------------------------------------------
# Triggers
# ------------------------------------------------------------------


def create_trigger(table: str, trigger: Trigger) -> str:
    """CREATE TRIGGER wrapping the opaque body in BEGIN ... END."""
    return to_statement(
        f"CREATE TRIGGER {quote_ident(trigger.name)} {trigger.timing.upper()} "
        f"{trigger.event.upper()} ON {quote_ident(table)} FOR EACH ROW\n"
        f"BEGIN\n{trigger.body.strip()}\nEND"
    )


def drop_trigger(trigger: Trigger) -> str:
    return to_statement(f"DROP TRIGGER IF EXISTS {quote_ident(trigger.name)}")
