"""Pydantic models for table structure and editor results.

This module contains the schema-domain models:
- Entity models: Column, IndexRow, Index, ForeignKey, Trigger
- Table model: TableDefinition (one collection of each entity kind)
- Connection result: ConnectionResult

All entity models are frozen.  The editor never mutates an entity in
place; it builds a new one with ``model_copy(update=...)`` and replaces
the collection that held it.
"""

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


def new_column_id() -> str:
    """Return a fresh surrogate id for a column entering the working set."""
    return uuid4().hex


# ============================================================================
# Entity Models
# ============================================================================


class Column(BaseModel):
    """A table column as seen by the editor.

    ``id`` is assigned once, when the column enters the working set, and
    survives renames.  ``original_name`` is the name the server knows the
    column by (the name at load time).

    Example:
        >>> col = Column(id=2, name="email", data_type="VARCHAR", length=255)
        >>> col.original_name
        'email'
    """

    model_config = ConfigDict(frozen=True)

    id: int | str = Field(default_factory=new_column_id)
    name: str
    original_name: str | None = None
    data_type: str
    length: int | str | None = None
    default_value: str | None = None
    nullable: bool = True
    primary_key: bool = False
    auto_increment: bool = False
    unique: bool = False

    @model_validator(mode="before")
    @classmethod
    def _default_original_name(cls, data):
        if isinstance(data, dict) and not data.get("original_name") and data.get("name"):
            data = {**data, "original_name": data["name"]}
        return data


class IndexRow(BaseModel):
    """One row per indexed column, as returned by catalog introspection."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    column_name: str
    non_unique: bool = True
    index_type: str | None = None


class Index(BaseModel):
    """An index grouped from one or more ``IndexRow``s.

    ``columns`` keeps the order of the rows it was grouped from; that
    order is the order emitted in ``CREATE INDEX``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "INDEX"  # INDEX, UNIQUE, FULLTEXT, or the raw index_type
    unique: bool = False
    columns: tuple[str, ...] = ()


class ForeignKey(BaseModel):
    """Single-column foreign key constraint owned by the table."""

    model_config = ConfigDict(frozen=True)

    constraint_name: str
    column_name: str
    referenced_table: str
    referenced_column: str


class Trigger(BaseModel):
    """Row trigger defined on the table."""

    model_config = ConfigDict(frozen=True)

    name: str
    timing: str  # BEFORE, AFTER
    event: str  # INSERT, UPDATE, DELETE
    body: str = ""


# ============================================================================
# Table Model
# ============================================================================


class TableDefinition(BaseModel):
    """Structure of one table: the unit both snapshot and working set use.

    Example:
        >>> table = TableDefinition(columns=(Column(id=1, name="id", data_type="INT"),))
        >>> [c.name for c in table.columns]
        ['id']
    """

    model_config = ConfigDict(frozen=True)

    columns: tuple[Column, ...] = ()
    indexes: tuple[Index, ...] = ()
    foreign_keys: tuple[ForeignKey, ...] = ()
    triggers: tuple[Trigger, ...] = ()

    @classmethod
    def from_introspection(
        cls,
        columns: list[Column],
        index_rows: list[IndexRow],
        foreign_keys: list[ForeignKey] | None = None,
        triggers: list[Trigger] | None = None,
    ) -> "TableDefinition":
        """Build a definition from flat introspection output.

        Index rows are folded into grouped ``Index`` entities by the
        index normalizer.
        """
        from schema_designer.schema.normalizer import group_index_rows

        return cls(
            columns=tuple(columns),
            indexes=tuple(group_index_rows(index_rows).values()),
            foreign_keys=tuple(foreign_keys or ()),
            triggers=tuple(triggers or ()),
        )

    def column(self, column_id: int | str) -> Column | None:
        """Return the column with the given surrogate id, if present."""
        for col in self.columns:
            if col.id == column_id:
                return col
        return None


# ============================================================================
# Connection Result
# ============================================================================


class ConnectionResult(BaseModel):
    """Result of connect().

    Example:
        >>> result = ConnectionResult(success=True, profile_name="dev")
        >>> result.success
        True
    """

    success: bool
    profile_name: str | None = None
    server_version: str | None = None
    error: str | None = None
