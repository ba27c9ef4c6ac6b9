"""Table edit session: the snapshot / working-set pair.

An ``EditSession`` is opened from a loaded ``TableDefinition``.  The
snapshot is kept as loaded; every editor operation replaces the
working set with a new ``TableDefinition``.  ``compile()`` hands both
to the change plan compiler.

Usage:
    from schema_designer.schema.session import EditSession

    session = EditSession.open("shop", "users", definition)
    session.rename_column(column_id, "email_address")
    session.add_index("idx_name", ["last_name", "first_name"])
    plan = session.compile()
"""

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from schema_designer.schema.models import (
    Column,
    ForeignKey,
    Index,
    TableDefinition,
    Trigger,
)
from schema_designer.schema.normalizer import build_index
from schema_designer.schema.plan import ChangePlan, compile_change_plan

logger = logging.getLogger(__name__)

TRIGGER_TIMINGS = ("BEFORE", "AFTER")
TRIGGER_EVENTS = ("INSERT", "UPDATE", "DELETE")
INDEX_TYPES = ("INDEX", "UNIQUE", "FULLTEXT")

# Fields fixed for the lifetime of a column in the session
_FROZEN_COLUMN_FIELDS = frozenset({"id", "original_name"})


class SchemaEditError(ValueError):
    """Raised when an editor operation is rejected."""

    pass


@dataclass
class EditSession:
    """Snapshot and working set of one open table.

    Attributes:
        database: Database the table belongs to.
        table: Table name.
        snapshot: Structure as loaded; never replaced by edits.
        working: Structure as edited; replaced by every operation.
    """

    database: str
    table: str
    snapshot: TableDefinition
    working: TableDefinition

    @classmethod
    def open(cls, database: str, table: str, definition: TableDefinition) -> "EditSession":
        """Start a session; the working set begins as a deep copy of the snapshot."""
        return cls(
            database=database,
            table=table,
            snapshot=definition,
            working=definition.model_copy(deep=True),
        )

    # ------------------------------------------------------------------
    # Plan
    # ------------------------------------------------------------------

    def compile(self) -> ChangePlan:
        """Compile the change plan for the current edits."""
        return compile_change_plan(self.database, self.table, self.snapshot, self.working)

    @property
    def has_changes(self) -> bool:
        return self.compile().has_changes

    def discard(self) -> None:
        """Drop all edits and go back to the snapshot."""
        self.working = self.snapshot.model_copy(deep=True)

    def reset(self, definition: TableDefinition) -> None:
        """Replace both sides with a freshly loaded definition (after a push)."""
        self.snapshot = definition
        self.working = definition.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def add_column(
        self,
        name: str,
        data_type: str,
        length: int | str | None = None,
        default_value: str | None = None,
        nullable: bool = True,
        primary_key: bool = False,
        auto_increment: bool = False,
        unique: bool = False,
    ) -> Column:
        """Append a new column with a fresh surrogate id."""
        name = (name or "").strip()
        if not name:
            raise SchemaEditError("Please enter a column name.")
        if not (data_type or "").strip():
            raise SchemaEditError("Please choose a data type.")
        self._check_column_name_free(name)

        column = Column(
            name=name,
            data_type=data_type.strip().upper(),
            length=length,
            default_value=default_value,
            nullable=nullable,
            primary_key=primary_key,
            auto_increment=auto_increment,
            unique=unique,
        )
        self._replace(columns=(*self.working.columns, column))
        return column

    def update_column(self, column_id: int | str, **changes: Any) -> Column:
        """Change attributes of a working-set column, keeping its id.

        Raises:
            SchemaEditError: Unknown column, unknown attribute, an
                attempt to change ``id``/``original_name``, or a name
                already used by another column.
        """
        current = self._find_column(column_id)

        unknown = set(changes) - set(Column.model_fields)
        if unknown:
            raise SchemaEditError(f"Unknown column attribute(s): {', '.join(sorted(unknown))}")
        frozen = set(changes) & _FROZEN_COLUMN_FIELDS
        if frozen:
            raise SchemaEditError(f"Column attribute(s) cannot change: {', '.join(sorted(frozen))}")

        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise SchemaEditError("Please enter a column name.")
            if name != current.name:
                self._check_column_name_free(name)
            changes["name"] = name

        if "data_type" in changes:
            data_type = str(changes["data_type"] or "").strip()
            if not data_type:
                raise SchemaEditError("Please choose a data type.")
            changes["data_type"] = data_type.upper()

        try:
            updated = Column.model_validate({**current.model_dump(), **changes})
        except ValidationError as e:
            raise SchemaEditError(f"Invalid column attribute(s): {e}") from e
        self._replace(
            columns=tuple(updated if col.id == column_id else col for col in self.working.columns)
        )
        return updated

    def rename_column(self, column_id: int | str, name: str) -> Column:
        return self.update_column(column_id, name=name)

    def drop_column(self, column_id: int | str) -> None:
        self._find_column(column_id)
        self._replace(columns=tuple(c for c in self.working.columns if c.id != column_id))

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def add_index(self, name: str, columns: list[str], index_type: str = "INDEX") -> Index:
        """Add an index, grouped the same way introspected indexes are."""
        name = (name or "").strip()
        if not name:
            raise SchemaEditError("Please enter an index name.")
        if not columns:
            raise SchemaEditError("Please select at least one column.")
        if index_type.upper() not in INDEX_TYPES:
            raise SchemaEditError(f"Unknown index type: {index_type}")
        if any(idx.name == name for idx in self.working.indexes):
            raise SchemaEditError("Index name already exists.")

        index = build_index(name, columns, index_type)
        self._replace(indexes=(*self.working.indexes, index))
        return index

    def drop_index(self, name: str) -> None:
        if not any(idx.name == name for idx in self.working.indexes):
            raise SchemaEditError(f"Index '{name}' not found")
        self._replace(indexes=tuple(i for i in self.working.indexes if i.name != name))

    # ------------------------------------------------------------------
    # Foreign keys
    # ------------------------------------------------------------------

    def add_foreign_key(
        self,
        constraint_name: str,
        column_name: str,
        referenced_table: str,
        referenced_column: str,
    ) -> ForeignKey:
        if not all((constraint_name, column_name, referenced_table, referenced_column)):
            raise SchemaEditError("Please fill in all fields.")
        if any(fk.constraint_name == constraint_name for fk in self.working.foreign_keys):
            raise SchemaEditError("Constraint name exists.")

        fk = ForeignKey(
            constraint_name=constraint_name,
            column_name=column_name,
            referenced_table=referenced_table,
            referenced_column=referenced_column,
        )
        self._replace(foreign_keys=(*self.working.foreign_keys, fk))
        return fk

    def drop_foreign_key(self, constraint_name: str) -> None:
        if not any(fk.constraint_name == constraint_name for fk in self.working.foreign_keys):
            raise SchemaEditError(f"Foreign key '{constraint_name}' not found")
        self._replace(
            foreign_keys=tuple(
                fk for fk in self.working.foreign_keys if fk.constraint_name != constraint_name
            )
        )

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def add_trigger(self, name: str, timing: str, event: str, body: str) -> Trigger:
        name = (name or "").strip()
        if not name:
            raise SchemaEditError("Please enter a trigger name.")
        if timing.upper() not in TRIGGER_TIMINGS:
            raise SchemaEditError(f"Trigger timing must be one of {', '.join(TRIGGER_TIMINGS)}")
        if event.upper() not in TRIGGER_EVENTS:
            raise SchemaEditError(f"Trigger event must be one of {', '.join(TRIGGER_EVENTS)}")
        if any(t.name == name for t in self.working.triggers):
            raise SchemaEditError("Trigger name already exists.")

        trigger = Trigger(name=name, timing=timing.upper(), event=event.upper(), body=body)
        self._replace(triggers=(*self.working.triggers, trigger))
        return trigger

    def drop_trigger(self, name: str) -> None:
        if not any(t.name == name for t in self.working.triggers):
            raise SchemaEditError(f"Trigger '{name}' not found")
        self._replace(triggers=tuple(t for t in self.working.triggers if t.name != name))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _replace(self, **collections: tuple) -> None:
        self.working = self.working.model_copy(update=collections)
        logger.debug("Working set of %s.%s updated: %s", self.database, self.table, ", ".join(collections))

    def _find_column(self, column_id: int | str) -> Column:
        column = self.working.column(column_id)
        if column is None:
            raise SchemaEditError(f"Column '{column_id}' not found")
        return column

    def _check_column_name_free(self, name: str) -> None:
        if any(col.name == name for col in self.working.columns):
            raise SchemaEditError(f"Column '{name}' already exists.")
