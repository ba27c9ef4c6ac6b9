"""Diff computation between a table snapshot and its working set.

Pure logic -- no I/O.  For each entity kind the working set is
partitioned against the snapshot:

- Columns: added / removed / changed, matched by surrogate id.  A
  changed column records separately whether its definition changed
  (name, type, length, nullability, auto increment) and whether its
  uniqueness flipped; the two are emitted independently.
- Indexes, foreign keys, triggers: added / removed, matched by name.
  Redefining one under the same name is not detected; renaming one is
  a removal plus an addition.

Usage:
    from schema_designer.schema.differ import diff_table

    diff = diff_table(snapshot, working)
    if diff.is_empty:
        print("No changes")
"""

import logging
from dataclasses import dataclass, field

from schema_designer.schema.identity import (
    NameMatch,
    foreign_key_key,
    index_key,
    match_by_name,
    match_columns,
    trigger_key,
)
from schema_designer.schema.models import (
    Column,
    ForeignKey,
    Index,
    TableDefinition,
    Trigger,
)

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Diff data classes
# ------------------------------------------------------------------


@dataclass
class ColumnChange:
    """A column present on both sides with at least one difference.

    Attributes:
        before: Snapshot column.
        after: Working-set column.
        definition_changed: Name, type, length, nullability or auto
            increment differ (one CHANGE COLUMN).
        unique_changed: The ``unique`` flag flipped (one index create
            or drop).
    """

    before: Column
    after: Column
    definition_changed: bool = False
    unique_changed: bool = False


@dataclass
class ColumnChanges:
    added: list[Column] = field(default_factory=list)
    removed: list[Column] = field(default_factory=list)
    changed: list[ColumnChange] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)


@dataclass
class TableDiff:
    """Every partition of one snapshot/working-set comparison."""

    columns: ColumnChanges = field(default_factory=ColumnChanges)
    indexes: NameMatch[Index] = field(default_factory=NameMatch)
    foreign_keys: NameMatch[ForeignKey] = field(default_factory=NameMatch)
    triggers: NameMatch[Trigger] = field(default_factory=NameMatch)

    @property
    def is_empty(self) -> bool:
        """True if no partition holds anything."""
        return self.columns.is_empty and not (
            self.indexes.added
            or self.indexes.removed
            or self.foreign_keys.added
            or self.foreign_keys.removed
            or self.triggers.added
            or self.triggers.removed
        )


# ------------------------------------------------------------------
# Change predicates
# ------------------------------------------------------------------


def _loose(value: int | str | None) -> str:
    """Normalize a length for loose comparison (``"10" == 10``, ``None == ""``)."""
    if value is None:
        return ""
    return str(value).strip()


def lengths_equal(a: int | str | None, b: int | str | None) -> bool:
    return _loose(a) == _loose(b)


def definition_changed(before: Column, after: Column) -> bool:
    """True if the column needs a CHANGE COLUMN statement.

    Compares name, data type, length (loosely), nullability and auto
    increment.  Default value, primary key and uniqueness are not part
    of the comparison.
    """
    return (
        before.name != after.name
        or before.data_type != after.data_type
        or not lengths_equal(before.length, after.length)
        or before.nullable != after.nullable
        or before.auto_increment != after.auto_increment
    )


def unique_changed(before: Column, after: Column) -> bool:
    return before.unique != after.unique


# ------------------------------------------------------------------
# Per-kind diffs
# ------------------------------------------------------------------


def diff_columns(snapshot: TableDefinition, working: TableDefinition) -> ColumnChanges:
    """Partition columns into added, removed and changed."""
    match = match_columns(snapshot.columns, working.columns)
    changes = ColumnChanges(added=match.added, removed=match.removed)

    for before, after in match.matched:
        change = ColumnChange(
            before=before,
            after=after,
            definition_changed=definition_changed(before, after),
            unique_changed=unique_changed(before, after),
        )
        if change.definition_changed or change.unique_changed:
            changes.changed.append(change)

    return changes


def diff_indexes(snapshot: TableDefinition, working: TableDefinition) -> NameMatch[Index]:
    return match_by_name(snapshot.indexes, working.indexes, index_key)


def diff_foreign_keys(
    snapshot: TableDefinition, working: TableDefinition
) -> NameMatch[ForeignKey]:
    return match_by_name(snapshot.foreign_keys, working.foreign_keys, foreign_key_key)


def diff_triggers(snapshot: TableDefinition, working: TableDefinition) -> NameMatch[Trigger]:
    return match_by_name(snapshot.triggers, working.triggers, trigger_key)


def diff_table(snapshot: TableDefinition, working: TableDefinition) -> TableDiff:
    """Diff every entity kind of a table.

    Args:
        snapshot: Structure as loaded from the server; never modified.
        working: Structure as edited.

    Returns:
        ``TableDiff`` with one partition per entity kind.

    Example:
        >>> table = TableDefinition()
        >>> diff_table(table, table).is_empty
        True
    """
    diff = TableDiff(
        columns=diff_columns(snapshot, working),
        indexes=diff_indexes(snapshot, working),
        foreign_keys=diff_foreign_keys(snapshot, working),
        triggers=diff_triggers(snapshot, working),
    )

    logger.debug(
        "Diff: columns +%d -%d ~%d, indexes +%d -%d, foreign keys +%d -%d, triggers +%d -%d",
        len(diff.columns.added),
        len(diff.columns.removed),
        len(diff.columns.changed),
        len(diff.indexes.added),
        len(diff.indexes.removed),
        len(diff.foreign_keys.added),
        len(diff.foreign_keys.removed),
        len(diff.triggers.added),
        len(diff.triggers.removed),
    )
    return diff
