"""Identity resolution between a snapshot and a working set.

Columns are matched by surrogate ``id`` so a rename stays one column.
Indexes, foreign keys and triggers are matched by name: they are always
created with a user-chosen name and are never renamed in place.
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from schema_designer.schema.models import Column, ForeignKey, Index, Trigger

T = TypeVar("T")


@dataclass
class ColumnMatch:
    """Columns of the working set paired with their snapshot counterparts.

    Attributes:
        added: Working-set columns whose id is not in the snapshot.
        removed: Snapshot columns whose id is not in the working set.
        matched: ``(snapshot, working)`` pairs sharing an id, in
            working-set order.
    """

    added: list[Column] = field(default_factory=list)
    removed: list[Column] = field(default_factory=list)
    matched: list[tuple[Column, Column]] = field(default_factory=list)


@dataclass
class NameMatch(Generic[T]):
    """Set difference of two named collections."""

    added: list[T] = field(default_factory=list)
    removed: list[T] = field(default_factory=list)


def match_columns(snapshot: Sequence[Column], working: Sequence[Column]) -> ColumnMatch:
    """Pair snapshot and working-set columns by ``id``."""
    by_id = {col.id: col for col in snapshot}
    working_ids = {col.id for col in working}

    match = ColumnMatch()
    for col in working:
        original = by_id.get(col.id)
        if original is None:
            match.added.append(col)
        else:
            match.matched.append((original, col))

    match.removed = [col for col in snapshot if col.id not in working_ids]
    return match


def match_by_name(
    snapshot: Iterable[T],
    working: Iterable[T],
    key: Callable[[T], str],
) -> NameMatch[T]:
    """Split two collections into added and removed items by name.

    An item whose name is on both sides is considered unchanged, even
    when its other attributes differ.

    Args:
        snapshot: Items as loaded.
        working: Items as edited.
        key: Returns the identifying name of an item.

    Returns:
        ``NameMatch`` with added items in working-set order and removed
        items in snapshot order.
    """
    snapshot = list(snapshot)
    working = list(working)
    snapshot_names = {key(item) for item in snapshot}
    working_names = {key(item) for item in working}

    return NameMatch(
        added=[item for item in working if key(item) not in snapshot_names],
        removed=[item for item in snapshot if key(item) not in working_names],
    )


def index_key(index: Index) -> str:
    return index.name


def foreign_key_key(fk: ForeignKey) -> str:
    return fk.constraint_name


def trigger_key(trigger: Trigger) -> str:
    return trigger.name
