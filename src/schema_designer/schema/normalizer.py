"""Index normalization: flat introspection rows to grouped indexes.

Catalog introspection returns one row per indexed column.  The editor
works with one ``Index`` per name.  The same grouping is applied to
the rows read from the server and to the synthetic rows built for an
index the user creates, so both sides of a later diff compare like
for like.

Usage:
    from schema_designer.schema.normalizer import group_index_rows, rows_for_index

    indexes = group_index_rows(rows)
    new_rows = rows_for_index("idx_name", ["last_name", "first_name"])
"""

from collections.abc import Iterable

from schema_designer.schema.models import Index, IndexRow

FULLTEXT = "FULLTEXT"
UNIQUE = "UNIQUE"
INDEX = "INDEX"


def group_index_rows(rows: Iterable[IndexRow]) -> dict[str, Index]:
    """Group flat index rows by index name.

    Rules:
    - ``unique`` is ``not non_unique`` of the first row seen for a name.
    - ``type`` is ``UNIQUE`` for unique indexes, else the row's
      ``index_type`` (``INDEX`` when empty).
    - ``type`` becomes ``FULLTEXT`` as soon as any row of the group
      reports ``FULLTEXT``, even when other rows of the group do not.
    - ``columns`` keeps first-seen row order; a repeated column is kept
      once.
    - Rows without a name are skipped.

    Args:
        rows: Flat rows, one per column per index.

    Returns:
        Dict of index name to ``Index``, in first-seen name order.

    Example:
        >>> rows = [
        ...     IndexRow(name="idx_a", column_name="x", non_unique=True, index_type="BTREE"),
        ...     IndexRow(name="idx_a", column_name="y", non_unique=True, index_type="BTREE"),
        ... ]
        >>> group_index_rows(rows)["idx_a"].columns
        ('x', 'y')
    """
    groups: dict[str, dict] = {}

    for row in rows:
        if not row.name:
            continue

        group = groups.get(row.name)
        if group is None:
            unique = not row.non_unique
            group = {
                "name": row.name,
                "type": UNIQUE if unique else (row.index_type or INDEX),
                "unique": unique,
                "columns": [],
            }
            groups[row.name] = group

        if (row.index_type or "").upper() == FULLTEXT:
            group["type"] = FULLTEXT

        if row.column_name not in group["columns"]:
            group["columns"].append(row.column_name)

    return {
        name: Index(
            name=group["name"],
            type=group["type"],
            unique=group["unique"],
            columns=tuple(group["columns"]),
        )
        for name, group in groups.items()
    }


def rows_for_index(
    name: str,
    columns: Iterable[str],
    index_type: str = INDEX,
) -> list[IndexRow]:
    """Build the synthetic flat rows for an index created in the editor.

    One row per selected column, in selection order, shaped like the
    rows introspection returns.

    Args:
        name: Index name chosen by the user.
        columns: Column names in index order.
        index_type: ``INDEX``, ``UNIQUE`` or ``FULLTEXT``.

    Returns:
        List of ``IndexRow``.
    """
    kind = index_type.upper()
    row_type = FULLTEXT if kind == FULLTEXT else "BTREE"
    return [
        IndexRow(
            name=name,
            column_name=column,
            non_unique=kind != UNIQUE,
            index_type=row_type,
        )
        for column in columns
    ]


def build_index(name: str, columns: Iterable[str], index_type: str = INDEX) -> Index:
    """Build one grouped ``Index`` the same way introspected rows are grouped."""
    grouped = group_index_rows(rows_for_index(name, columns, index_type))
    if name not in grouped:
        raise ValueError(f"Index '{name}' has no columns")
    return grouped[name]
