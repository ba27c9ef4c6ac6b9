"""Change plan compilation.

Turns a (snapshot, working set) pair into the ordered list of DDL
statements that brings the server's table in line with the edits.
The compiler is a pure function: it keeps no state between calls and
can be re-run after every edit.

Statement order is fixed, and it is also the only order in which a
partially applied plan stays consistent:

    1. column additions, then column changes (CHANGE COLUMN and
       uniqueness index create/drop, per column)
    2. column removals
    3. index additions
    4. index removals
    5. foreign key additions
    6. foreign key removals
    7. trigger additions
    8. trigger removals

Usage:
    from schema_designer.schema.plan import compile_change_plan

    plan = compile_change_plan("shop", "users", snapshot, working)
    if plan.has_changes:
        print(plan.to_sql())
"""

import logging
from dataclasses import dataclass, field

from schema_designer.schema import ddl
from schema_designer.schema.differ import TableDiff, diff_table
from schema_designer.schema.models import TableDefinition
from schema_designer.schema.risk import LockWarning, assess_statements

logger = logging.getLogger(__name__)

NO_CHANGES = "-- No changes detected."


@dataclass
class ChangePlan:
    """Ordered DDL that turns a snapshot into its working set.

    Attributes:
        database: Database (schema) the table lives in.
        table: Table the statements alter.
        statements: ``;``-terminated statements in execution order.
        notes: Caveats about the statements, rendered as SQL comments.
        warnings: Lock-risk warnings for the statements.
    """

    database: str
    table: str
    statements: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    warnings: list[LockWarning] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        """True if at least one statement was emitted."""
        return bool(self.statements)

    @property
    def statement_count(self) -> int:
        return len(self.statements)

    @property
    def high_risk_warnings(self) -> list[LockWarning]:
        return [w for w in self.warnings if w.severity == "high"]

    def to_sql(self) -> str:
        """Render the plan as a SQL script with a comment header.

        A plan without statements renders an explicit no-changes marker
        rather than an empty script.
        """
        if not self.statements:
            return NO_CHANGES

        lines = [f"-- Schema Change Plan for {self.database}.{self.table}"]
        lines.extend(f"-- NOTE: {note}" for note in self.notes)
        lines.extend(self.statements)
        return "\n".join(lines)


def emit_statements(table: str, diff: TableDiff) -> tuple[list[str], list[str]]:
    """Emit statements for every partition of a diff, in plan order.

    Returns:
        Tuple of (statements, notes).
    """
    statements: list[str] = []
    notes: list[str] = []

    # 1. Column additions and changes
    for column in diff.columns.added:
        statements.append(ddl.add_column(table, column))

    for change in diff.columns.changed:
        if change.definition_changed:
            statements.append(ddl.change_column(table, change.before, change.after))
        if change.unique_changed:
            if change.after.unique:
                statements.append(ddl.add_unique(table, change.after))
            else:
                statements.append(ddl.drop_unique(table, change.before))
                source = change.before.original_name or change.before.name
                notes.append(
                    f"Unique index on {source} is assumed to be named "
                    f"{ddl.unique_index_name(source)}."
                )

    # 2. Column removals
    for column in diff.columns.removed:
        statements.append(ddl.drop_column(table, column))

    # 3-4. Indexes
    for index in diff.indexes.added:
        statement = ddl.create_index(table, index)
        if statement is not None:
            statements.append(statement)

    for index in diff.indexes.removed:
        statements.append(ddl.drop_index(table, index))

    # 5-6. Foreign keys
    for fk in diff.foreign_keys.added:
        statements.append(ddl.add_foreign_key(table, fk))

    for fk in diff.foreign_keys.removed:
        statements.append(ddl.drop_foreign_key(table, fk))

    # 7-8. Triggers
    for trigger in diff.triggers.added:
        statements.append(ddl.create_trigger(table, trigger))

    for trigger in diff.triggers.removed:
        statements.append(ddl.drop_trigger(trigger))

    return statements, notes


def compile_change_plan(
    database: str,
    table: str,
    snapshot: TableDefinition,
    working: TableDefinition,
) -> ChangePlan:
    """Compile the change plan for one table.

    Args:
        database: Database the table belongs to (used in the plan header).
        table: Table name, quoted into every statement.
        snapshot: Structure as loaded from the server.
        working: Structure as edited.

    Returns:
        ``ChangePlan``; ``plan.has_changes`` is False when the working
        set matches the snapshot.

    Example:
        >>> table = TableDefinition()
        >>> compile_change_plan("db", "t", table, table).statements
        []
    """
    diff = diff_table(snapshot, working)
    statements, notes = emit_statements(table, diff)

    plan = ChangePlan(
        database=database,
        table=table,
        statements=statements,
        notes=notes,
        warnings=assess_statements(statements),
    )
    logger.debug(
        "Compiled %d statement(s) for %s.%s", plan.statement_count, database, table
    )
    return plan
