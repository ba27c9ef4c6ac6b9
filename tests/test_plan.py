"""Tests for change plan compilation.

Covers the ordering guarantees of the plan and the end-to-end
scenarios: no-op, rename, uniqueness toggle, permutation, and
deletions.
"""

import pytest

from schema_designer.schema.models import (
    Column,
    ForeignKey,
    Index,
    TableDefinition,
    Trigger,
)
from schema_designer.schema.plan import NO_CHANGES, ChangePlan, compile_change_plan


@pytest.fixture
def snapshot() -> TableDefinition:
    return TableDefinition(
        columns=(
            Column(id=1, name="id", data_type="INT", primary_key=True),
            Column(id=2, name="email", data_type="VARCHAR", length=255, nullable=False),
            Column(id=4, name="org_id", data_type="INT"),
        ),
        indexes=(Index(name="idx_org", columns=("org_id",)),),
        foreign_keys=(
            ForeignKey(
                constraint_name="fk_user_org",
                column_name="org_id",
                referenced_table="orgs",
                referenced_column="id",
            ),
        ),
        triggers=(Trigger(name="trg_audit", timing="AFTER", event="UPDATE", body="SET @x = 1;"),),
    )


def _replace_column(definition: TableDefinition, column_id, **changes) -> TableDefinition:
    columns = tuple(
        c.model_copy(update=changes) if c.id == column_id else c for c in definition.columns
    )
    return definition.model_copy(update={"columns": columns})


# ============================================================================
# Scenarios
# ============================================================================


class TestNoChanges:
    """An unmodified copy compiles to nothing."""

    def test_deep_copy_yields_no_statements(self, snapshot: TableDefinition) -> None:
        plan = compile_change_plan("shop", "t", snapshot, snapshot.model_copy(deep=True))

        assert plan.statements == []
        assert plan.has_changes is False
        assert plan.warnings == []

    def test_no_changes_marker(self, snapshot: TableDefinition) -> None:
        plan = compile_change_plan("shop", "t", snapshot, snapshot)
        assert plan.to_sql() == NO_CHANGES

    def test_recompile_is_stable(self, snapshot: TableDefinition) -> None:
        """Compiling the same pair twice gives the same plan."""
        working = _replace_column(snapshot, 2, name="mail")
        first = compile_change_plan("shop", "t", snapshot, working)
        second = compile_change_plan("shop", "t", snapshot, working)
        assert first.statements == second.statements


class TestColumnScenarios:
    """Column edits."""

    def test_rename_and_add(self) -> None:
        """Rename of column 2 plus a new column 3."""
        snapshot = TableDefinition(
            columns=(
                Column(id=1, name="id", data_type="INT", primary_key=True),
                Column(id=2, name="email", data_type="VARCHAR", length=255, nullable=False),
            )
        )
        working = _replace_column(snapshot, 2, name="email_addr")
        working = working.model_copy(
            update={
                "columns": (
                    *working.columns,
                    Column(id=3, name="created_at", data_type="TIMESTAMP", nullable=True),
                )
            }
        )

        plan = compile_change_plan("shop", "t", snapshot, working)

        assert plan.statements == [
            "ALTER TABLE `t` ADD COLUMN `created_at` TIMESTAMP NULL;",
            "ALTER TABLE `t` CHANGE COLUMN `email` `email_addr` VARCHAR(255) NOT NULL;",
        ]
        assert plan.has_changes is True

    def test_rename_is_one_change_column(self, snapshot: TableDefinition) -> None:
        plan = compile_change_plan("shop", "t", snapshot, _replace_column(snapshot, 2, name="mail"))

        assert len(plan.statements) == 1
        assert "CHANGE COLUMN `email` `mail`" in plan.statements[0]
        assert not any("DROP COLUMN" in s or "ADD COLUMN" in s for s in plan.statements)

    def test_double_rename_uses_load_time_name(self, snapshot: TableDefinition) -> None:
        working = _replace_column(snapshot, 2, name="mail")
        working = _replace_column(working, 2, name="email_address")
        plan = compile_change_plan("shop", "t", snapshot, working)

        assert plan.statements == [
            "ALTER TABLE `t` CHANGE COLUMN `email` `email_address` VARCHAR(255) NOT NULL;"
        ]

    def test_rename_back_is_no_change(self, snapshot: TableDefinition) -> None:
        working = _replace_column(snapshot, 2, name="mail")
        working = _replace_column(working, 2, name="email")
        assert not compile_change_plan("shop", "t", snapshot, working).has_changes

    def test_unique_on_is_only_create_index(self, snapshot: TableDefinition) -> None:
        plan = compile_change_plan("shop", "t", snapshot, _replace_column(snapshot, 2, unique=True))
        assert plan.statements == ["CREATE UNIQUE INDEX `uq_email` ON `t` (`email`);"]

    def test_unique_off_is_only_drop_index(self) -> None:
        snapshot = TableDefinition(
            columns=(Column(id=2, name="email", data_type="VARCHAR", length=255, unique=True),)
        )
        plan = compile_change_plan("shop", "t", snapshot, _replace_column(snapshot, 2, unique=False))

        assert plan.statements == ["DROP INDEX `uq_email` ON `t`;"]
        assert plan.notes == ["Unique index on email is assumed to be named uq_email."]
        assert "-- NOTE: Unique index on email" in plan.to_sql()

    def test_rename_with_unique_on(self, snapshot: TableDefinition) -> None:
        """Change and uniqueness are emitted separately, change first."""
        working = _replace_column(snapshot, 2, name="mail", unique=True)
        plan = compile_change_plan("shop", "t", snapshot, working)

        assert plan.statements == [
            "ALTER TABLE `t` CHANGE COLUMN `email` `mail` VARCHAR(255) NOT NULL;",
            "CREATE UNIQUE INDEX `uq_mail` ON `t` (`mail`);",
        ]

    def test_added_unique_column_gets_no_unique_index(self) -> None:
        working = TableDefinition(columns=(Column(id=5, name="code", data_type="CHAR", length=8, unique=True),))
        plan = compile_change_plan("shop", "t", TableDefinition(), working)
        assert plan.statements == ["ALTER TABLE `t` ADD COLUMN `code` CHAR(8) NULL;"]

    def test_permutation_gives_same_set(self, snapshot: TableDefinition) -> None:
        working = _replace_column(snapshot, 2, name="mail")
        working = _replace_column(working, 4, nullable=False)
        permuted = working.model_copy(update={"columns": tuple(reversed(working.columns))})

        plan = compile_change_plan("shop", "t", snapshot, working)
        permuted_plan = compile_change_plan("shop", "t", snapshot, permuted)
        assert set(plan.statements) == set(permuted_plan.statements)
        assert len(plan.statements) == len(permuted_plan.statements) == 2


class TestDeletionScenarios:
    """Removals of named entities."""

    def test_drop_foreign_key_only(self, snapshot: TableDefinition) -> None:
        working = snapshot.model_copy(update={"foreign_keys": ()})
        plan = compile_change_plan("shop", "t", snapshot, working)
        assert plan.statements == ["ALTER TABLE `t` DROP FOREIGN KEY `fk_user_org`;"]

    def test_drop_trigger_only(self, snapshot: TableDefinition) -> None:
        working = snapshot.model_copy(update={"triggers": ()})
        plan = compile_change_plan("shop", "t", snapshot, working)
        assert plan.statements == ["DROP TRIGGER IF EXISTS `trg_audit`;"]

    def test_index_rename_is_drop_plus_create(self, snapshot: TableDefinition) -> None:
        working = snapshot.model_copy(
            update={"indexes": (Index(name="idx_org_id", columns=("org_id",)),)}
        )
        plan = compile_change_plan("shop", "t", snapshot, working)
        assert plan.statements == [
            "CREATE INDEX `idx_org_id` ON `t` (`org_id`);",
            "DROP INDEX `idx_org` ON `t`;",
        ]

    def test_index_without_columns_skipped(self, snapshot: TableDefinition) -> None:
        working = snapshot.model_copy(
            update={"indexes": (*snapshot.indexes, Index(name="idx_empty"))}
        )
        assert not compile_change_plan("shop", "t", snapshot, working).has_changes


# ============================================================================
# Ordering
# ============================================================================


class TestPlanOrder:
    """Statement kinds come out in fixed order."""

    def test_all_kinds_in_order(self, snapshot: TableDefinition) -> None:
        working = TableDefinition(
            columns=(
                snapshot.columns[0],
                snapshot.columns[1].model_copy(update={"name": "mail"}),
                Column(id=9, name="team_id", data_type="INT"),
            ),
            indexes=(Index(name="idx_team", columns=("team_id",)),),
            foreign_keys=(
                ForeignKey(
                    constraint_name="fk_user_team",
                    column_name="team_id",
                    referenced_table="teams",
                    referenced_column="id",
                ),
            ),
            triggers=(Trigger(name="trg_new", timing="BEFORE", event="INSERT", body="SET @y = 2;"),),
        )

        plan = compile_change_plan("shop", "t", snapshot, working)
        prefixes = [
            "ALTER TABLE `t` ADD COLUMN `team_id`",
            "ALTER TABLE `t` CHANGE COLUMN `email` `mail`",
            "ALTER TABLE `t` DROP COLUMN `org_id`",
            "CREATE INDEX `idx_team`",
            "DROP INDEX `idx_org`",
            "ALTER TABLE `t` ADD CONSTRAINT `fk_user_team`",
            "ALTER TABLE `t` DROP FOREIGN KEY `fk_user_org`",
            "CREATE TRIGGER `trg_new`",
            "DROP TRIGGER IF EXISTS `trg_audit`",
        ]
        assert len(plan.statements) == len(prefixes)
        for statement, prefix in zip(plan.statements, prefixes):
            assert statement.startswith(prefix)
        assert all(s.endswith(";") for s in plan.statements)


# ============================================================================
# ChangePlan
# ============================================================================


class TestChangePlan:
    """Plan rendering and warnings."""

    def test_to_sql_header(self) -> None:
        plan = ChangePlan(database="shop", table="t", statements=["DROP INDEX `a` ON `t`;"])
        assert plan.to_sql() == "-- Schema Change Plan for shop.t\nDROP INDEX `a` ON `t`;"

    def test_warnings_attached(self, snapshot: TableDefinition) -> None:
        working = _replace_column(snapshot, 2, name="mail")
        working = working.model_copy(update={"foreign_keys": ()})
        plan = compile_change_plan("shop", "t", snapshot, working)

        assert [w.severity for w in plan.warnings] == ["high", "medium"]
        assert len(plan.high_risk_warnings) == 1
        assert plan.statement_count == 2
