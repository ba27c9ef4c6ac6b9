"""Tests for EditSession: editor operations on the working set."""

import pytest

from schema_designer.schema.models import Column, Index, TableDefinition
from schema_designer.schema.session import EditSession, SchemaEditError


@pytest.fixture
def session() -> EditSession:
    definition = TableDefinition(
        columns=(
            Column(id=1, name="id", data_type="INT", primary_key=True, nullable=False),
            Column(id=2, name="email", data_type="VARCHAR", length=255, nullable=False),
            Column(id=3, name="first_name", data_type="VARCHAR", length=50),
            Column(id=4, name="last_name", data_type="VARCHAR", length=50),
        ),
        indexes=(Index(name="idx_email", columns=("email",)),),
    )
    return EditSession.open("shop", "users", definition)


# ============================================================================
# Lifecycle
# ============================================================================


class TestLifecycle:
    """Opening, discarding and resetting."""

    def test_open_starts_without_changes(self, session: EditSession) -> None:
        assert session.working == session.snapshot
        assert session.has_changes is False
        assert session.compile().to_sql() == "-- No changes detected."

    def test_edits_leave_snapshot_untouched(self, session: EditSession) -> None:
        before = session.snapshot
        session.rename_column(2, "mail")
        assert session.snapshot is before
        assert session.snapshot.column(2).name == "email"

    def test_discard(self, session: EditSession) -> None:
        session.drop_column(3)
        session.discard()
        assert session.has_changes is False

    def test_reset_after_push(self, session: EditSession) -> None:
        session.rename_column(2, "mail")
        reloaded = TableDefinition(columns=(Column(id=10, name="mail", data_type="VARCHAR", length=255),))
        session.reset(reloaded)

        assert session.snapshot == reloaded
        assert session.has_changes is False

    def test_schema_edit_error_is_value_error(self) -> None:
        assert issubclass(SchemaEditError, ValueError)


# ============================================================================
# Columns
# ============================================================================


class TestColumns:
    """Column operations."""

    def test_add_column(self, session: EditSession) -> None:
        col = session.add_column("created_at", "timestamp")

        assert col.data_type == "TIMESTAMP"
        assert col.original_name == "created_at"
        assert session.compile().statements == [
            "ALTER TABLE `users` ADD COLUMN `created_at` TIMESTAMP NULL;"
        ]

    def test_add_then_rename_is_single_add(self, session: EditSession) -> None:
        col = session.add_column("created", "TIMESTAMP")
        session.rename_column(col.id, "created_at")
        assert session.compile().statements == [
            "ALTER TABLE `users` ADD COLUMN `created_at` TIMESTAMP NULL;"
        ]

    def test_add_column_requires_name(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="column name"):
            session.add_column("  ", "INT")

    def test_add_column_requires_type(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="data type"):
            session.add_column("a", "")

    def test_add_duplicate_name(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="already exists"):
            session.add_column("email", "INT")

    def test_rename(self, session: EditSession) -> None:
        session.rename_column(2, "mail")
        assert session.compile().statements == [
            "ALTER TABLE `users` CHANGE COLUMN `email` `mail` VARCHAR(255) NOT NULL;"
        ]

    def test_rename_to_existing_name(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="already exists"):
            session.rename_column(2, "first_name")

    def test_update_keeps_id(self, session: EditSession) -> None:
        updated = session.update_column(3, length=100, nullable=False)
        assert updated.id == 3
        assert updated.original_name == "first_name"
        assert session.compile().statements == [
            "ALTER TABLE `users` CHANGE COLUMN `first_name` `first_name` VARCHAR(100) NOT NULL;"
        ]

    def test_update_rejects_identity_fields(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="cannot change"):
            session.update_column(2, id=99)
        with pytest.raises(SchemaEditError, match="cannot change"):
            session.update_column(2, original_name="x")

    def test_update_rejects_unknown_fields(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="Unknown column attribute"):
            session.update_column(2, colour="red")

    def test_update_coerces_form_values(self, session: EditSession) -> None:
        """String flags from a form are validated, not stored verbatim."""
        updated = session.update_column(2, nullable="false", unique="0")
        assert updated.nullable is False
        assert updated.unique is False
        assert session.has_changes is False

    def test_update_rejects_invalid_values(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="Invalid column attribute"):
            session.update_column(2, nullable="maybe")
        assert session.working.column(2).nullable is False

    def test_update_normalizes_data_type(self, session: EditSession) -> None:
        updated = session.update_column(2, data_type=" varchar ")
        assert updated.data_type == "VARCHAR"
        assert session.compile().statements == []

    def test_update_rejects_empty_data_type(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="data type"):
            session.update_column(2, data_type="  ")

    def test_update_unknown_column(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="not found"):
            session.update_column(42, name="x")

    def test_drop_column(self, session: EditSession) -> None:
        session.drop_column(4)
        assert session.compile().statements == ["ALTER TABLE `users` DROP COLUMN `last_name`;"]

    def test_toggle_unique(self, session: EditSession) -> None:
        session.update_column(3, unique=True)
        assert session.compile().statements == [
            "CREATE UNIQUE INDEX `uq_first_name` ON `users` (`first_name`);"
        ]


# ============================================================================
# Indexes, foreign keys, triggers
# ============================================================================


class TestIndexes:
    """Index operations."""

    def test_add_composite_index(self, session: EditSession) -> None:
        index = session.add_index("idx_name", ["last_name", "first_name"])

        assert index.columns == ("last_name", "first_name")
        assert index.type == "BTREE"
        assert session.compile().statements == [
            "CREATE INDEX `idx_name` ON `users` (`last_name`, `first_name`);"
        ]

    def test_add_unique_index(self, session: EditSession) -> None:
        session.add_index("uq_name", ["first_name", "last_name"], "UNIQUE")
        assert session.compile().statements == [
            "CREATE UNIQUE INDEX `uq_name` ON `users` (`first_name`, `last_name`);"
        ]

    def test_add_fulltext_index(self, session: EditSession) -> None:
        session.add_index("ft_name", ["first_name"], "FULLTEXT")
        assert session.compile().statements == [
            "CREATE FULLTEXT INDEX `ft_name` ON `users` (`first_name`);"
        ]

    @pytest.mark.parametrize(
        "name,columns,message",
        [
            ("", ["email"], "Please enter an index name."),
            ("idx_x", [], "Please select at least one column."),
            ("idx_email", ["email"], "Index name already exists."),
        ],
    )
    def test_add_index_validation(self, session: EditSession, name, columns, message) -> None:
        with pytest.raises(SchemaEditError, match=message):
            session.add_index(name, columns)

    def test_add_index_unknown_type(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="Unknown index type"):
            session.add_index("idx_x", ["email"], "SPATIAL")

    def test_drop_index(self, session: EditSession) -> None:
        session.drop_index("idx_email")
        assert session.compile().statements == ["DROP INDEX `idx_email` ON `users`;"]

    def test_drop_missing_index(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="not found"):
            session.drop_index("idx_nope")


class TestForeignKeys:
    """Foreign key operations."""

    def test_add_and_drop(self, session: EditSession) -> None:
        session.add_foreign_key("fk_user_org", "org_id", "orgs", "id")
        assert session.compile().statements == [
            "ALTER TABLE `users` ADD CONSTRAINT `fk_user_org` FOREIGN KEY (`org_id`) REFERENCES `orgs` (`id`);"
        ]

        session.drop_foreign_key("fk_user_org")
        assert session.has_changes is False

    def test_all_fields_required(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="Please fill in all fields."):
            session.add_foreign_key("fk_x", "", "orgs", "id")

    def test_duplicate_constraint_name(self, session: EditSession) -> None:
        session.add_foreign_key("fk_user_org", "org_id", "orgs", "id")
        with pytest.raises(SchemaEditError, match="Constraint name exists."):
            session.add_foreign_key("fk_user_org", "team_id", "teams", "id")


class TestTriggers:
    """Trigger operations."""

    def test_add_trigger(self, session: EditSession) -> None:
        trigger = session.add_trigger("trg_lower", "before", "insert", "SET NEW.email = LOWER(NEW.email);")

        assert trigger.timing == "BEFORE"
        assert trigger.event == "INSERT"
        assert session.compile().statements == [
            "CREATE TRIGGER `trg_lower` BEFORE INSERT ON `users` FOR EACH ROW\n"
            "BEGIN\nSET NEW.email = LOWER(NEW.email);\nEND;"
        ]

    def test_invalid_timing(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="timing"):
            session.add_trigger("trg", "INSTEAD OF", "INSERT", "")

    def test_invalid_event(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="event"):
            session.add_trigger("trg", "AFTER", "TRUNCATE", "")

    def test_duplicate_name(self, session: EditSession) -> None:
        session.add_trigger("trg", "AFTER", "UPDATE", "SET @a = 1;")
        with pytest.raises(SchemaEditError, match="Trigger name already exists."):
            session.add_trigger("trg", "AFTER", "DELETE", "SET @a = 2;")

    def test_drop_missing_trigger(self, session: EditSession) -> None:
        with pytest.raises(SchemaEditError, match="not found"):
            session.drop_trigger("trg_nope")
