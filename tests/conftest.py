"""Shared fixtures: a fake DatabaseClient for introspection.

The fake answers each information_schema query with canned rows in
the shape the aliased SELECTs return.
"""

from unittest.mock import AsyncMock

import pytest

COLUMN_ROWS = [
    {
        "name": "id",
        "data_type": "int",
        "column_type": "int",
        "char_length": None,
        "numeric_precision": 10,
        "column_default": None,
        "is_nullable": "NO",
        "column_key": "PRI",
        "extra": "auto_increment",
    },
    {
        "name": "email",
        "data_type": "varchar",
        "column_type": "varchar(255)",
        "char_length": 255,
        "numeric_precision": None,
        "column_default": None,
        "is_nullable": "NO",
        "column_key": "UNI",
        "extra": "",
    },
    {
        "name": "status",
        "data_type": "varchar",
        "column_type": "varchar(20)",
        "char_length": 20,
        "numeric_precision": None,
        "column_default": "new",
        "is_nullable": "YES",
        "column_key": "",
        "extra": "",
    },
]

# DECIMAL scale, ENUM values and UNSIGNED only survive through COLUMN_TYPE
TYPED_COLUMN_ROWS = [
    {
        "name": "price",
        "data_type": "decimal",
        "column_type": "decimal(10,2)",
        "char_length": None,
        "numeric_precision": 10,
        "column_default": "0.00",
        "is_nullable": "NO",
        "column_key": "",
        "extra": "",
    },
    {
        "name": "state",
        "data_type": "enum",
        "column_type": "enum('new','Done')",
        "char_length": 4,
        "numeric_precision": None,
        "column_default": "new",
        "is_nullable": "NO",
        "column_key": "",
        "extra": "",
    },
    {
        "name": "ratio",
        "data_type": "double",
        "column_type": "double",
        "char_length": None,
        "numeric_precision": 22,
        "column_default": None,
        "is_nullable": "YES",
        "column_key": "",
        "extra": "",
    },
    {
        "name": "qty",
        "data_type": "int",
        "column_type": "int unsigned",
        "char_length": None,
        "numeric_precision": 10,
        "column_default": None,
        "is_nullable": "NO",
        "column_key": "",
        "extra": "",
    },
]

INDEX_ROWS = [
    {"name": "PRIMARY", "column_name": "id", "non_unique": 0, "index_type": "BTREE"},
    {"name": "email", "column_name": "email", "non_unique": 0, "index_type": "BTREE"},
    {"name": "idx_status_email", "column_name": "status", "non_unique": 1, "index_type": "BTREE"},
    {"name": "idx_status_email", "column_name": "email", "non_unique": 1, "index_type": "BTREE"},
    {"name": "idx_functional", "column_name": None, "non_unique": 1, "index_type": "BTREE"},
]

FK_ROWS = [
    {
        "constraint_name": "fk_user_org",
        "column_name": "org_id",
        "referenced_table": "orgs",
        "referenced_column": "id",
    },
    {
        "constraint_name": "fk_user_org",
        "column_name": "org_region",
        "referenced_table": "orgs",
        "referenced_column": "region",
    },
]

TRIGGER_ROWS = [
    {
        "name": "trg_lower",
        "timing": "BEFORE",
        "event": "INSERT",
        "statement": "BEGIN\n  SET NEW.email = LOWER(NEW.email);\nEND",
    },
]


class FakeClient:
    """Answers information_schema queries with canned rows."""

    def __init__(self, columns=COLUMN_ROWS) -> None:
        self.answers = {
            "information_schema.COLUMNS": columns,
            "information_schema.STATISTICS": INDEX_ROWS,
            "information_schema.KEY_COLUMN_USAGE": FK_ROWS,
            "information_schema.TRIGGERS": TRIGGER_ROWS,
        }
        self.params: list[dict] = []
        self.close = AsyncMock()

    async def fetch_all(self, sql: str, params=None) -> list[dict]:
        self.params.append(params)
        for marker, rows in self.answers.items():
            if marker in sql:
                return rows
        raise AssertionError(f"Unexpected query: {sql}")

    async def execute(self, sql: str) -> None:
        raise NotImplementedError


@pytest.fixture
def make_client():
    """Factory for ``FakeClient``; pass ``columns=[]`` for a missing table."""
    return FakeClient


@pytest.fixture
def typed_column_rows():
    """COLUMNS rows for DECIMAL, ENUM, DOUBLE and INT UNSIGNED columns."""
    return TYPED_COLUMN_ROWS
