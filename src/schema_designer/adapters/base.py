"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol the introspector and the push
consumer depend on.  All methods are ``async def``.

Usage:
    from schema_designer.adapters.base import DatabaseClient

    async def do_work(client: DatabaseClient) -> None:
        rows = await client.fetch_all("SELECT VERSION() AS version")
        await client.execute("CREATE INDEX `idx_name` ON `users` (`name`)")
        await client.close()
"""

from typing import Any, Protocol


class DatabaseClient(Protocol):
    """Database client interface that all adapters must implement.

    All methods are async -- callers must ``await`` every operation.
    """

    async def fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[dict]:
        """Run a query and return every row.

        Args:
            sql: Query text.  Named parameters use ``:name`` placeholders.
            params: Optional dict of named parameters.

        Returns:
            List of dicts, one per row.  Empty list if no rows.

        Example:
            rows = await client.fetch_all(
                "SELECT COLUMN_NAME FROM information_schema.COLUMNS "
                "WHERE TABLE_SCHEMA = :database",
                {"database": "shop"},
            )
        """
        ...

    async def execute(self, sql: str) -> None:
        """Execute one literal SQL statement (DDL).

        The statement is sent as is, without parameter binding, so
        trigger bodies and default literals reach the server untouched.

        Raises:
            NotImplementedError: If the adapter does not support DDL.

        Example:
            await client.execute(
                "ALTER TABLE `users` ADD COLUMN `email` VARCHAR(255) NULL;"
            )
        """
        ...

    async def close(self) -> None:
        """Close database connection and clean up resources."""
        ...
