"""Database adapters package.

Provides the ``DatabaseClient`` Protocol and the async MySQL adapter.

Usage:
    from schema_designer.adapters import DatabaseClient, AsyncMySQLAdapter
"""

from schema_designer.adapters.base import DatabaseClient
from schema_designer.adapters.mysql import AsyncMySQLAdapter

__all__ = [
    "DatabaseClient",
    "AsyncMySQLAdapter",
]
