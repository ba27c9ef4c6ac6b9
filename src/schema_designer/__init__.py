"""schema-designer: Table schema editor that compiles edits into MySQL DDL.

Loads a table's structure from a live server, records edits against a
working copy, and compiles the difference into an ordered change plan
that can be reviewed and pushed.

Usage:
    from schema_designer import EditSession, compile_change_plan
    from schema_designer import TableIntrospector, push_plan, get_adapter
    from schema_designer import load_db_config, DatabaseProfile, DatabaseConfig
"""

__version__ = "0.1.0"

# Adapters
from schema_designer.adapters.base import DatabaseClient
from schema_designer.adapters.mysql import AsyncMySQLAdapter

# Config
from schema_designer.config.loader import load_db_config
from schema_designer.config.models import DatabaseConfig, DatabaseProfile

# Factory
from schema_designer.factory import (
    ProfileNotFoundError,
    connect,
    get_adapter,
    resolve_url,
)

# Schema
from schema_designer.schema.introspector import TableIntrospector
from schema_designer.schema.models import (
    Column,
    ForeignKey,
    Index,
    IndexRow,
    TableDefinition,
    Trigger,
)
from schema_designer.schema.plan import ChangePlan, compile_change_plan
from schema_designer.schema.push import PushResult, push_plan
from schema_designer.schema.session import EditSession, SchemaEditError

__all__ = [
    # Adapters
    "DatabaseClient",
    "AsyncMySQLAdapter",
    # Config
    "load_db_config",
    "DatabaseProfile",
    "DatabaseConfig",
    # Factory
    "get_adapter",
    "connect",
    "ProfileNotFoundError",
    "resolve_url",
    # Schema
    "Column",
    "IndexRow",
    "Index",
    "ForeignKey",
    "Trigger",
    "TableDefinition",
    "compile_change_plan",
    "ChangePlan",
    "EditSession",
    "SchemaEditError",
    "TableIntrospector",
    "push_plan",
    "PushResult",
]
