"""Table schema editing, change plan compilation, and push.

Provides the entity model (``Column``, ``Index``, ``ForeignKey``,
``Trigger``, ``TableDefinition``), the change plan compiler
(``compile_change_plan``), the editing session (``EditSession``), live
table introspection (``TableIntrospector``), and plan execution
(``push_plan``, ``split_statements``).

Usage:
    from schema_designer.schema import EditSession, compile_change_plan
    from schema_designer.schema import TableIntrospector, push_plan
"""

from schema_designer.schema.introspector import TableIntrospector
from schema_designer.schema.models import (
    Column,
    ConnectionResult,
    ForeignKey,
    Index,
    IndexRow,
    TableDefinition,
    Trigger,
)
from schema_designer.schema.normalizer import group_index_rows, rows_for_index
from schema_designer.schema.plan import ChangePlan, compile_change_plan
from schema_designer.schema.push import PushResult, push_plan, push_script, split_statements
from schema_designer.schema.risk import LockWarning, assess_statements
from schema_designer.schema.session import EditSession, SchemaEditError

__all__ = [
    "Column",
    "IndexRow",
    "Index",
    "ForeignKey",
    "Trigger",
    "TableDefinition",
    "ConnectionResult",
    "group_index_rows",
    "rows_for_index",
    "compile_change_plan",
    "ChangePlan",
    "LockWarning",
    "assess_statements",
    "EditSession",
    "SchemaEditError",
    "TableIntrospector",
    "push_plan",
    "push_script",
    "split_statements",
    "PushResult",
]
