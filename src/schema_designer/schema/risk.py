"""Lock-risk assessment of emitted DDL.

Classifies each statement of a change plan by how likely it is to hold
metadata locks on a busy MySQL table.  Purely textual: the statements
are not parsed, only matched on their leading keywords.
"""

import re
from typing import Literal

from pydantic import BaseModel

Severity = Literal["low", "medium", "high"]

_INDEX_DDL_RE = re.compile(r"^(CREATE\s+(UNIQUE\s+|FULLTEXT\s+)?INDEX|DROP\s+INDEX)\b")
_COLUMN_REWRITE = (" CHANGE COLUMN ", " MODIFY COLUMN ", " DROP COLUMN ")


class LockWarning(BaseModel):
    """A lock-risk warning attached to one statement."""

    severity: Severity
    message: str
    statement: str


def assess_statement(statement: str) -> LockWarning | None:
    """Return the lock-risk warning for one statement, if any.

    Example:
        >>> assess_statement("ALTER TABLE `t` DROP COLUMN `a`;").severity
        'high'
        >>> assess_statement("DROP TRIGGER IF EXISTS `t1`;") is None
        True
    """
    normalized = " ".join(statement.split()).upper()

    if normalized.startswith("ALTER TABLE"):
        if any(marker in normalized for marker in _COLUMN_REWRITE):
            return LockWarning(
                severity="high",
                message=(
                    "ALTER TABLE column change may hold a metadata lock "
                    "and block concurrent writes."
                ),
                statement=statement,
            )
        return LockWarning(
            severity="medium",
            message="ALTER TABLE can create metadata lock waits during execution.",
            statement=statement,
        )

    if _INDEX_DDL_RE.match(normalized):
        return LockWarning(
            severity="medium",
            message="Index operations can increase lock waits during peak traffic.",
            statement=statement,
        )

    return None


def assess_statements(statements: list[str]) -> list[LockWarning]:
    """Warnings for every statement that carries lock risk, in plan order."""
    warnings: list[LockWarning] = []
    for statement in statements:
        warning = assess_statement(statement)
        if warning is not None:
            warnings.append(warning)
    return warnings
