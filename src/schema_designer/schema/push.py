"""Push a change plan to the server.

Executes the statements of a ``ChangePlan`` (or of an edited SQL
script) through the ``DatabaseClient.execute()`` Protocol method, one
at a time and in order.  The first failure stops the push; statements
already applied stay applied, nothing is rolled back.  The plan order
is what keeps a partial push consistent, so it is never changed here.

After a push, successful or not, reload the table and open a new
session: the old snapshot no longer matches the server.

Usage:
    from schema_designer.schema.push import push_plan

    result = await push_plan(adapter, plan, dry_run=False, confirm=True)
    if not result.success:
        print(f"Stopped at: {result.failed_statement}\\n{result.error}")
"""

import logging
import re
from typing import TYPE_CHECKING

from pydantic import BaseModel

from schema_designer.schema.plan import ChangePlan

if TYPE_CHECKING:
    from schema_designer.adapters.base import DatabaseClient

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+")
_NEXT_WORD_RE = re.compile(r"\s+(\w+)")
# END followed by one of these closes a flow-control block, not BEGIN or CASE
_BLOCK_ENDINGS = frozenset({"IF", "LOOP", "WHILE", "REPEAT"})
# BEGIN / BEGIN WORK start a transaction, not a compound statement
_TRANSACTION_BEGIN_RE = re.compile(r"\s*(?:;|WORK\b|$)", re.IGNORECASE)


class PushResult(BaseModel):
    """Result of pushing statements to the server.

    Attributes:
        success: True if every statement was executed (or on a dry run).
        dry_run: True if nothing was sent to the server.
        statements_total: Number of statements in the push.
        statements_executed: Number of statements applied before stopping.
        failed_statement: Statement that failed, if any.
        error: Error message if the push failed or was refused.
    """

    success: bool = False
    dry_run: bool = False
    statements_total: int = 0
    statements_executed: int = 0
    failed_statement: str | None = None
    error: str | None = None


# ------------------------------------------------------------------
# Script splitting
# ------------------------------------------------------------------


def split_statements(script: str) -> list[str]:
    """Split a SQL script into individual statements.

    Drops ``--`` comment lines, splits on ``;`` and discards empty
    fragments.  Semicolons inside quotes (``'``, ``"``, backtick) and
    inside ``BEGIN ... END`` and ``CASE ... END`` blocks do not split,
    so a trigger body stays one statement.  A transaction ``BEGIN;`` or
    ``BEGIN WORK`` is a statement of its own.

    Example:
        >>> split_statements("-- plan\\nDROP INDEX `a` ON `t`;\\n;DROP INDEX `b` ON `t`;")
        ['DROP INDEX `a` ON `t`', 'DROP INDEX `b` ON `t`']
    """
    text = "\n".join(
        line for line in script.splitlines() if not line.strip().startswith("--")
    )

    statements: list[str] = []
    buf: list[str] = []
    quote: str | None = None
    depth = 0
    i = 0

    while i < len(text):
        ch = text[i]

        if quote is not None:
            buf.append(ch)
            if ch == "\\" and quote != "`" and i + 1 < len(text):
                buf.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                if i + 1 < len(text) and text[i + 1] == quote:
                    buf.append(text[i + 1])
                    i += 2
                    continue
                quote = None
            i += 1
            continue

        if ch in ("'", '"', "`"):
            quote = ch
            buf.append(ch)
            i += 1
            continue

        if ch.isalpha() or ch == "_":
            match = _WORD_RE.match(text, i)
            word = match.group(0)
            upper = word.upper()
            if upper == "BEGIN":
                if not _TRANSACTION_BEGIN_RE.match(text, match.end()):
                    depth += 1
            elif upper == "CASE":
                depth += 1
            elif upper == "END" and depth:
                following = _NEXT_WORD_RE.match(text, match.end())
                closes = following.group(1).upper() if following else ""
                if closes not in _BLOCK_ENDINGS:
                    depth -= 1
                if closes in _BLOCK_ENDINGS or closes == "CASE":
                    # Keep the closing keyword from being read as an opener
                    buf.append(text[i : following.end()])
                    i = following.end()
                    continue
            buf.append(word)
            i = match.end()
            continue

        if ch == ";" and depth == 0:
            statement = "".join(buf).strip()
            if statement:
                statements.append(statement)
            buf = []
            i += 1
            continue

        buf.append(ch)
        i += 1

    statement = "".join(buf).strip()
    if statement:
        statements.append(statement)
    return statements


def _strip_terminator(statement: str) -> str:
    text = statement.strip()
    return text[:-1].rstrip() if text.endswith(";") else text


# ------------------------------------------------------------------
# Execution
# ------------------------------------------------------------------


async def push_statements(
    adapter: "DatabaseClient",
    statements: list[str],
    dry_run: bool = True,
    confirm: bool = False,
) -> PushResult:
    """Execute statements sequentially, stopping at the first failure.

    Args:
        adapter: Database adapter implementing ``DatabaseClient`` Protocol.
        statements: Statements in execution order.
        dry_run: If True, only report what would be done.
        confirm: Must be True to actually execute (safety guard).

    Returns:
        ``PushResult`` with outcome.

    Raises:
        RuntimeError: If the adapter does not support DDL operations
            (raises ``NotImplementedError`` on ``execute()``).
    """
    result = PushResult(statements_total=len(statements))

    if not statements:
        result.success = True
        return result

    if dry_run:
        result.success = True
        result.dry_run = True
        return result

    if not confirm:
        result.error = "Push requires confirm=True"
        return result

    for number, statement in enumerate(statements, start=1):
        logger.info("Executing statement %d/%d: %s", number, len(statements), statement)
        try:
            await adapter.execute(_strip_terminator(statement))
        except NotImplementedError:
            raise RuntimeError("DDL operations not supported for this adapter type")
        except Exception as e:
            logger.error("Statement %d failed, stopping push: %s", number, e)
            result.failed_statement = statement
            result.error = f"Failed to push changes: {e}"
            return result
        result.statements_executed += 1

    result.success = True
    return result


async def push_plan(
    adapter: "DatabaseClient",
    plan: ChangePlan,
    dry_run: bool = True,
    confirm: bool = False,
    lock_guard: bool = False,
    force: bool = False,
) -> PushResult:
    """Push a compiled change plan.

    Args:
        adapter: Database adapter implementing ``DatabaseClient`` Protocol.
        plan: Plan from ``compile_change_plan()``.
        dry_run: If True, only report what would be done.
        confirm: Must be True to actually execute.
        lock_guard: Refuse plans with high lock-risk statements...
        force: ...unless this is True.

    Returns:
        ``PushResult`` with outcome.

    Example:
        result = await push_plan(adapter, plan, dry_run=False, confirm=True)
    """
    if lock_guard and not force and not dry_run and plan.high_risk_warnings:
        preview = "\n".join(f"- {w.message} ({w.statement})" for w in plan.high_risk_warnings[:6])
        return PushResult(
            statements_total=plan.statement_count,
            error=f"High lock risk statements detected:\n{preview}",
        )

    return await push_statements(adapter, plan.statements, dry_run=dry_run, confirm=confirm)


async def push_script(
    adapter: "DatabaseClient",
    script: str,
    dry_run: bool = True,
    confirm: bool = False,
) -> PushResult:
    """Push a SQL script (for example an edited ``ChangePlan.to_sql()``)."""
    return await push_statements(adapter, split_statements(script), dry_run=dry_run, confirm=confirm)
