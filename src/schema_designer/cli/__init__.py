"""CLI module for the table schema designer.

Provides commands for database profile management, table inspection,
change plan compilation, and pushing a plan to the server.

Usage:
    DB_PROFILE=local schema-designer connect
    schema-designer status
    schema-designer profiles
    schema-designer inspect --database shop --table users --output users.json
    schema-designer plan --database shop --table users --snapshot users.json --working users.edit.json
    schema-designer push --database shop --table users --snapshot users.json --working users.edit.json --confirm

Commands:
    connect   - Connect to the profile's server and remember the profile
    status    - Show current connection status
    profiles  - List available profiles
    inspect   - Load one table's structure as a JSON definition
    plan      - Compile the DDL that turns a snapshot into a working set
    push      - Execute the compiled plan on the server
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from schema_designer.config.loader import load_db_config
from schema_designer.factory import (
    ProfileNotFoundError,
    connect,
    get_active_profile_name,
    get_adapter,
    read_profile_lock,
)
from schema_designer.schema.introspector import TableIntrospector
from schema_designer.schema.models import TableDefinition
from schema_designer.schema.plan import ChangePlan, compile_change_plan
from schema_designer.schema.push import push_plan

console = Console()


# ============================================================================
# Definition files (CLI-internal helpers)
# ============================================================================


def _load_definition(path: str | Path) -> TableDefinition:
    """Read a table definition written by ``inspect``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a valid definition.
    """
    definition_path = Path(path)
    if not definition_path.exists():
        raise FileNotFoundError(f"Definition file not found: {definition_path}")
    return TableDefinition.model_validate_json(definition_path.read_text())


def _compile_from_files(args: argparse.Namespace) -> ChangePlan | None:
    """Compile a plan from ``--snapshot`` and ``--working``, or print the error."""
    try:
        snapshot = _load_definition(args.snapshot)
        working = _load_definition(args.working)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return None
    return compile_change_plan(args.database, args.table, snapshot, working)


def _print_plan(plan: ChangePlan) -> None:
    console.print(plan.to_sql(), markup=False, highlight=False, soft_wrap=True)

    if plan.warnings:
        console.print()
        warn_table = Table(title="Lock Risk", show_header=True, header_style="bold")
        warn_table.add_column("Severity")
        warn_table.add_column("Statement")
        for warning in plan.warnings:
            style = "bold red" if warning.severity == "high" else "yellow"
            warn_table.add_row(f"[{style}]{warning.severity}[/{style}]", warning.statement)
        console.print(warn_table)


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_connect(args: argparse.Namespace) -> int:
    """Async implementation for connect command.

    Args:
        args: Parsed arguments with env_prefix.

    Returns:
        0 on success, 1 on failure.
    """
    env_prefix = getattr(args, "env_prefix", "")

    previous_profile = read_profile_lock()

    console.print("Connecting to database...", style="dim")

    result = await connect(env_prefix=env_prefix)

    if result.success:
        console.print()
        console.print(
            f"[bold green]v[/bold green] Connected to profile: "
            f"[bold cyan]{result.profile_name}[/bold cyan]"
        )
        console.print(f"  Server version: {result.server_version}")

        if previous_profile and previous_profile != result.profile_name:
            console.print(
                f"\n[dim]Switched from[/dim] [bold]{previous_profile}[/bold] "
                f"[dim]to[/dim] [bold cyan]{result.profile_name}[/bold cyan]"
            )

        return 0
    else:
        console.print()
        console.print(f"[bold red]x[/bold red] {result.error}")
        return 1


async def _async_inspect(args: argparse.Namespace) -> int:
    """Async implementation for inspect command.

    Args:
        args: Parsed arguments with database, table, output and env_prefix.

    Returns:
        0 on success, 1 on failure.
    """
    env_prefix = getattr(args, "env_prefix", "")

    try:
        adapter = await get_adapter(env_prefix=env_prefix)
    except (ProfileNotFoundError, KeyError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        async with TableIntrospector(client=adapter) as introspector:
            definition = await introspector.load_table(args.database, args.table)
    except LookupError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] Connection failed: {e}")
        return 1
    finally:
        await adapter.close()

    col_table = Table(
        title=f"{args.database}.{args.table}", show_header=True, header_style="bold"
    )
    col_table.add_column("Column")
    col_table.add_column("Type")
    col_table.add_column("Null")
    col_table.add_column("Key")
    col_table.add_column("Default")
    for column in definition.columns:
        col_type = column.data_type + (f"({column.length})" if column.length else "")
        key = "PRI" if column.primary_key else ("UNI" if column.unique else "")
        col_table.add_row(
            column.name,
            col_type,
            "YES" if column.nullable else "NO",
            key,
            column.default_value or "",
        )
    console.print(col_table)
    console.print(
        f"  Indexes: {len(definition.indexes)}  "
        f"Foreign keys: {len(definition.foreign_keys)}  "
        f"Triggers: {len(definition.triggers)}"
    )

    payload = definition.model_dump_json(indent=2)
    if args.output:
        Path(args.output).write_text(payload + "\n")
        console.print(
            f"\n[bold green]v[/bold green] Definition written to [cyan]{args.output}[/cyan]"
        )
        console.print(
            "[dim]Copy it, edit the copy, then run[/dim] "
            "[cyan]schema-designer plan --snapshot <file> --working <copy>[/cyan]"
        )
    else:
        console.print(payload, markup=False, highlight=False, soft_wrap=True)

    return 0


async def _async_push(args: argparse.Namespace) -> int:
    """Async implementation for push command.

    Args:
        args: Parsed arguments with database, table, snapshot, working,
            confirm, force and env_prefix.

    Returns:
        0 on success, 1 on failure.
    """
    env_prefix = getattr(args, "env_prefix", "")

    try:
        profile = get_active_profile_name(env_prefix=env_prefix)
    except ProfileNotFoundError:
        console.print("[yellow]No profile configured.[/yellow]")
        console.print(
            "[dim]Run[/dim] [cyan]DB_PROFILE=<name> schema-designer push "
            "--snapshot <file> --working <file>[/cyan]"
        )
        return 1

    plan = _compile_from_files(args)
    if plan is None:
        return 1

    if not plan.has_changes:
        console.print(plan.to_sql(), markup=False, highlight=False, soft_wrap=True)
        return 0

    console.print(f"Push plan for profile: [bold cyan]{profile}[/bold cyan]")
    console.print()
    _print_plan(plan)

    if not args.confirm:
        console.print()
        console.print(
            "[dim]To execute these statements, add[/dim] [cyan]--confirm[/cyan] "
            "[dim]flag.[/dim]"
        )
        return 0

    try:
        config = load_db_config()
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        adapter = await get_adapter(profile_name=profile, env_prefix=env_prefix)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] Connection failed: {e}")
        return 1

    console.print()
    console.print("[bold]Pushing changes...[/bold]")

    try:
        result = await push_plan(
            adapter,
            plan,
            dry_run=False,
            confirm=True,
            lock_guard=config.lock_guard,
            force=args.force,
        )
    finally:
        await adapter.close()

    if result.success:
        console.print()
        console.print(
            f"[bold green]v[/bold green] Executed {result.statements_executed} "
            f"statement(s) on [cyan]{args.database}.{args.table}[/cyan]"
        )
        console.print(
            "[dim]Run[/dim] [cyan]schema-designer inspect[/cyan] "
            "[dim]again before the next edit.[/dim]"
        )
        return 0

    console.print()
    console.print(f"[bold red]x[/bold red] {result.error}")
    if result.failed_statement:
        console.print(
            f"  Executed {result.statements_executed} of {result.statements_total} "
            f"statement(s) before the failure; they were not rolled back."
        )
        console.print(f"  Failed statement: {result.failed_statement}", markup=False, soft_wrap=True)
    elif not args.force:
        console.print("[dim]Add[/dim] [cyan]--force[/cyan] [dim]to push anyway.[/dim]")
    return 1


# ============================================================================
# Sync command wrappers
# ============================================================================


def cmd_connect(args: argparse.Namespace) -> int:
    """Connect to the profile's server.

    Wraps the async implementation with ``asyncio.run()``.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on failure.
    """
    return asyncio.run(_async_connect(args))


def cmd_status(args: argparse.Namespace) -> int:
    """Show current connection status.

    Reads only local files (lock file and TOML config) -- no database calls.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 always (informational command).
    """
    profile = read_profile_lock()

    if profile:
        table = Table(title="Connection Status", show_header=False)
        table.add_column("Key", style="dim")
        table.add_column("Value")

        table.add_row("Current profile", f"[bold cyan]{profile}[/bold cyan]")
        table.add_row("Profile source", ".db-profile")

        try:
            config = load_db_config()
            if profile in config.profiles:
                p = config.profiles[profile]
                table.add_row("Provider", p.provider)
                if p.description:
                    table.add_row("Description", p.description)
            table.add_row("Lock guard", "on" if config.lock_guard else "off")
        except FileNotFoundError:
            table.add_row("Warning", "[yellow]db.toml not found[/yellow]")

        console.print(table)
    else:
        console.print("[yellow]No connected profile.[/yellow]")
        console.print(
            "[dim]Run:[/dim] [cyan]DB_PROFILE=<name> schema-designer connect[/cyan]"
        )

    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Reads only local TOML config -- no database calls.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 if db.toml not found.
    """
    try:
        config = load_db_config()
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    current = read_profile_lock()

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Provider")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.provider,
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = current profile")

    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """Load one table's structure.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_inspect(args))


def cmd_plan(args: argparse.Namespace) -> int:
    """Print the change plan for a snapshot and a working set.

    Reads only local files -- no database calls.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 if a definition file cannot be read.
    """
    plan = _compile_from_files(args)
    if plan is None:
        return 1
    _print_plan(plan)
    return 0


def cmd_push(args: argparse.Namespace) -> int:
    """Execute the change plan on the server.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_push(args))


# ============================================================================
# Main entry point
# ============================================================================


def _add_plan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--database", required=True, help="Database (schema) name")
    parser.add_argument("--table", required=True, help="Table name")
    parser.add_argument(
        "--snapshot",
        required=True,
        help="Definition file as loaded from the server (from inspect)",
    )
    parser.add_argument(
        "--working",
        required=True,
        help="Edited copy of the snapshot definition file",
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="schema-designer",
        description="Table schema designer: inspect, plan and push DDL changes",
    )

    # Global options
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # connect command
    p_connect = subparsers.add_parser(
        "connect",
        help="Connect to the profile's server and remember the profile",
    )
    p_connect.set_defaults(func=cmd_connect)

    # status command
    p_status = subparsers.add_parser(
        "status",
        help="Show current connection status",
    )
    p_status.set_defaults(func=cmd_status)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    # inspect command
    p_inspect = subparsers.add_parser(
        "inspect",
        help="Load one table's structure as a JSON definition",
    )
    p_inspect.add_argument("--database", required=True, help="Database (schema) name")
    p_inspect.add_argument("--table", required=True, help="Table name")
    p_inspect.add_argument("--output", help="Write the definition to this file")
    p_inspect.set_defaults(func=cmd_inspect)

    # plan command
    p_plan = subparsers.add_parser(
        "plan",
        help="Compile the DDL that turns a snapshot into a working set",
    )
    _add_plan_arguments(p_plan)
    p_plan.set_defaults(func=cmd_plan)

    # push command
    p_push = subparsers.add_parser(
        "push",
        help="Execute the compiled plan on the server",
    )
    _add_plan_arguments(p_push)
    p_push.add_argument(
        "--confirm",
        action="store_true",
        help="Execute the statements",
    )
    p_push.add_argument(
        "--force",
        action="store_true",
        help="Push even if the lock guard flags high lock-risk statements",
    )
    p_push.set_defaults(func=cmd_push)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
