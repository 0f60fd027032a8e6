"""Command line interface for tenant provisioning and migrations.

Usage:
    tenantctl provision <org_id>
    tenantctl migrate-master [--dry]
    tenantctl rollback-master
    tenantctl migrate-all-tenants
    tenantctl rollback-all-tenants

Each command is also installed as its own script (provision-tenant,
migrate-master, rollback-master, migrate-all-tenants, rollback-all-tenants).

Exit codes: 0 on success, 1 on any failure. Fleet commands exit 0 even when
individual tenants fail; the summary table and the logs list them.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog
from dotenv import load_dotenv
from rich import box
from rich.console import Console
from rich.table import Table

from infrastructure.database import ConnectionFactory
from infrastructure.logging import configure_logging
from infrastructure.version import get_version
from tenancy.application.services import FleetRunReport
from tenancy.dependencies import (
    get_connection_factory,
    get_fleet_service,
    get_master_migration_service,
    get_provisioning_service,
)

console = Console()

Command = Callable[[ConnectionFactory, argparse.Namespace], Awaitable[int]]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one sub-command per operation."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug events"
    )
    common.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this file first",
    )

    parser = argparse.ArgumentParser(
        prog="tenantctl",
        description="Provision and migrate schema-per-tenant PostgreSQL databases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s provision org_42
  %(prog)s migrate-master --dry
  %(prog)s migrate-all-tenants
        """,
    )
    parser.add_argument("--version", action="version", version=get_version())
    subparsers = parser.add_subparsers(dest="command", required=True)

    provision = subparsers.add_parser(
        "provision", parents=[common], help="Provision one tenant schema"
    )
    provision.add_argument("org_id", help="External organization identifier")

    migrate_master = subparsers.add_parser(
        "migrate-master", parents=[common], help="Apply pending master migrations"
    )
    migrate_master.add_argument(
        "--dry",
        action="store_true",
        help="List pending migrations without applying them",
    )

    subparsers.add_parser(
        "rollback-master", parents=[common], help="Revert the last master batch"
    )
    subparsers.add_parser(
        "migrate-all-tenants",
        parents=[common],
        help="Apply pending tenant migrations to every tenant",
    )
    subparsers.add_parser(
        "rollback-all-tenants",
        parents=[common],
        help="Revert the last tenant batch of every tenant",
    )
    return parser


async def _provision(factory: ConnectionFactory, args: argparse.Namespace) -> int:
    result = await get_provisioning_service(factory).provision_tenant(args.org_id)
    if result.is_empty:
        console.print(
            f"[green]Tenant {args.org_id} is active[/green] "
            f"[dim](already at batch {result.batch})[/dim]"
        )
    else:
        console.print(
            f"[green]Tenant {args.org_id} provisioned[/green] "
            f"[dim](batch {result.batch}: {len(result.files)} migrations)[/dim]"
        )
    return 0


async def _migrate_master(factory: ConnectionFactory, args: argparse.Namespace) -> int:
    result = await get_master_migration_service(factory).migrate(dry_run=args.dry)
    if result.dry_run:
        if not result.files:
            console.print("[green]Master schema is up to date[/green]")
        else:
            console.print(f"[bold]{len(result.files)} pending master migrations:[/bold]")
            for name in result.files:
                console.print(f"  {name}")
        return 0

    if not result.files:
        console.print(
            f"[green]Master schema is up to date[/green] [dim](batch {result.batch})[/dim]"
        )
    else:
        console.print(
            f"[green]Batch {result.batch} applied[/green] "
            f"[dim]({len(result.files)} migrations)[/dim]"
        )
    return 0


async def _rollback_master(factory: ConnectionFactory, args: argparse.Namespace) -> int:
    result = await get_master_migration_service(factory).rollback()
    if result.is_empty:
        console.print("[yellow]Nothing to roll back[/yellow]")
    else:
        console.print(
            f"[green]Batch {result.batch} rolled back[/green] "
            f"[dim]({len(result.files)} migrations)[/dim]"
        )
    return 0


async def _migrate_all_tenants(
    factory: ConnectionFactory, args: argparse.Namespace
) -> int:
    report = await get_fleet_service(factory).migrate_all_tenants()
    render_fleet_report(report)
    return 0


async def _rollback_all_tenants(
    factory: ConnectionFactory, args: argparse.Namespace
) -> int:
    report = await get_fleet_service(factory).rollback_all_tenants()
    render_fleet_report(report)
    return 0


COMMANDS: dict[str, Command] = {
    "provision": _provision,
    "migrate-master": _migrate_master,
    "rollback-master": _rollback_master,
    "migrate-all-tenants": _migrate_all_tenants,
    "rollback-all-tenants": _rollback_all_tenants,
}


def render_fleet_report(report: FleetRunReport, output: Console | None = None) -> None:
    """Print a per-schema summary of a fleet run."""
    output = output or console
    if not report.results:
        output.print("[dim]No tenants registered[/dim]")
        return

    table = Table(show_header=True, box=box.SIMPLE, padding=(0, 1))
    table.add_column("Schema", style="bold")
    table.add_column("Status")
    table.add_column("Batch", justify="right")
    table.add_column("Migrations", justify="right")
    table.add_column("Error", style="red", overflow="fold")

    for result in report.results:
        status = "[green]ok[/]" if result.succeeded else "[red]failed[/]"
        table.add_row(
            result.schema_name,
            status,
            "" if result.batch is None else str(result.batch),
            str(len(result.files)),
            result.error or "",
        )

    output.print(table)
    summary_style = "yellow" if report.failed else "green"
    output.print(
        f"[{summary_style}]{report.operation}: {len(report.succeeded)} succeeded, "
        f"{len(report.failed)} failed[/{summary_style}]"
    )


async def run_command(
    args: argparse.Namespace, factory: ConnectionFactory | None = None
) -> int:
    """Run a parsed command, always disposing the connection factory."""
    factory = factory or get_connection_factory()
    try:
        return await COMMANDS[args.command](factory, args)
    finally:
        await factory.dispose()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    if args.env_file is not None:
        load_dotenv(args.env_file)
    configure_logging(verbose=args.verbose)
    structlog.contextvars.bind_contextvars(
        run_id=uuid.uuid4().hex, command=args.command
    )

    try:
        return asyncio.run(run_command(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        return 130
    except Exception as e:
        structlog.get_logger().error(
            "command_failed", error=str(e), error_type=type(e).__name__
        )
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1
    finally:
        structlog.contextvars.clear_contextvars()


def _alias(command: str) -> Callable[[], int]:
    def entry_point() -> int:
        return main([command, *sys.argv[1:]])

    entry_point.__name__ = command.replace("-", "_")
    entry_point.__doc__ = f"Entry point for ``tenantctl {command}``."
    return entry_point


provision_tenant = _alias("provision")
migrate_master = _alias("migrate-master")
rollback_master = _alias("rollback-master")
migrate_all_tenants = _alias("migrate-all-tenants")
rollback_all_tenants = _alias("rollback-all-tenants")


if __name__ == "__main__":
    sys.exit(main())
