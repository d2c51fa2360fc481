"""Main entry point for sysprune."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from . import privilege
from .config import SysPruneConfig
from .daemon import PruneDaemon
from .errors import ConfigurationError, ElevationError
from .errorsink import ErrorSink
from .executor import CleanerExecutor
from .locations import Platform
from .log import setup_logging
from .report import human_bytes, render_cleanup, render_errors, render_prune

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NOPERM = 77  # sysexits EX_NOPERM
EXIT_CONFIG = 78  # sysexits EX_CONFIG

logger = logging.getLogger("sysprune")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments.

    """
    parser = argparse.ArgumentParser(
        prog="sysprune",
        description="Prune old backups and clean up OS junk files",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug output on the console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    clean_parser = subparsers.add_parser("clean", help="Run the OS cleanup catalogue")
    clean_parser.add_argument(
        "--dry-run",
        "-n",
        action="store_true",
        help="Report what would be removed without deleting anything",
    )
    clean_parser.add_argument(
        "--cleaner",
        action="append",
        dest="cleaners",
        default=None,
        metavar="NAME",
        help="Run only this cleaner (repeatable)",
    )
    clean_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero if any file could not be removed",
    )

    prune_parser = subparsers.add_parser("prune", help="Apply the retention policy to backup sources")
    prune_parser.add_argument("--dry-run", "-n", action="store_true", help="Do not delete anything")
    prune_parser.add_argument(
        "--source",
        action="append",
        dest="sources",
        default=None,
        metavar="NAME",
        help="Prune only this source (repeatable)",
    )
    prune_parser.add_argument("--strict", action="store_true", help="Exit non-zero on any recorded error")

    watch_parser = subparsers.add_parser("watch", help="Prune local sources whenever new exports land")
    watch_parser.add_argument("--dry-run", "-n", action="store_true", help="Do not delete anything")

    subparsers.add_parser("list", help="List the cleaner catalogue")

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_parser.add_argument(
        "--init",
        action="store_true",
        help="Create default configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        help="Show current configuration",
    )

    return parser.parse_args(argv)


def _install_cancel(loop: asyncio.AbstractEventLoop, callback) -> None:
    try:
        loop.add_signal_handler(signal.SIGINT, callback)
    except (NotImplementedError, RuntimeError):
        # Windows event loops have no signal handler support.
        logger.debug("Signal handlers unavailable; Ctrl+C will abort immediately")


def cmd_clean(config: SysPruneConfig, args: argparse.Namespace, console: Console) -> int:
    """Execute clean command.

    Returns:
        Exit code.

    """
    if args.cleaners:
        config.cleaners_enabled = list(args.cleaners)
    cleaners = config.catalogue()

    sink = ErrorSink()
    executor = CleanerExecutor(
        sink,
        max_workers=config.max_workers,
        privilege_check=privilege.check,
    )

    async def _run():
        _install_cancel(asyncio.get_running_loop(), executor.cancel)
        return await executor.run(cleaners, dry_run=args.dry_run)

    report = asyncio.run(_run())
    render_cleanup(report, console)
    entries = sink.drain()
    render_errors(entries, console)

    if report.all_failed:
        return EXIT_FAILURE
    if args.strict and (entries or report.errors):
        return EXIT_FAILURE
    return EXIT_OK


def cmd_prune(config: SysPruneConfig, args: argparse.Namespace, console: Console) -> int:
    """Execute prune command.

    Returns:
        Exit code.

    """
    if args.sources:
        config.sources = [config.source(name) for name in args.sources]
    if not config.sources:
        console.print("[yellow]No sources configured[/yellow]")
        return EXIT_OK

    sink = ErrorSink()
    daemon = PruneDaemon(config, sink, dry_run=args.dry_run)

    async def _run():
        _install_cancel(asyncio.get_running_loop(), daemon.stop)
        return await daemon.run_once()

    reports = asyncio.run(_run())
    if daemon.cancelled:
        console.print("[yellow]Interrupted; remaining deletions were skipped[/yellow]")

    render_prune(reports, console)
    entries = sink.drain()
    render_errors(entries, console)

    if reports and all(r.failed for r in reports):
        return EXIT_FAILURE
    if args.strict and entries:
        return EXIT_FAILURE
    return EXIT_OK


def cmd_watch(config: SysPruneConfig, args: argparse.Namespace, console: Console) -> int:
    """Execute watch command.

    Returns:
        Exit code.

    """
    sink = ErrorSink()
    daemon = PruneDaemon(config, sink, dry_run=args.dry_run)
    if not daemon.watcher.sources:
        console.print("[yellow]No local or vault sources to watch[/yellow]")
        return EXIT_OK

    asyncio.run(daemon.run_daemon())
    console.print(
        f"Removed {daemon.stats.resources_removed} resources in {daemon.stats.passes} passes, "
        f"freeing {human_bytes(daemon.stats.bytes_freed)}"
    )
    render_errors(sink.drain(), console)
    return EXIT_OK


def cmd_list(config: SysPruneConfig, console: Console) -> int:
    platform = Platform.current()
    table = Table(title=f"Cleaners ({platform.value})")
    table.add_column("Name", style="cyan")
    table.add_column("Supported")
    table.add_column("Locations", justify="right")
    table.add_column("Description", style="dim")

    for cleaner in config.catalogue():
        supported = cleaner.supported(platform)
        table.add_row(
            cleaner.name,
            "[green]yes[/green]" if supported else "[dim]no[/dim]",
            str(len(cleaner.locations_for(platform))),
            cleaner.description,
        )
    console.print(table)
    return EXIT_OK


def cmd_config(config: SysPruneConfig, args: argparse.Namespace, console: Console) -> int:
    """Execute config command.

    Returns:
        Exit code.

    """
    if args.init:
        config_path = args.config or SysPruneConfig.get_config_path()
        if config_path.exists():
            console.print(f"[yellow]Config already exists: {config_path}[/yellow]")
            return EXIT_FAILURE
        config.save(config_path)
        console.print(f"[green]Created config: {config_path}[/green]")
        return EXIT_OK

    if args.show:
        policy = config.retention
        table = Table(title="Current Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Retention enabled", str(policy.enabled))
        table.add_row("Max age", f"{policy.max_age_days} days")
        table.add_row("Weekly keep", str(policy.weekly_keep))
        table.add_row("Monthly keep", str(policy.monthly_keep))
        table.add_row("Minimum kept", str(policy.min_keep_count))
        table.add_row("Cleaners", ", ".join(c.name for c in config.catalogue()))
        table.add_row("Sources", "\n".join(repr(s) for s in config.sources) or "-")
        table.add_row("Max workers", str(config.max_workers))
        table.add_row("Log file", str(config.log_file))
        table.add_row("Log level", config.log_level)

        console.print(table)
        return EXIT_OK

    console.print("[yellow]Use --init or --show[/yellow]")
    return EXIT_FAILURE


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code.

    """
    args = parse_args(argv)
    console = Console()

    try:
        config = SysPruneConfig.load(args.config)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error: {exc}[/red]")
        return EXIT_CONFIG

    command = args.command or "list"
    if command in ("clean", "prune", "watch"):
        setup_logging(config.log_level, config.log_file, verbose=args.verbose)

    try:
        if command == "clean":
            return cmd_clean(config, args, console)
        elif command == "prune":
            return cmd_prune(config, args, console)
        elif command == "watch":
            return cmd_watch(config, args, console)
        elif command == "list":
            return cmd_list(config, console)
        elif command == "config":
            return cmd_config(config, args, console)
        else:
            console.print(f"Unknown command: {command}")
            return EXIT_FAILURE
    except ElevationError as exc:
        console.print(f"[red]{exc}[/red]")
        return EXIT_NOPERM
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error: {exc}[/red]")
        return EXIT_CONFIG
    except Exception:
        logger.exception("Unrecovered error")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
