"""Command-line interface."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from typer.core import TyperGroup

from ._version import __version__
from .config import load_config, resolve_config_file
from .core import CensusManager, CensusOptions, SyncOperation
from .formatters import OutputFormatter
from .scanner import ScanOptions

logger = structlog.get_logger()

DEFAULT_COMMAND = "status"


class DefaultCommandGroup(TyperGroup):
    """Route arguments that do not start with a command name to ``status``.

    ``git-census ~/projects -s main`` then works like
    ``git-census status ~/projects -s main``.
    """

    def parse_args(self, ctx: typer.Context, args: list[str]) -> list[str]:
        if args and args[0] not in self.commands:
            group_options = {
                opt
                for param in self.get_params(ctx)
                for opt in (*param.opts, *param.secondary_opts)
            }
            if args[0] not in group_options:
                args = [DEFAULT_COMMAND, *args]
        return super().parse_args(ctx, args)


app = typer.Typer(
    name="git-census",
    cls=DefaultCommandGroup,
    help="Take a census of every Git repository under a directory tree.",
    add_completion=False,
)

VERBS = {
    SyncOperation.NONE: "Scanning:",
    SyncOperation.FETCH: "Fetching:",
    SyncOperation.PULL: "Pulling:",
}


def configure_logging(verbose: bool = False) -> None:
    """Route structlog through stdlib logging to stderr."""
    shared_processors: list[structlog.types.Processor] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False),
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        print(f"git-census {__version__}")
        raise typer.Exit()


def get_console_and_formatter(json_output: bool, no_color: bool) -> tuple[Console, OutputFormatter]:
    """Create console and formatter."""
    console = Console(no_color=no_color, highlight=False)
    formatter = OutputFormatter(console, use_json=json_output)
    return console, formatter


def run_command(
    path: Path | None = None,
    operation: SyncOperation = SyncOperation.NONE,
    switch: str | None = None,
    depth: int | None = None,
    include_hidden: bool = False,
    no_color: bool = False,
    json_output: bool = False,
    sequential: bool = False,
    verbose: bool = False,
    timeout: float | None = None,
):
    """Scan, process and report; shared by every command."""
    configure_logging(verbose)
    config_file = resolve_config_file()
    config = load_config(config_file)
    logger.debug("config_loaded", path=str(config_file) if config_file else None)
    console, formatter = get_console_and_formatter(json_output, no_color or config.no_color)

    scan_dir = path if path is not None else (config.default_dir or Path("."))
    try:
        root = scan_dir.expanduser().resolve(strict=True)
    except (OSError, RuntimeError):
        root = None
    if root is None or not root.is_dir():
        console.print(f"[red]Error: cannot resolve path '{escape(str(scan_dir))}'[/]")
        raise typer.Exit(1)

    scan_options = ScanOptions(
        max_depth=max(0, depth if depth is not None else config.max_depth),
        include_hidden=include_hidden,
        extra_skip=frozenset(config.skip_dirs),
    )
    options = CensusOptions(
        switch_branch=switch or None,
        operation=operation,
        username=config.username,
        network_timeout=timeout if timeout is not None else config.timeout,
    )
    manager = CensusManager(root, scan_options, options)

    if not json_output:
        verb = "Switching:" if switch and operation is SyncOperation.NONE else VERBS[operation]
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"[bold]{verb}[/] {escape(str(root))}", total=None)
            table = manager.run(sequential=sequential)
    else:
        table = manager.run(sequential=sequential)

    summary = manager.get_summary(table)
    formatter.print_report(table.records, summary, root, options)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """git-census: status, branch switch, fetch and fast-forward pull for every repository."""
    if ctx.invoked_subcommand is None:
        run_command()


@app.command()
def status(
    path: Path = typer.Argument(
        None,
        help="Root path to scan for repositories (default: config default_dir or .)",
    ),
    switch: str = typer.Option(
        None,
        "--switch",
        "-s",
        help="Switch every clean repository to BRANCH if it exists",
    ),
    depth: int = typer.Option(
        None,
        "--depth",
        "-d",
        help="Maximum search depth (default: 5)",
    ),
    include_hidden: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Include hidden directories",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colours",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
    sequential: bool = typer.Option(
        False,
        "--sequential",
        help="Process repositories one at a time",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log git commands and diagnostics to stderr",
    ),
):
    """Show status of all repositories."""
    run_command(
        path,
        SyncOperation.NONE,
        switch=switch,
        depth=depth,
        include_hidden=include_hidden,
        no_color=no_color,
        json_output=json_output,
        sequential=sequential,
        verbose=verbose,
    )


@app.command()
def fetch(
    path: Path = typer.Argument(
        None,
        help="Root path to scan for repositories (default: config default_dir or .)",
    ),
    switch: str = typer.Option(
        None,
        "--switch",
        "-s",
        help="Switch every clean repository to BRANCH before fetching",
    ),
    depth: int = typer.Option(
        None,
        "--depth",
        "-d",
        help="Maximum search depth (default: 5)",
    ),
    include_hidden: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Include hidden directories",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colours",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
    sequential: bool = typer.Option(
        False,
        "--sequential",
        help="Process repositories one at a time",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log git commands and diagnostics to stderr",
    ),
    timeout: float = typer.Option(
        None,
        "--timeout",
        help="Give up on a fetch after SECONDS (default: wait indefinitely)",
    ),
):
    """Fetch every repository from origin."""
    run_command(
        path,
        SyncOperation.FETCH,
        switch=switch,
        depth=depth,
        include_hidden=include_hidden,
        no_color=no_color,
        json_output=json_output,
        sequential=sequential,
        verbose=verbose,
        timeout=timeout,
    )


@app.command()
def pull(
    path: Path = typer.Argument(
        None,
        help="Root path to scan for repositories (default: config default_dir or .)",
    ),
    switch: str = typer.Option(
        None,
        "--switch",
        "-s",
        help="Switch every clean repository to BRANCH before pulling",
    ),
    depth: int = typer.Option(
        None,
        "--depth",
        "-d",
        help="Maximum search depth (default: 5)",
    ),
    include_hidden: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Include hidden directories",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colours",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output as JSON",
    ),
    sequential: bool = typer.Option(
        False,
        "--sequential",
        help="Process repositories one at a time",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log git commands and diagnostics to stderr",
    ),
    timeout: float = typer.Option(
        None,
        "--timeout",
        help="Give up on a fetch after SECONDS (default: wait indefinitely)",
    ),
):
    """Fast-forward every clean repository to its upstream.

    Repositories with staged or modified changes are skipped, and diverged
    branches are reported rather than merged.
    """
    run_command(
        path,
        SyncOperation.PULL,
        switch=switch,
        depth=depth,
        include_hidden=include_hidden,
        no_color=no_color,
        json_output=json_output,
        sequential=sequential,
        verbose=verbose,
        timeout=timeout,
    )
