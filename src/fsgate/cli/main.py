"""
fsgate CLI.

Exercise the sandbox and adaptive reader from a shell: validate paths, read
line windows (including tails of large logs), list, search and stat.
"""

import asyncio
import logging
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from fsgate import __version__
from fsgate.filesystem.exceptions import FileSystemError
from fsgate.filesystem.operations import FileOperations, create_file_operations
from fsgate.filesystem.telemetry import LoggingTelemetrySink
from fsgate.settings.config import FsgateSettings

# Load environment variables
load_dotenv()

console = Console()


def setup_logging(verbose: bool = False, level: str = "INFO") -> None:
    """Setup rich logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def load_settings(config_path: Optional[str], allow: tuple[str, ...]) -> FsgateSettings:
    """Load settings from a file or the environment; ``--allow`` overrides the allow-list."""
    settings = FsgateSettings.from_file(config_path) if config_path else FsgateSettings()
    if allow:
        data = settings.to_dict()
        data["filesystem"]["allowed_directories"] = list(allow)
        settings = FsgateSettings.from_dict(data)
    return settings


def _operations(ctx: click.Context) -> FileOperations:
    return ctx.obj["operations"]


def _run(coro):
    """Run a coroutine, turning filesystem errors into a clean CLI failure."""
    try:
        return asyncio.run(coro)
    except (FileSystemError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}", markup=True, highlight=False)
        raise SystemExit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default=None, help="YAML or JSON settings file")
@click.option("--allow", "-a", multiple=True, help="Allowed directory (repeatable, overrides settings)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], allow: tuple[str, ...], verbose: bool):
    """fsgate - sandboxed file access for agents."""
    settings = load_settings(config_path, allow)
    setup_logging(verbose, settings.log_level)

    telemetry = LoggingTelemetrySink() if settings.telemetry_enabled else None
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["operations"] = create_file_operations(settings.filesystem, telemetry)


@cli.command()
@click.argument("path")
@click.option("--offset", "-o", type=int, default=0, help="First line; negative reads from the end")
@click.option("--length", "-n", type=int, default=None, help="Maximum number of lines")
@click.option("--status/--no-status", default=True, help="Show the status annotation")
@click.option("--exact", is_flag=True, help="Preserve original line endings (no annotation)")
@click.pass_context
def read(
    ctx: click.Context,
    path: str,
    offset: int,
    length: Optional[int],
    status: bool,
    exact: bool,
):
    """
    Read lines from a file.

    Examples:

        # Last 20 lines of a log
        fsgate -a /var/log read /var/log/syslog -o -20

        # 50 lines starting at line 1000
        fsgate read ~/data.csv -o 1000 -n 50
    """
    reader = _operations(ctx).reader

    if exact:
        content = _run(reader.read_exact(path, offset, length))
        click.echo(content, nl=False)
        return

    result = _run(reader.read_file(path, offset, length, include_status=status))
    click.echo(result.content)


@cli.command()
@click.argument("path")
@click.pass_context
def validate(ctx: click.Context, path: str):
    """Check whether a path is admitted and show what it resolves to."""
    resolved = _run(_operations(ctx).sandbox.validate(path))
    console.print(
        Panel(
            f"Requested: [cyan]{path}[/cyan]\nResolved: [green]{resolved}[/green]",
            title="Allowed",
        )
    )


@cli.command()
@click.argument("path")
@click.pass_context
def info(ctx: click.Context, path: str):
    """Show size, timestamps, permissions and line counts."""
    file_info = _run(_operations(ctx).get_file_info(path))

    table = Table(title=path, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key, value in file_info.model_dump(exclude_none=True).items():
        table.add_row(key, str(value))
    console.print(table)


@cli.command(name="ls")
@click.argument("path")
@click.pass_context
def list_directory(ctx: click.Context, path: str):
    """List a directory."""
    for entry in _run(_operations(ctx).list_directory(path)):
        click.echo(entry)


@cli.command()
@click.argument("root")
@click.argument("pattern")
@click.pass_context
def search(ctx: click.Context, root: str, pattern: str):
    """Find entries under ROOT whose name contains PATTERN."""
    results = _run(_operations(ctx).search_files(root, pattern))
    for result in results:
        click.echo(result)
    console.print(f"[dim]{len(results)} match(es)[/dim]")


if __name__ == "__main__":
    cli()
