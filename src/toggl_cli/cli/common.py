"""Console output and error reporting shared by the CLI commands."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import click
from rich.console import Console
from rich.markup import escape

from toggl_cli.core.errors import AuthError, CredentialsNotFoundError, SelectionCancelled, TogglError

console = Console()
error_console = Console(stderr=True)

logger = logging.getLogger(__name__)

PROFILE_URL = "https://track.toggl.com/profile"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str) -> None:
    """Send log records of the package to stderr at the given level."""
    package_logger = logging.getLogger("toggl_cli")
    package_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)


def _fail(ctx: click.Context, exit_code: int) -> None:
    obj = ctx.find_root().obj or {}
    if obj.get("always_exit_zero"):
        return
    sys.exit(exit_code)


@contextmanager
def handle_errors(ctx: click.Context) -> Iterator[None]:
    """Print errors raised by a command instead of a traceback.

    Cancelled selections end the command silently.
    """
    try:
        yield
    except SelectionCancelled:
        logger.debug("Command cancelled by the user")
    except CredentialsNotFoundError:
        error_console.print("[red]Please set your API token first by calling toggl auth <API_TOKEN>.[/red]")
        error_console.print(f"[bold blue]You can find your API token at[/bold blue] [underline]{PROFILE_URL}[/underline]")
        _fail(ctx, CredentialsNotFoundError.exit_code)
    except AuthError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        error_console.print(f"Check the API token at [underline]{PROFILE_URL}[/underline] and run toggl auth <API_TOKEN>.")
        _fail(ctx, e.exit_code)
    except TogglError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        _fail(ctx, e.exit_code)
    except (ValueError, OSError) as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        _fail(ctx, 1)
