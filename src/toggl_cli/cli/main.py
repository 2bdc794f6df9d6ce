"""Main CLI application."""

import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from toggl_cli import __version__
from toggl_cli.cli.common import console, error_console, handle_errors, setup_logging
from toggl_cli.cli.config_commands import config
from toggl_cli.core.api import ApiClient, V9ApiClient
from toggl_cli.core.auth import authenticate, logout as remove_credentials
from toggl_cli.core.config import ConfigManager
from toggl_cli.core.credentials import CredentialsStorage, KeyringStorage
from toggl_cli.core.errors import ArgumentError
from toggl_cli.core.models import TimeEntry
from toggl_cli.core.picker import get_picker
from toggl_cli.core.tracker import TimeTracker


def get_storage(ctx: click.Context) -> CredentialsStorage:
    """Get the credential store, injected through ctx.obj in tests."""
    if "storage" in ctx.obj:
        return ctx.obj["storage"]
    return KeyringStorage()


def get_api_client(ctx: click.Context) -> ApiClient:
    """Get an API client authenticated with the stored token."""
    if "api_client" in ctx.obj:
        return ctx.obj["api_client"]
    credentials = get_storage(ctx).read()
    settings: ConfigManager = ctx.obj["config"]
    return V9ApiClient(
        credentials,
        proxy=ctx.obj.get("proxy"),
        base_url=settings.get("api.base_url"),
        timeout=settings.get("api.timeout", 30),
    )


def get_tracker(ctx: click.Context) -> TimeTracker:
    """Get TimeTracker wired to the API client and the selected picker."""
    settings: ConfigManager = ctx.obj["config"]
    picker = ctx.obj.get("picker") or get_picker(
        ctx.obj.get("fzf", False), console, settings.get("picker.fzf_command", "fzf")
    )
    return TimeTracker(
        get_api_client(ctx),
        picker,
        defaults=settings.get("defaults", {}),
        history_size=settings.get("picker.history_size", 50),
    )


def change_directory(directory: Path) -> None:
    """Make ``directory`` the working directory.

    Raises:
        ArgumentError: If the path does not exist or is not a directory
    """
    if not directory.exists():
        raise ArgumentError.directory_not_found(directory)
    if not directory.is_dir():
        raise ArgumentError.not_a_directory(directory)
    os.chdir(directory)


def format_duration(duration: timedelta) -> str:
    """Format a duration to human-readable string."""
    seconds = int(duration.total_seconds())
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}h {minutes}m"
    elif minutes > 0:
        return f"{minutes}m {secs}s"
    else:
        return f"{secs}s"


def format_datetime(dt: datetime) -> str:
    """Format datetime for display in local time."""
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def describe(entry: TimeEntry) -> str:
    return escape(entry.description) if entry.description else "[dim](no description)[/dim]"


def print_entry_details(entry: TimeEntry) -> None:
    if entry.project_name:
        console.print(f"  Project: {escape(entry.project_name)}")
    if entry.billable:
        console.print("  Billable: yes")
    if entry.tags:
        console.print(f"  Tags: {escape(', '.join(entry.tags))}")
    console.print(f"  Started: {format_datetime(entry.start)}")


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option("--proxy", help="Proxy URL for requests to the Toggl API")
@click.option("--fzf", is_flag=True, help="Use fzf for interactive selection")
@click.option(
    "-C",
    "--directory",
    type=click.Path(path_type=Path),
    help="Change to this directory before running the command",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    envvar="TOGGL_CONFIG",
    help="Path to the global config file",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(
    ctx: click.Context,
    proxy: Optional[str],
    fzf: bool,
    directory: Optional[Path],
    config_path: Optional[Path],
    verbose: bool,
    no_color: bool,
) -> None:
    """Toggl - Command-line client for Toggl Track.

    Start, stop, continue and list time entries. Without a command, shows
    the running time entry.
    """
    ctx.ensure_object(dict)

    if no_color:
        console.no_color = True
        error_console.no_color = True

    directory_error: Optional[ArgumentError] = None
    if directory is not None:
        try:
            change_directory(directory)
        except ArgumentError as e:
            directory_error = e

    # a rejected directory is reported under the config of the invoking directory
    ready = False
    with handle_errors(ctx):
        if "config" not in ctx.obj:
            ctx.obj["config"] = ConfigManager(config_path)
        ctx.obj["always_exit_zero"] = ctx.obj["config"].get("advanced.always_exit_zero", False)
        if directory_error is not None:
            raise directory_error
        ready = True
    if not ready:
        ctx.exit(0)

    settings: ConfigManager = ctx.obj["config"]
    setup_logging("DEBUG" if verbose else settings.get("advanced.log_level", "WARNING"))
    ctx.obj["proxy"] = proxy or settings.get("api.proxy")
    ctx.obj["fzf"] = fzf or settings.get("picker.fzf", False)

    if ctx.invoked_subcommand is None:
        ctx.invoke(current)


@cli.command()
@click.pass_context
def current(ctx: click.Context) -> None:
    """Show the running time entry.

    Example:
        toggl current
    """
    with handle_errors(ctx):
        entry = get_tracker(ctx).running()

        if entry is None:
            console.print("[yellow]No time entry is running[/yellow]")
            console.print('\nStart tracking with: [cyan]toggl start "Description"[/cyan]')
            return

        content = f"""[bold]{describe(entry)}[/bold]

[dim]Started:[/dim] {format_datetime(entry.start)}
[dim]Duration:[/dim] {format_duration(entry.duration)}"""

        if entry.project_name:
            content += f"\n[dim]Project:[/dim] {escape(entry.project_name)}"
        if entry.billable:
            content += "\n[dim]Billable:[/dim] yes"
        if entry.tags:
            content += f"\n[dim]Tags:[/dim] {escape(', '.join(entry.tags))}"

        console.print(Panel(content, title="Running", border_style="green"))


@cli.command()
@click.pass_context
def running(ctx: click.Context) -> None:
    """Show the running time entry (alias of current)."""
    ctx.invoke(current)


@cli.command()
@click.argument("description", required=False)
@click.option("-p", "--project", help="Project name or id")
@click.option("--billable/--non-billable", default=None, help="Override the project's billable flag")
@click.option("-t", "--tags", help="Comma-separated tags")
@click.option("-i", "--interactive", is_flag=True, help="Pick the project interactively")
@click.pass_context
def start(
    ctx: click.Context,
    description: Optional[str],
    project: Optional[str],
    billable: Optional[bool],
    tags: Optional[str],
    interactive: bool,
) -> None:
    """Start a new time entry, stopping the running one.

    Example:
        toggl start "Writing documentation" -p toggl-cli
        toggl start "Code review" -i
    """
    with handle_errors(ctx):
        tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
        entry = get_tracker(ctx).start(description, project, billable, interactive, tag_list)

        console.print(f"[green]✓[/green] Started: {describe(entry)}")
        print_entry_details(entry)


@cli.command()
@click.pass_context
def stop(ctx: click.Context) -> None:
    """Stop the running time entry.

    Example:
        toggl stop
    """
    with handle_errors(ctx):
        entry = get_tracker(ctx).stop()

        if entry is None:
            console.print("[yellow]No time entry is running[/yellow]")
            return

        console.print(f"[yellow]⏹[/yellow]  Stopped: {describe(entry)} ({format_duration(entry.duration)})")
        if entry.project_name:
            console.print(f"  Project: {escape(entry.project_name)}")


@cli.command("continue")
@click.option("-i", "--interactive", is_flag=True, help="Pick one of the recent time entries")
@click.pass_context
def continue_(ctx: click.Context, interactive: bool) -> None:
    """Start a new time entry copying a previous one.

    Example:
        toggl continue
        toggl continue -i
    """
    with handle_errors(ctx):
        entry = get_tracker(ctx).continue_entry(interactive)

        console.print(f"[green]▶[/green]  Continued: {describe(entry)}")
        print_entry_details(entry)


@cli.command("list")
@click.argument("number", type=click.IntRange(min=1), default=10)
@click.pass_context
def list_(ctx: click.Context, number: int) -> None:
    """List recent time entries, most recent first.

    Example:
        toggl list
        toggl list 3
    """
    with handle_errors(ctx):
        entries = get_tracker(ctx).list_entries(number)

        if not entries:
            console.print("[yellow]No time entries found[/yellow]")
            return

        table = Table(title=f"Time Entries (showing {len(entries)})")
        table.add_column("Start", style="cyan")
        table.add_column("Duration", style="magenta")
        table.add_column("Description", style="bold")
        table.add_column("Project", style="blue")

        for entry in entries:
            status_icon = "▶" if entry.is_running else "■"
            billable = " $" if entry.billable else ""
            table.add_row(
                format_datetime(entry.start),
                format_duration(entry.duration),
                f"{status_icon} {escape(entry.description) or '-'}{billable}",
                escape(entry.project_name) if entry.project_name else "-",
            )

        console.print(table)


@cli.command()
@click.argument("api_token")
@click.pass_context
def auth(ctx: click.Context, api_token: str) -> None:
    """Validate and store your API token.

    Example:
        toggl auth 1234567890abcdef
    """
    with handle_errors(ctx):
        settings: ConfigManager = ctx.obj["config"]
        api_client = ctx.obj.get("api_client") or V9ApiClient(
            proxy=ctx.obj.get("proxy"),
            base_url=settings.get("api.base_url"),
            timeout=settings.get("api.timeout", 30),
        )
        authenticate(api_client, get_storage(ctx), api_token)
        console.print("[green]✓[/green] Successfully authenticated")


@cli.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Remove the stored API token.

    Example:
        toggl logout
    """
    with handle_errors(ctx):
        remove_credentials(get_storage(ctx))
        console.print("[green]✓[/green] API token removed")


cli.add_command(config)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
