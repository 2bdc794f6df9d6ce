"""CLI commands for configuration management."""

import json
import os
import shutil
import subprocess
from pathlib import Path
from typing import Any

import click  # type: ignore[import-not-found]
from rich.markup import escape  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from toggl_cli.cli.common import console, handle_errors
from toggl_cli.core.config import LOCAL_CONFIG_NAME, ConfigManager


def _settings(ctx: click.Context) -> ConfigManager:
    return ctx.find_root().obj["config"]


def _open_in_editor(path: Path) -> None:
    """Open ``path`` in $EDITOR or the first fallback editor found."""
    editor = os.environ.get("EDITOR")
    if not editor:
        for fallback in ["nano", "vim", "vi", "emacs"]:
            if shutil.which(fallback):
                editor = fallback
                break

    if not editor:
        raise ValueError("No editor found. Set $EDITOR environment variable.")

    console.print(f"Opening {path} in {editor}...")
    try:
        subprocess.run([editor, str(path)], check=True)
    except subprocess.CalledProcessError:
        raise ValueError(f"Editor {editor} failed")


@click.group()  # type: ignore[misc]
def config() -> None:
    """Manage toggl configuration.

    Global settings live in ~/.config/toggl-cli/config.yml. A .toggl.yml in
    a directory overrides them for that directory and its subdirectories.
    """
    pass


@config.command("init")  # type: ignore[misc]
@click.option("--local", is_flag=True, help=f"Create {LOCAL_CONFIG_NAME} in the current directory")  # type: ignore[misc]
@click.option("--edit", is_flag=True, help="Open the new file in your editor")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_init(ctx: click.Context, local: bool, edit: bool) -> None:
    """Create a configuration file with default settings.

    Example:
        toggl config init
        toggl config init --local --edit
    """
    with handle_errors(ctx):
        settings = _settings(ctx)
        path = settings.init(Path.cwd() / LOCAL_CONFIG_NAME if local else None)
        console.print(f"[green]✓[/green] Created {path}")
        if edit:
            _open_in_editor(path)


@config.command("active")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_active(ctx: click.Context) -> None:
    """Show the settings that apply in the current directory.

    Example:
        toggl config active
    """
    settings = _settings(ctx)
    defaults = settings.get("defaults", {})

    table = Table(title="Active Defaults")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key in ["description", "project", "billable", "tags"]:
        value = defaults.get(key)
        table.add_row(key, "-" if value in (None, []) else escape(str(value)))

    console.print(table)
    source = settings.active_path
    if source.exists():
        console.print(f"\nConfig file: {source}")
    else:
        console.print("\n[yellow]No config file found, using built-in defaults[/yellow]")


@config.command("show")  # type: ignore[misc]
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show all configuration settings.

    Example:
        toggl config show
        toggl config show --json
    """
    settings = _settings(ctx)

    if as_json:
        print(json.dumps(settings.to_dict(), indent=2))
        return

    table = Table(title="Toggl Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    def add_rows(prefix: str, data: dict[str, Any]) -> None:
        """Recursively add configuration rows."""
        for key, value in data.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                add_rows(full_key, value)
            else:
                table.add_row(full_key, escape(str(value)))

    add_rows("", settings.to_dict())
    console.print(table)


@config.command("get")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_get(ctx: click.Context, key: str) -> None:
    """Get a specific configuration value.

    Example:
        toggl config get picker.fzf
    """
    with handle_errors(ctx):
        value = _settings(ctx).get(key)

        if value is None:
            raise ValueError(f"Configuration key '{key}' not set")

        if isinstance(value, (dict, list)):
            console.print(json.dumps(value, indent=2))
        else:
            console.print(escape(str(value)))


@config.command("set")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.argument("value")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a configuration value in the global file.

    Values are automatically converted to appropriate types.
    Use 'true'/'false' for booleans, numbers for integers.

    Example:
        toggl config set picker.fzf true
        toggl config set defaults.project "Internal"
    """
    converted_value: Any = value
    if value.lower() in ("true", "yes"):
        converted_value = True
    elif value.lower() in ("false", "no"):
        converted_value = False
    elif value.lower() == "null":
        converted_value = None
    else:
        try:
            converted_value = int(value)
        except ValueError:
            converted_value = value

    with handle_errors(ctx):
        _settings(ctx).set(key, converted_value)
        console.print(f"[green]✓[/green] Set {escape(key)} = {escape(str(converted_value))}")


@config.command("edit")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_edit(ctx: click.Context) -> None:
    """Edit the active configuration file in your editor.

    Example:
        toggl config edit
    """
    with handle_errors(ctx):
        settings = _settings(ctx)
        path = settings.active_path
        if not path.exists():
            settings.init(path)
        _open_in_editor(path)

        # Reload and validate
        ConfigManager(settings.config_path, settings.local_path)
        console.print("[green]✓[/green] Configuration validated")


@config.command("delete")  # type: ignore[misc]
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_delete(ctx: click.Context, yes: bool) -> None:
    """Delete the active configuration file.

    Example:
        toggl config delete --yes
    """
    with handle_errors(ctx):
        settings = _settings(ctx)
        if not yes and not click.confirm(f"Delete {settings.active_path}?"):
            console.print("Cancelled")
            return
        path = settings.delete()
        console.print(f"[green]✓[/green] Deleted {path}")


@config.command("path")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_path(ctx: click.Context) -> None:
    """Show path to the active configuration file.

    Example:
        toggl config path
    """
    console.print(str(_settings(ctx).active_path), soft_wrap=True)
