"""Config command for viewing and managing overridez configuration."""

import typer

from ..app import app, console, get_project_dir
from ... import config as config_module
from ...config import get_config, reset_config


VALID_KEYS = {
    "store.root",
    "resolver.index_path",
    "tools.expression_generator",
    "tools.git_prefetcher",
}


@app.command("config")
def config_command(
    action: str = typer.Argument(
        ...,
        help="Action: show, set, reset",
    ),
    key: str | None = typer.Argument(
        None,
        help="Config key (e.g. store.root, resolver.index_path)",
    ),
    value: str | None = typer.Argument(
        None,
        help="Value to set",
    ),
):
    """View or modify overridez configuration.

    Examples:
        overridez config show
        overridez config set store.root nix/overrides
        overridez config set resolver.index_path ~/.cabal/packages/hackage.haskell.org/01-index.tar
        overridez config reset
    """
    if action == "show":
        _show_config()
    elif action == "set":
        if not key or value is None:
            console.print("[red]Usage:[/red] overridez config set <key> <value>")
            console.print()
            console.print("Available keys:")
            for k in sorted(VALID_KEYS):
                console.print(f"  {k}")
            raise typer.Exit(1)
        _set_config(key, value)
    elif action == "reset":
        _reset_config()
    else:
        console.print(f"[red]Unknown action:[/red] {action}")
        console.print("Valid actions: show, set, reset")
        raise typer.Exit(1)


def _show_config():
    """Display current resolved configuration."""
    config = get_config()

    console.print()
    console.print("[bold]overridez Configuration[/bold]")
    console.print("─" * 40)

    console.print()
    console.print("[bold cyan]Store[/bold cyan]")
    console.print(f"  root       = {config.store.root}")
    console.print(f"  [dim]resolved   = {config.store_root(get_project_dir())}[/dim]")

    console.print()
    console.print("[bold cyan]Resolver[/bold cyan]")
    index = config.index_path_resolved
    status = "" if index.exists() else " [dim](not found)[/dim]"
    console.print(f"  index_path = {config.resolver.index_path}{status}")

    console.print()
    console.print("[bold cyan]Tools[/bold cyan]")
    console.print(f"  expression_generator = {config.tools.expression_generator}")
    console.print(f"  git_prefetcher       = {config.tools.git_prefetcher}")

    console.print()
    config_file = config_module.CONFIG_FILE
    if config_file.exists():
        console.print(f"Config file: {config_file}")
    else:
        console.print(f"Config file: [dim]not created yet[/dim] ({config_file})")
    console.print()


def _set_config(key: str, value: str):
    """Set a config value and save."""
    if key not in VALID_KEYS:
        console.print(f"[red]Unknown key:[/red] {key}")
        console.print()
        console.print("Available keys:")
        for k in sorted(VALID_KEYS):
            console.print(f"  {k}")
        raise typer.Exit(1)

    config = get_config()
    section, field_name = key.split(".", 1)
    setattr(getattr(config, section), field_name, value)

    config.save()
    reset_config()  # Clear cached singleton so next get_config() reloads

    console.print(f"[green]✓[/green] Set {key} = {value}")
    console.print(f"  Saved to {config_module.CONFIG_FILE}")


def _reset_config():
    """Reset config to defaults."""
    config_file = config_module.CONFIG_FILE
    if config_file.exists():
        config_file.unlink()
        reset_config()
        console.print("[green]✓[/green] Config reset to defaults")
        console.print(f"  Removed {config_file}")
    else:
        console.print("Config already at defaults (no config file exists)")
