"""Flags commands for tagging projects with build options."""

import typer

from ..app import app, console, get_json_mode, get_project_context
from ..utils import Output
from ...errors import OverridezError, UnrecognizedOption
from ...storage.options import Flag

flags_app = typer.Typer(help="Manage per-project build flags")
app.add_typer(flags_app, name="flags")


@flags_app.command("add")
def flags_add(
    project: str = typer.Argument(..., help="Project to tag"),
    names: list[str] = typer.Argument(..., help="Flag name(s)"),
):
    """Tag PROJECT with one or more build flags.

    Recognized flags: relax-dependency-bounds, skip-tests, skip-docs
    (or their Nix names doJailbreak, dontCheck, dontHaddock).
    """
    out = Output(console=console, json_mode=get_json_mode())
    options = get_project_context().option_store()
    try:
        result = options.add_flags(project, names)
    except ValueError as exc:
        out.error(str(exc), project=project)
        raise typer.Exit(out.finish())
    except OverridezError as exc:
        out.fail(exc, project=project)
        raise typer.Exit(out.finish())

    for name in result.unrecognized:
        out.warning(
            f"Unrecognized option ignored: {name}",
            project=project,
            suggestion="Valid flags: " + ", ".join(f.value for f in Flag),
        )
    if result.applied:
        out.success(
            f"Tagged {project} with {', '.join(f.value for f in result.applied)}",
            project=project,
            flags=[f.value for f in result.applied],
        )
    raise typer.Exit(out.finish())


@flags_app.command("remove")
def flags_remove(project: str = typer.Argument(..., help="Project to untag")):
    """Remove every build flag from PROJECT."""
    out = Output(console=console, json_mode=get_json_mode())
    options = get_project_context().option_store()
    try:
        removed = options.remove_all_flags(project)
    except ValueError as exc:
        out.error(str(exc), project=project)
        raise typer.Exit(out.finish())
    except OverridezError as exc:
        out.fail(exc, project=project)
        raise typer.Exit(out.finish())

    if removed:
        out.success(
            f"Removed {', '.join(f.value for f in removed)} from {project}",
            project=project,
            flags=[f.value for f in removed],
        )
    else:
        out.text(f"[dim]{project} had no flags[/dim]")
    raise typer.Exit(out.finish())


@flags_app.command("list")
def flags_list(
    name: str | None = typer.Argument(None, help="Only list this flag"),
):
    """List the projects tagged with each flag."""
    out = Output(console=console, json_mode=get_json_mode())
    options = get_project_context().option_store()

    if name is not None:
        try:
            selected = [Flag.parse(name)]
        except UnrecognizedOption as exc:
            out.fail(exc)
            raise typer.Exit(out.finish())
    else:
        selected = list(Flag)

    try:
        rows = [
            [flag.value, ", ".join(sorted(options.list_flag(flag))) or "-"]
            for flag in selected
        ]
    except OverridezError as exc:
        out.fail(exc)
        raise typer.Exit(out.finish())
    out.table("Flags", ["Flag", "Projects"], rows)
    raise typer.Exit(out.finish())
