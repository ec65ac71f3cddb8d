"""Delete command: remove a project's overrides and flags."""

import typer

from ..app import app, console, get_json_mode, get_project_context
from ..utils import Output
from ...errors import OverridezError


@app.command("delete")
def delete_command(
    projects: list[str] = typer.Argument(..., help="Project(s) to remove"),
):
    """Remove the stored overrides and build flags of one or more projects.

    Projects without overrides are reported and skipped.
    """
    out = Output(console=console, json_mode=get_json_mode())
    acquirer = get_project_context().acquirer()

    deleted = {}
    for project_id in projects:
        try:
            removed, untagged = acquirer.remove(project_id)
        except ValueError as exc:
            out.error(str(exc), project=project_id)
            continue
        except OverridezError as exc:
            out.fail(exc, project=project_id)
            continue
        if not removed and not untagged:
            out.warning(f"No overrides found for {project_id}", project=project_id)
            continue
        deleted[project_id] = {
            "kinds": [k.value for k in removed],
            "flags": [f.value for f in untagged],
        }
        parts = [k.value for k in removed] + [f"flag {f.value}" for f in untagged]
        out.success(f"Deleted {project_id} ({', '.join(parts)})")

    out.set_data("deleted", deleted)
    raise typer.Exit(out.finish())
