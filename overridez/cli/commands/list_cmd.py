"""List command for showing stored overrides and their flags."""

import typer

from ..app import app, console, get_json_mode, get_project_context
from ..utils import Output
from ...errors import OverridezError


@app.command("list")
def list_command():
    """List every stored override with its kind(s) and build flags."""
    out = Output(console=console, json_mode=get_json_mode())
    ctx = get_project_context()
    store = ctx.override_store()
    options = ctx.option_store()

    try:
        project_ids = store.project_ids()
        listing = [
            (project_id, store.kinds_for(project_id), options.flags_for(project_id))
            for project_id in project_ids
        ]
    except OverridezError as exc:
        out.fail(exc)
        raise typer.Exit(out.finish())

    if not project_ids:
        out.text(f"[dim]No overrides in {ctx.store_root}[/dim]")
        out.set_data("overrides", [])
        raise typer.Exit(out.finish())

    rows = []
    for project_id, kinds, flags in listing:
        rows.append(
            [
                project_id,
                ", ".join(k.value for k in kinds),
                ", ".join(f.value for f in flags) or "-",
            ]
        )
        if len(kinds) > 1:
            out.warning(
                f"{project_id} has both expression and descriptor overrides",
                project=project_id,
            )

    out.table("Overrides", ["Project", "Kind", "Flags"], rows, data_key="overrides")
    raise typer.Exit(out.finish())
