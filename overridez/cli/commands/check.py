"""Check command: compose the store the way the build would and report problems."""

from __future__ import annotations

from typing import Any

import typer

from ..app import app, console, get_json_mode, get_project_context
from ..utils import ExitCode, Output
from ...core.compose import compose_store
from ...errors import OverridezError
from ...storage.options import Flag
from ...storage.records import GithubSource


class PreviewBuilder:
    """Stands in for the build pipeline, describing each derivation as text."""

    def call_expression(self, project_id: str, expression: str) -> str:
        return f"expression ({len(expression.splitlines())} lines)"

    def call_source(self, project_id: str, source: GithubSource) -> str:
        return f"github:{source.owner}/{source.repo}@{source.rev[:12]}"

    def apply_flag(self, flag: Flag, derivation: Any) -> str:
        return f"{derivation} +{flag.value}"


@app.command("check")
def check_command(
    no_options: bool = typer.Option(
        False, "--no-options", help="Compose without applying build flags"
    ),
):
    """Compose all stored overrides and report records that cannot be used.

    Exits with status 2 if any record is malformed.
    """
    out = Output(console=console, json_mode=get_json_mode())
    ctx = get_project_context()
    store = ctx.override_store()

    try:
        composition = compose_store(
            store, ctx.option_store(), include_options=not no_options
        )
        conflicts = [
            project_id
            for project_id in store.project_ids()
            if len(store.kinds_for(project_id)) > 1
        ]
    except OverridezError as exc:
        out.fail(exc)
        raise typer.Exit(out.finish())
    packages = composition.apply(PreviewBuilder(), {})

    for project_id in conflicts:
        out.warning(
            f"{project_id} has both expression and descriptor overrides; "
            "the descriptor override wins",
            project=project_id,
            suggestion=f"Re-add the one you want after: overridez delete {project_id}",
        )

    rows = [[project_id, str(packages[project_id])] for project_id in sorted(packages)]
    if rows:
        out.table("Composed overrides", ["Project", "Derivation"], rows)
    else:
        out.text(f"[dim]No overrides in {ctx.store_root}[/dim]")

    for failure in composition.failures:
        out.error(
            f"{failure.project_id} ({failure.kind}): {failure.reason}",
            project=failure.project_id,
            exit_code=ExitCode.MALFORMED_RECORD,
        )
    if composition.ok:
        out.success(f"{len(rows)} override(s) compose cleanly", count=len(rows))
    raise typer.Exit(out.finish())
