"""Add command: fetch an override and save it to the project store."""

import typer

from ..app import app, console, get_json_mode, get_project_context
from ..utils import Output
from ...errors import OverridezError


@app.command("add")
def add_command(
    target: str = typer.Argument(
        ...,
        help="Package (name or name-version), URL or path; a GitHub URL with --github",
    ),
    github: bool = typer.Option(
        False,
        "--github",
        "-g",
        help="Save a source descriptor for a GitHub repository instead of an expression",
    ),
    rev: str | None = typer.Option(
        None, "--rev", "-r", help="Revision to pin (with --github; default: HEAD)"
    ),
    flag: list[str] = typer.Option(
        [],
        "--flag",
        "-f",
        help="Build flag to apply: relax-dependency-bounds, skip-tests, skip-docs",
    ),
):
    """Fetch an override for TARGET and save it.

    Examples:
        overridez add beam-core-0.9.0.0
        overridez add beam-core --flag skip-tests
        overridez add https://github.com/reflex-frp/reflex-dom.git --github --rev 3f4a1c2
        overridez add ./vendor/my-package
    """
    out = Output(console=console, json_mode=get_json_mode())
    if rev and not github:
        out.warning("--rev is only used with --github; ignoring it")

    ctx = get_project_context()
    try:
        acquired = ctx.acquirer().add(target, github=github, rev=rev, flags=flag)
    except OverridezError as exc:
        out.fail(exc, project=target)
        raise typer.Exit(out.finish())
    except ValueError as exc:
        out.error(str(exc), project=target)
        raise typer.Exit(out.finish())

    resolution = acquired.resolution
    if resolution is not None and resolution.advisory:
        out.warning(
            resolution.advisory,
            project=acquired.project_id,
            suggestion=f"overridez add {resolution.name}-{resolution.version}",
        )
    for kind in acquired.replaced:
        out.warning(
            f"{acquired.project_id} also has a {kind.value} override",
            project=acquired.project_id,
            suggestion=f"Remove one with: overridez delete {acquired.project_id}",
        )
    if acquired.flags is not None:
        for name in acquired.flags.unrecognized:
            out.warning(f"Unrecognized option ignored: {name}", project=acquired.project_id)

    out.success(
        f"Saved {acquired.kind.value} override for [bold]{acquired.project_id}[/bold]",
        project=acquired.project_id,
        kind=acquired.kind.value,
        version=resolution.version if resolution else None,
        flags=[f.value for f in acquired.flags.applied] if acquired.flags else [],
    )
    raise typer.Exit(out.finish())
