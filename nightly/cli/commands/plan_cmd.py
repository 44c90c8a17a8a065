from __future__ import annotations

from pathlib import Path

import typer

from nightly.cli.commands._helpers import exit_on_error
from nightly.cli.context import build_context
from nightly.core.errors import ExitCode
from nightly.output.console import Style
from nightly.release.identity import ReleaseIdentity, current_identity
from nightly.release.model import artifact_name


def plan(
    source: Path = typer.Option(Path("."), "--source", help="Source checkout"),
    config: Path | None = typer.Option(None, "--config", help="Path to nightly.toml"),
    date: str | None = typer.Option(
        None, "--date", help="Release day (YYYY-MM-DD); defaults to today (UTC)"
    ),
) -> None:
    """Show the tag, title and artifact names a run would produce."""
    ctx = build_context(source=source, config_path=config)
    identity = (
        exit_on_error(ReleaseIdentity.parse(date), ctx, ExitCode.USER_ERROR)
        if date is not None
        else current_identity()
    )
    naming = ctx.config.release.naming
    prefix = naming.package_prefix(identity)

    console = ctx.console
    console.header(f"Nightly {identity.date_dash}")
    console.print(f"tag:    {naming.tag(identity)}")
    console.print(f"title:  {naming.title(identity)}")
    console.print(f"prefix: {prefix}")
    window = ctx.config.release.activity_window_hours
    console.print(f"gate:   scheduled runs need a commit in the last {window}h", Style.DIM)
    if ctx.config.release.upstream_repo:
        console.print(
            f"        and only run on {ctx.config.release.upstream_repo}", Style.DIM
        )

    console.header("Matrix")
    for job in ctx.config.matrix:
        name = artifact_name(prefix, job.platform_name, job.archive_format)
        extras: list[str] = [job.target_triple]
        if job.supports_installer:
            extras.append("installer")
        if not job.upload:
            extras.append("no upload")
        console.print(f"{name}  ({', '.join(extras)})")
