from __future__ import annotations

from pathlib import Path

import typer

from nightly.cli.commands._helpers import exit_on_error, exit_with_code
from nightly.cli.context import build_context
from nightly.core.errors import ExitCode
from nightly.release.identity import ReleaseIdentity, current_identity
from nightly.release.model import artifact_name
from nightly.release.packager import package_artifact


def package(
    platform: str = typer.Option(..., "--platform", help="Matrix entry name"),
    directory: Path = typer.Option(
        Path("package"), "--dir", help="Directory with the files to ship"
    ),
    out: Path = typer.Option(Path("dist"), "--out", help="Output directory"),
    source: Path = typer.Option(Path("."), "--source", help="Source checkout"),
    config: Path | None = typer.Option(None, "--config", help="Path to nightly.toml"),
    date: str | None = typer.Option(
        None, "--date", help="Release day (YYYY-MM-DD); defaults to today (UTC)"
    ),
) -> None:
    """Archive one package directory under its nightly artifact name (CI helper)."""
    ctx = build_context(source=source, config_path=config)
    job = ctx.config.job(platform)
    if job is None:
        names = ", ".join(spec.platform_name for spec in ctx.config.matrix)
        ctx.console.error(f"unknown platform: {platform} (available: {names})")
        exit_with_code(ExitCode.USER_ERROR)

    identity = (
        exit_on_error(ReleaseIdentity.parse(date), ctx, ExitCode.USER_ERROR)
        if date is not None
        else current_identity()
    )
    prefix = ctx.config.release.naming.package_prefix(identity)
    logical = artifact_name(prefix, job.platform_name, job.archive_format)

    result = package_artifact(
        ctx.source_root / directory,
        logical,
        job.archive_format,
        ctx.source_root / out,
        required=ctx.config.build.required_files(job),
    )
    artifact = exit_on_error(result.map_err(lambda e: e.detail), ctx, ExitCode.ENV_ERROR)
    ctx.console.success(str(artifact.path))
