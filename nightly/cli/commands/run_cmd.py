from __future__ import annotations

import threading
from pathlib import Path

import typer

from nightly.cli.commands._helpers import exit_on_error, exit_with_code
from nightly.cli.context import build_context
from nightly.core.errors import ExitCode
from nightly.core.result import Err
from nightly.git.history import GitHistory
from nightly.output.console import ConsoleProtocol, Style
from nightly.release.builder import CommandPackageBuilder
from nightly.release.gate import Trigger
from nightly.release.identity import ReleaseIdentity
from nightly.release.matrix import JobSucceeded, describe
from nightly.release.pipeline import RunOutcome, RunStatus, run_nightly, select_jobs
from nightly.release.store import GhReleaseStore, ensure_gh_available


def print_outcome(outcome: RunOutcome, console: ConsoleProtocol) -> None:
    """Terminal status for every job, then a one-line verdict."""
    report = outcome.report
    if report is not None:
        console.header("Jobs")
        for result in report.results:
            line = f"{result.platform_name}: {describe(result)}"
            if isinstance(result, JobSucceeded):
                console.success(line)
            else:
                console.error(line)
        if report.release_missing and outcome.release is not None:
            console.alert(
                f"uploads could not find release {outcome.release.tag}. "
                "This is an ordering bug, not a transient failure."
            )
        if report.interrupted:
            console.warning("run was cancelled; already uploaded artifacts stay attached")

    match outcome.status:
        case RunStatus.SUCCEEDED:
            count = len(report.results) if report else 0
            console.success(f"all {count} job(s) succeeded")
        case RunStatus.PARTIAL:
            assert report is not None
            console.warning(
                f"{len(report.failed)} of {len(report.results)} job(s) failed; "
                f"{len(report.uploaded)} artifact(s) attached"
            )
        case RunStatus.SKIPPED:
            console.info(f"no release needed: {outcome.decision.reason}")
        case RunStatus.GATE_ERROR:
            console.error("history query failed; no release created")
        case RunStatus.RELEASE_FAILED:
            console.error("release creation failed; no job started")


def run(
    event: str = typer.Option(
        "schedule",
        "--event",
        envvar="GITHUB_EVENT_NAME",
        help="Trigger event (workflow_dispatch/repository_dispatch are manual)",
    ),
    ref: str = typer.Option("HEAD", "--ref", envvar="GITHUB_SHA", help="Reference commit"),
    repository: str | None = typer.Option(
        None,
        "--repository",
        envvar="GITHUB_REPOSITORY",
        help="owner/name the run executes in",
    ),
    source: Path = typer.Option(Path("."), "--source", help="Source checkout"),
    config: Path | None = typer.Option(None, "--config", help="Path to nightly.toml"),
    date: str | None = typer.Option(
        None, "--date", help="Release day (YYYY-MM-DD); defaults to today (UTC)"
    ),
    only: list[str] | None = typer.Option(
        None, "--only", help="Build only this platform (repeatable)"
    ),
    work_dir: Path | None = typer.Option(
        None, "--work-dir", help="Scratch directory for packages and archives"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print gh commands instead of creating/uploading"
    ),
) -> None:
    """Decide, create the nightly release, then build and upload the matrix."""
    ctx = build_context(source=source, config_path=config)
    console = ctx.console

    identity = None
    if date is not None:
        identity = exit_on_error(ReleaseIdentity.parse(date), ctx, ExitCode.USER_ERROR)

    selected = select_jobs(ctx.config.matrix, only or ())
    if isinstance(selected, Err):
        console.error(selected.error)
        exit_with_code(ExitCode.USER_ERROR)
    jobs = selected.value

    if not dry_run:
        exit_on_error(ensure_gh_available(), ctx, ExitCode.ENV_ERROR)

    trigger = Trigger.from_event(event, ref=ref, repository=repository)
    store = GhReleaseStore(
        workspace_root=ctx.source_root,
        console=console,
        repo=ctx.config.release.repo,
        dry_run=dry_run,
    )
    builder = CommandPackageBuilder(
        source_root=ctx.source_root, config=ctx.config.build, console=console
    )
    scratch = (work_dir or ctx.source_root / ".nightly").resolve()

    cancel = threading.Event()
    try:
        outcome = run_nightly(
            trigger,
            ctx.config,
            history=GitHistory(ctx.source_root),
            store=store,
            builder=builder,
            console=console,
            work_dir=scratch,
            jobs=jobs,
            identity=identity,
            cancel=cancel,
        )
    except KeyboardInterrupt:
        cancel.set()
        console.print("interrupted before the build matrix started", Style.DIM)
        exit_with_code(ExitCode.USER_ERROR)

    print_outcome(outcome, console)
    exit_with_code(outcome.status.exit_code)
