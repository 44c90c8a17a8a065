"""End-to-end nightly run.

identity -> activity gate -> release record -> build matrix

The release record is created before any job is submitted; nothing in the
matrix can start until `create_release` has returned Ok.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from pathlib import Path

from nightly.core.errors import ExitCode
from nightly.core.result import Err, Ok, Result
from nightly.git.history import HistorySource
from nightly.output.console import ConsoleProtocol, Style
from nightly.release.builder import PackageBuilder
from nightly.release.config import Config
from nightly.release.coordinator import create_release
from nightly.release.errors import ReleaseError
from nightly.release.gate import GateDecision, Trigger, should_release
from nightly.release.identity import Clock, ReleaseIdentity, current_identity
from nightly.release.matrix import MatrixContext, MatrixReport, run_matrix
from nightly.release.model import BuildJobSpec, ReleaseRecord
from nightly.release.store import ReleaseStore


class RunStatus(Enum):
    SUCCEEDED = "succeeded"
    PARTIAL = "partial"
    RELEASE_FAILED = "release_failed"
    GATE_ERROR = "gate_error"
    SKIPPED = "skipped"

    @property
    def exit_code(self) -> ExitCode:
        return {
            RunStatus.SUCCEEDED: ExitCode.OK,
            RunStatus.PARTIAL: ExitCode.PARTIAL_FAILURE,
            RunStatus.RELEASE_FAILED: ExitCode.RELEASE_FAILED,
            RunStatus.GATE_ERROR: ExitCode.GATE_ERROR,
            RunStatus.SKIPPED: ExitCode.NO_RELEASE,
        }[self]


@dataclass(frozen=True, slots=True)
class RunOutcome:
    status: RunStatus
    identity: ReleaseIdentity
    decision: GateDecision
    release: ReleaseRecord | None = None
    report: MatrixReport | None = None
    error: ReleaseError | None = None


def select_jobs(
    matrix: Sequence[BuildJobSpec], only: Iterable[str] = ()
) -> Result[tuple[BuildJobSpec, ...], str]:
    """Restrict the matrix to `only` (all entries when empty), keeping matrix order."""
    wanted = [name.strip() for name in only if name.strip()]
    if not wanted:
        return Ok(tuple(matrix))

    known = {spec.platform_name for spec in matrix}
    unknown = [name for name in wanted if name not in known]
    if unknown:
        return Err(
            f"unknown platform(s): {', '.join(unknown)} "
            f"(available: {', '.join(sorted(known))})"
        )
    return Ok(tuple(spec for spec in matrix if spec.platform_name in wanted))


def run_nightly(
    trigger: Trigger,
    config: Config,
    *,
    history: HistorySource,
    store: ReleaseStore,
    builder: PackageBuilder,
    console: ConsoleProtocol,
    work_dir: Path,
    jobs: Sequence[BuildJobSpec] | None = None,
    identity: ReleaseIdentity | None = None,
    clock: Clock | None = None,
    cancel: threading.Event | None = None,
) -> RunOutcome:
    identity = identity or current_identity(clock)
    naming = config.release.naming
    console.header(f"Nightly {identity.date_dash}")
    console.print(f"trigger: {trigger.kind} ({trigger.event or 'n/a'}) at {trigger.ref}", Style.DIM)

    decision = should_release(
        trigger,
        history,
        timedelta(hours=config.release.activity_window_hours),
        upstream_repo=config.release.upstream_repo,
    )
    if decision.error is not None:
        console.error(decision.error.message)
        if decision.error.hint:
            console.print(f"hint: {decision.error.hint}", Style.DIM)
        console.warning("gate closed; no release will be created")
        return RunOutcome(status=RunStatus.GATE_ERROR, identity=identity, decision=decision)
    if not decision.open:
        console.info(f"skipping release: {decision.reason}")
        return RunOutcome(status=RunStatus.SKIPPED, identity=identity, decision=decision)
    console.print(f"gate open: {decision.reason}", Style.DIM)

    # Scheduled runs pin the release to the commit that was inspected.
    target = None if trigger.ref == "HEAD" else trigger.ref
    created = create_release(identity, store, naming, target=target)
    if isinstance(created, Err):
        console.error(created.error.message)
        if created.error.hint:
            console.print(f"hint: {created.error.hint}", Style.DIM)
        return RunOutcome(
            status=RunStatus.RELEASE_FAILED,
            identity=identity,
            decision=decision,
            error=created.error,
        )
    record = created.value
    console.success(f"release {record.tag} ({record.title})")

    selected = tuple(config.matrix if jobs is None else jobs)
    ctx = MatrixContext(
        release_tag=record.upload_target,
        package_prefix=naming.package_prefix(identity),
        work_dir=work_dir,
        builder=builder,
        store=store,
        console=console,
        required_files=config.build.required_files,
        cancel=cancel or threading.Event(),
    )
    report = run_matrix(selected, ctx, max_workers=config.build.max_workers)

    status = RunStatus.SUCCEEDED if report.all_succeeded else RunStatus.PARTIAL
    return RunOutcome(
        status=status,
        identity=identity,
        decision=decision,
        release=record,
        report=report,
    )
