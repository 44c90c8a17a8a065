"""Build matrix executor.

Each matrix entry runs build -> package -> upload on its own worker thread.
A failing job is recorded and never cancels its siblings; the caller gets one
terminal result per entry, in matrix order.

Cancellation is cooperative: jobs check the shared event before each step,
so a cancelled run leaves whatever was already uploaded attached and reports
the remaining jobs as cancelled.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from nightly.core.result import Err
from nightly.output.console import ConsoleProtocol, Style
from nightly.release.builder import PackageBuilder
from nightly.release.model import BuildJobSpec, artifact_name
from nightly.release.packager import package_artifact
from nightly.release.store import ReleaseStore
from nightly.release.uploader import upload_artifact


@dataclass(frozen=True, slots=True)
class JobSucceeded:
    platform_name: str
    artifact_name: str
    uploaded: bool = True
    # The store only rehearsed the upload; the archive is still on disk.
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class BuildFailed:
    platform_name: str
    detail: str


@dataclass(frozen=True, slots=True)
class PackageFailed:
    platform_name: str
    detail: str


@dataclass(frozen=True, slots=True)
class UploadFailed:
    platform_name: str
    detail: str
    # The release was gone at upload time: create-before-upload was violated.
    release_missing: bool = False


@dataclass(frozen=True, slots=True)
class JobCancelled:
    platform_name: str


JobResult = JobSucceeded | BuildFailed | PackageFailed | UploadFailed | JobCancelled


def describe(result: JobResult) -> str:
    match result:
        case JobSucceeded(artifact_name=name, uploaded=True):
            return f"uploaded {name}"
        case JobSucceeded(artifact_name=name, uploaded=False, dry_run=True):
            return f"packaged {name} (dry run, not uploaded)"
        case JobSucceeded(artifact_name=name, uploaded=False):
            return f"packaged {name} (upload disabled)"
        case BuildFailed(detail=detail):
            return f"build failed: {detail}"
        case PackageFailed(detail=detail):
            return f"package failed: {detail}"
        case UploadFailed(detail=detail, release_missing=True):
            return f"release missing at upload: {detail}"
        case UploadFailed(detail=detail):
            return f"upload failed: {detail}"
        case JobCancelled():
            return "cancelled"


@dataclass(frozen=True, slots=True)
class MatrixReport:
    results: tuple[JobResult, ...]
    interrupted: bool = False

    @property
    def succeeded(self) -> list[JobSucceeded]:
        return [r for r in self.results if isinstance(r, JobSucceeded)]

    @property
    def failed(self) -> list[JobResult]:
        return [r for r in self.results if not isinstance(r, JobSucceeded)]

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    @property
    def uploaded(self) -> list[str]:
        return [r.artifact_name for r in self.succeeded if r.uploaded]

    @property
    def release_missing(self) -> bool:
        return any(isinstance(r, UploadFailed) and r.release_missing for r in self.results)


@dataclass(frozen=True, slots=True)
class MatrixContext:
    """Read-only state shared by every job of one run."""

    release_tag: str
    package_prefix: str
    work_dir: Path
    builder: PackageBuilder
    store: ReleaseStore
    console: ConsoleProtocol
    # Files every package directory must hold (binary, license, readme).
    required_files: Callable[[BuildJobSpec], tuple[str, ...]]
    cancel: threading.Event = field(default_factory=threading.Event)

    @property
    def dist_dir(self) -> Path:
        return self.work_dir / "dist"


def run_job(job: BuildJobSpec, ctx: MatrixContext) -> JobResult:
    """Run one matrix entry to a terminal result. Never raises."""
    name = job.platform_name
    say = ctx.console

    if ctx.cancel.is_set():
        return JobCancelled(platform_name=name)
    say.print(f"[{name}] building {job.target_triple}", Style.INFO)
    try:
        built = ctx.builder.build(job, ctx.work_dir)
    except Exception as e:
        return BuildFailed(platform_name=name, detail=f"unexpected error: {e!r}")
    if isinstance(built, Err):
        return BuildFailed(platform_name=name, detail=built.error.detail)

    if ctx.cancel.is_set():
        return JobCancelled(platform_name=name)
    logical = artifact_name(ctx.package_prefix, name, job.archive_format)
    say.print(f"[{name}] packaging {logical}", Style.INFO)
    try:
        packaged = package_artifact(
            built.value,
            logical,
            job.archive_format,
            ctx.dist_dir,
            required=ctx.required_files(job),
        )
    except Exception as e:
        return PackageFailed(platform_name=name, detail=f"unexpected error: {e!r}")
    if isinstance(packaged, Err):
        return PackageFailed(platform_name=name, detail=packaged.error.detail)
    artifact = packaged.value

    if not job.upload:
        say.print(f"[{name}] upload disabled, keeping {artifact.path}", Style.DIM)
        return JobSucceeded(platform_name=name, artifact_name=logical, uploaded=False)

    if ctx.cancel.is_set():
        return JobCancelled(platform_name=name)
    say.print(f"[{name}] uploading {logical} to {ctx.release_tag}", Style.INFO)
    try:
        uploaded = upload_artifact(ctx.store, ctx.release_tag, artifact)
    except Exception as e:
        return UploadFailed(platform_name=name, detail=f"unexpected error: {e!r}")
    if isinstance(uploaded, Err):
        missing = uploaded.error.kind == "release_not_found"
        if missing:
            say.alert(
                f"[{name}] release {ctx.release_tag} does not exist at upload time; "
                "uploads must only start after the release is created"
            )
        return UploadFailed(
            platform_name=name, detail=uploaded.error.pretty(), release_missing=missing
        )

    if not uploaded.value:
        say.print(f"[{name}] dry run, keeping {artifact.path}", Style.DIM)
        return JobSucceeded(
            platform_name=name, artifact_name=logical, uploaded=False, dry_run=True
        )

    # Uploaded artifacts are not needed locally any more.
    artifact.path.unlink(missing_ok=True)
    say.success(f"[{name}] {logical}")
    return JobSucceeded(platform_name=name, artifact_name=logical, uploaded=True)


def run_matrix(
    jobs: Sequence[BuildJobSpec],
    ctx: MatrixContext,
    *,
    max_workers: int | None = None,
) -> MatrixReport:
    """Run every job in parallel and collect results in matrix order."""
    if not jobs:
        return MatrixReport(results=())

    results: dict[int, JobResult] = {}
    executor = ThreadPoolExecutor(
        max_workers=max_workers or len(jobs), thread_name_prefix="nightly-job"
    )
    futures: dict[Future[JobResult], int] = {}
    try:
        for i, job in enumerate(jobs):
            futures[executor.submit(run_job, job, ctx)] = i
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    except KeyboardInterrupt:
        ctx.cancel.set()
        executor.shutdown(wait=False, cancel_futures=True)
        ctx.console.warning("cancelled; in-flight jobs are abandoned")
        return MatrixReport(
            results=tuple(
                results.get(i, JobCancelled(platform_name=job.platform_name))
                for i, job in enumerate(jobs)
            ),
            interrupted=True,
        )

    executor.shutdown(wait=True)
    return MatrixReport(results=tuple(results[i] for i in range(len(jobs))))
