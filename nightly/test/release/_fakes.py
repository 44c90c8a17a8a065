from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

from nightly.core.result import Err, Ok, Result
from nightly.git.history import GitError
from nightly.release.config import BuildConfig
from nightly.release.errors import BuildFailure
from nightly.release.model import ArchiveFormat, BuildJobSpec

FIXED_NOW = datetime(2024, 5, 1, 3, 0, tzinfo=UTC)


def fixed_clock() -> datetime:
    return FIXED_NOW


def job(
    name: str,
    *,
    family: str = "linux",
    archive: ArchiveFormat | None = None,
    upload: bool = True,
    installer: bool = False,
) -> BuildJobSpec:
    return BuildJobSpec(
        platform_name=name,
        target_triple=f"x86_64-unknown-{name}",
        platform_family=family,
        archive_format=archive or ArchiveFormat.default_for(family),
        upload=upload,
        supports_installer=installer,
    )


def five_jobs() -> tuple[BuildJobSpec, ...]:
    return (
        job("windows-x86_64", family="windows"),
        job("windows-arm64", family="windows"),
        job("linux-x86_64"),
        job("linux-arm64"),
        job("macos-universal", family="macos"),
    )


@dataclass
class FakeHistory:
    active: bool = True
    error: str | None = None
    calls: list[tuple[str, timedelta]] = field(default_factory=list)

    def has_commits_since(self, ref: str, window: timedelta) -> Result[bool, GitError]:
        self.calls.append((ref, window))
        if self.error is not None:
            return Err(GitError(command="rev-list", message=self.error, returncode=128))
        return Ok(self.active)


@dataclass
class FakeBuilder:
    """Writes a minimal package directory for each job.

    `fail` names jobs whose build fails; `omit` maps job names to files that
    are left out of the package directory.
    """

    config: BuildConfig = field(default_factory=BuildConfig)
    fail: Iterable[str] = ()
    omit: dict[str, tuple[str, ...]] = field(default_factory=dict)
    raise_for: Iterable[str] = ()
    started: list[str] = field(default_factory=list)
    gate: threading.Event | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def build(self, job: BuildJobSpec, work_dir: Path) -> Result[Path, BuildFailure]:
        with self._lock:
            self.started.append(job.platform_name)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if job.platform_name in set(self.raise_for):
            raise RuntimeError(f"builder crashed for {job.platform_name}")
        if job.platform_name in set(self.fail):
            return Err(BuildFailure(detail=f"cargo failed for {job.target_triple}", returncode=101))

        package_dir = work_dir / job.platform_name / "package"
        package_dir.mkdir(parents=True, exist_ok=True)
        skipped = self.omit.get(job.platform_name, ())
        for name in self.config.required_files(job):
            if name in skipped:
                continue
            (package_dir / name).write_text(f"{name} for {job.platform_name}\n", encoding="utf-8")
        return Ok(package_dir)
