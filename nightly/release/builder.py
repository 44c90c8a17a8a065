"""Package builder: compile one matrix entry and lay out its package directory.

The build itself is delegated to a configured command (cargo by default).
Afterwards the package directory holds the readme, the license, the renamed
binary and, for jobs that support it, an installer.
"""

from __future__ import annotations

import shutil
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from nightly.core.result import Err, Ok, Result
from nightly.output.console import ConsoleProtocol, Style
from nightly.platform.process import ProcessError
from nightly.platform.process import run as run_process
from nightly.release.config import BuildConfig
from nightly.release.errors import BuildFailure
from nightly.release.model import BuildJobSpec
from nightly.release.timeouts import BUILD_TIMEOUT_SECONDS, INSTALLER_TIMEOUT_SECONDS


class PackageBuilder(Protocol):
    def build(self, job: BuildJobSpec, work_dir: Path) -> Result[Path, BuildFailure]:
        """Build `job` and return its package directory."""
        ...


def default_build_command(config: BuildConfig, job: BuildJobSpec) -> list[str]:
    cmd = ["cargo", "build", "--locked", "--package", config.package, "--release"]
    if job.build_flags:
        cmd.extend(["--features", ",".join(sorted(job.build_flags))])
    cmd.extend(["--target", job.target_triple])
    return cmd


def _render(template: tuple[str, ...], values: Mapping[str, str]) -> list[str]:
    """Format each argument; arguments that render empty are dropped."""
    out: list[str] = []
    for arg in template:
        rendered = arg.format_map(values)
        if rendered:
            out.append(rendered)
    return out


def _failure(step: str, error: ProcessError) -> BuildFailure:
    return BuildFailure(detail=f"{step}: {error.detail}", returncode=error.returncode)


@dataclass(slots=True)
class CommandPackageBuilder:
    source_root: Path
    config: BuildConfig
    console: ConsoleProtocol

    def build_command(self, job: BuildJobSpec) -> list[str]:
        if not self.config.command:
            return default_build_command(self.config, job)
        return _render(self.config.command, self._values(job))

    def build(self, job: BuildJobSpec, work_dir: Path) -> Result[Path, BuildFailure]:
        try:
            cmd = self.build_command(job)
        except (KeyError, IndexError, ValueError) as e:
            return Err(BuildFailure(detail=f"invalid build command template: {e}"))
        self.console.print(f"[{job.platform_name}] {' '.join(cmd)}", Style.DIM)
        compiled = run_process(
            cmd, cwd=self.source_root, env=job.extra_env, timeout=BUILD_TIMEOUT_SECONDS
        )
        if isinstance(compiled, Err):
            return Err(_failure("build", compiled.error))

        package_dir = work_dir / job.platform_name / "package"
        try:
            if package_dir.exists():
                shutil.rmtree(package_dir)
            package_dir.mkdir(parents=True)
        except OSError as e:
            return Err(BuildFailure(detail=f"cannot prepare {package_dir}: {e}"))

        copied = self._copy_common(job, package_dir)
        if isinstance(copied, Err):
            return copied

        if job.supports_installer and self.config.installer_command:
            installer = self._build_installer(job, package_dir)
            if isinstance(installer, Err):
                return installer

        return Ok(package_dir)

    def _values(self, job: BuildJobSpec) -> dict[str, str]:
        return {
            "package": self.config.package,
            "target": job.target_triple,
            "features": ",".join(sorted(job.build_flags)),
            "arch": job.installer_arch or "",
            "build_dir": str(self._build_dir(job)),
        }

    def _build_dir(self, job: BuildJobSpec) -> Path:
        rel = self.config.output_dir.format(target=job.target_triple)
        return (self.source_root / rel).resolve()

    def _copy_common(self, job: BuildJobSpec, package_dir: Path) -> Result[None, BuildFailure]:
        built = self._build_dir(job) / f"{self.config.binary}{job.exe_suffix}"
        copies = [
            (self.source_root / self.config.readme, package_dir / self.config.readme),
            (self.source_root / self.config.license, package_dir / self.config.license),
            (built, package_dir / self.config.packaged_binary(job)),
        ]
        for src, dst in copies:
            if not src.is_file():
                return Err(BuildFailure(detail=f"build output missing: {src}"))
            try:
                shutil.copy2(src, dst)
            except OSError as e:
                return Err(BuildFailure(detail=f"cannot copy {src.name}: {e}"))
        return Ok(None)

    def _build_installer(
        self, job: BuildJobSpec, package_dir: Path
    ) -> Result[None, BuildFailure]:
        values = self._values(job)
        values["out"] = str((package_dir / self.config.installer_output).resolve())
        try:
            cmd = _render(self.config.installer_command, values)
            env = {k: v.format_map(values) for k, v in self.config.installer_env.items()}
        except (KeyError, IndexError, ValueError) as e:
            return Err(BuildFailure(detail=f"invalid installer template: {e}"))

        self.console.print(f"[{job.platform_name}] {' '.join(cmd[:3])} ...", Style.DIM)
        result = run_process(
            cmd,
            cwd=self.source_root / self.config.installer_cwd,
            env=env,
            timeout=INSTALLER_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(_failure("installer", result.error))
        return Ok(None)
