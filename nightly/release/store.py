"""Release store adapters.

The orchestrator only needs two operations from the hosting service: create
a release under a tag, and attach a file to it. `GhReleaseStore` performs
both through the GitHub CLI; `InMemoryReleaseStore` keeps everything in
process for tests and offline rehearsals.

Authentication is the CLI's business (GH_TOKEN / GITHUB_TOKEN); nothing here
reads credentials.
"""

from __future__ import annotations

import shutil
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from nightly.core.result import Err, Ok, Result
from nightly.output.console import ConsoleProtocol, Style
from nightly.platform.process import ProcessError
from nightly.platform.process import run as run_process
from nightly.release.errors import ReleaseError, ReleaseErrorKind
from nightly.release.timeouts import GH_TIMEOUT_SECONDS, GH_UPLOAD_TIMEOUT_SECONDS


class ReleaseStore(Protocol):
    def create_release(
        self,
        *,
        tag: str,
        title: str,
        prerelease: bool,
        generate_notes: bool = True,
        target: str | None = None,
    ) -> Result[str, ReleaseError]:
        """Create a release; Ok carries an opaque handle (usually a URL)."""
        ...

    def upload_artifact(self, *, tag: str, path: Path) -> Result[bool, ReleaseError]:
        """Attach `path` to `tag`; Ok(False) when nothing was actually sent."""
        ...


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


_ALREADY_EXISTS_MARKERS = ("already exists", "already_exists")
_NOT_FOUND_MARKERS = ("release not found", "http 404")
_AUTH_MARKERS = ("gh auth login", "http 401", "bad credentials", "authentication required")


def classify_gh_error(error: ProcessError, *, default: ReleaseErrorKind) -> ReleaseErrorKind:
    """Map gh stderr onto a release error kind."""
    text = f"{error.stderr}\n{error.stdout}".lower()
    if any(marker in text for marker in _AUTH_MARKERS):
        return "gh_auth_required"
    if any(marker in text for marker in _ALREADY_EXISTS_MARKERS):
        return "already_exists"
    if default == "release_not_found" and any(marker in text for marker in _NOT_FOUND_MARKERS):
        return "release_not_found"
    return "transport"


@dataclass(slots=True)
class GhReleaseStore:
    workspace_root: Path
    console: ConsoleProtocol
    repo: str | None = None
    dry_run: bool = False

    def _cmd(self, *args: str) -> list[str]:
        cmd = ["gh", "release", *args]
        if self.repo:
            cmd.extend(["--repo", self.repo])
        return cmd

    def create_release(
        self,
        *,
        tag: str,
        title: str,
        prerelease: bool,
        generate_notes: bool = True,
        target: str | None = None,
    ) -> Result[str, ReleaseError]:
        args = ["create", tag, "--title", title]
        if generate_notes:
            args.append("--generate-notes")
        if prerelease:
            args.append("--prerelease")
        if target:
            args.extend(["--target", target])
        cmd = self._cmd(*args)

        self.console.print(" ".join(cmd[:4]) + " ...", Style.DIM)
        if self.dry_run:
            return Ok(f"(dry-run) {tag}")

        result = run_process(cmd, cwd=self.workspace_root, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            e = result.error
            kind = classify_gh_error(e, default="transport")
            if kind == "already_exists":
                return Err(
                    ReleaseError(
                        kind=kind,
                        message=f"release already exists: {tag}",
                        hint="Nightlies are created at most once per day; delete it to re-run",
                    )
                )
            return Err(
                ReleaseError(
                    kind=kind,
                    message=f"failed to create release {tag}",
                    hint=e.detail,
                )
            )

        return Ok(result.value.strip() or tag)

    def upload_artifact(self, *, tag: str, path: Path) -> Result[bool, ReleaseError]:
        cmd = self._cmd("upload", tag, str(path))
        self.console.print(f"gh release upload {tag} {path.name}", Style.DIM)
        if self.dry_run:
            return Ok(False)

        result = run_process(cmd, cwd=self.workspace_root, timeout=GH_UPLOAD_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            e = result.error
            kind = classify_gh_error(e, default="release_not_found")
            if kind == "release_not_found":
                return Err(
                    ReleaseError(
                        kind=kind,
                        message=f"release not found: {tag}",
                        hint="The release must be created before any upload",
                    )
                )
            return Err(
                ReleaseError(
                    kind=kind,
                    message=f"failed to upload {path.name} to {tag}",
                    hint=e.detail,
                )
            )
        return Ok(True)


@dataclass(frozen=True, slots=True)
class StoredRelease:
    tag: str
    title: str
    prerelease: bool
    notes_generated: bool
    target: str | None


@dataclass
class InMemoryReleaseStore:
    """Thread-safe release store kept in memory.

    Tags are unique and asset names are unique per release, mirroring the
    constraints of a real hosting service.
    """

    releases: dict[str, StoredRelease] = field(default_factory=dict)
    assets: dict[str, dict[str, int]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def create_release(
        self,
        *,
        tag: str,
        title: str,
        prerelease: bool,
        generate_notes: bool = True,
        target: str | None = None,
    ) -> Result[str, ReleaseError]:
        with self._lock:
            if tag in self.releases:
                return Err(
                    ReleaseError(kind="already_exists", message=f"release already exists: {tag}")
                )
            self.releases[tag] = StoredRelease(
                tag=tag,
                title=title,
                prerelease=prerelease,
                notes_generated=generate_notes,
                target=target,
            )
            self.assets[tag] = {}
        return Ok(f"memory://{tag}")

    def upload_artifact(self, *, tag: str, path: Path) -> Result[bool, ReleaseError]:
        try:
            size = path.stat().st_size
        except OSError as e:
            return Err(ReleaseError(kind="transport", message=f"cannot read {path}: {e}"))

        with self._lock:
            attached = self.assets.get(tag)
            if attached is None:
                return Err(ReleaseError(kind="release_not_found", message=f"release not found: {tag}"))
            if path.name in attached:
                return Err(
                    ReleaseError(
                        kind="transport",
                        message=f"asset already attached to {tag}: {path.name}",
                    )
                )
            attached[path.name] = size
        return Ok(True)

    def asset_names(self, tag: str) -> list[str]:
        with self._lock:
            return sorted(self.assets.get(tag, {}))
