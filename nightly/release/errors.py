"""Error types for the release orchestration.

Release-store failures share one payload (`ReleaseError`) so they can be
rendered uniformly. Per-step failures of a matrix job are small dataclasses
grouped into unions, in the same way build failures are modelled.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "already_exists",
    "transport",
    "release_not_found",
    "gh_missing",
    "gh_auth_required",
    "invalid_input",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


@dataclass(frozen=True, slots=True)
class GateQueryError:
    """Source history could not be queried; the gate stays closed."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class BuildFailure:
    detail: str
    returncode: int | None = None


@dataclass(frozen=True, slots=True)
class SourceMissing:
    source_dir: str
    missing: tuple[str, ...]

    @property
    def detail(self) -> str:
        return f"missing in {self.source_dir}: {', '.join(self.missing)}"


@dataclass(frozen=True, slots=True)
class ArchiveFailed:
    reason: str

    @property
    def detail(self) -> str:
        return f"archive failed: {self.reason}"


PackageError = SourceMissing | ArchiveFailed
