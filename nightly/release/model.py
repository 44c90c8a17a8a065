from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from nightly.release.identity import ReleaseIdentity


class ArchiveFormat(Enum):
    ZIP = "zip"
    TAR_GZ = "tar.gz"

    @property
    def extension(self) -> str:
        return self.value

    @classmethod
    def default_for(cls, platform_family: str) -> ArchiveFormat:
        """Default container: zip on windows, tar.gz everywhere else."""
        return cls.ZIP if platform_family == "windows" else cls.TAR_GZ

    @classmethod
    def from_name(cls, name: str) -> ArchiveFormat | None:
        normalized = name.strip().lower().lstrip(".")
        for fmt in cls:
            if fmt.value == normalized:
                return fmt
        if normalized in {"tgz", "targz", "tar_gz"}:
            return cls.TAR_GZ
        return None


def _frozen_env(env: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(env))


@dataclass(frozen=True, slots=True)
class BuildJobSpec:
    """One statically configured matrix entry."""

    platform_name: str
    target_triple: str
    platform_family: str
    archive_format: ArchiveFormat
    build_flags: frozenset[str] = frozenset()
    extra_env: Mapping[str, str] = field(default_factory=lambda: _frozen_env({}))
    supports_installer: bool = False
    installer_arch: str | None = None
    upload: bool = True
    runner: str | None = None

    def __post_init__(self) -> None:
        # Callers may pass a plain dict; never share it with them.
        object.__setattr__(self, "extra_env", _frozen_env(self.extra_env))

    @property
    def is_windows(self) -> bool:
        return self.platform_family == "windows"

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.is_windows else ""


@dataclass(frozen=True, slots=True)
class ReleaseNaming:
    """Constants that turn an identity into tags, titles and file names."""

    product: str = "ruffle"
    tag_prefix: str = "nightly-debug"
    title_prefix: str = "Nightly Debug"

    def tag(self, identity: ReleaseIdentity) -> str:
        return f"{self.tag_prefix}-{identity.date_dash}"

    def title(self, identity: ReleaseIdentity) -> str:
        return f"{self.title_prefix} {identity.date_dash}"

    def package_prefix(self, identity: ReleaseIdentity) -> str:
        return package_prefix(self.product, identity)


def package_prefix(product: str, identity: ReleaseIdentity) -> str:
    return f"{product}-nightly-{identity.date_underscore}"


def artifact_name(prefix: str, platform_name: str, fmt: ArchiveFormat) -> str:
    """Deterministic artifact file name, e.g. ruffle-nightly-2024_05_01-linux-x86_64.tar.gz."""
    return f"{prefix}-{platform_name}.{fmt.extension}"


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    tag: str
    title: str
    prerelease: bool
    # Uploads address the release by tag.
    upload_target: str


@dataclass(frozen=True, slots=True)
class ArtifactFile:
    path: Path
    logical_name: str
