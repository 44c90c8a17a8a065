"""Artifact packaging.

Turns a job's package directory into one archive whose name is fixed before
any byte is written, so a failed job can be retried under the same name.

- Entries are added in sorted order, relative to the directory root
- ZIP writing accepts pre-1980 mtimes (some CI checkouts use mtime=0)
- A partially written archive is removed on failure
"""

from __future__ import annotations

import tarfile
from collections.abc import Iterable
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

from nightly.core.result import Err, Ok, Result
from nightly.release.errors import ArchiveFailed, PackageError, SourceMissing
from nightly.release.model import ArchiveFormat, ArtifactFile


def _collect_files(source_dir: Path) -> list[tuple[Path, str]]:
    out: list[tuple[Path, str]] = []
    for p in sorted(source_dir.rglob("*")):
        if p.is_dir():
            continue
        out.append((p, p.relative_to(source_dir).as_posix()))
    return out


def _write_zip(archive: Path, files: list[tuple[Path, str]]) -> None:
    with ZipFile(archive, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as zf:
        for src, arc in files:
            zf.write(src, arcname=arc)


def _write_tar_gz(archive: Path, files: list[tuple[Path, str]]) -> None:
    with tarfile.open(archive, "w:gz") as tar:
        for src, arc in files:
            tar.add(src, arcname=arc, recursive=False)


def missing_files(source_dir: Path, required: Iterable[str]) -> tuple[str, ...]:
    return tuple(name for name in required if not (source_dir / name).is_file())


def package_artifact(
    source_dir: Path,
    logical_name: str,
    archive_format: ArchiveFormat,
    out_dir: Path,
    *,
    required: Iterable[str],
) -> Result[ArtifactFile, PackageError]:
    """Archive the contents of `source_dir` into `out_dir / logical_name`.

    `required` lists paths (relative to `source_dir`) that must exist:
    the job's binary, the license and the readme.
    """
    if not logical_name.endswith(f".{archive_format.extension}"):
        return Err(
            ArchiveFailed(
                reason=f"{logical_name} does not match format .{archive_format.extension}"
            )
        )

    if not source_dir.is_dir():
        return Err(SourceMissing(source_dir=str(source_dir), missing=(".",)))

    missing = missing_files(source_dir, required)
    if missing:
        return Err(SourceMissing(source_dir=str(source_dir), missing=missing))

    files = _collect_files(source_dir)
    archive = out_dir / logical_name
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        match archive_format:
            case ArchiveFormat.ZIP:
                _write_zip(archive, files)
            case ArchiveFormat.TAR_GZ:
                _write_tar_gz(archive, files)
    except (OSError, tarfile.TarError, ValueError) as e:
        archive.unlink(missing_ok=True)
        return Err(ArchiveFailed(reason=str(e)))

    return Ok(ArtifactFile(path=archive, logical_name=logical_name))
