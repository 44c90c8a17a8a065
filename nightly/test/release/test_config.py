from __future__ import annotations

from pathlib import Path

import pytest

from nightly.core.result import Err, Ok
from nightly.release.config import (
    BuildConfig,
    Config,
    default_matrix,
    load_config,
    load_config_or_default,
)
from nightly.release.model import ArchiveFormat

FULL_TOML = """
[release]
product = "ruffle"
tag_prefix = "nightly-debug"
title_prefix = "Nightly Debug"
repo = "ruffle-rs/ruffle"
upstream_repo = "ruffle-rs/ruffle"
activity_window_hours = 12

[build]
package = "ruffle_desktop"
binary = "ruffle_desktop"
binary_rename = "ruffle"
command = ["cargo", "build", "--package", "{package}", "--target", "{target}"]
installer_command = ["cargo", "wix", "--target", "{arch}", "--output", "{out}"]
installer_cwd = "desktop/packages/windows/wix"
installer_env = { RUFFLE_VERSION = "nightly" }
max_workers = 2

[[matrix]]
name = "windows-x86_64"
target = "x86_64-pc-windows-msvc"
features = ["jpegxr", "avm_debug"]
env = { RUSTFLAGS = "-Ctarget-feature=+crt-static" }
installer = true
installer_arch = "x64"
runner = "windows-latest"

[[matrix]]
name = "linux-x86_64"
target = "x86_64-unknown-linux-gnu"
archive = "tgz"
upload = false
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "nightly.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_describe_windows_debug_build() -> None:
    config = Config()

    assert config.release.naming.tag_prefix == "nightly-debug"
    assert config.release.activity_window_hours == 24
    assert [j.platform_name for j in config.matrix] == ["windows-x86_64"]

    job = config.matrix[0]
    assert job.archive_format is ArchiveFormat.ZIP
    assert job.build_flags == frozenset({"jpegxr", "avm_debug"})
    assert job.supports_installer
    assert config.build.packaged_binary(job) == "ruffle.exe"
    assert config.build.required_files(job) == ("ruffle.exe", "LICENSE.md", "README.md")


def test_load_full_file(tmp_path: Path) -> None:
    result = load_config(_write(tmp_path, FULL_TOML))
    assert isinstance(result, Ok)
    config = result.value

    assert config.release.repo == "ruffle-rs/ruffle"
    assert config.release.activity_window_hours == 12
    assert config.build.max_workers == 2
    assert config.build.installer_cwd == "desktop/packages/windows/wix"
    assert config.build.installer_env == {"RUFFLE_VERSION": "nightly"}
    assert config.build.command[3] == "{package}"

    windows, linux = config.matrix
    assert windows.platform_family == "windows"
    assert windows.archive_format is ArchiveFormat.ZIP
    assert dict(windows.extra_env) == {"RUSTFLAGS": "-Ctarget-feature=+crt-static"}
    assert windows.installer_arch == "x64"
    assert windows.upload

    assert linux.platform_family == "linux"
    assert linux.archive_format is ArchiveFormat.TAR_GZ
    assert not linux.upload
    assert not linux.supports_installer
    assert config.job("linux-x86_64") is linux
    assert config.job("amiga") is None


def test_empty_rename_keeps_binary_name(tmp_path: Path) -> None:
    result = load_config(_write(tmp_path, '[build]\nbinary_rename = ""\n'))
    assert isinstance(result, Ok)
    build = result.value.build
    assert build.binary_rename is None
    assert build.packaged_binary(default_matrix()[0]) == "ruffle_desktop.exe"


def test_family_is_guessed_from_target(tmp_path: Path) -> None:
    text = '[[matrix]]\nname = "macos-universal"\ntarget = "universal-apple-darwin"\n'
    result = load_config(_write(tmp_path, text))
    assert isinstance(result, Ok)
    (job,) = result.value.matrix
    assert job.platform_family == "macos"
    assert job.archive_format is ArchiveFormat.TAR_GZ


@pytest.mark.parametrize(
    ("text", "fragment"),
    [
        ('[[matrix]]\nname = "x"\n', "requires 'name' and 'target'"),
        (
            '[[matrix]]\nname = "a"\ntarget = "t"\n[[matrix]]\nname = "a"\ntarget = "t"\n',
            "duplicate matrix entry",
        ),
        ('[[matrix]]\nname = "a"\ntarget = "t"\narchive = "rar"\n', "unknown archive"),
        ('[[matrix]]\nname = "a"\ntarget = "t"\nfeatures = "jpegxr"\n', "features"),
        ("[release]\nactivity_window_hours = 0\n", "must be positive"),
        ("[build]\nmax_workers = -1\n", "must be positive"),
        ('matrix = "windows"\n', "array of tables"),
        (
            '[[matrix]]\nname = "w"\ntarget = "x86_64-pc-windows-msvc"\ninstaller = true\n',
            "without installer_arch",
        ),
    ],
)
def test_invalid_structure(tmp_path: Path, text: str, fragment: str) -> None:
    result = load_config(_write(tmp_path, text))
    assert isinstance(result, Err)
    assert fragment in result.error.message
    assert result.error.path == tmp_path / "nightly.toml"


def test_invalid_toml(tmp_path: Path) -> None:
    result = load_config(_write(tmp_path, "[release\n"))
    assert isinstance(result, Err)
    assert "Invalid TOML" in result.error.message


def test_missing_file(tmp_path: Path) -> None:
    missing = tmp_path / "nope.toml"

    assert isinstance(load_config(missing), Err)

    fallback = load_config_or_default(missing)
    assert isinstance(fallback, Ok)
    assert fallback.value == Config()


def test_broken_file_is_not_replaced_by_defaults(tmp_path: Path) -> None:
    result = load_config_or_default(_write(tmp_path, "[build]\nmax_workers = 0\n"))
    assert isinstance(result, Err)


def test_build_config_is_independent_per_instance() -> None:
    assert BuildConfig().installer_env is not BuildConfig().installer_env
