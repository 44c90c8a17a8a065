"""Typed configuration for nightly runs.

`nightly.toml` describes naming, the build command and the static build
matrix. Every key is optional; without a file the defaults describe a single
windows-x86_64 debug build of ruffle_desktop.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from nightly.core.result import Err, Ok, Result
from nightly.core.structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    get_bool,
    get_int,
    get_str,
    get_str_list,
    get_str_map,
    get_table,
)
from nightly.release.model import ArchiveFormat, BuildJobSpec, ReleaseNaming

__all__ = [
    "BuildConfig",
    "Config",
    "ConfigError",
    "ReleaseConfig",
    "default_matrix",
    "load_config",
    "load_config_or_default",
]

DEFAULT_CONFIG_NAME = "nightly.toml"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    product: str = "ruffle"
    tag_prefix: str = "nightly-debug"
    title_prefix: str = "Nightly Debug"
    # owner/name passed to gh as --repo; gh infers it from the checkout if unset
    repo: str | None = None
    # scheduled runs only happen here (forks stay quiet)
    upstream_repo: str | None = None
    activity_window_hours: int = 24

    @property
    def naming(self) -> ReleaseNaming:
        return ReleaseNaming(
            product=self.product,
            tag_prefix=self.tag_prefix,
            title_prefix=self.title_prefix,
        )


def _no_command() -> tuple[str, ...]:
    return ()


def _no_env() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """How one matrix job turns the checkout into a package directory.

    Command templates may use {package}, {target} and {features}; installer
    templates may also use {out}, {arch} and {build_dir}.
    """

    package: str = "ruffle_desktop"
    binary: str = "ruffle_desktop"
    binary_rename: str | None = "ruffle"
    output_dir: str = "target/{target}/release"
    readme: str = "README.md"
    license: str = "LICENSE.md"
    command: tuple[str, ...] = field(default_factory=_no_command)
    installer_command: tuple[str, ...] = field(default_factory=_no_command)
    installer_cwd: str = "."
    installer_output: str = "setup.msi"
    installer_env: dict[str, str] = field(default_factory=_no_env)
    max_workers: int | None = None

    def packaged_binary(self, job: BuildJobSpec) -> str:
        """File name of the binary inside the package directory."""
        return f"{self.binary_rename or self.binary}{job.exe_suffix}"

    def required_files(self, job: BuildJobSpec) -> tuple[str, ...]:
        return (self.packaged_binary(job), self.license, self.readme)


def default_matrix() -> tuple[BuildJobSpec, ...]:
    return (
        BuildJobSpec(
            platform_name="windows-x86_64",
            target_triple="x86_64-pc-windows-msvc",
            platform_family="windows",
            archive_format=ArchiveFormat.ZIP,
            build_flags=frozenset({"jpegxr", "avm_debug"}),
            extra_env={"RUSTFLAGS": "-Ctarget-feature=+crt-static"},
            supports_installer=True,
            installer_arch="x64",
            runner="windows-latest",
        ),
    )


@dataclass(frozen=True, slots=True)
class Config:
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    matrix: tuple[BuildJobSpec, ...] = field(default_factory=default_matrix)

    def job(self, platform_name: str) -> BuildJobSpec | None:
        for spec in self.matrix:
            if spec.platform_name == platform_name:
                return spec
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from parsed TOML.

        Raises:
            ValueError: On a malformed matrix entry.
        """
        release: StrDict = get_table(data, "release") or {}
        build: StrDict = get_table(data, "build") or {}

        window = get_int(release, "activity_window_hours")
        if window is not None and window <= 0:
            raise ValueError("release.activity_window_hours must be positive")

        max_workers = get_int(build, "max_workers")
        if max_workers is not None and max_workers <= 0:
            raise ValueError("build.max_workers must be positive")

        defaults = BuildConfig()
        binary_rename = build.get("binary_rename", defaults.binary_rename)
        if binary_rename is not None and not isinstance(binary_rename, str):
            raise ValueError("build.binary_rename must be a string")
        # An empty string keeps the built binary name.
        rename = binary_rename.strip() if binary_rename else ""

        matrix = default_matrix()
        if "matrix" in data:
            matrix = _parse_matrix(data["matrix"])

        return cls(
            release=ReleaseConfig(
                product=get_str(release, "product") or "ruffle",
                tag_prefix=get_str(release, "tag_prefix") or "nightly-debug",
                title_prefix=get_str(release, "title_prefix") or "Nightly Debug",
                repo=get_str(release, "repo"),
                upstream_repo=get_str(release, "upstream_repo"),
                activity_window_hours=window or 24,
            ),
            build=BuildConfig(
                package=get_str(build, "package") or defaults.package,
                binary=get_str(build, "binary") or defaults.binary,
                binary_rename=rename or None,
                output_dir=get_str(build, "output_dir") or defaults.output_dir,
                readme=get_str(build, "readme") or defaults.readme,
                license=get_str(build, "license") or defaults.license,
                command=tuple(get_str_list(build, "command") or ()),
                installer_command=tuple(get_str_list(build, "installer_command") or ()),
                installer_cwd=get_str(build, "installer_cwd") or ".",
                installer_output=get_str(build, "installer_output") or defaults.installer_output,
                installer_env=get_str_map(build, "installer_env") or {},
                max_workers=max_workers,
            ),
            matrix=matrix,
        )


def _parse_matrix(raw: object) -> tuple[BuildJobSpec, ...]:
    entries = as_obj_list(raw)
    if entries is None:
        raise ValueError("matrix must be an array of tables ([[matrix]])")

    out: list[BuildJobSpec] = []
    seen: set[str] = set()
    for i, item in enumerate(entries):
        entry = as_str_dict(item)
        if entry is None:
            raise ValueError(f"matrix[{i}] must be a table")

        name = get_str(entry, "name")
        target = get_str(entry, "target")
        if name is None or target is None:
            raise ValueError(f"matrix[{i}] requires 'name' and 'target'")
        if name in seen:
            raise ValueError(f"duplicate matrix entry: {name}")
        seen.add(name)

        family = get_str(entry, "family") or _guess_family(target)

        archive_name = get_str(entry, "archive")
        if archive_name is None:
            archive_format = ArchiveFormat.default_for(family)
        else:
            parsed = ArchiveFormat.from_name(archive_name)
            if parsed is None:
                raise ValueError(f"matrix[{i}] unknown archive format: {archive_name}")
            archive_format = parsed

        features = get_str_list(entry, "features")
        if "features" in entry and features is None:
            raise ValueError(f"matrix[{i}].features must be a list of strings")
        env = get_str_map(entry, "env")
        if "env" in entry and env is None:
            raise ValueError(f"matrix[{i}].env must be a table of strings")

        installer = get_bool(entry, "installer")
        installer_arch = get_str(entry, "installer_arch")
        if installer and installer_arch is None:
            raise ValueError(f"matrix[{i}] sets installer = true without installer_arch")
        upload = get_bool(entry, "upload")
        out.append(
            BuildJobSpec(
                platform_name=name,
                target_triple=target,
                platform_family=family,
                archive_format=archive_format,
                build_flags=frozenset(features or ()),
                extra_env=env or {},
                supports_installer=bool(installer),
                installer_arch=installer_arch,
                upload=True if upload is None else upload,
                runner=get_str(entry, "runner"),
            )
        )

    return tuple(out)


def _guess_family(target: str) -> str:
    """Platform family from a target triple (x86_64-pc-windows-msvc -> windows)."""
    t = target.lower()
    if "windows" in t:
        return "windows"
    if "apple" in t or "darwin" in t:
        return "macos"
    if "linux" in t:
        return "linux"
    return "unknown"


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and validate `nightly.toml`.

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Like load_config, but a missing file means defaults.

    A file that exists and is broken is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
