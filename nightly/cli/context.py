from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from nightly.core.errors import ExitCode
from nightly.core.result import Err
from nightly.output.console import ConsoleProtocol, RichConsole
from nightly.release.config import DEFAULT_CONFIG_NAME, Config, load_config_or_default


@dataclass(frozen=True, slots=True)
class CLIContext:
    source_root: Path
    config: Config
    console: ConsoleProtocol


def build_context(
    *,
    source: Path,
    config_path: Path | None,
    console: ConsoleProtocol | None = None,
) -> CLIContext:
    console = console or RichConsole()
    try:
        root = source.expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid --source: {e}", err=True)
        raise typer.Exit(code=int(ExitCode.USER_ERROR))
    if not root.is_dir():
        typer.echo(f"error: --source '{root}' is not a directory", err=True)
        raise typer.Exit(code=int(ExitCode.USER_ERROR))

    path = config_path if config_path is not None else root / DEFAULT_CONFIG_NAME
    if config_path is not None and not path.exists():
        typer.echo(f"error: config not found: {path}", err=True)
        raise typer.Exit(code=int(ExitCode.USER_ERROR))

    result = load_config_or_default(path)
    if isinstance(result, Err):
        typer.echo(f"error: {result.error.message}", err=True)
        raise typer.Exit(code=int(ExitCode.ENV_ERROR))

    return CLIContext(source_root=root, config=result.value, console=console)
