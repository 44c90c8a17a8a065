"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from nightly.core.errors import ExitCode
from nightly.core.result import Err, Result
from nightly.output.console import Style

if TYPE_CHECKING:
    from nightly.cli.context import CLIContext


def exit_on_error[T, E](
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ExitCode = ExitCode.USER_ERROR,
) -> T:
    """Return the Ok value, or print the error and exit.

    Error payloads are expected to carry 'message' and an optional 'hint';
    anything else is printed with str().
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))
    return result.value


def exit_with_code(code: ExitCode) -> NoReturn:
    raise typer.Exit(code=int(code))
