"""Source history queries for the activity gate.

Usage:
    history = GitHistory(Path("."))
    match history.has_commits_since("HEAD", timedelta(hours=24)):
        case Ok(active):
            print("active" if active else "quiet")
        case Err(e):
            print(f"git failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Protocol

from nightly.core.clock import Clock, utc_now
from nightly.core.result import Err, Ok, Result
from nightly.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0

__all__ = ["GitError", "GitHistory", "HistorySource"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class HistorySource(Protocol):
    def has_commits_since(self, ref: str, window: timedelta) -> Result[bool, GitError]: ...


class GitHistory:
    """Answers history questions about a local checkout."""

    def __init__(self, path: Path, *, clock: Clock | None = None) -> None:
        self.path = path
        self._clock = clock or utc_now

    def has_commits_since(self, ref: str, window: timedelta) -> Result[bool, GitError]:
        """True if any commit reachable from `ref` was committed within `window`.

        The window ends at the clock's current instant.
        """
        cutoff = self._clock() - window
        args = [
            "rev-list",
            "--max-count=1",
            f"--after={cutoff.isoformat()}",
            ref,
            "--",
        ]
        result = run_process(
            ["git", "-C", str(self.path), *args], cwd=self.path, timeout=_GIT_TIMEOUT_SECONDS
        )
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command="rev-list",
                        message=e.stderr.strip() or "git rev-list failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(bool(stdout.strip()))
