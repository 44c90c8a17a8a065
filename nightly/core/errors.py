"""Exit codes for the nightly CLI.

Every run ends in exactly one of these codes. They are the contract with the
CI job that invokes `nightly run`, so the numeric values must remain stable:

- 0: Every matrix job succeeded
- 1: User error (bad option, unknown platform)
- 2: Environment error (missing gh, unreadable config)
- 3: Release record could not be created (no job started)
- 4: Release created but at least one job failed
- 5: History could not be queried (gate closed, no release)
- 6: No release needed (quiet period, or not the upstream repository)
"""

from enum import IntEnum

__all__ = ["ExitCode"]


class ExitCode(IntEnum):
    """Process exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    RELEASE_FAILED = 3
    PARTIAL_FAILURE = 4
    GATE_ERROR = 5
    NO_RELEASE = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ExitCode.OK
