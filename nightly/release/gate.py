"""Activity gate: decide whether tonight's release is warranted."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum, auto

from nightly.core.result import Err
from nightly.git.history import HistorySource
from nightly.release.errors import GateQueryError

DEFAULT_WINDOW = timedelta(hours=24)

# CI events that represent an operator asking for a build.
MANUAL_EVENTS = frozenset({"workflow_dispatch", "repository_dispatch", "manual"})


class TriggerKind(Enum):
    MANUAL = auto()
    SCHEDULED = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class Trigger:
    kind: TriggerKind
    ref: str = "HEAD"
    event: str | None = None
    # owner/name of the repository the run executes in
    repository: str | None = None

    @property
    def manual(self) -> bool:
        return self.kind is TriggerKind.MANUAL

    @classmethod
    def from_event(
        cls, event: str, *, ref: str = "HEAD", repository: str | None = None
    ) -> Trigger:
        name = event.strip().lower()
        kind = TriggerKind.MANUAL if name in MANUAL_EVENTS else TriggerKind.SCHEDULED
        return cls(kind=kind, ref=ref, event=name or None, repository=repository)


@dataclass(frozen=True, slots=True)
class GateDecision:
    open: bool
    reason: str
    error: GateQueryError | None = None


def should_release(
    trigger: Trigger,
    history: HistorySource,
    window: timedelta = DEFAULT_WINDOW,
    *,
    upstream_repo: str | None = None,
) -> GateDecision:
    """Decide whether to release.

    Manual triggers always pass. Scheduled triggers pass only on the upstream
    repository (when one is configured) and only if something landed within
    `window`. A failed history query closes the gate.
    """
    if trigger.manual:
        return GateDecision(open=True, reason=f"manual trigger ({trigger.event or 'manual'})")

    if upstream_repo and trigger.repository and trigger.repository != upstream_repo:
        return GateDecision(open=False, reason=f"scheduled runs are limited to {upstream_repo}")

    result = history.has_commits_since(trigger.ref, window)
    if isinstance(result, Err):
        return GateDecision(
            open=False,
            reason="history query failed",
            error=GateQueryError(
                message=f"cannot query history of {trigger.ref}",
                hint=result.error.message or None,
            ),
        )

    hours = window.total_seconds() / 3600
    if result.value:
        return GateDecision(open=True, reason=f"activity in the last {hours:g}h")
    return GateDecision(open=False, reason=f"no activity in the last {hours:g}h")
