"""Release identity: the calendar day a nightly run belongs to.

The day is rendered two ways. The dash form (2024-05-01) is human readable
and used for tags and titles; the underscore form (2024_05_01) is used in
artifact file names. Both are always derived from one `date`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime

from nightly.core.clock import Clock, utc_now
from nightly.core.result import Err, Ok, Result

__all__ = ["Clock", "IdentityError", "ReleaseIdentity", "current_identity", "utc_now"]

_DATE_RE = re.compile(r"^(\d{4})[-_](\d{2})[-_](\d{2})$")


@dataclass(frozen=True, slots=True)
class IdentityError:
    message: str
    hint: str | None = "Expected YYYY-MM-DD or YYYY_MM_DD"


@dataclass(frozen=True, slots=True)
class ReleaseIdentity:
    date_dash: str
    date_underscore: str

    def __post_init__(self) -> None:
        if _DATE_RE.match(self.date_dash) is None or "_" in self.date_dash:
            raise ValueError(f"invalid dash date: {self.date_dash!r}")
        if self.date_dash.replace("-", "_") != self.date_underscore:
            raise ValueError(
                f"inconsistent identity: {self.date_dash!r} vs {self.date_underscore!r}"
            )

    @classmethod
    def for_date(cls, day: date) -> ReleaseIdentity:
        return cls(
            date_dash=day.strftime("%Y-%m-%d"),
            date_underscore=day.strftime("%Y_%m_%d"),
        )

    @classmethod
    def for_datetime(cls, instant: datetime) -> ReleaseIdentity:
        """Identity for an instant; aware instants are converted to UTC first."""
        if instant.tzinfo is not None:
            instant = instant.astimezone(UTC)
        return cls.for_date(instant.date())

    @classmethod
    def parse(cls, text: str) -> Result[ReleaseIdentity, IdentityError]:
        """Parse either encoding. Separators may not be mixed."""
        s = text.strip()
        m = _DATE_RE.match(s)
        if m is None or ("-" in s and "_" in s):
            return Err(IdentityError(message=f"invalid release date: {text!r}"))
        try:
            day = date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError as e:
            return Err(IdentityError(message=f"invalid release date: {text!r} ({e})"))
        return Ok(cls.for_date(day))


def current_identity(clock: Clock | None = None) -> ReleaseIdentity:
    """Identity for the current instant of `clock` (UTC wall clock by default)."""
    now = (clock or utc_now)()
    return ReleaseIdentity.for_datetime(now)
