from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from nightly.core.result import Err, Ok
from nightly.release.identity import ReleaseIdentity, current_identity


def test_for_date_renders_both_encodings() -> None:
    identity = ReleaseIdentity.for_date(date(2024, 5, 1))
    assert identity.date_dash == "2024-05-01"
    assert identity.date_underscore == "2024_05_01"


def test_aware_instants_use_the_utc_day() -> None:
    # 01:30 on May 2nd in UTC+3 is still May 1st in UTC.
    plus_three = timezone(timedelta(hours=3))
    identity = ReleaseIdentity.for_datetime(datetime(2024, 5, 2, 1, 30, tzinfo=plus_three))
    assert identity.date_dash == "2024-05-01"


def test_current_identity_uses_clock() -> None:
    identity = current_identity(lambda: datetime(2023, 12, 31, 23, 59, tzinfo=UTC))
    assert identity == ReleaseIdentity("2023-12-31", "2023_12_31")


def test_inconsistent_identity_is_rejected() -> None:
    with pytest.raises(ValueError, match="inconsistent"):
        ReleaseIdentity(date_dash="2024-05-01", date_underscore="2024_05_02")


def test_dash_field_must_use_dashes() -> None:
    with pytest.raises(ValueError):
        ReleaseIdentity(date_dash="2024_05_01", date_underscore="2024_05_01")


def test_identity_is_frozen() -> None:
    identity = ReleaseIdentity.for_date(date(2024, 5, 1))
    with pytest.raises(AttributeError):
        identity.date_dash = "2024-05-02"  # type: ignore[misc]


@pytest.mark.parametrize("text", ["2024-05-01", "2024_05_01", " 2024-05-01 "])
def test_parse_accepts_either_encoding(text: str) -> None:
    assert ReleaseIdentity.parse(text) == Ok(ReleaseIdentity("2024-05-01", "2024_05_01"))


@pytest.mark.parametrize("text", ["2024-05_01", "2024-13-01", "2024-02-30", "yesterday", ""])
def test_parse_rejects_invalid(text: str) -> None:
    result = ReleaseIdentity.parse(text)
    assert isinstance(result, Err)
    assert "invalid release date" in result.error.message
