"""Tests for nightly.core.result module."""

import pytest

from nightly.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    def test_unwrap(self) -> None:
        assert Ok(42).unwrap() == 42

    def test_unwrap_or_ignores_default(self) -> None:
        assert Ok(42).unwrap_or(0) == 42

    def test_flags(self) -> None:
        result = Ok("tag")
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_map(self) -> None:
        assert Ok(2).map(lambda x: x * 10) == Ok(20)

    def test_map_err_is_noop(self) -> None:
        result = Ok(1)
        assert result.map_err(lambda e: f"wrapped {e}") is result


class TestErr:
    def test_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap on Err"):
            Err("boom").unwrap()

    def test_unwrap_or_returns_default(self) -> None:
        assert Err("boom").unwrap_or(7) == 7

    def test_map_is_noop(self) -> None:
        result = Err("boom")
        assert result.map(lambda x: x) is result

    def test_map_err(self) -> None:
        assert Err("boom").map_err(str.upper) == Err("BOOM")

    def test_repr(self) -> None:
        assert repr(Err("x")) == "Err('x')"


class TestTypeGuards:
    def test_is_ok(self) -> None:
        result: Result[int, str] = Ok(1)
        assert is_ok(result)
        assert not is_err(result)

    def test_is_err(self) -> None:
        result: Result[int, str] = Err("no")
        assert is_err(result)
        assert not is_ok(result)

    def test_pattern_matching(self) -> None:
        result: Result[int, str] = Err("no")
        match result:
            case Ok(value):
                pytest.fail(f"unexpected value {value}")
            case Err(error):
                assert error == "no"
