"""Tests for pubkit.core.result module."""

from __future__ import annotations

import pytest

from pubkit.core.result import Err, Ok, Result, is_err, is_ok


def _halve(n: int) -> Result[int, str]:
    if n % 2:
        return Err(f"{n} is odd")
    return Ok(n // 2)


class TestOk:
    def test_value(self) -> None:
        result = Ok(42)
        assert result.is_ok() is True
        assert result.is_err() is False
        assert result.unwrap() == 42
        assert result.unwrap_or(0) == 42

    def test_map(self) -> None:
        assert Ok(2).map(lambda v: v * 10) == Ok(20)

    def test_frozen(self) -> None:
        result = Ok(1)
        with pytest.raises(AttributeError):
            result.value = 2  # type: ignore[misc]

    def test_repr(self) -> None:
        assert repr(Ok("a")) == "Ok('a')"


class TestErr:
    def test_error(self) -> None:
        result: Err[str] = Err("boom")
        assert result.is_ok() is False
        assert result.is_err() is True
        assert result.unwrap_or(7) == 7

    def test_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="boom"):
            Err("boom").unwrap()

    def test_map_is_noop(self) -> None:
        result: Err[str] = Err("boom")
        assert result.map(lambda v: v) is result


class TestPatternMatching:
    def test_match_ok(self) -> None:
        match _halve(10):
            case Ok(value):
                assert value == 5
            case Err(_):
                pytest.fail("expected Ok")

    def test_match_err(self) -> None:
        match _halve(3):
            case Ok(_):
                pytest.fail("expected Err")
            case Err(error):
                assert error == "3 is odd"

    def test_type_guards(self) -> None:
        assert is_ok(_halve(4))
        assert is_err(_halve(5))
