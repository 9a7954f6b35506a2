"""Tests for Result pattern implementation."""

from __future__ import annotations

import pytest

from rarefind.core.result import Failure, Success, failure, success


class TestSuccess:
    """Tests for Success class."""

    def test_is_success_returns_true(self) -> None:
        """Success.is_success() should return True."""
        assert Success(42).is_success() is True

    def test_is_failure_returns_false(self) -> None:
        """Success.is_failure() should return False."""
        assert Success(42).is_failure() is False

    def test_unwrap_returns_value(self) -> None:
        """Success.unwrap() should return the contained value."""
        assert Success("hello").unwrap() == "hello"

    def test_unwrap_or_returns_value(self) -> None:
        """Success.unwrap_or() should return value, ignoring default."""
        assert Success(100).unwrap_or(0) == 100

    def test_map_transforms_value(self) -> None:
        """Success.map() should transform the contained value."""
        result = Success(5).map(lambda x: x * 2)

        assert isinstance(result, Success)
        assert result.value == 10

    def test_and_then_chains_operations(self) -> None:
        """Success.and_then() should return whatever the next step returns."""
        result = Success(5).and_then(lambda x: Success(x + 1))

        assert result == Success(6)

    def test_and_then_can_fail(self) -> None:
        """Success.and_then() should propagate a failing step."""
        result = Success(5).and_then(lambda _: Failure("boom"))

        assert result == Failure("boom")

    def test_success_is_immutable(self) -> None:
        """Success should be frozen."""
        result = Success(1)

        with pytest.raises(AttributeError):
            result.value = 2  # type: ignore[misc]


class TestFailure:
    """Tests for Failure class."""

    def test_is_success_returns_false(self) -> None:
        """Failure.is_success() should return False."""
        assert Failure("error").is_success() is False

    def test_is_failure_returns_true(self) -> None:
        """Failure.is_failure() should return True."""
        assert Failure("error").is_failure() is True

    def test_unwrap_raises(self) -> None:
        """Failure.unwrap() should raise ValueError."""
        with pytest.raises(ValueError, match="Cannot unwrap Failure"):
            Failure("error").unwrap()

    def test_unwrap_or_returns_default(self) -> None:
        """Failure.unwrap_or() should return the default."""
        assert Failure("error").unwrap_or(0) == 0

    def test_map_returns_self(self) -> None:
        """Failure.map() should not call the function."""
        original = Failure("error")

        assert original.map(lambda x: x * 2) is original

    def test_and_then_returns_self(self) -> None:
        """Failure.and_then() should skip later steps."""
        original = Failure("error")

        assert original.and_then(lambda x: Success(x)) is original


class TestHelpers:
    """Tests for success and failure helper functions."""

    def test_success_helper(self) -> None:
        """success() should wrap a value."""
        assert success(3) == Success(3)

    def test_failure_helper(self) -> None:
        """failure() should wrap an error."""
        assert failure("bad") == Failure("bad")
