"""
Explicit success/failure values for marketplace operations.

Provider calls fail routinely (bad identifiers, throttling, upstream outages),
so operations return a ``Result`` instead of raising. Callers branch with
``isinstance`` or the ``is_success()`` helpers.

Example:
    >>> result = parse_quantity("3")
    >>> if isinstance(result, Failure):
    ...     log(result.error)
    ... else:
    ...     use(result.value)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Never

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True, slots=True)
class Success[T]:
    """A completed operation carrying its value."""

    value: T

    def is_success(self) -> bool:
        """Return True."""
        return True

    def is_failure(self) -> bool:
        """Return False."""
        return False

    def unwrap(self) -> T:
        """Return the carried value."""
        return self.value

    def unwrap_or(self, _default: T) -> T:
        """Return the carried value, ignoring the default."""
        return self.value

    def map[U](self, func: Callable[[T], U]) -> Success[U]:
        """Return a new Success holding ``func(value)``."""
        return Success(func(self.value))

    def and_then[U, E](self, func: Callable[[T], Success[U] | Failure[E]]) -> Success[U] | Failure[E]:
        """
        Chain another fallible step onto this value.

        Args:
            func: Step that receives the value and returns a new Result.

        Returns:
            Whatever ``func`` returns.
        """
        return func(self.value)


@dataclass(frozen=True, slots=True)
class Failure[E]:
    """A failed operation carrying its error."""

    error: E

    def is_success(self) -> bool:
        """Return False."""
        return False

    def is_failure(self) -> bool:
        """Return True."""
        return True

    def unwrap(self) -> Never:
        """
        Refuse to produce a value.

        Raises:
            ValueError: Always.
        """
        raise ValueError(f"Cannot unwrap Failure: {self.error}")

    def unwrap_or[T](self, default: T) -> T:
        """Return ``default``."""
        return default

    def map[T, U](self, _func: Callable[[T], U]) -> Failure[E]:
        """Return self; there is no value to transform."""
        return self

    def and_then[T, U](self, _func: Callable[[T], U]) -> Failure[E]:
        """Return self; later steps are skipped."""
        return self


type Result[T, E] = Success[T] | Failure[E]


def success[T](value: T) -> Success[T]:
    """Wrap ``value`` in a Success."""
    return Success(value)


def failure[E](error: E) -> Failure[E]:
    """Wrap ``error`` in a Failure."""
    return Failure(error)
