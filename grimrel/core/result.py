"""Result type for explicit error handling.

Release steps return ``Ok(value)`` or ``Err(error)`` instead of raising, so a
failed platform job can be recorded next to its successful siblings rather than
unwinding the whole run.

Usage:
    def parse(tag: str) -> Result[SemVer, str]:
        version = parse_stable_tag(tag)
        if version is None:
            return Err(f"not a release tag: {tag}")
        return Ok(version)

    match parse("v1.2.3"):
        case Ok(version):
            print(version)
        case Err(message):
            print(message)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeGuard, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Represents a successful result containing a value.

    Attributes:
        value: The success value.
    """

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Returns the contained value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        """Applies a function to the contained value."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[E], F]) -> Ok[T]:
        return self

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Represents a failed result containing an error.

    Attributes:
        error: The error value.
    """

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> None:
        """Raises ValueError with the error.

        Raises:
            ValueError: Always, containing the error.
        """
        raise ValueError(f"called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Err[E]:
        return self

    def map_err(self, f: Callable[[E], F]) -> Err[F]:
        """Applies a function to the contained error."""
        return Err(f(self.error))

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]


def is_ok(result: Result[T, E]) -> TypeGuard[Ok[T]]:
    """Type guard that checks if a Result is Ok."""
    return isinstance(result, Ok)


def is_err(result: Result[T, E]) -> TypeGuard[Err[E]]:
    """Type guard that checks if a Result is Err."""
    return isinstance(result, Err)
