"""
Result type for per-record outcomes.

Normalizing a raw catalog record can fail for reasons that must not abort the
surrounding indexing pass. Instead of raising, the normalizer returns a
Result that the indexer inspects:

    from d2builds.result import Ok, Err

    outcome = normalize_record(key, record)
    if outcome.is_ok():
        item = outcome.unwrap()
    else:
        logger.warning("skipping %s: %s", key, outcome.error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, NoReturn, TypeVar, Union

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type
U = TypeVar("U")  # Mapped success type


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome holding a value.

    Example:
        >>> Ok(42).unwrap()
        42
    """

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, func: Callable[[T], U]) -> Ok[U]:
        """Transform the success value.

        Example:
            >>> Ok(5).map(lambda x: x * 2)
            Ok(10)
        """
        return Ok(func(self.value))

    @property
    def error(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome holding a reason.

    Example:
        >>> Err("blank name").is_err()
        True
    """

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Raise, since an Err has no success value.

        Raises:
            ValueError: Always.
        """
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, func: Callable[[Any], U]) -> Err[E]:
        return self

    @property
    def value(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Union[Ok[T], Err[E]]
