"""
Tagged success / failure values.

Every extraction strategy returns ``Ok(value)`` or ``Err(error)``
instead of raising, so the orchestrator can compose them with
``first_success`` and record each failure as data.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result wrapping *value*."""

    value: T

    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result wrapping the *error* that explains it."""

    error: E

    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        """Raise the wrapped error."""
        raise self.error


async def first_success(
    strategies: Sequence[Callable[[], Awaitable[Ok[T] | Err[E]]]],
) -> Ok[T] | Err[E] | None:
    """Run *strategies* in order and stop at the first ``Ok``.

    Args:
        strategies: Zero-argument async callables, tried
            sequentially.

    Returns:
        The first ``Ok``, the last ``Err`` when every strategy
        failed, or ``None`` when *strategies* is empty.
    """
    last: Ok[T] | Err[E] | None = None
    for strategy in strategies:
        last = await strategy()
        if last.is_ok():
            return last
    return last
