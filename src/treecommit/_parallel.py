"""Bounded worker pool with deterministic error reporting.

Every task in a stage runs to completion.  Outcomes come back in input
order and the first failure in that order is the stage's error, so the
reported error never depends on thread scheduling.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Outcome(Generic[R]):
    """Result of one task: *value* on success, *error* on failure."""

    value: Optional[R]
    error: Optional[BaseException]

    @property
    def ok(self) -> bool:
        return self.error is None


def _capture(func: Callable[[T], R], item: T) -> Outcome[R]:
    try:
        return Outcome(func(item), None)
    except Exception as exc:
        return Outcome(None, exc)


def run_all(
    func: Callable[[T], R],
    items: Iterable[T],
    max_workers: int | None = None,
) -> list[Outcome[R]]:
    """Run *func* over *items* in a thread pool, one task per item."""
    items = list(items)
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(lambda item: _capture(func, item), items))


def first_error(outcomes: Iterable[Outcome[R]]) -> list[R]:
    """Return all values, or raise the first error in input order."""
    values: list[R] = []
    for outcome in outcomes:
        if outcome.error is not None:
            raise outcome.error
        values.append(outcome.value)
    return values
