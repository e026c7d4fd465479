"""Co-operative iterative algorithms and a process-wide interrupt flag."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Callable, Generic, Optional, TypeVar

__all__ = [
    "IterativeAlgorithm",
    "TerminatingIterativeAlgorithm",
    "InvariantCheck",
    "request_interrupt",
    "clear_interrupt",
    "interrupt_requested",
]

ResultT = TypeVar("ResultT")

_INTERRUPT = threading.Event()


def request_interrupt() -> None:
    """Ask every running algorithm to stop."""
    _INTERRUPT.set()


def clear_interrupt() -> None:
    """Forget a previously requested interrupt."""
    _INTERRUPT.clear()


def interrupt_requested() -> bool:
    """Return True once an interrupt has been requested."""
    return _INTERRUPT.is_set()


def _as_seconds(timeout: float | timedelta) -> float:
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return float(timeout)


class IterativeAlgorithm(ABC, Generic[ResultT]):
    """An algorithm that advances in short steps so a scheduler can interleave it."""

    @abstractmethod
    def execute_step(self) -> None:
        """Advance the computation by a short amount of work."""

    @abstractmethod
    def is_completed(self) -> bool:
        """Return True if no further step may be executed."""

    @abstractmethod
    def best_known_solution(self) -> Optional[ResultT]:
        """Return the best solution found so far, or None."""

    def run_while(self, predicate: Callable[["IterativeAlgorithm[ResultT]"], bool]) -> None:
        """Execute steps until the predicate (checked after each step) fails,
        an interrupt is requested, or the algorithm completes."""
        while not self.is_completed() and not interrupt_requested():
            self.execute_step()
            if not predicate(self):
                break

    def run_until_timeout(self, timeout: float | timedelta) -> None:
        """Execute steps until the timeout (seconds or timedelta) has elapsed.

        The timeout only prevents new steps from being started."""
        limit = _as_seconds(timeout)
        start = time.monotonic()
        self.run_while(lambda _: time.monotonic() - start < limit)


class TerminatingIterativeAlgorithm(IterativeAlgorithm[ResultT]):
    """An iterative algorithm that is known to finish eventually."""

    def run_to_completion(self) -> Optional[ResultT]:
        """Run until completion or interrupt and return the best solution."""
        while not self.is_completed() and not interrupt_requested():
            self.execute_step()
        return self.best_known_solution()


class InvariantCheck(ABC):
    """A data structure able to verify its own invariants."""

    @abstractmethod
    def is_correct(self) -> None:
        """Raise an exception describing the first violated invariant."""