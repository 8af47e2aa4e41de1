"""Shared timetable store filled by the incremental loader."""

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass

from .models import Stop

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreSnapshot:
    """Consistent view of a store at one point in time."""

    stops: tuple[Stop, ...]
    complete: bool
    error: BaseException | None = None

    def __len__(self) -> int:
        return len(self.stops)


class TimeTableStore:
    """Append-only stop collection with a one-way completeness flag.

    The loader is the only writer. Every read and write goes through one
    condition variable so readers never see a torn list while it grows.
    After completion the store is frozen.
    """

    def __init__(self) -> None:
        self._stops: list[Stop] = []
        self._complete = False
        self._error: BaseException | None = None
        self._condition = threading.Condition()

    def append(self, stop: Stop) -> None:
        with self._condition:
            if self._complete:
                raise RuntimeError("Cannot append to a completed store")
            self._stops.append(stop)
            self._condition.notify_all()

    def mark_complete(self, normalized: Sequence[Stop]) -> None:
        """Publish the normalized stops and set the completeness flag.

        Both happen in one critical section so no reader observes a complete
        store holding un-normalized timetables.
        """
        with self._condition:
            if self._complete:
                raise RuntimeError("Store is already complete")
            if len(normalized) != len(self._stops):
                raise ValueError(
                    f"Normalized {len(normalized)} stops, store holds {len(self._stops)}"
                )
            self._stops = list(normalized)
            self._complete = True
            self._condition.notify_all()
        logger.info(f"Timetable store complete with {len(normalized)} stops")

    def fail(self, error: BaseException) -> None:
        """Record a load error; the store will never become complete."""
        with self._condition:
            self._error = error
            self._condition.notify_all()

    def snapshot(self) -> StoreSnapshot:
        with self._condition:
            return StoreSnapshot(tuple(self._stops), self._complete, self._error)

    def stats(self) -> tuple[int, bool]:
        """Current (length, complete) pair without copying the stops."""
        with self._condition:
            return len(self._stops), self._complete

    def wait_for(self, count: int, timeout: float | None = None) -> bool:
        """Block until ``count`` stops are loaded or loading has ended.

        Returns:
            True if the condition was reached before the timeout
        """
        with self._condition:
            return self._condition.wait_for(
                lambda: len(self._stops) >= count
                or self._complete
                or self._error is not None,
                timeout,
            )

    def wait_until_complete(self, timeout: float | None = None) -> bool:
        """Block until the store is complete.

        Raises:
            The recorded load error if loading failed
        """
        with self._condition:
            done = self._condition.wait_for(
                lambda: self._complete or self._error is not None, timeout
            )
            if self._error is not None:
                raise self._error
            return done

    @property
    def is_complete(self) -> bool:
        with self._condition:
            return self._complete

    @property
    def error(self) -> BaseException | None:
        with self._condition:
            return self._error

    def __len__(self) -> int:
        with self._condition:
            return len(self._stops)
