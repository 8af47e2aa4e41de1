"""Timetable handle shared by the loader and the query layer."""

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import BinaryIO

from ..utils.fuzzy import MATCH_THRESHOLD
from . import search
from .departures import describe_departure
from .loader import IncrementalLoader
from .models import Connection, Stop
from .store import StoreSnapshot, TimeTableStore

logger = logging.getLogger(__name__)

PRELOAD_STOPS = 100
POLL_INTERVAL = 0.05


class TimeTable:
    """Owns the current store and answers queries against it.

    Queries always run against a snapshot, so they see either partial
    results of a running load or the frozen, normalized store.
    """

    def __init__(
        self,
        source: Callable[[], BinaryIO],
        fetch: Callable[[], None] | None = None,
        clock: Callable[[], datetime] = datetime.now,
        threshold: float = MATCH_THRESHOLD,
    ):
        """Initialize the timetable.

        Args:
            source: Opens a binary stream of decompressed dataset bytes
            fetch: Downloads a fresh dataset before a refresh
            clock: Current time used for departure computations
            threshold: Fuzzy match threshold for stop names
        """
        self._source = source
        self._fetch = fetch
        self._clock = clock
        self.threshold = threshold
        self._store: TimeTableStore | None = None
        self._lock = threading.Lock()

    def start(self) -> TimeTableStore:
        """Start loading into a new store and make it current."""
        store = TimeTableStore()
        stream = self._source()
        IncrementalLoader(store).start(stream)
        with self._lock:
            self._store = store
        return store

    def refresh(self) -> TimeTableStore:
        """Fetch a fresh dataset and swap in a new store for it.

        Readers holding the previous store keep a valid reference to it.
        """
        if self._fetch is not None:
            self._fetch()
        logger.info("Refreshing timetable")
        return self.start()

    @property
    def store(self) -> TimeTableStore:
        with self._lock:
            if self._store is None:
                raise RuntimeError("TimeTable has not been started")
            return self._store

    def snapshot(self) -> StoreSnapshot:
        return self.store.snapshot()

    def wait_for(self, count: int = PRELOAD_STOPS, timeout: float | None = None) -> bool:
        return self.store.wait_for(count, timeout)

    def wait_until_complete(self, timeout: float | None = None) -> bool:
        return self.store.wait_until_complete(timeout)

    def now(self) -> datetime:
        return self._clock()

    def get_stop(self, stop_id: int) -> Stop | None:
        for stop in self.snapshot().stops:
            if stop.id == stop_id:
                return stop
        return None

    def find_stops(self, query: str) -> list[Stop]:
        return search.find_stops(self.snapshot().stops, query, self.threshold)

    def find_connections(self, origin: str, destination: str) -> list[Connection]:
        return search.find_connections(
            origin, destination, self.snapshot().stops, self.now(), self.threshold
        )

    def find_connections_only_from(self, origin: str) -> list[Connection]:
        return search.find_connections_only_from(
            origin, self.snapshot().stops, self.now(), self.threshold
        )

    def find_connections_only_to(self, destination: str) -> list[Connection]:
        return search.find_connections_only_to(
            destination, self.snapshot().stops, self.now(), self.threshold
        )

    def describe_departure(self, item: Stop | Connection) -> str:
        if isinstance(item, Connection):
            return item.departure
        return describe_departure(item, self.now())
