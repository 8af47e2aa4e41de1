"""Stop and connection search over a timetable."""

import re
from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime
from itertools import groupby

from ..utils.fuzzy import MATCH_THRESHOLD, matches_query
from .departures import commute_length, departure_sort_key, describe, mins_to_next_bus
from .models import Connection, DepartureStatus, Stop

_LINE_QUERY = re.compile(r"[0-9]+")


class NameMatcher:
    """Memoized match decisions for one query.

    Stop names repeat heavily along routes, so each distinct name is scored
    once per search call.
    """

    def __init__(self, query: str, threshold: float = MATCH_THRESHOLD):
        self.query = query
        self.threshold = threshold
        self._decisions: dict[str, bool] = {}

    def __call__(self, name: str) -> bool:
        decision = self._decisions.get(name)
        if decision is None:
            decision = matches_query(name, self.query, self.threshold)
            self._decisions[name] = decision
        return decision


def iter_runs(stops: Iterable[Stop]) -> Iterator[list[Stop]]:
    """Split stops into maximal contiguous runs sharing line and direction."""
    for _, run in groupby(stops, key=lambda stop: stop.route_key):
        yield list(run)


def _first_match(run: Sequence[Stop], matcher: NameMatcher) -> int | None:
    for index, stop in enumerate(run):
        if matcher(stop.name):
            return index
    return None


def make_connection(segment: Sequence[Stop], now: datetime) -> Connection:
    """Build a connection riding from the first to the last stop of a segment."""
    origin, destination = segment[0], segment[-1]
    minutes_until = mins_to_next_bus(origin, now)
    ride_minutes = None
    if not isinstance(minutes_until, DepartureStatus):
        ride_minutes = commute_length(segment, now)

    return Connection(
        origin=origin,
        destination=destination,
        path=f"{origin.name} -> {destination.name}",
        minutes_until=minutes_until,
        ride_minutes=ride_minutes,
        departure=describe(minutes_until, ride_minutes),
    )


def find_stops(
    stops: Iterable[Stop], query: str, threshold: float = MATCH_THRESHOLD
) -> list[Stop]:
    """Find stops by line number prefix or fuzzy stop name.

    An all-digit query matches line numbers starting with it; any other query
    is matched against stop names. A blank query matches nothing.
    """
    query = query.strip()
    if not query:
        return []

    if _LINE_QUERY.fullmatch(query):
        return [stop for stop in stops if str(stop.line_nr).startswith(query)]

    matcher = NameMatcher(query, threshold)
    return [stop for stop in stops if matcher(stop.name)]


def find_connections(
    origin: str,
    destination: str,
    stops: Iterable[Stop],
    now: datetime,
    threshold: float = MATCH_THRESHOLD,
) -> list[Connection]:
    """Find same-run connections between two stop names.

    Within every run the first stop matching ``origin`` is the boarding stop;
    each later stop of that run matching ``destination`` yields a connection.
    """
    origin, destination = origin.strip(), destination.strip()
    if not origin or not destination:
        return []

    from_matcher = NameMatcher(origin, threshold)
    to_matcher = NameMatcher(destination, threshold)
    connections: list[Connection] = []
    for run in iter_runs(stops):
        start = _first_match(run, from_matcher)
        if start is None:
            continue
        for end in range(start + 1, len(run)):
            if to_matcher(run[end].name):
                connections.append(make_connection(run[start : end + 1], now))

    return connections


def find_connections_only_from(
    origin: str,
    stops: Iterable[Stop],
    now: datetime,
    threshold: float = MATCH_THRESHOLD,
) -> list[Connection]:
    """Connections from a stop to the end of every run passing it."""
    origin = origin.strip()
    if not origin:
        return []

    matcher = NameMatcher(origin, threshold)
    connections: list[Connection] = []
    for run in iter_runs(stops):
        start = _first_match(run, matcher)
        if start is not None:
            connections.append(make_connection(run[start:], now))

    return connections


def find_connections_only_to(
    destination: str,
    stops: Iterable[Stop],
    now: datetime,
    threshold: float = MATCH_THRESHOLD,
) -> list[Connection]:
    """Connections from the start of every run to each stop matching a name."""
    destination = destination.strip()
    if not destination:
        return []

    matcher = NameMatcher(destination, threshold)
    connections: list[Connection] = []
    for run in iter_runs(stops):
        for end in range(1, len(run)):
            if matcher(run[end].name):
                connections.append(make_connection(run[: end + 1], now))

    return connections


def sort_by_departure(connections: Iterable[Connection]) -> list[Connection]:
    """Stable sort: departing now, then soonest, beyond schedule, not operating."""
    return sorted(
        connections, key=lambda connection: departure_sort_key(connection.minutes_until)
    )
