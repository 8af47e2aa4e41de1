"""Next-departure and ride length computation."""

import re
from collections.abc import Sequence
from datetime import datetime

from .models import Calendar, DepartureStatus, Stop, Times

Departure = int | DepartureStatus

# Minute labels may carry annotation letters, e.g. "15a" or "x07"
_MINUTE_LABEL = re.compile(r"\D*(\d+)\D*")

_STATUS_TEXT = {
    DepartureStatus.BEYOND_SCHEDULE: "Beyond schedule",
    DepartureStatus.NOT_OPERATING_TODAY: "Doesn't drive today",
}


def parse_minute(label: str) -> int | None:
    """Numeric value of a minute label with annotations stripped."""
    match = _MINUTE_LABEL.fullmatch(label)
    if match is None:
        return None
    return int(match.group(1))


def current_hour_index(hour: int, hours: Sequence[str]) -> int | None:
    """First index whose hour label is not earlier than ``hour``."""
    for index, label in enumerate(hours):
        if int(label) >= hour:
            return index
    return None


def next_departure(
    times: Times, calendar: Calendar, hour: int, minute: int
) -> tuple[int, int] | DepartureStatus:
    """Find the first scheduled (hour, minute) at or after the given clock.

    Only the first slot scanned is bounded by ``minute``, even when its hour
    is later than ``hour``. Every following slot accepts any minute.

    Returns:
        The matched hour and minute values, or a terminal status when the
        clock is past the last listed hour, the calendar has no minute data,
        or no later slot exists.
    """
    start = current_hour_index(hour, times.hours)
    if start is None:
        return DepartureStatus.BEYOND_SCHEDULE

    cells = times.minutes_for(calendar)
    if not cells:
        return DepartureStatus.NOT_OPERATING_TODAY

    for index in range(start, len(times.hours)):
        slot_hour = int(times.hours[index])
        earliest = minute if index == start else 0
        for label in cells[index].split():
            value = parse_minute(label)
            if value is None:
                continue
            if value >= earliest:
                return slot_hour, value

    return DepartureStatus.BEYOND_SCHEDULE


def mins_to_next_bus(stop: Stop, now: datetime) -> Departure:
    """Minutes until the next departure from a stop, 0 meaning right now."""
    found = next_departure(
        stop.times, Calendar.for_date(now), now.hour, now.minute
    )
    if isinstance(found, DepartureStatus):
        return found
    hour, minute = found
    return (hour - now.hour) * 60 + (minute - now.minute)


def commute_length(stops: Sequence[Stop], now: datetime) -> int | None:
    """Ride length in minutes along consecutive stops of one run.

    The clock starts at the first stop's next departure and advances to the
    next matching departure at every following stop. A later stop without a
    departure ends the ride early and the partial total is returned.

    Returns:
        Accumulated minutes, or None when the first stop has no departure.
    """
    if not stops:
        return None

    calendar = Calendar.for_date(now)
    found = next_departure(stops[0].times, calendar, now.hour, now.minute)
    if isinstance(found, DepartureStatus):
        return None

    hour, minute = found
    total = 0
    for stop in stops[1:]:
        found = next_departure(stop.times, calendar, hour, minute)
        if isinstance(found, DepartureStatus):
            break
        next_hour, next_minute = found
        total += (next_hour - hour) * 60 + (next_minute - minute)
        hour, minute = next_hour, next_minute

    return total


def describe(departure: Departure, ride_minutes: int | None = None) -> str:
    """Human readable text for a departure result."""
    if isinstance(departure, DepartureStatus):
        return _STATUS_TEXT[departure]

    text = "Departing right now!" if departure == 0 else f"In {departure} min"
    if ride_minutes is not None:
        text += f" [{ride_minutes} min ride]"
    return text


def describe_departure(stop: Stop, now: datetime) -> str:
    return describe(mins_to_next_bus(stop, now))


def departure_sort_key(departure: Departure) -> tuple[int, int]:
    """Order departures: soonest first, then beyond schedule, then not operating."""
    if departure is DepartureStatus.BEYOND_SCHEDULE:
        return 1, 0
    if departure is DepartureStatus.NOT_OPERATING_TODAY:
        return 2, 0
    return 0, departure
