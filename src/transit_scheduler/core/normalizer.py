"""Midnight wrap normalization of stop timetables."""

from collections.abc import Iterable

from .models import Stop


def _rotate(cells: list[str], pivot: int) -> list[str]:
    if not cells:
        return cells
    return cells[pivot:] + cells[:pivot]


def find_midnight_pivot(hours: list[str]) -> int | None:
    """Index of the first hour after a 23 -> 0 wrap, or None."""
    for index in range(len(hours) - 1):
        if int(hours[index]) == 23 and int(hours[index + 1]) == 0:
            return index + 1
    return None


def normalize(stop: Stop) -> Stop:
    """Rotate a stop's timetable so hours read as one ascending day.

    Runs that continue past midnight are listed as ``..., 22, 23, 0, 1, ...``.
    The hour list and every non-empty minute list are rotated at the first
    ``23 -> 0`` boundary so the post-midnight slots come first. At most one
    rotation is applied; stops without a wrap are returned unchanged.
    """
    times = stop.times
    pivot = find_midnight_pivot(times.hours)
    if pivot is None:
        return stop

    rotated = times.model_copy(
        update={
            "hours": _rotate(times.hours, pivot),
            "work_mins": _rotate(times.work_mins, pivot),
            "saturday_mins": _rotate(times.saturday_mins, pivot),
            "holiday_mins": _rotate(times.holiday_mins, pivot),
        }
    )
    return stop.model_copy(update={"times": rotated})


def normalize_all(stops: Iterable[Stop]) -> list[Stop]:
    return [normalize(stop) for stop in stops]
