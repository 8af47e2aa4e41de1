"""Transit Scheduler Package

A Python package for querying public transit timetables: fuzzy stop search,
same-line connections and minutes until the next departure.
"""

__version__ = "0.1.0"

from .core.models import Connection, Stop, Times
from .core.timetable import TimeTable

__all__ = ["Connection", "Stop", "Times", "TimeTable"]
