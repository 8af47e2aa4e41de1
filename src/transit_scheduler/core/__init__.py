"""Core timetable query functionality."""

from .exceptions import (
    CorruptDatasetError,
    DatasetNotFoundError,
    NetworkError,
    SchedulerError,
    ValidationError,
)
from .fetching import DatasetFetcher, LocalDataset, default_dataset_path
from .loader import IncrementalLoader, JSONArrayReader
from .models import Calendar, Connection, DepartureStatus, Stop, Times
from .store import StoreSnapshot, TimeTableStore
from .timetable import TimeTable

__all__ = [
    "Calendar",
    "Connection",
    "DepartureStatus",
    "Stop",
    "Times",
    "StoreSnapshot",
    "TimeTableStore",
    "IncrementalLoader",
    "JSONArrayReader",
    "TimeTable",
    "DatasetFetcher",
    "LocalDataset",
    "default_dataset_path",
    "SchedulerError",
    "CorruptDatasetError",
    "DatasetNotFoundError",
    "NetworkError",
    "ValidationError",
]
