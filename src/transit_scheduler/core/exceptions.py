"""Custom exceptions for transit timetable queries."""


class SchedulerError(Exception):
    """Base exception for timetable errors."""

    pass


class CorruptDatasetError(SchedulerError):
    """Raised when the timetable dataset cannot be decoded.

    A corrupt dataset aborts the whole load; no partially decoded store is
    ever marked complete.
    """

    def __init__(self, message: str, index: int | None = None):
        if index is not None:
            message = f"{message} (element {index})"
        super().__init__(message)
        self.index = index


class NetworkError(SchedulerError):
    """Raised when there's a network-related error."""

    pass


class DatasetNotFoundError(SchedulerError):
    """Raised when no local dataset exists and downloading is disabled."""

    pass


class ValidationError(SchedulerError):
    """Raised when input validation fails."""

    pass
