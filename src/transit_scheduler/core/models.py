"""Data models for transit timetable queries."""

import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_HOUR_LABEL = re.compile(r"[0-9]+")


class DepartureStatus(str, Enum):
    """Terminal outcomes of a next-departure lookup."""

    BEYOND_SCHEDULE = "beyond_schedule"
    NOT_OPERATING_TODAY = "not_operating_today"


class Calendar(str, Enum):
    """Service calendar selecting which minute table applies."""

    WORKDAY = "work"
    SATURDAY = "saturday"
    HOLIDAY = "holiday"

    @classmethod
    def for_date(cls, moment: datetime) -> "Calendar":
        """Pick the calendar for a date. Sundays stand in for public holidays."""
        weekday = moment.weekday()
        if weekday == 6:
            return cls.HOLIDAY
        if weekday == 5:
            return cls.SATURDAY
        return cls.WORKDAY


class Times(BaseModel):
    """Index-aligned hour labels and per-calendar minute cells of one stop."""

    model_config = ConfigDict(populate_by_name=True)

    hours: list[str] = Field(
        ..., alias="hour", description="Hour labels in departure order"
    )
    work_mins: list[str] = Field(
        default_factory=list, alias="work", description="Workday minute cells"
    )
    saturday_mins: list[str] = Field(
        default_factory=list, alias="saturday", description="Saturday minute cells"
    )
    holiday_mins: list[str] = Field(
        default_factory=list,
        alias="holiday",
        description="Sunday/holiday minute cells",
    )

    @field_validator("work_mins", "saturday_mins", "holiday_mins", mode="before")
    @classmethod
    def null_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("hours")
    @classmethod
    def check_hours(cls, hours: list[str]) -> list[str]:
        if not hours:
            raise ValueError("hour sequence is empty")
        for label in hours:
            if not _HOUR_LABEL.fullmatch(label) or int(label) > 23:
                raise ValueError(f"invalid hour label {label!r}")
        return hours

    @model_validator(mode="after")
    def check_alignment(self) -> "Times":
        for calendar in Calendar:
            cells = self.minutes_for(calendar)
            if cells and len(cells) != len(self.hours):
                raise ValueError(
                    f"{calendar.value} has {len(cells)} minute cells for {len(self.hours)} hours"
                )
        return self

    def minutes_for(self, calendar: Calendar) -> list[str]:
        """Minute cells for a calendar; empty when the stop is not served."""
        if calendar is Calendar.SATURDAY:
            return self.saturday_mins
        if calendar is Calendar.HOLIDAY:
            return self.holiday_mins
        return self.work_mins

    def rows(self) -> list[tuple[str, str, str, str]]:
        """Timetable rows of (hour, work, saturday, holiday) cells."""

        def cell(cells: list[str], index: int) -> str:
            return cells[index] if cells else ""

        return [
            (
                hour,
                cell(self.work_mins, index),
                cell(self.saturday_mins, index),
                cell(self.holiday_mins, index),
            )
            for index, hour in enumerate(self.hours)
        ]


class Stop(BaseModel):
    """One timetable row: a line and direction serving a named stop."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., description="Stable stop identifier")
    line_nr: int = Field(..., alias="line", description="Line number")
    direction: str = Field(..., description="Final destination of the line")
    name: str = Field(..., alias="stop_name", description="Stop name")
    times: Times = Field(..., description="Departure timetable")

    @property
    def route_key(self) -> tuple[int, str]:
        return self.line_nr, self.direction

    def __str__(self) -> str:
        return f"{self.line_nr} → {self.direction}: {self.name}"


class Connection(BaseModel):
    """Origin to destination pairing on one run of a line."""

    origin: Stop = Field(..., description="Boarding stop")
    destination: Stop = Field(..., description="Alighting stop")
    path: str = Field(..., description="Human readable 'origin -> destination'")
    minutes_until: int | DepartureStatus = Field(
        ..., description="Minutes until the next departure from the origin"
    )
    ride_minutes: int | None = Field(
        None, description="Ride length when a departure was found"
    )
    departure: str = Field(..., description="Departure description")

    @property
    def line_nr(self) -> int:
        return self.origin.line_nr

    @property
    def direction(self) -> str:
        return self.origin.direction

    def __str__(self) -> str:
        return f"{self.line_nr} {self.path} ({self.departure})"
