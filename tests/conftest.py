"""Test configuration and fixtures."""

import json
from datetime import datetime

import pytest

from transit_scheduler.core.models import Stop

# 2026-10-19 is a Monday
MONDAY_0820 = datetime(2026, 10, 19, 8, 20)
SATURDAY_0820 = datetime(2026, 10, 24, 8, 20)
SUNDAY_0820 = datetime(2026, 10, 25, 8, 20)


def make_stop(
    stop_id: int,
    name: str,
    line: int = 1,
    direction: str = "Depot",
    hours: list[str] | None = None,
    work: list[str] | None = None,
    saturday: list[str] | None = None,
    holiday: list[str] | None = None,
) -> Stop:
    """Build a stop from dataset-shaped fields."""
    return Stop.model_validate(
        {
            "id": stop_id,
            "line": line,
            "direction": direction,
            "stop_name": name,
            "times": {
                "hour": hours if hours is not None else ["8", "9"],
                "work": work if work is not None else ["00 15 30", "00"],
                "saturday": saturday if saturday is not None else [],
                "holiday": holiday if holiday is not None else [],
            },
        }
    )


@pytest.fixture
def stop_factory():
    return make_stop


@pytest.fixture
def monday_morning():
    return MONDAY_0820


@pytest.fixture
def saturday_morning():
    return SATURDAY_0820


@pytest.fixture
def sunday_morning():
    return SUNDAY_0820


@pytest.fixture
def sample_dataset():
    """Line 12 in both directions and a night line 7, as raw dataset elements."""
    return [
        {
            "id": 1,
            "line": 12,
            "direction": "Elm St",
            "stop_name": "Main St",
            "times": {
                "hour": ["8", "9"],
                "work": ["00 15 30", "00"],
                "saturday": ["10", "10"],
                "holiday": [],
            },
        },
        {
            "id": 2,
            "line": 12,
            "direction": "Elm St",
            "stop_name": "Oak Ave",
            "times": {
                "hour": ["8", "9"],
                "work": ["05 20 35", "05"],
                "saturday": ["15", "15"],
                "holiday": [],
            },
        },
        {
            "id": 3,
            "line": 12,
            "direction": "Elm St",
            "stop_name": "Elm St",
            "times": {
                "hour": ["8", "9"],
                "work": ["10 25 40", "10"],
                "saturday": ["20", "20"],
                "holiday": [],
            },
        },
        {
            "id": 4,
            "line": 12,
            "direction": "Main St",
            "stop_name": "Elm St",
            "times": {
                "hour": ["8", "9"],
                "work": ["00 30", "00"],
                "saturday": [],
                "holiday": [],
            },
        },
        {
            "id": 5,
            "line": 12,
            "direction": "Main St",
            "stop_name": "Main St",
            "times": {
                "hour": ["8", "9"],
                "work": ["10 40", "10"],
                "saturday": [],
                "holiday": [],
            },
        },
        {
            "id": 6,
            "line": 7,
            "direction": "Harbor",
            "stop_name": "Main St",
            "times": {
                "hour": ["22", "23", "0", "1"],
                "work": ["10", "10", "10", "10"],
                "saturday": ["10", "10", "10", "10"],
                "holiday": ["10", "10", "10", "10"],
            },
        },
        {
            "id": 7,
            "line": 7,
            "direction": "Harbor",
            "stop_name": "Harbor",
            "times": {
                "hour": ["22", "23", "0", "1"],
                "work": ["25", "25", "25", "25"],
                "saturday": ["25", "25", "25", "25"],
                "holiday": ["25", "25", "25", "25"],
            },
        },
    ]


@pytest.fixture
def sample_stops(sample_dataset):
    return [Stop.model_validate(raw) for raw in sample_dataset]


@pytest.fixture
def dataset_bytes(sample_dataset):
    return json.dumps(sample_dataset).encode("utf-8")


@pytest.fixture
def dataset_file(tmp_path, dataset_bytes):
    path = tmp_path / "schedule.json"
    path.write_bytes(dataset_bytes)
    return path
