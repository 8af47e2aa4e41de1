"""Output formatters for CLI display."""

import json
from datetime import datetime

from rich.table import Table

from ..core.departures import describe_departure
from ..core.models import Connection, DepartureStatus, Stop


def stops_table(stops: list[Stop], now: datetime, title: str = "Stops") -> Table:
    """Build a table of stops with their next departure."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Line", style="cyan", no_wrap=True)
    table.add_column("Direction", style="yellow")
    table.add_column("Stop", style="green")
    table.add_column("Departure in", style="magenta")

    for stop in stops:
        table.add_row(
            str(stop.id),
            str(stop.line_nr),
            stop.direction,
            stop.name,
            describe_departure(stop, now),
        )
    return table


def connections_table(connections: list[Connection], title: str = "Connections") -> Table:
    """Build a table of connections."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Line", style="cyan", no_wrap=True)
    table.add_column("Direction", style="yellow")
    table.add_column("Path", style="green")
    table.add_column("Departure", style="magenta")

    for connection in connections:
        table.add_row(
            str(connection.line_nr),
            connection.direction,
            connection.path,
            connection.departure,
        )
    return table


def timetable_table(stop: Stop) -> Table:
    """Build the hour by hour timetable of one stop."""
    table = Table(
        title=f"Line {stop.line_nr} → {stop.direction}: {stop.name}",
        show_header=True,
        header_style="bold blue",
    )
    table.add_column("Hour", style="cyan", justify="right", no_wrap=True)
    table.add_column("Workdays", style="green")
    table.add_column("Saturdays", style="yellow")
    table.add_column("Sundays", style="magenta")

    for row in stop.times.rows():
        table.add_row(*(cell or "-" for cell in row))
    return table


def _departure_value(minutes: int | DepartureStatus) -> int | str:
    if isinstance(minutes, DepartureStatus):
        return minutes.value
    return minutes


def format_stops_json(stops: list[Stop], now: datetime) -> str:
    """Format stops as JSON."""
    stops_data = [
        {
            "id": stop.id,
            "line": stop.line_nr,
            "direction": stop.direction,
            "stop_name": stop.name,
            "departure": describe_departure(stop, now),
        }
        for stop in stops
    ]
    return json.dumps(stops_data, ensure_ascii=False, indent=2)


def format_connections_json(connections: list[Connection]) -> str:
    """Format connections as JSON."""
    connections_data = [
        {
            "line": connection.line_nr,
            "direction": connection.direction,
            "from_stop": connection.origin.name,
            "to_stop": connection.destination.name,
            "path": connection.path,
            "minutes_until": _departure_value(connection.minutes_until),
            "ride_minutes": connection.ride_minutes,
            "departure": connection.departure,
        }
        for connection in connections
    ]
    return json.dumps(connections_data, ensure_ascii=False, indent=2)
