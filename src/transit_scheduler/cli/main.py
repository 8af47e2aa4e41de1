"""CLI main entry point for transit timetable queries."""

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime as dt_module
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.live import Live
from rich.table import Table

from ..core import (
    DatasetFetcher,
    LocalDataset,
    SchedulerError,
    TimeTable,
    ValidationError,
    default_dataset_path,
)
from ..core.fetching import DEFAULT_DATASET_URL, DEFAULT_TIMEOUT
from ..core.search import sort_by_departure
from ..core.timetable import POLL_INTERVAL
from .formatters import (
    connections_table,
    format_connections_json,
    format_stops_json,
    stops_table,
    timetable_table,
)

console = Console()
error_console = Console(stderr=True)

OUTPUT_FORMAT = click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
LIVE = click.option(
    "--live", is_flag=True, help="Show partial results while the timetable loads"
)


@dataclass
class CliSettings:
    """Options shared by all commands."""

    dataset: Path
    url: str
    timeout: int
    at: dt_module | None = None

    def build_timetable(self) -> TimeTable:
        fetcher = DatasetFetcher(url=self.url, timeout=self.timeout)
        dataset = LocalDataset(self.dataset, fetcher)
        at = self.at
        clock = (lambda: at) if at is not None else dt_module.now
        return TimeTable(dataset.open, fetch=dataset.refresh, clock=clock)


def parse_query_time(value: str) -> dt_module:
    """Parse a query time given as YYYY-MM-DD HH:MM.

    Raises:
        ValidationError: If the value is not in that format
    """
    try:
        return dt_module.strptime(value, "%Y-%m-%d %H:%M")
    except ValueError as e:
        raise ValidationError("Invalid datetime format. Use YYYY-MM-DD HH:MM") from e


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--dataset",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Timetable dataset file (default: $XDG_DATA_HOME/scheduler/schedule.json)",
)
@click.option("--url", default=DEFAULT_DATASET_URL, help="Dataset download URL")
@click.option(
    "--timeout", "-t", default=DEFAULT_TIMEOUT, help="Request timeout in seconds"
)
@click.option(
    "--at",
    "at_str",
    help="Query time instead of now (YYYY-MM-DD HH:MM format)",
    type=str,
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    dataset: Path | None,
    url: str,
    timeout: int,
    at_str: str | None,
    verbose: bool,
) -> None:
    """Transit Scheduler - Search stops, connections and next departures."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        at = parse_query_time(at_str) if at_str else None
    except ValidationError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    ctx.obj = CliSettings(
        dataset=dataset or default_dataset_path(),
        url=url,
        timeout=timeout,
        at=at,
    )


def _run_query(
    settings: CliSettings,
    query: Callable[[TimeTable], list[Any]],
    render_table: Callable[[TimeTable, list[Any], str], Table],
    render_json: Callable[[TimeTable, list[Any]], str],
    title: str,
    output_format: str,
    live: bool,
    empty_message: str,
) -> None:
    """Load the timetable, run a query and print its results."""
    try:
        timetable = settings.build_timetable()
        timetable.start()

        if live and output_format == "table":
            with Live(console=console, auto_refresh=False) as live_view:
                while not timetable.wait_until_complete(timeout=POLL_INTERVAL):
                    loaded, _ = timetable.store.stats()
                    partial_title = f"{title} (loading, {loaded} stops so far)"
                    live_view.update(
                        render_table(timetable, query(timetable), partial_title),
                        refresh=True,
                    )
                live_view.update(
                    render_table(timetable, query(timetable), title), refresh=True
                )
            return

        with console.status("[bold green]Loading timetable..."):
            timetable.wait_until_complete()
        results = query(timetable)

    except SchedulerError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if output_format == "json":
        click.echo(render_json(timetable, results))
    elif not results:
        console.print(f"[yellow]{empty_message}[/yellow]")
    else:
        console.print(render_table(timetable, results, title))


def _render_stops(timetable: TimeTable, stops: list[Any], title: str) -> Table:
    return stops_table(stops, timetable.now(), title)


def _render_stops_json(timetable: TimeTable, stops: list[Any]) -> str:
    return format_stops_json(stops, timetable.now())


def _render_connections(timetable: TimeTable, connections: list[Any], title: str) -> Table:
    return connections_table(connections, title)


def _render_connections_json(timetable: TimeTable, connections: list[Any]) -> str:
    return format_connections_json(connections)


@cli.command()
@click.argument("query")
@OUTPUT_FORMAT
@LIVE
@click.pass_obj
def stops(settings: CliSettings, query: str, output_format: str, live: bool) -> None:
    """Search stops by name or line number.

    Examples:
        transit-scheduler stops "Main St"
        transit-scheduler stops 12 --format json
    """
    _run_query(
        settings,
        lambda timetable: timetable.find_stops(query),
        _render_stops,
        _render_stops_json,
        f"Stops matching '{query}'",
        output_format,
        live,
        f"No stops found matching '{query}'",
    )


@cli.command()
@click.argument("from_stop")
@click.argument("to_stop")
@OUTPUT_FORMAT
@LIVE
@click.pass_obj
def connect(
    settings: CliSettings, from_stop: str, to_stop: str, output_format: str, live: bool
) -> None:
    """Find direct connections between two stops.

    Examples:
        transit-scheduler connect "Main St" "Elm St"
        transit-scheduler connect "Main St" "Elm St" --at "2026-10-19 08:20"
    """
    _run_query(
        settings,
        lambda timetable: sort_by_departure(
            timetable.find_connections(from_stop, to_stop)
        ),
        _render_connections,
        _render_connections_json,
        f"Connections: {from_stop} → {to_stop}",
        output_format,
        live,
        f"No connections found from '{from_stop}' to '{to_stop}'",
    )


@cli.command("from")
@click.argument("term")
@OUTPUT_FORMAT
@LIVE
@click.pass_obj
def from_stop(settings: CliSettings, term: str, output_format: str, live: bool) -> None:
    """Browse every line leaving a stop."""
    _run_query(
        settings,
        lambda timetable: sort_by_departure(timetable.find_connections_only_from(term)),
        _render_connections,
        _render_connections_json,
        f"Connections from {term}",
        output_format,
        live,
        f"No connections found from '{term}'",
    )


@cli.command("to")
@click.argument("term")
@OUTPUT_FORMAT
@LIVE
@click.pass_obj
def to_stop(settings: CliSettings, term: str, output_format: str, live: bool) -> None:
    """Browse every line arriving at a stop."""
    _run_query(
        settings,
        lambda timetable: sort_by_departure(timetable.find_connections_only_to(term)),
        _render_connections,
        _render_connections_json,
        f"Connections to {term}",
        output_format,
        live,
        f"No connections found to '{term}'",
    )


@cli.command()
@click.argument("stop_id", type=int)
@click.pass_obj
def times(settings: CliSettings, stop_id: int) -> None:
    """Show the full timetable of one stop."""
    try:
        timetable = settings.build_timetable()
        timetable.start()
        with console.status("[bold green]Loading timetable..."):
            timetable.wait_until_complete()
        stop = timetable.get_stop(stop_id)
        if stop is None:
            raise ValidationError(f"No stop with id {stop_id}")
    except ValidationError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except SchedulerError as e:
        error_console.print(f"[red]Dataset error:[/red] {e}")
        sys.exit(1)

    console.print(timetable_table(stop))
    console.print(f"[bold]Next departure:[/bold] {timetable.describe_departure(stop)}")


@cli.command()
@click.pass_obj
def refresh(settings: CliSettings) -> None:
    """Download a fresh timetable dataset."""
    try:
        timetable = settings.build_timetable()
        with console.status(f"[bold green]Downloading timetable from {settings.url}..."):
            store = timetable.refresh()
            store.wait_until_complete()
    except SchedulerError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]✓ Loaded {len(store)} stops[/green]")
    console.print(f"[green]✓ Saved to:[/green] {settings.dataset}")


if __name__ == "__main__":
    cli()
