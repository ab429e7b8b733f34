"""Feed commands -- query routes, stops, trips, stop times and arrivals.

Static GTFS collections go through the cache according to the active
:class:`~foli.models.CacheBehavior` (``--behavior`` / ``--no-cache`` on the
root command).  ``arrivals`` is real-time data and always hits the network.

Example::

    foli routes --line 15
    foli --behavior cached-only stops --id 1170
    foli stop-times --trip 00010005__1001010
    foli --json arrivals T34
"""

from __future__ import annotations

import time
from typing import Optional

import typer

from foli.commands.common import open_client, run
from foli.exceptions import InvalidUsageError, NoDataError
from foli.models import Arrival, Route, Stop, StopTime, Trip
from foli.output import Column, info, print_records

ROUTE_COLUMNS: list[Column] = [
    ("ID", lambda r: r.id),
    ("Line", lambda r: r.short_name),
    ("Name", lambda r: r.long_name),
    ("Type", lambda r: "tram" if r.is_tram else "bus" if r.is_bus else r.route_type),
]

STOP_COLUMNS: list[Column] = [
    ("ID", lambda s: s.id),
    ("Code", lambda s: s.code),
    ("Name", lambda s: s.name),
    ("Lat", lambda s: s.lat),
    ("Lon", lambda s: s.lon),
]

TRIP_COLUMNS: list[Column] = [
    ("Trip", lambda t: t.trip_id),
    ("Service", lambda t: t.service_id),
    ("Headsign", lambda t: t.headsign),
    ("Direction", lambda t: t.direction_id),
]

STOP_TIME_COLUMNS: list[Column] = [
    ("Trip", lambda st: st.trip_id),
    ("Seq", lambda st: st.stop_sequence),
    ("Stop", lambda st: st.stop_id),
    ("Arrival", lambda st: st.arrival_time),
    ("Departure", lambda st: st.departure_time),
]


def _arrival_columns(now: float) -> list[Column]:
    return [
        ("Line", lambda a: a.line_ref),
        ("Destination", lambda a: a.destination_display),
        ("Due", lambda a: a.format_time_until_arrival(now)),
        ("Delay", lambda a: f"{int(a.arrival_delay):+d}s" if a.arrival_delay else "0s"),
        ("Monitored", lambda a: a.monitored),
    ]


def routes_command(
    ctx: typer.Context,
    line: Optional[str] = typer.Option(
        None, "--line", "-l", help="Only routes with this line number."
    ),
) -> None:
    """List transit routes."""

    async def _fetch() -> list[Route]:
        async with open_client(ctx) as client:
            if line is not None:
                return await client.routes_for_line(line)
            return await client.routes()

    routes = run(_fetch())
    print_records(routes, ROUTE_COLUMNS, title="Routes")


def stops_command(
    ctx: typer.Context,
    stop_id: Optional[str] = typer.Option(None, "--id", help="Show a single stop."),
) -> None:
    """List stops, or show one stop by id."""

    async def _fetch() -> list[Stop]:
        async with open_client(ctx) as client:
            if stop_id is None:
                return await client.stops()
            stop = await client.stop(stop_id)
            if stop is None:
                raise NoDataError(f"No stop with id {stop_id}")
            return [stop]

    stops = run(_fetch())
    print_records(stops, STOP_COLUMNS, title="Stops")


def trips_command(ctx: typer.Context) -> None:
    """List scheduled trips."""

    async def _fetch() -> list[Trip]:
        async with open_client(ctx) as client:
            return await client.trips()

    print_records(run(_fetch()), TRIP_COLUMNS, title="Trips")


def stop_times_command(
    ctx: typer.Context,
    trip: Optional[str] = typer.Option(None, "--trip", help="Stop times of one trip."),
    stop: Optional[str] = typer.Option(None, "--stop", help="Stop times at one stop."),
) -> None:
    """List scheduled stop times, optionally for one trip or one stop."""
    if trip is not None and stop is not None:
        raise InvalidUsageError("--trip and --stop are mutually exclusive")

    async def _fetch() -> list[StopTime]:
        async with open_client(ctx) as client:
            if trip is not None:
                return await client.stop_times_for_trip(trip)
            if stop is not None:
                return await client.stop_times_for_stop(stop)
            return await client.stop_times()

    print_records(run(_fetch()), STOP_TIME_COLUMNS, title="Stop times")


def arrivals_command(
    ctx: typer.Context,
    stop_id: str = typer.Argument(help="Stop id, e.g. T34 or 1170."),
) -> None:
    """Show real-time arrivals at a stop (never cached)."""

    async def _fetch() -> list[Arrival]:
        async with open_client(ctx) as client:
            return await client.arrivals(stop_id)

    arrivals = run(_fetch())
    if not arrivals:
        info(f"No upcoming arrivals at stop {stop_id}.")
    print_records(arrivals, _arrival_columns(time.time()), title=f"Arrivals at {stop_id}")
