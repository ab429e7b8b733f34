"""Shared test fixtures for foli.

Provides canned Föli feed payloads, a fake feed server built on
:class:`httpx.MockTransport`, a controllable clock for cache ages, isolated
config directories, and output-state management.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest

from foli.cache.store import CacheStore
from foli.client import FoliClient
from foli.models import CacheConfig, GlobalConfig
from foli.output import OutputFormat, OutputManager, reset_output, set_output


START_TIME = 1_700_000_000.0


# ---------------------------------------------------------------------------
# Feed payloads (wire format)
# ---------------------------------------------------------------------------


ROUTES_PAYLOAD: list[dict[str, Any]] = [
    {
        "route_id": "2",
        "route_short_name": "2",
        "route_long_name": "Kohmo - Satama",
        "route_type": 3,
        "agency_id": "FOLI",
    },
    {
        "route_id": "1",
        "route_short_name": "1",
        "route_long_name": "Satama - Lentoasema",
        "route_type": 3,
        "route_color": "007AC9",
    },
    {
        "route_id": "15",
        "route_short_name": "15",
        "route_long_name": "Kauppatori - Lentoasema",
        "route_type": 3,
    },
]

STOPS_PAYLOAD: dict[str, dict[str, Any]] = {
    "T34": {"stop_code": "T34", "stop_name": "Kauppatori", "stop_lat": 60.4511, "stop_lon": 22.2673},
    "1170": {"stop_code": "1170", "stop_name": "Yliopistonmäki", "stop_lat": 60.4545, "stop_lon": 22.2852},
    "10": {"stop_name": "Satama"},
}

TRIPS_PAYLOAD: list[dict[str, Any]] = [
    {
        "service_id": "WKD",
        "trip_id": "T1",
        "trip_headsign": "Lentoasema",
        "direction_id": 0,
        "shape_id": "1_0",
    },
    {"service_id": "WKD", "trip_id": "T2", "trip_headsign": "Satama", "direction_id": 1},
]

STOP_TIMES_T1_PAYLOAD: list[dict[str, Any]] = [
    {
        "trip_id": "T1",
        "arrival_time": "08:00:00",
        "departure_time": "08:00:00",
        "stop_id": "T34",
        "stop_sequence": 1,
    },
    {
        "trip_id": "T1",
        "arrival_time": "08:07:00",
        "departure_time": "08:07:30",
        "stop_id": "1170",
        "stop_sequence": 2,
        "shape_dist_traveled": 2.4,
    },
]

ARRIVALS_PAYLOAD: dict[str, Any] = {
    "sys": "SM",
    "status": "OK",
    "servertime": START_TIME,
    "result": [
        {
            "recordedattime": START_TIME - 5,
            "lineref": "15",
            "monitored": True,
            "latitude": 60.45,
            "longitude": 22.27,
            "destinationdisplay": "Lentoasema",
            "aimedarrivaltime": START_TIME + 300,
            "expectedarrivaltime": START_TIME + 360,
            "delay": 60,
        },
        {
            "recordedattime": START_TIME - 5,
            "lineref": "1",
            "monitored": False,
            "destinationdisplay": "Satama",
            "aimedarrivaltime": START_TIME + 900,
            "expectedarrivaltime": START_TIME + 900,
        },
    ],
}


def default_routes() -> dict[str, Any]:
    """Path -> JSON body map served by :class:`FakeFeed` by default."""
    return {
        "/gtfs/routes": ROUTES_PAYLOAD,
        "/gtfs/stops": STOPS_PAYLOAD,
        "/gtfs/trips": TRIPS_PAYLOAD,
        "/gtfs/stop_times": STOP_TIMES_T1_PAYLOAD,
        "/gtfs/stop_times/trip/T1": STOP_TIMES_T1_PAYLOAD,
        "/gtfs/stop_times/stop/T34": STOP_TIMES_T1_PAYLOAD[:1],
        "/siri/sm/T34": ARRIVALS_PAYLOAD,
    }


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFeed:
    """In-process stand-in for ``data.foli.fi``.

    Serves JSON bodies by URL path and records every requested path.
    Set ``fail_with`` to make every request raise a transport error, or
    ``status_overrides[path]`` to answer with an error status.
    """

    def __init__(self, bodies: Optional[dict[str, Any]] = None) -> None:
        self.bodies = bodies if bodies is not None else default_routes()
        self.status_overrides: dict[str, int] = {}
        self.fail_with: Optional[Exception] = None
        self.requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)
        if self.fail_with is not None:
            raise self.fail_with
        if path in self.status_overrides:
            return httpx.Response(self.status_overrides[path], text="upstream trouble")
        if path not in self.bodies:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, json=self.bodies[path])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, path: str) -> int:
        return self.requests.count(path)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches sys.stdout/sys.stderr at creation time; after
    a CliRunner invocation those streams are closed.  The same applies to
    the log handler the root callback installs on the ``foli`` logger.
    """
    yield
    reset_output()
    foli_logger = logging.getLogger("foli")
    for handler in list(foli_logger.handlers):
        foli_logger.removeHandler(handler)
    foli_logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Cache and client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "feed-cache"


@pytest.fixture
def store(cache_dir: Path, clock: FakeClock) -> CacheStore:
    """An enabled store with 1-hour validity and a fake clock."""
    return CacheStore(cache_dir, CacheConfig.short_lived(), clock=clock)


@pytest.fixture
def feed() -> FakeFeed:
    return FakeFeed()


@pytest.fixture
def client(store: CacheStore, feed: FakeFeed) -> FoliClient:
    """A :class:`FoliClient` wired to the fake feed and the temp store.

    Use it as ``async with client:`` inside the test.
    """
    return FoliClient(config=GlobalConfig(), store=store, transport=feed.transport)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME, XDG_CACHE_HOME and XDG_DATA_HOME at
    subdirectories of tmp_path, forces the XDG layout, and clears all
    FOLI_* environment variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("foli.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "FOLI_CACHE_BEHAVIOR",
        "FOLI_CACHE_DISABLED",
        "FOLI_CACHE_VALIDITY",
        "FOLI_GTFS_URL",
        "FOLI_SIRI_URL",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
