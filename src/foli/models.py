"""Canonical Pydantic models shared across all foli modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Configuration models** -- serialised as JSON in the user's config directory
or passed to the cache store:
    :class:`CacheBehavior`, :class:`CachePreset`, :class:`CacheConfig`,
    :class:`CacheSettings`, :class:`RequestConfig`, :class:`FeedConfig`,
    :class:`OutputConfig`, and :class:`GlobalConfig`.

**Feed records** -- decoded from the Föli GTFS and SIRI endpoints and
persisted by :class:`~foli.cache.store.CacheStore`:
    :class:`Route`, :class:`Stop`, :class:`Trip`, :class:`StopTime`,
    :class:`Arrival`, and :class:`ArrivalResponse`.

Feed records use the feed's own JSON names as field aliases and set
``populate_by_name=True``, so ``Route(id="1", ...)`` and
``Route.model_validate({"route_id": "1", ...})`` both work.  Dumping with
``by_alias=True`` reproduces the wire names, which is also the on-disk cache
format.
"""

from __future__ import annotations

import enum
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_VALIDITY_SECONDS = 24 * 60 * 60
SHORT_LIVED_VALIDITY_SECONDS = 60 * 60
LONG_LIVED_VALIDITY_SECONDS = 7 * 24 * 60 * 60


# --- Cache policy ---


class CacheBehavior(str, enum.Enum):
    """Caller-selected caching strategy for a single request.

    ``CACHED_OR_FETCH`` is the default: serve a valid cached collection if
    there is one, otherwise fetch from the network and persist the result.
    ``FORCE_REFRESH`` always fetches and then repopulates the cache
    (pull-to-refresh).  ``CACHED_ONLY`` never touches the network and fails
    with :class:`~foli.exceptions.CacheMissError` on a miss.  ``NO_CACHE``
    always fetches and leaves the cache untouched.
    """

    CACHED_OR_FETCH = "cached-or-fetch"
    FORCE_REFRESH = "force-refresh"
    CACHED_ONLY = "cached-only"
    NO_CACHE = "no-cache"


class CachePreset(str, enum.Enum):
    """Named :class:`CacheConfig` presets selectable from the config file."""

    DEFAULT = "default"
    DISABLED = "disabled"
    SHORT_LIVED = "short-lived"
    LONG_LIVED = "long-lived"


class CacheConfig(BaseModel):
    """Immutable policy parameters for a :class:`~foli.cache.store.CacheStore`.

    An entry older than ``validity_seconds`` is stale and is never served.
    With ``enabled=False`` the store turns into a pass-through: loads report
    nothing and saves are dropped.

    Example::

        CacheConfig.short_lived()            # 1 hour, enabled
        CacheConfig(validity_seconds=90)     # custom TTL
    """

    model_config = ConfigDict(frozen=True)

    validity_seconds: float = Field(
        default=DEFAULT_VALIDITY_SECONDS,
        ge=0,
        description="How long a cached collection stays valid, in seconds",
    )
    enabled: bool = Field(default=True, description="Enable the disk cache")

    @property
    def validity(self) -> timedelta:
        """The validity window as a :class:`~datetime.timedelta`."""
        return timedelta(seconds=self.validity_seconds)

    @classmethod
    def default(cls) -> CacheConfig:
        """24-hour validity, enabled."""
        return cls()

    @classmethod
    def disabled(cls) -> CacheConfig:
        """Caching switched off entirely."""
        return cls(enabled=False)

    @classmethod
    def short_lived(cls) -> CacheConfig:
        """1-hour validity, enabled."""
        return cls(validity_seconds=SHORT_LIVED_VALIDITY_SECONDS)

    @classmethod
    def long_lived(cls) -> CacheConfig:
        """7-day validity, enabled."""
        return cls(validity_seconds=LONG_LIVED_VALIDITY_SECONDS)

    @classmethod
    def from_preset(cls, preset: CachePreset) -> CacheConfig:
        """Build the configuration named by *preset*."""
        factories = {
            CachePreset.DEFAULT: cls.default,
            CachePreset.DISABLED: cls.disabled,
            CachePreset.SHORT_LIVED: cls.short_lived,
            CachePreset.LONG_LIVED: cls.long_lived,
        }
        return factories[preset]()


class CacheSettings(BaseModel):
    """Cache section of :class:`GlobalConfig`.

    When ``preset`` is set it takes precedence over the explicit
    ``enabled`` / ``validity_seconds`` fields.
    """

    enabled: bool = Field(default=True, description="Enable the disk cache")
    validity_seconds: float = Field(
        default=DEFAULT_VALIDITY_SECONDS, ge=0, description="Cache validity in seconds"
    )
    preset: Optional[CachePreset] = Field(
        default=None, description="Named preset: default, disabled, short-lived, long-lived"
    )

    def to_cache_config(self) -> CacheConfig:
        """Resolve these settings into an immutable :class:`CacheConfig`."""
        if self.preset is not None:
            return CacheConfig.from_preset(self.preset)
        return CacheConfig(validity_seconds=self.validity_seconds, enabled=self.enabled)


# --- Global config ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every feed request."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class FeedConfig(BaseModel):
    """Base URLs of the Föli feed endpoints."""

    gtfs_base_url: str = Field(
        default="https://data.foli.fi/gtfs", description="Static GTFS data"
    )
    siri_base_url: str = Field(
        default="https://data.foli.fi/siri", description="Real-time SIRI data"
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/foli/config.json``.

    Loaded and saved by :func:`~foli.config.load_global_config` and
    :func:`~foli.config.save_global_config`.  Environment variables and CLI
    flags override these values; see :func:`~foli.config.resolve_config`.
    """

    default_behavior: CacheBehavior = CacheBehavior.CACHED_OR_FETCH
    cache: CacheSettings = Field(default_factory=CacheSettings)
    request: RequestConfig = Field(default_factory=RequestConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Feed records (GTFS) ---


_RECORD_CONFIG = ConfigDict(populate_by_name=True, frozen=True)


class Route(BaseModel):
    """A transit route from GTFS ``routes.txt``."""

    model_config = _RECORD_CONFIG

    id: str = Field(alias="route_id")
    short_name: str = Field(alias="route_short_name")
    long_name: str = Field(default="", alias="route_long_name")
    description: Optional[str] = Field(default=None, alias="route_desc")
    route_type: Optional[int] = Field(default=None, alias="route_type")
    url: Optional[str] = Field(default=None, alias="route_url")
    color: Optional[str] = Field(default=None, alias="route_color")
    text_color: Optional[str] = Field(default=None, alias="route_text_color")
    agency_id: Optional[str] = Field(default=None, alias="agency_id")

    @property
    def display_name(self) -> str:
        return self.long_name or self.short_name

    @property
    def full_display_name(self) -> str:
        if not self.long_name:
            return self.short_name
        return f"{self.short_name} - {self.long_name}"

    @property
    def is_bus(self) -> bool:
        return self.route_type == 3

    @property
    def is_tram(self) -> bool:
        return self.route_type == 0


class Stop(BaseModel):
    """A stop from GTFS ``stops.txt``.

    The feed delivers stops as an object keyed by stop id, so ``id`` is
    filled in by :func:`~foli.client.decoding.decode_stops` rather than read
    from the stop body.
    """

    model_config = _RECORD_CONFIG

    id: str = Field(alias="stop_id")
    name: str = Field(alias="stop_name")
    code: Optional[str] = Field(default=None, alias="stop_code")
    lat: Optional[float] = Field(default=None, alias="stop_lat")
    lon: Optional[float] = Field(default=None, alias="stop_lon")
    zone_id: Optional[str] = Field(default=None, alias="zone_id")
    location_type: Optional[int] = Field(default=None, alias="location_type")
    parent_station: Optional[str] = Field(default=None, alias="parent_station")
    wheelchair_boarding: Optional[int] = Field(default=None, alias="wheelchair_boarding")

    @property
    def has_location(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def display_name(self) -> str:
        if self.code:
            return f"{self.code} {self.name}"
        return self.name


class Trip(BaseModel):
    """A scheduled trip from GTFS ``trips.txt``."""

    model_config = _RECORD_CONFIG

    service_id: str
    trip_id: str
    headsign: str = Field(default="", alias="trip_headsign")
    direction_id: Optional[int] = None
    block_id: Optional[str] = None
    shape_id: Optional[str] = None
    wheelchair_accessible: Optional[int] = None
    bikes_allowed: Optional[int] = None


class StopTime(BaseModel):
    """A scheduled call of a trip at a stop from GTFS ``stop_times.txt``.

    Times are kept as the feed's ``HH:MM:SS`` strings; GTFS allows hours
    past 24 for trips running over midnight.
    """

    model_config = _RECORD_CONFIG

    trip_id: str
    arrival_time: str
    departure_time: str
    stop_id: str
    stop_sequence: int
    stop_headsign: Optional[str] = None
    pickup_type: Optional[int] = None
    drop_off_type: Optional[int] = None
    shape_dist_traveled: Optional[float] = None
    timepoint: Optional[int] = None


# --- Real-time records (SIRI) ---


class Arrival(BaseModel):
    """A vehicle approaching a stop, from the SIRI stop-monitoring endpoint.

    All ``*_time`` fields are Unix timestamps in seconds.
    """

    model_config = _RECORD_CONFIG

    recorded_at: float = Field(alias="recordedattime")
    line_ref: str = Field(alias="lineref")
    monitored: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    origin_aimed_departure_time: Optional[float] = Field(
        default=None, alias="originaimeddeparturetime"
    )
    destination_aimed_arrival_time: Optional[float] = Field(
        default=None, alias="destinationaimedarrivaltime"
    )
    destination_display: str = Field(default="", alias="destinationdisplay")
    aimed_arrival_time: float = Field(alias="aimedarrivaltime")
    expected_arrival_time: float = Field(alias="expectedarrivaltime")
    aimed_departure_time: Optional[float] = Field(default=None, alias="aimeddeparturetime")
    expected_departure_time: Optional[float] = Field(
        default=None, alias="expecteddeparturetime"
    )
    delay: Optional[int] = None

    @property
    def expected_arrival(self) -> datetime:
        return datetime.fromtimestamp(self.expected_arrival_time, tz=timezone.utc)

    @property
    def arrival_delay(self) -> float:
        """Seconds between the planned and the estimated arrival (positive = late)."""
        return self.expected_arrival_time - self.aimed_arrival_time

    @property
    def is_late(self) -> bool:
        return self.arrival_delay > 0

    @property
    def is_early(self) -> bool:
        return self.arrival_delay < 0

    @property
    def is_on_time(self) -> bool:
        return self.arrival_delay == 0

    def time_until_arrival(self, now: Optional[float] = None) -> float:
        """Seconds from *now* (default: current time) until the expected arrival."""
        if now is None:
            now = time.time()
        return self.expected_arrival_time - now

    def format_time_until_arrival(self, now: Optional[float] = None) -> str:
        """Render the remaining time as ``Due``, ``5 min``, ``1h 5m`` or ``2h``."""
        minutes = int(self.time_until_arrival(now) / 60)
        if minutes <= 0:
            return "Due"
        if minutes < 60:
            return f"{minutes} min"
        hours, remaining = divmod(minutes, 60)
        if remaining:
            return f"{hours}h {remaining}m"
        return f"{hours}h"


class ArrivalResponse(BaseModel):
    """Envelope returned by the SIRI stop-monitoring endpoint."""

    model_config = _RECORD_CONFIG

    sys: str = ""
    status: str
    server_time: float = Field(default=0, alias="servertime")
    result: list[Arrival] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """``True`` when the feed reported real-time data (status ``OK``)."""
        return self.status == "OK"
