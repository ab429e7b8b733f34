"""Identity space for cacheable feed collections.

A :class:`ResourceKey` names one cacheable collection: the four singleton
kinds (all routes, all stops, all trips, all stop times) or one of the two
parameterized kinds (stop times of a trip, stop times at a stop).  Each key
maps to exactly one file name inside the cache directory through
:attr:`ResourceKey.location`.

Parameterized identifiers are percent-encoded before they are embedded in
the file name, so identifiers containing ``/``, ``_`` or ``%`` can neither
escape the cache directory nor alias another key.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, unquote

from pydantic import BaseModel

from foli.models import Route, Stop, StopTime, Trip

_SUFFIX = ".json"


class ResourceKind(str, enum.Enum):
    """The six kinds of cacheable collection."""

    ROUTES = "routes"
    STOPS = "stops"
    TRIPS = "trips"
    STOP_TIMES = "stop_times"
    STOP_TIMES_FOR_TRIP = "stop_times_trip"
    STOP_TIMES_FOR_STOP = "stop_times_stop"

    @property
    def is_parameterized(self) -> bool:
        """``True`` for kinds that need an identifier (trip or stop id)."""
        return self in (ResourceKind.STOP_TIMES_FOR_TRIP, ResourceKind.STOP_TIMES_FOR_STOP)

    @property
    def record_type(self) -> type[BaseModel]:
        """The model class of the records stored under this kind."""
        return _RECORD_TYPES[self]


_RECORD_TYPES: dict[ResourceKind, type[BaseModel]] = {
    ResourceKind.ROUTES: Route,
    ResourceKind.STOPS: Stop,
    ResourceKind.TRIPS: Trip,
    ResourceKind.STOP_TIMES: StopTime,
    ResourceKind.STOP_TIMES_FOR_TRIP: StopTime,
    ResourceKind.STOP_TIMES_FOR_STOP: StopTime,
}


@dataclass(frozen=True)
class ResourceKey:
    """Address of one cached collection.

    Two keys are equal iff they have the same kind and, for parameterized
    kinds, the same identifier.  Keys are hashable and can be used as dict
    keys.

    Args:
        kind: Which collection.
        identifier: Trip or stop id for parameterized kinds; must be
            ``None`` for singleton kinds.

    Raises:
        ValueError: If a parameterized kind lacks a non-empty identifier or
            a singleton kind is given one.

    Example::

        from foli.cache.keys import ROUTES, ResourceKey

        ROUTES.location                                   # 'routes.json'
        ResourceKey.stop_times_for_trip("T1").location    # 'stop_times_trip_T1.json'
    """

    kind: ResourceKind
    identifier: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind.is_parameterized:
            if not self.identifier:
                raise ValueError(f"{self.kind.value} requires a non-empty identifier")
        elif self.identifier is not None:
            raise ValueError(f"{self.kind.value} does not take an identifier")

    @classmethod
    def stop_times_for_trip(cls, trip_id: str) -> ResourceKey:
        return cls(ResourceKind.STOP_TIMES_FOR_TRIP, trip_id)

    @classmethod
    def stop_times_for_stop(cls, stop_id: str) -> ResourceKey:
        return cls(ResourceKind.STOP_TIMES_FOR_STOP, stop_id)

    @property
    def location(self) -> str:
        """File name of this key's entry inside the cache directory."""
        if self.identifier is None:
            return f"{self.kind.value}{_SUFFIX}"
        return f"{self.kind.value}_{quote(self.identifier, safe='')}{_SUFFIX}"

    @property
    def record_type(self) -> type[BaseModel]:
        return self.kind.record_type

    def describe(self) -> str:
        """Short human-readable label used in logs and error messages."""
        if self.identifier is None:
            return self.kind.value.replace("_", " ")
        target = "trip" if self.kind is ResourceKind.STOP_TIMES_FOR_TRIP else "stop"
        return f"stop times for {target} {self.identifier}"

    @classmethod
    def from_location(cls, name: str) -> Optional[ResourceKey]:
        """Inverse of :attr:`location`; ``None`` if *name* is not a cache file name."""
        if not name.endswith(_SUFFIX) or name.startswith("."):
            return None
        stem = name[: -len(_SUFFIX)]
        for kind in (ResourceKind.STOP_TIMES_FOR_TRIP, ResourceKind.STOP_TIMES_FOR_STOP):
            prefix = f"{kind.value}_"
            if stem.startswith(prefix) and len(stem) > len(prefix):
                return cls(kind, unquote(stem[len(prefix):]))
        try:
            kind = ResourceKind(stem)
        except ValueError:
            return None
        if kind.is_parameterized:
            return None
        return cls(kind)


ROUTES = ResourceKey(ResourceKind.ROUTES)
STOPS = ResourceKey(ResourceKind.STOPS)
TRIPS = ResourceKey(ResourceKind.TRIPS)
STOP_TIMES = ResourceKey(ResourceKind.STOP_TIMES)

SINGLETON_KEYS: tuple[ResourceKey, ...] = (ROUTES, STOPS, TRIPS, STOP_TIMES)
