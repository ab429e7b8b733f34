"""Decode Föli feed payloads into typed records.

The GTFS endpoints are not uniform: ``routes``, ``trips`` and ``stop_times``
return JSON arrays of records, while ``stops`` returns an object keyed by
stop id.  Every decoder raises :class:`~foli.exceptions.DecodingError` on a
payload of the wrong shape.
"""

from __future__ import annotations

import functools
import json
from typing import Any, Callable

from pydantic import BaseModel, TypeAdapter, ValidationError

from foli.cache.keys import ResourceKey, ResourceKind
from foli.exceptions import DecodingError
from foli.models import ArrivalResponse, Route, Stop, StopTime, Trip


@functools.lru_cache(maxsize=None)
def _list_adapter(record_type: type[BaseModel]) -> TypeAdapter:
    return TypeAdapter(list[record_type])  # type: ignore[valid-type]


def parse_json(content: bytes, label: str) -> Any:
    """Parse a response body, raising :class:`DecodingError` on invalid JSON."""
    try:
        return json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodingError(f"Failed to decode {label}: {exc}") from exc


def _decode_list(data: Any, record_type: type[BaseModel], label: str) -> list[Any]:
    if not isinstance(data, list):
        raise DecodingError(f"Failed to decode {label}: expected a JSON array")
    try:
        return _list_adapter(record_type).validate_python(data)
    except ValidationError as exc:
        raise DecodingError(f"Failed to decode {label}: {exc}") from exc


def decode_routes(data: Any) -> list[Route]:
    """Decode the ``/routes`` array, sorted by route id."""
    routes = _decode_list(data, Route, "routes")
    return sorted(routes, key=lambda route: route.id)


def decode_stops(data: Any) -> list[Stop]:
    """Decode the ``/stops`` object (``{stop_id: {...}}``), sorted by stop id."""
    if not isinstance(data, dict):
        raise DecodingError("Failed to decode stops: expected a JSON object")
    stops = []
    for stop_id, body in data.items():
        if not isinstance(body, dict):
            raise DecodingError(f"Failed to decode stop {stop_id}: expected a JSON object")
        try:
            stops.append(Stop.model_validate({**body, "stop_id": stop_id}))
        except ValidationError as exc:
            raise DecodingError(f"Failed to decode stop {stop_id}: {exc}") from exc
    return sorted(stops, key=lambda stop: stop.id)


def decode_trips(data: Any) -> list[Trip]:
    return _decode_list(data, Trip, "trips")


def decode_stop_times(data: Any) -> list[StopTime]:
    return _decode_list(data, StopTime, "stop times")


def decode_arrivals(data: Any) -> ArrivalResponse:
    """Decode a SIRI stop-monitoring response."""
    try:
        return ArrivalResponse.model_validate(data)
    except ValidationError as exc:
        raise DecodingError(f"Failed to decode arrivals: {exc}") from exc


_DECODERS: dict[ResourceKind, Callable[[Any], list[Any]]] = {
    ResourceKind.ROUTES: decode_routes,
    ResourceKind.STOPS: decode_stops,
    ResourceKind.TRIPS: decode_trips,
    ResourceKind.STOP_TIMES: decode_stop_times,
    ResourceKind.STOP_TIMES_FOR_TRIP: decode_stop_times,
    ResourceKind.STOP_TIMES_FOR_STOP: decode_stop_times,
}


def decode_collection(key: ResourceKey, data: Any) -> list[Any]:
    """Decode *data* with the decoder registered for *key*'s kind."""
    return _DECODERS[key.kind](data)
