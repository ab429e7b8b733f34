"""Tests for feed payload decoding."""

from __future__ import annotations

import pytest

from conftest import ARRIVALS_PAYLOAD, ROUTES_PAYLOAD, STOP_TIMES_T1_PAYLOAD, STOPS_PAYLOAD, TRIPS_PAYLOAD
from foli.cache.keys import ROUTES, STOPS, ResourceKey
from foli.client.decoding import (
    decode_arrivals,
    decode_collection,
    decode_routes,
    decode_stop_times,
    decode_stops,
    decode_trips,
    parse_json,
)
from foli.exceptions import DecodingError
from foli.models import StopTime


class TestRoutes:
    def test_sorted_by_id(self) -> None:
        routes = decode_routes(ROUTES_PAYLOAD)
        assert [r.id for r in routes] == ["1", "15", "2"]

    def test_fields(self) -> None:
        route = decode_routes(ROUTES_PAYLOAD)[0]
        assert route.short_name == "1"
        assert route.long_name == "Satama - Lentoasema"
        assert route.color == "007AC9"
        assert route.is_bus
        assert route.full_display_name == "1 - Satama - Lentoasema"

    def test_object_payload_rejected(self) -> None:
        with pytest.raises(DecodingError, match="expected a JSON array"):
            decode_routes({"1": {}})

    def test_missing_required_field(self) -> None:
        with pytest.raises(DecodingError, match="routes"):
            decode_routes([{"route_id": "1"}])


class TestStops:
    def test_id_taken_from_key_and_sorted(self) -> None:
        stops = decode_stops(STOPS_PAYLOAD)
        assert [s.id for s in stops] == ["10", "1170", "T34"]

    def test_optional_fields(self) -> None:
        stops = {s.id: s for s in decode_stops(STOPS_PAYLOAD)}
        assert stops["T34"].display_name == "T34 Kauppatori"
        assert stops["T34"].has_location
        assert stops["10"].code is None
        assert not stops["10"].has_location
        assert stops["10"].display_name == "Satama"

    def test_array_payload_rejected(self) -> None:
        with pytest.raises(DecodingError, match="expected a JSON object"):
            decode_stops([])

    def test_bad_stop_body(self) -> None:
        with pytest.raises(DecodingError, match="stop X"):
            decode_stops({"X": "not an object"})


class TestOthers:
    def test_trips(self) -> None:
        trips = decode_trips(TRIPS_PAYLOAD)
        assert trips[0].trip_id == "T1"
        assert trips[0].headsign == "Lentoasema"
        assert trips[1].shape_id is None

    def test_stop_times_keep_order(self) -> None:
        stop_times = decode_stop_times(STOP_TIMES_T1_PAYLOAD)
        assert [st.stop_sequence for st in stop_times] == [1, 2]
        assert stop_times[1].shape_dist_traveled == 2.4

    def test_arrivals(self) -> None:
        response = decode_arrivals(ARRIVALS_PAYLOAD)
        assert response.is_valid
        assert [a.line_ref for a in response.result] == ["15", "1"]
        assert response.result[0].destination_display == "Lentoasema"

    def test_arrivals_missing_status(self) -> None:
        with pytest.raises(DecodingError, match="arrivals"):
            decode_arrivals({"result": []})

    def test_decode_collection_dispatches_by_kind(self) -> None:
        assert decode_collection(ROUTES, ROUTES_PAYLOAD)[0].id == "1"
        assert decode_collection(STOPS, STOPS_PAYLOAD)[0].id == "10"
        records = decode_collection(ResourceKey.stop_times_for_trip("T1"), STOP_TIMES_T1_PAYLOAD)
        assert all(isinstance(r, StopTime) for r in records)


class TestParseJson:
    def test_valid(self) -> None:
        assert parse_json(b'{"a": 1}', "x") == {"a": 1}

    def test_invalid(self) -> None:
        with pytest.raises(DecodingError, match="Failed to decode stops"):
            parse_json(b"<html>", "stops")
