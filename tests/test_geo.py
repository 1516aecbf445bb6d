from __future__ import annotations

import pytest

from kindred.utils.geo import build_geojson_point, haversine_km, km_to_meters, round_distance


def test_haversine_is_symmetric() -> None:
    forward = haversine_km(12.97, 77.59, 12.93, 77.61)
    backward = haversine_km(12.93, 77.61, 12.97, 77.59)
    assert forward == pytest.approx(backward)


def test_haversine_same_point_is_zero() -> None:
    assert haversine_km(40.7128, -74.006, 40.7128, -74.006) == 0.0


def test_bangalore_pair_rounds_to_one_decimal() -> None:
    distance = haversine_km(12.97, 77.59, 12.93, 77.61)
    assert distance == pytest.approx(4.95, abs=0.01)
    assert round_distance(distance) == 4.9


def test_one_degree_of_latitude() -> None:
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.01)


def test_round_distance_half_up() -> None:
    assert round_distance(2.25) == 2.3
    assert round_distance(0.04) == 0.0


def test_geojson_point_is_lon_lat() -> None:
    assert build_geojson_point(12.97, 77.59) == {"type": "Point", "coordinates": [77.59, 12.97]}
    assert km_to_meters(1.5) == 1500.0
