"""Tests for src/matching/geo.py."""

from __future__ import annotations

import json
import math

import pytest

from src.data.schemas import GeoPoint
from src.matching.geo import distance_km, location_score, parse_geo_point

MEXICO_CITY = {"latitude": 19.4320, "longitude": -99.1330}
MEXICO_CITY_NEARBY = {"latitude": 19.4326, "longitude": -99.1332}


class TestDistanceKm:
    """Tests for haversine distance."""

    def test_same_point_is_zero(self) -> None:
        """Distance from a point to itself is 0."""
        p = GeoPoint(**MEXICO_CITY)
        assert distance_km(p, p) == 0.0

    def test_nearby_points(self) -> None:
        """Two points a block apart are roughly 70 m from each other."""
        d = distance_km(GeoPoint(**MEXICO_CITY), GeoPoint(**MEXICO_CITY_NEARBY))
        assert d == pytest.approx(0.07, abs=0.01)

    def test_one_degree_of_latitude(self) -> None:
        """One degree along a meridian is about 111.19 km."""
        d = distance_km(GeoPoint(latitude=0, longitude=0), GeoPoint(latitude=1, longitude=0))
        assert d == pytest.approx(111.19, abs=0.01)

    def test_symmetric(self) -> None:
        """Distance should not depend on argument order."""
        a = GeoPoint(latitude=40.4168, longitude=-3.7038)
        b = GeoPoint(latitude=41.3874, longitude=2.1686)
        assert distance_km(a, b) == pytest.approx(distance_km(b, a))

    @pytest.mark.parametrize(
        ("p1", "p2"),
        [
            ((0.08, 0.0), (-0.08, 180.0)),
            ((0.0, 0.0), (0.0, 180.0)),
            ((90.0, 0.0), (-90.0, 0.0)),
        ],
    )
    def test_antipodal_points(self, p1: tuple, p2: tuple) -> None:
        """Opposite points are half the circumference apart and never raise."""
        a = GeoPoint(latitude=p1[0], longitude=p1[1])
        b = GeoPoint(latitude=p2[0], longitude=p2[1])
        assert distance_km(a, b) == pytest.approx(math.pi * 6371.0, rel=1e-6)


class TestLocationScore:
    """Tests for the step decay."""

    @pytest.mark.parametrize(
        ("distance", "expected"),
        [
            (0.0, 1.0),
            (4.99, 1.0),
            (5.0, 0.6),
            (14.9, 0.6),
            (15.0, 0.2),
            (39.9, 0.2),
            (40.0, 0.0),
            (50.0, 0.0),
        ],
    )
    def test_steps(self, distance: float, expected: float) -> None:
        """Each band awards its share of the full weight."""
        assert location_score(distance, 1.0) == pytest.approx(expected)

    def test_scales_with_weight(self) -> None:
        """Full weight is returned for close matches."""
        assert location_score(0, 0.35) == 0.35

    @pytest.mark.parametrize("distance", [float("nan"), float("inf"), -1.0])
    def test_invalid_distance(self, distance: float) -> None:
        """Nonsense distances contribute nothing."""
        assert location_score(distance, 0.35) == 0.0


class TestParseGeoPoint:
    """Tests for tolerant location parsing."""

    def test_mapping(self) -> None:
        """Plain mappings are accepted."""
        assert parse_geo_point(MEXICO_CITY) == GeoPoint(**MEXICO_CITY)

    def test_json_string(self) -> None:
        """JSON-serialized locations are accepted."""
        assert parse_geo_point(json.dumps(MEXICO_CITY)) == GeoPoint(**MEXICO_CITY)

    def test_model_passthrough(self) -> None:
        """GeoPoint instances are returned as-is."""
        p = GeoPoint(**MEXICO_CITY)
        assert parse_geo_point(p) is p

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "",
            "not json",
            "null",
            '{"latitude": 19.4}',
            {"latitude": "north", "longitude": 1},
            {"latitude": 120, "longitude": 1},
            [19.4, -99.1],
            42,
        ],
    )
    def test_malformed_is_none(self, value: object) -> None:
        """Anything unreadable yields None instead of raising."""
        assert parse_geo_point(value) is None
