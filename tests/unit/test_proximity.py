import math
from datetime import date

from roadworks.common.geometry import distance_to_point, distance_to_polyline
from roadworks.common.models import EnrichedConstruction, LatLon
from roadworks.pipeline.proximity import clamp_threshold, filter_by_point, filter_by_route

# About 78 m north of the route along its whole length.
ROUTE = (LatLon(45.5007, -73.57), LatLon(45.5007, -73.55))


def _construction(lat: float, lon: float, permit: str = "P-1") -> EnrichedConstruction:
    return EnrichedConstruction(
        latitude=lat,
        longitude=lon,
        reason="Construction/rénovation",
        sidewalk_impact="Barré",
        transit_impact=None,
        street_name="Rue Sherbrooke",
        start_date=date(2026, 11, 1),
        end_date=None,
        permit_id=permit,
        status="Permis délivré",
        organization=None,
    )


def test_obstruction_within_threshold_is_kept():
    c = _construction(45.50, -73.56)
    assert filter_by_route([c], ROUTE, 100) == [c]


def test_obstruction_beyond_threshold_is_dropped():
    c = _construction(45.50, -73.56)
    assert filter_by_route([c], ROUTE, 50) == []


def test_threshold_is_inclusive_at_the_exact_distance():
    c = _construction(45.50, -73.56)
    d = distance_to_polyline(c.point, ROUTE)

    assert filter_by_route([c], ROUTE, d) == [c]
    assert filter_by_route([c], ROUTE, math.nextafter(d, 0)) == []


def test_missing_or_empty_route_yields_nothing():
    c = _construction(45.50, -73.56)
    assert filter_by_route([c], None, 500) == []
    assert filter_by_route([c], (), 500) == []


def test_filter_by_route_preserves_input_order():
    rows = [_construction(45.5001, -73.56, "b"), _construction(45.5003, -73.565, "a"), _construction(45.6, -73.56, "far")]
    assert [c.permit_id for c in filter_by_route(rows, ROUTE, 100)] == ["b", "a"]


def test_filter_by_point_uses_radius_inclusively():
    home = LatLon(45.50027, -73.56)
    c = _construction(45.50, -73.56)
    d = distance_to_point(home, c.point)

    assert 25 < d < 35
    assert filter_by_point([c], home, d) == [c]
    assert filter_by_point([c], home, 20) == []


def test_clamp_threshold_keeps_value_in_range():
    assert clamp_threshold(10, minimum=50, maximum=500) == 50
    assert clamp_threshold(150, minimum=50, maximum=500) == 150
    assert clamp_threshold(9000, minimum=50, maximum=500) == 500
