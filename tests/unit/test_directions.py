from __future__ import annotations

import pytest

from roadworks.common.config_loader import DirectionsConfig
from roadworks.common.errors import ConfigurationError, MalformedDataError
from roadworks.common.models import LatLon
from roadworks.harvest.directions import fetch_route, parse_route_geometry

DIRECTIONS = DirectionsConfig(endpoint="https://routing.example.test/v2/directions/driving-car", api_key="k")


class FakeHttpClient:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def get_json(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.payload


def _route_payload(coordinates):
    return {"type": "FeatureCollection", "features": [{"geometry": {"type": "LineString", "coordinates": coordinates}}]}


def test_fetch_route_sends_lon_lat_and_returns_lat_lon():
    client = FakeHttpClient(_route_payload([[-73.57, 45.50], [-73.56, 45.51]]))

    route = fetch_route(client, DIRECTIONS, LatLon(45.50, -73.57), LatLon(45.51, -73.56))

    assert route == (LatLon(45.50, -73.57), LatLon(45.51, -73.56))
    url, kwargs = client.calls[0]
    assert url == DIRECTIONS.endpoint
    assert kwargs["source_type"] == "directions"
    assert kwargs["params"] == {"api_key": "k", "start": "-73.57,45.5", "end": "-73.56,45.51"}


def test_fetch_route_without_api_key_fails_before_any_request():
    client = FakeHttpClient(_route_payload([]))

    with pytest.raises(ConfigurationError):
        fetch_route(client, DirectionsConfig(endpoint=DIRECTIONS.endpoint, api_key=""), LatLon(0, 0), LatLon(1, 1))

    assert client.calls == []


def test_single_vertex_route_is_no_route():
    assert parse_route_geometry(_route_payload([[-73.57, 45.50]])) is None


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"features": []},
        {"features": ["x"]},
        {"features": [{"geometry": None}]},
        _route_payload([[-73.57]]),
        _route_payload([["east", "north"], [-73.5, 45.5]]),
    ],
)
def test_malformed_directions_payload_is_rejected(payload):
    with pytest.raises(MalformedDataError):
        parse_route_geometry(payload)
