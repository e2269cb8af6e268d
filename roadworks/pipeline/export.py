"""GeoJSON export of a route view."""

from __future__ import annotations

from pathlib import Path

from roadworks.common.deterministic import stable_sorted
from roadworks.common.fs import write_json
from roadworks.pipeline.render import Marker, RouteView


def _marker_sort_key(marker: Marker):
    c = marker.construction
    return (c.permit_id or "", c.latitude, c.longitude)


def _feature(marker: Marker) -> dict:
    c = marker.construction
    properties = c.to_dict()
    del properties["latitude"], properties["longitude"]
    properties.update(
        {
            "impact_category": marker.category.value,
            "icon": marker.icon,
            "popup": marker.popup(),
        }
    )
    return {
        "type": "Feature",
        # GeoJSON positions are longitude first.
        "geometry": {"type": "Point", "coordinates": [c.longitude, c.latitude]},
        "properties": properties,
    }


def build_feature_collection(view: RouteView) -> dict:
    features = [_feature(marker) for marker in stable_sorted(view.markers, key=_marker_sort_key)]
    if view.route:
        features.insert(
            0,
            {
                "type": "Feature",
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[vertex.lon, vertex.lat] for vertex in view.route],
                },
                "properties": {"role": "route"},
            },
        )
    return {
        "type": "FeatureCollection",
        "features": features,
        "properties": {
            "status": view.status,
            "threshold_meters": view.threshold_meters,
            "legend": {category.value: count for category, count in view.legend.items()},
        },
    }


def write_route_geojson(data_dir: Path, view: RouteView, filename: str = "near_route.geojson") -> Path:
    out_path = data_dir / "out" / filename
    write_json(out_path, build_feature_collection(view))
    return out_path
