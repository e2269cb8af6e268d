"""Saved-location store backed by a JSON file.

Entries are stored as (longitude, latitude), the order the geocoder hands
them over in; ``list()`` converts them to ``LatLon`` on the way out.
"""

from __future__ import annotations

import math
import threading
from pathlib import Path
from typing import Protocol

from roadworks.common.errors import MalformedDataError
from roadworks.common.fs import read_json, write_json
from roadworks.common.models import LatLon, SavedLocation


class SavedLocationStore(Protocol):
    def list(self) -> list[SavedLocation]: ...

    def create(self, label: str, coordinates: tuple[float, float]) -> str: ...

    def update(self, location_id: str, label: str) -> bool: ...

    def delete(self, location_id: str) -> bool: ...


def _clean_label(label: str) -> str:
    cleaned = (label or "").strip()
    if not cleaned:
        raise ValueError("Saved location label must not be empty")
    return cleaned


def _clean_coordinates(coordinates: tuple[float, float]) -> tuple[float, float]:
    lon, lat = (float(v) for v in coordinates)
    if not (math.isfinite(lon) and math.isfinite(lat)) or not (-180 <= lon <= 180 and -90 <= lat <= 90):
        raise ValueError(f"Invalid (longitude, latitude) pair: {coordinates!r}")
    return lon, lat


class JsonLocationStore:
    def __init__(self, path: Path) -> None:
        self.path = path
        self.lock = threading.Lock()

    def _read(self) -> dict:
        if not self.path.exists():
            return {"next_id": 1, "locations": []}
        payload = read_json(self.path)
        if not isinstance(payload, dict) or not isinstance(payload.get("locations"), list):
            raise MalformedDataError(f"Saved-location file has no locations list: {self.path}")
        payload.setdefault("next_id", 1 + max((int(row["id"]) for row in payload["locations"]), default=0))
        return payload

    def list(self) -> list[SavedLocation]:
        with self.lock:
            rows = self._read()["locations"]
        locations = [
            SavedLocation(id=str(row["id"]), label=row["label"], point=LatLon(float(row["lat"]), float(row["lon"])))
            for row in rows
        ]
        return sorted(locations, key=lambda location: int(location.id), reverse=True)

    def create(self, label: str, coordinates: tuple[float, float]) -> str:
        cleaned = _clean_label(label)
        lon, lat = _clean_coordinates(coordinates)
        with self.lock:
            payload = self._read()
            location_id = int(payload["next_id"])
            payload["locations"].append({"id": location_id, "label": cleaned, "lon": lon, "lat": lat})
            payload["next_id"] = location_id + 1
            write_json(self.path, payload)
        return str(location_id)

    def update(self, location_id: str, label: str) -> bool:
        cleaned = _clean_label(label)
        with self.lock:
            payload = self._read()
            for row in payload["locations"]:
                if str(row["id"]) == str(location_id):
                    row["label"] = cleaned
                    write_json(self.path, payload)
                    return True
        return False

    def delete(self, location_id: str) -> bool:
        with self.lock:
            payload = self._read()
            kept = [row for row in payload["locations"] if str(row["id"]) != str(location_id)]
            if len(kept) == len(payload["locations"]):
                return False
            payload["locations"] = kept
            write_json(self.path, payload)
        return True
