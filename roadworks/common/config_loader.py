"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

from roadworks.common.errors import ConfigurationError
from roadworks.common.fs import read_yaml
from roadworks.common.http import RetryConfig, TimeoutConfig
from roadworks.common.schema import validate_roadworks_config

CONFIG_FILENAME = "roadworks.yml"


@dataclass(frozen=True)
class DatasetConfig:
    obstructions_url: str
    impacts_url: str

    def require_urls(self) -> tuple[str, str]:
        missing = [
            name
            for name, value in (("obstructions_url", self.obstructions_url), ("impacts_url", self.impacts_url))
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Dataset endpoint(s) not configured: {', '.join(missing)}")
        return self.obstructions_url, self.impacts_url


@dataclass(frozen=True)
class DirectionsConfig:
    endpoint: str
    api_key: str

    def require_credentials(self) -> tuple[str, str]:
        if not self.endpoint:
            raise ConfigurationError("Directions endpoint not configured")
        if not self.api_key:
            raise ConfigurationError("Directions API key not configured")
        return self.endpoint, self.api_key


@dataclass(frozen=True)
class ProximityConfig:
    default_threshold_m: float
    threshold_min_m: float
    threshold_max_m: float


@dataclass(frozen=True)
class SweepConfig:
    radius_m: float
    interval_seconds: float
    run_hour: int | None
    timezone: str = "America/Montreal"

    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass(frozen=True)
class ClassificationConfig:
    sidewalk_blocked_values: frozenset[str]
    transit_moved_values: frozenset[str]


@dataclass(frozen=True)
class StorageConfig:
    locations_path: str
    alert_ledger_path: str

    def resolve(self, data_dir: Path) -> tuple[Path, Path]:
        return data_dir / self.locations_path, data_dir / self.alert_ledger_path


@dataclass(frozen=True)
class RoadworksConfig:
    datasets: DatasetConfig
    directions: DirectionsConfig
    proximity: ProximityConfig
    sweep: SweepConfig
    classification: ClassificationConfig
    timeout: TimeoutConfig
    retry: RetryConfig
    storage: StorageConfig


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigurationError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def _text(value: object) -> str:
    return "" if value is None else str(value).strip()


def build_config(cfg: dict) -> RoadworksConfig:
    http = cfg["http"]
    return RoadworksConfig(
        datasets=DatasetConfig(
            obstructions_url=_text(cfg["datasets"]["obstructions_url"]),
            impacts_url=_text(cfg["datasets"]["impacts_url"]),
        ),
        directions=DirectionsConfig(
            endpoint=_text(cfg["directions"]["endpoint"]),
            api_key=_text(cfg["directions"]["api_key"]),
        ),
        proximity=ProximityConfig(
            default_threshold_m=float(cfg["proximity"]["default_threshold_m"]),
            threshold_min_m=float(cfg["proximity"]["threshold_min_m"]),
            threshold_max_m=float(cfg["proximity"]["threshold_max_m"]),
        ),
        sweep=SweepConfig(
            radius_m=float(cfg["sweep"]["radius_m"]),
            interval_seconds=float(cfg["sweep"]["interval_seconds"]),
            run_hour=cfg["sweep"]["run_hour"],
            timezone=_text(cfg["sweep"]["timezone"]),
        ),
        classification=ClassificationConfig(
            sidewalk_blocked_values=frozenset(v.strip() for v in cfg["classification"]["sidewalk_blocked_values"]),
            transit_moved_values=frozenset(v.strip() for v in cfg["classification"]["transit_moved_values"]),
        ),
        timeout=TimeoutConfig(connect=float(http["connect_timeout_s"]), read=float(http["read_timeout_s"])),
        retry=RetryConfig(max_attempts=int(http["max_attempts"])),
        storage=StorageConfig(
            locations_path=_text(cfg["storage"]["locations_path"]),
            alert_ledger_path=_text(cfg["storage"]["alert_ledger_path"]),
        ),
    )


def load_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> RoadworksConfig:
    overlay_path = overlay_config_dir / CONFIG_FILENAME if overlay_config_dir is not None else None
    raw = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    validated = validate_roadworks_config(raw, allow_unknown=allow_unknown)
    return build_config(validated)
