"""Minimal strict schema for YAML config validation."""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from roadworks.common.errors import ConfigurationError

SECTION_KEYS = {
    "datasets": {"obstructions_url", "impacts_url"},
    "directions": {"endpoint", "api_key"},
    "proximity": {"default_threshold_m", "threshold_min_m", "threshold_max_m"},
    "sweep": {"radius_m", "interval_seconds", "run_hour", "timezone"},
    "classification": {"sidewalk_blocked_values", "transit_moved_values"},
    "http": {"connect_timeout_s", "read_timeout_s", "max_attempts"},
    "storage": {"locations_path", "alert_ledger_path"},
}


def _assert_mapping(obj: object, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigurationError(f"{ctx} must be a mapping, got {type(obj).__name__}")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigurationError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigurationError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_non_negative(value: object, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigurationError(f"{ctx} must be a non-negative number, got {value!r}")


def _assert_string_list(value: object, ctx: str) -> None:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"{ctx} must be a list of strings")


def validate_roadworks_config(cfg: object, *, allow_unknown: bool = False) -> dict:
    _assert_mapping(cfg, "roadworks config")
    _assert_required_keys(cfg, set(SECTION_KEYS), "roadworks config")
    _assert_no_unknown_keys(cfg, set(SECTION_KEYS), "roadworks config", allow_unknown)

    for section, keys in SECTION_KEYS.items():
        _assert_mapping(cfg[section], section)
        _assert_required_keys(cfg[section], keys, section)
        _assert_no_unknown_keys(cfg[section], keys, section, allow_unknown)

    proximity = cfg["proximity"]
    for key in ("default_threshold_m", "threshold_min_m", "threshold_max_m"):
        _assert_non_negative(proximity[key], f"proximity.{key}")
    if proximity["threshold_min_m"] > proximity["threshold_max_m"]:
        raise ConfigurationError("proximity.threshold_min_m must not exceed proximity.threshold_max_m")

    _assert_non_negative(cfg["sweep"]["radius_m"], "sweep.radius_m")
    _assert_non_negative(cfg["sweep"]["interval_seconds"], "sweep.interval_seconds")
    run_hour = cfg["sweep"]["run_hour"]
    if run_hour is not None and (isinstance(run_hour, bool) or not isinstance(run_hour, int) or not 0 <= run_hour <= 23):
        raise ConfigurationError(f"sweep.run_hour must be null or an hour 0-23, got {run_hour!r}")
    timezone = cfg["sweep"]["timezone"]
    try:
        ZoneInfo(str(timezone))
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"sweep.timezone is not a known IANA zone: {timezone!r}") from exc

    _assert_string_list(cfg["classification"]["sidewalk_blocked_values"], "classification.sidewalk_blocked_values")
    _assert_string_list(cfg["classification"]["transit_moved_values"], "classification.transit_moved_values")

    return cfg
