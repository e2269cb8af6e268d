from pathlib import Path

import pytest

from roadworks.common.config_loader import load_config
from roadworks.common.errors import ConfigurationError


def test_load_config_from_repo_config_dir():
    config = load_config(Path("config"))

    assert config.proximity.default_threshold_m == 100
    assert config.proximity.threshold_min_m == 50
    assert config.proximity.threshold_max_m == 500
    assert config.sweep.radius_m == 100
    assert config.sweep.run_hour is None
    assert config.sweep.zone().key == "America/Montreal"
    assert config.classification.sidewalk_blocked_values == frozenset({"Barré"})
    assert "Déplacer" in config.classification.transit_moved_values
    assert config.retry.max_attempts == 4


def test_repo_config_has_no_live_endpoints_or_secrets():
    config = load_config(Path("config"))

    with pytest.raises(ConfigurationError):
        config.datasets.require_urls()
    with pytest.raises(ConfigurationError):
        config.directions.require_credentials()


def test_load_config_applies_overlay_values(tmp_path: Path):
    overlay = tmp_path / "live"
    overlay.mkdir()
    (overlay / "roadworks.yml").write_text(
        """datasets:
  obstructions_url: "https://data.example.test/obstructions"
  impacts_url: "https://data.example.test/impacts"
directions:
  api_key: "secret"
sweep:
  run_hour: 6
""",
        encoding="utf-8",
    )

    config = load_config(Path("config"), overlay_config_dir=overlay)

    assert config.datasets.require_urls() == (
        "https://data.example.test/obstructions",
        "https://data.example.test/impacts",
    )
    assert config.directions.require_credentials()[1] == "secret"
    assert config.directions.endpoint.startswith("https://api.openrouteservice.org/")
    assert config.sweep.run_hour == 6
    assert config.sweep.radius_m == 100


def test_missing_overlay_dir_falls_back_to_base(tmp_path: Path):
    config = load_config(Path("config"), overlay_config_dir=tmp_path / "absent")
    assert config.directions.api_key == ""


def test_empty_overlay_file_is_ignored(tmp_path: Path):
    (tmp_path / "roadworks.yml").write_text("", encoding="utf-8")
    config = load_config(Path("config"), overlay_config_dir=tmp_path)
    assert config.proximity.default_threshold_m == 100


def test_non_mapping_overlay_is_rejected(tmp_path: Path):
    (tmp_path / "roadworks.yml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(Path("config"), overlay_config_dir=tmp_path)


def test_missing_base_config_is_rejected(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        load_config(tmp_path)


def test_storage_paths_resolve_under_data_dir(tmp_path: Path):
    config = load_config(Path("config"))
    locations, ledger = config.storage.resolve(tmp_path)
    assert locations == tmp_path / "state" / "saved_locations.json"
    assert ledger == tmp_path / "state" / "alert_ledger.json"
