from pathlib import Path

import pytest

from fitmatch.configs import EngineSettings, get_config_value, load_config, validate_config

CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "config.yaml"


def test_shipped_config_is_valid():
    config = load_config(str(CONFIG_PATH))

    assert validate_config(config) == []


def test_settings_from_shipped_config():
    settings = EngineSettings.load(str(CONFIG_PATH))

    assert settings.window_days == 90
    assert settings.overlap_window_days == 30
    assert settings.default_limit == 20
    assert settings.max_workers == 1
    assert settings.history_days == 30
    assert settings.metrics_cache_ttl_seconds == 300
    assert settings.preference_defaults["max_distance"] == 50
    assert settings.default_threshold["allowed_activity_types"] == [
        "Run", "Ride", "Swim", "Hike", "Walk"
    ]


def test_settings_defaults_without_config():
    settings = EngineSettings.from_config({})

    assert settings.to_dict()["window_days"] == 90
    assert settings.preference_defaults == {}


def test_invalid_settings_raise():
    with pytest.raises(ValueError):
        EngineSettings.from_config({"metrics": {"window_days": 0}})
    with pytest.raises(ValueError):
        EngineSettings.from_config({"matching": {"max_workers": 0}})


def test_validate_config_reports_issues():
    issues = validate_config({
        "metrics": {"window_days": -5},
        "matching": {"defaults": {"min_age": 50, "max_age": 30}, "weights": {"age": 1}},
    })

    assert "Missing required section: global" in issues
    assert "Missing required section: admission" in issues
    assert any("metrics.window_days" in issue for issue in issues)
    assert any("min_age" in issue for issue in issues)
    assert any("weights" in issue for issue in issues)


def test_get_config_value():
    config = {"a": {"b": {"c": 3}}}

    assert get_config_value(config, "a.b.c") == 3
    assert get_config_value(config, "a.x.c", "default") == "default"
    assert get_config_value(config, "a.b.c.d") is None


def test_load_config_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))

    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    with pytest.raises(ValueError):
        load_config(str(empty))
