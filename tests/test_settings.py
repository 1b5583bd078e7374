from datetime import datetime, timezone

import pytest

from fearmatch.config.settings import get_settings
from fearmatch.core.time import parse_timestamp


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_packaged_defaults(fresh_settings):
    settings = get_settings()
    assert settings.scoring.weights.fear == 4.0
    assert settings.scoring.weights.location == 1.5
    assert settings.scoring.neutral_score == 0.5
    assert settings.fear_profile.synthetic_intensity == 2.5
    assert settings.preferences.defaults.max_time_commitment == "half_day"
    assert settings.catalog.path is None


def test_env_overrides(monkeypatch, fresh_settings):
    monkeypatch.setenv("FEARMATCH_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("FEARMATCH_CATALOG_PATH", "data/my_catalog.json")

    settings = get_settings()

    assert settings.app.log_level == "DEBUG"
    assert settings.catalog.path == "data/my_catalog.json"


def test_external_config_file(monkeypatch, tmp_path, fresh_settings):
    path = tmp_path / "fearmatch.yaml"
    path.write_text("scoring:\n  weights:\n    fear: 10\n", encoding="utf-8")
    monkeypatch.setenv("FEARMATCH_CONFIG_PATH", str(path))

    settings = get_settings()

    assert settings.scoring.weights.fear == 10
    # Keys missing from the file fall back to model defaults.
    assert settings.scoring.weights.difficulty == 2.0


def test_parse_timestamp():
    assert parse_timestamp("2026-03-01T08:30:00Z") == datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)
    assert parse_timestamp("2026-03-01T08:30:00").tzinfo is not None
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None
