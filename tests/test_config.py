"""
Unit tests for configuration loading and validation.
"""

import pytest

from floodcheck.config import (
    PipelineConfig, CoastalRegion, get_config, load_config_from_env, scenario_label, validate_config
)


def test_default_config_is_valid():
    validate_config(PipelineConfig())


def test_get_config_returns_shared_instance():
    assert get_config() is get_config()


def test_scenario_labels():
    assert scenario_label("0") == "Current conditions (1% AEP)"
    assert scenario_label("15") == "1% AEP + 1.5m sea level rise"
    assert scenario_label("99") == "Scenario 99"


def test_validation_collects_all_errors():
    cfg = PipelineConfig()
    cfg.api.request_timeout = 120
    cfg.api.projection_backend = "gdal"
    cfg.layers.layer_ids = ["0", "0"]
    cfg.layers.query_mode = "export"
    cfg.coverage_bbox = (-34.0, 166.0, -47.5, 179.0)
    cfg.coastal_regions = [CoastalRegion("Nowhere", -40.0, 175.0, 0.0)]

    with pytest.raises(ValueError) as exc_info:
        validate_config(cfg)

    message = str(exc_info.value)
    assert "request_timeout" in message
    assert "projection_backend" in message
    assert "duplicates" in message
    assert "query_mode" in message
    assert "coverage_bbox" in message
    assert "Nowhere" in message


def test_validation_requires_layers():
    cfg = PipelineConfig()
    cfg.layers.layer_ids = []
    with pytest.raises(ValueError, match="at least one hazard layer"):
        validate_config(cfg)


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("FLOODCHECK_FLOOD_SERVICE_URL", "https://example.test/MapServer")
    monkeypatch.setenv("FLOODCHECK_REQUEST_TIMEOUT", "5")
    monkeypatch.setenv("FLOODCHECK_QUERY_MODE", "identify")
    monkeypatch.setenv("FLOODCHECK_LAYER_IDS", "0, 5, 20")

    cfg = load_config_from_env()

    assert cfg.api.flood_service_url == "https://example.test/MapServer"
    assert cfg.api.request_timeout == 5.0
    assert cfg.layers.query_mode == "identify"
    assert cfg.layers.layer_ids == ["0", "5", "20"]
    assert cfg.layers.resolve_future_anchor() == "20"


def test_env_file_loaded(monkeypatch, tmp_path):
    monkeypatch.delenv("FLOODCHECK_PROJECTION_BACKEND", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("FLOODCHECK_PROJECTION_BACKEND=pyproj\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    try:
        cfg = load_config_from_env()
        assert cfg.api.projection_backend == "pyproj"
    finally:
        monkeypatch.delenv("FLOODCHECK_PROJECTION_BACKEND", raising=False)
