"""
tests/test_config.py — YAML configuration loading
==================================================
"""

from __future__ import annotations

import pytest

from collegeconnect.config import CONFIG_ENV_VAR, default_config_path, load_config


def test_loads_required_and_optional_keys(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "app_name: Campus\n"
        "api_port: 9000\n"
        "default_page_limit: 10\n"
        "max_page_limit: 50\n"
        "rate_limit_max_requests: 5\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.app_name == "Campus"
    assert (cfg.default_page_limit, cfg.max_page_limit) == (10, 50)
    assert cfg.rate_limit_max_requests == 5
    assert cfg.rate_limit_window_seconds == 900
    assert cfg.expose_error_details is False


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="config.yaml.example"):
        load_config(tmp_path / "nope.yaml")


def test_missing_key(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("app_name: Campus\n", encoding="utf-8")
    with pytest.raises(KeyError):
        load_config(path)


def test_path_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "custom.yaml"))
    assert default_config_path() == tmp_path / "custom.yaml"


def test_repository_config_is_valid():
    cfg = load_config()
    assert cfg.default_page_limit == 20
    assert cfg.max_page_limit == 100
