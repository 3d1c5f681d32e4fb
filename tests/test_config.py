"""
Tests for map configuration loading.

Run with: python -m pytest tests/test_config.py
"""

import json

from logic import config as config_module
from logic.config import ensure_config_fields, get_default_config, load_config


def test_default_config_is_a_copy():
    first = get_default_config()
    first["headquarters"]["name"] = "Changed"

    assert get_default_config()["headquarters"]["name"] == "Head Office"


def test_ensure_config_fields_merges_sections():
    config = ensure_config_fields({"headquarters": {"name": "Branch"}, "initial_zoom": 9})

    assert config["headquarters"]["name"] == "Branch"
    assert config["headquarters"]["lat"] == 37.4449168
    assert config["initial_zoom"] == 9
    assert config["tile_layer"]["max_zoom"] == 19


def test_load_config_missing_file(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "CONFIG_PATH", str(tmp_path / "missing.json"))

    assert load_config() == get_default_config()


def test_load_config_reads_file(tmp_path, monkeypatch):
    path = tmp_path / "map_config.json"
    path.write_text(json.dumps({"case_zoom": 17}), encoding="utf-8")
    monkeypatch.setattr(config_module, "CONFIG_PATH", str(path))

    config = load_config()

    assert config["case_zoom"] == 17
    assert config["home_zoom"] == 13
