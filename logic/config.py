"""
Map configuration management module.

This module provides utilities for loading the static map configuration
(default view, home marker, tile layer, Leaflet assets) stored in
map_config.json, filling in defaults for anything missing.

Author: Case Map maintainers
Date: 2026-10-18
"""

import copy
import json
import os
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_PATH = os.getenv("CASE_MAP_CONFIG", os.path.join(BASE_DIR, "map_config.json"))
RESOURCE_TIMEOUT = float(os.getenv("CASE_MAP_RESOURCE_TIMEOUT", "10"))
MAX_COMPONENTS = int(os.getenv("CASE_MAP_MAX_COMPONENTS", "256"))

DEFAULT_CONFIG: Dict[str, Any] = {
    "default_center": {"lat": 37.4449168, "lng": 127.1388684},
    "initial_zoom": 11,
    "home_zoom": 13,
    "location_zoom": 15,
    "case_zoom": 16,
    "tile_layer": {
        "url": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        "attribution": "© OpenStreetMap contributors",
        "max_zoom": 19,
    },
    "headquarters": {
        "lat": 37.4449168,
        "lng": 127.1388684,
        "name": "Head Office",
        "description": "TenX Tower",
        "address": "70 Geumto-ro, Sujeong-gu, Seongnam-si, Gyeonggi-do",
    },
    "current_location": {
        "lat": 37.4449168,
        "lng": 127.1388684,
        "name": "Current location",
    },
    "leaflet": {
        "css_url": "https://unpkg.com/leaflet@1.9.4/dist/leaflet.css",
        "js_url": "https://unpkg.com/leaflet@1.9.4/dist/leaflet.js",
        "local_css_url": "/assets/leaflet.css",
        "local_js_url": "/assets/leaflet.js",
    },
    "directions_url": "https://map.kakao.com/link/to/{name},{lat},{lng}",
}


def load_config() -> Dict[str, Any]:
    """Load the map configuration from map_config.json.

    Returns:
        Configuration dictionary with all required fields ensured.
    """
    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        config = get_default_config()

    return ensure_config_fields(config)


def get_default_config() -> Dict[str, Any]:
    """Get default configuration structure.

    Returns:
        A fresh copy of the default configuration dictionary.
    """
    return copy.deepcopy(DEFAULT_CONFIG)


def ensure_config_fields(config: Dict[str, Any]) -> Dict[str, Any]:
    """Ensure all required fields are present in the configuration.

    Nested sections are merged key by key, so a file that only overrides
    the headquarters name still gets the default coordinates.

    Args:
        config: Configuration dictionary to update.

    Returns:
        Updated configuration dictionary.
    """
    for key, default in DEFAULT_CONFIG.items():
        if isinstance(default, dict):
            section = config.setdefault(key, {})
            for sub_key, sub_default in default.items():
                section.setdefault(sub_key, sub_default)
        else:
            config.setdefault(key, default)

    return config
