"""Shared fixtures for relaymap tests."""

import json
from pathlib import Path

import pytest

from relaymap.config import AppConfig
from relaymap.models import RelayRecord


@pytest.fixture
def scenario_relays() -> list[RelayRecord]:
    """Guard in US, exit in US, middle in DE."""
    return [
        RelayRecord(flags=("Guard",), latitude=10.0, longitude=20.0, country="US"),
        RelayRecord(flags=("Exit",), latitude=-10.0, longitude=-20.0, country="US"),
        RelayRecord(flags=(), latitude=0.0, longitude=0.0, country="DE"),
    ]


@pytest.fixture
def boundary_collection() -> dict:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"ADMIN": "Squareland"},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]],
                },
            },
            {
                "type": "Feature",
                "properties": {"name": "Twin Isles"},
                "geometry": {
                    "type": "MultiPolygon",
                    "coordinates": [
                        [[[20, 20], [25, 20], [25, 25]]],
                        [[[30, 30], [35, 30], [35, 35]]],
                    ],
                },
            },
        ],
    }


@pytest.fixture
def app_config(tmp_path: Path, boundary_collection: dict) -> AppConfig:
    boundaries_path = tmp_path / "assets" / "world.geojson"
    boundaries_path.parent.mkdir(parents=True)
    boundaries_path.write_text(json.dumps(boundary_collection), encoding="utf-8")
    raw = {
        "census": {"url": "https://census.invalid/details", "request_timeout_s": 5},
        "boundaries": {"path": "assets/world.geojson"},
        "geoip": {"enabled": False},
        "paths": {"output_svg": "out/map.svg", "csv_dir": "out/csv", "logs_dir": "out/logs"},
    }
    return AppConfig.from_mapping(raw, tmp_path / "config.yaml")
