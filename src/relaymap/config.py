"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

DEFAULT_CENSUS_URL = "https://onionoo.torproject.org/details?search=type:relay%20running:true"
DEFAULT_BOUNDARIES_URL = (
    "https://raw.githubusercontent.com/datasets/geo-countries/master/data/countries.geojson"
)


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class CensusConfig:
    url: str
    request_timeout_s: float
    user_agent: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> CensusConfig:
        timeout = _float(raw.get("request_timeout_s", 60), "census.request_timeout_s")
        if timeout <= 0:
            raise ValueError("census.request_timeout_s must be > 0")
        return cls(
            url=_str(raw.get("url", DEFAULT_CENSUS_URL), "census.url"),
            request_timeout_s=timeout,
            user_agent=_str(raw.get("user_agent", "relaymap/0.1"), "census.user_agent"),
        )


@dataclass(frozen=True, slots=True)
class BoundariesConfig:
    url: str
    path: Path
    request_timeout_s: float = 120.0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> BoundariesConfig:
        timeout = _float(raw.get("request_timeout_s", 120), "boundaries.request_timeout_s")
        if timeout <= 0:
            raise ValueError("boundaries.request_timeout_s must be > 0")
        return cls(
            url=_str(raw.get("url", DEFAULT_BOUNDARIES_URL), "boundaries.url"),
            path=_path_from_cfg(
                raw.get("path", "assets/world.geojson"), "boundaries.path", root_dir
            ),
            request_timeout_s=timeout,
        )


@dataclass(frozen=True, slots=True)
class GeoIpConfig:
    enabled: bool
    database: Path

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> GeoIpConfig:
        return cls(
            enabled=_bool(raw.get("enabled", True), "geoip.enabled"),
            database=_path_from_cfg(
                raw.get("database", "assets/GeoLite2-City.mmdb"), "geoip.database", root_dir
            ),
        )


@dataclass(frozen=True, slots=True)
class PathsConfig:
    output_svg: Path
    csv_dir: Path
    logs_dir: Path

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.output_svg.parent, self.csv_dir, self.logs_dir)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        return cls(
            output_svg=_path_from_cfg(raw.get("output_svg", "map.svg"), "paths.output_svg", root_dir),
            csv_dir=_path_from_cfg(raw.get("csv_dir", "."), "paths.csv_dir", root_dir),
            logs_dir=_path_from_cfg(raw.get("logs_dir", "logs"), "paths.logs_dir", root_dir),
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    census: CensusConfig
    boundaries: BoundariesConfig
    geoip: GeoIpConfig
    paths: PathsConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            census=CensusConfig.from_mapping(_mapping(raw.get("census"), "census")),
            boundaries=BoundariesConfig.from_mapping(
                _mapping(raw.get("boundaries"), "boundaries"), root_dir
            ),
            geoip=GeoIpConfig.from_mapping(_mapping(raw.get("geoip"), "geoip"), root_dir),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
