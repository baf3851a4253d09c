"""Domain models shared across pipeline modules."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

Vertex = Optional[tuple[float, float]]
Ring = tuple[Vertex, ...]
PixelPoint = tuple[float, float]


def coerce_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def flags_contain(flags: Iterable[str], flag: str) -> bool:
    """Case-insensitive flag membership."""
    wanted = flag.casefold()
    return any(item.casefold() == wanted for item in flags)


def _optional_code(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True, slots=True)
class RelayRecord:
    """One relay entry from the Onionoo details document."""

    fingerprint: str = ""
    or_addresses: tuple[str, ...] = ()
    flags: tuple[str, ...] = ()
    latitude: float | None = None
    longitude: float | None = None
    country: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RelayRecord:
        fingerprint_raw = data.get("fingerprint")
        fingerprint = fingerprint_raw.strip() if isinstance(fingerprint_raw, str) else ""

        def _str_tuple(field_name: str) -> tuple[str, ...]:
            raw = data.get(field_name)
            if not isinstance(raw, list):
                return ()
            return tuple(item for item in raw if isinstance(item, str))

        return cls(
            fingerprint=fingerprint,
            or_addresses=_str_tuple("or_addresses"),
            flags=_str_tuple("flags"),
            latitude=coerce_float(data.get("latitude")),
            longitude=coerce_float(data.get("longitude")),
            country=_optional_code(data.get("country")),
        )

    def has_flag(self, flag: str) -> bool:
        return flags_contain(self.flags, flag)

    @property
    def position(self) -> tuple[float, float] | None:
        """Return `(lon, lat)` when both coordinates are known."""
        if self.latitude is None or self.longitude is None:
            return None
        return (self.longitude, self.latitude)


@dataclass(frozen=True, slots=True)
class Polygon:
    rings: tuple[Ring, ...]


@dataclass(frozen=True, slots=True)
class MultiPolygon:
    polygons: tuple[tuple[Ring, ...], ...]


@dataclass(frozen=True, slots=True)
class UnsupportedGeometry:
    """Any geometry tag other than Polygon/MultiPolygon; renders nothing."""

    kind: str


Geometry = Union[Polygon, MultiPolygon, UnsupportedGeometry]


@dataclass(frozen=True, slots=True)
class BoundaryFeature:
    name: str
    geometry: Geometry
