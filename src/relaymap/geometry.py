"""Equirectangular projection and GeoJSON geometry to SVG path conversion."""

from __future__ import annotations

from typing import Any, Sequence

from .models import (
    Geometry,
    MultiPolygon,
    PixelPoint,
    Polygon,
    Ring,
    UnsupportedGeometry,
    Vertex,
    coerce_float,
)

CANVAS_WIDTH = 1200
CANVAS_HEIGHT = 600


def project(lon: float, lat: float) -> PixelPoint:
    """Map degrees onto the fixed canvas.

    Input is not clamped; coordinates outside [-180, 180] / [-90, 90] land
    off-canvas.
    """
    x = (lon + 180.0) / 360.0 * CANVAS_WIDTH
    y = (90.0 - lat) / 180.0 * CANVAS_HEIGHT
    return (x, y)


def decode_geometry(raw: Any) -> Geometry:
    """Convert one raw GeoJSON geometry object into the typed variant.

    This is the only place the untyped tree is inspected. Malformed vertex
    entries are kept as `None` so the path step can drop them one by one.
    """
    if not isinstance(raw, dict):
        return UnsupportedGeometry(kind="")
    kind = raw.get("type")
    coordinates = raw.get("coordinates")
    if kind == "Polygon":
        return Polygon(rings=_decode_rings(coordinates))
    if kind == "MultiPolygon":
        polygons = coordinates if isinstance(coordinates, list) else []
        return MultiPolygon(polygons=tuple(_decode_rings(polygon) for polygon in polygons))
    return UnsupportedGeometry(kind=kind if isinstance(kind, str) else "")


def _decode_rings(raw: Any) -> tuple[Ring, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(_decode_ring(ring) for ring in raw if isinstance(ring, list))


def _decode_ring(raw: list[Any]) -> Ring:
    return tuple(_decode_vertex(item) for item in raw)


def _decode_vertex(raw: Any) -> Vertex:
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        return None
    lon = coerce_float(raw[0])
    lat = coerce_float(raw[1])
    if lon is None or lat is None:
        return None
    return (lon, lat)


def ring_to_path(ring: Sequence[Vertex]) -> str:
    parts: list[str] = []
    for vertex in ring:
        if vertex is None:
            continue
        x, y = project(vertex[0], vertex[1])
        command = "L" if parts else "M"
        parts.append(f"{command}{x:.2f},{y:.2f}")
    parts.append("Z")
    return "".join(parts)


def geometry_paths(geometry: Geometry) -> list[str]:
    """One closed path per ring, outer ring before holes, polygons in order."""
    if isinstance(geometry, Polygon):
        return [ring_to_path(ring) for ring in geometry.rings]
    if isinstance(geometry, MultiPolygon):
        paths: list[str] = []
        for rings in geometry.polygons:
            paths.extend(ring_to_path(ring) for ring in rings)
        return paths
    return []
