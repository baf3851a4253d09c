"""SVG world map compositor for relay positions."""

from __future__ import annotations

import logging
from typing import Sequence

from .geometry import CANVAS_HEIGHT, CANVAS_WIDTH, geometry_paths, project
from .models import BoundaryFeature, RelayRecord
from .relays import (
    ROLE_STYLES,
    DotPlacement,
    LegendCounts,
    RelayRole,
    legend_counts,
    plan_dots,
    tally_countries,
)
from .svg import SvgDocument, fmt

_LOGGER = logging.getLogger("relaymap.render")

MAP_TITLE = "Tor Relay World Map"
MAP_DESCRIPTION = "Live Tor relay positions. Guards: purple, Exits: red, Middles: yellow."

BACKGROUND_COLOR = "#0c1a2e"
GRATICULE_COLOR = "#162032"
LAND_FILL = "#1d3461"
LAND_STROKE = "#2d4a7a"
LEGEND_TEXT_COLOR = "#e2e8f0"
SUMMARY_TEXT_COLOR = "#64748b"
SIDEBAR_TEXT_COLOR = "#94a3b8"
SIDEBAR_HEADER_COLOR = "#cbd5e1"

GRATICULE_STEP_DEG = 30
LEGEND_ORDER = (RelayRole.MIDDLE, RelayRole.GUARD, RelayRole.EXIT)
SIDEBAR_LIMIT = 10

# Layout offsets are tied to the 1200x600 canvas.
LEGEND_X = 16.0
LEGEND_TOP = CANVAS_HEIGHT - 70.0
LEGEND_ROW_STEP = 20.0
SUMMARY_Y = CANVAS_HEIGHT - 8.0
SIDEBAR_X = CANVAS_WIDTH - 95.0
SIDEBAR_TOP = 20.0
SIDEBAR_HEADER_GAP = 14.0
SIDEBAR_ROW_STEP = 13.0


def render_svg(relays: Sequence[RelayRecord], features: Sequence[BoundaryFeature]) -> str:
    """Compose the full map document. Output depends only on the inputs."""
    doc = SvgDocument(CANVAS_WIDTH, CANVAS_HEIGHT, title=MAP_TITLE, description=MAP_DESCRIPTION)
    doc.element("rect", {"width": CANVAS_WIDTH, "height": CANVAS_HEIGHT, "fill": BACKGROUND_COLOR})
    _draw_graticule(doc)
    _draw_boundaries(doc, features)
    plotted = _draw_relay_dots(doc, relays)
    _LOGGER.debug("[render] Plotted %d dots.", plotted)
    _draw_legend(doc, legend_counts(relays))
    _draw_country_sidebar(doc, tally_countries(relays))
    return doc.to_string()


def _draw_graticule(doc: SvgDocument) -> None:
    doc.open_group({"stroke": GRATICULE_COLOR, "stroke-width": "0.5"})
    for lon in range(-180, 181, GRATICULE_STEP_DEG):
        x, _ = project(float(lon), 0.0)
        doc.element("line", {"x1": fmt(x), "y1": 0, "x2": fmt(x), "y2": CANVAS_HEIGHT})
    for lat in range(-90, 91, GRATICULE_STEP_DEG):
        _, y = project(0.0, float(lat))
        doc.element("line", {"x1": 0, "y1": fmt(y), "x2": CANVAS_WIDTH, "y2": fmt(y)})
    doc.close_group()


def _draw_boundaries(doc: SvgDocument, features: Sequence[BoundaryFeature]) -> None:
    doc.open_group({"fill": LAND_FILL, "stroke": LAND_STROKE, "stroke-width": "0.5"})
    for feature in features:
        for path in geometry_paths(feature.geometry):
            doc.element("path", {"d": path})
    doc.close_group()


def _draw_relay_dots(doc: SvgDocument, relays: Sequence[RelayRecord]) -> int:
    middle_pass, notable_pass = plan_dots(relays)
    doc.open_group({"stroke": BACKGROUND_COLOR, "stroke-width": "0.6"})
    for placement in (*middle_pass, *notable_pass):
        _draw_dot(doc, placement)
    doc.close_group()
    return len(middle_pass) + len(notable_pass)


def _draw_dot(doc: SvgDocument, placement: DotPlacement) -> None:
    doc.element(
        "circle",
        {
            "cx": fmt(placement.x),
            "cy": fmt(placement.y),
            "r": f"{placement.style.radius:g}",
            "fill": placement.style.color,
        },
    )


def _draw_legend(doc: SvgDocument, counts: LegendCounts) -> None:
    doc.open_group({"font-family": "monospace", "font-size": "12", "fill": LEGEND_TEXT_COLOR})
    y = LEGEND_TOP
    for role in LEGEND_ORDER:
        doc.element(
            "circle",
            {
                "cx": fmt(LEGEND_X + 6.0),
                "cy": fmt(y),
                "r": "6",
                "fill": ROLE_STYLES[role].color,
                "stroke": BACKGROUND_COLOR,
                "stroke-width": "0.8",
            },
        )
        doc.text_element("text", role.value, {"x": fmt(LEGEND_X + 16.0), "y": fmt(y + 4.5)})
        y += LEGEND_ROW_STEP
    doc.text_element(
        "text",
        format_legend_summary(counts),
        {"x": fmt(LEGEND_X), "y": fmt(SUMMARY_Y), "font-size": "10", "fill": SUMMARY_TEXT_COLOR},
    )
    doc.close_group()


def format_legend_summary(counts: LegendCounts) -> str:
    return (
        f"total: {counts.total}  guards: {counts.guards}  "
        f"exits: {counts.exits}  middles: {counts.middles}"
    )


def _draw_country_sidebar(doc: SvgDocument, ranking: Sequence[tuple[str, int]]) -> None:
    doc.open_group({"font-family": "monospace", "font-size": "10", "fill": SIDEBAR_TEXT_COLOR})
    y = SIDEBAR_TOP
    doc.text_element(
        "text",
        "Top countries",
        {"x": fmt(SIDEBAR_X), "y": fmt(y), "font-size": "11", "fill": SIDEBAR_HEADER_COLOR},
    )
    y += SIDEBAR_HEADER_GAP
    for code, count in ranking[:SIDEBAR_LIMIT]:
        doc.text_element("text", f"{code}  {count}", {"x": fmt(SIDEBAR_X), "y": fmt(y)})
        y += SIDEBAR_ROW_STEP
    doc.close_group()
