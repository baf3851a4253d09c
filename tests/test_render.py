"""End-to-end tests for the SVG map compositor."""

import re

from relaymap.boundaries import parse_boundary_collection
from relaymap.models import RelayRecord
from relaymap.render import render_svg


def _dots_group(svg: str) -> list[str]:
    match = re.search(r"<g stroke='#0c1a2e' stroke-width='0.6'>\n(.*?)\n  </g>", svg, re.S)
    assert match is not None
    return [line.strip() for line in match.group(1).splitlines()]


def _sidebar_lines(svg: str) -> list[str]:
    start = svg.index("Top countries")
    section = svg[start : svg.index("</g>", start)]
    return re.findall(r"<text x='1105.0' y='[\d.]+'>([^<]*)</text>", section)


class TestRenderSvg:
    """Layer stack, legend and sidebar content."""

    def test_document_header(self):
        svg = render_svg([], [])
        assert svg.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<svg ')
        assert 'width="1200" height="600" viewBox="0 0 1200 600"' in svg
        assert "<title>Tor Relay World Map</title>" in svg
        assert svg.endswith("</svg>\n")

    def test_layer_order(self, scenario_relays, boundary_collection):
        svg = render_svg(scenario_relays, parse_boundary_collection(boundary_collection))
        positions = [
            svg.index("<rect width='1200' height='600' fill='#0c1a2e'/>"),
            svg.index("<g stroke='#162032'"),
            svg.index("<g fill='#1d3461'"),
            svg.index("<g stroke='#0c1a2e' stroke-width='0.6'>"),
            svg.index("<g font-family='monospace' font-size='12'"),
            svg.index("Top countries"),
        ]
        assert positions == sorted(positions)

    def test_graticule_lines(self):
        svg = render_svg([], [])
        assert svg.count("<line ") == 13 + 7
        assert "<line x1='600.0' y1='0' x2='600.0' y2='600'/>" in svg
        assert "<line x1='0' y1='300.0' x2='1200' y2='300.0'/>" in svg

    def test_boundary_paths(self, boundary_collection):
        svg = render_svg([], parse_boundary_collection(boundary_collection))
        assert svg.count("<path d=") == 3
        assert "<path d='M600.00,300.00L633.33,300.00" in svg

    def test_scenario(self, scenario_relays):
        svg = render_svg(scenario_relays, [])
        dots = _dots_group(svg)
        assert len(dots) == 3
        assert "fill='#fde047'" in dots[0]
        assert "fill='#c084fc'" in dots[1]
        assert "fill='#f87171'" in dots[2]
        assert "total: 3  guards: 1  exits: 1  middles: 1" in svg
        assert _sidebar_lines(svg) == ["US  2", "DE  1"]

    def test_guard_exit_drawn_once_counted_twice(self):
        relays = [RelayRecord(flags=("Guard", "Exit"), latitude=0.0, longitude=0.0, country="FR")]
        svg = render_svg(relays, [])
        dots = _dots_group(svg)
        assert dots == ["<circle cx='600.0' cy='300.0' r='4' fill='#c084fc'/>"]
        assert "total: 1  guards: 1  exits: 1  middles: 0" in svg

    def test_guard_exit_with_plain_relay(self):
        relays = [
            RelayRecord(flags=("Guard", "Exit"), latitude=0.0, longitude=0.0),
            RelayRecord(flags=(), latitude=1.0, longitude=1.0),
        ]
        svg = render_svg(relays, [])
        assert len(_dots_group(svg)) == 2
        assert "total: 2  guards: 1  exits: 1  middles: 0" in svg

    def test_middles_drawn_before_notable(self):
        relays = [
            RelayRecord(flags=("Guard",), latitude=0.0, longitude=0.0),
            RelayRecord(flags=("Running",), latitude=0.0, longitude=0.0),
        ]
        dots = _dots_group(render_svg(relays, []))
        assert "r='3' fill='#fde047'" in dots[0]
        assert "r='4' fill='#c084fc'" in dots[1]

    def test_unpositioned_relay_counted_not_drawn(self):
        relays = [
            RelayRecord(flags=("Exit",), country="SE"),
            RelayRecord(flags=(), latitude=5.0, longitude=5.0, country="SE"),
        ]
        svg = render_svg(relays, [])
        assert len(_dots_group(svg)) == 1
        assert "total: 2  guards: 0  exits: 1  middles: 1" in svg
        assert _sidebar_lines(svg) == ["SE  2"]

    def test_legend_order(self):
        svg = render_svg([], [])
        assert svg.index(">Middle<") < svg.index(">Guard<") < svg.index(">Exit<")

    def test_sidebar_top_ten(self):
        relays = [RelayRecord(country=f"C{chr(65 + idx)}") for idx in range(12)]
        lines = _sidebar_lines(render_svg(relays, []))
        assert len(lines) == 10
        assert lines[0] == "CA  1"
        assert lines[-1] == "CJ  1"

    def test_deterministic(self, scenario_relays, boundary_collection):
        features = parse_boundary_collection(boundary_collection)
        assert render_svg(scenario_relays, features) == render_svg(scenario_relays, features)

    def test_text_is_escaped(self):
        relays = [RelayRecord(country="<&>")]
        svg = render_svg(relays, [])
        assert "&lt;&amp;&gt;  1" in svg
        assert "<&>" not in svg
