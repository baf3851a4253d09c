"""Pipeline steps: boundary provisioning, map rendering, CSV export."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .boundaries import BoundaryDataError, load_boundary_features, provision_boundary_dataset
from .census import CensusClient, CensusError
from .config import AppConfig
from .csv_export import export_relay_csvs
from .geoip import GeoLocator, fill_missing_positions
from .models import RelayRecord
from .relays import legend_counts
from .render import render_svg
from .util import write_text_atomic

_LOGGER = logging.getLogger("relaymap.pipeline")


@dataclass(slots=True)
class StepReport:
    output_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


def format_report_lines(report: StepReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.summary:
        summary = ", ".join(f"{key}={value}" for key, value in sorted(report.summary.items()))
        lines.append(f"[SUMMARY] {summary}")
    return lines


def run_fetch_boundaries(cfg: AppConfig, *, force: bool = False) -> StepReport:
    report = StepReport(output_path=cfg.boundaries.path)
    try:
        path = provision_boundary_dataset(cfg.boundaries, force=force)
    except (BoundaryDataError, OSError) as exc:
        report.add_error(f"Boundary provisioning failed: {exc}")
        return report
    report.add_info(f"Boundary dataset available at {path}")
    return report


def fetch_relays(cfg: AppConfig, report: StepReport, *, use_geoip: bool) -> list[RelayRecord] | None:
    """Fetch the census and apply the GeoIP fallback; `None` on failure."""
    try:
        with CensusClient(cfg.census) as client:
            relays = client.fetch()
    except CensusError as exc:
        report.add_error(str(exc))
        return None
    report.add_info(f"Fetched {len(relays)} relays from {cfg.census.url}")

    if not (use_geoip and cfg.geoip.enabled):
        report.add_info("GeoIP fallback disabled.")
        return relays
    with GeoLocator.open(cfg.geoip.database) as locator:
        if not locator.enabled:
            report.add_warning(f"GeoIP database unavailable: {cfg.geoip.database}")
            return relays
        return fill_missing_positions(relays, locator)


def run_render_map(
    cfg: AppConfig,
    *,
    output_path: Path | None = None,
    use_geoip: bool = True,
    relays: Sequence[RelayRecord] | None = None,
) -> StepReport:
    """Render the relay world map SVG to disk."""
    target = output_path or cfg.paths.output_svg
    report = StepReport(output_path=target)
    t0 = time.perf_counter()

    try:
        features = load_boundary_features(cfg.boundaries.path)
    except BoundaryDataError as exc:
        report.add_error(str(exc))
        return report
    report.add_info(f"Loaded {len(features)} boundary features from {cfg.boundaries.path}")

    if relays is None:
        relays = fetch_relays(cfg, report, use_geoip=use_geoip)
        if relays is None:
            return report

    svg = render_svg(relays, features)
    try:
        write_text_atomic(target, svg)
    except OSError as exc:
        report.add_error(f"Failed writing map '{target}': {exc}")
        return report

    counts = legend_counts(relays)
    report.summary = {
        "relays_total": counts.total,
        "relays_positioned": sum(1 for relay in relays if relay.position is not None),
        "guards": counts.guards,
        "exits": counts.exits,
        "middles": counts.middles,
        "svg_bytes": len(svg.encode("utf-8")),
    }
    _LOGGER.info("[render] Written %s in %.2fs", target, time.perf_counter() - t0)
    report.add_info(f"Map written to {target}")
    return report


def run_export_csv(
    cfg: AppConfig,
    *,
    output_dir: Path | None = None,
    relays: Sequence[RelayRecord] | None = None,
) -> StepReport:
    target_dir = output_dir or cfg.paths.csv_dir
    report = StepReport(output_path=target_dir)
    if relays is None:
        relays = fetch_relays(cfg, report, use_geoip=False)
        if relays is None:
            return report
    try:
        result = export_relay_csvs(relays, target_dir)
    except OSError as exc:
        report.add_error(f"CSV export to '{target_dir}' failed: {exc}")
        return report
    report.summary = {
        "all_rows": result.all_rows,
        "guard_rows": result.guard_rows,
        "exit_rows": result.exit_rows,
    }
    report.add_info(
        f"Wrote {result.all_path.name}, {result.guards_path.name}, "
        f"{result.exits_path.name} to {target_dir}"
    )
    return report


def run_build(cfg: AppConfig, *, use_geoip: bool = True) -> list[StepReport]:
    """Provision boundaries, fetch the census once, render the map and export CSVs.

    Stops at the first failing step.
    """
    reports: list[StepReport] = []
    boundary_report = run_fetch_boundaries(cfg)
    reports.append(boundary_report)
    if not boundary_report.ok:
        return reports

    census_report = StepReport()
    reports.append(census_report)
    relays = fetch_relays(cfg, census_report, use_geoip=use_geoip)
    if relays is None:
        return reports

    render_report = run_render_map(cfg, relays=relays)
    reports.append(render_report)
    if not render_report.ok:
        return reports

    reports.append(run_export_csv(cfg, relays=relays))
    return reports
