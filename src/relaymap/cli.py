"""CLI entrypoint for the relay world map builder."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .config import AppConfig, load_config
from .pipeline import (
    StepReport,
    format_report_lines,
    run_build,
    run_export_csv,
    run_fetch_boundaries,
    run_render_map,
)
from .util import ensure_directories, setup_logging

LOGGER = logging.getLogger("relaymap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relaymap",
        description="Render a world map of live Tor relays.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    boundaries_p = subparsers.add_parser(
        "fetch-boundaries",
        help="Download the country boundary GeoJSON if missing.",
    )
    add_common(boundaries_p)
    boundaries_p.add_argument(
        "--force",
        action="store_true",
        help="Re-download even when the dataset already exists.",
    )

    render_p = subparsers.add_parser("render-map", help="Fetch relays and render the SVG map.")
    add_common(render_p)
    render_p.add_argument("--output", default=None, help="Override output SVG path.")
    render_p.add_argument(
        "--no-geoip",
        action="store_true",
        help="Skip the GeoIP coordinate fallback.",
    )

    csv_p = subparsers.add_parser(
        "export-csv",
        help="Write all/guards/exits CSV files of relay addresses.",
    )
    add_common(csv_p)
    csv_p.add_argument("--output-dir", default=None, help="Override CSV output directory.")

    build_p = subparsers.add_parser("build", help="Run boundaries, render and CSV steps.")
    add_common(build_p)
    build_p.add_argument(
        "--no-geoip",
        action="store_true",
        help="Skip the GeoIP coordinate fallback.",
    )
    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    setup_logging(cfg.paths.logs_dir / "relaymap.log", verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _log_report(report: StepReport) -> int:
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_build(cfg: AppConfig, *, use_geoip: bool) -> int:
    LOGGER.info("Starting build pipeline.")
    for report in run_build(cfg, use_geoip=use_geoip):
        if _log_report(report) != 0:
            LOGGER.error("Build aborted.")
            return 1
    LOGGER.info("Build finished.")
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "fetch-boundaries":
        return _log_report(run_fetch_boundaries(cfg, force=bool(args.force)))
    if command == "render-map":
        output = Path(args.output) if args.output else None
        return _log_report(
            run_render_map(cfg, output_path=output, use_geoip=not args.no_geoip)
        )
    if command == "export-csv":
        output_dir = Path(args.output_dir) if args.output_dir else None
        return _log_report(run_export_csv(cfg, output_dir=output_dir))
    if command == "build":
        return _run_build(cfg, use_geoip=not args.no_geoip)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
