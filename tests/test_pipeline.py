"""Tests for pipeline steps and the CLI."""

from unittest.mock import MagicMock, Mock

import pytest

from relaymap import cli, pipeline
from relaymap.census import CensusError
from relaymap.models import RelayRecord
from relaymap.pipeline import format_report_lines, run_build, run_export_csv, run_render_map


def _census_client() -> MagicMock:
    client = MagicMock()
    client.__enter__.return_value = client
    client.__exit__.return_value = False
    return client


@pytest.fixture
def fake_census(monkeypatch, scenario_relays):
    client = _census_client()
    client.fetch.return_value = scenario_relays
    factory = Mock(return_value=client)
    monkeypatch.setattr(pipeline, "CensusClient", factory)
    return client


class TestRunRenderMap:
    """Render step reporting."""

    def test_writes_svg(self, app_config, fake_census):
        report = run_render_map(app_config)

        assert report.ok
        svg = app_config.paths.output_svg.read_text(encoding="utf-8")
        assert "total: 3  guards: 1  exits: 1  middles: 1" in svg
        assert svg.count("<path d=") == 3
        assert report.summary["relays_positioned"] == 3
        assert any("GeoIP fallback disabled" in line for line in report.infos)

    def test_census_failure_aborts(self, app_config, monkeypatch):
        client = _census_client()
        client.fetch.side_effect = CensusError("Census request failed: offline")
        monkeypatch.setattr(pipeline, "CensusClient", Mock(return_value=client))

        report = run_render_map(app_config)

        assert not report.ok
        assert report.errors == ["Census request failed: offline"]
        assert not app_config.paths.output_svg.exists()
        client.__exit__.assert_called_once()

    def test_census_client_closed_after_fetch(self, app_config, fake_census):
        run_render_map(app_config)
        fake_census.__exit__.assert_called_once()

    def test_guard_exit_shrinks_middles(self, app_config, monkeypatch):
        client = _census_client()
        client.fetch.return_value = [
            RelayRecord(flags=("Guard", "Exit"), latitude=0.0, longitude=0.0),
            RelayRecord(flags=(), latitude=1.0, longitude=1.0),
        ]
        monkeypatch.setattr(pipeline, "CensusClient", Mock(return_value=client))

        report = run_render_map(app_config)

        assert report.summary["middles"] == 0
        assert report.summary["guards"] == 1
        assert report.summary["exits"] == 1

    def test_missing_boundaries_aborts(self, app_config, fake_census):
        app_config.boundaries.path.unlink()
        report = run_render_map(app_config)
        assert not report.ok
        assert "not found" in report.errors[0]
        fake_census.fetch.assert_not_called()

    def test_output_override(self, app_config, fake_census, tmp_path):
        target = tmp_path / "custom" / "relays.svg"
        report = run_render_map(app_config, output_path=target)
        assert report.ok
        assert target.exists()


def test_run_export_csv(app_config, fake_census):
    report = run_export_csv(app_config)
    assert report.ok
    assert (app_config.paths.csv_dir / "all.csv").exists()
    assert report.summary == {"all_rows": 0, "guard_rows": 0, "exit_rows": 0}


def test_run_build_fetches_census_once(app_config, fake_census):
    reports = run_build(app_config, use_geoip=False)
    assert [report.ok for report in reports] == [True, True, True, True]
    assert fake_census.fetch.call_count == 1
    assert app_config.paths.output_svg.exists()


def test_format_report_lines():
    report = pipeline.StepReport()
    report.add_info("hello")
    report.add_error("bad")
    report.summary = {"b": 2, "a": 1}
    assert list(format_report_lines(report)) == ["[INFO] hello", "[ERROR] bad", "[SUMMARY] a=1, b=2"]


class TestCli:
    """Argument parsing and exit codes."""

    def _write_config(self, app_config):
        app_config.source_path.write_text(
            "census:\n"
            "  url: https://census.invalid/details\n"
            "geoip:\n"
            "  enabled: false\n"
            "paths:\n"
            "  output_svg: out/map.svg\n"
            "  csv_dir: out/csv\n"
            "  logs_dir: out/logs\n",
            encoding="utf-8",
        )
        return str(app_config.source_path)

    def test_render_map_command(self, app_config, fake_census):
        config_path = self._write_config(app_config)
        assert cli.main(["render-map", "--config", config_path]) == 0
        assert app_config.paths.output_svg.exists()

    def test_render_map_failure_exit_code(self, app_config, monkeypatch):
        config_path = self._write_config(app_config)
        client = _census_client()
        client.fetch.side_effect = CensusError("offline")
        monkeypatch.setattr(pipeline, "CensusClient", Mock(return_value=client))
        assert cli.main(["render-map", "--config", config_path]) == 1

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            cli.main(["draw"])
