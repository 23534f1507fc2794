"""Tests for CLI functionality in portfolio metrics.

This module contains unit tests for the command line interface.
"""

import datetime
import json
import logging

import pytest

from .cli import configure_argument_parser, load_portfolio, override_options, run_command_line
from .config import ConfigError
from .common_constants import BOOTSTRAP_EPIC_NAME
from .config.loader import DEFAULT_SPRINTS_FILE, DEFAULT_TEAMS_FILE
from .config_main import CALCULATORS

PORTFOLIO = [
    {
        "id": 1767225600000,
        "name": "Checkout",
        "teamAssignments": [
            {"teamId": "eng", "involvement": 2, "durationUnit": "months", "durationMin": 2, "durationMax": 4}
        ],
        "annualizedEbitda": {"min": 12, "max": 24},
        "expectedDeliveryStart": {"startSprintId": "s05", "endSprintId": "s07"},
        "valueDeliveryDate": {"startSprintId": "s05", "endSprintId": "s25"},
    }
]


def _settings(**overrides):
    settings = {
        "sprint_view": "1y",
        "confidence_mode": "ranges",
        "default_sprint_start": "s01",
        "default_sprint_end": "s25",
    }
    settings.update(overrides)
    return settings


def test_override_options():
    """Test override_options functionality."""

    class FauxArgs:
        """Mock arguments class for testing."""

        def __init__(self, opts):
            self.__dict__.update(opts)

    options = {"one": 1, "two": 2}
    override_options(options, FauxArgs({}))
    assert json.dumps(options) == json.dumps({"one": 1, "two": 2})

    options = {"one": 1, "two": 2}
    override_options(options, FauxArgs({"one": 11}))
    assert json.dumps(options) == json.dumps({"one": 11, "two": 2})

    options = {"one": 1, "two": 2}
    override_options(options, FauxArgs({"three": 3, "two": None}))
    assert json.dumps(options) == json.dumps({"one": 1, "two": 2})


def test_argument_parser_settings():
    """Settings given on the command line are parsed."""
    parser = configure_argument_parser()

    args = parser.parse_args(
        ["config.yml", "--today", "2026-03-01", "--sprint-view", "2y", "--confidence-mode", "high"]
    )

    assert args.today == datetime.date(2026, 3, 1)
    assert args.sprint_view == "2y"
    assert args.confidence_mode == "high"


def test_argument_parser_rejects_bad_values():
    """Invalid dates and choices are usage errors."""
    parser = configure_argument_parser()

    with pytest.raises(SystemExit):
        parser.parse_args(["config.yml", "--today", "someday"])
    with pytest.raises(SystemExit):
        parser.parse_args(["config.yml", "--sprint-view", "5y"])


def test_run_command_line_without_config(capsys):
    """Usage is printed without a config file."""
    parser = configure_argument_parser()

    run_command_line(parser, parser.parse_args([]))

    assert "usage" in capsys.readouterr().out


def test_run_command_line_with_missing_config(capsys, tmp_path):
    """A missing config file is reported."""
    parser = configure_argument_parser()

    run_command_line(parser, parser.parse_args([str(tmp_path / "missing.yml")]))

    assert "not found" in capsys.readouterr().out


def test_run_command_line_with_invalid_config(capsys, tmp_path):
    """Configuration errors are reported."""
    config_file = tmp_path / "config.yml"
    config_file.write_text("Settings:\n    Sprint view: 9y\n")
    parser = configure_argument_parser()

    run_command_line(parser, parser.parse_args([str(config_file)]))

    assert "Error" in capsys.readouterr().out


def test_run_command_line(tmp_path, monkeypatch):
    """A full run writes every configured output file."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "portfolio.json").write_text(json.dumps(PORTFOLIO))
    config_file = tmp_path / "config.yml"
    config_file.write_text(
        """\
Data:
    Portfolio: portfolio.json

Settings:
    Today: 2026-01-01
    Sync value delivery: true

Output:
    Metrics data: metrics.csv
    Summary data: summary.csv
    Timeline data: timeline.csv
    Timeline chart: timeline.png
    Portfolio export: portfolio-export.json
"""
    )
    parser = configure_argument_parser()
    args = parser.parse_args([str(config_file), "-o", str(tmp_path / "out")])

    run_command_line(parser, args)

    out = tmp_path / "out"
    assert (out / "metrics.csv").exists()
    assert (out / "timeline.csv").exists()
    assert (out / "summary.csv").exists()
    assert (out / "timeline.png").exists()

    with open(out / "portfolio-export.json", encoding="utf-8") as f:
        exported = json.load(f)
    # Value delivery was synced to the projected end of the epic
    assert exported[0]["valueDeliveryDate"]["startSprintId"] == "s11"
    assert exported[0]["valueDeliveryDate"]["endSprintId"] == "s14"


def test_run_command_line_overrides_settings(mocker, tmp_path):
    """Command line settings override the config file."""
    run_calculators = mocker.patch("portfolio_metrics.cli.run_calculators")
    config_file = tmp_path / "config.yml"
    config_file.write_text("Settings:\n    Sprint view: 1y\n    Confidence mode: ranges\n")
    parser = configure_argument_parser()
    args = parser.parse_args(
        [str(config_file), "--sprint-view", "2y", "--confidence-mode", "high", "--today", "2026-05-01"]
    )

    run_command_line(parser, args)

    calculators, metrics, settings = run_calculators.call_args[0]
    assert calculators == CALCULATORS
    assert settings["sprint_view"] == "2y"
    assert settings["today"] == datetime.date(2026, 5, 1)
    assert metrics.high_confidence is True
    assert len(metrics.visible_sprints()) == 55
    assert [e.name for e in metrics.store] == [BOOTSTRAP_EPIC_NAME]


def test_load_portfolio(tmp_path):
    """Epics are loaded from the portfolio file."""
    portfolio = tmp_path / "portfolio.json"
    portfolio.write_text(json.dumps(PORTFOLIO))
    data = {"teams": DEFAULT_TEAMS_FILE, "sprints": DEFAULT_SPRINTS_FILE, "portfolio": str(portfolio)}

    metrics = load_portfolio(data, _settings())

    assert [e.name for e in metrics.store] == ["Checkout"]
    assert metrics.expected_sprints(1767225600000).min == 4


def test_load_portfolio_warns_about_out_of_band_teams(tmp_path, caplog):
    """Implausible team sizes or costs are logged."""
    teams = tmp_path / "teams.json"
    teams.write_text(json.dumps([{"id": "tiny", "name": "Tiny", "teamSize": 2, "totalTeamCost": 300000}]))
    data = {"teams": str(teams), "sprints": DEFAULT_SPRINTS_FILE, "portfolio": None}

    with caplog.at_level(logging.WARNING):
        metrics = load_portfolio(data, _settings())

    assert "tiny" in caplog.text
    assert len(metrics.store) == 1


def test_load_portfolio_with_malformed_epic(tmp_path):
    """An epic record without an id is a configuration error."""
    portfolio = tmp_path / "portfolio.json"
    portfolio.write_text(json.dumps([{"name": "No id"}]))
    data = {"teams": DEFAULT_TEAMS_FILE, "sprints": DEFAULT_SPRINTS_FILE, "portfolio": str(portfolio)}

    with pytest.raises(ConfigError, match="portfolio.json"):
        load_portfolio(data, _settings())


def test_run_command_line_with_malformed_portfolio(capsys, tmp_path):
    """Malformed data files are reported rather than raised."""
    (tmp_path / "portfolio.json").write_text(json.dumps([{"name": "No id"}]))
    config_file = tmp_path / "config.yml"
    config_file.write_text("Data:\n    Portfolio: portfolio.json\n")
    parser = configure_argument_parser()

    run_command_line(parser, parser.parse_args([str(config_file)]))

    assert "Error: Invalid record in portfolio file" in capsys.readouterr().out
