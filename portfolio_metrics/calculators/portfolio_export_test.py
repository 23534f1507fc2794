"""Tests for the portfolio export calculator in portfolio metrics."""

import json

from ..epic_store import EpicStore
from .portfolio_export import PortfolioExportCalculator


def test_export_round_trip(facade, store, eng_epic, sprints, clock, tmp_path):
    """An exported portfolio loads back into a store."""
    output_file = tmp_path / "portfolio.json"
    settings = {"portfolio_export": str(output_file)}
    results = {}

    calculator = PortfolioExportCalculator(facade, settings, results)
    results[PortfolioExportCalculator] = calculator.run()
    calculator.write()

    with open(output_file, encoding="utf-8") as f:
        records = json.load(f)

    assert [r["name"] for r in records] == ["Checkout"]
    assert records[0]["expectedDeliveryStart"]["startSprintId"] == "s05"

    other = EpicStore(sprints, clock=clock)
    other.load_epics(records)
    assert other.export_epics() == records


def test_no_export_configured(facade, eng_epic, tmp_path, monkeypatch):
    """Nothing is written without an export file."""
    monkeypatch.chdir(tmp_path)
    results = {}

    calculator = PortfolioExportCalculator(facade, {}, results)
    results[PortfolioExportCalculator] = calculator.run()
    calculator.write()

    assert list(tmp_path.iterdir()) == []
