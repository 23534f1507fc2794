"""Tests for derived epic metrics in portfolio metrics.

This module contains unit tests for the individual formulas and for the
metrics facade over a store.
"""

import datetime

import pytest

from .catalog import Sprint, Team, TeamCatalog
from .metrics import (
    MISSING_VALUE,
    MetricsFacade,
    cd3_midpoint,
    cd3_range,
    cost_of_delay,
    ebitda_dollars_to_slider,
    ebitda_slider_to_dollars,
    expected_finish,
    format_currency,
    format_range,
    format_sprint_range,
    sprint_index_in_list,
    year_ebitda_total,
)
from .models import Bounds
from .timeline import Segment

NEW_YEAR = datetime.date(2026, 1, 1)


def test_ebitda_conversions():
    """Slider units are $100,000 each, clamped to 0-100 on the way back."""
    assert ebitda_slider_to_dollars(12) == 1200000
    assert ebitda_slider_to_dollars(0) == 0
    assert ebitda_dollars_to_slider(1250000) == 13
    assert ebitda_dollars_to_slider(20000000) == 100
    assert ebitda_dollars_to_slider(-500000) == 0


def test_cost_of_delay():
    """Cost of delay spreads annualized EBITDA over 24 sprints."""
    assert cost_of_delay(Bounds(12, 24)) == Bounds(50000, 100000)


def test_cd3_range():
    """Low pairs with the longest delivery, high with the shortest."""
    assert cd3_range(Bounds(50000, 100000), Bounds(4, 8)) == (6250, 25000)
    assert cd3_range(Bounds(50000, 100000), Bounds(0, 8)) == (6250, None)
    assert cd3_range(Bounds(50000, 100000), None) == (None, None)


def test_cd3_midpoint():
    """The midpoint divides midpoints."""
    assert cd3_midpoint(Bounds(50000, 100000), Bounds(4, 8)) == 12500
    assert cd3_midpoint(Bounds(50000, 100000), Bounds(0, 0)) is None
    assert cd3_midpoint(Bounds(50000, 100000), None) is None


def test_expected_finish():
    """Finish indices are clamped to the end of the sprint list."""
    assert expected_finish(4, 7, Bounds(4, 8), 27) == (8, 15)
    assert expected_finish(20, 24, Bounds(4, 8), 27) == (24, 26)
    assert expected_finish(4, 7, Bounds(0, 8), 27) is None
    assert expected_finish(4, 7, None, 27) is None
    assert expected_finish(4, 7, Bounds(4, 8), 0) is None


def test_sprint_index_in_list(sprints):
    """Sprints outside the visible list clamp to its end."""
    visible = sprints.visible("1y")

    assert sprint_index_in_list("s05", visible, sprints) == 4
    assert sprint_index_in_list("s25", visible, sprints) == 26
    assert sprint_index_in_list("s25", sprints.visible("2y"), sprints) == 28
    assert sprint_index_in_list("unknown", visible, sprints) == 0
    assert sprint_index_in_list(None, visible, sprints) == 0


def test_year_ebitda_total(sprints):
    """Sprints overlapping the rest of the year are valued at cost of delay."""
    total = year_ebitda_total("s05", "s07", Bounds(4, 8), Bounds(12, 24), sprints, NEW_YEAR)

    # s05..s08 plus ip1 is 5 sprints, s07..s14 plus ip2 is 9 sprints
    assert total == Bounds(5 * 50000, 9 * 100000)


def test_year_ebitda_total_without_overlap(sprints):
    """Nothing is attributed when every sprint falls outside the year."""
    late = datetime.date(2027, 6, 1)

    assert year_ebitda_total("s05", "s07", Bounds(4, 8), Bounds(12, 24), sprints, late) is None
    assert year_ebitda_total(None, "s07", Bounds(4, 8), Bounds(12, 24), sprints, NEW_YEAR) is None
    assert year_ebitda_total("s05", "s07", None, Bounds(12, 24), sprints, NEW_YEAR) is None


def test_format_currency():
    """Large amounts are abbreviated."""
    assert format_currency(2500000) == "$2.5M"
    assert format_currency(66666.67) == "$67K"
    assert format_currency(500) == "$500"


def test_format_range():
    """Equal edges collapse to one value, missing edges to a dash."""
    assert format_range(3, 3) == "3"
    assert format_range(3, 5) == "3 – 5"
    assert format_range(None, 5) == MISSING_VALUE
    assert format_range(1000, 2000000, format_currency) == "$1K – $2.0M"


def test_format_sprint_range(short_sprints):
    """Sprint ranges use sprint labels."""
    assert format_sprint_range(0, 3, short_sprints) == "S1 – S4"
    assert format_sprint_range(2, 2, short_sprints) == "S3"
    assert format_sprint_range(0, 99, short_sprints) == MISSING_VALUE


def test_epic_metrics(facade, eng_epic):
    """Every metric of an epic with one full team."""
    m = facade.epic_metrics(eng_epic.id, today=NEW_YEAR)

    assert m.epic_id == eng_epic.id
    assert m.name == "Checkout"
    assert m.teams == 1
    assert m.resources == Bounds(10, 10)
    assert m.delivery == Bounds(4, 8)
    assert m.cost_per_sprint.min == pytest.approx(66666.67, abs=0.01)
    assert m.total_sprints == Bounds(40, 80)
    assert m.total_cost.min == pytest.approx(266666.67, abs=0.01)
    assert m.total_cost.max == pytest.approx(533333.33, abs=0.01)
    assert m.annualized_ebitda == Bounds(1200000, 2400000)
    assert m.cost_of_delay == Bounds(50000, 100000)
    assert (m.cd3_min, m.cd3_max, m.cd3_midpoint) == (6250, 25000, 12500)
    assert m.year_ebitda_total == Bounds(250000, 900000)
    assert m.expected_start == ("s05", "s07")
    assert m.expected_finish == ("s08", "s14")
    assert m.value_delivery == ("s05", "s25")
    assert m.timeline.segment_a == Segment(4, 8)
    assert m.timeline.segment_b == Segment(8, 8)
    assert m.timeline.segment_c == Segment(7, 15)


def test_epic_metrics_without_teams(facade, store):
    """An epic without teams has no delivery estimate."""
    epic = store.add_epic("Empty")

    m = facade.epic_metrics(epic.id, today=NEW_YEAR)

    assert m.teams == 0
    assert m.delivery is None
    assert m.total_cost is None
    assert m.cd3_min is None
    assert m.expected_finish is None
    assert m.timeline is None
    assert m.year_ebitda_total is None


def test_epic_metrics_for_unknown_epic(facade):
    """Unknown epics have no metrics."""
    assert facade.epic_metrics(999) is None
    assert facade.expected_sprints(999) is None
    assert facade.sync_value_delivery(999) is False


def test_epic_metrics_for_snapshot(facade, store, eng_epic):
    """Snapshot metrics use the values captured in the snapshot."""
    store.capture_epic_snapshot(eng_epic.id)
    store.set_annualized_ebitda_range(eng_epic.id, 50, 60)

    snapshot = facade.epic_metrics(eng_epic.id, today=NEW_YEAR, snapshot_index=0)
    current = facade.epic_metrics(eng_epic.id, today=NEW_YEAR)

    assert snapshot.annualized_ebitda == Bounds(1200000, 2400000)
    assert snapshot.total_cost == current.total_cost
    assert current.annualized_ebitda == Bounds(5000000, 6000000)
    assert facade.epic_metrics(eng_epic.id, snapshot_index=1) is None


def test_high_confidence_timeline(store, teams, eng_epic):
    """High confidence collapses the timeline to the earliest start."""
    facade = MetricsFacade(store, teams, high_confidence=True)

    m = facade.epic_metrics(eng_epic.id, today=NEW_YEAR)

    assert m.high_confidence is True
    assert m.timeline.segment_a == Segment(4, 4)
    assert m.timeline.segment_c == Segment(4, 4)


def test_sprint_view(store, teams, eng_epic):
    """The two year view shows every sprint."""
    assert len(MetricsFacade(store, teams).visible_sprints()) == 27
    assert len(MetricsFacade(store, teams, sprint_view="2y").visible_sprints()) == 55


def test_sync_value_delivery(facade, eng_epic):
    """Syncing places Value Delivery after the Expected end plus delivery."""
    assert facade.expected_sprints(eng_epic.id) == Bounds(4, 8)

    assert facade.sync_value_delivery(eng_epic.id) is True

    value = eng_epic.value_delivery_date
    assert (value.start_sprint_id, value.end_sprint_id) == ("s11", "s14")


def test_all_epic_metrics(facade, store, eng_epic):
    """Metrics are listed for every epic in the store."""
    store.add_epic("Second")

    names = [m.name for m in facade.all_epic_metrics(today=NEW_YEAR)]

    assert names == ["Checkout", "Second"]


def test_metrics_use_current_team_catalog(store, eng_epic):
    """Team sizes and costs are looked up on every read."""
    facade = MetricsFacade(store, TeamCatalog([Team("eng", "Engineering", 5, 800000)]))

    m = facade.epic_metrics(eng_epic.id, today=NEW_YEAR)

    assert m.resources == Bounds(5, 5)
    assert m.cost_per_sprint.min == pytest.approx(5 * 800000 / 5 / 24)


def test_epic_metrics_with_undated_sprints(store, teams, short_sprints, eng_epic):
    """Undated sprints never count towards the year total."""
    facade = MetricsFacade(store, teams, sprints=short_sprints)

    m = facade.epic_metrics(eng_epic.id, today=NEW_YEAR)

    assert m.year_ebitda_total is None
    assert isinstance(facade.visible_sprints()[0], Sprint)
