"""Test configuration and fixtures for portfolio metrics.

This module provides sprint calendars, team catalogs and stores with a fixed
clock for testing the store and the metrics calculations.
"""

import datetime

import pytest

from .catalog import Sprint, SprintCalendar, Team, TeamCatalog, load_sprints
from .config.loader import DEFAULT_SPRINTS_FILE
from .epic_store import EpicStore
from .metrics import MetricsFacade

FIXED_NOW = datetime.datetime(2026, 2, 10, 9, 30)


# Fixtures


@pytest.fixture(name="clock")
def fixed_clock():
    """A clock that always returns the same moment."""
    return lambda: FIXED_NOW


@pytest.fixture(name="short_sprints")
def short_sprint_calendar():
    """Eight undated, unblocked sprints `s01`..`s08`."""
    return SprintCalendar(Sprint(f"s{i:02d}", f"S{i}") for i in range(1, 9))


@pytest.fixture(name="sprints")
def packaged_sprint_calendar():
    """The packaged two year sprint calendar, with blocked I&P sprints."""
    return load_sprints(DEFAULT_SPRINTS_FILE)


@pytest.fixture(name="teams")
def team_catalog():
    """A small team catalog. `eng` costs $6,666.67 per person per sprint."""
    return TeamCatalog(
        [
            Team("eng", "Engineering", 10, 1600000),
            Team("ops", "Operations", 6, 900000),
            Team("unpriced", "Unpriced"),
        ]
    )


@pytest.fixture(name="short_store")
def store_over_short_sprints(short_sprints, clock):
    """An empty store over the short sprint calendar."""
    return EpicStore(short_sprints, clock=clock)


@pytest.fixture(name="store")
def store_over_packaged_sprints(sprints, clock):
    """An empty store over the packaged sprint calendar."""
    return EpicStore(sprints, clock=clock)


@pytest.fixture(name="facade")
def metrics_facade(store, teams):
    """A metrics facade showing one year of sprints."""
    return MetricsFacade(store, teams)


@pytest.fixture(name="eng_epic")
def epic_with_full_eng_team(store):
    """An epic with the full `eng` team for 2-4 months, worth $1.2M-$2.4M a
    year and expected to start between `s05` and `s07`.
    """
    epic = store.add_epic("Checkout")
    store.add_team_to_epic(epic.id, "eng")
    store.set_team_involvement(epic.id, "eng", 2)
    store.set_team_duration_range(epic.id, "eng", "months", 2, 4)
    store.set_annualized_ebitda_range(epic.id, 12, 24)
    store.set_expected_delivery_start(epic.id, "s05", "s07")
    return epic
