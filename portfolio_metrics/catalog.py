"""Read-only team and sprint catalogs.

Both catalogs are loaded once from JSON files and never modified afterwards.
Teams are looked up by id on every read so that epics never cache team data.
"""

import datetime
import json
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .common_constants import ONE_YEAR_SPRINT_COUNT, SPRINTS_PER_YEAR
from .config.exceptions import ConfigError
from .utils import parse_timestamp

logger = logging.getLogger(__name__)

# Sanity bounds every team in the catalog is expected to satisfy
TEAM_SIZE_BOUNDS = (5, 12)
COST_PER_PERSON_BOUNDS = (140000, 200000)


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    team_size: Optional[float] = None
    total_team_cost: Optional[float] = None

    @property
    def cost_per_person(self) -> Optional[float]:
        if not self.team_size or not self.total_team_cost:
            return None
        return self.total_team_cost / self.team_size

    @property
    def rate_per_sprint(self) -> Optional[float]:
        """Cost of one person for one sprint."""
        cost_per_person = self.cost_per_person
        if cost_per_person is None:
            return None
        return cost_per_person / SPRINTS_PER_YEAR

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            team_size=data.get("teamSize"),
            total_team_cost=data.get("totalTeamCost"),
        )


@dataclass(frozen=True)
class Sprint:
    id: str
    label: str
    start: Optional[datetime.datetime] = None
    end: Optional[datetime.datetime] = None
    is_blocked: bool = False

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data["id"],
            label=data.get("label", data["id"]),
            start=parse_timestamp(data.get("start")),
            end=parse_timestamp(data.get("end")),
            is_blocked=bool(data.get("isBlocked", False)),
        )


class TeamCatalog:
    """Lookup of teams by id."""

    def __init__(self, teams: Iterable[Team] = ()):
        self._teams = list(teams)
        self._by_id = {team.id: team for team in self._teams}

    @classmethod
    def from_records(cls, records):
        return cls(Team.from_dict(r) for r in records)

    def __len__(self):
        return len(self._teams)

    def __iter__(self):
        return iter(self._teams)

    @property
    def teams(self) -> List[Team]:
        return list(self._teams)

    def get(self, team_id) -> Optional[Team]:
        return self._by_id.get(team_id)

    def out_of_band_teams(self) -> List[Team]:
        """Teams whose size or cost per person falls outside the sanity bounds."""
        low_size, high_size = TEAM_SIZE_BOUNDS
        low_cost, high_cost = COST_PER_PERSON_BOUNDS
        result = []
        for team in self._teams:
            cost_per_person = team.cost_per_person
            if (
                team.team_size is None
                or not low_size <= team.team_size <= high_size
                or cost_per_person is None
                or not low_cost <= cost_per_person <= high_cost
            ):
                result.append(team)
        return result


class SprintCalendar:
    """Chronologically ordered sprints, some of which may be blocked as
    start sprints (e.g. innovation and planning sprints).
    """

    def __init__(self, sprints: Iterable[Sprint] = ()):
        self._sprints = list(sprints)
        self._index = {sprint.id: i for i, sprint in enumerate(self._sprints)}

    @classmethod
    def from_records(cls, records):
        return cls(Sprint.from_dict(r) for r in records)

    def __len__(self):
        return len(self._sprints)

    def __iter__(self):
        return iter(self._sprints)

    def __getitem__(self, index) -> Sprint:
        return self._sprints[index]

    @property
    def sprints(self) -> List[Sprint]:
        return list(self._sprints)

    @property
    def last_index(self) -> int:
        return len(self._sprints) - 1

    def get(self, sprint_id) -> Optional[Sprint]:
        index = self._index.get(sprint_id)
        return None if index is None else self._sprints[index]

    def index_of(self, sprint_id) -> Optional[int]:
        """Position of a sprint in the calendar, or ``None`` if unknown."""
        if sprint_id is None:
            return None
        return self._index.get(sprint_id)

    def id_at(self, index) -> Optional[str]:
        if 0 <= index < len(self._sprints):
            return self._sprints[index].id
        return None

    def next_non_blocked_index(self, from_index: int) -> int:
        """First non-blocked sprint at or after `from_index`. Falls back to the
        last sprint when everything after `from_index` is blocked.
        """
        if not self._sprints:
            return from_index
        for i in range(from_index, len(self._sprints)):
            if not self._sprints[i].is_blocked:
                return i
        return len(self._sprints) - 1

    def visible(self, sprint_view="1y") -> List[Sprint]:
        """Sprints shown for a view: one year (27 entries including blocked
        sprints) or the whole two year calendar.
        """
        if sprint_view == "1y":
            return self._sprints[:ONE_YEAR_SPRINT_COUNT]
        return list(self._sprints)


def read_records(filename, what):
    """Read a JSON file holding a list of records."""
    logger.debug("Loading %s from %s", what, filename)
    try:
        with open(filename, encoding="utf-8") as f:
            records = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"{what.capitalize()} file `{filename}` not found.") from None
    except ValueError as e:
        raise ConfigError(f"Unable to parse {what} file `{filename}`.") from e

    if not isinstance(records, list):
        raise ConfigError(f"{what.capitalize()} file `{filename}` must contain a list.")
    return records


def parse_records(records, parse, filename, what):
    """Apply `parse` to the records read from `filename`, reporting a
    malformed record as a configuration error.
    """
    try:
        return parse(records)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid record in {what} file `{filename}`: {e!r}") from e


def load_teams(filename) -> TeamCatalog:
    """Load the team catalog from a JSON file."""
    catalog = parse_records(
        read_records(filename, "teams"), TeamCatalog.from_records, filename, "teams"
    )
    logger.info("Loaded %d teams from %s", len(catalog), filename)
    return catalog


def load_sprints(filename) -> SprintCalendar:
    """Load the sprint calendar from a JSON file."""
    calendar = parse_records(
        read_records(filename, "sprints"),
        SprintCalendar.from_records,
        filename,
        "sprints",
    )
    logger.info("Loaded %d sprints from %s", len(calendar), filename)
    return calendar
