"""Range arithmetic for delivery and cost estimates.

Every estimate is a min/max pair. Per-team figures pair the minimum headcount
with the minimum sprint extent and the maximum headcount with the maximum
extent, then the pairs are summed across teams. Cross terms are never
considered.

All functions here are pure: teams are looked up through the
:class:`~portfolio_metrics.catalog.TeamCatalog` passed in.
"""

import logging
import math
from typing import Iterable, Optional, Tuple

from .catalog import TeamCatalog
from .common_constants import SPRINTS_PER_YEAR
from .models import Bounds, TeamAssignment

logger = logging.getLogger(__name__)

# Blend between parallel (0) and fully sequential (1) delivery
BLEND_FACTORS = {0: 0, 1: 0.15, 2: 0.5}
SEQUENTIAL_BLEND_FACTOR = 1

DEFAULT_SPRINT_EXTENT = Bounds(1, 2)


def round_half_up(value) -> int:
    """Round to the nearest integer, with halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def duration_to_sprint_range(unit, min_value, max_value) -> Bounds:
    """Convert a duration range in `unit` to a range of sprints.

    Inputs are rounded and floored at 1, and the max edge is raised to the
    min edge when they are crossed. A missing or unknown unit yields the
    default extent of 1-2 sprints.
    """
    if not unit:
        return DEFAULT_SPRINT_EXTENT

    low = max(1, round_half_up(float(1 if min_value is None else min_value)))
    high = max(1, round_half_up(float(1 if max_value is None else max_value)))
    if low > high:
        high = low

    if unit == "weeks":
        return Bounds(max(1, math.ceil(low / 2)), max(1, math.ceil(high / 2)))
    if unit == "months":
        return Bounds(low * 2, high * 2)
    if unit == "quarters":
        return Bounds(low * 6, high * 6)
    if unit == "years":
        return Bounds(low * SPRINTS_PER_YEAR, high * SPRINTS_PER_YEAR)
    if unit == "sprints":
        return Bounds(low, high)

    logger.debug("Unknown duration unit %s, using default sprint extent", unit)
    return DEFAULT_SPRINT_EXTENT


def assignment_sprint_range(assignment: TeamAssignment) -> Bounds:
    return duration_to_sprint_range(
        assignment.duration_unit, assignment.duration_min, assignment.duration_max
    )


def people_range_from_involvement(involvement, team_size) -> Bounds:
    """Headcount range for an involvement level.

    Individual is one person, Half Team is one either side of half the team
    (rounded up) and Full Team is everyone.
    """
    if involvement == 0:
        return Bounds(1, 1)
    if involvement == 1:
        half = math.ceil(team_size / 2)
        return Bounds(max(1, half - 1), min(team_size, half + 1))
    return Bounds(team_size, team_size)


def blend_factor(dependency_environment) -> float:
    return BLEND_FACTORS.get(dependency_environment, SEQUENTIAL_BLEND_FACTOR)


def blend_delivery_sprints(
    assignments: Iterable[TeamAssignment], dependency_environment=0
) -> Optional[Bounds]:
    """Expected delivery length in sprints.

    Blends the parallel bound (the longest team) with the sequential bound
    (all teams end to end) using the dependency environment's blend factor.

    Returns:
        The blended range, or ``None`` when there are no assignments.
    """
    extents = [assignment_sprint_range(a) for a in assignments]
    if not extents:
        return None

    max_min = max(e.min for e in extents)
    max_max = max(e.max for e in extents)
    sum_min = sum(e.min for e in extents)
    sum_max = sum(e.max for e in extents)

    f = blend_factor(dependency_environment)
    return Bounds(
        round_half_up((1 - f) * max_min + f * sum_min),
        round_half_up((1 - f) * max_max + f * sum_max),
    )


def _priced_teams(assignments, teams: TeamCatalog):
    """Yield (assignment, team) for teams with both a size and a cost."""
    for assignment in assignments:
        team = teams.get(assignment.team_id)
        if team is None or not team.team_size or not team.total_team_cost:
            continue
        yield assignment, team


def cost_per_resource_per_sprint(assignments, teams: TeamCatalog) -> Optional[Bounds]:
    """Lowest and highest per-person sprint rate across the assigned teams."""
    assignments = list(assignments)
    if not assignments:
        return None
    rates = [team.rate_per_sprint for _, team in _priced_teams(assignments, teams)]
    if not rates:
        return None
    return Bounds(min(rates), max(rates))


def cost_per_sprint(assignments, teams: TeamCatalog) -> Bounds:
    """Burn rate: people times per-person rate, summed across teams."""
    min_total = 0
    max_total = 0
    for assignment, team in _priced_teams(assignments, teams):
        people = people_range_from_involvement(assignment.involvement, team.team_size)
        min_total += people.min * team.rate_per_sprint
        max_total += people.max * team.rate_per_sprint
    return Bounds(min_total, max_total)


def total_sprints(assignments, teams: TeamCatalog) -> Optional[Bounds]:
    """Person-sprints consumed: people times sprint extent, summed."""
    assignments = list(assignments)
    if not assignments:
        return None
    min_total = 0
    max_total = 0
    for assignment in assignments:
        team = teams.get(assignment.team_id)
        if team is None or not team.team_size:
            continue
        people = people_range_from_involvement(assignment.involvement, team.team_size)
        extent = assignment_sprint_range(assignment)
        min_total += people.min * extent.min
        max_total += people.max * extent.max
    return Bounds(min_total, max_total)


def total_cost(assignments, teams: TeamCatalog) -> Optional[Bounds]:
    """Spend over the delivery period: people times rate times extent."""
    assignments = list(assignments)
    if not assignments:
        return None
    min_total = 0
    max_total = 0
    for assignment, team in _priced_teams(assignments, teams):
        people = people_range_from_involvement(assignment.involvement, team.team_size)
        extent = assignment_sprint_range(assignment)
        min_total += people.min * team.rate_per_sprint * extent.min
        max_total += people.max * team.rate_per_sprint * extent.max
    return Bounds(min_total, max_total)


def teams_resources(assignments, teams: TeamCatalog) -> Tuple[int, Bounds]:
    """Number of assigned teams and the summed headcount range."""
    assignments = list(assignments)
    min_people = 0
    max_people = 0
    for assignment in assignments:
        team = teams.get(assignment.team_id)
        if team is None or not team.team_size:
            continue
        people = people_range_from_involvement(assignment.involvement, team.team_size)
        min_people += people.min
        max_people += people.max
    return len(assignments), Bounds(min_people, max_people)
