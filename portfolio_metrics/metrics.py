"""Derived metrics for portfolio epics.

:class:`MetricsFacade` pulls the current state of an epic out of the
:class:`~portfolio_metrics.epic_store.EpicStore`, looks teams and sprints up
in the catalogs and recomputes every figure on demand. Nothing is cached.

The module-level functions are the individual formulas and can be used on
their own.
"""

import datetime
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from . import range_math
from .catalog import Sprint, SprintCalendar, TeamCatalog
from .common_constants import EBITDA_MAX, EBITDA_UNIT_DOLLARS, SPRINTS_PER_YEAR
from .epic_store import EpicStore
from .models import Bounds, EpicData
from .range_math import round_half_up
from .timeline import TimelineSections, compute_project_timeline_sections

logger = logging.getLogger(__name__)

MISSING_VALUE = "-"


def ebitda_slider_to_dollars(slider_value) -> int:
    return round_half_up(slider_value * EBITDA_UNIT_DOLLARS)


def ebitda_dollars_to_slider(dollars) -> int:
    return max(0, min(EBITDA_MAX, round_half_up(dollars / EBITDA_UNIT_DOLLARS)))


def cost_of_delay(annualized_ebitda) -> Bounds:
    """Value lost per sprint of delay, from an annualized EBITDA range in
    slider units.
    """
    return Bounds(
        ebitda_slider_to_dollars(annualized_ebitda.min) / SPRINTS_PER_YEAR,
        ebitda_slider_to_dollars(annualized_ebitda.max) / SPRINTS_PER_YEAR,
    )


def cd3_range(
    delay_cost: Bounds, expected_sprints: Optional[Bounds]
) -> Tuple[Optional[float], Optional[float]]:
    """Cost of delay divided by duration.

    The lowest cost of delay pairs with the longest delivery and the highest
    with the shortest. Either edge is None when its divisor is not positive.
    """
    if expected_sprints is None:
        return None, None
    low = delay_cost.min / expected_sprints.max if expected_sprints.max > 0 else None
    high = delay_cost.max / expected_sprints.min if expected_sprints.min > 0 else None
    return low, high


def cd3_midpoint(delay_cost: Bounds, expected_sprints: Optional[Bounds]) -> Optional[float]:
    if expected_sprints is None or expected_sprints.midpoint <= 0:
        return None
    return delay_cost.midpoint / expected_sprints.midpoint


def sprint_id_to_index(sprint_id, sprints: SprintCalendar) -> int:
    """Index of a sprint in the full calendar. Unknown ids map to 0."""
    index = sprints.index_of(sprint_id) if sprint_id else None
    return 0 if index is None else index


def sprint_index_in_list(sprint_id, visible: Sequence[Sprint], sprints: SprintCalendar) -> int:
    """Index of a sprint in the visible sprint list.

    Sprints outside the visible list map to their calendar index, clamped to
    the end of the list.
    """
    if not sprint_id or not visible:
        return 0
    for i, sprint in enumerate(visible):
        if sprint.id == sprint_id:
            return i
    return min(sprint_id_to_index(sprint_id, sprints), len(visible) - 1)


def year_ebitda_total(
    expected_start_id,
    expected_end_id,
    expected_sprints: Optional[Bounds],
    annualized_ebitda,
    sprints: SprintCalendar,
    today: datetime.date,
) -> Optional[Bounds]:
    """EBITDA attributed to the remainder of the current calendar year.

    The min scenario covers ``[start, start + delivery min]`` and the max
    scenario ``[end, end + delivery max]``, both over the full calendar. A
    sprint counts when it overlaps ``[today, Dec 31]``. Each count is
    multiplied by the matching cost of delay edge.

    Returns:
        The total range, or None when there is no expected start, no
        delivery estimate or no overlapping sprint.
    """
    if not expected_start_id or expected_sprints is None:
        return None

    window_start = datetime.datetime.combine(today, datetime.time())
    window_end = datetime.datetime(today.year, 12, 31, 23, 59, 59)

    last = sprints.last_index
    start_idx = sprint_id_to_index(expected_start_id, sprints)
    end_idx = sprint_id_to_index(expected_end_id or expected_start_id, sprints)
    min_end_idx = min(start_idx + expected_sprints.min, last)
    max_end_idx = min(end_idx + expected_sprints.max, last)

    def count_overlapping(first, last_inclusive):
        count = 0
        for i in range(first, min(last_inclusive, last) + 1):
            sprint = sprints[i]
            if sprint.start is None or sprint.end is None:
                continue
            if sprint.start <= window_end and sprint.end >= window_start:
                count += 1
        return count

    min_count = count_overlapping(start_idx, min_end_idx)
    max_count = count_overlapping(end_idx, max_end_idx)
    if min_count == 0 and max_count == 0:
        return None

    delay_cost = cost_of_delay(annualized_ebitda)
    return Bounds(min_count * delay_cost.min, max_count * delay_cost.max)


def expected_finish(
    start_idx, end_idx, expected_sprints: Optional[Bounds], sprint_count
) -> Optional[Tuple[int, int]]:
    """Sprint indices of the earliest and latest finish."""
    if start_idx is None or end_idx is None or expected_sprints is None:
        return None
    if sprint_count <= 0:
        return None
    if not expected_sprints.min or not expected_sprints.max:
        return None
    max_idx = sprint_count - 1
    return (
        min(start_idx + expected_sprints.min, max_idx),
        min(end_idx + expected_sprints.max, max_idx),
    )


def format_currency(value) -> str:
    if value >= 1000000:
        return f"${value / 1000000:.1f}M"
    if value >= 1000:
        return f"${value / 1000:.0f}K"
    return f"${value:g}"


def format_range(min_value, max_value, formatter=str) -> str:
    if min_value is None or max_value is None:
        return MISSING_VALUE
    if min_value == max_value:
        return formatter(min_value)
    return f"{formatter(min_value)} – {formatter(max_value)}"


def format_sprint_range(start_idx, end_idx, sprints: Sequence[Sprint]) -> str:
    """Short label for a range of sprints, e.g. ``S1 – S4``."""
    if not 0 <= start_idx < len(sprints) or not 0 <= end_idx < len(sprints):
        return MISSING_VALUE
    if start_idx == end_idx:
        return sprints[start_idx].label
    return f"{sprints[start_idx].label} – {sprints[end_idx].label}"


@dataclass(frozen=True)
class EpicMetrics:
    """Every derived figure for one epic."""

    epic_id: int
    name: str
    status: str
    teams: int
    resources: Bounds
    delivery: Optional[Bounds]
    cost_per_resource_per_sprint: Optional[Bounds]
    cost_per_sprint: Bounds
    total_sprints: Optional[Bounds]
    total_cost: Optional[Bounds]
    annualized_ebitda: Bounds
    cost_of_delay: Bounds
    cd3_min: Optional[float]
    cd3_max: Optional[float]
    cd3_midpoint: Optional[float]
    year_ebitda_total: Optional[Bounds]
    expected_start: Tuple[Optional[str], Optional[str]]
    expected_finish: Optional[Tuple[str, str]]
    value_delivery: Tuple[Optional[str], Optional[str]]
    timeline: Optional[TimelineSections]
    high_confidence: bool = False


class MetricsFacade:
    """Computes derived metrics for the epics in a store.

    Args:
        store: The epic store
        teams: Team catalog used for sizes and costs
        sprints: Sprint calendar, defaults to the store's
        sprint_view: ``1y`` or ``2y``, the visible sprint window
        high_confidence: Collapse timelines to single points
    """

    def __init__(
        self,
        store: EpicStore,
        teams: TeamCatalog,
        sprints: Optional[SprintCalendar] = None,
        sprint_view="1y",
        high_confidence=False,
    ):
        self.store = store
        self.teams = teams
        self.sprints = sprints if sprints is not None else store.sprints
        self.sprint_view = sprint_view
        self.high_confidence = high_confidence

    def visible_sprints(self):
        return self.sprints.visible(self.sprint_view)

    def expected_sprints(self, epic_id) -> Optional[Bounds]:
        epic = self.store.get_epic(epic_id)
        if epic is None:
            return None
        return range_math.blend_delivery_sprints(
            epic.team_assignments, epic.dependency_environment
        )

    def sync_value_delivery(self, epic_id) -> bool:
        """Move a linked Value Delivery range to the projected end of the epic."""
        epic = self.store.get_epic(epic_id)
        if epic is None:
            return False
        return self.store.sync_value_delivery_to_project_end(
            epic_id, self.expected_sprints(epic_id)
        )

    def epic_metrics(self, epic_id, today=None, snapshot_index=None) -> Optional[EpicMetrics]:
        """Compute the metrics of an epic, or of one of its snapshots.

        Returns None for an unknown epic or snapshot.
        """
        epic = self.store.get_epic(epic_id)
        if epic is None:
            return None
        if snapshot_index is None:
            data = epic.to_data()
        elif 0 <= snapshot_index < len(epic.snapshots):
            data = epic.snapshots[snapshot_index].data
        else:
            return None
        return self.metrics_for_data(epic.id, data, today or datetime.date.today())

    def metrics_for_data(self, epic_id, data: EpicData, today) -> EpicMetrics:
        assignments = data.team_assignments
        delivery = range_math.blend_delivery_sprints(assignments, data.dependency_environment)
        team_count, resources = range_math.teams_resources(assignments, self.teams)
        delay_cost = cost_of_delay(data.annualized_ebitda)
        cd3_min, cd3_max = cd3_range(delay_cost, delivery)
        start_id, end_id = data.expected_delivery_start

        visible = self.visible_sprints()
        start_idx = sprint_index_in_list(start_id, visible, self.sprints)
        end_idx = sprint_index_in_list(end_id or start_id, visible, self.sprints)
        finish = expected_finish(start_idx, end_idx, delivery, len(visible))

        return EpicMetrics(
            epic_id=epic_id,
            name=data.name,
            status=data.status,
            teams=team_count,
            resources=resources,
            delivery=delivery,
            cost_per_resource_per_sprint=range_math.cost_per_resource_per_sprint(
                assignments, self.teams
            ),
            cost_per_sprint=range_math.cost_per_sprint(assignments, self.teams),
            total_sprints=range_math.total_sprints(assignments, self.teams),
            total_cost=range_math.total_cost(assignments, self.teams),
            annualized_ebitda=Bounds(
                ebitda_slider_to_dollars(data.annualized_ebitda.min),
                ebitda_slider_to_dollars(data.annualized_ebitda.max),
            ),
            cost_of_delay=delay_cost,
            cd3_min=cd3_min,
            cd3_max=cd3_max,
            cd3_midpoint=cd3_midpoint(delay_cost, delivery),
            year_ebitda_total=year_ebitda_total(
                start_id, end_id, delivery, data.annualized_ebitda, self.sprints, today
            ),
            expected_start=(start_id, end_id),
            expected_finish=(
                None if finish is None else (visible[finish[0]].id, visible[finish[1]].id)
            ),
            value_delivery=data.value_delivery_date,
            timeline=compute_project_timeline_sections(
                len(visible), start_idx, end_idx, delivery, self.high_confidence
            ),
            high_confidence=self.high_confidence,
        )

    def all_epic_metrics(self, today=None):
        return [self.epic_metrics(epic.id, today) for epic in self.store.epics]
