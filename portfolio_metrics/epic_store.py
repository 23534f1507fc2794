"""In-memory store of portfolio epics.

The store is the single owner of every :class:`~portfolio_metrics.models.Epic`.
All mutation goes through its methods, which clamp numeric input into range,
snap start sprints off blocked sprints and keep the Value Delivery start at or
after the Expected Delivery start.

Operations on an unknown epic or team assignment return ``None`` or ``False``
rather than raising.
"""

import datetime
import logging
import math
from typing import Dict, List, Optional

from .catalog import SprintCalendar
from .common_constants import (
    BOOTSTRAP_EPIC_NAME,
    DEFAULT_DURATION_UNIT,
    DEFAULT_RISK,
    DEFAULT_SPRINT_END,
    DEFAULT_SPRINT_START,
    DEFAULT_STATUS,
    DEPENDENCY_ENVIRONMENT_MAX,
    DURATION_RANGE_MAX,
    DURATION_UNITS,
    EBITDA_MAX,
    RISK_VALUES,
)
from .models import (
    Bounds,
    EbitdaRange,
    Epic,
    HistoryEntry,
    Note,
    Snapshot,
    SprintRange,
    SprintRangeHistoryEntry,
    TeamAssignment,
    Todo,
)
from .range_math import round_half_up
from .utils import to_epoch_millis

logger = logging.getLogger(__name__)


def _clamp(value, low, high):
    return max(low, min(high, value))


def _clamp_rounded(value, low, high) -> int:
    """Round `value` half up and clamp it into ``[low, high]``.
    Infinities go to the matching bound and NaN goes to `low`.
    """
    value = float(value)
    if math.isnan(value):
        return low
    if math.isinf(value):
        return high if value > 0 else low
    return _clamp(round_half_up(value), low, high)


class EpicStore:
    """Owns the epics of one portfolio.

    Args:
        sprints: Sprint calendar used for snapping and enforcement
        default_start: Sprint id new sprint ranges start at
        default_end: Sprint id new sprint ranges end at
        clock: Callable returning the current datetime
    """

    def __init__(
        self,
        sprints: SprintCalendar,
        default_start=DEFAULT_SPRINT_START,
        default_end=DEFAULT_SPRINT_END,
        clock=None,
    ):
        self.sprints = sprints
        self.default_start = default_start
        self.default_end = default_end
        self.clock = clock or datetime.datetime.now
        self._epics: Dict[int, Epic] = {}
        self._last_id = 0

    def __len__(self):
        return len(self._epics)

    def __iter__(self):
        return iter(list(self._epics.values()))

    @property
    def epics(self) -> List[Epic]:
        return list(self._epics.values())

    def _now(self) -> datetime.datetime:
        return self.clock()

    def _next_id(self) -> int:
        # Creation timestamp in milliseconds, bumped to stay unique
        epic_id = max(to_epoch_millis(self._now()), self._last_id + 1)
        self._last_id = epic_id
        return epic_id

    def _default_sprint_range(self) -> SprintRange:
        return SprintRange(self.default_start, self.default_end)

    # Epics

    def get_epic(self, epic_id) -> Optional[Epic]:
        """Look up an epic by id. Numeric strings are accepted."""
        try:
            key = int(epic_id)
        except (TypeError, ValueError):
            return None
        return self._epics.get(key)

    def add_epic(self, name, status=DEFAULT_STATUS) -> Optional[Epic]:
        name = (name or "").strip()
        if not name:
            logger.debug("Not adding epic with a blank name")
            return None

        now = self._now()
        epic = Epic(
            id=self._next_id(),
            name=name,
            status=status,
            annualized_ebitda=EbitdaRange.create(0, 0, now),
            in_year_ebitda=EbitdaRange.create(0, 0, now),
            expected_delivery_start=self._default_sprint_range(),
            value_delivery_date=self._default_sprint_range(),
        )
        self._epics[epic.id] = epic
        logger.debug("Added epic %s (%d)", epic.name, epic.id)
        return epic

    def remove_epic(self, epic_id) -> bool:
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        del self._epics[epic.id]
        return True

    def bootstrap_if_empty(self) -> Optional[Epic]:
        """Add a starter epic when the store holds none."""
        if self._epics:
            return None
        return self.add_epic(BOOTSTRAP_EPIC_NAME)

    def rename_epic(self, epic_id, name) -> bool:
        epic = self.get_epic(epic_id)
        name = (name or "").strip()
        if epic is None or not name:
            return False
        epic.name = name
        return True

    def set_epic_status(self, epic_id, status) -> bool:
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        epic.status = str(status or DEFAULT_STATUS)
        return True

    def set_initiative_objective(self, epic_id, text) -> bool:
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        epic.initiative_objective = str(text or "").strip()
        return True

    # Team assignments

    def _get_assignment(self, epic_id, team_id) -> Optional[TeamAssignment]:
        epic = self.get_epic(epic_id)
        if epic is None:
            logger.debug("Epic %s not found", epic_id)
            return None
        return epic.find_assignment(team_id)

    def add_team_to_epic(self, epic_id, team_id) -> Optional[TeamAssignment]:
        epic = self.get_epic(epic_id)
        if epic is None or epic.find_assignment(team_id) is not None:
            return None
        assignment = TeamAssignment(
            team_id=team_id,
            involvement=0,
            involvement_history=[HistoryEntry(0, self._now())],
            duration_unit=DEFAULT_DURATION_UNIT,
            duration_min=1,
            duration_max=1,
        )
        epic.team_assignments.append(assignment)
        return assignment

    def remove_team_from_epic(self, epic_id, team_id) -> bool:
        epic = self.get_epic(epic_id)
        assignment = epic.find_assignment(team_id) if epic is not None else None
        if assignment is None:
            return False
        epic.team_assignments.remove(assignment)
        return True

    def set_team_involvement(self, epic_id, team_id, value) -> bool:
        assignment = self._get_assignment(epic_id, team_id)
        if assignment is None:
            return False
        involvement = _clamp_rounded(value, 0, 2)
        assignment.involvement = involvement
        assignment.involvement_history.append(HistoryEntry(involvement, self._now()))
        return True

    def set_team_duration_range(self, epic_id, team_id, unit, min_value, max_value) -> bool:
        """Set a team's duration unit and range together.

        Unknown units fall back to months. Both edges are clamped to
        ``[1, unit maximum]`` and the max edge is raised to the min edge.
        """
        assignment = self._get_assignment(epic_id, team_id)
        if assignment is None:
            return False
        if unit not in DURATION_UNITS:
            unit = DEFAULT_DURATION_UNIT
        range_max = DURATION_RANGE_MAX[unit]
        low = _clamp_rounded(min_value, 1, range_max)
        high = _clamp_rounded(max_value, 1, range_max)
        if low > high:
            high = low
        assignment.duration_unit = unit
        assignment.duration_min = low
        assignment.duration_max = high
        return True

    def add_team_note(self, epic_id, team_id, text) -> bool:
        assignment = self._get_assignment(epic_id, team_id)
        if assignment is None:
            return False
        assignment.notes.append(Note(str(text or "").strip(), self._now()))
        return True

    def add_team_todo(self, epic_id, team_id, text, risk=DEFAULT_RISK) -> bool:
        assignment = self._get_assignment(epic_id, team_id)
        if assignment is None:
            return False
        if risk not in RISK_VALUES:
            risk = DEFAULT_RISK
        assignment.todos.append(Todo(str(text or "").strip(), risk))
        return True

    def remove_team_todo(self, epic_id, team_id, todo_index) -> bool:
        """Remove a todo by position. Out of range positions are clamped to
        the first or last todo.
        """
        assignment = self._get_assignment(epic_id, team_id)
        if assignment is None:
            return False
        if assignment.todos:
            index = _clamp(int(todo_index), 0, len(assignment.todos) - 1)
            del assignment.todos[index]
        return True

    # Metrics

    def toggle_epic_metric(self, epic_id, metric_id) -> bool:
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        if metric_id in epic.metrics:
            epic.metrics.remove(metric_id)
        else:
            epic.metrics.append(metric_id)
        return True

    def add_metric_to_epic(self, epic_id, metric_id) -> bool:
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        if metric_id not in epic.metrics:
            epic.metrics.append(metric_id)
        return True

    def remove_metric_from_epic(self, epic_id, metric_id) -> bool:
        epic = self.get_epic(epic_id)
        if epic is None or metric_id not in epic.metrics:
            return False
        epic.metrics.remove(metric_id)
        return True

    # Financials

    def set_annualized_ebitda_range(self, epic_id, min_value, max_value) -> bool:
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        low = _clamp_rounded(min_value, 0, EBITDA_MAX)
        high = max(low, _clamp_rounded(max_value, 0, EBITDA_MAX))
        now = self._now()
        epic.annualized_ebitda.min = low
        epic.annualized_ebitda.max = high
        epic.annualized_ebitda.min_history.append(HistoryEntry(low, now))
        epic.annualized_ebitda.max_history.append(HistoryEntry(high, now))
        return True

    def set_in_year_ebitda_range(self, epic_id, min_value, max_value) -> bool:
        """Set the in-year EBITDA range, capped by the annualized maximum."""
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        epic.in_year_ebitda_set = True
        annualized_max = epic.annualized_ebitda.max
        low = _clamp_rounded(min_value, 0, EBITDA_MAX)
        high = max(low, _clamp_rounded(max_value, 0, EBITDA_MAX))
        low = min(low, annualized_max)
        high = min(high, annualized_max)
        if low > high:
            high = low
        now = self._now()
        epic.in_year_ebitda.min = low
        epic.in_year_ebitda.max = high
        epic.in_year_ebitda.min_history.append(HistoryEntry(low, now))
        epic.in_year_ebitda.max_history.append(HistoryEntry(high, now))
        return True

    def set_dependency_environment(self, epic_id, value) -> bool:
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        epic.dependency_environment = _clamp_rounded(
            value, 0, DEPENDENCY_ENVIRONMENT_MAX
        )
        return True

    # Sprint ranges

    def snap_start_sprint_if_blocked(self, start_sprint_id) -> Optional[str]:
        """Move a blocked start sprint forward to the next non-blocked one."""
        if not start_sprint_id:
            return None
        sprint = self.sprints.get(start_sprint_id)
        if sprint is None or not sprint.is_blocked:
            return start_sprint_id
        index = self.sprints.index_of(start_sprint_id)
        next_index = self.sprints.next_non_blocked_index(index)
        snapped = self.sprints.id_at(next_index) or start_sprint_id
        logger.debug("Snapped blocked start sprint %s to %s", start_sprint_id, snapped)
        return snapped

    def _record_sprint_range(self, sprint_range: SprintRange, start_sprint_id, end_sprint_id):
        sprint_range.start_sprint_id = self.snap_start_sprint_if_blocked(start_sprint_id)
        sprint_range.end_sprint_id = end_sprint_id or None
        sprint_range.history.append(
            SprintRangeHistoryEntry(
                sprint_range.start_sprint_id, sprint_range.end_sprint_id, self._now()
            )
        )

    def set_expected_delivery_start(self, epic_id, start_sprint_id, end_sprint_id) -> bool:
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        self._record_sprint_range(epic.expected_delivery_start, start_sprint_id, end_sprint_id)
        self.enforce_value_delivery_after_expected_start(epic_id)
        return True

    def set_value_delivery_date(
        self,
        epic_id,
        start_sprint_id,
        end_sprint_id,
        from_sync=False,
        skip_enforce=False,
    ) -> bool:
        """Set the Value Delivery range.

        A manual edit (``from_sync=False``) unlinks Value Delivery from the
        projected end of the epic, so later syncs leave it alone.
        """
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        if not from_sync:
            epic.value_delivery_linked = False
        self._record_sprint_range(epic.value_delivery_date, start_sprint_id, end_sprint_id)
        if not skip_enforce:
            self.enforce_value_delivery_after_expected_start(epic_id)
        return True

    def set_value_delivery_linked(self, epic_id, value) -> bool:
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        epic.value_delivery_linked = bool(value)
        return True

    def enforce_value_delivery_after_expected_start(self, epic_id):
        """Pull the Value Delivery start forward to the Expected Delivery start.

        Only the start edge moves. The Value end is kept as is, unless it was
        unset, in which case it takes the new start. The end may therefore lie
        before the start afterwards.
        """
        epic = self.get_epic(epic_id)
        if epic is None or not len(self.sprints):
            return

        expected = epic.expected_delivery_start
        value = epic.value_delivery_date
        expected_start_id = expected.start_sprint_id or expected.end_sprint_id
        expected_start_idx = self.sprints.index_of(expected_start_id)
        if expected_start_idx is None:
            return

        value_start_id = value.start_sprint_id or value.end_sprint_id
        value_end_id = value.end_sprint_id or value.start_sprint_id
        value_start_idx = self.sprints.index_of(value_start_id)
        value_end_idx = self.sprints.index_of(value_end_id)

        if value_start_idx is None or value_start_idx < expected_start_idx:
            new_start_id = expected_start_id
        else:
            new_start_id = value_start_id
        new_end_id = new_start_id if value_end_idx is None else value_end_id

        if value.start_sprint_id != new_start_id or value.end_sprint_id != new_end_id:
            logger.debug(
                "Moving value delivery of epic %s to %s-%s", epic.id, new_start_id, new_end_id
            )
            self.set_value_delivery_date(
                epic_id, new_start_id, new_end_id, from_sync=True, skip_enforce=True
            )

    def sync_value_delivery_to_project_end(self, epic_id, expected_sprints: Optional[Bounds]) -> bool:
        """Place a linked Value Delivery range at the projected end of the epic.

        Value start and end are the Expected Delivery end plus the delivery
        min and max, clamped to the end of the calendar.

        Returns:
            True if the Value Delivery range was updated.
        """
        epic = self.get_epic(epic_id)
        if epic is None or not epic.value_delivery_linked:
            return False
        if not len(self.sprints) or expected_sprints is None:
            return False

        expected = epic.expected_delivery_start
        expected_start_id = expected.start_sprint_id or expected.end_sprint_id
        expected_end_id = expected.end_sprint_id or expected.start_sprint_id
        if not expected_start_id or not expected_end_id:
            return False
        expected_end_idx = self.sprints.index_of(expected_end_id)
        if expected_end_idx is None:
            return False

        last = self.sprints.last_index
        start_idx = min(expected_end_idx + expected_sprints.min, last)
        end_idx = min(expected_end_idx + expected_sprints.max, last)
        return self.set_value_delivery_date(
            epic_id,
            self.sprints.id_at(start_idx),
            self.sprints.id_at(end_idx),
            from_sync=True,
        )

    # Snapshots

    def capture_epic_snapshot(self, epic_id, notes="") -> Optional[Snapshot]:
        epic = self.get_epic(epic_id)
        if epic is None:
            return None
        snapshot = Snapshot(
            version=len(epic.snapshots) + 1,
            date=self._now().date(),
            notes=str(notes or ""),
            data=epic.to_data(),
        )
        epic.snapshots.append(snapshot)
        logger.debug("Captured snapshot %d of epic %s", snapshot.version, epic.id)
        return snapshot

    def restore_epic_from_snapshot(self, epic_id, snapshot_index) -> bool:
        """Replace an epic's editable fields with a snapshot's.

        History logs restart from the restored values. The snapshot list
        itself is left untouched.
        """
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        if not 0 <= snapshot_index < len(epic.snapshots):
            logger.debug("Epic %s has no snapshot %s", epic.id, snapshot_index)
            return False

        data = epic.snapshots[snapshot_index].data
        now = self._now()
        epic.name = data.name
        epic.status = data.status
        epic.team_assignments = [
            TeamAssignment(
                team_id=a.team_id,
                involvement=a.involvement,
                involvement_history=[HistoryEntry(a.involvement, now)],
                duration_unit=a.duration_unit,
                duration_min=a.duration_min,
                duration_max=a.duration_max,
                notes=list(a.notes),
                todos=list(a.todos),
            )
            for a in data.team_assignments
        ]
        epic.annualized_ebitda = EbitdaRange.create(
            data.annualized_ebitda.min, data.annualized_ebitda.max, now
        )
        epic.in_year_ebitda = EbitdaRange.create(
            data.in_year_ebitda.min, data.in_year_ebitda.max, now
        )
        epic.in_year_ebitda_set = data.in_year_ebitda_set
        epic.expected_delivery_start = SprintRange(*data.expected_delivery_start)
        epic.value_delivery_date = SprintRange(*data.value_delivery_date)
        epic.dependency_environment = data.dependency_environment
        epic.value_delivery_linked = data.value_delivery_linked
        epic.initiative_objective = data.initiative_objective
        epic.metrics = list(data.metrics)
        return True

    def copy_snapshot_to_epic(self, epic_id, snapshot_index) -> bool:
        """Capture the current state, then restore an earlier snapshot.
        Nothing is captured when the snapshot does not exist.
        """
        epic = self.get_epic(epic_id)
        if epic is None:
            return False
        if not 0 <= snapshot_index < len(epic.snapshots):
            logger.debug("Epic %s has no snapshot %s", epic.id, snapshot_index)
            return False
        self.capture_epic_snapshot(epic_id)
        return self.restore_epic_from_snapshot(epic_id, snapshot_index)

    # Import and export

    def export_epics(self) -> List[dict]:
        return [epic.to_dict() for epic in self._epics.values()]

    def load_epics(self, records) -> List[Epic]:
        """Add previously exported epics to the store."""
        now = self._now()
        loaded = []
        for record in records:
            epic = Epic.from_dict(record, now, self.default_start, self.default_end)
            if epic.id in self._epics:
                logger.warning("Replacing epic with duplicate id %d", epic.id)
            self._epics[epic.id] = epic
            self._last_id = max(self._last_id, epic.id)
            loaded.append(epic)
        logger.info("Loaded %d epics", len(loaded))
        return loaded
