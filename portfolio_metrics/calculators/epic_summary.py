"""Epic summary calculator for portfolio metrics.

This module formats the metrics of every epic as short, human readable text,
one row per epic, for sharing in a spreadsheet or a planning review.
"""

import logging

import pandas as pd

from ..common_constants import (
    DEFAULT_METRICS,
    DEPENDENCY_LABELS,
    DURATION_UNIT_LABELS,
    DURATION_UNITS,
    INVOLVEMENT_LABELS,
    METRIC_COLUMNS,
    RISK_LABELS,
    RISK_VALUES,
)
from ..confidence import (
    display_value_for_annualized_ebitda,
    display_value_for_duration,
    display_value_for_in_year_ebitda,
    display_value_for_sprint_range,
)
from ..metrics import (
    MISSING_VALUE,
    ebitda_slider_to_dollars,
    format_currency,
    format_range,
    format_sprint_range,
    sprint_index_in_list,
)
from ..models import Bounds
from .base_calculator import BaseCalculator

logger = logging.getLogger(__name__)

METRIC_LABELS = {m["id"]: m["label"] for m in DEFAULT_METRICS}
DURATION_UNIT_NAMES = dict(zip(DURATION_UNITS, DURATION_UNIT_LABELS))
RISK_NAMES = dict(zip(RISK_VALUES, RISK_LABELS))


def _currency_range(bounds, suffix=""):
    if bounds is None:
        return MISSING_VALUE
    return format_range(bounds.min, bounds.max, format_currency) + suffix


def _label(labels, index):
    if isinstance(index, int) and 0 <= index < len(labels):
        return labels[index]
    return str(index)


class EpicSummaryCalculator(BaseCalculator):
    """Build a DataFrame of formatted metrics with one row per epic.

    Write as a data file.
    """

    def run(self):
        today = self.settings.get("today")
        high_confidence = self.settings.get("confidence_mode") == "high"
        rows = []

        for epic in self.metrics.store.epics:
            m = self.metrics.epic_metrics(epic.id, today=today)
            row = {
                "Epic": epic.name,
                "Status": epic.status,
                "Objective": epic.initiative_objective or MISSING_VALUE,
                "Teams": self._format_teams(epic, high_confidence),
                "Dependency environment": _label(
                    DEPENDENCY_LABELS, epic.dependency_environment
                ),
            }
            row.update(self._format_metrics(epic, m, high_confidence))
            row["In-year EBITDA"] = self._format_in_year_ebitda(epic, high_confidence)
            row["Success metrics"] = (
                ", ".join(METRIC_LABELS.get(i, i) for i in epic.metrics) or MISSING_VALUE
            )
            row["Open todos"] = self._format_todos(epic)
            rows.append(row)

        return pd.DataFrame(rows, columns=self.columns())

    @staticmethod
    def columns():
        return (
            ["Epic", "Status", "Objective", "Teams", "Dependency environment"]
            + list(METRIC_COLUMNS.values())
            + ["In-year EBITDA", "Success metrics", "Open todos"]
        )

    def _format_teams(self, epic, high_confidence):
        parts = []
        for assignment in epic.team_assignments:
            team = self.metrics.teams.get(assignment.team_id)
            name = team.name if team is not None else assignment.team_id
            unit = DURATION_UNIT_NAMES.get(assignment.duration_unit, assignment.duration_unit)
            if high_confidence:
                duration = str(display_value_for_duration(assignment))
            else:
                duration = format_range(assignment.duration_min, assignment.duration_max)
            involvement = _label(INVOLVEMENT_LABELS, assignment.involvement)
            parts.append(f"{name} ({involvement}, {duration} {unit})")
        return "; ".join(parts) or MISSING_VALUE

    def _format_metrics(self, epic, m, high_confidence):
        visible = self.metrics.visible_sprints()
        sprints = self.metrics.sprints

        def sprint_range(start_id, end_id):
            if not start_id or not visible:
                return MISSING_VALUE
            return format_sprint_range(
                sprint_index_in_list(start_id, visible, sprints),
                sprint_index_in_list(end_id or start_id, visible, sprints),
                visible,
            )

        start_id, end_id = m.expected_start
        annualized = m.annualized_ebitda
        if high_confidence:
            start_id = end_id = display_value_for_sprint_range(epic.expected_delivery_start)
            single = ebitda_slider_to_dollars(
                display_value_for_annualized_ebitda(epic.annualized_ebitda)
            )
            annualized = Bounds(single, single)

        has_teams = m.teams > 0
        values = {
            "cost_of_delay": _currency_range(m.cost_of_delay, "/sprint"),
            "year_ebitda_total": _currency_range(m.year_ebitda_total),
            "cd3_range": format_range(m.cd3_min, m.cd3_max, format_currency),
            "cd3_midpoint": (
                MISSING_VALUE if m.cd3_midpoint is None else format_currency(m.cd3_midpoint)
            ),
            "cost_per_resource_per_sprint": _currency_range(m.cost_per_resource_per_sprint),
            "cost_per_sprint": _currency_range(m.cost_per_sprint) if has_teams else MISSING_VALUE,
            "teams_resources": (
                f"{m.teams} teams / {format_range(m.resources.min, m.resources.max)} people"
            ),
            "total_sprints": (
                MISSING_VALUE
                if m.total_sprints is None
                else f"{format_range(m.total_sprints.min, m.total_sprints.max)} total"
            ),
            "expected_start": sprint_range(start_id, end_id),
            "expected_finish": (
                MISSING_VALUE if m.expected_finish is None else sprint_range(*m.expected_finish)
            ),
            "delivery": (
                MISSING_VALUE
                if m.delivery is None
                else f"{format_range(m.delivery.min, m.delivery.max)} sprints"
            ),
            "total_cost": _currency_range(m.total_cost),
            "annualized_ebitda": _currency_range(annualized),
        }
        return {METRIC_COLUMNS[key]: value for key, value in values.items()}

    @staticmethod
    def _format_in_year_ebitda(epic, high_confidence):
        if not epic.in_year_ebitda_set:
            return MISSING_VALUE
        if high_confidence:
            single = display_value_for_in_year_ebitda(epic.in_year_ebitda, epic.annualized_ebitda)
            return format_currency(ebitda_slider_to_dollars(single))
        return format_range(
            ebitda_slider_to_dollars(epic.in_year_ebitda.min),
            ebitda_slider_to_dollars(epic.in_year_ebitda.max),
            format_currency,
        )

    @staticmethod
    def _format_todos(epic):
        todos = [
            f"{todo.text} ({RISK_NAMES.get(todo.risk, todo.risk)})"
            for assignment in epic.team_assignments
            for todo in assignment.todos
        ]
        return "; ".join(todos) or MISSING_VALUE

    def write(self):
        output_files = self.settings.get("summary_data")
        if not output_files:
            logger.debug("No output file specified for epic summary data")
            return

        data = self.get_result()
        if data is None or len(data.index) == 0:
            logger.warning("No epics to write a summary for")
            return

        self.write_data_files(data, output_files, "summary")
