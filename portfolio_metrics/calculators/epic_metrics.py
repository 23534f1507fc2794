"""Epic metrics calculator for portfolio metrics.

This module tabulates the derived metrics of every epic in the portfolio.
"""

import logging

import pandas as pd

from ..confidence import (
    display_value_for_annualized_ebitda,
    display_value_for_sprint_range,
)
from ..metrics import ebitda_slider_to_dollars
from .base_calculator import BaseCalculator

logger = logging.getLogger(__name__)


def _edges(bounds):
    if bounds is None:
        return None, None
    return bounds.min, bounds.max


class EpicMetricsCalculator(BaseCalculator):
    """Build a DataFrame with one row per epic and a min and max column for
    each ranged metric.

    In high confidence mode the annualized EBITDA and expected start columns
    show the single value used in place of the range.
    """

    COLUMNS = [
        "Epic ID",
        "Epic",
        "Status",
        "Teams",
        "Resources min",
        "Resources max",
        "Delivery min",
        "Delivery max",
        "Expected start",
        "Expected start max",
        "Expected finish min",
        "Expected finish max",
        "Value delivery start",
        "Value delivery end",
        "Cost per resource per sprint min",
        "Cost per resource per sprint max",
        "Cost per sprint min",
        "Cost per sprint max",
        "Total sprints min",
        "Total sprints max",
        "Total cost min",
        "Total cost max",
        "Annualized EBITDA min",
        "Annualized EBITDA max",
        "Cost of delay min",
        "Cost of delay max",
        "CD3 min",
        "CD3 max",
        "CD3 midpoint",
        "EBITDA total min",
        "EBITDA total max",
    ]

    def run(self):
        today = self.settings.get("today")
        high_confidence = self.settings.get("confidence_mode") == "high"
        rows = []

        for epic in self.metrics.store.epics:
            m = self.metrics.epic_metrics(epic.id, today=today)
            annualized = (m.annualized_ebitda.min, m.annualized_ebitda.max)
            expected_start = m.expected_start
            if high_confidence:
                single = ebitda_slider_to_dollars(
                    display_value_for_annualized_ebitda(epic.annualized_ebitda)
                )
                annualized = (single, single)
                start = display_value_for_sprint_range(epic.expected_delivery_start)
                expected_start = (start, start)
            finish = m.expected_finish or (None, None)

            rows.append(
                [
                    m.epic_id,
                    m.name,
                    m.status,
                    m.teams,
                    m.resources.min,
                    m.resources.max,
                    *_edges(m.delivery),
                    *expected_start,
                    *finish,
                    *m.value_delivery,
                    *_edges(m.cost_per_resource_per_sprint),
                    *_edges(m.cost_per_sprint),
                    *_edges(m.total_sprints),
                    *_edges(m.total_cost),
                    *annualized,
                    m.cost_of_delay.min,
                    m.cost_of_delay.max,
                    m.cd3_min,
                    m.cd3_max,
                    m.cd3_midpoint,
                    *_edges(m.year_ebitda_total),
                ]
            )

        return pd.DataFrame(rows, columns=self.COLUMNS)

    def write(self):
        output_files = self.settings.get("metrics_data")
        if not output_files:
            logger.debug("No output file specified for epic metrics data")
            return

        data = self.get_result()
        if data is None or len(data.index) == 0:
            logger.warning("No epics to write metrics for")
            return

        self.write_data_files(data, output_files, "metrics")
