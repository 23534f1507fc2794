"""Timeline calculator for portfolio metrics.

This module lays out the execution envelope of every epic over the visible
sprint window and draws it as a Gantt style chart.
"""

import logging

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from ..utils import set_chart_style
from .base_calculator import BaseCalculator

logger = logging.getLogger(__name__)

SEGMENTS = [
    ("segment_a", "Minimum execution"),
    ("segment_b", "Start slack"),
    ("segment_c", "Maximum execution"),
]


class TimelineCalculator(BaseCalculator):
    """Build a DataFrame with one row per timeline segment of each epic.
    Epics without a delivery estimate (no teams) have no rows.

    Write as a data file and/or a chart.
    """

    COLUMNS = [
        "Epic ID",
        "Epic",
        "Segment",
        "Start index",
        "End index",
        "Start sprint",
        "End sprint",
    ]

    def run(self):
        today = self.settings.get("today")
        visible = self.metrics.visible_sprints()
        rows = []

        if not visible:
            logger.warning("No sprints to lay out a timeline over")
            return pd.DataFrame(rows, columns=self.COLUMNS)

        for epic in self.metrics.store.epics:
            timeline = self.metrics.epic_metrics(epic.id, today=today).timeline
            if timeline is None:
                logger.debug("Epic %s has no delivery estimate", epic.name)
                continue
            for attribute, label in SEGMENTS:
                segment = getattr(timeline, attribute)
                rows.append(
                    [
                        epic.id,
                        epic.name,
                        label,
                        segment.start_idx,
                        segment.end_idx,
                        visible[segment.start_idx].id,
                        visible[segment.end_idx].id,
                    ]
                )

        return pd.DataFrame(rows, columns=self.COLUMNS)

    def write(self):
        data = self.get_result()

        if self.settings.get("timeline_data"):
            self.write_data_files(data, self.settings["timeline_data"], "timeline")
        else:
            logger.debug("No output file specified for timeline data")

        if self.settings.get("timeline_chart"):
            self.write_chart(data, self.settings["timeline_chart"])
        else:
            logger.debug("No output file specified for timeline chart")

    def write_chart(self, data, output_file):
        """Draw one bar per epic, split into its three segments."""
        if self.check_chart_data_empty(data, "timeline"):
            return

        visible = self.metrics.visible_sprints()
        epics = list(dict.fromkeys(zip(data["Epic ID"], data["Epic"])))
        colors = dict(zip([label for _, label in SEGMENTS], sns.color_palette("Blues", 3)))

        fig, ax = plt.subplots(figsize=(max(8, len(visible) * 0.4), max(2, len(epics) * 0.6)))

        for i, sprint in enumerate(visible):
            if sprint.is_blocked:
                ax.axvspan(i, i + 1, color="lightgrey", alpha=0.5, linewidth=0)

        for y, (epic_id, _) in enumerate(epics):
            epic_rows = data[data["Epic ID"] == epic_id]
            for _, row in epic_rows.iterrows():
                width = row["End index"] - row["Start index"]
                if width <= 0:
                    continue
                ax.broken_barh(
                    [(row["Start index"] + 0.5, width)],
                    (y - 0.3, 0.6),
                    facecolors=colors[row["Segment"]],
                    label=row["Segment"],
                )

        ax.set_yticks(range(len(epics)))
        ax.set_yticklabels([name for _, name in epics])
        ax.invert_yaxis()
        ax.set_xlim(0, len(visible))
        ax.set_xticks([i + 0.5 for i in range(len(visible))])
        ax.set_xticklabels([s.label for s in visible], rotation=90, size="small")
        ax.set_xlabel("Sprint")

        handles, labels = ax.get_legend_handles_labels()
        by_label = dict(zip(labels, handles))
        if by_label:
            ax.legend(by_label.values(), by_label.keys(), loc="center left", bbox_to_anchor=(1, 0.5))

        chart_title = self.settings.get("timeline_chart_title")
        if chart_title:
            ax.set_title(chart_title)

        set_chart_style()

        logger.info("Writing timeline chart to %s", output_file)
        self.save_chart(fig, output_file)
