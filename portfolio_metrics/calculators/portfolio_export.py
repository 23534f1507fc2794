"""Portfolio export calculator for portfolio metrics.

This module writes every epic, including its history logs and snapshots, to
a JSON file that can be loaded back as a portfolio.
"""

import json
import logging

from ..calculator import Calculator

logger = logging.getLogger(__name__)


class PortfolioExportCalculator(Calculator):
    """Export the portfolio as a list of plain epic records."""

    def run(self):
        return self.metrics.store.export_epics()

    def write(self):
        output_file = self.settings.get("portfolio_export")
        if not output_file:
            logger.debug("No output file specified for portfolio export")
            return

        logger.info("Writing portfolio export to %s", output_file)
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(self.get_result(), f, indent=2)
