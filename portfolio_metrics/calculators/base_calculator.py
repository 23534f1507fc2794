"""Base calculator class with common functionality for portfolio metrics.

This module provides a base calculator class that contains functionality
shared across the calculators: writing tabular results in the format implied
by the output file extension and guarding charts against empty data.
"""

import logging
import os

import matplotlib.pyplot as plt

from ..calculator import Calculator
from ..config.exceptions import ChartGenerationError
from ..utils import get_extension

logger = logging.getLogger(__name__)


class BaseCalculator(Calculator):
    """Base calculator class with common functionality."""

    def check_chart_data_empty(self, chart_data, chart_name):
        """Check if chart data is empty and log warning if so."""
        if chart_data is None:
            return True

        if len(chart_data.index) == 0:
            logger.warning("Cannot draw %s chart with zero items", chart_name)
            return True

        return False

    def write_data_files(self, data, output_files, name):
        """Write a DataFrame to each output file, as JSON, Excel or CSV
        depending on the file extension.
        """
        for output_file in output_files:
            output_extension = get_extension(output_file)

            logger.info("Writing %s data to %s", name, output_file)
            if output_extension == ".json":
                data.to_json(output_file, date_format="iso", orient="records")
            elif output_extension == ".xlsx":
                data.to_excel(output_file, sheet_name=name.title()[:31], index=False)
            else:
                data.to_csv(output_file, header=True, index=False)

    def save_chart(self, fig, output_file):
        """Save a figure to file and close it."""
        try:
            output_dir = os.path.dirname(output_file)
            if output_dir and not os.path.exists(output_dir):
                os.makedirs(output_dir, exist_ok=True)

            fig.savefig(output_file, bbox_inches="tight", dpi=300)
        except OSError as e:
            logger.error("Error saving chart file: %s", e)
            raise ChartGenerationError(f"Failed to save chart file: {e}") from e
        except (ValueError, TypeError) as e:
            logger.error("Error saving chart: %s", e)
            raise ChartGenerationError(f"Failed to save chart: {e}") from e
        finally:
            plt.close(fig)
