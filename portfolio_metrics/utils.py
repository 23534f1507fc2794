"""Utility functions for portfolio metrics.

Helpers for output files, chart styling and timestamp conversion.
"""

import datetime
import logging
import os.path

import seaborn as sns
from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


def get_extension(filename):
    """Get file extension from filename."""
    return os.path.splitext(filename)[1].lower()


def set_chart_context(context):
    """Set seaborn chart context."""
    sns.set_context(context)


def set_chart_style(style="whitegrid", despine=True):
    """Set seaborn chart style for the current figure."""
    sns.set_style(style)
    if despine:
        sns.despine()


def format_timestamp(value):
    """Format a datetime for export, passing ``None`` through."""
    if value is None:
        return None
    return value.isoformat()


def parse_timestamp(value):
    """Parse an exported timestamp into a datetime.

    Accepts datetimes, dates, epoch milliseconds (as written by the browser
    based planner) and date strings in any format ``dateutil`` understands.
    Returns ``None`` for missing values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, (int, float)):
        return datetime.datetime.fromtimestamp(value / 1000)
    return date_parser.parse(str(value))


def to_epoch_millis(value: datetime.datetime) -> int:
    """Convert a datetime to whole milliseconds since the epoch."""
    return int(value.timestamp() * 1000)
