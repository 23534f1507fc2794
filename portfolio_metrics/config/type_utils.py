"""Type utilities for configuration processing.

This module provides utilities for type conversion and validation in
configuration files.
"""

import datetime

from dateutil import parser as date_parser

from .exceptions import ConfigError


def force_list(val) -> list:
    """
    Ensure the value is a list.
    """
    return list(val) if isinstance(val, (list, tuple)) else [val]


def force_date(key, value) -> datetime.date:
    """
    Ensure value is a datetime.date, parsing strings. Raise ConfigError
    otherwise.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return date_parser.parse(value).date()
        except (ValueError, OverflowError):
            pass
    raise ConfigError(f"Value `{value}` for key `{expand_key(key)}` is not a date")


def force_choice(key, value, choices) -> str:
    """
    Ensure value is one of `choices` (case-insensitive), raise ConfigError
    otherwise.
    """
    normalized = str(value).strip().lower()
    if normalized not in choices:
        raise ConfigError(
            f"Value `{value}` for key `{expand_key(key)}` must be one of "
            f"{', '.join(choices)}"
        )
    return normalized


def expand_key(key) -> str:
    """
    Expand config key for display.
    """
    return str(key).replace("_", " ").lower()
