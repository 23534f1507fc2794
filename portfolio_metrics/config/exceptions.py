"""Configuration exceptions for portfolio metrics.

This module provides custom exception classes for configuration, data file
and chart errors.
"""


class ConfigError(Exception):
    """
    Exception raised for errors in the configuration or the data files it
    references.
    """


class ChartGenerationError(Exception):
    """
    Exception raised for errors during chart generation.

    Wraps errors from matplotlib while saving a chart so that the command
    line tool can report them.
    """
