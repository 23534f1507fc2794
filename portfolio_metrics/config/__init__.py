"""Configuration module for portfolio metrics.

This module provides configuration loading and error handling utilities.
"""

from .exceptions import ChartGenerationError, ConfigError
from .loader import config_to_options

__all__ = ["config_to_options", "ConfigError", "ChartGenerationError"]
