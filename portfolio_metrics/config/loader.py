"""Configuration loader for portfolio metrics."""

import logging
import os.path

import yaml

from ..common_constants import (
    CHART_FILENAME_KEYS,
    CONFIDENCE_MODES,
    DATA_FILENAME_KEYS,
    DEFAULT_SPRINT_END,
    DEFAULT_SPRINT_START,
    SPRINT_VIEWS,
)
from .exceptions import ConfigError
from .type_utils import expand_key, force_choice, force_date, force_list
from .yaml_utils import ordered_load

logger = logging.getLogger(__name__)

PACKAGE_DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")
DEFAULT_TEAMS_FILE = os.path.join(PACKAGE_DATA_DIR, "teams.json")
DEFAULT_SPRINTS_FILE = os.path.join(PACKAGE_DATA_DIR, "sprints.json")

# Data file keys and the environment variables used when they are not set
DATA_FILE_KEYS = [
    ("teams", "PORTFOLIO_TEAMS_FILE", DEFAULT_TEAMS_FILE),
    ("sprints", "PORTFOLIO_SPRINTS_FILE", DEFAULT_SPRINTS_FILE),
    ("portfolio", "PORTFOLIO_FILE", None),
]


def _create_default_options():
    """Create default options dictionary."""
    return {
        "data": {
            key: os.environ.get(env_var) or default
            for key, env_var, default in DATA_FILE_KEYS
        },
        "settings": {
            "sprint_view": "1y",
            "confidence_mode": "ranges",
            "today": None,
            "default_sprint_start": DEFAULT_SPRINT_START,
            "default_sprint_end": DEFAULT_SPRINT_END,
            "sync_value_delivery": False,
            "metrics_data": None,
            "timeline_data": None,
            "summary_data": None,
            "timeline_chart": None,
            "timeline_chart_title": None,
            "portfolio_export": None,
        },
    }


def _resolve_path(cwd, filename):
    if cwd is None or os.path.isabs(filename):
        return filename
    return os.path.abspath(os.path.join(cwd, filename.replace("/", os.path.sep)))


def _parse_data_config(config, options, cwd):
    """Parse data file configuration. Paths are relative to the config file."""
    if "data" not in config or config["data"] is None:
        return

    data_config = config["data"]
    for key, _, _ in DATA_FILE_KEYS:
        if key in data_config and data_config[key]:
            options["data"][key] = _resolve_path(cwd, str(data_config[key]))


def _parse_settings_config(config, options):
    """Parse settings configuration."""
    if "settings" not in config or config["settings"] is None:
        return

    settings_config = config["settings"]
    settings = options["settings"]

    if expand_key("sprint_view") in settings_config:
        settings["sprint_view"] = force_choice(
            "sprint_view", settings_config[expand_key("sprint_view")], SPRINT_VIEWS
        )

    if expand_key("confidence_mode") in settings_config:
        settings["confidence_mode"] = force_choice(
            "confidence_mode",
            settings_config[expand_key("confidence_mode")],
            CONFIDENCE_MODES,
        )

    if "today" in settings_config:
        settings["today"] = force_date("today", settings_config["today"])

    for key in ["default_sprint_start", "default_sprint_end"]:
        if expand_key(key) in settings_config:
            settings[key] = str(settings_config[expand_key(key)])

    if expand_key("sync_value_delivery") in settings_config:
        settings["sync_value_delivery"] = bool(
            settings_config[expand_key("sync_value_delivery")]
        )


def _parse_output_config(config, options):
    """Parse output configuration."""
    if "output" not in config or config["output"] is None:
        return

    output_config = config["output"]
    settings = options["settings"]

    if expand_key("output_directory") in output_config:
        options["output_directory"] = output_config[expand_key("output_directory")]

    for key in CHART_FILENAME_KEYS:
        if expand_key(key) in output_config:
            settings[key] = os.path.basename(output_config[expand_key(key)])

    for key in DATA_FILENAME_KEYS:
        if expand_key(key) in output_config:
            settings[key] = list(
                map(os.path.basename, force_list(output_config[expand_key(key)]))
            )

    if expand_key("timeline_chart_title") in output_config:
        settings["timeline_chart_title"] = str(
            output_config[expand_key("timeline_chart_title")]
        )


def config_to_options(data, cwd=None, extended=False, _visited_files=None):
    """
    Parse YAML config data and return options dict.
    """
    if _visited_files is None:
        _visited_files = set()

    try:
        config = ordered_load(data, yaml.SafeLoader)
    except yaml.YAMLError as e:
        raise ConfigError("Unable to parse YAML configuration file.") from e

    if config is None:
        raise ConfigError("Configuration file is empty") from None

    options = _create_default_options()

    if "extends" in config:
        if cwd is None:
            raise ConfigError("`extends` is not supported here.")

        extends_filename = _resolve_path(cwd, str(config["extends"]))

        if not os.path.exists(extends_filename):
            raise ConfigError(
                f"File `{extends_filename}` referenced in `extends` not found."
            ) from None

        if extends_filename in _visited_files:
            raise ConfigError(
                f"Circular extends reference detected: {extends_filename}"
            ) from None

        _visited_files.add(extends_filename)

        logger.debug("Extending file %s", extends_filename)
        with open(extends_filename, encoding="utf-8") as extends_file:
            options = config_to_options(
                extends_file.read(),
                cwd=os.path.dirname(extends_filename),
                extended=True,
                _visited_files=_visited_files,
            )

    _parse_data_config(config, options, cwd)
    _parse_settings_config(config, options)
    _parse_output_config(config, options)

    if not extended and not options["data"]["portfolio"]:
        logger.warning(
            "No `Portfolio` file configured. A starter epic will be used instead."
        )

    return options
