import argparse
import datetime
import logging
import os

from dotenv import load_dotenv

from .calculator import run_calculators
from .catalog import load_sprints, load_teams, parse_records, read_records
from .common_constants import CONFIDENCE_MODES, SPRINT_VIEWS
from .config import ConfigError, config_to_options
from .config.type_utils import force_date
from .config_main import CALCULATORS
from .epic_store import EpicStore
from .metrics import MetricsFacade
from .utils import set_chart_context

load_dotenv()

logger = logging.getLogger(__name__)


def _date_argument(value):
    try:
        return force_date("today", value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def configure_argument_parser():
    """Configure an ArgumentParser that manages command line options."""

    parser = argparse.ArgumentParser(
        description=(
            "Estimate cost, duration and value of a portfolio of epics "
            "and produce data and charts."
        )
    )

    # Basic options
    parser.add_argument("config", metavar="config.yml", nargs="?", help="Configuration file")
    parser.add_argument("-v", dest="verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "-vv",
        dest="very_verbose",
        action="store_true",
        help="Even more verbose output",
    )

    # Output directory
    parser.add_argument(
        "--output-directory",
        "-o",
        metavar="metrics",
        help="Write output files to this directory, rather than the current working directory.",
    )

    # Settings
    parser.add_argument(
        "--today",
        metavar="YYYY-MM-DD",
        type=_date_argument,
        help="Date used as today for in-year EBITDA totals",
    )
    parser.add_argument(
        "--sprint-view",
        dest="sprint_view",
        choices=SPRINT_VIEWS,
        help="Number of years of sprints to lay out timelines over",
    )
    parser.add_argument(
        "--confidence-mode",
        dest="confidence_mode",
        choices=CONFIDENCE_MODES,
        help="Show ranges, or collapse estimates to single values",
    )

    return parser


def main():
    parser = configure_argument_parser()
    args = parser.parse_args()
    run_command_line(parser, args)


def run_command_line(parser, args):
    if not args.config:
        parser.print_usage()
        return

    logging.basicConfig(
        format="[%(asctime)s %(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=(
            logging.DEBUG
            if args.very_verbose
            else logging.INFO if args.verbose else logging.WARNING
        ),
    )

    # Configuration and settings
    # (command line arguments override config file options)

    logger.debug("Parsing options from %s", args.config)
    try:
        with open(args.config, encoding="utf-8") as config:
            options = config_to_options(
                config.read(), cwd=os.path.dirname(os.path.abspath(args.config))
            )
    except FileNotFoundError:
        print(
            f"Error: Configuration file '{args.config}' not found. "
            "Please provide a valid config file."
        )
        return
    except ConfigError as e:
        print(f"Error: {e}")
        return

    # Allow command line arguments to override options
    override_options(options["settings"], args)
    settings = options["settings"]
    if settings["today"] is None:
        settings["today"] = datetime.date.today()

    # Data files are resolved before changing to the output directory
    try:
        metrics = load_portfolio(options["data"], settings)
    except ConfigError as e:
        print(f"Error: {e}")
        return

    if settings["sync_value_delivery"]:
        for epic in metrics.store:
            if metrics.sync_value_delivery(epic.id):
                logger.info("Synced value delivery of %s to its projected end", epic.name)

    # Set charting context, which determines how charts are rendered
    set_chart_context("paper")

    # Set output directory if required
    output_dir = None
    if "output_directory" in options:
        output_dir = options["output_directory"]
    if args.output_directory:
        output_dir = args.output_directory
    if output_dir:
        logger.info("Changing working directory to %s", output_dir)
        os.makedirs(output_dir, exist_ok=True)
        os.chdir(output_dir)

    run_calculators(CALCULATORS, metrics, settings)


def load_portfolio(data, settings):
    """Load the team and sprint catalogs and the epics named in `data`, and
    return a metrics facade over them.

    A store with no epics gets a starter epic.
    """
    teams = load_teams(data["teams"])
    for team in teams.out_of_band_teams():
        logger.warning(
            "Team %s has a size or cost per person outside the expected range", team.id
        )

    sprints = load_sprints(data["sprints"])
    store = EpicStore(
        sprints,
        default_start=settings["default_sprint_start"],
        default_end=settings["default_sprint_end"],
    )
    if data["portfolio"]:
        parse_records(
            read_records(data["portfolio"], "portfolio"),
            store.load_epics,
            data["portfolio"],
            "portfolio",
        )
    store.bootstrap_if_empty()

    return MetricsFacade(
        store,
        teams,
        sprint_view=settings["sprint_view"],
        high_confidence=settings["confidence_mode"] == "high",
    )


def override_options(options, arguments):
    """Update `options` dict with settings from `arguments`
    with the same key.
    """
    for key in options.keys():
        if getattr(arguments, key, None) is not None:
            options[key] = getattr(arguments, key)


if __name__ == "__main__":
    main()
