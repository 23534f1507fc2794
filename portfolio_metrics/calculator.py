"""Calculator pipeline.

A calculator computes one result from the portfolio in ``run()`` and writes
output files for it in ``write()``. Calculators run in order and can read the
results of the ones before them with :meth:`Calculator.get_result`.
"""

import logging

logger = logging.getLogger(__name__)


class Calculator:
    """Base class for calculators."""

    def __init__(self, metrics, settings, results):
        """Initialise with a metrics facade, a dict of settings and the
        results of the calculators run so far, keyed by calculator class.
        """
        self.metrics = metrics
        self.settings = settings
        self.results = results

    def get_result(self, calculator=None, default=None):
        """Get the result of another calculator, or of this one if no
        calculator class is given.
        """
        return self.results.get(calculator or self.__class__, default)

    def run(self):
        """Run the calculation and return its result."""
        return None

    def write(self):
        """Write output files for the result, if configured."""


def run_calculators(calculators, metrics, settings):
    """Run each calculator in turn, then write the output of each.

    Returns:
        A dict of results keyed by calculator class.
    """
    results = {}

    logger.info("Running calculators")
    for c in calculators:
        logger.info("%s running...", c.__name__)
        calculator = c(metrics, settings, results)
        results[c] = calculator.run()
        logger.info("%s completed", c.__name__)

    logger.info("Writing output files")
    for c in calculators:
        logger.info("%s writing...", c.__name__)
        calculator = c(metrics, settings, results)
        calculator.write()

    return results
