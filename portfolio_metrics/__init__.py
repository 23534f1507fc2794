"""Portfolio Metrics - estimation of delivery, cost and value for portfolio epics.

This package provides an epic store with range and sprint calendar rules,
the range arithmetic behind delivery and cost estimates, and calculators
that tabulate and chart the derived metrics.
"""
