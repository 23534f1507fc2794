from .calculators.epic_metrics import EpicMetricsCalculator
from .calculators.epic_summary import EpicSummaryCalculator
from .calculators.portfolio_export import PortfolioExportCalculator
from .calculators.timeline import TimelineCalculator

CALCULATORS = (
    EpicMetricsCalculator,
    EpicSummaryCalculator,
    TimelineCalculator,
    PortfolioExportCalculator,
)
