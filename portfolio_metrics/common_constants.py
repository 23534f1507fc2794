"""Common constants used across portfolio metrics modules."""

from typing import Dict, Final, List

SPRINTS_PER_YEAR: Final[int] = 24

# Slider units 0-100, each unit is $100,000 (so $0 to $10M)
EBITDA_MAX: Final[int] = 100
EBITDA_UNIT_DOLLARS: Final[int] = 100000

INVOLVEMENT_LABELS: Final[List[str]] = ["Individual", "Half Team", "Full Team"]

DURATION_UNITS: Final[List[str]] = ["weeks", "months", "quarters", "years", "sprints"]
DURATION_UNIT_LABELS: Final[List[str]] = [
    "Weeks",
    "Months",
    "Quarters",
    "Years",
    "Sprints",
]
DURATION_RANGE_MAX: Final[Dict[str, int]] = {
    "weeks": 6,
    "months": 6,
    "quarters": 6,
    "years": 3,
    "sprints": 50,
}
DEFAULT_DURATION_UNIT: Final[str] = "months"

DEPENDENCY_LABELS: Final[List[str]] = [
    "Teams can work and deliver value independently",
    "Light collaboration with infrequent synchronization",
    "High collaboration between teams, but parallelization possible",
    "Phase gate, sequential coordination",
]
DEPENDENCY_ENVIRONMENT_MAX: Final[int] = 3

RISK_LABELS: Final[List[str]] = ["Low", "Medium", "High"]
RISK_VALUES: Final[List[str]] = ["low", "medium", "high"]
DEFAULT_RISK: Final[str] = "medium"

DEFAULT_STATUS: Final[str] = "High Level Shaping"
DEFAULT_SPRINT_START: Final[str] = "s01"
DEFAULT_SPRINT_END: Final[str] = "s25"
BOOTSTRAP_EPIC_NAME: Final[str] = "Bootstrap Epic"

# Visible sprint window: one year of sprints plus the blocked planning sprints
SPRINT_VIEWS: Final[List[str]] = ["1y", "2y"]
ONE_YEAR_SPRINT_COUNT: Final[int] = 27

CONFIDENCE_MODES: Final[List[str]] = ["ranges", "high"]

DEFAULT_METRICS: Final[List[Dict[str, str]]] = [
    {"id": "revenue-impact", "label": "Revenue Impact", "category": "financial"},
    {
        "id": "ebitda-contribution",
        "label": "EBITDA Contribution",
        "category": "financial",
    },
    {"id": "cost-reduction", "label": "Cost Reduction", "category": "financial"},
    {
        "id": "margin-improvement",
        "label": "Margin Improvement",
        "category": "financial",
    },
    {"id": "nps-satisfaction", "label": "NPS / Satisfaction", "category": "customer"},
    {
        "id": "support-ticket-reduction",
        "label": "Support Ticket Reduction",
        "category": "customer",
    },
    {"id": "feature-adoption", "label": "Feature Adoption", "category": "product"},
    {"id": "retention-rate", "label": "Retention Rate", "category": "product"},
    {"id": "churn-reduction", "label": "Churn Reduction", "category": "product"},
    {"id": "time-to-market", "label": "Time to Market", "category": "operational"},
    {
        "id": "operational-efficiency",
        "label": "Operational Efficiency",
        "category": "operational",
    },
    {"id": "risk-reduction", "label": "Risk Reduction", "category": "operational"},
    {"id": "market-expansion", "label": "Market Expansion", "category": "growth"},
    {"id": "user-growth", "label": "User Growth", "category": "growth"},
    {"id": "conversion-rate", "label": "Conversion Rate", "category": "growth"},
]

# Column names for the derived per-epic metrics table
METRIC_COLUMNS: Final[Dict[str, str]] = {
    "cost_of_delay": "Cost of Delay",
    "year_ebitda_total": "EBITDA Total",
    "cd3_range": "CD3 Range",
    "cd3_midpoint": "CD3 Midpoint",
    "cost_per_resource_per_sprint": "Cost Per Resource Per Sprint",
    "cost_per_sprint": "Cost Per Sprint",
    "teams_resources": "Teams / Resources",
    "total_sprints": "Total Sprints",
    "expected_start": "Expected Start",
    "expected_finish": "Expected Finish",
    "delivery": "Delivery",
    "total_cost": "Total Cost",
    "annualized_ebitda": "Annualized EBITDA",
}

# Data filename keys used in config parsing
DATA_FILENAME_KEYS: Final[List[str]] = [
    "metrics_data",
    "timeline_data",
    "summary_data",
]

# Chart filename keys used in config parsing
CHART_FILENAME_KEYS: Final[List[str]] = [
    "timeline_chart",
    "portfolio_export",
]
