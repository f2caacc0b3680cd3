# evstrack/scoring/thresholds.py

"""
Centralized scoring thresholds.

This file must NOT import from any other scoring, aggregation or risk
modules. They import their constants from here.
"""

# Submitted reports below this compliance are critical.
CRITICAL_COMPLIANCE_THRESHOLD = 75.0

# An item scored below this counts as failed on a critical report.
FAILED_ITEM_SCORE = 3

GOOD_COMPLIANCE_THRESHOLD = 90.0
FAIR_COMPLIANCE_THRESHOLD = 75.0

# Risk hotspot inputs
DEFAULT_LAST_INSPECTION_SCORE = 70.0
DEFAULT_DAYS_SINCE_INSPECTION = 30
RECENT_CDR_WINDOW_DAYS = 30
CDR_WEIGHT = 10

# Risk hotspot key-factor triggers
LOW_SCORE_FACTOR_THRESHOLD = 85.0
OVERDUE_FACTOR_DAYS = 14

ZONE_MULTIPLIERS = {
    "High": 1.5,
    "Medium": 1.2,
    "Low": 1.0,
}

HOTSPOT_TOP_N = 3
LOW_PERFORMING_LOCATIONS_N = 5

# Risk index display levels
SEVERE_RISK_INDEX = 60.0
ELEVATED_RISK_INDEX = 40.0
