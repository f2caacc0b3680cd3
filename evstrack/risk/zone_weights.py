# evstrack/risk/zone_weights.py

from typing import Optional

from evstrack.models.reference import RiskCategory
from evstrack.scoring.thresholds import ZONE_MULTIPLIERS


def zone_multiplier(category: Optional[RiskCategory]) -> float:
    """High 1.5, Medium 1.2; Low or an unknown zone 1.0."""
    if category is None:
        return 1.0
    return ZONE_MULTIPLIERS.get(RiskCategory(category).value, 1.0)
