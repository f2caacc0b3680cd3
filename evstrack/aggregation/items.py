# evstrack/aggregation/items.py

from dataclasses import dataclass
from typing import Dict, Iterable, List

from evstrack.models.reference import RiskCategory
from evstrack.models.report import InspectionReport
from evstrack.reference.data import ReferenceData


@dataclass(frozen=True)
class ItemStats:
    item_id: str
    name: str
    risk_tier: RiskCategory
    times_inspected: int
    avg_score: float
    avg_compliance: float
    max_score: int


def item_stats(
    reports: Iterable[InspectionReport],
    reference: ReferenceData,
    ascending: bool = True,
) -> Dict[RiskCategory, List[ItemStats]]:
    """
    Per-checklist-item statistics grouped by the form's risk tier, each
    group sorted by average compliance. Items that cannot be found on
    the report's form are skipped.
    """
    totals: Dict[str, dict] = {}

    for report in reports:
        form = reference.form_for_location(report.location_id)
        if form is None:
            continue
        for result in report.items:
            definition = form.item(result.item_id)
            if definition is None:
                continue
            entry = totals.setdefault(result.item_id, {
                "name": definition.name,
                "risk_tier": form.risk_tier,
                "max_score": definition.max_score,
                "count": 0,
                "score_sum": 0.0,
                "max_sum": 0,
            })
            entry["count"] += 1
            entry["score_sum"] += result.score
            entry["max_sum"] += definition.max_score

    grouped: Dict[RiskCategory, List[ItemStats]] = {tier: [] for tier in RiskCategory}
    for item_id, entry in totals.items():
        grouped[entry["risk_tier"]].append(ItemStats(
            item_id=item_id,
            name=entry["name"],
            risk_tier=entry["risk_tier"],
            times_inspected=entry["count"],
            avg_score=entry["score_sum"] / entry["count"],
            avg_compliance=(
                entry["score_sum"] / entry["max_sum"] * 100 if entry["max_sum"] > 0 else 0.0
            ),
            max_score=entry["max_score"],
        ))

    for tier in grouped:
        grouped[tier].sort(key=lambda s: s.avg_compliance, reverse=not ascending)
    return grouped
