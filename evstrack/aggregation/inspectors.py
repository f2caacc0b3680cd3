# evstrack/aggregation/inspectors.py

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from evstrack.aggregation.compliance import average_compliance, latest_report_date
from evstrack.aggregation.windows import Window
from evstrack.models.report import InspectionReport
from evstrack.reference.data import ReferenceData


@dataclass(frozen=True)
class InspectorActivity:
    inspector_id: str
    name: str
    total_reports: int
    month_reports: int
    avg_score: float
    last_active_date: Optional[datetime]


def inspector_activity(
    reports: Iterable[InspectionReport],
    reference: ReferenceData,
    now: datetime,
) -> List[InspectorActivity]:
    """
    Activity per inspector, ranked by reports this calendar month and
    then by all-time reports. Inspectors with no reports are included.
    """
    reports = list(reports)
    month = Window.current_month(now)

    activity = []
    for inspector in reference.inspectors():
        own = [r for r in reports if r.inspector_id == inspector.id]
        activity.append(InspectorActivity(
            inspector_id=inspector.id,
            name=inspector.name,
            total_reports=len(own),
            month_reports=sum(1 for r in own if month.contains(r.date)),
            avg_score=average_compliance(own, reference),
            last_active_date=latest_report_date(own),
        ))

    # stable sort keeps reference order on full ties
    return sorted(activity, key=lambda a: (-a.month_reports, -a.total_reports))


def top_inspector(ranking: List[InspectorActivity]) -> Optional[InspectorActivity]:
    if ranking and ranking[0].month_reports > 0:
        return ranking[0]
    return None
