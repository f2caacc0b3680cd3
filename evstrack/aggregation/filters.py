# evstrack/aggregation/filters.py

from typing import Iterable, List, Optional

from evstrack.aggregation.windows import Window
from evstrack.models.reference import RiskCategory
from evstrack.models.report import InspectionReport, ReportStatus
from evstrack.reference.data import ReferenceData


def filter_reports(
    reports: Iterable[InspectionReport],
    reference: ReferenceData,
    window: Optional[Window] = None,
    inspector_id: Optional[str] = None,
    zone_id: Optional[str] = None,
    risk_category: Optional[RiskCategory] = None,
    reference_query: Optional[str] = None,
    exclude_drafts: bool = False,
) -> List[InspectionReport]:
    """
    Report list filtering, newest first.

    A report whose location has no zone never matches a zone or risk
    filter.
    """
    selected = []
    for report in reports:
        if exclude_drafts and report.status == ReportStatus.DRAFT:
            continue
        if window is not None and not window.contains(report.date):
            continue
        if inspector_id and report.inspector_id != inspector_id:
            continue
        if reference_query and reference_query not in report.reference_number:
            continue

        if zone_id or risk_category:
            zone = reference.zone_for_location(report.location_id)
            if zone is None:
                continue
            if zone_id and zone.id != zone_id:
                continue
            if risk_category and zone.risk_category != risk_category:
                continue

        selected.append(report)

    return sorted(selected, key=lambda r: r.date, reverse=True)
