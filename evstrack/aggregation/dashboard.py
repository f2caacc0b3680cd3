# evstrack/aggregation/dashboard.py

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional

from evstrack.aggregation.compliance import (
    ComplianceTrend,
    LocationAverage,
    average_compliance,
    compliance_trend,
    low_performing_locations,
)
from evstrack.aggregation.inspectors import InspectorActivity, inspector_activity, top_inspector
from evstrack.aggregation.windows import Period, Window, trailing_window
from evstrack.models.cdr import CDR, CDRStatus
from evstrack.models.penalty import PenaltyInvoice, PenaltyStatus
from evstrack.models.reference import RiskCategory
from evstrack.models.report import InspectionReport
from evstrack.reference.data import ReferenceData
from evstrack.scoring.compliance import report_compliance


@dataclass(frozen=True)
class SupervisorSummary:
    month_compliance: float
    trend: ComplianceTrend
    month_inspections: int
    pending_cdrs: int
    inspector_ranking: List[InspectorActivity]
    top_inspector: Optional[InspectorActivity]
    low_performing_locations: List[LocationAverage]


@dataclass(frozen=True)
class InspectorSummary:
    inspector_id: str
    total_reports: int
    total_cdrs: int
    zones_visited: int
    average_score: float
    risk_distribution: Dict[RiskCategory, int] = field(default_factory=dict)


@dataclass(frozen=True)
class InspectorMonthStats:
    inspector_id: str
    name: str
    count: int
    avg_score: float


@dataclass(frozen=True)
class MonthlyManagerReport:
    year: int
    month: int
    total_inspections: int
    overall_compliance: float
    total_violations: int
    total_penalty_amount: float
    inspector_stats: List[InspectorMonthStats]
    low_performing_locations: List[LocationAverage]


@dataclass(frozen=True)
class DailyCompliance:
    day: date
    average: Optional[float]
    report_count: int


def supervisor_summary(
    reports: Iterable[InspectionReport],
    cdrs: Iterable[CDR],
    reference: ReferenceData,
    now: datetime,
) -> SupervisorSummary:
    reports = list(reports)
    month = Window.current_month(now)
    month_reports = [r for r in reports if month.contains(r.date)]
    ranking = inspector_activity(reports, reference, now)

    return SupervisorSummary(
        month_compliance=average_compliance(month_reports, reference),
        trend=compliance_trend(reports, reference, month),
        month_inspections=len(month_reports),
        pending_cdrs=sum(1 for c in cdrs if c.status == CDRStatus.SUBMITTED),
        inspector_ranking=ranking,
        top_inspector=top_inspector(ranking),
        low_performing_locations=low_performing_locations(reports, reference),
    )


def inspector_summary(
    inspector_id: str,
    reports: Iterable[InspectionReport],
    cdrs: Iterable[CDR],
    reference: ReferenceData,
    now: datetime,
    period: Period = Period.LAST_7_DAYS,
) -> InspectorSummary:
    """
    Counts and average are all-time; the risk distribution covers the
    selected period only.
    """
    own = [r for r in reports if r.inspector_id == inspector_id]

    zones = set()
    for report in own:
        zone = reference.zone_for_location(report.location_id)
        zones.add(zone.id if zone else None)

    window = trailing_window(period, now)
    distribution = {category: 0 for category in RiskCategory}
    for report in own:
        if not window.contains(report.date):
            continue
        zone = reference.zone_for_location(report.location_id)
        if zone:
            distribution[zone.risk_category] += 1

    return InspectorSummary(
        inspector_id=inspector_id,
        total_reports=len(own),
        total_cdrs=sum(1 for c in cdrs if c.employee_id == inspector_id),
        zones_visited=len(zones),
        average_score=average_compliance(own, reference),
        risk_distribution=distribution,
    )


def daily_compliance_series(
    reports: Iterable[InspectionReport],
    reference: ReferenceData,
    now: datetime,
    days: int = 15,
) -> List[DailyCompliance]:
    """Average compliance per calendar day, oldest first; None on days without reports."""
    today = now.date()
    buckets: Dict[date, List[float]] = {
        today - timedelta(days=offset): [] for offset in range(days - 1, -1, -1)
    }

    for report in reports:
        day = report.date.date()
        if day in buckets:
            buckets[day].append(report_compliance(report, reference))

    return [
        DailyCompliance(
            day=day,
            average=(sum(scores) / len(scores)) if scores else None,
            report_count=len(scores),
        )
        for day, scores in buckets.items()
    ]


def monthly_manager_report(
    reports: Iterable[InspectionReport],
    cdrs: Iterable[CDR],
    invoices: Iterable[PenaltyInvoice],
    reference: ReferenceData,
    year: int,
    month: int,
) -> MonthlyManagerReport:
    """
    Executive summary for one calendar month.

    Every CDR filed in the month counts as a violation; the penalty total
    covers deducted invoices generated in the month. Inspectors are
    ranked by average score, best first, and include those with no
    reports (scored 0).
    """
    window = Window.calendar_month(year, month)
    month_reports = [r for r in reports if window.contains(r.date)]
    month_cdrs = [c for c in cdrs if window.contains(datetime.combine(c.date, time()))]
    deducted = [
        inv for inv in invoices
        if inv.status == PenaltyStatus.DEDUCTED and window.contains(inv.date_generated)
    ]

    inspector_stats = []
    for inspector in reference.inspectors():
        own = [r for r in month_reports if r.inspector_id == inspector.id]
        inspector_stats.append(InspectorMonthStats(
            inspector_id=inspector.id,
            name=inspector.name,
            count=len(own),
            avg_score=average_compliance(own, reference),
        ))
    inspector_stats.sort(key=lambda s: s.avg_score, reverse=True)

    return MonthlyManagerReport(
        year=year,
        month=month,
        total_inspections=len(month_reports),
        overall_compliance=average_compliance(month_reports, reference),
        total_violations=len(month_cdrs),
        total_penalty_amount=sum(inv.total_amount for inv in deducted),
        inspector_stats=inspector_stats,
        low_performing_locations=low_performing_locations(month_reports, reference),
    )
