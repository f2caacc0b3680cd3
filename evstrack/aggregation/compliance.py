# evstrack/aggregation/compliance.py

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from evstrack.aggregation.windows import Window
from evstrack.models.reference import RiskCategory
from evstrack.models.report import InspectionReport, ReportStatus
from evstrack.reference.data import ReferenceData
from evstrack.scoring.compliance import report_compliance
from evstrack.scoring.thresholds import (
    CRITICAL_COMPLIANCE_THRESHOLD,
    FAILED_ITEM_SCORE,
    LOW_PERFORMING_LOCATIONS_N,
)


@dataclass(frozen=True)
class ComplianceTrend:
    current: float
    previous: float
    delta: float


@dataclass(frozen=True)
class LocationAverage:
    location_id: str
    average: float
    report_count: int


@dataclass(frozen=True)
class CriticalReport:
    report: InspectionReport
    compliance: float
    failed_items: int


def _mean(values: List[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def average_compliance(reports: Iterable[InspectionReport], reference: ReferenceData) -> float:
    """Mean per-report compliance; 0 for no reports."""
    return _mean([report_compliance(r, reference) for r in reports])


def compliance_trend(
    reports: Iterable[InspectionReport],
    reference: ReferenceData,
    window: Window,
) -> ComplianceTrend:
    """
    Signed difference between the window's average and the average of
    the immediately preceding window.
    """
    reports = list(reports)
    previous_window = window.previous()

    current = average_compliance([r for r in reports if window.contains(r.date)], reference)
    previous = average_compliance(
        [r for r in reports if previous_window.contains(r.date)], reference
    )
    return ComplianceTrend(current=current, previous=previous, delta=current - previous)


def average_by_risk_category(
    reports: Iterable[InspectionReport],
    reference: ReferenceData,
) -> Dict[RiskCategory, float]:
    buckets: Dict[RiskCategory, List[float]] = {category: [] for category in RiskCategory}
    for report in reports:
        zone = reference.zone_for_location(report.location_id)
        if zone is None:
            continue
        buckets[zone.risk_category].append(report_compliance(report, reference))

    return {category: _mean(scores) for category, scores in buckets.items()}


def location_averages(
    reports: Iterable[InspectionReport],
    reference: ReferenceData,
    window: Optional[Window] = None,
) -> List[LocationAverage]:
    """Per-location mean compliance, in first-seen order."""
    scores: Dict[str, List[float]] = {}
    for report in reports:
        if window is not None and not window.contains(report.date):
            continue
        scores.setdefault(report.location_id, []).append(report_compliance(report, reference))

    return [
        LocationAverage(location_id=location_id, average=_mean(values), report_count=len(values))
        for location_id, values in scores.items()
    ]


def low_performing_locations(
    reports: Iterable[InspectionReport],
    reference: ReferenceData,
    n: int = LOW_PERFORMING_LOCATIONS_N,
    window: Optional[Window] = None,
) -> List[LocationAverage]:
    averages = location_averages(reports, reference, window=window)
    return sorted(averages, key=lambda entry: entry.average)[:n]


def critical_reports(
    reports: Iterable[InspectionReport],
    reference: ReferenceData,
    threshold: float = CRITICAL_COMPLIANCE_THRESHOLD,
) -> List[CriticalReport]:
    """Non-draft reports below the threshold, newest first."""
    critical = []
    for report in reports:
        if report.status == ReportStatus.DRAFT:
            continue
        compliance = report_compliance(report, reference)
        if compliance >= threshold:
            continue
        failed = sum(1 for item in report.items if item.score < FAILED_ITEM_SCORE)
        critical.append(CriticalReport(report=report, compliance=compliance, failed_items=failed))

    return sorted(critical, key=lambda entry: entry.report.date, reverse=True)


def latest_report_date(reports: Iterable[InspectionReport]) -> Optional[datetime]:
    dates = [r.date for r in reports]
    return max(dates) if dates else None
