# evstrack/scoring/compliance.py

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from evstrack.models.reference import InspectionForm
from evstrack.models.report import InspectionReport
from evstrack.reference.data import ReferenceData
from evstrack.scoring.thresholds import (
    FAIR_COMPLIANCE_THRESHOLD,
    GOOD_COMPLIANCE_THRESHOLD,
)


class ScoreResolution(str, Enum):
    RESOLVED = "RESOLVED"
    UNRESOLVED_LOCATION = "UNRESOLVED_LOCATION"
    UNRESOLVED_FORM = "UNRESOLVED_FORM"


class ComplianceBand(str, Enum):
    GOOD = "GOOD"
    FAIR = "FAIR"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class ComplianceScore:
    percentage: float
    actual_score: float
    max_score: int
    resolution: ScoreResolution

    @property
    def resolved(self) -> bool:
        return self.resolution == ScoreResolution.RESOLVED


def compute_compliance(report: InspectionReport, form: Optional[InspectionForm]) -> float:
    """
    Achieved score as a percentage of the form's maximum.
    Unrounded. An unknown form or an empty form scores 0.
    """
    if form is None:
        return 0.0

    max_score = form.max_score
    if max_score <= 0:
        return 0.0

    return (report.actual_score / max_score) * 100


def score_report(report: InspectionReport, reference: ReferenceData) -> ComplianceScore:
    """
    Score a report against its location's form.

    Missing reference data degrades to a zero score; the resolution
    field tells an integrity gap apart from a genuine zero.
    """
    location = reference.location(report.location_id)
    if location is None:
        return ComplianceScore(0.0, report.actual_score, 0, ScoreResolution.UNRESOLVED_LOCATION)

    form = reference.form(location.form_id)
    if form is None:
        return ComplianceScore(0.0, report.actual_score, 0, ScoreResolution.UNRESOLVED_FORM)

    return ComplianceScore(
        percentage=compute_compliance(report, form),
        actual_score=report.actual_score,
        max_score=form.max_score,
        resolution=ScoreResolution.RESOLVED,
    )


def report_compliance(report: InspectionReport, reference: ReferenceData) -> float:
    return score_report(report, reference).percentage


def compliance_band(percentage: float) -> ComplianceBand:
    if percentage >= GOOD_COMPLIANCE_THRESHOLD:
        return ComplianceBand.GOOD
    if percentage >= FAIR_COMPLIANCE_THRESHOLD:
        return ComplianceBand.FAIR
    return ComplianceBand.CRITICAL
