# evstrack/risk/hotspots.py

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional

from evstrack.models.cdr import CDR
from evstrack.models.reference import Location, Zone
from evstrack.models.report import InspectionReport
from evstrack.reference.data import ReferenceData
from evstrack.risk.zone_weights import zone_multiplier
from evstrack.scoring.compliance import report_compliance
from evstrack.scoring.thresholds import (
    CDR_WEIGHT,
    DEFAULT_DAYS_SINCE_INSPECTION,
    DEFAULT_LAST_INSPECTION_SCORE,
    ELEVATED_RISK_INDEX,
    HOTSPOT_TOP_N,
    LOW_SCORE_FACTOR_THRESHOLD,
    OVERDUE_FACTOR_DAYS,
    RECENT_CDR_WINDOW_DAYS,
    SEVERE_RISK_INDEX,
)


class KeyFactorKind(str, Enum):
    LOW_LAST_SCORE = "LOW_LAST_SCORE"
    OVERDUE_INSPECTION = "OVERDUE_INSPECTION"
    RECENT_CDRS = "RECENT_CDRS"


class HotspotLevel(str, Enum):
    SEVERE = "SEVERE"
    ELEVATED = "ELEVATED"
    WATCH = "WATCH"


@dataclass(frozen=True)
class KeyFactor:
    kind: KeyFactorKind
    value: float
    description: str


@dataclass(frozen=True)
class HotspotScore:
    location_id: str
    risk_index: float
    last_inspection_score: float
    days_since_inspection: int
    recent_cdr_count: int
    key_factors: List[KeyFactor] = field(default_factory=list)

    @property
    def level(self) -> HotspotLevel:
        if self.risk_index > SEVERE_RISK_INDEX:
            return HotspotLevel.SEVERE
        if self.risk_index > ELEVATED_RISK_INDEX:
            return HotspotLevel.ELEVATED
        return HotspotLevel.WATCH


def risk_index(
    last_inspection_score: float,
    days_since_inspection: float,
    recent_cdr_count: int,
    zone: Optional[Zone],
) -> float:
    base = (
        (100 - last_inspection_score)
        + (days_since_inspection / 2)
        + (recent_cdr_count * CDR_WEIGHT)
    )
    return base * zone_multiplier(zone.risk_category if zone else None)


def _key_factors(last_score: float, days_since: int, cdr_count: int) -> List[KeyFactor]:
    factors = []
    if last_score < LOW_SCORE_FACTOR_THRESHOLD:
        factors.append(KeyFactor(
            KeyFactorKind.LOW_LAST_SCORE, last_score, f"Low last score: {last_score:.1f}%"
        ))
    if days_since > OVERDUE_FACTOR_DAYS:
        factors.append(KeyFactor(
            KeyFactorKind.OVERDUE_INSPECTION, days_since, f"Overdue inspection: {days_since} days"
        ))
    if cdr_count > 0:
        factors.append(KeyFactor(
            KeyFactorKind.RECENT_CDRS, cdr_count, f"{cdr_count} recent CDRs"
        ))
    return factors


def score_location(
    location: Location,
    reports: Iterable[InspectionReport],
    cdrs: Iterable[CDR],
    zone: Optional[Zone],
    reference: ReferenceData,
    now: datetime,
) -> HotspotScore:
    """
    Predictive risk index for one location.

    With no inspection history the last score is assumed to be 70 and
    the last visit 30 days ago.
    """
    own_reports = [r for r in reports if r.location_id == location.id]
    last_report = max(own_reports, key=lambda r: r.date) if own_reports else None

    if last_report is not None:
        last_score = report_compliance(last_report, reference)
        days_since = max((now - last_report.date).days, 0)
    else:
        last_score = DEFAULT_LAST_INSPECTION_SCORE
        days_since = DEFAULT_DAYS_SINCE_INSPECTION

    cutoff = (now - timedelta(days=RECENT_CDR_WINDOW_DAYS)).date()
    cdr_count = sum(1 for c in cdrs if c.location_id == location.id and c.date > cutoff)

    return HotspotScore(
        location_id=location.id,
        risk_index=risk_index(last_score, days_since, cdr_count, zone),
        last_inspection_score=last_score,
        days_since_inspection=days_since,
        recent_cdr_count=cdr_count,
        key_factors=_key_factors(last_score, days_since, cdr_count),
    )


def predict_hotspots(
    reference: ReferenceData,
    reports: Iterable[InspectionReport],
    cdrs: Iterable[CDR],
    now: datetime,
    top_n: int = HOTSPOT_TOP_N,
) -> List[HotspotScore]:
    reports = list(reports)
    cdrs = list(cdrs)

    scores = [
        score_location(
            location,
            reports,
            cdrs,
            reference.zone(location.zone_id),
            reference,
            now,
        )
        for location in reference.locations
    ]
    return sorted(scores, key=lambda s: s.risk_index, reverse=True)[:top_n]
