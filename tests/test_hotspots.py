from datetime import timedelta

import pytest

from evstrack.models.reference import RiskCategory, Zone
from evstrack.risk.hotspots import (
    HotspotLevel,
    KeyFactorKind,
    predict_hotspots,
    score_location,
)
from evstrack.risk.zone_weights import zone_multiplier
from tests.fixtures.entities import NOW, make_cdr, make_report

HIGH = Zone("z-h", "High", RiskCategory.HIGH)
LOW = Zone("z-l", "Low", RiskCategory.LOW)


def _score(reference, reports=(), cdrs=(), zone=HIGH):
    return score_location(reference.location("loc-icu"), list(reports), list(cdrs), zone, reference, NOW)


def test_no_history_uses_default_score_and_age(reference):
    score = _score(reference)

    assert score.last_inspection_score == 70.0
    assert score.days_since_inspection == 30
    assert score.recent_cdr_count == 0
    # (100 - 70) + 30 / 2 = 45, High zone x1.5
    assert score.risk_index == pytest.approx(67.5)
    assert [f.kind for f in score.key_factors] == [
        KeyFactorKind.LOW_LAST_SCORE,
        KeyFactorKind.OVERDUE_INSPECTION,
    ]


def test_uses_most_recent_report(reference):
    reports = [
        make_report("old", scores={"h1": 0, "h2": 0}, when=NOW - timedelta(days=20)),
        make_report("new", scores={"h1": 5, "h2": 5}, when=NOW - timedelta(days=4, hours=3)),
    ]

    score = _score(reference, reports)

    assert score.last_inspection_score == pytest.approx(100.0)
    assert score.days_since_inspection == 4
    assert score.key_factors == []
    assert score.risk_index == pytest.approx(2 * 1.5)


def test_risk_grows_with_days_since_inspection(reference):
    recent = _score(reference, [make_report(scores={"h1": 4, "h2": 4}, when=NOW - timedelta(days=10))])
    stale = _score(reference, [make_report(scores={"h1": 4, "h2": 4}, when=NOW - timedelta(days=20))])

    assert stale.risk_index > recent.risk_index


def test_risk_grows_with_recent_cdrs(reference):
    reports = [make_report(scores={"h1": 4, "h2": 4}, when=NOW - timedelta(days=2))]
    one = _score(reference, reports, [make_cdr("c1", on=NOW.date())])
    two = _score(reference, reports, [make_cdr("c1", on=NOW.date()), make_cdr("c2", on=NOW.date())])

    assert two.risk_index > one.risk_index
    assert two.recent_cdr_count == 2
    assert two.key_factors[-1].kind == KeyFactorKind.RECENT_CDRS


def test_only_cdrs_inside_trailing_window_count(reference):
    cdrs = [
        make_cdr("inside", on=(NOW - timedelta(days=29)).date()),
        make_cdr("edge", on=(NOW - timedelta(days=30)).date()),
        make_cdr("elsewhere", location_id="loc-ward", on=NOW.date()),
    ]
    assert _score(reference, cdrs=cdrs).recent_cdr_count == 1


def test_high_risk_zone_scores_above_identical_low_zone(reference):
    reports = [make_report(scores={"h1": 4, "h2": 4}, when=NOW - timedelta(days=5))]

    assert _score(reference, reports, zone=HIGH).risk_index > _score(reference, reports, zone=LOW).risk_index


def test_zone_multipliers():
    assert zone_multiplier(RiskCategory.HIGH) == 1.5
    assert zone_multiplier(RiskCategory.MEDIUM) == 1.2
    assert zone_multiplier(RiskCategory.LOW) == 1.0
    assert zone_multiplier(None) == 1.0


def test_predict_hotspots_returns_top_three(reference):
    hotspots = predict_hotspots(reference, [], [], NOW)

    assert len(hotspots) == 3
    assert [h.location_id for h in hotspots[:2]] == ["loc-icu", "loc-ward"]
    assert hotspots[0].risk_index >= hotspots[1].risk_index >= hotspots[2].risk_index


def test_hotspot_levels(reference):
    assert _score(reference).level == HotspotLevel.SEVERE
    assert _score(reference, zone=LOW).level == HotspotLevel.ELEVATED
