import pytest

from evstrack.models.notification import NotificationType
from evstrack.models.report import DRAFT_REFERENCE, ReportStatus
from evstrack.scoring.compliance import report_compliance
from evstrack.store.collections import Collection
from evstrack.workflow.errors import AuthorizationError, InvalidTransitionError


def test_full_marks_round_trip_gives_100(services):
    (draft,) = services.reports.start_batch("insp-1", ["loc-icu"])
    form = services.reference.form("form-high")

    assert draft.status == ReportStatus.DRAFT
    assert draft.reference_number == DRAFT_REFERENCE
    assert draft.batch_location_ids is None

    for item in form.items:
        services.reports.score_item(draft.id, "insp-1", item.id, item.max_score)
    submitted = services.reports.submit(draft.id, "insp-1")

    assert submitted.status == ReportStatus.SUBMITTED
    assert submitted.reference_number == "INSP-2025-03-001"
    assert report_compliance(submitted, services.reference) == 100.0


def test_batch_of_one_resolvable_location_is_not_a_batch(services):
    drafts = services.reports.start_batch("insp-1", ["loc-icu", "loc-gone"])

    assert [d.location_id for d in drafts] == ["loc-icu"]
    assert drafts[0].batch_location_ids is None


def test_batch_creates_one_prefilled_draft_per_location(services):
    drafts = services.reports.start_batch("insp-1", ["loc-icu", "loc-ward", "loc-gone"], ["Bay 2"])

    assert [d.location_id for d in drafts] == ["loc-icu", "loc-ward"]
    for draft in drafts:
        assert draft.batch_location_ids == ["loc-icu", "loc-ward"]
        assert draft.sub_locations == ["Bay 2"]
        assert report_compliance(draft, services.reference) == 100.0


def test_scores_are_clamped_to_item_range(services):
    (draft,) = services.reports.start_batch("insp-1", ["loc-icu"])

    high = services.reports.score_item(draft.id, "insp-1", "h1", 42)
    low = services.reports.score_item(draft.id, "insp-1", "h2", -3, comment="Sharps bin full")

    assert high.items[0].score == 5
    assert low.items[1].score == 0
    assert low.items[1].comment == "Sharps bin full"


def test_unknown_item_raises_key_error(services):
    (draft,) = services.reports.start_batch("insp-1", ["loc-icu"])
    with pytest.raises(KeyError):
        services.reports.score_item(draft.id, "insp-1", "m1", 1)


def test_only_owner_edits_and_only_while_draft(services):
    (draft,) = services.reports.start_batch("insp-1", ["loc-icu"])

    with pytest.raises(AuthorizationError):
        services.reports.score_item(draft.id, "insp-2", "h1", 1)

    services.reports.submit(draft.id, "insp-1")

    with pytest.raises(InvalidTransitionError):
        services.reports.score_item(draft.id, "insp-1", "h1", 1)
    with pytest.raises(InvalidTransitionError):
        services.reports.submit(draft.id, "insp-1")


def test_supervisor_comment_keeps_status(services):
    (draft,) = services.reports.start_batch("insp-1", ["loc-icu"])
    services.reports.submit(draft.id, "insp-1")

    reviewed = services.reports.add_supervisor_comment(draft.id, "sup-1", "Good work")

    assert reviewed.supervisor_comment == "Good work"
    assert reviewed.status == ReportStatus.SUBMITTED
    with pytest.raises(AuthorizationError):
        services.reports.add_supervisor_comment(draft.id, "insp-2", "Looks fine")


def test_critical_submission_raises_alert(services):
    (draft,) = services.reports.start_batch("insp-1", ["loc-icu"])
    services.reports.score_item(draft.id, "insp-1", "h1", 0)

    services.reports.submit(draft.id, "insp-1")

    (alert,) = services.store.list(Collection.NOTIFICATIONS)
    assert alert.type == NotificationType.ALERT
    assert "50.0%" in alert.message
