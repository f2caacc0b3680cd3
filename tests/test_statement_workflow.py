import pytest

from evstrack.models.statement import GlobalPenaltyItemStatus, GlobalPenaltyStatus
from evstrack.store.collections import Collection
from evstrack.workflow.errors import (
    AuthorizationError,
    DuplicateStatementError,
    InvalidTransitionError,
    StalePreviewError,
)
from tests.fixtures.entities import make_invoice


@pytest.fixture
def march_invoices(store):
    store.create(Collection.PENALTY_INVOICES, make_invoice("inv-1", lines=[("Expired items", 300.0)]))
    store.create(Collection.PENALTY_INVOICES, make_invoice(
        "inv-2", lines=[("Expired items", 300.0), ("Shortage of staff", 1000.0)]
    ))


def test_create_statement_from_deducted_invoices(services, march_invoices):
    statement = services.statements.create(3, 2025, "sup-1")

    assert statement.reference_number == "GPS-2025-03-001"
    assert statement.contractor_name == "CleanCo Services"
    assert statement.status == GlobalPenaltyStatus.DRAFT
    assert statement.total_amount == 1600
    assert statement.total_violations == 3
    assert statement.total_invoices == 2
    assert services.statements.for_period(3, 2025) == statement


def test_second_statement_for_same_period_is_rejected(services, march_invoices):
    services.statements.create(3, 2025, "sup-1")
    with pytest.raises(DuplicateStatementError):
        services.statements.create(3, 2025, "sup-1")


def test_only_supervisors_manage_statements(services):
    with pytest.raises(AuthorizationError):
        services.statements.create(3, 2025, "insp-1")


def test_reject_and_manual_lines_update_totals(services, march_invoices):
    statement = services.statements.create(3, 2025, "sup-1")
    expired = next(i for i in statement.items if i.violation_name == "Expired items")

    statement = services.statements.update_item(
        statement.id, expired.id, "sup-1", status=GlobalPenaltyItemStatus.REJECTED
    )
    assert statement.total_amount == 1000
    assert statement.total_violations == 1
    assert len(statement.items) == 2

    statement = services.statements.add_manual_item(
        statement.id, "sup-1", "Blocked fire exit", 1500.0, 2, linked_cdr_ids=["cdr-of-inv-1"]
    )
    assert statement.total_amount == 4000
    assert statement.total_violations == 3

    manual = statement.items[-1]
    statement = services.statements.delete_item(statement.id, manual.id, "sup-1")
    assert statement.total_amount == 1000
    assert len(statement.items) == 2


def test_unknown_line_raises_key_error(services, march_invoices):
    statement = services.statements.create(3, 2025, "sup-1")
    with pytest.raises(KeyError):
        services.statements.update_item(statement.id, "nope", "sup-1", occurrence_count=1)
    with pytest.raises(KeyError):
        services.statements.delete_item(statement.id, "nope", "sup-1")


def test_refresh_preview_writes_nothing_until_committed(services, store, march_invoices):
    statement = services.statements.create(3, 2025, "sup-1")
    statement = services.statements.add_manual_item(statement.id, "sup-1", "Late handover", 200.0, 1)
    services.statements.set_general_comment(statement.id, "sup-1", "Discuss with contractor")
    store.create(Collection.PENALTY_INVOICES, make_invoice("inv-3", lines=[("No MSDS on site", 4000.0)]))

    preview = services.statements.preview_refresh(statement.id)

    assert preview.discarded_items == 3
    assert [i.violation_name for i in preview.discarded_manual_items] == ["Late handover"]
    assert preview.clears_general_comment
    assert preview.aggregate.total_invoices == 3
    unchanged = store.get(Collection.STATEMENTS, statement.id)
    assert unchanged.total_invoices == 2
    assert unchanged.manager_general_comment == "Discuss with contractor"

    refreshed = services.statements.commit_refresh(preview, "sup-1")

    assert refreshed.total_invoices == 3
    assert refreshed.total_amount == 5600
    assert not any(i.is_manual for i in refreshed.items)
    assert refreshed.manager_general_comment == ""


def test_approval_is_terminal(services, march_invoices):
    statement = services.statements.create(3, 2025, "sup-1")
    item_id = statement.items[0].id

    approved = services.statements.approve(statement.id, "sup-1")

    assert approved.status == GlobalPenaltyStatus.APPROVED
    assert approved.approved_by == "Manager Ahmed"
    assert approved.approved_date == services.clock.now()

    with pytest.raises(InvalidTransitionError):
        services.statements.approve(statement.id, "sup-1")
    with pytest.raises(InvalidTransitionError):
        services.statements.update_item(statement.id, item_id, "sup-1", occurrence_count=5)
    with pytest.raises(InvalidTransitionError):
        services.statements.add_manual_item(statement.id, "sup-1", "Extra", 100.0, 1)
    with pytest.raises(InvalidTransitionError):
        services.statements.delete_item(statement.id, item_id, "sup-1")
    with pytest.raises(InvalidTransitionError):
        services.statements.set_general_comment(statement.id, "sup-1", "Too late")
    with pytest.raises(InvalidTransitionError):
        services.statements.preview_refresh(statement.id)


def test_refresh_of_statement_approved_after_preview_is_rejected(services, march_invoices):
    statement = services.statements.create(3, 2025, "sup-1")
    preview = services.statements.preview_refresh(statement.id)
    services.statements.approve(statement.id, "sup-1")

    with pytest.raises(InvalidTransitionError):
        services.statements.commit_refresh(preview, "sup-1")


def test_refresh_rejected_when_statement_edited_after_preview(services, store, march_invoices):
    statement = services.statements.create(3, 2025, "sup-1")
    preview = services.statements.preview_refresh(statement.id)

    services.statements.update_item(statement.id, statement.items[0].id, "sup-1", occurrence_count=7)

    with pytest.raises(StalePreviewError):
        services.statements.commit_refresh(preview, "sup-1")
    assert store.get(Collection.STATEMENTS, statement.id).items[0].occurrence_count == 7


def test_preview_fingerprint_tracks_every_line_edit(services, march_invoices):
    statement = services.statements.create(3, 2025, "sup-1")
    before = services.statements.preview_refresh(statement.id).fingerprint

    services.statements.update_item(
        statement.id, statement.items[0].id, "sup-1", status=GlobalPenaltyItemStatus.REJECTED
    )

    after = services.statements.preview_refresh(statement.id)
    assert after.fingerprint != before
    assert after.discarded_items == len(statement.items)
