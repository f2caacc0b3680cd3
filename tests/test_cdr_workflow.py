import pytest

from evstrack.models.cdr import CDRManagerDecision, CDRStatus
from evstrack.models.penalty import PenaltyStatus
from evstrack.store.collections import Collection
from evstrack.workflow.cdrs import FinalizationOutcome
from evstrack.workflow.errors import AuthorizationError, InvalidTransitionError


def _submitted_cdr(services, **fields):
    cdr = services.cdrs.create_draft("insp-1", "loc-icu", **fields)
    return services.cdrs.submit(cdr.id, "insp-1")


def test_submit_assigns_reference_and_signature(services):
    draft = services.cdrs.create_draft("insp-1", "loc-icu", staff_comment="Spill left unattended")

    assert draft.reference_number == "DRAFT"
    assert draft.time == "12:00"

    submitted = services.cdrs.submit(draft.id, "insp-1")

    assert submitted.status == CDRStatus.SUBMITTED
    assert submitted.reference_number == "CDR-2025-03-001"
    assert submitted.employee_signature == "Inspector One"
    assert services.notifications.unread_count() == 1


def test_penalty_finalization_generates_pending_invoice(services, mocker):
    telemetry = mocker.patch("evstrack.workflow.cdrs.emit_invoice_telemetry")
    cdr = _submitted_cdr(
        services,
        manpower_discrepancy=["Shortage of staff"],
        material_discrepancy=["Expired items"],
    )
    services.cdrs.record_decision(cdr.id, "sup-1", CDRManagerDecision.PENALTY, "Repeat issue")

    result = services.cdrs.finalize(cdr.id, "sup-1")

    assert result.outcome == FinalizationOutcome.INVOICE_GENERATED
    assert result.cdr.status == CDRStatus.APPROVED
    assert result.cdr.manager_signature == "Manager Ahmed"
    assert result.cdr.finalized_date == services.clock.now()
    assert result.invoice.total_amount == 1300
    assert result.invoice.location_name == "ICU Bay"
    assert result.invoice.inspector_name == "Inspector One"
    assert "1300 SAR" in result.message
    assert services.store.list(Collection.PENALTY_INVOICES) == [result.invoice]
    telemetry.assert_called_once_with(2, 1300.0)


def test_penalty_without_items_is_informational(services):
    cdr = _submitted_cdr(services)
    services.cdrs.record_decision(cdr.id, "sup-1", CDRManagerDecision.PENALTY)

    result = services.cdrs.finalize(cdr.id, "sup-1")

    assert result.outcome == FinalizationOutcome.PENALTY_WITHOUT_ITEMS
    assert result.invoice is None
    assert result.cdr.status == CDRStatus.APPROVED
    assert services.store.list(Collection.PENALTY_INVOICES) == []


def test_warning_issues_no_financial_penalty(services):
    cdr = _submitted_cdr(services, manpower_discrepancy=["Shortage of staff"])
    services.cdrs.record_decision(cdr.id, "sup-1", CDRManagerDecision.WARNING)

    result = services.cdrs.finalize(cdr.id, "sup-1")

    assert result.outcome == FinalizationOutcome.NO_FINANCIAL_PENALTY
    assert "Warning" in result.message
    assert services.store.list(Collection.PENALTY_INVOICES) == []


def test_finalize_requires_a_decision(services):
    cdr = _submitted_cdr(services)
    with pytest.raises(InvalidTransitionError, match="manager decision"):
        services.cdrs.finalize(cdr.id, "sup-1")


def test_finalize_requires_supervisor_and_submitted_state(services):
    draft = services.cdrs.create_draft("insp-1", "loc-icu")
    with pytest.raises(InvalidTransitionError):
        services.cdrs.finalize(draft.id, "sup-1")

    services.cdrs.submit(draft.id, "insp-1")
    with pytest.raises(AuthorizationError):
        services.cdrs.finalize(draft.id, "insp-1")


def test_edit_permissions_follow_status(services):
    draft = services.cdrs.create_draft("insp-1", "loc-icu")

    services.cdrs.edit(draft.id, "insp-1", staff_comment="Updated")
    with pytest.raises(AuthorizationError):
        services.cdrs.edit(draft.id, "insp-2", staff_comment="Not mine")
    with pytest.raises(AuthorizationError):
        services.cdrs.edit(draft.id, "insp-1", manager_decision="Penalty")

    services.cdrs.submit(draft.id, "insp-1")
    with pytest.raises(AuthorizationError):
        services.cdrs.edit(draft.id, "insp-1", staff_comment="Too late")
    edited = services.cdrs.edit(draft.id, "sup-1", manager_decision="Attention")
    assert edited.manager_decision == CDRManagerDecision.ATTENTION

    services.cdrs.finalize(draft.id, "sup-1")
    with pytest.raises(InvalidTransitionError):
        services.cdrs.edit(draft.id, "sup-1", manager_comment="After the fact")


def test_protected_fields_cannot_be_edited(services):
    draft = services.cdrs.create_draft("insp-1", "loc-icu")
    with pytest.raises(ValueError):
        services.cdrs.edit(draft.id, "insp-1", status=CDRStatus.APPROVED)


def test_invoice_approval_moves_to_deducted(services):
    cdr = _submitted_cdr(services, material_discrepancy=["Expired items"])
    services.cdrs.record_decision(cdr.id, "sup-1", CDRManagerDecision.PENALTY)
    invoice = services.cdrs.finalize(cdr.id, "sup-1").invoice

    assert services.invoices.pending() == [invoice]
    with pytest.raises(AuthorizationError):
        services.invoices.approve(invoice.id, "insp-1")

    approved = services.invoices.approve(invoice.id, "sup-1")

    assert approved.status == PenaltyStatus.DEDUCTED
    assert approved.manager_name == "Manager Ahmed"
    assert approved.approval_date == services.clock.now()
    assert services.invoices.pending() == []
    with pytest.raises(InvalidTransitionError):
        services.invoices.approve(invoice.id, "sup-1")
