import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from evstrack.clock import Clock
from evstrack.models.cdr import CDR, CDRManagerDecision, CDRStatus
from evstrack.models.notification import NotificationType
from evstrack.models.penalty import PenaltyInvoice
from evstrack.models.reference import UserRole
from evstrack.models.report import DRAFT_REFERENCE
from evstrack.penalty.deriver import derive_invoice
from evstrack.penalty.rates import PenaltyRateTable
from evstrack.reference.data import ReferenceData
from evstrack.store.collections import Collection
from evstrack.store.ids import new_id, next_reference
from evstrack.store.repository import EntityStore
from evstrack.telemetry import emit_invoice_telemetry
from evstrack.workflow.access import require_supervisor, require_user
from evstrack.workflow.errors import AuthorizationError, InvalidTransitionError
from evstrack.workflow.notifications import NotificationService

logger = logging.getLogger("evstrack.workflow.cdrs")

# Never editable through edit(); each has its own transition
PROTECTED_FIELDS = frozenset({
    "id",
    "reference_number",
    "employee_id",
    "status",
    "employee_signature",
    "manager_signature",
    "finalized_date",
})

MANAGER_FIELDS = frozenset({"manager_decision", "manager_comment"})

UNKNOWN_LOCATION = "Unknown Location"
UNKNOWN_INSPECTOR = "Unknown Inspector"


class FinalizationOutcome(str, Enum):
    INVOICE_GENERATED = "INVOICE_GENERATED"
    PENALTY_WITHOUT_ITEMS = "PENALTY_WITHOUT_ITEMS"
    NO_FINANCIAL_PENALTY = "NO_FINANCIAL_PENALTY"


@dataclass(frozen=True)
class CDRFinalization:
    cdr: CDR
    invoice: Optional[PenaltyInvoice]
    outcome: FinalizationOutcome
    message: str


class CDRService:
    """
    Discrepancy report lifecycle: Draft -> Submitted -> Approved.
    Finalizing a Penalty decision writes the penalty invoice.
    """

    def __init__(
        self,
        store: EntityStore,
        reference: ReferenceData,
        rates: PenaltyRateTable,
        clock: Clock,
        notifications: Optional[NotificationService] = None,
        language: str = "en",
    ):
        self.store = store
        self.reference = reference
        self.rates = rates
        self.clock = clock
        self.notifications = notifications
        self.language = language

    def create_draft(
        self,
        employee_id: str,
        location_id: str,
        date: Optional[date] = None,
        time: Optional[str] = None,
        **fields,
    ) -> CDR:
        require_user(self.reference, employee_id)
        self._check_fields(fields)
        now = self.clock.now()

        cdr = CDR(
            id=new_id("cdr"),
            reference_number=DRAFT_REFERENCE,
            employee_id=employee_id,
            date=date or now.date(),
            time=time or now.strftime("%H:%M"),
            location_id=location_id,
            **fields,
        )
        return self.store.create(Collection.CDRS, cdr)

    def _check_fields(self, changes: dict, allow_manager: bool = False) -> None:
        protected = set(changes) & PROTECTED_FIELDS
        if protected:
            raise ValueError(f"Fields cannot be edited directly: {sorted(protected)}")
        if not allow_manager and set(changes) & MANAGER_FIELDS:
            raise AuthorizationError("Only a supervisor can record a manager decision")

    def edit(self, cdr_id: str, user_id: str, **changes) -> CDR:
        """
        Draft: only the filing employee. Submitted: only a supervisor.
        Approved: never.
        """
        user = require_user(self.reference, user_id)
        cdr = self.store.require(Collection.CDRS, cdr_id)

        if cdr.status == CDRStatus.APPROVED:
            raise InvalidTransitionError(f"CDR {cdr.reference_number} is final")

        if cdr.status == CDRStatus.DRAFT:
            if cdr.employee_id != user_id:
                raise AuthorizationError("Only the filing employee can edit a draft CDR")
            self._check_fields(changes)
        else:
            if user.role != UserRole.SUPERVISOR:
                raise AuthorizationError("A submitted CDR is editable by supervisors only")
            self._check_fields(changes, allow_manager=True)

        if changes.get("manager_decision") is not None:
            changes["manager_decision"] = CDRManagerDecision(changes["manager_decision"])

        return self.store.update(Collection.CDRS, cdr_id, **changes)

    def submit(self, cdr_id: str, user_id: str) -> CDR:
        employee = require_user(self.reference, user_id)
        cdr = self.store.require(Collection.CDRS, cdr_id)
        if cdr.employee_id != user_id:
            raise AuthorizationError("Only the filing employee can submit this CDR")
        if cdr.status != CDRStatus.DRAFT:
            raise InvalidTransitionError(f"CDR {cdr.reference_number} was already submitted")

        reference_number = cdr.reference_number
        if reference_number == DRAFT_REFERENCE:
            existing = [c.reference_number for c in self.store.list(Collection.CDRS)]
            reference_number = next_reference("CDR", self.clock.now(), existing)

        submitted = self.store.update(
            Collection.CDRS,
            cdr_id,
            status=CDRStatus.SUBMITTED,
            reference_number=reference_number,
            employee_signature=employee.name,
        )
        logger.info(f"CDR {reference_number} submitted to manager")

        if self.notifications:
            self.notifications.notify(
                f"New CDR {reference_number} awaiting manager decision",
                NotificationType.ALERT,
                link=f"/cdr/{cdr_id}",
            )
        return submitted

    def record_decision(
        self,
        cdr_id: str,
        supervisor_id: str,
        decision: CDRManagerDecision,
        comment: Optional[str] = None,
    ) -> CDR:
        require_supervisor(self.reference, supervisor_id)
        cdr = self.store.require(Collection.CDRS, cdr_id)
        if cdr.status != CDRStatus.SUBMITTED:
            raise InvalidTransitionError("A decision can only be recorded on a submitted CDR")

        changes = {"manager_decision": CDRManagerDecision(decision)}
        if comment is not None:
            changes["manager_comment"] = comment
        return self.store.update(Collection.CDRS, cdr_id, **changes)

    def finalize(self, cdr_id: str, supervisor_id: str) -> CDRFinalization:
        """
        Approve a submitted CDR. A Penalty decision with at least one
        monetary item also creates a Pending penalty invoice.
        """
        supervisor = require_supervisor(self.reference, supervisor_id)
        cdr = self.store.require(Collection.CDRS, cdr_id)

        if cdr.status != CDRStatus.SUBMITTED:
            raise InvalidTransitionError("Only a submitted CDR can be finalized")
        if cdr.manager_decision is None:
            raise InvalidTransitionError("Please select a manager decision before approving")

        now = self.clock.now()
        final = self.store.update(
            Collection.CDRS,
            cdr_id,
            status=CDRStatus.APPROVED,
            manager_signature=supervisor.name,
            finalized_date=now,
        )

        if final.manager_decision != CDRManagerDecision.PENALTY:
            return CDRFinalization(
                cdr=final,
                invoice=None,
                outcome=FinalizationOutcome.NO_FINANCIAL_PENALTY,
                message=(
                    f"Report approved with decision: {final.manager_decision.value}. "
                    "No financial penalty issued."
                ),
            )

        location = self.reference.location(final.location_id)
        inspector = self.reference.user(final.employee_id)
        invoice = derive_invoice(
            final,
            self.rates,
            location_name=location.name.get(self.language) if location else UNKNOWN_LOCATION,
            inspector_name=inspector.name if inspector else UNKNOWN_INSPECTOR,
            now=now,
        )

        if invoice is None:
            return CDRFinalization(
                cdr=final,
                invoice=None,
                outcome=FinalizationOutcome.PENALTY_WITHOUT_ITEMS,
                message="Report approved as Penalty, but no monetary items were selected.",
            )

        self.store.create(Collection.PENALTY_INVOICES, invoice)
        emit_invoice_telemetry(len(invoice.items), float(invoice.total_amount))
        logger.info(f"penalty invoice {invoice.id} generated for CDR {final.reference_number}")

        if self.notifications:
            self.notifications.notify(
                f"Penalty invoice for {final.reference_number} awaiting approval",
                NotificationType.INFO,
                link=f"/penalty-invoices/{invoice.id}",
            )

        return CDRFinalization(
            cdr=final,
            invoice=invoice,
            outcome=FinalizationOutcome.INVOICE_GENERATED,
            message=f"Report approved. Penalty invoice generated for {invoice.total_amount:g} SAR.",
        )
