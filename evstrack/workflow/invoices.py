import logging
from typing import List

from evstrack.clock import Clock
from evstrack.models.penalty import PenaltyInvoice, PenaltyStatus
from evstrack.reference.data import ReferenceData
from evstrack.store.collections import Collection
from evstrack.store.repository import EntityStore
from evstrack.workflow.access import require_supervisor
from evstrack.workflow.errors import InvalidTransitionError

logger = logging.getLogger("evstrack.workflow.invoices")


class InvoiceService:
    def __init__(self, store: EntityStore, reference: ReferenceData, clock: Clock):
        self.store = store
        self.reference = reference
        self.clock = clock

    def pending(self) -> List[PenaltyInvoice]:
        return [
            inv for inv in self.store.list(Collection.PENALTY_INVOICES)
            if inv.status == PenaltyStatus.PENDING
        ]

    def approve(self, invoice_id: str, supervisor_id: str) -> PenaltyInvoice:
        """Pending -> Deducted, stamping the approving manager."""
        supervisor = require_supervisor(self.reference, supervisor_id)
        invoice = self.store.require(Collection.PENALTY_INVOICES, invoice_id)
        if invoice.status != PenaltyStatus.PENDING:
            raise InvalidTransitionError(f"Invoice for {invoice.cdr_reference} is already deducted")

        approved = self.store.update(
            Collection.PENALTY_INVOICES,
            invoice_id,
            status=PenaltyStatus.DEDUCTED,
            manager_name=supervisor.name,
            approval_date=self.clock.now(),
        )
        logger.info(f"invoice {invoice_id} deducted ({approved.total_amount} SAR)")
        return approved
