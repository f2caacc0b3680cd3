# evstrack/penalty/deriver.py

import logging
from datetime import datetime
from typing import List, Optional

from evstrack.models.cdr import CDR, CDRManagerDecision
from evstrack.models.penalty import PenaltyInvoice, PenaltyItem, PenaltyStatus
from evstrack.penalty.rates import PenaltyRateTable
from evstrack.store.ids import new_id

logger = logging.getLogger("evstrack.penalty")

MANPOWER_CATEGORY = "Manpower Discrepancy"
MATERIAL_CATEGORY = "Material Discrepancy"
EQUIPMENT_CATEGORY = "Equipment Discrepancy"


def derive_penalty_items(cdr: CDR, rates: PenaltyRateTable) -> List[PenaltyItem]:
    """
    One line item per selected discrepancy, manpower first, then
    material, then equipment. Ignores the manager decision.
    """
    sources = (
        (MANPOWER_CATEGORY, cdr.manpower_discrepancy),
        (MATERIAL_CATEGORY, cdr.material_discrepancy),
        (EQUIPMENT_CATEGORY, cdr.equipment_discrepancy),
    )

    items = []
    for category, labels in sources:
        for label in labels:
            items.append(PenaltyItem(
                description=label,
                category=category,
                amount=rates.rate_for(label),
            ))
    return items


def derive_invoice(
    cdr: CDR,
    rates: PenaltyRateTable,
    location_name: str,
    inspector_name: str,
    now: datetime,
    invoice_id: Optional[str] = None,
) -> Optional[PenaltyInvoice]:
    """
    Build the penalty invoice for a CDR being finalized.

    Returns None when the decision is anything but Penalty, and also when
    a Penalty decision carries no monetary items (total of 0).
    """
    if cdr.manager_decision != CDRManagerDecision.PENALTY:
        return None

    items = derive_penalty_items(cdr, rates)
    total_amount = sum(item.amount for item in items)

    if total_amount <= 0:
        logger.info(f"CDR {cdr.reference_number} approved as Penalty with no monetary items")
        return None

    return PenaltyInvoice(
        id=invoice_id or new_id("inv"),
        cdr_id=cdr.id,
        cdr_reference=cdr.reference_number,
        date_generated=now,
        location_name=location_name,
        inspector_name=inspector_name,
        items=items,
        total_amount=total_amount,
        status=PenaltyStatus.PENDING,
    )
