# evstrack/reference/demo_data.py

"""
Deterministic demo year: reports, CDRs, penalty invoices and
notifications, generated from a seeded random.Random.
"""
import calendar
import dataclasses
import random
from datetime import date, datetime, timedelta
from typing import Dict, List

from evstrack.models.cdr import (
    CDR,
    CDRIncidentType,
    CDRManagerDecision,
    CDRServiceType,
    CDRStatus,
)
from evstrack.models.notification import Notification, NotificationType
from evstrack.models.penalty import PenaltyStatus
from evstrack.models.reference import InspectionForm
from evstrack.models.report import InspectionReport, InspectionResultItem, ReportStatus
from evstrack.penalty.deriver import derive_invoice
from evstrack.penalty.rates import PenaltyRateTable
from evstrack.reference.data import ReferenceData
from evstrack.store.collections import Collection

SUMMER_MONTHS = (6, 7, 8)

PENALTY_DISCREPANCIES = (
    ("Not approved uniform / No uniform", 0.5),
    ("Expired items", 0.7),
    ("No MSDS on site", 0.8),
)
FALLBACK_DISCREPANCY = "Uncooperative staff"


def _generate_items(
    rng: random.Random,
    form: InspectionForm,
    modifier: int,
    defect_keys: List[str],
) -> List[InspectionResultItem]:
    low_index = rng.randrange(len(form.items)) if modifier < 0 and form.items else -1

    items = []
    for index, item in enumerate(form.items):
        score = max(0, item.max_score - rng.randrange(2))
        if modifier < 0 and index == low_index:
            score = max(0, item.max_score + modifier * 3)
        elif modifier < -1:
            score = max(0, item.max_score + modifier)

        has_defect = score < item.max_score
        defects = []
        if has_defect:
            pool = item.predefined_defects or defect_keys
            if pool:
                defects = [rng.choice(pool)]

        items.append(InspectionResultItem(
            item_id=item.id,
            score=score,
            comment="Minor issue noted during inspection." if has_defect else "All clear.",
            defects=defects,
        ))
    return items


def _score_modifier(rng: random.Random, month: int) -> int:
    failure_chance = 0.2 if month in SUMMER_MONTHS else 0.1
    roll = rng.random()
    if roll < failure_chance:
        return -4
    if roll < failure_chance + 0.15:
        return -2
    return 0


def _cdr_status(rng: random.Random) -> CDRStatus:
    roll = rng.random()
    if roll > 0.95:
        return CDRStatus.DRAFT
    if roll > 0.8:
        return CDRStatus.SUBMITTED
    return CDRStatus.APPROVED


def generate_demo_data(
    reference: ReferenceData,
    year: int,
    seed: int,
    rates: PenaltyRateTable,
) -> Dict[Collection, list]:
    """
    One to four reviewed reports per day across the year. Low-scoring
    reports (and about one in twenty others) raise a CDR; approved
    Penalty CDRs carry their deducted invoice.
    """
    rng = random.Random(seed)
    inspectors = reference.inspectors()
    supervisor = next(iter(reference.supervisors()), None)
    manager_name = supervisor.name if supervisor else "Manager"
    defect_keys = []
    for form in reference.forms:
        for item in form.items:
            defect_keys.extend(d for d in item.predefined_defects if d not in defect_keys)

    reports, cdrs, invoices, notifications = [], [], [], []
    seeded = {
        Collection.REPORTS: reports,
        Collection.CDRS: cdrs,
        Collection.PENALTY_INVOICES: invoices,
        Collection.NOTIFICATIONS: notifications,
    }
    if not inspectors or not reference.locations:
        return seeded

    for month in range(1, 13):
        report_counter = 0
        cdr_counter = 0
        for day in range(1, calendar.monthrange(year, month)[1] + 1):
            day_start = datetime(year, month, day)

            for i in range(rng.randint(1, 4)):
                inspector = rng.choice(inspectors)
                location = rng.choice(reference.locations)
                form = reference.form(location.form_id)
                if form is None:
                    continue

                modifier = _score_modifier(rng, month)
                report_counter += 1
                report_id = f"rep_{year}_{month}_{day}_{i}"
                reports.append(InspectionReport(
                    id=report_id,
                    reference_number=f"INSP-{year}-{month:02d}-{report_counter:03d}",
                    inspector_id=inspector.id,
                    location_id=location.id,
                    date=day_start + timedelta(hours=9 + i),
                    status=ReportStatus.REVIEWED,
                    items=_generate_items(rng, form, modifier, defect_keys),
                    supervisor_comment="Please improve." if modifier < -1 else None,
                ))

                if not (modifier < -1 or rng.random() > 0.95):
                    continue

                is_penalty = rng.random() > 0.4
                status = _cdr_status(rng)
                discrepancies = [label for label, bar in PENALTY_DISCREPANCIES if rng.random() > bar]
                if not discrepancies:
                    discrepancies = [FALLBACK_DISCREPANCY]

                approved = status == CDRStatus.APPROVED
                cdr_counter += 1
                cdr = CDR(
                    id=f"cdr_{year}_{month}_{day}_{i}",
                    reference_number=f"CDR-{year}-{month:02d}-{cdr_counter:03d}",
                    employee_id=inspector.id,
                    date=date(year, month, day),
                    time="10:00",
                    location_id=location.id,
                    incident_type=(
                        CDRIncidentType.REPETITIVE if rng.random() > 0.7 else CDRIncidentType.FIRST
                    ),
                    in_charge_name="Unit Manager",
                    in_charge_id="U123",
                    in_charge_email="unit@hospital.com",
                    service_types=[CDRServiceType.HOUSEKEEPING],
                    manpower_discrepancy=[discrepancies[0]] if is_penalty else [],
                    material_discrepancy=(
                        [discrepancies[1]] if is_penalty and len(discrepancies) > 1 else []
                    ),
                    on_spot_action=["Informing supervisor"],
                    action_plan=["Training"],
                    staff_comment="Violation noted during routine inspection.",
                    employee_signature=inspector.name,
                    status=status,
                    manager_decision=(
                        (CDRManagerDecision.PENALTY if is_penalty else CDRManagerDecision.WARNING)
                        if approved else None
                    ),
                    manager_comment="Approved." if approved else None,
                    manager_signature=manager_name if approved else None,
                    finalized_date=day_start + timedelta(hours=15) if approved else None,
                )
                cdrs.append(cdr)

                if approved:
                    invoice = derive_invoice(
                        cdr,
                        rates,
                        location_name=location.name.en,
                        inspector_name=inspector.name,
                        now=cdr.finalized_date,
                        invoice_id=f"inv_{year}_{month}_{day}_{i}",
                    )
                    if invoice is not None:
                        invoices.append(dataclasses.replace(
                            invoice,
                            status=PenaltyStatus.DEDUCTED,
                            manager_name=manager_name,
                            approval_date=cdr.finalized_date + timedelta(hours=1),
                        ))

                notifications.append(Notification(
                    id=f"notif_{year}_{month}_{day}_{i}",
                    message=(
                        f"CDR {cdr.reference_number} approved." if approved
                        else f"New CDR {cdr.reference_number} submitted by {inspector.name}."
                    ),
                    type=NotificationType.INFO if approved else NotificationType.ALERT,
                    timestamp=day_start + timedelta(hours=11),
                    is_read=rng.random() > 0.2,
                    link=f"/cdr/{cdr.id}",
                ))

    return seeded
