from datetime import date, datetime

from evstrack.models.cdr import CDR, CDRManagerDecision, CDRStatus
from evstrack.models.penalty import PenaltyInvoice, PenaltyItem, PenaltyStatus
from evstrack.models.reference import (
    EvaluationItem,
    InspectionForm,
    LocalizedName,
    Location,
    RiskCategory,
    User,
    UserRole,
    Zone,
)
from evstrack.models.report import InspectionReport, InspectionResultItem, ReportStatus
from evstrack.penalty.rates import PenaltyRateTable
from evstrack.reference.data import ReferenceData

NOW = datetime(2025, 3, 20, 12, 0)

RATES = PenaltyRateTable(
    rates={
        "Expired items": 300.0,
        "Shortage of staff": 1000.0,
        "No MSDS on site": 4000.0,
        "Uncooperative staff": 500.0,
    },
    default_rate=500.0,
    snapshot_version="test_rates",
)


def small_reference() -> ReferenceData:
    """
    Three zones, one location per zone plus an empty-form location.
    Form totals: high 10, medium 6, low 4.
    """
    forms = [
        InspectionForm("form-high", "High Risk", RiskCategory.HIGH, [
            EvaluationItem("h1", "Floors", 5),
            EvaluationItem("h2", "Sharps", 5),
        ]),
        InspectionForm("form-med", "Medium Risk", RiskCategory.MEDIUM, [
            EvaluationItem("m1", "Floors", 3),
            EvaluationItem("m2", "Bins", 3),
        ]),
        InspectionForm("form-low", "Low Risk", RiskCategory.LOW, [
            EvaluationItem("l1", "Floors", 4),
        ]),
        InspectionForm("form-empty", "Empty", RiskCategory.LOW, []),
    ]
    zones = [
        Zone("zone-high", "ICU", RiskCategory.HIGH),
        Zone("zone-med", "Wards", RiskCategory.MEDIUM),
        Zone("zone-low", "Offices", RiskCategory.LOW),
    ]
    locations = [
        Location("loc-icu", LocalizedName("ICU Bay", "العناية"), "zone-high", "form-high"),
        Location("loc-ward", LocalizedName("Ward 1"), "zone-med", "form-med"),
        Location("loc-office", LocalizedName("Admin Office"), "zone-low", "form-low"),
        Location("loc-empty", LocalizedName("Store"), "zone-low", "form-empty"),
    ]
    users = [
        User("insp-1", "Inspector One", "one", UserRole.INSPECTOR),
        User("insp-2", "Inspector Two", "two", UserRole.INSPECTOR),
        User("sup-1", "Manager Ahmed", "manager", UserRole.SUPERVISOR),
    ]
    return ReferenceData(
        snapshot_version="test_reference",
        users=users,
        zones=zones,
        locations=locations,
        forms=forms,
    )


def make_report(
    report_id="rep-1",
    location_id="loc-icu",
    scores=None,
    when=NOW,
    status=ReportStatus.SUBMITTED,
    inspector_id="insp-1",
    reference_number=None,
):
    scores = scores or {}
    return InspectionReport(
        id=report_id,
        reference_number=reference_number or f"INSP-{report_id}",
        inspector_id=inspector_id,
        location_id=location_id,
        date=when,
        status=status,
        items=[InspectionResultItem(item_id=k, score=v) for k, v in scores.items()],
    )


def make_cdr(
    cdr_id="cdr-1",
    location_id="loc-icu",
    on=date(2025, 3, 18),
    manpower=None,
    material=None,
    equipment=None,
    decision=None,
    status=CDRStatus.SUBMITTED,
    employee_id="insp-1",
):
    return CDR(
        id=cdr_id,
        reference_number=f"CDR-{cdr_id}",
        employee_id=employee_id,
        date=on,
        time="10:00",
        location_id=location_id,
        manpower_discrepancy=list(manpower or []),
        material_discrepancy=list(material or []),
        equipment_discrepancy=list(equipment or []),
        manager_decision=decision,
        status=status,
    )


def make_invoice(
    invoice_id="inv-1",
    lines=(("Expired items", 300.0),),
    when=NOW,
    status=PenaltyStatus.DEDUCTED,
    cdr_id=None,
):
    items = [PenaltyItem(description=d, category="Material Discrepancy", amount=a) for d, a in lines]
    return PenaltyInvoice(
        id=invoice_id,
        cdr_id=cdr_id or f"cdr-of-{invoice_id}",
        cdr_reference=f"CDR-of-{invoice_id}",
        date_generated=when,
        location_name="ICU Bay",
        inspector_name="Inspector One",
        items=items,
        total_amount=sum(a for _, a in lines),
        status=status,
    )


PENALTY = CDRManagerDecision.PENALTY
WARNING = CDRManagerDecision.WARNING
