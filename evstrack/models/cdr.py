from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class CDRStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted to Manager"
    APPROVED = "Approved / Final"


class CDRIncidentType(str, Enum):
    FIRST = "First Incident"
    REPETITIVE = "Repetitive"
    ROUTINE = "Routine"
    INVESTIGATION = "Investigation"


class CDRServiceType(str, Enum):
    HOUSEKEEPING = "Housekeeping"
    LAUNDRY = "Laundry"
    PEST_CONTROL = "Pest Control"
    HAZARDOUS_WASTE = "Hazardous Material & Medical Waste"
    HORTICULTURE = "Horticulture"


class CDRManagerDecision(str, Enum):
    PENALTY = "Penalty"
    WARNING = "Warning"
    ATTENTION = "Attention"
    NO_VALID_CASE = "No Valid Case"


@dataclass(frozen=True)
class CDR:
    """
    Corrective/discrepancy report filed against an observed violation.

    Draft: editable by the filing employee.
    Submitted: editable by a supervisor only (sets manager_decision).
    Approved: terminal.
    """
    id: str
    reference_number: str
    employee_id: str
    date: date
    time: str
    location_id: str
    incident_type: CDRIncidentType = CDRIncidentType.FIRST
    in_charge_name: str = ""
    in_charge_id: str = ""
    in_charge_email: str = ""
    service_types: List[CDRServiceType] = field(default_factory=list)
    manpower_discrepancy: List[str] = field(default_factory=list)
    material_discrepancy: List[str] = field(default_factory=list)
    equipment_discrepancy: List[str] = field(default_factory=list)
    on_spot_action: List[str] = field(default_factory=list)
    action_plan: List[str] = field(default_factory=list)
    staff_comment: str = ""
    attachments: List[str] = field(default_factory=list)
    employee_signature: str = ""
    status: CDRStatus = CDRStatus.DRAFT
    manager_decision: Optional[CDRManagerDecision] = None
    manager_comment: Optional[str] = None
    manager_signature: Optional[str] = None
    finalized_date: Optional[datetime] = None
