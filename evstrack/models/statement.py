from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class GlobalPenaltyStatus(str, Enum):
    DRAFT = "Draft"
    APPROVED = "Approved"


class GlobalPenaltyItemStatus(str, Enum):
    APPROVED = "Approved"
    REJECTED = "Rejected"
    PENDING = "Pending"


@dataclass(frozen=True)
class GlobalPenaltyItem:
    id: str
    violation_name: str
    category: str
    occurrence_count: int
    penalty_per_occurrence: float
    total: float
    status: GlobalPenaltyItemStatus = GlobalPenaltyItemStatus.APPROVED
    manager_notes: str = ""
    linked_cdr_ids: List[str] = field(default_factory=list)
    is_manual: bool = False


@dataclass(frozen=True)
class GlobalPenaltyStatement:
    """
    Monthly roll-up of deducted penalty invoices for contractor billing.
    One per (month, year). Approved is terminal.
    """
    id: str
    reference_number: str
    month: int  # 1..12
    year: int
    status: GlobalPenaltyStatus
    contractor_name: str
    generated_date: datetime
    items: List[GlobalPenaltyItem] = field(default_factory=list)
    total_amount: float = 0.0
    total_violations: int = 0
    total_invoices: int = 0
    manager_general_comment: str = ""
    approved_date: Optional[datetime] = None
    approved_by: Optional[str] = None
