from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class PenaltyStatus(str, Enum):
    PENDING = "Pending Approval"
    DEDUCTED = "Approved Penalty Case"


@dataclass(frozen=True)
class PenaltyItem:
    description: str
    category: str
    amount: float


@dataclass(frozen=True)
class PenaltyInvoice:
    id: str
    cdr_id: str
    cdr_reference: str
    date_generated: datetime
    location_name: str
    inspector_name: str
    items: List[PenaltyItem] = field(default_factory=list)
    total_amount: float = 0.0
    status: PenaltyStatus = PenaltyStatus.PENDING
    manager_name: Optional[str] = None
    approval_date: Optional[datetime] = None
    comments: Optional[str] = None
