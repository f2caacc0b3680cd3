from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


DRAFT_REFERENCE = "DRAFT"


class ReportStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    REVIEWED = "Reviewed"
    NEEDS_ACTION = "Needs Corrective Action"


@dataclass(frozen=True)
class InspectionResultItem:
    item_id: str
    score: float
    comment: str = ""
    defects: List[str] = field(default_factory=list)
    photos: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class InspectionReport:
    id: str
    reference_number: str
    inspector_id: str
    location_id: str
    date: datetime
    status: ReportStatus
    items: List[InspectionResultItem] = field(default_factory=list)
    supervisor_comment: Optional[str] = None
    sub_locations: List[str] = field(default_factory=list)
    batch_location_ids: Optional[List[str]] = None

    @property
    def actual_score(self) -> float:
        return sum(item.score for item in self.items)
