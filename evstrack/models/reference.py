from dataclasses import dataclass, field
from enum import Enum
from typing import List


class UserRole(str, Enum):
    INSPECTOR = "INSPECTOR"
    SUPERVISOR = "SUPERVISOR"


class RiskCategory(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


@dataclass(frozen=True)
class User:
    id: str
    name: str
    username: str
    role: UserRole


@dataclass(frozen=True)
class LocalizedName:
    en: str
    ar: str = ""

    def get(self, language: str = "en") -> str:
        if language == "ar" and self.ar:
            return self.ar
        return self.en


@dataclass(frozen=True)
class Zone:
    id: str
    name: str
    risk_category: RiskCategory


@dataclass(frozen=True)
class Location:
    """
    A physical area. Belongs to exactly one zone and is inspected
    with exactly one form.
    """
    id: str
    name: LocalizedName
    zone_id: str
    form_id: str


@dataclass(frozen=True)
class EvaluationItem:
    id: str
    name: str
    max_score: int
    predefined_defects: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class InspectionForm:
    id: str
    name: str
    risk_tier: RiskCategory
    items: List[EvaluationItem] = field(default_factory=list)

    @property
    def max_score(self) -> int:
        return sum(item.max_score for item in self.items)

    def item(self, item_id: str):
        for item in self.items:
            if item.id == item_id:
                return item
        return None
