from dataclasses import dataclass, field
from typing import Dict, List, Optional

from evstrack.models.reference import (
    InspectionForm,
    Location,
    User,
    UserRole,
    Zone,
)


@dataclass(frozen=True)
class CDROptions:
    manpower_discrepancy: List[str] = field(default_factory=list)
    material_discrepancy: List[str] = field(default_factory=list)
    equipment_discrepancy: List[str] = field(default_factory=list)
    on_spot_action: List[str] = field(default_factory=list)
    action_plan: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReferenceData:
    """
    Static configuration loaded once at startup.
    Read-only; every lookup returns None for an unknown id.
    """
    snapshot_version: str
    users: List[User]
    zones: List[Zone]
    locations: List[Location]
    forms: List[InspectionForm]
    cdr_options: CDROptions = field(default_factory=CDROptions)

    def _index(self, name: str) -> Dict[str, object]:
        # frozen dataclass: cache the id maps on the instance dict
        cache = self.__dict__.setdefault("_indexes", {})
        if name not in cache:
            cache[name] = {entity.id: entity for entity in getattr(self, name)}
        return cache[name]

    def user(self, user_id: str) -> Optional[User]:
        return self._index("users").get(user_id)

    def zone(self, zone_id: str) -> Optional[Zone]:
        return self._index("zones").get(zone_id)

    def location(self, location_id: str) -> Optional[Location]:
        return self._index("locations").get(location_id)

    def form(self, form_id: str) -> Optional[InspectionForm]:
        return self._index("forms").get(form_id)

    def zone_for_location(self, location_id: str) -> Optional[Zone]:
        location = self.location(location_id)
        return self.zone(location.zone_id) if location else None

    def form_for_location(self, location_id: str) -> Optional[InspectionForm]:
        location = self.location(location_id)
        return self.form(location.form_id) if location else None

    def inspectors(self) -> List[User]:
        return [u for u in self.users if u.role == UserRole.INSPECTOR]

    def supervisors(self) -> List[User]:
        return [u for u in self.users if u.role == UserRole.SUPERVISOR]
