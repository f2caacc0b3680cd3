import json
from functools import lru_cache
from pathlib import Path
from typing import Dict

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
from evstrack.penalty.rates import PenaltyRateTable
from evstrack.reference.data import CDROptions, ReferenceData


SNAPSHOT_DIR = Path(__file__).parent / "snapshots"

DEFAULT_REFERENCE_SNAPSHOT = "hospital_v1.json"
DEFAULT_RATES_SNAPSHOT = "penalty_rates_v1.json"


def _read_snapshot(filename: str) -> Dict:
    snapshot_path = SNAPSHOT_DIR / filename

    if not snapshot_path.exists():
        raise FileNotFoundError(f"Reference snapshot not found: {filename}")

    with open(snapshot_path, "r", encoding="utf-8") as f:
        snapshot = json.load(f)

    if "snapshot_version" not in snapshot:
        raise ValueError(f"Invalid snapshot {filename}: missing snapshot_version")

    return snapshot


def _build_form(raw: Dict, defect_keys) -> InspectionForm:
    items = [
        EvaluationItem(
            id=item["id"],
            name=item["name"],
            max_score=item["max_score"],
            predefined_defects=list(item.get("predefined_defects", defect_keys)),
        )
        for item in raw["items"]
    ]
    return InspectionForm(
        id=raw["id"],
        name=raw["name"],
        risk_tier=RiskCategory(raw["risk_tier"]),
        items=items,
    )


@lru_cache(maxsize=None)
def load_reference_snapshot(filename: str = DEFAULT_REFERENCE_SNAPSHOT) -> ReferenceData:
    """
    Load users, zones, locations and inspection forms from a versioned
    snapshot. Snapshots are static and reviewable.
    """
    snapshot = _read_snapshot(filename)
    defect_keys = snapshot.get("defect_keys", [])

    users = [
        User(id=u["id"], name=u["name"], username=u["username"], role=UserRole(u["role"]))
        for u in snapshot.get("users", [])
    ]
    zones = [
        Zone(id=z["id"], name=z["name"], risk_category=RiskCategory(z["risk_category"]))
        for z in snapshot.get("zones", [])
    ]
    locations = [
        Location(
            id=loc["id"],
            name=LocalizedName(en=loc["name"]["en"], ar=loc["name"].get("ar", "")),
            zone_id=loc["zone_id"],
            form_id=loc["form_id"],
        )
        for loc in snapshot.get("locations", [])
    ]
    forms = [_build_form(f, defect_keys) for f in snapshot.get("forms", [])]

    options = snapshot.get("cdr_options", {})

    return ReferenceData(
        snapshot_version=snapshot["snapshot_version"],
        users=users,
        zones=zones,
        locations=locations,
        forms=forms,
        cdr_options=CDROptions(
            manpower_discrepancy=options.get("manpower_discrepancy", []),
            material_discrepancy=options.get("material_discrepancy", []),
            equipment_discrepancy=options.get("equipment_discrepancy", []),
            on_spot_action=options.get("on_spot_action", []),
            action_plan=options.get("action_plan", []),
        ),
    )


@lru_cache(maxsize=None)
def load_penalty_rates(filename: str = DEFAULT_RATES_SNAPSHOT) -> PenaltyRateTable:
    snapshot = _read_snapshot(filename)

    rates = dict(snapshot.get("rates", {}))
    default_label = snapshot.get("default_label", "Other")
    if default_label not in rates:
        raise ValueError(f"Invalid rate snapshot {filename}: no rate for '{default_label}'")

    default_rate = float(rates.pop(default_label))
    return PenaltyRateTable(
        rates={label: float(amount) for label, amount in rates.items()},
        default_rate=default_rate,
        snapshot_version=snapshot["snapshot_version"],
    )
