import json
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

from evstrack.reference.loader import DEFAULT_RATES_SNAPSHOT, DEFAULT_REFERENCE_SNAPSHOT

load_dotenv()

DEFAULT_CONTRACTOR_NAME = "CleanCo Services"


@dataclass(frozen=True)
class Settings:
    contractor_name: str = DEFAULT_CONTRACTOR_NAME
    language: str = "en"
    reference_snapshot: str = DEFAULT_REFERENCE_SNAPSHOT
    penalty_rates_snapshot: str = DEFAULT_RATES_SNAPSHOT
    rate_overrides: Dict[str, float] = field(default_factory=dict)
    remote_store_url: Optional[str] = None
    remote_store_timeout: float = 2.0
    seed_demo_data: bool = False
    demo_seed: int = 2025
    demo_year: int = 2025
    audit_log: str = "audit.log"


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _rate_overrides(raw: Optional[str]) -> Dict[str, float]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"EVS_PENALTY_OVERRIDES is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError("EVS_PENALTY_OVERRIDES must be a JSON object of label -> amount")
    return {str(label): float(amount) for label, amount in parsed.items()}


def get_settings() -> Settings:
    """Reads settings from the environment (and .env, if present)."""
    return Settings(
        contractor_name=os.getenv("EVS_CONTRACTOR_NAME", DEFAULT_CONTRACTOR_NAME),
        language=os.getenv("EVS_LANGUAGE", "en"),
        reference_snapshot=os.getenv("EVS_REFERENCE_SNAPSHOT", DEFAULT_REFERENCE_SNAPSHOT),
        penalty_rates_snapshot=os.getenv("EVS_PENALTY_RATES", DEFAULT_RATES_SNAPSHOT),
        rate_overrides=_rate_overrides(os.getenv("EVS_PENALTY_OVERRIDES")),
        remote_store_url=os.getenv("EVS_REMOTE_STORE_URL") or None,
        remote_store_timeout=float(os.getenv("EVS_REMOTE_STORE_TIMEOUT", "2.0")),
        seed_demo_data=_flag(os.getenv("EVS_SEED_DEMO_DATA")),
        demo_seed=int(os.getenv("EVS_DEMO_SEED", "2025")),
        demo_year=int(os.getenv("EVS_DEMO_YEAR", "2025")),
        audit_log=os.getenv("EVS_AUDIT_LOG", "audit.log"),
    )
