from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class PenaltyRateTable:
    """
    Fixed penalty amount per discrepancy label.
    Labels with no entry fall back to default_rate.
    """
    rates: Dict[str, float] = field(default_factory=dict)
    default_rate: float = 500.0
    snapshot_version: str = "unversioned"

    def rate_for(self, label: str) -> float:
        rate = self.rates.get(label)
        if rate is None:
            return self.default_rate
        return rate

    def is_known(self, label: str) -> bool:
        return label in self.rates

    def with_overrides(self, overrides: Dict[str, float]) -> "PenaltyRateTable":
        if not overrides:
            return self
        merged = dict(self.rates)
        merged.update(overrides)
        return PenaltyRateTable(
            rates=merged,
            default_rate=self.default_rate,
            snapshot_version=f"{self.snapshot_version}+overrides",
        )
