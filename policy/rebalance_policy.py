from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict

DEFAULTS: Dict[str, Any] = {
    "target_sum_tolerance": 0.01,
    "deviation_tolerance": 0.0001,
    "min_trade": 0.01,
    "max_iterations": 1000,
}

@dataclass(frozen=True)
class RebalancePolicy:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _get(self, key: str) -> Any:
        return (self.raw.get("rebalance") or {}).get(key, DEFAULTS[key])

    @property
    def target_sum_tolerance(self) -> float:
        return float(self._get("target_sum_tolerance"))

    @property
    def deviation_tolerance(self) -> float:
        return float(self._get("deviation_tolerance"))

    @property
    def min_trade(self) -> float:
        return float(self._get("min_trade"))

    @property
    def max_iterations(self) -> int:
        return int(self._get("max_iterations"))
