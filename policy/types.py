from __future__ import annotations
from dataclasses import dataclass

@dataclass(frozen=True)
class AssetClass:
    name: str
    target_percent: float  # 0-100
    current_value: float
    sell: bool = False
