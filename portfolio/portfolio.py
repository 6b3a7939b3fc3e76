from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from common.money import round_to_cents
from policy.types import AssetClass


@dataclass
class WorkingAsset:
    """Mutable copy of an AssetClass for the duration of one solver call."""

    name: str
    target_percent: float
    current_value: float
    sell: bool
    position: int  # index in the caller's list, used as the tie-break
    working_value: float = 0.0
    transaction: float = 0.0
    target_value: float = 0.0
    deviation: float = 0.0

    @classmethod
    def from_asset_class(cls, asset: AssetClass, position: int, total_after: float) -> WorkingAsset:
        # Working values are whole cents from the start, so every later move lands on a cent.
        return cls(
            name=asset.name,
            target_percent=asset.target_percent,
            current_value=asset.current_value,
            sell=asset.sell,
            position=position,
            working_value=round_to_cents(asset.current_value),
            target_value=round_to_cents(asset.target_percent / 100 * total_after),
        )


@dataclass
class Portfolio:
    assets: List[WorkingAsset]
    total_before: float
    total_after: float

    @classmethod
    def from_asset_classes(cls, asset_classes: Sequence[AssetClass], amount: float) -> Portfolio:
        total_before = sum(a.current_value for a in asset_classes)
        total_after = total_before + amount
        assets = [WorkingAsset.from_asset_class(a, i, total_after) for i, a in enumerate(asset_classes)]
        return cls(assets=assets, total_before=total_before, total_after=total_after)

    def total_value(self) -> float:
        return sum(a.working_value for a in self.assets)

    def total_target_percent(self) -> float:
        return sum(a.target_percent for a in self.assets)

    def sellable(self) -> List[WorkingAsset]:
        return [a for a in self.assets if a.sell]

    def current_percent(self, asset: WorkingAsset) -> float:
        """Share of the post-trade total the asset holds right now, in percent."""
        if self.total_after <= 0:
            return 0.0
        return asset.working_value / self.total_after * 100

    def unrounded_target(self, asset: WorkingAsset) -> float:
        return asset.target_percent / 100 * self.total_after

    def apply(self, asset: WorkingAsset, delta: float) -> None:
        asset.working_value = round_to_cents(asset.working_value + delta)
        asset.transaction = round_to_cents(asset.transaction + delta)

    def set_value(self, asset: WorkingAsset, value: float) -> float:
        """Move the asset to exactly `value` (rounded to cents) and return the applied delta."""
        value = round_to_cents(value)
        delta = round_to_cents(value - asset.working_value)
        asset.transaction = round_to_cents(asset.transaction + delta)
        asset.working_value = value
        return delta
