"""Minimum contribution needed to bring every asset up to its target."""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from common.money import round_to_cents
from policy.allocation_policy import total_current_value, validate_asset_classes
from policy.rebalance_policy import RebalancePolicy
from policy.types import AssetClass

logger = logging.getLogger(__name__)


def calculate_balancing_contribution(
    asset_classes: Sequence[AssetClass],
    policy: Optional[RebalancePolicy] = None,
) -> float:
    """Smallest non-negative contribution that lets every asset reach its target.

    The most over-weighted asset fixes the portfolio size: at
    `current_value * 100 / target_percent` it sits exactly on target and
    every other asset is at or below target, so buys alone can balance.
    Assets with a zero target never bound the total.

    Raises:
        InvalidInputError: asset_classes is not a non-empty list of AssetClass.
        InvalidTargetsError: Targets do not sum to 100.
    """
    pol = policy or RebalancePolicy()
    classes = validate_asset_classes(asset_classes, pol)
    total_before = total_current_value(classes)

    required_total = 0.0
    bounding = None
    for a in classes:
        if a.target_percent <= 0:
            continue
        needed = a.current_value * 100 / a.target_percent
        if needed > required_total:
            required_total = needed
            bounding = a.name

    contribution = round_to_cents(max(0.0, required_total - total_before))
    logger.debug(
        f"Balancing contribution ${contribution:,.2f} "
        f"(portfolio ${total_before:,.2f} -> ${required_total:,.2f}, bound by {bounding})"
    )
    return contribution
