"""Input validation for the rebalancing solvers.

Every failure here is terminal: the solvers validate before building any
working state, so callers never see a partial result.
"""
from __future__ import annotations

import math
from typing import Any, List, Sequence

from policy.rebalance_policy import RebalancePolicy
from policy.types import AssetClass


class RebalanceError(ValueError):
    """Base class for rejected rebalancing requests."""


class InvalidInputError(RebalanceError):
    """Asset list is missing, empty, or holds something other than asset classes."""


class InvalidTargetsError(RebalanceError):
    """Target percentages do not add up to 100."""


class WithdrawalExceedsValueError(RebalanceError):
    """A withdrawal would take the portfolio below zero."""


def total_target_percent(asset_classes: Sequence[AssetClass]) -> float:
    return sum(a.target_percent for a in asset_classes)


def total_current_value(asset_classes: Sequence[AssetClass]) -> float:
    return sum(a.current_value for a in asset_classes)


def validate_asset_classes(asset_classes: Any, pol: RebalancePolicy) -> List[AssetClass]:
    """Validate the asset list shared by both solvers.

    Args:
        asset_classes: Candidate list of AssetClass records.
        pol: Tolerances to validate against.

    Returns:
        The asset classes as a list, in caller order.

    Raises:
        InvalidInputError: Not a non-empty list/tuple of AssetClass.
        InvalidTargetsError: Targets miss 100 by more than the tolerance.
    """
    if not isinstance(asset_classes, (list, tuple)) or len(asset_classes) == 0:
        raise InvalidInputError("asset_classes must be a non-empty list")
    for a in asset_classes:
        if not isinstance(a, AssetClass):
            raise InvalidInputError(f"Expected AssetClass, got {type(a).__name__}")

    total = total_target_percent(asset_classes)
    if abs(total - 100) > pol.target_sum_tolerance:
        raise InvalidTargetsError(f"Target percentages must sum to 100% (got {total:.2f}%)")
    return list(asset_classes)


def validate_amount(amount: Any, total_before: float) -> float:
    """Check the contribution/withdrawal amount against the portfolio value.

    Raises:
        InvalidInputError: Amount is not a finite number.
        WithdrawalExceedsValueError: Withdrawal is larger than the portfolio.
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
        raise InvalidInputError(f"amount must be a finite number, got {amount!r}")
    if total_before + amount < 0:
        raise WithdrawalExceedsValueError(
            f"Withdrawal amount exceeds total portfolio value "
            f"(${-amount:,.2f} > ${total_before:,.2f})"
        )
    return float(amount)
