"""Rebalance engine for contributions and withdrawals.

Allocates a signed cash amount across asset classes so that the resulting
allocation lands as close as possible to the target percentages:

1. Internal rebalancing: sellable over-weighted assets fund sellable
   under-weighted ones, total value unchanged.
2. The external amount: a greedy buy loop for contributions, a branch
   cascade for withdrawals.
3. Any residual left by rounding goes to a single asset.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from common.money import round_to_cents
from engine.drift_engine import most_overweighted, most_underweighted, refresh_deviations
from engine.trade_planner import RebalanceResult, build_result
from policy.allocation_policy import total_current_value, validate_amount, validate_asset_classes
from policy.rebalance_policy import RebalancePolicy
from policy.types import AssetClass
from portfolio.portfolio import Portfolio, WorkingAsset

logger = logging.getLogger(__name__)


def _rebalance_internally(portfolio: Portfolio, pol: RebalancePolicy) -> int:
    """Transfer value from over-weighted to under-weighted sellable assets.

    Returns:
        Number of transfers made.
    """
    sellable = portfolio.sellable()
    tol = pol.deviation_tolerance
    transfers = 0

    for _ in range(pol.max_iterations):
        refresh_deviations(portfolio)

        seller = most_overweighted(
            [a for a in sellable if a.working_value > pol.min_trade and a.deviation > tol], tol
        )
        buyer = most_underweighted([a for a in sellable if a.deviation < -tol], tol)
        if seller is None or buyer is None:
            break

        seller_excess = seller.working_value - portfolio.unrounded_target(seller)
        buyer_deficit = portfolio.unrounded_target(buyer) - buyer.working_value
        transfer = round_to_cents(
            min(max(0.0, seller_excess), max(0.0, buyer_deficit), seller.working_value)
        )
        if transfer < pol.min_trade:
            break

        portfolio.apply(seller, -transfer)
        portfolio.apply(buyer, transfer)
        transfers += 1
        logger.debug(f"Internal transfer ${transfer:,.2f}: {seller.name} -> {buyer.name}")
    else:
        logger.debug(f"Internal rebalancing stopped at iteration cap ({pol.max_iterations})")

    return transfers


def _set_values(portfolio: Portfolio, assets: Sequence[WorkingAsset], values: Sequence[float]) -> float:
    """Move each asset to its new value; returns the total applied delta."""
    applied = 0.0
    for asset, value in zip(assets, values):
        applied += portfolio.set_value(asset, value)
    return round_to_cents(applied)


def _capped_values(total: float, assets: Sequence[WorkingAsset]) -> List[float]:
    """Shrink the assets to `total`, as close to their target ratio as selling alone allows.

    Zero-target assets are sold first, pro rata to value. The rest are
    water-filled: each ends at min(working_value, level * target_percent),
    so no asset is ever raised.
    """
    weighted = [a for a in assets if a.target_percent > 0]
    unweighted = [a for a in assets if a.target_percent <= 0]
    values = {}

    kept = sum(a.working_value for a in weighted)
    spare = total - kept
    unweighted_value = sum(a.working_value for a in unweighted)
    for a in unweighted:
        values[a.position] = spare * a.working_value / unweighted_value if spare > 0 else 0.0

    if spare < 0:
        left = total
        weight_left = sum(a.target_percent for a in weighted)
        for a in sorted(weighted, key=lambda a: (a.working_value / a.target_percent, a.position)):
            value = min(a.working_value, left * a.target_percent / weight_left)
            values[a.position] = value
            left -= value
            weight_left -= a.target_percent
    else:
        for a in weighted:
            values[a.position] = a.working_value

    return [values[a.position] for a in assets]


def _rebalance_group(portfolio: Portfolio, group: Sequence[WorkingAsset], amount: float) -> Optional[float]:
    """Withdraw `amount` from the group, leaving it as close to its own target ratio as possible.

    Returns:
        The applied delta, or None when the group cannot cover the withdrawal.
    """
    group_after = sum(a.working_value for a in group) + amount
    if group_after < 0:
        return None
    return _set_values(portfolio, group, _capped_values(group_after, group))


def _withdraw_to_targets(portfolio: Portfolio) -> float:
    """Move every asset to its share of the post-withdrawal total, regardless of sell flags."""
    total_target = portfolio.total_target_percent()
    values = [portfolio.total_after * a.target_percent / total_target for a in portfolio.assets]
    return _set_values(portfolio, portfolio.assets, values)


def _perfect_balance_achievable(portfolio: Portfolio, pol: RebalancePolicy) -> bool:
    """True when every asset can reach its target by selling alone."""
    return all(
        portfolio.unrounded_target(a) <= a.working_value + pol.min_trade for a in portfolio.assets
    )


def _apply_withdrawal(portfolio: Portfolio, amount: float, pol: RebalancePolicy) -> float:
    """Apply a withdrawal; returns the amount still to be placed."""
    if round_to_cents(portfolio.total_after) == 0:
        logger.debug("Withdrawal: full liquidation")
        for a in portfolio.assets:
            if a.working_value > 0:
                portfolio.set_value(a, 0.0)
        # Nothing is left to place; a cent gap here only comes from sub-cent holdings.
        return 0.0

    if _perfect_balance_achievable(portfolio, pol):
        logger.debug("Withdrawal: perfect balance achievable, moving every asset to target")
        return round_to_cents(amount - _withdraw_to_targets(portfolio))

    sellable = portfolio.sellable()
    if sellable:
        group = sellable
        label = "sellable assets"
    else:
        group = [
            a for a in portfolio.assets
            if portfolio.total_before > 0
            and a.working_value / portfolio.total_before * 100 > a.target_percent
        ]
        label = "over-weighted assets"

    if group:
        applied = _rebalance_group(portfolio, group, amount)
        if applied is not None:
            logger.debug(f"Withdrawal: taken from {label} ({', '.join(a.name for a in group)})")
            return round_to_cents(amount - applied)

    logger.debug("Withdrawal: falling back to global target ratios")
    return round_to_cents(amount - _withdraw_to_targets(portfolio))


def _apply_contribution(portfolio: Portfolio, amount: float, pol: RebalancePolicy) -> float:
    """Greedy buy loop; returns the amount still to be placed."""
    remaining = amount
    while remaining >= pol.min_trade:
        refresh_deviations(portfolio)
        asset = most_underweighted(
            [a for a in portfolio.assets if round_to_cents(a.target_value - a.working_value) >= pol.min_trade],
            pol.deviation_tolerance,
        )
        if asset is None:
            break

        buy = round_to_cents(min(remaining, asset.target_value - asset.working_value))
        if buy < pol.min_trade:
            break

        portfolio.apply(asset, buy)
        remaining = round_to_cents(remaining - buy)
        logger.debug(f"Buy ${buy:,.2f} {asset.name} (deviation {asset.deviation:+.4f}), ${remaining:,.2f} left")
    return remaining


def _apply_residual(portfolio: Portfolio, remaining: float, pol: RebalancePolicy) -> None:
    """Place a leftover amount that no phase could allocate."""
    refresh_deviations(portfolio)
    if remaining > 0:
        asset = most_underweighted(portfolio.assets, pol.deviation_tolerance)
        portfolio.apply(asset, remaining)
        logger.debug(f"Residual ${remaining:,.2f} added to {asset.name}")
        return

    # Withdrawals: most over-weighted first, never below zero.
    holders = sorted(
        (a for a in portfolio.assets if a.working_value > 0),
        key=lambda a: (-a.deviation, a.position),
    )
    for asset in holders:
        if remaining > -pol.min_trade:
            break
        take = max(remaining, -asset.working_value)
        portfolio.apply(asset, take)
        remaining = round_to_cents(remaining - take)
        logger.debug(f"Residual ${-take:,.2f} taken from {asset.name}")


def rebalance_portfolio(
    amount: float,
    asset_classes: Sequence[AssetClass],
    policy: Optional[RebalancePolicy] = None,
) -> RebalanceResult:
    """Allocate a contribution or withdrawal across asset classes.

    Args:
        amount: Positive to contribute, negative to withdraw, zero to only
            rebalance among sellable assets.
        asset_classes: Non-empty list of asset classes whose targets sum to 100.
        policy: Numeric tolerances; defaults apply when omitted.

    Returns:
        RebalanceResult with one Transaction per asset class, in input order,
        and the before/after Summary.

    Raises:
        InvalidInputError: asset_classes is not a non-empty list of AssetClass.
        InvalidTargetsError: Targets do not sum to 100.
        WithdrawalExceedsValueError: The withdrawal is larger than the portfolio.
    """
    pol = policy or RebalancePolicy()
    classes = validate_asset_classes(asset_classes, pol)
    amount = validate_amount(amount, total_current_value(classes))

    portfolio = Portfolio.from_asset_classes(classes, amount)
    logger.debug(
        f"Rebalancing {len(classes)} assets: ${portfolio.total_before:,.2f} -> "
        f"${portfolio.total_after:,.2f} (amount ${amount:,.2f})"
    )

    if portfolio.sellable() and portfolio.total_after > pol.min_trade:
        transfers = _rebalance_internally(portfolio, pol)
        logger.debug(f"Internal rebalancing made {transfers} transfer(s)")

    remaining = amount
    if amount < 0:
        remaining = _apply_withdrawal(portfolio, amount, pol)
    elif amount > 0:
        remaining = _apply_contribution(portfolio, amount, pol)

    if abs(remaining) >= pol.min_trade:
        _apply_residual(portfolio, remaining, pol)

    return build_result(portfolio, amount)
