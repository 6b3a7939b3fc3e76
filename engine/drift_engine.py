"""Deviation metric and deterministic asset selection.

Deviation is target-relative: an asset holding 15% against a 10% target
(+0.5) outranks one holding 85% against an 80% target (+0.0625).
"""
from __future__ import annotations

from typing import Iterable, Optional

from portfolio.portfolio import Portfolio, WorkingAsset


def calculate_deviation(actual_percent: float, target_percent: float) -> float:
    """Fractional deviation of an allocation from its target.

    Negative means under-weighted, positive over-weighted. A zero target
    never deviates.
    """
    if target_percent == 0:
        return 0.0
    return actual_percent / target_percent - 1


def refresh_deviations(portfolio: Portfolio) -> None:
    for a in portfolio.assets:
        a.deviation = calculate_deviation(portfolio.current_percent(a), a.target_percent)


def most_underweighted(candidates: Iterable[WorkingAsset], tolerance: float = 0.0) -> Optional[WorkingAsset]:
    """Asset with the lowest deviation.

    Deviations within `tolerance` of the lowest count as tied; ties go to
    the earliest asset in the caller's list.
    """
    pool = list(candidates)
    if not pool:
        return None
    lowest = min(a.deviation for a in pool)
    return min((a for a in pool if a.deviation <= lowest + tolerance), key=lambda a: a.position)


def most_overweighted(candidates: Iterable[WorkingAsset], tolerance: float = 0.0) -> Optional[WorkingAsset]:
    """Asset with the highest deviation, ties broken as in most_underweighted."""
    pool = list(candidates)
    if not pool:
        return None
    highest = max(a.deviation for a in pool)
    return min((a for a in pool if a.deviation >= highest - tolerance), key=lambda a: a.position)
