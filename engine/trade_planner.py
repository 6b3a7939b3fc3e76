"""Output records for a rebalancing run.

Turns the working set left behind by the solver into rounded, immutable
Transaction and Summary records.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from common.money import round_to_cents
from portfolio.portfolio import Portfolio


@dataclass(frozen=True)
class Transaction:
    """Per-asset outcome: signed trade amount plus before/after position."""

    name: str
    amount: float  # positive buys, negative sells
    current_value: float
    final_value: float
    target_percent: float
    current_percent: float
    final_percent: float

    @property
    def action(self) -> str:
        if self.amount > 0:
            return "BUY"
        if self.amount < 0:
            return "SELL"
        return "HOLD"

    def __str__(self) -> str:
        """Format transaction for display."""
        if self.action == "HOLD":
            return f"HOLD {self.name}"
        return f"{self.action} ${abs(self.amount):,.2f} {self.name}"


@dataclass(frozen=True)
class Summary:
    total_before: float
    total_after: float
    contribution: float


@dataclass(frozen=True)
class RebalanceResult:
    transactions: List[Transaction]
    summary: Summary

    def find(self, name: str) -> Optional[Transaction]:
        """First transaction for `name`, or None."""
        for t in self.transactions:
            if t.name == name:
                return t
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactions": [asdict(t) for t in self.transactions],
            "summary": asdict(self.summary),
        }


def _percent(value: float, total: float) -> float:
    return round_to_cents(value / total * 100) if total > 0 else 0.0


def build_result(portfolio: Portfolio, amount: float) -> RebalanceResult:
    transactions = [
        Transaction(
            name=a.name,
            amount=round_to_cents(a.transaction),
            current_value=round_to_cents(a.current_value),
            final_value=round_to_cents(a.working_value),
            target_percent=round_to_cents(a.target_percent),
            current_percent=_percent(a.current_value, portfolio.total_before),
            final_percent=_percent(a.working_value, portfolio.total_after),
        )
        for a in portfolio.assets
    ]

    total_before = round_to_cents(portfolio.total_before)
    contribution = round_to_cents(amount)
    summary = Summary(
        total_before=total_before,
        total_after=round_to_cents(total_before + contribution),
        contribution=contribution,
    )
    return RebalanceResult(transactions=transactions, summary=summary)
