from __future__ import annotations
from typing import List
from engine.trade_planner import Transaction

def explain_transactions(transactions: List[Transaction]) -> List[str]:
    return [
        f"{str(t):<32} |  {t.current_percent:6.2f}% -> {t.final_percent:6.2f}%  (target {t.target_percent:.2f}%)"
        for t in transactions
    ]
