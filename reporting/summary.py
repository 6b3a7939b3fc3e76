from __future__ import annotations
from dataclasses import asdict
from typing import Any, Dict
import pandas as pd
from engine.trade_planner import RebalanceResult

COLUMNS = ["amount", "current_value", "final_value", "target_percent", "current_percent", "final_percent"]

def transactions_frame(result: RebalanceResult) -> pd.DataFrame:
    """One row per transaction, indexed by asset name, in input order."""
    df = pd.DataFrame([asdict(t) for t in result.transactions], columns=["name"] + COLUMNS)
    return df.set_index("name")

def result_summary(result: RebalanceResult) -> Dict[str, Any]:
    s = result.summary
    return {
        "total_before": s.total_before,
        "total_after": s.total_after,
        "contribution": s.contribution,
        "num_buys": sum(1 for t in result.transactions if t.action == "BUY"),
        "num_sells": sum(1 for t in result.transactions if t.action == "SELL"),
    }
