from __future__ import annotations
import math


def round_to_cents(value: float) -> float:
    """Round a monetary or percentage value to hundredths, halves rounding up."""
    return math.floor(value * 100 + 0.5) / 100
