"""
Deterministic numeric helpers shared by the scoring services.

Scores are rounded half-up (5.25 -> 5.3), never with Python's banker's
rounding, so identical inputs always produce identical published values.
"""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int = 1) -> float:
    """
    Round ``value`` half-up to ``places`` decimals.

    Example:
        >>> round_half_up(5.25)
        5.3
        >>> round_half_up(5.05)
        5.1
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_half_up_int(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
