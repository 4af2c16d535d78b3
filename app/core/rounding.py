# app/core/rounding.py
import math


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    Round halves away from zero for non-negative scores (2.5 -> 3).

    Python's round() rounds halves to even, which would shift published
    scores by one point on exact halves.
    """
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(round_half_up(value))
