"""Numeric helpers shared by models and statistics."""

import math


def round_half_up(value: float) -> int:
    """Round halves up (2.5 -> 3), unlike Python's round-half-to-even."""
    return math.floor(value + 0.5)


def safe_percentage(numerator: float, denominator: float) -> int:
    """Rounded ``numerator / denominator * 100``; 0 when the denominator is 0."""
    if not denominator:
        return 0
    return round_half_up(numerator / denominator * 100)
