from __future__ import annotations

import math


def clamp(value: float, low: float = 0.0, high: float = 10.0) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; 8.5 must score 9 every time.
    return int(math.floor(value + 0.5))


def signal_to_score(value: float) -> int:
    return round_half_up(clamp(float(value)))
