"""Value classification into state bands, outcome classes and trends."""

from typing import Dict, Optional, Tuple

from dicepattern.core.types import STATES, Outcome, State, Trend

RANGE_MIN = 6
RANGE_MAX = 54

STATE_BANDS: Dict[State, Tuple[int, int]] = {
    State.LOW: (6, 18),
    State.MID: (19, 31),
    State.HIGH: (32, 43),
    State.EXTREME: (44, 54),
}

# K covers 6..31 (26 values), B covers 32..54 (23 values).
OUTCOME_BANDS: Dict[Outcome, Tuple[int, int]] = {
    Outcome.K: (6, 31),
    Outcome.B: (32, 54),
}

CENTER = (RANGE_MIN + RANGE_MAX) / 2
HALF_RANGE = (RANGE_MAX - RANGE_MIN) / 2

# |delta| <= TREND_DEAD_ZONE is flat.
TREND_DEAD_ZONE = 2


def classify_state(value: int) -> Optional[State]:
    """Map a value to its band, or None when it lies outside 6..54."""
    for state in STATES:
        low, high = STATE_BANDS[state]
        if low <= value <= high:
            return state
    return None


def classify_outcome(value: int) -> Optional[Outcome]:
    for outcome, (low, high) in OUTCOME_BANDS.items():
        if low <= value <= high:
            return outcome
    return None


def classify_trend(first: int, second: int) -> Trend:
    delta = second - first
    if delta > TREND_DEAD_ZONE:
        return Trend.RISING
    if delta < -TREND_DEAD_ZONE:
        return Trend.FALLING
    return Trend.FLAT
