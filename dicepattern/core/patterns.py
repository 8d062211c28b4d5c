"""Secondary statistics derived from the observation log."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from dicepattern.core.types import STATES, Observation, Outcome, State, Trend


@dataclass(frozen=True)
class TrendTally:
    rising: int = 0
    falling: int = 0
    flat: int = 0

    @property
    def total(self) -> int:
        return self.rising + self.falling + self.flat


@dataclass(frozen=True)
class RecentWindow:
    entries: Tuple[Observation, ...] = field(default_factory=tuple)
    k_count: int = 0
    b_count: int = 0
    last_state: Optional[State] = None
    last_outcome: Optional[Outcome] = None
    average_second_value: float = 0.0

    @property
    def size(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class DispersionStats:
    """Pooled statistics over every first and second value in the log."""

    total: int = 0
    mean_first: float = 0.0
    mean_second: float = 0.0
    mean_abs_delta: float = 0.0
    min_value: int = 0
    max_value: int = 0
    median: float = 0.0
    std_dev: float = 0.0
    volatility: float = 0.0


@dataclass(frozen=True)
class PatternMetrics:
    trend: TrendTally
    states: Dict[State, int]
    classes: Dict[Outcome, int]
    recent: RecentWindow
    alternation_rate: float
    dispersion: DispersionStats


def trend_tally(log: Sequence[Observation]) -> TrendTally:
    counts = Counter(obs.trend for obs in log)
    return TrendTally(
        rising=counts[Trend.RISING],
        falling=counts[Trend.FALLING],
        flat=counts[Trend.FLAT],
    )


def state_distribution(log: Sequence[Observation]) -> Dict[State, int]:
    counts = Counter(obs.second_state for obs in log)
    return {state: counts[state] for state in STATES}


def class_distribution(log: Sequence[Observation]) -> Dict[Outcome, int]:
    counts = Counter(obs.outcome for obs in log)
    return {outcome: counts[outcome] for outcome in Outcome}


def recent_window(log: Sequence[Observation], window_size: int) -> RecentWindow:
    if window_size <= 0 or not log:
        return RecentWindow()

    entries = tuple(log[-window_size:])
    k_count = sum(1 for obs in entries if obs.outcome is Outcome.K)
    last = entries[-1]
    return RecentWindow(
        entries=entries,
        k_count=k_count,
        b_count=len(entries) - k_count,
        last_state=last.second_state,
        last_outcome=last.outcome,
        average_second_value=float(np.mean([obs.second_value for obs in entries])),
    )


def alternation_rate(log: Sequence[Observation]) -> float:
    """Percentage of adjacent pairs whose outcome class differs."""
    if len(log) < 2:
        return 0.0
    switches = sum(
        1 for prev, cur in zip(log, log[1:]) if prev.outcome is not cur.outcome
    )
    return switches / (len(log) - 1) * 100.0


def dispersion_stats(log: Sequence[Observation]) -> DispersionStats:
    if not log:
        return DispersionStats()

    first = np.array([obs.first_value for obs in log], dtype=float)
    second = np.array([obs.second_value for obs in log], dtype=float)
    deltas = np.array([obs.delta for obs in log], dtype=float)
    pooled = np.concatenate([first, second])

    mean = float(pooled.mean())
    std_dev = float(pooled.std())  # population (ddof=0)
    volatility = std_dev / mean * 100.0 if mean else 0.0

    return DispersionStats(
        total=len(log),
        mean_first=float(first.mean()),
        mean_second=float(second.mean()),
        mean_abs_delta=float(np.abs(deltas).mean()),
        min_value=int(pooled.min()),
        max_value=int(pooled.max()),
        median=float(np.median(pooled)),
        std_dev=std_dev,
        volatility=volatility,
    )


def compute_metrics(log: Sequence[Observation], window_size: int = 10) -> PatternMetrics:
    return PatternMetrics(
        trend=trend_tally(log),
        states=state_distribution(log),
        classes=class_distribution(log),
        recent=recent_window(log, window_size),
        alternation_rate=alternation_rate(log),
        dispersion=dispersion_stats(log),
    )
