"""Narrative observations over the derived statistics."""

from typing import List, Optional, Sequence

from dicepattern.core.config import InsightsConfig
from dicepattern.core.patterns import compute_metrics
from dicepattern.core.types import STATES, Observation, Outcome
from dicepattern.core.utils import round_tenth, safe_div


def generate_insights(
    log: Sequence[Observation],
    config: Optional[InsightsConfig] = None,
) -> List[str]:
    cfg = config or InsightsConfig()
    if len(log) < cfg.min_entries:
        return [f"Insufficient data: at least {cfg.min_entries} entries are needed for pattern insights"]

    metrics = compute_metrics(log, cfg.recent_window)
    insights: List[str] = []

    trend = metrics.trend
    if trend.rising > trend.falling:
        insights.append(
            f"Rising trend dominant: {safe_div(trend.rising, trend.total) * 100:.0f}% of all entries"
        )
    elif trend.falling > trend.rising:
        insights.append(
            f"Falling trend dominant: {safe_div(trend.falling, trend.total) * 100:.0f}% of all entries"
        )
    else:
        insights.append("Trend balanced between rising and falling")

    # Ties go to the higher band.
    top_state = STATES[0]
    for state in STATES[1:]:
        if metrics.states[state] >= metrics.states[top_state]:
            top_state = state
    insights.append(f"State {top_state.value} appears most often ({metrics.states[top_state]}x)")

    k_count = metrics.classes[Outcome.K]
    b_count = metrics.classes[Outcome.B]
    total = k_count + b_count
    insights.append(
        f"K:B ratio = {safe_div(k_count, total) * 100:.0f}%:{safe_div(b_count, total) * 100:.0f}% "
        f"({k_count}:{b_count})"
    )

    recent = metrics.recent
    if recent.k_count > recent.b_count + cfg.recent_margin:
        insights.append(
            f"Last {cfg.recent_window} entries dominated by K -> B probability rising (balancing)"
        )
    elif recent.b_count > recent.k_count + cfg.recent_margin:
        insights.append(
            f"Last {cfg.recent_window} entries dominated by B -> K probability rising (balancing)"
        )
    else:
        insights.append(f"Last {cfg.recent_window} entries roughly balanced -> volatile pattern")

    # Thresholds apply to the displayed one-decimal values.
    volatility = round_tenth(metrics.dispersion.volatility)
    if volatility > cfg.volatility_high:
        insights.append(
            f"High volatility ({volatility:.1f}%) -> unstable pattern, forecasts less reliable"
        )
    elif volatility < cfg.volatility_low:
        insights.append(
            f"Low volatility ({volatility:.1f}%) -> stable pattern, forecasts more reliable"
        )
    else:
        insights.append(f"Normal volatility ({volatility:.1f}%)")

    rate = round_tenth(metrics.alternation_rate)
    if rate > cfg.alternation_high:
        insights.append(f"Very high alternation ({rate:.0f}%) -> alternating pattern, expect stabilisation")
    elif rate < cfg.alternation_low:
        insights.append(f"Low alternation ({rate:.0f}%) -> clustering/momentum, expect continuation")

    return insights
