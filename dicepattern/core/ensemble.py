from collections import Counter
from typing import List, Optional, Sequence

from dicepattern.core.config import Config
from dicepattern.core.log import get_logger
from dicepattern.core.models.base import BaseFactor
from dicepattern.core.models.heuristic import build_factor_bank
from dicepattern.core.types import Forecast, Observation
from dicepattern.core.utils import round_half_up

logger = get_logger(__name__)


class HybridPredictionEngine:
    """Combines the factor bank into a K/B forecast with a confidence score.

    Every call recomputes from the log it is given. Multi-step forecasts do
    not simulate future observations: each step reuses the same probabilities
    and only the confidence is discounted by the horizon.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        factors: Optional[List[BaseFactor]] = None,
    ) -> None:
        self._config = config or Config.default()
        self._engine = self._config.engine
        self._factors = factors if factors is not None else build_factor_bank(self._config.factors)

    def predict(self, log: Sequence[Observation], step: int = 1) -> Forecast:
        """Forecast the class of the observation ``step`` positions ahead.

        Args:
            log: Observations in chronological order
            step: Horizon, 1 for the next observation

        Returns:
            Forecast whose probabilities always sum to 100. Logs shorter than
            the minimum yield a 50/50 forecast with zero confidence.
        """
        if step < 1:
            raise ValueError(f"step must be >= 1, got {step}")

        if len(log) < self._engine.min_entries:
            return Forecast(step=step, prob_k=50, prob_b=50, confidence=0, factors=())

        results = tuple(factor.score(log) for factor in self._factors)
        total_k = sum(r.k_score for r in results)
        total_b = sum(r.b_score for r in results)
        grand_total = total_k + total_b

        if grand_total > 0:
            prob_k = round_half_up(100.0 * total_k / grand_total)
        else:
            prob_k = 50

        forecast = Forecast(
            step=step,
            prob_k=prob_k,
            prob_b=100 - prob_k,
            confidence=self.confidence(log, step),
            factors=results,
        )
        logger.debug(
            "forecast",
            step=step,
            entries=len(log),
            prob_k=forecast.prob_k,
            prob_b=forecast.prob_b,
            confidence=forecast.confidence,
        )
        return forecast

    def predict_multi_step(self, log: Sequence[Observation], steps: int) -> List[Forecast]:
        if steps < 0:
            raise ValueError(f"steps must be >= 0, got {steps}")
        return [self.predict(log, step) for step in range(1, steps + 1)]

    def confidence(self, log: Sequence[Observation], step: int = 1) -> int:
        """Confidence 0..100 from sample size and recent state consistency.

        base = min(n / full_sample_size * 100, cap), plus up to
        ``consistency_weight`` points for the share of the dominant state in
        the last ``consistency_window`` entries, minus ``step_penalty`` for
        each step beyond the first.
        """
        if len(log) < self._engine.min_entries:
            return 0

        cfg = self._engine
        base = min(len(log) / cfg.full_sample_size * 100.0, cfg.base_confidence_cap)
        penalty = (step - 1) * cfg.step_penalty
        return round_half_up(max(0.0, base + self._consistency(log) - penalty))

    def _consistency(self, log: Sequence[Observation]) -> float:
        window = self._engine.consistency_window
        if window <= 0 or len(log) < window:
            return 0.0
        counts = Counter(obs.second_state for obs in log[-window:])
        max_freq = max(counts.values())
        return max_freq / window * self._engine.consistency_weight
