from typing import Sequence

from dicepattern.core.config import FactorsConfig
from dicepattern.core.types import FactorResult, Observation, Outcome


class BaseFactor:
    name: str
    weight: float

    def __init__(self, config: FactorsConfig) -> None:
        self._config = config

    def score(self, log: Sequence[Observation]) -> FactorResult:
        raise NotImplementedError

    def _result(self, k_score: float, b_score: float, rationale: str) -> FactorResult:
        return FactorResult(
            name=self.name,
            weight=self.weight,
            k_score=k_score,
            b_score=b_score,
            rationale=rationale,
        )

    def _insufficient(self, rationale: str = "Insufficient data") -> FactorResult:
        return self._result(0.0, 0.0, rationale)

    def _split(self, rationale: str) -> FactorResult:
        half = self.weight / 2
        return self._result(half, half, rationale)

    def _award(self, outcome: Outcome, amount: float, rationale: str) -> FactorResult:
        if outcome is Outcome.K:
            return self._result(amount, 0.0, rationale)
        return self._result(0.0, amount, rationale)
