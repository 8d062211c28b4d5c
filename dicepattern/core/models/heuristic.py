from typing import List, Sequence

from dicepattern.core.classifier import CENTER, HALF_RANGE
from dicepattern.core.config import FactorsConfig
from dicepattern.core.models.base import BaseFactor
from dicepattern.core.patterns import alternation_rate, recent_window, trend_tally
from dicepattern.core.transitions import build_transition_matrix, transition_probabilities
from dicepattern.core.types import FactorResult, Observation, Outcome, State
from dicepattern.core.utils import round_tenth, safe_div


class NumericTrend(BaseFactor):
    """Direction of movement between the two values of each observation.

    Falling observations favor K, rising ones favor B. The weight goes to one
    side only when its rate beats the other by more than the dominance margin.
    """

    def __init__(self, config: FactorsConfig) -> None:
        super().__init__(config)
        self.name = "Numeric trend"
        self.weight = config.weights.numeric_trend

    def score(self, log: Sequence[Observation]) -> FactorResult:
        if not log:
            return self._insufficient("No data")

        tally = trend_tally(log)
        up_rate = safe_div(tally.rising, tally.total)
        down_rate = safe_div(tally.falling, tally.total)
        margin = self._config.dominance_margin

        if down_rate > up_rate + margin:
            return self._award(
                Outcome.K,
                self.weight,
                f"Falling trend dominant: {tally.falling}x ({down_rate * 100:.0f}%)",
            )
        if up_rate > down_rate + margin:
            return self._award(
                Outcome.B,
                self.weight,
                f"Rising trend dominant: {tally.rising}x ({up_rate * 100:.0f}%)",
            )
        return self._split(f"Balanced trend (up:down = {tally.rising}:{tally.falling})")


class CurrentState(BaseFactor):
    """State band of the latest second value.

    LOW leans fully to K, EXTREME fully to B, MID is a transition zone.
    """

    _NOTES = {
        State.LOW: "K dominant",
        State.MID: "transition zone",
        State.HIGH: "B dominant",
        State.EXTREME: "B territory",
    }

    def __init__(self, config: FactorsConfig) -> None:
        super().__init__(config)
        self.name = "Current state"
        self.weight = config.weights.current_state

    def score(self, log: Sequence[Observation]) -> FactorResult:
        if not log:
            return self._insufficient("No state yet")

        state = log[-1].second_state
        k_score = self.weight * self._config.state_k_share[state]
        return self._result(
            k_score,
            self.weight - k_score,
            f"Last state {state.value} -> {self._NOTES[state]}",
        )


class MarkovTransition(BaseFactor):
    """Empirical transition probabilities out of the latest state.

    Mass flowing into LOW/MID counts for K, into HIGH/EXTREME for B.
    """

    def __init__(self, config: FactorsConfig) -> None:
        super().__init__(config)
        self.name = "Markov transition"
        self.weight = config.weights.markov_transition

    def score(self, log: Sequence[Observation]) -> FactorResult:
        if len(log) < 2:
            return self._insufficient()

        last_state = log[-1].second_state
        probs = transition_probabilities(build_transition_matrix(log), last_state)
        k_prob = probs[State.LOW] + probs[State.MID]
        b_prob = probs[State.HIGH] + probs[State.EXTREME]

        return self._result(
            k_prob * self.weight,
            b_prob * self.weight,
            f"Transition from {last_state.value}: K={k_prob * 100:.0f}%, B={b_prob * 100:.0f}%",
        )


class DistanceFromCenter(BaseFactor):
    def __init__(self, config: FactorsConfig) -> None:
        super().__init__(config)
        self.name = "Distance from center"
        self.weight = config.weights.distance_from_center

    def score(self, log: Sequence[Observation]) -> FactorResult:
        if not log:
            return self._insufficient("No data")

        value = log[-1].second_value
        distance = abs(value - CENTER)
        ratio = min(distance / HALF_RANGE, 1.0)

        if value < CENTER:
            return self._award(
                Outcome.K,
                ratio * self.weight,
                f"Value {value} sits on the small side ({distance:g} from center)",
            )
        return self._award(
            Outcome.B,
            ratio * self.weight,
            f"Value {value} sits on the big side ({distance:g} from center)",
        )


class RecentPattern(BaseFactor):
    """Balancing over the recent window.

    A class that dominates the window is expected to give way, so the weight
    goes to the opposite class.
    """

    def __init__(self, config: FactorsConfig) -> None:
        super().__init__(config)
        self.name = "Recent pattern"
        self.weight = config.weights.recent_pattern

    def score(self, log: Sequence[Observation]) -> FactorResult:
        if len(log) < self._config.recent_min_entries:
            return self._insufficient()

        size = min(self._config.recent_window, len(log))
        window = recent_window(log, size)
        k_rate = safe_div(window.k_count, window.size)
        b_rate = safe_div(window.b_count, window.size)
        margin = self._config.dominance_margin

        if k_rate > b_rate + margin:
            return self._award(
                Outcome.B,
                self.weight,
                f"Last {size}: K dominant ({window.k_count}/{size}) -> expect B (balancing)",
            )
        if b_rate > k_rate + margin:
            return self._award(
                Outcome.K,
                self.weight,
                f"Last {size}: B dominant ({window.b_count}/{size}) -> expect K (balancing)",
            )
        return self._split(
            f"Last {size}: balanced (K:B = {window.k_count}:{window.b_count})"
        )


class AlternationIndex(BaseFactor):
    """K/B switching frequency.

    Frequent switching is read as due for a repeat of the opposite class,
    rare switching as momentum in the current class.
    """

    def __init__(self, config: FactorsConfig) -> None:
        super().__init__(config)
        self.name = "Alternation index"
        self.weight = config.weights.alternation

    def score(self, log: Sequence[Observation]) -> FactorResult:
        if len(log) < 2:
            return self._insufficient()

        rate = round_tenth(alternation_rate(log))
        last = log[-1].outcome

        if rate > self._config.alternation_high:
            return self._award(
                last.opposite,
                self.weight,
                f"High alternation ({rate:.0f}%) + last {last.value} -> expect {last.opposite.value}",
            )
        if rate < self._config.alternation_low:
            return self._award(
                last,
                self.weight,
                f"Low alternation ({rate:.0f}%) + momentum {last.value} -> expect {last.value} again",
            )
        return self._split(f"Normal alternation ({rate:.0f}%)")


def build_factor_bank(config: FactorsConfig) -> List[BaseFactor]:
    return [
        NumericTrend(config),
        CurrentState(config),
        MarkovTransition(config),
        DistanceFromCenter(config),
        RecentPattern(config),
        AlternationIndex(config),
    ]
