from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class State(str, Enum):
    LOW = "LOW"
    MID = "MID"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


# Band order, lowest values first.
STATES: Tuple[State, ...] = (State.LOW, State.MID, State.HIGH, State.EXTREME)


class Outcome(str, Enum):
    K = "K"  # small half, 6..31
    B = "B"  # big half, 32..54

    @property
    def opposite(self) -> "Outcome":
        return Outcome.B if self is Outcome.K else Outcome.K


class Trend(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    FLAT = "flat"


@dataclass(frozen=True)
class Observation:
    id: int
    first_value: int
    second_value: int
    first_state: State
    second_state: State
    outcome: Outcome
    trend: Trend
    delta: int
    created_at: str = ""

    def to_record(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "first_value": self.first_value,
            "second_value": self.second_value,
            "first_state": self.first_state.value,
            "second_state": self.second_state.value,
            "outcome": self.outcome.value,
            "trend": self.trend.value,
            "delta": self.delta,
            "created_at": self.created_at,
        }


ObservationLog = Tuple[Observation, ...]

TransitionMatrix = Dict[State, Dict[State, int]]


@dataclass(frozen=True)
class FactorResult:
    name: str
    weight: float
    k_score: float
    b_score: float
    rationale: str


@dataclass(frozen=True)
class Forecast:
    step: int
    prob_k: int
    prob_b: int
    confidence: int
    factors: Tuple[FactorResult, ...] = field(default_factory=tuple)

    @property
    def favored(self) -> Optional[Outcome]:
        if self.prob_k == self.prob_b:
            return None
        return Outcome.K if self.prob_k > self.prob_b else Outcome.B
