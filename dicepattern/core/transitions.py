"""Empirical state transition model.

Each observation contributes one transition, from the state of its first value
to the state of its second value. Transitions across observations are not
counted.
"""

from typing import Dict, Sequence

from dicepattern.core.types import STATES, Observation, State, TransitionMatrix
from dicepattern.core.utils import safe_div


def empty_matrix() -> TransitionMatrix:
    return {src: {dst: 0 for dst in STATES} for src in STATES}


def build_transition_matrix(log: Sequence[Observation]) -> TransitionMatrix:
    matrix = empty_matrix()
    for obs in log:
        matrix[obs.first_state][obs.second_state] += 1
    return matrix


def transition_probabilities(
    matrix: TransitionMatrix, from_state: State
) -> Dict[State, float]:
    """Row-conditional probabilities for ``from_state``.

    A row with no observed transitions yields 0.0 for every target state.
    """
    row = matrix[from_state]
    total = sum(row.values())
    return {dst: safe_div(row[dst], total, 0.0) for dst in STATES}
