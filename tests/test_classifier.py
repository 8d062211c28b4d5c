import unittest

from dicepattern.core.classifier import (
    RANGE_MAX,
    RANGE_MIN,
    classify_outcome,
    classify_state,
    classify_trend,
)
from dicepattern.core.types import Outcome, State, Trend


class ClassifierTests(unittest.TestCase):
    def test_every_in_range_value_has_one_state_and_class(self) -> None:
        for value in range(RANGE_MIN, RANGE_MAX + 1):
            self.assertIsNotNone(classify_state(value), value)
            self.assertIsNotNone(classify_outcome(value), value)

    def test_out_of_range_is_undefined(self) -> None:
        for value in (-1, 0, 5, 55, 100):
            self.assertIsNone(classify_state(value))
            self.assertIsNone(classify_outcome(value))

    def test_band_edges(self) -> None:
        expected = {
            6: State.LOW,
            18: State.LOW,
            19: State.MID,
            31: State.MID,
            32: State.HIGH,
            43: State.HIGH,
            44: State.EXTREME,
            54: State.EXTREME,
        }
        for value, state in expected.items():
            self.assertEqual(classify_state(value), state, value)

    def test_outcome_split_is_asymmetric(self) -> None:
        self.assertEqual(classify_outcome(31), Outcome.K)
        self.assertEqual(classify_outcome(32), Outcome.B)
        values = range(RANGE_MIN, RANGE_MAX + 1)
        k_count = sum(1 for v in values if classify_outcome(v) is Outcome.K)
        b_count = sum(1 for v in values if classify_outcome(v) is Outcome.B)
        self.assertEqual((k_count, b_count), (26, 23))

    def test_trend_dead_zone(self) -> None:
        self.assertEqual(classify_trend(10, 13), Trend.RISING)
        self.assertEqual(classify_trend(10, 12), Trend.FLAT)
        self.assertEqual(classify_trend(10, 10), Trend.FLAT)
        self.assertEqual(classify_trend(10, 8), Trend.FLAT)
        self.assertEqual(classify_trend(10, 7), Trend.FALLING)


if __name__ == "__main__":
    unittest.main()
