import statistics
import unittest

from dicepattern.core.data.schema import build_observation
from dicepattern.core.patterns import (
    DispersionStats,
    alternation_rate,
    class_distribution,
    compute_metrics,
    dispersion_stats,
    recent_window,
    state_distribution,
    trend_tally,
)
from dicepattern.core.types import Outcome, State


def _log(*pairs):
    return [build_observation(idx + 1, a, b) for idx, (a, b) in enumerate(pairs)]


class PatternMetricsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.log = _log((10, 20), (15, 45), (50, 8))

    def test_trend_tally_partitions_log(self) -> None:
        tally = trend_tally(self.log)
        self.assertEqual((tally.rising, tally.falling, tally.flat), (2, 1, 0))
        self.assertEqual(tally.total, len(self.log))

    def test_distributions(self) -> None:
        states = state_distribution(self.log)
        self.assertEqual(
            states,
            {State.LOW: 1, State.MID: 1, State.HIGH: 0, State.EXTREME: 1},
        )
        self.assertEqual(class_distribution(self.log), {Outcome.K: 2, Outcome.B: 1})

    def test_recent_window(self) -> None:
        window = recent_window(self.log, 2)
        self.assertEqual(window.size, 2)
        self.assertEqual((window.k_count, window.b_count), (1, 1))
        self.assertEqual(window.last_state, State.LOW)
        self.assertEqual(window.last_outcome, Outcome.K)
        self.assertAlmostEqual(window.average_second_value, 26.5)

        longer = recent_window(self.log, 10)
        self.assertEqual(longer.size, 3)

    def test_recent_window_degenerate(self) -> None:
        for window in (recent_window(self.log, 0), recent_window(self.log, -3), recent_window([], 5)):
            self.assertEqual(window.size, 0)
            self.assertEqual((window.k_count, window.b_count), (0, 0))
            self.assertIsNone(window.last_state)
            self.assertIsNone(window.last_outcome)

    def test_alternation_rate(self) -> None:
        self.assertEqual(alternation_rate([]), 0.0)
        self.assertEqual(alternation_rate(self.log[:1]), 0.0)
        self.assertAlmostEqual(alternation_rate(self.log), 100.0)
        log = _log((10, 10), (10, 12), (10, 40), (10, 11))
        self.assertAlmostEqual(alternation_rate(log), 200.0 / 3)

    def test_dispersion_stats(self) -> None:
        stats = dispersion_stats(self.log)
        pooled = [10, 20, 15, 45, 50, 8]
        self.assertEqual(stats.total, 3)
        self.assertAlmostEqual(stats.mean_first, 25.0)
        self.assertAlmostEqual(stats.mean_second, 73 / 3)
        self.assertAlmostEqual(stats.mean_abs_delta, 82 / 3)
        self.assertEqual(stats.min_value, 8)
        self.assertEqual(stats.max_value, 50)
        self.assertAlmostEqual(stats.median, 17.5)
        self.assertAlmostEqual(stats.std_dev, statistics.pstdev(pooled))
        self.assertAlmostEqual(
            stats.volatility, statistics.pstdev(pooled) / statistics.mean(pooled) * 100
        )

    def test_single_entry_median(self) -> None:
        stats = dispersion_stats(_log((10, 30)))
        self.assertAlmostEqual(stats.median, 20.0)

    def test_empty_log_is_all_zero(self) -> None:
        stats = dispersion_stats([])
        self.assertEqual(stats, DispersionStats())
        for value in (
            stats.mean_first,
            stats.mean_second,
            stats.mean_abs_delta,
            stats.median,
            stats.std_dev,
            stats.volatility,
        ):
            self.assertEqual(value, 0.0)

    def test_compute_metrics_bundle(self) -> None:
        metrics = compute_metrics(self.log, window_size=10)
        self.assertEqual(metrics.trend, trend_tally(self.log))
        self.assertEqual(metrics.recent.size, 3)
        self.assertAlmostEqual(metrics.alternation_rate, 100.0)
        self.assertEqual(metrics.dispersion, dispersion_stats(self.log))

    def test_all_k_has_zero_alternation(self) -> None:
        log = _log((10, 12), (20, 15), (8, 30), (6, 6), (31, 31))
        self.assertEqual(alternation_rate(log), 0.0)


if __name__ == "__main__":
    unittest.main()
