import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from dicepattern.core.config import Config, FactorsConfig, load_config
from dicepattern.core.types import State

DEFAULT_YAML = Path(__file__).resolve().parents[1] / "config" / "default.yaml"


class ConfigTests(unittest.TestCase):
    def test_default_weights_sum_to_100(self) -> None:
        self.assertAlmostEqual(Config.default().factors.weights.total, 100.0)

    def test_shipped_yaml_matches_defaults(self) -> None:
        config = Config.from_yaml(DEFAULT_YAML)
        default = Config.default()
        self.assertEqual(config.factors, default.factors)
        self.assertEqual(config.engine, default.engine)
        self.assertEqual(config.insights, default.insights)

    def test_partial_yaml_keeps_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "custom.yaml"
            path.write_text("engine:\n  step_penalty: 10\nstorage:\n  db_path: other.db\n", encoding="utf-8")
            config = load_config(path)
        self.assertEqual(config.engine.step_penalty, 10)
        self.assertEqual(config.engine.min_entries, 3)
        self.assertEqual(config.storage.db_path, "other.db")
        self.assertEqual(config.factors, FactorsConfig())

    def test_missing_file_falls_back_to_defaults(self) -> None:
        config = load_config(Path("/nonexistent/dicepattern.yaml"))
        self.assertEqual(config.engine, Config.default().engine)

    def test_state_shares_must_be_monotonic(self) -> None:
        with self.assertRaises(ValidationError):
            FactorsConfig(state_k_share={"LOW": 0.5, "MID": 0.6, "HIGH": 0.1, "EXTREME": 0.0})
        with self.assertRaises(ValidationError):
            FactorsConfig(state_k_share={"LOW": 1.0, "MID": 0.5})

    def test_state_share_keys_coerced(self) -> None:
        config = FactorsConfig(state_k_share={"LOW": 1.0, "MID": 0.5, "HIGH": 0.2, "EXTREME": 0.0})
        self.assertEqual(config.state_k_share[State.MID], 0.5)


if __name__ == "__main__":
    unittest.main()
