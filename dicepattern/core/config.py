"""Configuration loading and validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from dicepattern.core.types import STATES, State


class FactorWeightsConfig(BaseModel):
    """Maximum contribution of each factor; the reference calibration sums to 100."""
    numeric_trend: float = 20.0
    current_state: float = 25.0
    markov_transition: float = 20.0
    distance_from_center: float = 15.0
    recent_pattern: float = 15.0
    alternation: float = 5.0

    @property
    def total(self) -> float:
        return (
            self.numeric_trend
            + self.current_state
            + self.markov_transition
            + self.distance_from_center
            + self.recent_pattern
            + self.alternation
        )


class FactorsConfig(BaseModel):
    """Factor bank calibration."""
    weights: FactorWeightsConfig = FactorWeightsConfig()
    dominance_margin: float = 0.10
    recent_window: int = 10
    recent_min_entries: int = 3
    alternation_high: float = 60.0
    alternation_low: float = 30.0
    # Share of the current-state weight awarded to K; B gets the rest.
    state_k_share: Dict[State, float] = Field(default={
        State.LOW: 1.0,
        State.MID: 0.48,
        State.HIGH: 0.12,
        State.EXTREME: 0.0,
    })

    @field_validator("state_k_share")
    @classmethod
    def _check_state_shares(cls, value: Dict[State, float]) -> Dict[State, float]:
        missing = [state.value for state in STATES if state not in value]
        if missing:
            raise ValueError(f"state_k_share missing states: {missing}")
        shares = [value[state] for state in STATES]
        if any(share < 0.0 or share > 1.0 for share in shares):
            raise ValueError("state_k_share values must lie in [0, 1]")
        if any(a < b for a, b in zip(shares, shares[1:])):
            raise ValueError("state_k_share must not increase from LOW to EXTREME")
        return value


class EngineConfig(BaseModel):
    """Aggregation and confidence parameters."""
    min_entries: int = 3
    full_sample_size: int = 30
    base_confidence_cap: float = 70.0
    consistency_window: int = 5
    consistency_weight: float = 30.0
    step_penalty: float = 5.0
    default_steps: int = 5


class InsightsConfig(BaseModel):
    """Insight thresholds."""
    min_entries: int = 5
    recent_window: int = 10
    recent_margin: int = 2
    volatility_high: float = 30.0
    volatility_low: float = 15.0
    alternation_high: float = 60.0
    alternation_low: float = 30.0


class StorageConfig(BaseModel):
    """Storage locations."""
    db_path: str = "data/dicepattern.db"
    export_dir: str = "exports"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "WARNING"
    structured: bool = False
    log_file: Optional[str] = None


@dataclass
class Config:
    """Top-level configuration."""
    factors: FactorsConfig = field(default_factory=FactorsConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    insights: InsightsConfig = field(default_factory=InsightsConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from a YAML file; missing sections keep defaults."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        config = cls()
        if "factors" in data:
            config.factors = FactorsConfig(**data["factors"])
        if "engine" in data:
            config.engine = EngineConfig(**data["engine"])
        if "insights" in data:
            config.insights = InsightsConfig(**data["insights"])
        if "storage" in data:
            config.storage = StorageConfig(**data["storage"])
        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])
        return config

    @classmethod
    def default(cls) -> "Config":
        return cls()


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from a file, or fall back to defaults."""
    if config_path is None:
        config_path = Path(__file__).resolve().parents[2] / "config" / "default.yaml"

    if config_path.exists():
        return Config.from_yaml(config_path)
    return Config.default()
