"""Single owner of the observation log and entry point for hosts."""

from typing import Any, Callable, Iterable, List, Optional

from dicepattern.core.config import Config
from dicepattern.core.data.schema import (
    MalformedLogError,
    RollValidationError,
    build_observation,
    parse_log,
)
from dicepattern.core.ensemble import HybridPredictionEngine
from dicepattern.core.insights import generate_insights
from dicepattern.core.log import get_logger
from dicepattern.core.patterns import PatternMetrics, compute_metrics
from dicepattern.core.transitions import build_transition_matrix
from dicepattern.core.types import Forecast, Observation, ObservationLog, TransitionMatrix
from dicepattern.core.utils import now_ms, utc_now_iso

logger = get_logger(__name__)


class Session:
    """Holds the log and answers every query by recomputing from it.

    The session performs no I/O. Hosts persist ``snapshot()`` after each
    mutating call. Access must be serialized by the host.
    """

    def __init__(
        self,
        observations: Optional[Iterable[Observation]] = None,
        config: Optional[Config] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._config = config or Config.default()
        self._engine = HybridPredictionEngine(self._config)
        self._clock = clock
        self._log: ObservationLog = tuple(observations or ())
        self._last_id = max((obs.id for obs in self._log), default=0)

    def __len__(self) -> int:
        return len(self._log)

    def snapshot(self) -> ObservationLog:
        return self._log

    def _next_id(self) -> int:
        # Millisecond ids like exported logs, bumped to stay strictly increasing.
        return max(int(self._clock()), self._last_id + 1)

    def append(self, first_value: Any, second_value: Any) -> Observation:
        """Append a new observation.

        Raises:
            RollValidationError: either value is non-numeric or outside 6..54
        """
        try:
            obs = build_observation(self._next_id(), first_value, second_value, utc_now_iso())
        except RollValidationError as exc:
            logger.warning("append_rejected", first=first_value, second=second_value, error=str(exc))
            raise
        self._last_id = obs.id
        self._log = self._log + (obs,)
        logger.info(
            "append",
            id=obs.id,
            first=obs.first_value,
            second=obs.second_value,
            outcome=obs.outcome.value,
        )
        return obs

    def remove(self, observation_id: int) -> None:
        remaining = tuple(obs for obs in self._log if obs.id != observation_id)
        if len(remaining) == len(self._log):
            logger.debug("remove_missing", id=observation_id)
            return
        self._log = remaining
        logger.info("remove", id=observation_id, entries=len(self._log))

    def clear(self) -> None:
        removed = len(self._log)
        self._log = ()
        logger.info("clear", removed=removed)

    def replace(self, records: Any) -> ObservationLog:
        """Swap in a whole new log, e.g. from an import.

        Records may be raw mappings or Observations. Nothing changes unless
        every record validates.

        Raises:
            MalformedLogError: the replacement is not a valid log
        """
        if isinstance(records, (list, tuple)) and all(isinstance(r, Observation) for r in records):
            records = [obs.to_record() for obs in records]
        try:
            observations = parse_log(records)
        except MalformedLogError as exc:
            logger.warning("replace_rejected", error=str(exc))
            raise
        self._log = tuple(observations)
        self._last_id = max([self._last_id] + [obs.id for obs in self._log])
        logger.info("replace", entries=len(self._log))
        return self._log

    def predict(self, step: int = 1) -> Forecast:
        return self._engine.predict(self._log, step)

    def predict_multi_step(self, steps: int) -> List[Forecast]:
        return self._engine.predict_multi_step(self._log, steps)

    def transition_matrix(self) -> TransitionMatrix:
        return build_transition_matrix(self._log)

    def metrics(self) -> PatternMetrics:
        return compute_metrics(self._log, self._config.insights.recent_window)

    def insights(self) -> List[str]:
        return generate_insights(self._log, self._config.insights)
