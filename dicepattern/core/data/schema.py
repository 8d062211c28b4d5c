from collections.abc import Mapping
from typing import Any, List, Optional

from dicepattern.core.classifier import (
    RANGE_MAX,
    RANGE_MIN,
    classify_outcome,
    classify_state,
    classify_trend,
)
from dicepattern.core.types import Observation

# Keys written by the browser version of the analyzer.
LEGACY_KEYS = {"first_value": "roll1", "second_value": "roll2", "created_at": "timestamp"}


class RollValidationError(ValueError):
    """A roll value is non-numeric or outside the valid range."""


class MalformedLogError(ValueError):
    """A persisted or imported log cannot be accepted as a whole."""


def parse_roll(value: Any, label: str = "value") -> int:
    if isinstance(value, bool):
        raise RollValidationError(f"{label} must be numeric, got {value!r}")
    if isinstance(value, int):
        roll = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise RollValidationError(f"{label} must be a whole number, got {value!r}")
        roll = int(value)
    elif isinstance(value, str):
        try:
            roll = int(value.strip())
        except ValueError as exc:
            raise RollValidationError(f"{label} must be numeric, got {value!r}") from exc
    else:
        raise RollValidationError(f"{label} must be numeric, got {value!r}")

    if roll < RANGE_MIN or roll > RANGE_MAX:
        raise RollValidationError(
            f"{label} must be between {RANGE_MIN} and {RANGE_MAX}, got {roll}"
        )
    return roll


def build_observation(
    observation_id: int,
    first_value: Any,
    second_value: Any,
    created_at: str = "",
) -> Observation:
    """Validate both values and derive states, outcome, trend and delta."""
    first = parse_roll(first_value, "first value")
    second = parse_roll(second_value, "second value")
    return Observation(
        id=observation_id,
        first_value=first,
        second_value=second,
        first_state=classify_state(first),
        second_state=classify_state(second),
        outcome=classify_outcome(second),
        trend=classify_trend(first, second),
        delta=second - first,
        created_at=created_at,
    )


def _field(record: Mapping, key: str) -> Optional[Any]:
    if key in record:
        return record[key]
    legacy = LEGACY_KEYS.get(key)
    if legacy is not None and legacy in record:
        return record[legacy]
    return None


def observation_from_record(record: Any, index: int = 0) -> Observation:
    """Rebuild an observation from a stored record.

    Only ``id``, the two values and ``created_at`` are read; derived fields
    are always recomputed.
    """
    if not isinstance(record, Mapping):
        raise MalformedLogError(f"record {index} is not a mapping")

    observation_id = record.get("id")
    if isinstance(observation_id, bool) or not isinstance(observation_id, int):
        raise MalformedLogError(f"record {index} has missing or invalid id: {observation_id!r}")

    first = _field(record, "first_value")
    second = _field(record, "second_value")
    if first is None or second is None:
        raise MalformedLogError(f"record {index} (id {observation_id}) is missing a value")

    created_at = _field(record, "created_at")
    try:
        return build_observation(
            observation_id, first, second, "" if created_at is None else str(created_at)
        )
    except RollValidationError as exc:
        raise MalformedLogError(f"record {index} (id {observation_id}): {exc}") from exc


def parse_log(records: Any) -> List[Observation]:
    """Validate a whole log; any bad record rejects everything."""
    if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, (list, tuple)):
        raise MalformedLogError("log must be a list of records")

    observations = [observation_from_record(rec, idx) for idx, rec in enumerate(records)]
    seen = set()
    for obs in observations:
        if obs.id in seen:
            raise MalformedLogError(f"duplicate id {obs.id}")
        seen.add(obs.id)
    return observations
