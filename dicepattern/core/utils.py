import datetime as dt
import math


def safe_div(num: float, denom: float, default: float = 0.0) -> float:
    if denom == 0:
        return default
    return num / denom


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; .5 must always go up here.
    return int(math.floor(value + 0.5))


def round_tenth(value: float) -> float:
    """Half-up rounding to one decimal, the precision percentages are shown at."""
    return math.floor(value * 10.0 + 0.5) / 10.0


def utc_now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()


def now_ms() -> int:
    return int(dt.datetime.now(dt.timezone.utc).timestamp() * 1000)
