import datetime as dt
import json
from pathlib import Path
from typing import Iterable, List, Optional, Union

from dicepattern.core.data.schema import MalformedLogError, parse_log
from dicepattern.core.types import Observation

PathLike = Union[str, Path]


def default_export_name(today: Optional[dt.date] = None) -> str:
    today = today or dt.date.today()
    return f"dice-pattern-{today.isoformat()}.json"


def export_json(path: PathLike, observations: Iterable[Observation]) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    records = [obs.to_record() for obs in observations]
    with open(out, "w", encoding="utf-8") as handle:
        json.dump(records, handle, indent=2, ensure_ascii=False)
        handle.write("\n")
    return out


def import_json(path: PathLike) -> List[Observation]:
    """Read and validate a whole exported log.

    Raises:
        MalformedLogError: the file is not valid JSON or any record is bad
    """
    with open(path, "r", encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise MalformedLogError(f"invalid JSON in {path}: {exc}") from exc
    return parse_log(payload)
