from typing import Iterable, List

from dicepattern.core.data.schema import parse_log
from dicepattern.core.log import get_logger
from dicepattern.core.storage import connect
from dicepattern.core.types import Observation

logger = get_logger(__name__)


class ObservationStore:
    """Durable observation log in SQLite.

    Only ids, values and timestamps are stored; derived fields are rebuilt
    on load. ``position`` keeps insertion order independent of id values.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn = connect(db_path)
        self._setup()

    def _setup(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS observations (
                position INTEGER PRIMARY KEY,
                id INTEGER NOT NULL UNIQUE,
                first_value INTEGER NOT NULL,
                second_value INTEGER NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    def load(self) -> List[Observation]:
        rows = self._conn.execute(
            "SELECT id, first_value, second_value, created_at FROM observations ORDER BY position"
        ).fetchall()
        observations = parse_log([dict(row) for row in rows])
        logger.debug("store_loaded", db_path=self._db_path, entries=len(observations))
        return observations

    def save(self, observations: Iterable[Observation]) -> None:
        rows = [
            (position, obs.id, obs.first_value, obs.second_value, obs.created_at)
            for position, obs in enumerate(observations)
        ]
        with self._conn:
            self._conn.execute("DELETE FROM observations")
            self._conn.executemany(
                """
                INSERT INTO observations
                    (position, id, first_value, second_value, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                rows,
            )
        logger.debug("store_saved", db_path=self._db_path, entries=len(rows))

    def close(self) -> None:
        self._conn.close()
