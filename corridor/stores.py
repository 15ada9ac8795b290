"""
Collaborator contracts and their implementations.

The engine never reaches for a global: station directory, config store and
analysis history are passed in. In-memory versions back tests and the
example script; SQLite versions back the API.
"""
import json
import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from corridor.errors import CollaboratorUnavailable, StationLookupError
from corridor.models import Station, StationInfo

logger = logging.getLogger(__name__)


class StationDirectory(Protocol):
    def lookup(self, station_id: int) -> StationInfo: ...


class ConfigStore(Protocol):
    def get(self, name: str) -> Optional[dict]: ...

    def set(self, name: str, value: dict) -> None: ...

    def delete(self, name: str) -> bool: ...

    def names(self) -> List[str]: ...


class AnalysisHistoryStore(Protocol):
    def append(self, kind: str, entity_id: str, analysis_date: str, record: dict) -> int: ...

    def latest(self, kind: str, entity_id: str) -> Optional[dict]: ...

    def previous(self, kind: str, entity_id: str) -> Optional[dict]: ...

    def entity_ids(self, kind: str) -> List[str]: ...


# ---------------------------------------------------------------------------
# Station directory
# ---------------------------------------------------------------------------

class InMemoryStationDirectory:
    def __init__(self, stations: Iterable[Station] = ()):
        self._stations: Dict[int, StationInfo] = {s.id: s.info() for s in stations}

    def add(self, info: StationInfo) -> None:
        self._stations[info.id] = info

    def lookup(self, station_id: int) -> StationInfo:
        try:
            return self._stations[station_id]
        except KeyError:
            raise StationLookupError(station_id) from None

    def __len__(self):
        return len(self._stations)


# ---------------------------------------------------------------------------
# Config store
# ---------------------------------------------------------------------------

class InMemoryConfigStore:
    def __init__(self):
        self._data: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> Optional[dict]:
        with self._lock:
            value = self._data.get(name)
            return dict(value) if value is not None else None

    def set(self, name: str, value: dict) -> None:
        with self._lock:
            self._data[name] = dict(value)

    def delete(self, name: str) -> bool:
        with self._lock:
            return self._data.pop(name, None) is not None

    def names(self) -> List[str]:
        with self._lock:
            return list(self._data)


class _SQLiteStore:
    """Shared connection handling: one short-lived connection per call."""

    SCHEMA = ""

    def __init__(self, db_path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.executescript(self.SCHEMA)
            conn.commit()
        except sqlite3.Error as e:
            raise CollaboratorUnavailable(type(self).__name__, str(e), e) from e
        finally:
            conn.close()
        logger.debug("%s ready at %s", type(self).__name__, self.db_path)

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise CollaboratorUnavailable(type(self).__name__, str(e), e) from e
        conn.row_factory = sqlite3.Row
        return conn


class SQLiteConfigStore(_SQLiteStore):
    SCHEMA = """
        CREATE TABLE IF NOT EXISTS priority_configurations (
            name TEXT PRIMARY KEY,
            config TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
    """

    def get(self, name: str) -> Optional[dict]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT config FROM priority_configurations WHERE name = ?", (name,)
            ).fetchone()
        except sqlite3.Error as e:
            raise CollaboratorUnavailable("config store", str(e), e) from e
        finally:
            conn.close()
        return json.loads(row["config"]) if row else None

    def set(self, name: str, value: dict) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO priority_configurations (name, config, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    config = excluded.config,
                    updated_at = excluded.updated_at
                """,
                (name, json.dumps(value), datetime.now().isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise CollaboratorUnavailable("config store", str(e), e) from e
        finally:
            conn.close()

    def delete(self, name: str) -> bool:
        conn = self._connect()
        try:
            cursor = conn.execute("DELETE FROM priority_configurations WHERE name = ?", (name,))
            conn.commit()
            return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise CollaboratorUnavailable("config store", str(e), e) from e
        finally:
            conn.close()

    def names(self) -> List[str]:
        conn = self._connect()
        try:
            rows = conn.execute("SELECT name FROM priority_configurations ORDER BY name").fetchall()
        except sqlite3.Error as e:
            raise CollaboratorUnavailable("config store", str(e), e) from e
        finally:
            conn.close()
        return [row["name"] for row in rows]


# ---------------------------------------------------------------------------
# Analysis history
# ---------------------------------------------------------------------------

class InMemoryHistoryStore:
    """Append-only list of (seq, kind, entity_id, analysis_date, record)."""

    def __init__(self):
        self._rows: List[tuple] = []
        self._lock = threading.Lock()

    def append(self, kind: str, entity_id: str, analysis_date: str, record: dict) -> int:
        with self._lock:
            seq = len(self._rows) + 1
            self._rows.append((seq, kind, str(entity_id), analysis_date, dict(record)))
            return seq

    def _rows_for(self, kind: str, entity_id: str) -> List[tuple]:
        with self._lock:
            return [r for r in self._rows if r[1] == kind and r[2] == str(entity_id)]

    def latest(self, kind: str, entity_id: str) -> Optional[dict]:
        rows = self._rows_for(kind, entity_id)
        if not rows:
            return None
        seq, _, _, date, record = max(rows, key=lambda r: (r[3], r[0]))
        return {"analysis_date": date, **record}

    def previous(self, kind: str, entity_id: str) -> Optional[dict]:
        rows = self._rows_for(kind, entity_id)
        if not rows:
            return None
        newest_date = max(r[3] for r in rows)
        earlier = [r for r in rows if r[3] < newest_date]
        if not earlier:
            return None
        seq, _, _, date, record = max(earlier, key=lambda r: (r[3], r[0]))
        return {"analysis_date": date, **record}

    def entity_ids(self, kind: str) -> List[str]:
        with self._lock:
            return sorted({r[2] for r in self._rows if r[1] == kind})


class SQLiteHistoryStore(_SQLiteStore):
    SCHEMA = """
        CREATE TABLE IF NOT EXISTS analysis_history (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            kind TEXT NOT NULL,
            entity_id TEXT NOT NULL,
            analysis_date TEXT NOT NULL,
            record TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_history_entity
            ON analysis_history(kind, entity_id, analysis_date);
    """

    def append(self, kind: str, entity_id: str, analysis_date: str, record: dict) -> int:
        conn = self._connect()
        try:
            cursor = conn.execute(
                "INSERT INTO analysis_history (kind, entity_id, analysis_date, record) VALUES (?, ?, ?, ?)",
                (kind, str(entity_id), analysis_date, json.dumps(record)),
            )
            conn.commit()
            return cursor.lastrowid
        except sqlite3.Error as e:
            raise CollaboratorUnavailable("history store", str(e), e) from e
        finally:
            conn.close()

    def _fetch_one(self, query: str, params: tuple) -> Optional[dict]:
        conn = self._connect()
        try:
            row = conn.execute(query, params).fetchone()
        except sqlite3.Error as e:
            raise CollaboratorUnavailable("history store", str(e), e) from e
        finally:
            conn.close()
        if row is None:
            return None
        return {"analysis_date": row["analysis_date"], **json.loads(row["record"])}

    def latest(self, kind: str, entity_id: str) -> Optional[dict]:
        return self._fetch_one(
            """
            SELECT analysis_date, record FROM analysis_history
            WHERE kind = ? AND entity_id = ?
            ORDER BY analysis_date DESC, seq DESC
            LIMIT 1
            """,
            (kind, str(entity_id)),
        )

    def previous(self, kind: str, entity_id: str) -> Optional[dict]:
        return self._fetch_one(
            """
            SELECT analysis_date, record FROM analysis_history
            WHERE kind = ? AND entity_id = ?
              AND analysis_date < (
                  SELECT MAX(analysis_date) FROM analysis_history
                  WHERE kind = ? AND entity_id = ?
              )
            ORDER BY analysis_date DESC, seq DESC
            LIMIT 1
            """,
            (kind, str(entity_id), kind, str(entity_id)),
        )

    def entity_ids(self, kind: str) -> List[str]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT DISTINCT entity_id FROM analysis_history WHERE kind = ? ORDER BY entity_id",
                (kind,),
            ).fetchall()
        except sqlite3.Error as e:
            raise CollaboratorUnavailable("history store", str(e), e) from e
        finally:
            conn.close()
        return [row["entity_id"] for row in rows]
