"""
Collaborator store tests
"""
import sqlite3

import pytest

from corridor.errors import CollaboratorUnavailable, StationLookupError
from corridor.models import StationInfo
from corridor.stores import (
    InMemoryConfigStore,
    InMemoryHistoryStore,
    InMemoryStationDirectory,
    SQLiteConfigStore,
    SQLiteHistoryStore,
)


@pytest.fixture(params=["memory", "sqlite"])
def any_config_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryConfigStore()
    return SQLiteConfigStore(tmp_path / "corridor.db")


@pytest.fixture(params=["memory", "sqlite"])
def any_history_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryHistoryStore()
    return SQLiteHistoryStore(tmp_path / "corridor.db")


class TestStationDirectory:
    """In-memory station directory"""

    def test_lookup(self, directory):
        info = directory.lookup(8011160)
        assert info == StationInfo(8011160, 1, True, 0.0)
        assert len(directory) == 4

    def test_unknown_station(self, directory):
        with pytest.raises(StationLookupError) as exc_info:
            directory.lookup(1)
        assert isinstance(exc_info.value, CollaboratorUnavailable)
        assert exc_info.value.station_id == 1


class TestConfigStore:
    """Key-value preset storage"""

    def test_set_get_delete(self, any_config_store):
        store = any_config_store
        assert store.get("rural") is None

        store.set("rural", {"infrastructure": 0.5, "timetable": 0.25, "population": 0.25})
        store.set("rural", {"infrastructure": 0.6, "timetable": 0.2, "population": 0.2})
        assert store.get("rural")["infrastructure"] == 0.6
        assert store.names() == ["rural"]

        assert store.delete("rural") is True
        assert store.delete("rural") is False
        assert store.get("rural") is None

    def test_returned_value_is_a_copy(self, any_config_store):
        any_config_store.set("a", {"infrastructure": 1.0})
        any_config_store.get("a")["infrastructure"] = 0.0
        assert any_config_store.get("a")["infrastructure"] == 1.0

    def test_sqlite_persists_across_instances(self, tmp_path):
        SQLiteConfigStore(tmp_path / "corridor.db").set("kept", {"infrastructure": 1.0})
        assert SQLiteConfigStore(tmp_path / "corridor.db").get("kept") == {"infrastructure": 1.0}


class TestHistoryStore:
    """Append-only analysis history"""

    def test_latest_and_previous(self, any_history_store):
        store = any_history_store
        store.append("station", "1", "2024-01-01", {"score": 80})
        store.append("station", "1", "2024-02-01", {"score": 60})
        store.append("station", "2", "2024-02-01", {"score": 10})

        assert store.latest("station", "1") == {"analysis_date": "2024-02-01", "score": 60}
        assert store.previous("station", "1") == {"analysis_date": "2024-01-01", "score": 80}
        assert store.previous("station", "2") is None
        assert store.latest("zone", "1") is None

    def test_same_day_rerun_is_not_previous(self, any_history_store):
        store = any_history_store
        store.append("zone", "z", "2024-01-01", {"score": 70})
        store.append("zone", "z", "2024-03-01", {"score": 60})
        store.append("zone", "z", "2024-03-01", {"score": 55})

        assert store.latest("zone", "z")["score"] == 55
        assert store.previous("zone", "z")["score"] == 70

    def test_newest_of_the_previous_date(self, any_history_store):
        store = any_history_store
        store.append("zone", "z", "2024-01-01", {"score": 70})
        store.append("zone", "z", "2024-01-01", {"score": 72})
        store.append("zone", "z", "2024-03-01", {"score": 60})

        assert store.previous("zone", "z")["score"] == 72

    def test_entity_ids(self, any_history_store):
        any_history_store.append("connection", "b->c", "2024-01-01", {"score": 1})
        any_history_store.append("connection", "a->b", "2024-01-01", {"score": 1})
        any_history_store.append("station", "1", "2024-01-01", {"score": 1})

        assert any_history_store.entity_ids("connection") == ["a->b", "b->c"]

    def test_append_returns_increasing_sequence(self, any_history_store):
        first = any_history_store.append("station", "1", "2024-01-01", {"score": 1})
        second = any_history_store.append("station", "1", "2024-01-01", {"score": 2})
        assert second > first


def _drop_table(db_path, table):
    conn = sqlite3.connect(str(db_path))
    conn.execute(f"DROP TABLE {table}")
    conn.commit()
    conn.close()


class TestSQLiteFailures:
    """Database errors surface as CollaboratorUnavailable"""

    @pytest.mark.parametrize("call", [
        lambda s: s.get("rural"),
        lambda s: s.set("rural", {"infrastructure": 1.0}),
        lambda s: s.delete("rural"),
        lambda s: s.names(),
    ])
    def test_config_store(self, tmp_path, call):
        store = SQLiteConfigStore(tmp_path / "corridor.db")
        _drop_table(store.db_path, "priority_configurations")
        with pytest.raises(CollaboratorUnavailable):
            call(store)

    @pytest.mark.parametrize("call", [
        lambda s: s.append("station", "1", "2024-01-01", {"score": 1}),
        lambda s: s.latest("station", "1"),
        lambda s: s.previous("station", "1"),
        lambda s: s.entity_ids("station"),
    ])
    def test_history_store(self, tmp_path, call):
        store = SQLiteHistoryStore(tmp_path / "corridor.db")
        _drop_table(store.db_path, "analysis_history")
        with pytest.raises(CollaboratorUnavailable):
            call(store)
