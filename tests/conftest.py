"""
pytest 설정 파일
"""
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# 프로젝트 루트를 sys.path에 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from corridor.models import Connection, Station, StationFacilities, Zone, ZoneStation  # noqa: E402
from corridor.stores import (  # noqa: E402
    InMemoryConfigStore,
    InMemoryHistoryStore,
    InMemoryStationDirectory,
)


@pytest.fixture(scope="session")
def test_client():
    """FastAPI test client backed by in-memory stores"""
    os.environ["CORRIDOR_DATA_DIR"] = str(PROJECT_ROOT / "data")
    os.environ["CORRIDOR_DB_PATH"] = ""
    from api.app import app
    with TestClient(app) as client:
        yield client


@pytest.fixture
def hub_station():
    """Category 1 terminus hub with every facility"""
    return Station(
        id=8011160,
        name="Berlin Hbf",
        distance_km=0.0,
        category=1,
        platforms=14,
        facilities=StationFacilities.all_present(),
        is_strategic_hub=True,
    )


@pytest.fixture
def deficient_station():
    """Mid-corridor category 4 station with one platform and no facilities"""
    return Station(
        id=8010999,
        name="Kleinstadt",
        distance_km=100.0,
        category=4,
        platforms=1,
        facilities=StationFacilities.none_present(),
    )


@pytest.fixture
def sample_stations(hub_station, deficient_station):
    return [
        hub_station,
        Station(
            id=8010316,
            name="Stendal",
            distance_km=140.0,
            category=3,
            platforms=5,
            facilities=StationFacilities(True, True, False, True, True, "yes", True),
        ),
        deficient_station,
        Station(
            id=8002548,
            name="Hamburg Hbf",
            distance_km=289.0,
            category=1,
            platforms=12,
            facilities=StationFacilities.all_present(),
            is_strategic_hub=True,
        ),
    ]


@pytest.fixture
def sample_connections():
    return [
        Connection(8011160, 8010316, 11, "ICE"),
        Connection(8010316, 8010999, 3, "RB"),
        Connection(8010999, 8002548, 18, "RE"),
        Connection(8011160, 8002548, 25, "ICE"),
    ]


@pytest.fixture
def sample_zones():
    return [
        Zone(
            municipality_id="11000000",
            name="Berlin",
            population=3669491,
            area_km2=891.7,
            stations=(
                ZoneStation(8011160, "Berlin Hbf", 1, 0.0, True),
                ZoneStation(8010404, "Berlin-Spandau", 2, 15.0),
                ZoneStation(8010406, "Berlin-Wannsee", 3, 25.0),
            ),
        ),
        Zone(
            municipality_id="15090535",
            name="Hansestadt Stendal",
            population=39934,
            area_km2=268.0,
            stations=(ZoneStation(8010316, "Stendal", 3, 140.0),),
        ),
        Zone(
            municipality_id="13076059",
            name="Hagenow",
            population=12000,
            area_km2=68.0,
            stations=(ZoneStation(8000152, "Hagenow Land", 4, 180.0),),
        ),
    ]


@pytest.fixture
def directory(sample_stations):
    return InMemoryStationDirectory(sample_stations)


@pytest.fixture
def config_store():
    return InMemoryConfigStore()


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()
