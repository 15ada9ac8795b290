"""
Corridor dataset loader tests
"""
import json
from pathlib import Path

import pytest

from corridor.dataset import load_connections, load_corridor, load_stations, load_zones
from corridor.errors import ValidationError
from corridor.metrics import traffic_volume_score

PROJECT_ROOT = Path(__file__).parent.parent

HEADER = (
    "id,name,distance_km,category,platforms,has_wifi,has_travel_center,has_premium_lounge,"
    "has_local_transit,has_parking,stepless_access,has_mobility_service,is_strategic_hub,total_departures\n"
)


@pytest.fixture(scope="module")
def corridor():
    return load_corridor(PROJECT_ROOT / "data")


class TestBundledDataset:
    """data/ directory shipped with the project"""

    def test_counts(self, corridor):
        assert len(corridor.stations) == 13
        assert len(corridor.connections) == 15
        assert len(corridor.zones) == 10

    def test_endpoints(self, corridor):
        berlin = corridor.station(8011160)
        hamburg = corridor.station(8002548)

        assert berlin.distance_km == 0.0
        assert berlin.is_strategic_hub
        assert berlin.facilities.stepless_access == "yes"
        assert hamburg.distance_km == 289.0
        assert berlin.live is None

    def test_find_station_by_normalised_name(self, corridor):
        assert corridor.find_station("  BRANDENBURG (Havel) ").id == 8013456
        with pytest.raises(KeyError):
            corridor.find_station("Wittenberge")

    def test_unknown_station(self, corridor):
        with pytest.raises(KeyError):
            corridor.station(1)

    def test_every_connection_references_known_stations(self, corridor):
        names = corridor.station_names()
        for connection in corridor.connections:
            assert connection.from_station in names
            assert connection.to_station in names

    def test_zone_stations(self, corridor):
        hamburg = next(z for z in corridor.zones if z.name == "Hamburg")
        assert [s.id for s in hamburg.stations] == [8002549, 8002548]


class TestLoaderErrors:
    """Malformed input files"""

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_corridor(tmp_path)

    def test_bad_station_row_names_file_and_row(self, tmp_path):
        path = tmp_path / "stations.csv"
        path.write_text(
            HEADER
            + "1,Gut,10,3,4,true,true,false,true,true,yes,true,false,\n"
            + "2,Schlecht,20,9,4,true,true,false,true,true,yes,true,false,\n",
            encoding="utf-8",
        )
        with pytest.raises(ValidationError) as exc_info:
            load_stations(path)
        assert exc_info.value.field == "stations.csv:3"

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "connections.csv"
        path.write_text("from_station,to_station\n1,2\n", encoding="utf-8")
        with pytest.raises(ValidationError) as exc_info:
            load_connections(path)
        assert "buffer_minutes" in str(exc_info.value)

    def test_negative_buffer(self, tmp_path):
        path = tmp_path / "connections.csv"
        path.write_text("from_station,to_station,buffer_minutes,train_type\n1,2,-3,RE\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_connections(path)

    def test_zone_with_zero_area(self, tmp_path):
        path = tmp_path / "zones.json"
        path.write_text(json.dumps([{"municipality_id": "1", "name": "X", "population": 10, "area_km2": 0}]))
        with pytest.raises(ValidationError) as exc_info:
            load_zones(path)
        assert exc_info.value.field == "zones.json[0]"

    def test_live_departures_column(self, tmp_path):
        path = tmp_path / "stations.csv"
        path.write_text(
            HEADER + "1,Live,10,3,4,true,true,false,true,true,partial,true,false,255\n",
            encoding="utf-8",
        )
        station = load_stations(path)[0]

        assert station.live.total_departures == 255
        assert station.facilities.stepless_access == "partial"
        assert traffic_volume_score(station) == 50
