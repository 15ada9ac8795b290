"""
Corridor dataset loader.

    data/stations.csv     one row per station (facilities flattened)
    data/connections.csv  from_station, to_station, buffer_minutes, train_type
    data/zones.json       municipalities with the stations located in them
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

import pandas as pd

from corridor.errors import ValidationError
from corridor.models import (
    Connection,
    LiveOperations,
    Station,
    StationFacilities,
    Zone,
    ZoneStation,
)
from corridor.utils import normalize_name

logger = logging.getLogger(__name__)

STATION_COLUMNS = [
    "id", "name", "distance_km", "category", "platforms",
    "has_wifi", "has_travel_center", "has_premium_lounge", "has_local_transit",
    "has_parking", "stepless_access", "has_mobility_service", "is_strategic_hub",
]
CONNECTION_COLUMNS = ["from_station", "to_station", "buffer_minutes", "train_type"]
TRUE_VALUES = {"true", "1", "yes", "y"}


def _as_bool(value) -> bool:
    if pd.isna(value):
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def _require_columns(df: pd.DataFrame, columns: List[str], path: Path) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValidationError(path.name, f"missing columns {missing}")


@dataclass(frozen=True)
class CorridorDataset:
    stations: Tuple[Station, ...]
    connections: Tuple[Connection, ...]
    zones: Tuple[Zone, ...]

    def station(self, station_id: int) -> Station:
        for station in self.stations:
            if station.id == station_id:
                return station
        raise KeyError(station_id)

    def find_station(self, name: str) -> Station:
        key = normalize_name(name)
        for station in self.stations:
            if normalize_name(station.name) == key:
                return station
        raise KeyError(name)

    def station_names(self) -> Dict[int, str]:
        return {s.id: s.name for s in self.stations}


def station_from_row(row: dict) -> Station:
    facilities = StationFacilities(
        has_wifi=_as_bool(row["has_wifi"]),
        has_travel_center=_as_bool(row["has_travel_center"]),
        has_premium_lounge=_as_bool(row["has_premium_lounge"]),
        has_local_transit=_as_bool(row["has_local_transit"]),
        has_parking=_as_bool(row["has_parking"]),
        stepless_access=str(row["stepless_access"]).strip().lower(),
        has_mobility_service=_as_bool(row["has_mobility_service"]),
    )
    live = None
    departures = row.get("total_departures")
    if departures is not None and not pd.isna(departures):
        live = LiveOperations(total_departures=int(departures))
    return Station(
        id=int(row["id"]),
        name=str(row["name"]).strip(),
        distance_km=float(row["distance_km"]),
        category=int(row["category"]),
        platforms=int(row["platforms"]),
        facilities=facilities,
        is_strategic_hub=_as_bool(row["is_strategic_hub"]),
        live=live,
    )


def load_stations(path) -> List[Station]:
    path = Path(path)
    df = pd.read_csv(path)
    _require_columns(df, STATION_COLUMNS, path)
    stations = []
    for index, row in enumerate(df.to_dict(orient="records"), start=2):
        try:
            stations.append(station_from_row(row))
        except (ValidationError, ValueError, TypeError) as e:
            raise ValidationError(f"{path.name}:{index}", str(e)) from e
    logger.info("Loaded %d stations from %s", len(stations), path)
    return stations


def load_connections(path) -> List[Connection]:
    path = Path(path)
    df = pd.read_csv(path)
    _require_columns(df, CONNECTION_COLUMNS, path)
    connections = []
    for index, row in enumerate(df.to_dict(orient="records"), start=2):
        try:
            connections.append(Connection(
                from_station=int(row["from_station"]),
                to_station=int(row["to_station"]),
                buffer_minutes=float(row["buffer_minutes"]),
                train_type=str(row["train_type"]).strip(),
            ))
        except (ValidationError, ValueError, TypeError) as e:
            raise ValidationError(f"{path.name}:{index}", str(e)) from e
    logger.info("Loaded %d connections from %s", len(connections), path)
    return connections


def zone_from_dict(data: dict) -> Zone:
    return Zone(
        municipality_id=str(data["municipality_id"]),
        name=str(data["name"]),
        population=int(data["population"]),
        area_km2=float(data["area_km2"]),
        stations=tuple(
            ZoneStation(
                id=int(s["id"]),
                name=str(s["name"]),
                category=int(s["category"]),
                distance_km=float(s["distance_km"]),
                is_strategic_hub=bool(s.get("is_strategic_hub", False)),
            )
            for s in data.get("stations", [])
        ),
    )


def load_zones(path) -> List[Zone]:
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    zones = []
    for index, item in enumerate(raw):
        try:
            zones.append(zone_from_dict(item))
        except (ValidationError, KeyError, ValueError, TypeError) as e:
            raise ValidationError(f"{path.name}[{index}]", str(e)) from e
    logger.info("Loaded %d zones from %s", len(zones), path)
    return zones


def load_corridor(data_dir="data") -> CorridorDataset:
    data_dir = Path(data_dir)
    for name in ("stations.csv", "connections.csv", "zones.json"):
        if not (data_dir / name).exists():
            raise FileNotFoundError(data_dir / name)
    return CorridorDataset(
        stations=tuple(load_stations(data_dir / "stations.csv")),
        connections=tuple(load_connections(data_dir / "connections.csv")),
        zones=tuple(load_zones(data_dir / "zones.json")),
    )
