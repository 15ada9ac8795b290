"""
Engine collaborators for the API.
Loaded once at startup and reused by every request.
"""
import logging
import os
import sys
import threading
from pathlib import Path
from typing import Optional

# 프로젝트 루트를 sys.path에 추가
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from corridor.analysis import CorridorAnalyzer
from corridor.dataset import CorridorDataset, load_corridor
from corridor.stores import (
    InMemoryConfigStore,
    InMemoryHistoryStore,
    InMemoryStationDirectory,
    SQLiteConfigStore,
    SQLiteHistoryStore,
)
from corridor.weights import WeightConfigManager

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, os.getenv(name), default)
        return default


class EngineRegistry:
    def __init__(self):
        self.dataset: Optional[CorridorDataset] = None
        self.directory: Optional[InMemoryStationDirectory] = None
        self.config_manager: Optional[WeightConfigManager] = None
        self.analyzer: Optional[CorridorAnalyzer] = None
        self.lock = threading.RLock()  # Protects reloads and preset writes

    def load(self):
        data_dir = Path(os.getenv("CORRIDOR_DATA_DIR", str(PROJECT_ROOT / "data")))
        db_path = os.getenv("CORRIDOR_DB_PATH", str(data_dir / "corridor.db"))

        dataset = load_corridor(data_dir)
        directory = InMemoryStationDirectory(dataset.stations)
        if db_path:
            config_store = SQLiteConfigStore(db_path)
            history = SQLiteHistoryStore(db_path)
        else:
            config_store = InMemoryConfigStore()
            history = InMemoryHistoryStore()

        analyzer = CorridorAnalyzer(
            directory,
            history=history,
            max_workers=_env_int("CORRIDOR_MAX_WORKERS", 4),
            lookup_delay=_env_int("CORRIDOR_LOOKUP_DELAY_MS", 0) / 1000,
        )

        with self.lock:
            self.dataset = dataset
            self.directory = directory
            self.config_manager = WeightConfigManager(config_store)
            self.analyzer = analyzer
        logger.info(
            "Corridor engine loaded: %d stations, %d connections, %d zones (store=%s)",
            len(dataset.stations), len(dataset.connections), len(dataset.zones), db_path or "memory",
        )

    def get_dataset(self) -> CorridorDataset:
        if self.dataset is None:
            raise RuntimeError("Engine not loaded")
        return self.dataset

    def get_analyzer(self) -> CorridorAnalyzer:
        if self.analyzer is None:
            raise RuntimeError("Engine not loaded")
        return self.analyzer

    def get_config_manager(self) -> WeightConfigManager:
        if self.config_manager is None:
            raise RuntimeError("Engine not loaded")
        return self.config_manager


registry = EngineRegistry()
