"""
Corridor analysis runs.

A run scores every entity of one kind (stations, connections, zones) on a
bounded thread pool, ranks the results and appends them to the analysis
history. Runs share nothing: each call builds fresh results keyed by entity
id and analysis date.

Failure handling per entity:
    CollaboratorUnavailable -> entity skipped, recorded in metadata
    anything else           -> propagates (programming error)

With a timeout, results are collected in submission order and the run stops
at the first entity that is not finished, so the output is always a strict
prefix of fully scored entities.
"""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from corridor.errors import CollaboratorUnavailable
from corridor.fragility import ConnectionFragilityAnalyzer
from corridor.models import Connection, CorridorAggregate, RankedEntry, Station, StationInfo, Zone
from corridor.population import classify_zone
from corridor.priority import calculate_station_priority
from corridor.ranking import (
    DEFAULT_THRESHOLD,
    SIGNIFICANT_CHANGE,
    aggregate_ranked,
    rank_connections,
    rank_stations,
    rank_zones,
)
from corridor.weights import DEFAULT_CONFIGURATION, PriorityConfiguration, require_valid

logger = logging.getLogger(__name__)

STATIONS = "station"
CONNECTIONS = "connection"
ZONES = "zone"

DEFAULT_MAX_WORKERS = 4
MAX_LOOKUP_DELAY = 0.2


@dataclass(frozen=True)
class SkippedEntity:
    kind: str
    entity_id: str
    reason: str


@dataclass(frozen=True)
class RunMetadata:
    kind: str
    analysis_date: str
    started_at: str
    finished_at: str
    submitted: int
    scored: int
    truncated: bool = False
    skipped: Tuple[SkippedEntity, ...] = ()
    config: Optional[Dict[str, object]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["skipped"] = [asdict(s) for s in self.skipped]
        return data


@dataclass(frozen=True)
class RunResult:
    results: Tuple[Any, ...]
    ranked: Tuple[RankedEntry, ...]
    aggregate: CorridorAggregate
    metadata: RunMetadata
    improvements: Tuple[Dict[str, object], ...] = field(default_factory=tuple)


class ThrottledDirectory:
    """Spaces out calls to a rate-limited station directory."""

    def __init__(self, directory, delay: float = 0.0):
        self.directory = directory
        self.delay = min(max(0.0, delay), MAX_LOOKUP_DELAY)
        self._lock = threading.Lock()
        self._last_call = 0.0

    def lookup(self, station_id: int) -> StationInfo:
        if self.delay:
            with self._lock:
                wait = self._last_call + self.delay - time.monotonic()
                if wait > 0:
                    time.sleep(wait)
                self._last_call = time.monotonic()
        return self.directory.lookup(station_id)


class CorridorAnalyzer:
    def __init__(self, directory, history=None, max_workers: int = DEFAULT_MAX_WORKERS,
                 lookup_delay: float = 0.0, timeout: Optional[float] = None):
        self.directory = ThrottledDirectory(directory, lookup_delay)
        self.history = history
        self.max_workers = max(1, int(max_workers))
        self.timeout = timeout
        self.fragility = ConnectionFragilityAnalyzer(self.directory)

    # ----- runs --------------------------------------------------------------

    def run_stations(self, stations: Sequence[Station],
                     config: PriorityConfiguration = DEFAULT_CONFIGURATION,
                     analysis_date: Optional[str] = None,
                     threshold: int = DEFAULT_THRESHOLD) -> RunResult:
        # a bad configuration must fail before anything is scored
        require_valid(config)
        return self._run(
            STATIONS, stations,
            task=lambda s: calculate_station_priority(s, config),
            id_of=lambda s: s.id,
            score_of=lambda m: m.composite_score,
            rank=rank_stations,
            analysis_date=analysis_date,
            threshold=threshold,
            config=config,
        )

    def run_connections(self, connections: Sequence[Connection],
                        analysis_date: Optional[str] = None,
                        threshold: int = DEFAULT_THRESHOLD) -> RunResult:
        return self._run(
            CONNECTIONS, connections,
            task=self.fragility.analyze,
            id_of=lambda c: c.key,
            score_of=lambda f: f.impact_score,
            rank=rank_connections,
            analysis_date=analysis_date,
            threshold=threshold,
        )

    def run_zones(self, zones: Sequence[Zone], analysis_date: Optional[str] = None,
                  threshold: int = DEFAULT_THRESHOLD) -> RunResult:
        return self._run(
            ZONES, zones,
            task=classify_zone,
            id_of=lambda z: z.municipality_id,
            score_of=lambda r: r.disruption_impact_score,
            rank=rank_zones,
            analysis_date=analysis_date,
            threshold=threshold,
        )

    # ----- internals ---------------------------------------------------------

    def _run(self, kind: str, entities: Sequence, task: Callable, id_of: Callable,
             score_of: Callable, rank: Callable, analysis_date: Optional[str],
             threshold: int, config: Optional[PriorityConfiguration] = None) -> RunResult:
        entities = list(entities)
        analysis_date = analysis_date or date.today().isoformat()
        started_at = datetime.now().isoformat()
        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        logger.info("Starting %s analysis for %d entities (%s)", kind, len(entities), analysis_date)

        results: List[Tuple[str, Any]] = []
        skipped: List[SkippedEntity] = []
        truncated = False

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix=f"corridor-{kind}")
        try:
            futures = [(str(id_of(e)), executor.submit(task, e)) for e in entities]
            for entity_id, future in futures:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                try:
                    results.append((entity_id, future.result(timeout=remaining)))
                except FutureTimeout:
                    truncated = True
                    logger.warning("%s analysis timed out after %d of %d entities",
                                   kind, len(results) + len(skipped), len(entities))
                    break
                except CollaboratorUnavailable as e:
                    logger.warning("Skipping %s %s: %s", kind, entity_id, e)
                    skipped.append(SkippedEntity(kind, entity_id, str(e)))
        finally:
            executor.shutdown(wait=not truncated, cancel_futures=True)

        scored = [result for _, result in results]
        ranked = rank(scored)
        improvements = self._record_history(kind, results, score_of, analysis_date)

        metadata = RunMetadata(
            kind=kind,
            analysis_date=analysis_date,
            started_at=started_at,
            finished_at=datetime.now().isoformat(),
            submitted=len(entities),
            scored=len(scored),
            truncated=truncated,
            skipped=tuple(skipped),
            config=config.to_dict() if config is not None else None,
        )
        logger.info("Finished %s analysis: %d scored, %d skipped%s",
                    kind, len(scored), len(skipped), " (truncated)" if truncated else "")
        return RunResult(
            results=tuple(scored),
            ranked=tuple(ranked),
            aggregate=aggregate_ranked(ranked, threshold),
            metadata=metadata,
            improvements=tuple(improvements),
        )

    def _record_history(self, kind: str, results: List[Tuple[str, Any]], score_of: Callable,
                        analysis_date: str) -> List[Dict[str, object]]:
        if self.history is None:
            return []
        for entity_id, result in results:
            record = result.to_dict()
            record["score"] = score_of(result)
            try:
                self.history.append(kind, entity_id, analysis_date, record)
            except CollaboratorUnavailable as e:
                logger.warning("Could not store %s %s in history: %s", kind, entity_id, e)
        return improvement_deltas(self.history, kind, [entity_id for entity_id, _ in results])


def improvement_deltas(history, kind: str, entity_ids: Sequence[str],
                       threshold: int = SIGNIFICANT_CHANGE) -> List[Dict[str, object]]:
    """Compare each entity's most recent stored score with the previous analysis date.

    ``improved`` means the score dropped by more than ``threshold`` points
    (lower priority / fragility / risk after upgrades).
    """
    deltas = []
    for entity_id in entity_ids:
        try:
            latest = history.latest(kind, entity_id)
            previous = history.previous(kind, entity_id)
        except CollaboratorUnavailable as e:
            logger.warning("History unavailable for %s %s: %s", kind, entity_id, e)
            continue
        if latest is None or previous is None:
            continue
        change = latest["score"] - previous["score"]
        deltas.append({
            "entity_id": entity_id,
            "previous_date": previous["analysis_date"],
            "previous_score": previous["score"],
            "latest_date": latest["analysis_date"],
            "latest_score": latest["score"],
            "change": change,
            "improved": change < -threshold,
        })
    return deltas
