"""
Ranking & aggregation.

Ranks are recomputed from the full score set on every call: the input is
sorted descending with a stable sort (ties keep input order) and numbered
1..n. Nothing is ever re-ranked in place.
"""
import logging
from typing import Callable, Dict, Iterable, List, Mapping, Sequence

import numpy as np
import pandas as pd

from corridor.bands import PRIORITY_BANDS, priority_band
from corridor.errors import InvariantViolation
from corridor.models import (
    ConnectionFragility,
    CorridorAggregate,
    PopulationTrafficRisk,
    RankedEntry,
    UpgradePriorityMetrics,
)
from corridor.utils import ensure_score

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 75
SIGNIFICANT_CHANGE = 5
BAND_LABELS = tuple(label for _, label in PRIORITY_BANDS)


def check_ranks(ranked: Sequence[RankedEntry]) -> None:
    """Ranks must be exactly 1..n, unique, and follow non-increasing scores."""
    ranks = [entry.rank for entry in ranked]
    if len(set(ranks)) != len(ranks):
        raise InvariantViolation(f"duplicate ranks: {ranks}")
    if sorted(ranks) != list(range(1, len(ranks) + 1)):
        raise InvariantViolation(f"ranks are not 1..{len(ranks)}: {ranks}")
    scores = [entry.score for entry in sorted(ranked, key=lambda e: e.rank)]
    if any(a < b for a, b in zip(scores, scores[1:])):
        raise InvariantViolation("ranks do not follow descending score order")


def rank_entities(entities: Iterable, score_of: Callable, id_of: Callable) -> List[RankedEntry]:
    entities = list(entities)
    if not entities:
        return []

    frame = pd.DataFrame({
        "position": range(len(entities)),
        "entity_id": [str(id_of(e)) for e in entities],
        "score": [ensure_score(score_of(e)) for e in entities],
    })
    frame = frame.sort_values("score", ascending=False, kind="mergesort")
    frame["rank"] = range(1, len(frame) + 1)

    ranked = [
        RankedEntry(
            entity_id=row.entity_id,
            score=int(row.score),
            rank=int(row.rank),
            band=priority_band(row.score),
            entity=entities[row.position],
        )
        for row in frame.itertuples(index=False)
    ]
    check_ranks(ranked)
    return ranked


def rank_stations(metrics: Iterable[UpgradePriorityMetrics]) -> List[RankedEntry]:
    return rank_entities(metrics, lambda m: m.composite_score, lambda m: m.station_id)


def rank_connections(results: Iterable[ConnectionFragility]) -> List[RankedEntry]:
    return rank_entities(results, lambda c: c.impact_score, lambda c: c.key)


def rank_zones(risks: Iterable[PopulationTrafficRisk]) -> List[RankedEntry]:
    return rank_entities(risks, lambda r: r.disruption_impact_score, lambda r: r.municipality_id)


def top(ranked: Sequence[RankedEntry], limit: int = None) -> List[RankedEntry]:
    if limit is None:
        return list(ranked)
    return list(ranked[:max(0, limit)])


def aggregate(scores: Iterable[float], threshold: int = DEFAULT_THRESHOLD) -> CorridorAggregate:
    """Corridor-wide summary.

    vulnerability_index = min(100, average + 30·share_critical + 20·share_high)
    """
    values = np.asarray(list(scores), dtype=float)
    band_counts = {label: 0 for label in BAND_LABELS}
    if values.size == 0:
        return CorridorAggregate(
            count=0, average_score=0.0, band_counts=band_counts,
            threshold=threshold, above_threshold=0, vulnerability_index=0.0,
        )

    for value in values:
        band_counts[priority_band(value)] += 1

    average = float(np.mean(values))
    share_critical = band_counts["critical"] / values.size
    share_high = band_counts["high"] / values.size
    index = min(100.0, average + 30 * share_critical + 20 * share_high)

    return CorridorAggregate(
        count=int(values.size),
        average_score=round(average, 2),
        band_counts=band_counts,
        threshold=threshold,
        above_threshold=int(np.count_nonzero(values >= threshold)),
        vulnerability_index=round(index, 2),
    )


def aggregate_ranked(ranked: Sequence[RankedEntry], threshold: int = DEFAULT_THRESHOLD) -> CorridorAggregate:
    return aggregate((entry.score for entry in ranked), threshold)


def significant_changes(before: Mapping[str, int], after: Mapping[str, int],
                        threshold: int = SIGNIFICANT_CHANGE) -> List[Dict[str, object]]:
    """Entities whose score moved by at least ``threshold`` points, largest move first."""
    changes = []
    for entity_id, new_score in after.items():
        old_score = before.get(entity_id)
        if old_score is None:
            continue
        delta = new_score - old_score
        if abs(delta) >= threshold:
            changes.append({
                "entity_id": entity_id,
                "before": old_score,
                "after": new_score,
                "change": delta,
            })
    changes.sort(key=lambda c: abs(c["change"]), reverse=True)
    return changes
