"""
Ordered band tables.

Every threshold ladder in the engine is a tuple of ``(min_value, label)``
rows sorted by descending ``min_value`` and evaluated by :func:`band_for`.
The last row is the catch-all floor.
"""
from typing import Sequence, Tuple

Band = Tuple[float, str]

PRIORITY_BANDS: Tuple[Band, ...] = (
    (80, "critical"),
    (60, "high"),
    (40, "medium"),
    (float("-inf"), "low"),
)

RISK_LEVELS: Tuple[Band, ...] = (
    (70, "high"),
    (40, "medium"),
    (float("-inf"), "low"),
)

# zone prioritisation, finer than RISK_LEVELS
ZONE_PRIORITY_LEVELS: Tuple[Band, ...] = (
    (80, "critical"),
    (60, "high"),
    (40, "elevated"),
    (20, "moderate"),
    (float("-inf"), "low"),
)

# platforms / expected platforms -> capacity constraint score
PLATFORM_RATIO_SCORES: Tuple[Tuple[float, int], ...] = (
    (1.0, 0),
    (0.8, 25),
    (0.6, 50),
    (0.4, 75),
    (float("-inf"), 100),
)

# buffer minutes -> fragility; evaluated on the buffer, lower is worse
BUFFER_FRAGILITY: Tuple[Tuple[float, int], ...] = (
    (20, 20),
    (15, 40),
    (10, 60),
    (5, 80),
    (float("-inf"), 100),
)

DENSITY_SCORES: Tuple[Tuple[float, int], ...] = (
    (1000, 100),
    (500, 80),
    (200, 60),
    (100, 40),
    (float("-inf"), 20),
)

DAILY_TRAFFIC_SCORES: Tuple[Tuple[float, int], ...] = (
    (50000, 100),
    (15000, 80),
    (5000, 60),
    (1500, 40),
    (float("-inf"), 20),
)

TIMELINES = (
    (90, ("Immediate (0-6 months) - Critical priority", "Immediate (0-6 months) - Critical priority")),
    (75, ("Short-term (3-12 months)", "Short-term (6-18 months)")),
    (50, ("Medium-term (6-24 months)", "Medium-term (1-3 years)")),
    (float("-inf"), ("Long-term (2-5 years) - Monitor and reassess", "Long-term (2-5 years) - Monitor and reassess")),
)

# shared by cost and impact estimation
TIER_BANDS: Tuple[Band, ...] = (
    (80, "very_high"),
    (60, "high"),
    (30, "medium"),
    (float("-inf"), "low"),
)

COST_LABELS = {
    "low": "€50K-200K",
    "medium": "€200K-1M",
    "high": "€1M-5M",
    "very_high": "€5M+",
}

IMPACT_LABELS = {
    "very_high": "Major corridor transformation",
    "high": "Significant corridor enhancement",
    "medium": "Moderate corridor improvement",
    "low": "Limited corridor impact",
}


def band_for(value: float, table: Sequence[Tuple[float, object]]):
    """Return the label of the first row whose lower bound ``value`` reaches."""
    for minimum, label in table:
        if value >= minimum:
            return label
    return table[-1][1]


def priority_band(score: float) -> str:
    return band_for(score, PRIORITY_BANDS)


def risk_level_for(score: float) -> str:
    return band_for(score, RISK_LEVELS)
