"""Common utilities for the corridor engine."""
import math
import re

import numpy as np
import pandas as pd

from corridor.errors import InvariantViolation

SCORE_MIN = 0
SCORE_MAX = 100


def normalize_name(name):
    """Normalize station / municipality names for lookups."""
    if pd.isna(name):
        return ""
    name = str(name)
    name = re.sub(r"\([^)]*\)", "", name)
    name = re.sub(r"\[[^\]]*\]", "", name)
    name = re.sub(r"\s+", " ", name).strip()
    return name.lower()


def bounded_score(value: float) -> int:
    """Clip to [0, 100] and round to an integer score."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return SCORE_MIN
    return int(np.clip(round(value), SCORE_MIN, SCORE_MAX))


def ensure_score(value, name: str = "score") -> int:
    """Assert that an already computed value is an integer score in [0, 100]."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvariantViolation(f"{name} is not an integer: {value!r}")
    if value < SCORE_MIN or value > SCORE_MAX:
        raise InvariantViolation(f"{name} out of range [0, 100]: {value}")
    return int(value)
