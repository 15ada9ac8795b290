"""
Priority weight configuration.

A PriorityConfiguration splits the composite station score between
infrastructure, timetable reliability and population impact. Configurations
are immutable; :func:`adjust_weight` returns a new one with the other two
weights rescaled so the sum stays at 1.0.
"""
import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, List

from corridor.errors import CollaboratorUnavailable, PresetNotFound, ValidationError

logger = logging.getLogger(__name__)

WEIGHT_NAMES = ("infrastructure", "timetable", "population")
SUM_TOLERANCE = 0.001
FOCUS_TIE_TOLERANCE = 0.0001
BALANCED = "balanced"


@dataclass(frozen=True)
class PriorityConfiguration:
    infrastructure: float = 0.4
    timetable: float = 0.3
    population: float = 0.3

    def __post_init__(self):
        for name in WEIGHT_NAMES:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValidationError(name, f"weight must be a finite number, got {value!r}")
            if value < 0 or value > 1:
                raise ValidationError(name, f"weight must be within [0, 1], got {value}")
            object.__setattr__(self, name, float(value))

    @property
    def total(self) -> float:
        return self.infrastructure + self.timetable + self.population

    @property
    def focus_area(self) -> str:
        """Name of the strictly largest weight, or "balanced" on a tie."""
        ordered = sorted(((getattr(self, n), n) for n in WEIGHT_NAMES), reverse=True)
        (top_value, top_name), (second_value, _) = ordered[0], ordered[1]
        if top_value - second_value <= FOCUS_TIE_TOLERANCE:
            return BALANCED
        return top_name

    def as_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in WEIGHT_NAMES}

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = dict(self.as_dict())
        data["focus_area"] = self.focus_area
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "PriorityConfiguration":
        """Build from a plain mapping. A ``focus_area`` key is ignored; it is always derived."""
        try:
            return cls(**{name: data[name] for name in WEIGHT_NAMES})
        except KeyError as e:
            raise ValidationError(str(e.args[0]), "weight is missing") from e


def validate(config: PriorityConfiguration) -> bool:
    """True iff the three weights sum to 1.0 within 0.001."""
    return abs(config.total - 1.0) <= SUM_TOLERANCE


def require_valid(config: PriorityConfiguration) -> PriorityConfiguration:
    if not validate(config):
        raise ValidationError("weights", f"must sum to 1.0 (±{SUM_TOLERANCE}), got {config.total:.4f}")
    return config


def adjust_weight(config: PriorityConfiguration, which: str, new_value: float) -> PriorityConfiguration:
    """Set one weight and rescale the other two to keep the sum at 1.0.

    The remainder ``1 - new_value`` is split across the other two weights in
    their previous proportion; when both were exactly zero it is split evenly.
    """
    if which not in WEIGHT_NAMES:
        raise ValidationError("which", f"must be one of {WEIGHT_NAMES}, got {which!r}")
    if isinstance(new_value, bool) or not isinstance(new_value, (int, float)) or math.isnan(new_value):
        raise ValidationError(which, f"weight must be a number, got {new_value!r}")

    value = min(1.0, max(0.0, float(new_value)))
    remainder = 1.0 - value
    first, second = [n for n in WEIGHT_NAMES if n != which]
    prior_first, prior_second = getattr(config, first), getattr(config, second)
    prior_total = prior_first + prior_second

    if prior_total == 0:
        first_value = remainder / 2
    else:
        first_value = remainder * (prior_first / prior_total)
    # assign the rest so rounding never pushes the sum off 1.0
    second_value = max(0.0, remainder - first_value)

    return replace(config, **{which: value, first: first_value, second: second_value})


BUILTIN_PRESETS: Dict[str, PriorityConfiguration] = {
    BALANCED: PriorityConfiguration(0.4, 0.3, 0.3),
    "infrastructure_focus": PriorityConfiguration(0.6, 0.2, 0.2),
    "timetable_focus": PriorityConfiguration(0.2, 0.6, 0.2),
    "population_focus": PriorityConfiguration(0.2, 0.2, 0.6),
}

DEFAULT_CONFIGURATION = BUILTIN_PRESETS[BALANCED]


class WeightConfigManager:
    """Named presets on top of a key-value config store.

    Stored presets shadow nothing: built-in names are reserved and cannot be
    saved over or deleted.
    """

    def __init__(self, store):
        self.store = store

    def _store_call(self, operation: str, *args):
        try:
            return getattr(self.store, operation)(*args)
        except CollaboratorUnavailable:
            raise
        except Exception as e:
            raise CollaboratorUnavailable("config store", f"{operation} failed", e) from e

    def load_preset(self, name: str) -> PriorityConfiguration:
        data = self._store_call("get", name)
        if data is not None:
            return require_valid(PriorityConfiguration.from_dict(data))
        if name in BUILTIN_PRESETS:
            return BUILTIN_PRESETS[name]
        raise PresetNotFound(name)

    def save_preset(self, name: str, config: PriorityConfiguration) -> PriorityConfiguration:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "preset name must not be empty")
        if name in BUILTIN_PRESETS:
            raise ValidationError("name", f"'{name}' is a built-in preset and cannot be overwritten")
        require_valid(config)
        self._store_call("set", name, config.to_dict())
        logger.info("Saved weight preset %s (focus=%s)", name, config.focus_area)
        return config

    def delete_preset(self, name: str) -> None:
        if name in BUILTIN_PRESETS:
            raise ValidationError("name", f"'{name}' is a built-in preset and cannot be deleted")
        if not self._store_call("delete", name):
            raise PresetNotFound(name)
        logger.info("Deleted weight preset %s", name)

    def list_presets(self) -> List[Dict[str, object]]:
        presets = [
            {"name": name, "builtin": True, **config.to_dict()}
            for name, config in BUILTIN_PRESETS.items()
        ]
        for name in sorted(self._store_call("names")):
            data = self._store_call("get", name)
            if data is None:
                continue
            try:
                config = PriorityConfiguration.from_dict(data)
            except ValidationError:
                logger.warning("Skipping stored preset %s: invalid weights", name)
                continue
            presets.append({"name": name, "builtin": False, **config.to_dict()})
        return presets
