"""
Weight configuration tests
"""
import sqlite3
from dataclasses import FrozenInstanceError
from unittest.mock import MagicMock

import pytest

from corridor.errors import CollaboratorUnavailable, PresetNotFound, ValidationError
from corridor.stores import SQLiteConfigStore
from corridor.weights import (
    BUILTIN_PRESETS,
    DEFAULT_CONFIGURATION,
    PriorityConfiguration,
    WeightConfigManager,
    adjust_weight,
    require_valid,
    validate,
)

WEIGHTS = ("infrastructure", "timetable", "population")


class TestPriorityConfiguration:
    """Immutable weight vector"""

    def test_default_is_balanced_preset(self):
        assert DEFAULT_CONFIGURATION == PriorityConfiguration()
        assert DEFAULT_CONFIGURATION.as_dict() == {"infrastructure": 0.4, "timetable": 0.3, "population": 0.3}

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            setattr(DEFAULT_CONFIGURATION, "infrastructure", 0.9)

    @pytest.mark.parametrize("value", [-0.1, 1.01, float("nan"), float("inf"), "0.5", True])
    def test_rejects_out_of_range_weights(self, value):
        with pytest.raises(ValidationError) as exc_info:
            PriorityConfiguration(value, 0.3, 0.3)
        assert exc_info.value.field == "infrastructure"

    @pytest.mark.parametrize("weights,focus", [
        ((0.4, 0.3, 0.3), "infrastructure"),
        ((0.2, 0.6, 0.2), "timetable"),
        ((0.2, 0.2, 0.6), "population"),
        ((0.5, 0.5, 0.0), "balanced"),
        ((0.34, 0.33, 0.33), "infrastructure"),
        ((0.33335, 0.33333, 0.33332), "balanced"),
    ])
    def test_focus_area(self, weights, focus):
        assert PriorityConfiguration(*weights).focus_area == focus

    def test_round_trip_ignores_focus_label(self):
        data = {"infrastructure": 0.2, "timetable": 0.2, "population": 0.6, "focus_area": "timetable"}
        config = PriorityConfiguration.from_dict(data)
        assert config.focus_area == "population"
        assert PriorityConfiguration.from_dict(config.to_dict()) == config

    def test_from_dict_missing_weight(self):
        with pytest.raises(ValidationError) as exc_info:
            PriorityConfiguration.from_dict({"infrastructure": 0.5, "timetable": 0.5})
        assert exc_info.value.field == "population"


class TestValidate:
    """Weights must sum to 1.0 within 0.001"""

    @pytest.mark.parametrize("weights,expected", [
        ((0.4, 0.3, 0.3), True),
        ((0.4, 0.3, 0.3005), True),
        ((0.4, 0.3, 0.302), False),
        ((1.0, 0.0, 0.0), True),
        ((0.0, 0.0, 0.0), False),
        ((0.5, 0.5, 0.5), False),
    ])
    def test_sum(self, weights, expected):
        assert validate(PriorityConfiguration(*weights)) is expected

    def test_require_valid_names_weights(self):
        with pytest.raises(ValidationError) as exc_info:
            require_valid(PriorityConfiguration(0.5, 0.5, 0.5))
        assert exc_info.value.field == "weights"


class TestAdjustWeight:
    """Proportional rescaling of the other two weights"""

    def test_proportional(self):
        config = adjust_weight(DEFAULT_CONFIGURATION, "population", 0.6)

        assert config.population == 0.6
        assert config.infrastructure == pytest.approx(0.4 * 0.4 / 0.7)
        assert config.timetable == pytest.approx(0.4 * 0.3 / 0.7)

    def test_equal_split_when_others_are_zero(self):
        config = adjust_weight(PriorityConfiguration(1.0, 0.0, 0.0), "infrastructure", 0.5)
        assert config.timetable == pytest.approx(0.25)
        assert config.population == pytest.approx(0.25)

    @pytest.mark.parametrize("value,expected", [(1.5, 1.0), (-0.3, 0.0)])
    def test_clamped(self, value, expected):
        config = adjust_weight(DEFAULT_CONFIGURATION, "timetable", value)
        assert config.timetable == expected
        assert validate(config)

    def test_original_unchanged(self):
        adjust_weight(DEFAULT_CONFIGURATION, "infrastructure", 0.9)
        assert DEFAULT_CONFIGURATION.infrastructure == 0.4

    @pytest.mark.parametrize("which", WEIGHTS)
    @pytest.mark.parametrize("start", list(BUILTIN_PRESETS.values()) + [PriorityConfiguration(0.0, 1.0, 0.0)])
    @pytest.mark.parametrize("value", [0.0, 0.001, 0.25, 0.5, 0.999, 1.0])
    def test_result_is_always_valid(self, which, start, value):
        config = adjust_weight(start, which, value)
        assert validate(config)
        assert getattr(config, which) == value
        assert all(0.0 <= getattr(config, name) <= 1.0 for name in WEIGHTS)

    def test_unknown_weight(self):
        with pytest.raises(ValidationError):
            adjust_weight(DEFAULT_CONFIGURATION, "comfort", 0.5)

    def test_nan_value(self):
        with pytest.raises(ValidationError):
            adjust_weight(DEFAULT_CONFIGURATION, "timetable", float("nan"))


class TestWeightConfigManager:
    """Named presets over a config store"""

    def test_builtin_presets(self, config_store):
        manager = WeightConfigManager(config_store)
        for name, config in BUILTIN_PRESETS.items():
            assert manager.load_preset(name) == config
            assert validate(config)

    def test_save_and_load(self, config_store):
        manager = WeightConfigManager(config_store)
        config = PriorityConfiguration(0.5, 0.25, 0.25)
        manager.save_preset("rural", config)

        assert manager.load_preset("rural") == config
        assert config_store.get("rural")["focus_area"] == "infrastructure"

    def test_save_rejects_invalid_sum(self, config_store):
        manager = WeightConfigManager(config_store)
        with pytest.raises(ValidationError):
            manager.save_preset("broken", PriorityConfiguration(0.5, 0.5, 0.5))
        assert config_store.get("broken") is None

    @pytest.mark.parametrize("name", ["balanced", "timetable_focus", "", "   "])
    def test_save_rejects_reserved_or_blank_names(self, config_store, name):
        with pytest.raises(ValidationError):
            WeightConfigManager(config_store).save_preset(name, DEFAULT_CONFIGURATION)

    def test_load_rejects_invalid_stored_preset(self, config_store):
        config_store.set("legacy", {"infrastructure": 0.5, "timetable": 0.5, "population": 0.5})
        with pytest.raises(ValidationError):
            WeightConfigManager(config_store).load_preset("legacy")

    def test_unknown_preset(self, config_store):
        with pytest.raises(PresetNotFound) as exc_info:
            WeightConfigManager(config_store).load_preset("nope")
        assert str(exc_info.value) == "Preset 'nope' not found"

    def test_delete(self, config_store):
        manager = WeightConfigManager(config_store)
        manager.save_preset("temp", DEFAULT_CONFIGURATION)
        manager.delete_preset("temp")

        with pytest.raises(PresetNotFound):
            manager.load_preset("temp")
        with pytest.raises(PresetNotFound):
            manager.delete_preset("temp")
        with pytest.raises(ValidationError):
            manager.delete_preset("balanced")

    def test_list_presets(self, config_store):
        manager = WeightConfigManager(config_store)
        manager.save_preset("zeta", PriorityConfiguration(0.1, 0.1, 0.8))
        manager.save_preset("alpha", PriorityConfiguration(0.1, 0.8, 0.1))

        presets = manager.list_presets()
        assert [p["name"] for p in presets] == list(BUILTIN_PRESETS) + ["alpha", "zeta"]
        assert presets[-1]["focus_area"] == "population"
        assert not presets[-1]["builtin"]

    def test_store_failure_is_reported(self):
        store = MagicMock()
        store.get.side_effect = OSError("disk gone")
        with pytest.raises(CollaboratorUnavailable):
            WeightConfigManager(store).load_preset("balanced")

    def test_store_failure_on_list_save_and_delete(self):
        store = MagicMock()
        store.names.side_effect = TimeoutError("store timed out")
        store.set.side_effect = OSError("read-only")
        store.delete.side_effect = OSError("read-only")
        manager = WeightConfigManager(store)

        with pytest.raises(CollaboratorUnavailable):
            manager.list_presets()
        with pytest.raises(CollaboratorUnavailable):
            manager.save_preset("rural", PriorityConfiguration(0.5, 0.25, 0.25))
        with pytest.raises(CollaboratorUnavailable):
            manager.delete_preset("rural")

    def test_sqlite_failure_on_list(self, tmp_path):
        store = SQLiteConfigStore(tmp_path / "corridor.db")
        conn = sqlite3.connect(str(store.db_path))
        conn.execute("DROP TABLE priority_configurations")
        conn.commit()
        conn.close()

        with pytest.raises(CollaboratorUnavailable):
            WeightConfigManager(store).list_presets()
