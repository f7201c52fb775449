"""
Formula-focused unit tests for the metric engine.

Values are hand-computed from the documented formulas so the tests double
as a reference for them.
"""

import warnings
from datetime import date, datetime

import pytest

from liftmetrics.core.config import DEFAULT_CONFIG, TIME_LOAD_FACTOR, EngineConfig
from liftmetrics.core.engine.config_loader import load_engine_config
from liftmetrics.core.equipment import (
    ALWAYS,
    AllOf,
    AnyOf,
    Capability,
    OptionalOf,
    barbell_loads,
    build_weight_options,
    compile_requirement,
    describe_requirement,
    evaluate,
    has_any_equipment,
    is_exercise_equipment_satisfied,
    preset_inventory,
)
from liftmetrics.core.exercises.base import EquipmentOption, Exercise
from liftmetrics.core.exercises.loader import exercise_from_dict, load_exercises_from_yaml
from liftmetrics.core.metrics import (
    duration_minutes,
    effective_weight,
    effort_rpe,
    estimated_one_rep_max,
    intensity_factor,
    is_hard_set,
    load_composition,
    normalized_load,
    tonnage,
)
from liftmetrics.core.models import EquipmentInventory, LoggedSet, Preferences
from liftmetrics.core.profiles import is_recovery_profile, is_strength_like, normalize_metric_profile
from liftmetrics.core.session_metrics import compute_session_metrics
from liftmetrics.core.units import (
    coerce_number,
    convert_distance,
    iso_week_key,
    round_to,
    to_pounds,
    weighted_average,
)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _set(
    reps: int | None = 10,
    weight: float | None = 100.0,
    *,
    rpe: float | None = None,
    rir: float | None = None,
    profile: str | None = None,
    duration: float | None = None,
    completed: bool = True,
    **kwargs,
) -> LoggedSet:
    return LoggedSet(
        reps=reps,
        weight=weight,
        rpe=rpe,
        rir=rir,
        metric_profile=profile,
        duration_seconds=duration,
        completed=completed,
        **kwargs,
    )


def _cardio(minutes: float, rpe: float | None = None) -> LoggedSet:
    return _set(reps=None, weight=None, rpe=rpe, profile="cardio", duration=minutes * 60)


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

class TestUnits:
    def test_coerce_number_parses_numeric_strings(self):
        assert coerce_number(" 7.5 ") == 7.5
        assert coerce_number(12) == 12.0

    @pytest.mark.parametrize("raw", [None, "", "abc", True, float("nan"), float("inf"), [1]])
    def test_coerce_number_unusable_is_none(self, raw):
        assert coerce_number(raw) is None

    def test_round_half_away_from_zero(self):
        assert round_to(2.5, 0) == 3.0
        assert round_to(-2.5, 0) == -3.0
        assert round_to(0.125, 2) == 0.13

    def test_kg_to_lb(self):
        assert to_pounds(100, "kg") == pytest.approx(220.462)
        assert to_pounds(100, "lb") == 100
        assert to_pounds(100, None) == 100

    def test_distance(self):
        assert convert_distance(1, "km", "m") == 1000
        assert convert_distance(1, "miles", "km") == pytest.approx(1.609344)

    def test_distance_unknown_unit_raises(self):
        with pytest.raises(ValueError):
            convert_distance(1, "furlong", "m")

    def test_weighted_average_skips_missing_and_floors_weights(self):
        # (8*100 + 6*1) / 101
        assert weighted_average([8.0, None, 6.0], [100.0, 50.0, 0.0]) == pytest.approx(806 / 101)
        assert weighted_average([None], [1.0]) is None
        assert weighted_average([], []) is None

    def test_iso_week_key_zero_padded(self):
        assert iso_week_key(date(2026, 1, 1)) == "2026-W01"
        assert iso_week_key(datetime(2026, 3, 2, 12, 0)) == "2026-W10"

    def test_iso_week_key_uses_iso_year(self):
        # Jan 1 2027 is a Friday, still in the last ISO week of 2026
        assert iso_week_key(date(2027, 1, 1)) == "2026-W53"


# ---------------------------------------------------------------------------
# Metric profiles
# ---------------------------------------------------------------------------

class TestProfiles:
    @pytest.mark.parametrize(
        "raw", ["strength", "weight-reps", "weight_reps", "Reps Weight", "reps_only", None, ""]
    )
    def test_strength_aliases(self, raw):
        assert normalize_metric_profile(raw) == "strength"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("duration", "timed_strength"),
            ("cardio session", "cardio"),
            ("cardio_session", "cardio"),
            ("Mobility-Session", "mobility"),
            ("yoga", "mobility"),
        ],
    )
    def test_other_aliases(self, raw, expected):
        assert normalize_metric_profile(raw) == expected

    def test_unknown_profile_warns_and_defaults(self):
        with pytest.warns(UserWarning, match="unknown metric profile"):
            assert normalize_metric_profile("powerlifting??") == "strength"

    def test_legacy_spellings_give_identical_load(self):
        loads = {
            normalized_load(_set(8, 135, rpe=8, profile=p))
            for p in ("weight-reps", "weight_reps", "strength")
        }
        assert len(loads) == 1

    @pytest.mark.parametrize("rpe,rir", [(8, None), (7, None), (None, 2), (None, 4)])
    def test_legacy_spellings_give_identical_e1rm_and_hard_sets(self, rpe, rir):
        sets = [
            _set(6, 185, rpe=rpe, rir=rir, profile=p)
            for p in ("weight-reps", "weight_reps", "strength")
        ]
        e1rms = {estimated_one_rep_max(s, True) for s in sets}
        assert len(e1rms) == 1
        assert None not in e1rms
        assert len({is_hard_set(s) for s in sets}) == 1

    def test_strength_and_recovery_predicates(self):
        assert is_strength_like("weight-reps")
        assert is_strength_like("timed")
        assert not is_strength_like("cardio")
        assert is_recovery_profile("mobility")
        assert not is_recovery_profile(None)


# ---------------------------------------------------------------------------
# Set-level primitives
# ---------------------------------------------------------------------------

class TestEffectiveWeightAndTonnage:
    def test_per_implement_doubles(self):
        s = _set(10, 20, load_type="per_implement", implement_count=2)
        assert effective_weight(s) == 40
        assert tonnage(s) == 400

    def test_kg_converted(self):
        s = _set(5, 100, weight_unit="kg")
        assert tonnage(s) == pytest.approx(1102.31)

    def test_missing_or_zero_weight(self):
        assert effective_weight(_set(10, None)) is None
        assert effective_weight(_set(10, 0)) is None
        assert tonnage(_set(10, None)) == 0.0

    def test_cardio_and_mobility_never_have_tonnage(self):
        assert tonnage(_set(10, 100, profile="cardio")) == 0.0
        assert tonnage(_set(10, 100, profile="mobility")) == 0.0

    def test_tonnage_ignores_effort(self):
        assert tonnage(_set(10, 100, rpe=6)) == tonnage(_set(10, 100, rpe=10)) == 1000


class TestIntensity:
    def test_missing_effort_is_exactly_half(self):
        assert intensity_factor(None) == 0.5

    def test_floor_below_rpe_four(self):
        assert intensity_factor(3.9) == 0.1
        assert intensity_factor(0) == 0.1

    def test_linear_band(self):
        assert intensity_factor(10) == 1.0
        assert intensity_factor(8) == pytest.approx(5 / 7)
        assert intensity_factor(4) == pytest.approx(1 / 7)

    def test_rpe_from_rir(self):
        assert effort_rpe(_set(rir=2)) == 8
        assert effort_rpe(_set(rpe=7, rir=0)) == 7
        assert effort_rpe(_set()) is None

    def test_rpe_clamped(self):
        assert effort_rpe(_set(rpe=12)) == 10


class TestDurationAndLoad:
    def test_duration_seconds(self):
        assert duration_minutes(_cardio(10)) == 10

    def test_legacy_timed_reps_are_seconds(self):
        plank = _set(reps=60, weight=None, profile="timed_strength")
        assert duration_minutes(plank) == 1.0

    def test_strength_load(self):
        assert normalized_load(_set(10, 100, rpe=10)) == pytest.approx(1000)

    def test_time_load(self):
        assert normalized_load(_cardio(10, rpe=10)) == pytest.approx(10 * TIME_LOAD_FACTOR)

    def test_time_load_without_duration_is_zero(self):
        assert normalized_load(_set(None, None, rpe=9, profile="cardio")) == 0.0

    def test_weighted_timed_strength_uses_tonnage(self):
        carry = _set(10, 50, rpe=10, profile="timed_strength", duration=60)
        assert normalized_load(carry) == pytest.approx(500)

    def test_cross_modality_additivity(self):
        lift = _set(10, 100, rpe=8)
        run = _cardio(20, rpe=6)
        comp = load_composition([lift, run])
        assert comp.total == pytest.approx(normalized_load(lift) + normalized_load(run))
        assert comp.strength == pytest.approx(normalized_load(lift))
        assert comp.recovery == pytest.approx(normalized_load(run))
        assert 0 < comp.strength_share < 1

    def test_incomplete_sets_ignored_by_composition(self):
        comp = load_composition([_set(10, 500, rpe=9, completed=False)])
        assert comp.total == 0
        assert comp.strength_share is None


class TestE1RM:
    def test_epley_with_rir(self):
        assert estimated_one_rep_max(_set(5, 200, rir=2), True) == pytest.approx(200 * (1 + 7 / 30))

    def test_rir_from_rpe(self):
        assert estimated_one_rep_max(_set(5, 200, rpe=9), True) == pytest.approx(240)

    def test_no_effort_means_failure(self):
        assert estimated_one_rep_max(_set(5, 200), True) == pytest.approx(200 * (1 + 5 / 30))

    def test_rir_clamped_to_six(self):
        assert estimated_one_rep_max(_set(1, 100, rir=9), True) == pytest.approx(100 * (1 + 7 / 30))

    @pytest.mark.parametrize(
        "s,eligible,goal",
        [
            (_set(13, 200), True, None),
            (_set(0, 200), True, None),
            (_set(5, 200), False, None),
            (_set(5, 200, completed=False), True, None),
            (_set(5, 200), True, "cardio"),
            (_set(5, 200), True, "range_of_motion"),
            (_set(5, 200, profile="cardio"), True, None),
            (_set(5, None), True, None),
        ],
    )
    def test_not_estimated(self, s, eligible, goal):
        assert estimated_one_rep_max(s, eligible, goal) is None


class TestHardSets:
    def test_rpe_threshold(self):
        assert is_hard_set(_set(rpe=8))
        assert not is_hard_set(_set(rpe=7.5))

    def test_rir_when_rpe_missing(self):
        assert is_hard_set(_set(rir=2))
        assert not is_hard_set(_set(rir=3))

    def test_cardio_and_incomplete_are_not_hard(self):
        assert not is_hard_set(_cardio(10, rpe=9))
        assert not is_hard_set(_set(rpe=9, completed=False))

    def test_no_effort_is_not_hard(self):
        assert not is_hard_set(_set())


# ---------------------------------------------------------------------------
# Session aggregation
# ---------------------------------------------------------------------------

START = datetime(2026, 3, 2, 10, 0)
END = datetime(2026, 3, 2, 10, 50)


class TestSessionAggregation:
    def _sets(self) -> list[LoggedSet]:
        return [
            _set(10, 100, rpe=8, rest_seconds_actual=90),
            _set(5, 200, rir=2, rest_seconds_actual=120),
            _set(10, 500, rpe=10, completed=False),
        ]

    def test_totals(self):
        m = compute_session_metrics(START, END, "moderate", self._sets())
        assert m.total_sets == 2
        assert m.total_reps == 15
        assert m.tonnage == pytest.approx(2000)
        assert m.workload == pytest.approx(2000 * 5 / 7)
        assert m.hard_sets == 2

    def test_averages(self):
        m = compute_session_metrics(START, END, "moderate", self._sets())
        assert m.avg_effort == pytest.approx(8)
        assert m.avg_intensity == pytest.approx(5 / 7)
        assert m.avg_rest_seconds == pytest.approx(105)
        assert m.session_rpe == pytest.approx(8)

    def test_duration_density_srpe(self):
        m = compute_session_metrics(START, END, "moderate", self._sets())
        assert m.duration_minutes == 50
        assert m.density == pytest.approx(2000 * 5 / 7 / 50)
        assert m.srpe_load == pytest.approx(400)

    def test_incomplete_set_does_not_count(self):
        light = compute_session_metrics(START, END, None, [_set(10, 135)])
        with_junk = compute_session_metrics(
            START, END, None, [_set(10, 135), _set(10, 500, completed=False)]
        )
        assert light == with_junk
        assert with_junk.tonnage == 1350

    def test_session_rpe_falls_back_to_baseline(self):
        m = compute_session_metrics(START, END, "high", [_set(10, 100)])
        assert m.avg_effort is None
        assert m.srpe_load is None
        assert m.session_rpe == 8.5

    def test_custom_baseline(self):
        prefs = Preferences(rpe_baselines={"low": 5.0, "moderate": 6.5, "high": 9.0})
        m = compute_session_metrics(START, END, None, [_set(10, 100)], preferences=prefs)
        assert m.session_rpe == 6.5

    def test_duration_from_set_timestamps(self):
        sets = [
            _set(performed_at=datetime(2026, 3, 2, 10, 0)),
            _set(performed_at=datetime(2026, 3, 2, 10, 30)),
        ]
        m = compute_session_metrics(None, None, None, sets)
        assert m.duration_minutes == 30

    def test_unknown_duration(self):
        m = compute_session_metrics(END, START, None, [_set()])
        assert m.duration_minutes is None
        assert m.density is None

    def test_legacy_timed_reps_not_counted_as_reps(self):
        plank = _set(reps=60, weight=None, profile="timed_strength")
        m = compute_session_metrics(START, END, None, [plank, _set(8, 100)])
        assert m.total_reps == 8

    def test_empty_session(self):
        m = compute_session_metrics(START, END, None, [])
        assert m.total_sets == 0
        assert m.workload == 0
        assert m.avg_intensity is None

    def test_non_list_sets_rejected(self):
        with pytest.raises(TypeError):
            compute_session_metrics(START, END, None, (s for s in [_set()]))

    def test_config_time_factor_applied(self):
        cfg = EngineConfig(time_load_factor=100.0)
        m = compute_session_metrics(START, END, None, [_cardio(10, rpe=10)], config=cfg)
        assert m.workload == pytest.approx(1000)


# ---------------------------------------------------------------------------
# Equipment
# ---------------------------------------------------------------------------

def _exercise(name: str = "Test", **kwargs) -> Exercise:
    return Exercise(name=name, **kwargs)


class TestEquipmentEvaluation:
    def test_empty_requirements_always_satisfied(self):
        assert evaluate(ALWAYS, EquipmentInventory(bodyweight=False))
        assert is_exercise_equipment_satisfied(EquipmentInventory(bodyweight=False), _exercise())

    def test_any_and_all(self):
        inv = EquipmentInventory(dumbbells=[20.0])
        assert evaluate(AnyOf((Capability("barbell"), Capability("dumbbell"))), inv)
        assert not evaluate(AllOf((Capability("barbell"), Capability("dumbbell"))), inv)
        assert not evaluate(AnyOf(()), inv)

    def test_optional_always_true(self):
        assert evaluate(OptionalOf(Capability("bench")), EquipmentInventory())

    def test_has_any_equipment(self):
        assert has_any_equipment(EquipmentInventory())
        assert not has_any_equipment(EquipmentInventory(bodyweight=False))
        assert has_any_equipment(EquipmentInventory(bodyweight=False, machines={"rower": True}))

    def test_specific_machine(self):
        inv = EquipmentInventory(machines={"treadmill": True, "rower": False})
        assert evaluate(Capability("machine", "treadmill"), inv)
        assert not evaluate(Capability("machine", "rower"), inv)
        assert evaluate(Capability("machine"), inv)

    def test_free_weight_or_mode(self):
        ex = _exercise(equipment=(EquipmentOption("dumbbell"), EquipmentOption("kettlebell")))
        assert is_exercise_equipment_satisfied(EquipmentInventory(kettlebells=[16.0]), ex)

    def test_free_weight_and_mode(self):
        ex = _exercise(
            equipment=(EquipmentOption("dumbbell"), EquipmentOption("band")),
            equipment_mode="and",
        )
        assert not is_exercise_equipment_satisfied(EquipmentInventory(dumbbells=[20.0]), ex)
        assert is_exercise_equipment_satisfied(
            EquipmentInventory(dumbbells=[20.0], bands=["light"]), ex
        )

    def test_required_vs_optional_bench(self):
        options = (EquipmentOption("dumbbell"), EquipmentOption("bench"))
        required = _exercise(equipment=options)
        optional = _exercise(equipment=options, additional_equipment_mode="optional")
        inv = EquipmentInventory(dumbbells=[20.0])
        assert not is_exercise_equipment_satisfied(inv, required)
        assert is_exercise_equipment_satisfied(inv, optional)

    def test_option_requires(self):
        ex = _exercise(equipment=(EquipmentOption("barbell", requires=("bench",)),))
        assert not is_exercise_equipment_satisfied(EquipmentInventory(barbell_available=True), ex)
        assert is_exercise_equipment_satisfied(
            EquipmentInventory(barbell_available=True, bench=True), ex
        )

    def test_props_always_available(self):
        ex = _exercise(equipment=(EquipmentOption("bodyweight"), EquipmentOption("block")))
        assert is_exercise_equipment_satisfied(EquipmentInventory(), ex)

    def test_or_group_replaces_options(self):
        ex = _exercise(equipment=(EquipmentOption("barbell"),), or_group="single_implement")
        assert is_exercise_equipment_satisfied(EquipmentInventory(dumbbells=[20.0]), ex)

    def test_unknown_or_group_falls_back_with_warning(self):
        ex = _exercise(equipment=(EquipmentOption("barbell"),), or_group="no_such_group")
        with pytest.warns(UserWarning, match="unknown equipment OR-group"):
            req = compile_requirement(ex)
        assert not evaluate(req, EquipmentInventory(dumbbells=[20.0]))

    def test_describe(self):
        ex = _exercise(equipment=(EquipmentOption("barbell", requires=("bench",)),))
        assert describe_requirement(compile_requirement(ex)) == "(barbell AND bench)"
        assert describe_requirement(compile_requirement(_exercise())) == "none"


class TestPresetsAndWeights:
    def test_presets(self):
        gym = preset_inventory("full_gym")
        assert gym.barbell_available and gym.bench
        assert not preset_inventory("home_minimal").barbell_available

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown equipment preset"):
            preset_inventory("castle")

    def test_presets_are_independent_copies(self):
        a = preset_inventory("hotel")
        a.dumbbells.append(99.0)
        assert 99.0 not in preset_inventory("hotel").dumbbells

    def test_barbell_loads(self):
        inv = EquipmentInventory(barbell_available=True, barbell_plates=[45.0])
        assert barbell_loads(inv) == [45.0, 135.0]
        inv = EquipmentInventory(barbell_available=True, barbell_plates=[10.0, 45.0])
        assert barbell_loads(inv) == [45.0, 65.0, 135.0, 155.0]
        assert barbell_loads(EquipmentInventory()) == []

    def test_weight_options_label_kind_when_mixed(self):
        inv = EquipmentInventory(dumbbells=[20.0], bands=["heavy"])
        options = build_weight_options(
            inv, (EquipmentOption("dumbbell"), EquipmentOption("band"))
        )
        labels = [o.label for o in options]
        assert "20 lb dumbbell" in labels
        assert "Heavy band (~30 lb)" in labels

    def test_bodyweight_option_needs_weight(self):
        options = (EquipmentOption("bodyweight"),)
        assert build_weight_options(EquipmentInventory(), options) == []
        assert build_weight_options(EquipmentInventory(), options, 180.0)[0].value == 180.0


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

class TestCatalogLoader:
    def test_exercise_from_dict(self):
        ex = exercise_from_dict({
            "name": "Bench",
            "equipment": [{"kind": "barbell", "requires": ["bench_press"]}, "dumbbell"],
            "secondary_muscles": "triceps",
            "reps": "8-12",
        })
        assert ex.equipment[0].requires == ("bench",)
        assert ex.equipment[1].kind == "dumbbell"
        assert ex.secondary_muscles == ("triceps",)
        assert ex.e1rm_eligible is False

    def test_missing_name(self):
        with pytest.raises(ValueError):
            exercise_from_dict({"category": "strength"})

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            exercise_from_dict({"name": "X", "equipment": ["trampoline"]})

    def test_user_override_and_order(self, tmp_path):
        bundled = tmp_path / "bundled"
        user = tmp_path / "user"
        bundled.mkdir()
        user.mkdir()
        (bundled / "b_row.yaml").write_text("name: Row\nprimary_muscle: lats\nreps: 10\n")
        (bundled / "a_squat.yaml").write_text("name: Squat\nprimary_muscle: quads\n")
        (user / "b_row.yaml").write_text("reps: 15\n")
        (user / "a_custom.yaml").write_text("name: Custom\n")

        loaded = load_exercises_from_yaml(bundled, user)

        assert list(loaded) == ["a_squat", "b_row", "a_custom"]
        assert loaded["b_row"].reps == 15
        assert loaded["b_row"].primary_muscle == "lats"

    def test_invalid_entry_skipped_with_warning(self, tmp_path):
        (tmp_path / "good.yaml").write_text("name: Good\n")
        (tmp_path / "bad.yaml").write_text("name: Bad\nequipment_mode: xor\n")
        empty = tmp_path / "empty"
        empty.mkdir()
        with pytest.warns(UserWarning, match="skipping exercise 'bad'"):
            loaded = load_exercises_from_yaml(tmp_path, empty)
        assert list(loaded) == ["good"]

    def test_nothing_loaded(self, tmp_path):
        assert load_exercises_from_yaml(tmp_path, tmp_path) is None


# ---------------------------------------------------------------------------
# Engine configuration
# ---------------------------------------------------------------------------

class TestEngineConfig:
    def test_bundled_matches_defaults(self, tmp_path):
        assert load_engine_config(tmp_path / "missing.yaml") == DEFAULT_CONFIG

    def test_user_override(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("windows:\n  chronic_days: 21\nload:\n  time_load_factor: 100\n")
        cfg = load_engine_config(path)
        assert cfg.chronic_window_days == 21
        assert cfg.time_load_factor == 100.0
        assert cfg.acute_window_days == 7

    def test_invalid_override_falls_back(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("thresholds:\n  undertraining: 2.0\n")
        with pytest.warns(UserWarning, match="invalid engine configuration"):
            cfg = load_engine_config(path)
        assert cfg == DEFAULT_CONFIG

    def test_broken_yaml_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("windows: [unclosed\n")
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            assert load_engine_config(path) == DEFAULT_CONFIG

    def test_threshold_order_validated(self):
        with pytest.raises(ValueError):
            EngineConfig(overreaching_high_risk_ratio=1.2)
        with pytest.raises(ValueError):
            EngineConfig(chronic_window_days=3)
