"""
Pure set-level metric computation functions.

Every function accepts a LoggedSet whose numeric fields may be missing or
corrupt, normalizes its metric profile first, and degrades to None/0/the
stated default instead of raising.
"""

from dataclasses import dataclass
from typing import Iterable

from .config import (
    DEFAULT_INTENSITY_FACTOR,
    E1RM_MAX_REPS,
    EPLEY_DIVISOR,
    HARD_SET_RIR,
    HARD_SET_RPE,
    INTENSITY_FLOOR_FACTOR,
    INTENSITY_FLOOR_RPE,
    INTENSITY_RPE_OFFSET,
    INTENSITY_RPE_SPAN,
    NON_LOAD_GOALS,
    RIR_MAX,
    RIR_MIN,
    RPE_MAX,
    TIME_LOAD_FACTOR,
)
from .models import LoggedSet
from .profiles import (
    TIME_BASED,
    TIMED_STRENGTH,
    is_recovery_profile,
    is_strength_like,
    normalize_metric_profile,
)
from .units import clamp, coerce_int, coerce_number, to_pounds


def effective_weight(s: LoggedSet) -> float | None:
    """
    Weight actually moved per rep, in pounds.

    effective = to_lb(weight) × implement_count   (per_implement loading)
    effective = to_lb(weight)                      (otherwise)

    Args:
        s: Logged set

    Returns:
        Positive weight in lb, or None when weight is missing or not positive
    """
    weight = coerce_number(s.weight)
    if weight is None or weight <= 0:
        return None
    multiplier = 1
    if s.load_type == "per_implement":
        count = coerce_int(s.implement_count)
        if count in (1, 2):
            multiplier = count
    return to_pounds(weight, s.weight_unit) * multiplier


def tonnage(s: LoggedSet) -> float:
    """
    Raw strength volume: effective weight × reps.

    Always 0 for cardio and mobility sets, whatever weight/reps they carry,
    and for sets missing a positive weight or rep count.
    """
    if not is_strength_like(s.metric_profile):
        return 0.0
    weight = effective_weight(s)
    reps = coerce_number(s.reps)
    if weight is None or reps is None or reps <= 0:
        return 0.0
    return weight * reps


def effort_rpe(s: LoggedSet) -> float | None:
    """
    Perceived effort on the RPE scale.

    Logged RPE wins; otherwise RPE = 10 − RIR.  Clamped to 0..10.

    Returns:
        RPE, or None when neither RPE nor RIR was logged
    """
    rpe = coerce_number(s.rpe)
    if rpe is None:
        rir = coerce_number(s.rir)
        if rir is None:
            return None
        rpe = RPE_MAX - rir
    return clamp(rpe, 0.0, RPE_MAX)


def intensity_factor(rpe: float | None) -> float:
    """
    Map an RPE onto a 0..1 intensity factor.

    f = 0.1                       if rpe < 4
    f = clip((rpe − 3) / 7, 0, 1) otherwise
    f = 0.5                       if rpe is missing

    Args:
        rpe: Effort on the RPE scale, or None

    Returns:
        Intensity factor in [0, 1]
    """
    value = coerce_number(rpe)
    if value is None:
        return DEFAULT_INTENSITY_FACTOR
    if value < INTENSITY_FLOOR_RPE:
        return INTENSITY_FLOOR_FACTOR
    return clamp((value - INTENSITY_RPE_OFFSET) / INTENSITY_RPE_SPAN, 0.0, 1.0)


def set_intensity_factor(s: LoggedSet) -> float:
    """Intensity factor of a set, using RIR when RPE is absent."""
    return intensity_factor(effort_rpe(s))


def duration_minutes(s: LoggedSet) -> float | None:
    """
    Set duration in minutes.

    Time-based sets logged before duration_seconds existed stored the
    seconds in reps; those are read back the same way.
    """
    seconds = coerce_number(s.duration_seconds)
    if seconds is None and normalize_metric_profile(s.metric_profile) in TIME_BASED:
        seconds = coerce_number(s.reps)
    if seconds is None or seconds <= 0:
        return None
    return seconds / 60.0


def uses_time_path(s: LoggedSet) -> bool:
    """
    True when a set's load comes from duration rather than tonnage.

    Cardio and mobility always do; timed strength does only when it
    carries no weight.
    """
    if is_recovery_profile(s.metric_profile):
        return True
    if normalize_metric_profile(s.metric_profile) == TIMED_STRENGTH:
        return effective_weight(s) is None
    return False


def normalized_load(s: LoggedSet, time_load_factor: float = TIME_LOAD_FACTOR) -> float:
    """
    Intensity-adjusted training load of one set.

    Strength path:  tonnage × f(rpe)
    Time path:      minutes × f(rpe) × TIME_LOAD_FACTOR

    The time factor puts duration-based work on the same numeric scale as
    tonnage so that mixed sessions can be summed.

    Args:
        s: Logged set
        time_load_factor: Calibration factor for the time path

    Returns:
        Non-negative load
    """
    factor = set_intensity_factor(s)
    if uses_time_path(s):
        minutes = duration_minutes(s)
        if minutes is None:
            return 0.0
        return minutes * factor * time_load_factor
    return tonnage(s) * factor


def estimated_one_rep_max(
    s: LoggedSet,
    eligible: bool,
    goal: str | None = None,
    max_reps: int = E1RM_MAX_REPS,
) -> float | None:
    """
    Estimate a one-rep max from a submaximal set (Epley, RIR-adjusted).

    reps_at_failure = reps + clip(RIR, 0, 6)
    e1RM = weight_lb × (1 + reps_at_failure / 30)

    RIR is the logged value, else 10 − RPE, else 0 (set taken to failure).

    Args:
        s: Logged set
        eligible: Whether the exercise is catalog-flagged for e1RM
        goal: Session goal; cardio and range-of-motion sessions never estimate
        max_reps: Highest rep count still considered close enough to a single

    Returns:
        Estimated 1RM in lb, or None when no estimate applies
    """
    if not eligible or not s.completed:
        return None
    if goal is not None and goal in NON_LOAD_GOALS:
        return None
    if not is_strength_like(s.metric_profile):
        return None
    weight = effective_weight(s)
    reps = coerce_number(s.reps)
    if weight is None or reps is None or reps < 1 or reps > max_reps:
        return None

    rir = coerce_number(s.rir)
    if rir is None:
        rpe = coerce_number(s.rpe)
        rir = RPE_MAX - rpe if rpe is not None else 0.0
    reps_at_failure = reps + clamp(rir, RIR_MIN, RIR_MAX)
    return weight * (1 + reps_at_failure / EPLEY_DIVISOR)


def is_hard_set(
    s: LoggedSet,
    rpe_threshold: float = HARD_SET_RPE,
    rir_threshold: float = HARD_SET_RIR,
) -> bool:
    """
    Hard set: a completed strength-like set at RPE ≥ 8 (or, RPE absent, RIR ≤ 2).
    """
    if not s.completed:
        return False
    if not is_strength_like(s.metric_profile):
        return False
    rpe = coerce_number(s.rpe)
    if rpe is not None:
        return rpe >= rpe_threshold
    rir = coerce_number(s.rir)
    return rir is not None and rir <= rir_threshold


def set_load_bucket(s: LoggedSet) -> str:
    """Classify a set as "strength" or "recovery" (cardio/mobility) load."""
    return "recovery" if is_recovery_profile(s.metric_profile) else "strength"


@dataclass(frozen=True)
class LoadComposition:
    """Split of a set collection's load into strength and recovery work."""

    total: float
    strength: float
    recovery: float

    @property
    def strength_share(self) -> float | None:
        """Fraction of load from strength work, None when there is no load."""
        return self.strength / self.total if self.total > 0 else None


def load_composition(
    sets: Iterable[LoggedSet],
    time_load_factor: float = TIME_LOAD_FACTOR,
) -> LoadComposition:
    """
    Sum normalized load per bucket over completed sets.

    Args:
        sets: Logged sets; incomplete ones are ignored
        time_load_factor: Calibration factor for the time path

    Returns:
        LoadComposition with total, strength and recovery loads
    """
    strength = 0.0
    recovery = 0.0
    for s in sets:
        if not s.completed:
            continue
        load = normalized_load(s, time_load_factor)
        if set_load_bucket(s) == "recovery":
            recovery += load
        else:
            strength += load
    return LoadComposition(total=strength + recovery, strength=strength, recovery=recovery)


def best_e1rm(
    sets: Iterable[LoggedSet],
    eligible: bool,
    goal: str | None = None,
) -> float | None:
    """Highest e1RM over a collection of sets, or None if none qualifies."""
    best: float | None = None
    for s in sets:
        value = estimated_one_rep_max(s, eligible, goal)
        if value is not None and (best is None or value > best):
            best = value
    return best
