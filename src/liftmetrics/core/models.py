"""
Data models for liftmetrics.

All core dataclasses representing logged sets, sessions, completion
snapshots and derived load summaries.  Numeric set fields are deliberately
not validated here: a corrupt historical set must degrade to a default in
the metric functions rather than fail to construct.  Structural problems
(missing ids, non-list set collections) do raise.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from .config import RPE_BASELINES

MetricProfile = Literal["strength", "timed_strength", "cardio", "mobility"]
LoadType = Literal["total", "per_implement"]
WeightUnit = Literal["lb", "kg"]
SessionStatus = Literal["in_progress", "completed"]
Intensity = Literal["low", "moderate", "high"]
LoadStatus = Literal["balanced", "undertraining", "overreaching"]

SESSION_STATUSES: tuple[str, ...] = ("in_progress", "completed")
INTENSITIES: tuple[str, ...] = ("low", "moderate", "high")


@dataclass
class LoggedSet:
    """
    One performed working unit.

    metric_profile holds the raw stored spelling (legacy aliases included);
    metric functions normalize it through core.profiles before use.
    Absent numeric values are None, never 0.
    """

    reps: int | None = None
    weight: float | None = None
    weight_unit: str | None = None  # "lb" | "kg"; None → lb
    implement_count: int | None = None  # 1 or 2 for per-implement loading
    load_type: str | None = None  # "total" | "per_implement"
    rpe: float | None = None  # 0–10
    rir: float | None = None  # 0–6
    completed: bool = False
    performed_at: datetime | None = None
    duration_seconds: float | None = None
    distance: float | None = None
    distance_unit: str | None = None  # "m" | "km" | "miles"
    rest_seconds_actual: float | None = None
    metric_profile: str | None = None
    extras: dict = field(default_factory=dict)


@dataclass
class SessionExercise:
    """
    An exercise instance within one session.

    metric_profile overrides the catalog default for every set of this
    exercise.  e1rm_eligible=None means "look it up in the catalog".
    """

    name: str
    sets: list[LoggedSet] = field(default_factory=list)
    primary_muscle: str | None = None
    secondary_muscles: list[str] = field(default_factory=list)
    metric_profile: str | None = None
    order_index: int = 0
    e1rm_eligible: bool | None = None

    def __post_init__(self) -> None:
        """Validate structure."""
        if not isinstance(self.sets, (list, tuple)):
            raise TypeError(
                f"SessionExercise.sets must be a list, got {type(self.sets).__name__}"
            )


@dataclass(frozen=True)
class Preferences:
    """
    Unit and RPE-baseline preferences in effect for a user.

    A CompletionSnapshot stores a copy of the instance that was current
    at completion time.
    """

    units: WeightUnit = "lb"
    rpe_baselines: dict[str, float] = field(default_factory=lambda: dict(RPE_BASELINES))

    def __post_init__(self) -> None:
        """Validate preferences."""
        if self.units not in ("lb", "kg"):
            raise ValueError(f"Invalid units: {self.units!r}. Must be 'lb' or 'kg'.")

    def baseline_for(self, intensity: str | None) -> float:
        """Return the session RPE assumed for an intensity label (moderate by default)."""
        key = intensity if intensity in INTENSITIES else "moderate"
        return float(self.rpe_baselines.get(key, RPE_BASELINES[key]))


@dataclass(frozen=True)
class SessionMetrics:
    """
    Session-level totals produced by the session aggregator.

    duration_minutes is rounded to whole minutes; everything else is left
    unrounded so that totals stay additive.
    """

    total_sets: int
    total_reps: int
    tonnage: float
    workload: float
    hard_sets: int
    avg_effort: float | None
    avg_intensity: float | None
    avg_rest_seconds: float | None
    density: float | None
    srpe_load: float | None
    duration_minutes: int | None
    session_rpe: float | None = None


@dataclass(frozen=True)
class SnapshotMetrics:
    """Metric bundle frozen into a CompletionSnapshot (rounded for storage)."""

    tonnage: float
    total_sets: int
    total_reps: int
    workload: float
    hard_sets: int
    avg_effort: float | None
    avg_intensity: float | None
    avg_rest_seconds: float | None
    density: float | None
    srpe_load: float | None
    best_e1rm: float | None
    best_e1rm_exercise: str | None
    duration_minutes: int | None


@dataclass(frozen=True)
class CompletionSnapshot:
    """
    Immutable record attached once when a session is completed.

    Historical reads must use this instead of recomputing, so past sessions
    are immune to later formula or preference changes.
    """

    body_weight_lb: float | None
    preferences: Preferences
    formula_version: str
    metrics: SnapshotMetrics
    captured_at: str  # ISO timestamp of completion


@dataclass
class Session:
    """
    A workout occurrence.

    Created in_progress, mutated by set edits, then completed exactly once
    via core.snapshot.complete_session().
    """

    id: str
    started_at: datetime | None = None
    ended_at: datetime | None = None
    status: str = "in_progress"
    user_id: str | None = None
    focus_areas: list[str] = field(default_factory=list)
    goal: str | None = None
    intensity: str | None = None
    body_weight_lb: float | None = None
    exercises: list[SessionExercise] = field(default_factory=list)
    completion_snapshot: CompletionSnapshot | None = None

    def __post_init__(self) -> None:
        """Validate session identity and structure."""
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("Session id must be a non-empty string")
        if self.status not in SESSION_STATUSES:
            raise ValueError(f"Invalid session status: {self.status!r}")
        if self.intensity is not None and self.intensity not in INTENSITIES:
            raise ValueError(f"Invalid intensity: {self.intensity!r}")
        if not isinstance(self.exercises, (list, tuple)):
            raise TypeError(
                f"Session.exercises must be a list, got {type(self.exercises).__name__}"
            )

    @property
    def is_completed(self) -> bool:
        """True once the session has been finalized."""
        return self.status == "completed"


@dataclass(frozen=True)
class WeeklyLoad:
    """Total load for one ISO calendar week (e.g. "2026-W03")."""

    week: str
    load: float


@dataclass(frozen=True)
class TrainingLoadSummary:
    """
    Acute:chronic view of a user's recent training stress.

    Derived on read, never persisted.  load_ratio is 0.0 when undefined;
    insufficient_data tells callers to show the ratio as unavailable.
    """

    acute_load: float
    chronic_load: float
    chronic_weekly_avg: float
    load_ratio: float
    status: LoadStatus
    high_risk: bool
    days_since_last: float | None
    insufficient_data: bool
    is_initial_phase: bool
    weekly_trend: tuple[WeeklyLoad, ...] = ()


@dataclass
class EquipmentInventory:
    """
    Equipment a user has access to.

    Owned by the user profile.  Loads are in pounds.
    """

    bodyweight: bool = True
    bench: bool = False
    dumbbells: list[float] = field(default_factory=list)
    kettlebells: list[float] = field(default_factory=list)
    bands: list[str] = field(default_factory=list)  # "light" | "medium" | "heavy"
    barbell_available: bool = False
    barbell_plates: list[float] = field(default_factory=list)
    machines: dict[str, bool] = field(default_factory=dict)

    def has_machine(self, machine_type: str | None = None) -> bool:
        """Any machine when machine_type is None, else that specific one."""
        if machine_type:
            return self.machines.get(machine_type) is True
        return any(self.machines.values())
