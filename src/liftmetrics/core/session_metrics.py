"""
Session-level aggregation.

Folds a session's completed sets through the metric primitives into one
SessionMetrics bundle.  Used live for in-progress sessions and dashboards,
and once by the completion snapshot builder.
"""

from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Sequence

from .config import DEFAULT_CONFIG, EngineConfig
from .metrics import (
    effort_rpe,
    is_hard_set,
    normalized_load,
    set_intensity_factor,
    tonnage,
    uses_time_path,
)
from .models import LoggedSet, Preferences, Session, SessionExercise, SessionMetrics
from .units import coerce_number, iso_week_key, mean, round_to


def session_duration_minutes(
    started_at: datetime | None,
    ended_at: datetime | None,
    sets: Sequence[LoggedSet] = (),
) -> int | None:
    """
    Whole minutes between start and end.

    A missing or reversed interval falls back to the span between the first
    and last performed_at timestamps of the sets (needs at least two).

    Returns:
        Non-negative minutes, or None when the duration is unknown
    """
    if started_at is not None and ended_at is not None and ended_at >= started_at:
        return int(round_to((ended_at - started_at).total_seconds() / 60.0, 0))

    stamps = sorted(s.performed_at for s in sets if s.performed_at is not None)
    if len(stamps) < 2:
        return None
    return int(round_to((stamps[-1] - stamps[0]).total_seconds() / 60.0, 0))


def compute_session_metrics(
    started_at: datetime | None,
    ended_at: datetime | None,
    intensity: str | None,
    sets: Sequence[LoggedSet],
    preferences: Preferences | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> SessionMetrics:
    """
    Aggregate completed sets into session totals.

    density    = workload / duration_minutes
    srpe_load  = duration_minutes × avg_effort

    Sets not flagged completed are dropped before anything is summed.

    Args:
        started_at: Session start
        ended_at: Session end
        intensity: Session intensity label ("low" | "moderate" | "high")
        sets: Flattened sets of the session
        preferences: Supplies the RPE baseline used for session_rpe
        config: Engine tunables

    Returns:
        SessionMetrics

    Raises:
        TypeError: If sets is not a list or tuple
    """
    if not isinstance(sets, (list, tuple)):
        raise TypeError(f"sets must be a list, got {type(sets).__name__}")

    done = [s for s in sets if s.completed]
    prefs = preferences or Preferences()

    total_tonnage = sum(tonnage(s) for s in done)
    workload = sum(normalized_load(s, config.time_load_factor) for s in done)
    hard_sets = sum(
        1 for s in done if is_hard_set(s, config.hard_set_rpe, config.hard_set_rir)
    )

    total_reps = 0
    for s in done:
        reps = coerce_number(s.reps)
        # Legacy timed sets carry seconds in reps
        if reps is not None and reps > 0 and not uses_time_path(s):
            total_reps += int(reps)

    avg_effort = mean(effort_rpe(s) for s in done)
    avg_intensity = mean(set_intensity_factor(s) for s in done)
    avg_rest = mean(coerce_number(s.rest_seconds_actual) for s in done)

    duration = session_duration_minutes(started_at, ended_at, done)
    density = workload / duration if duration else None
    srpe_load = duration * avg_effort if duration is not None and avg_effort is not None else None

    session_rpe = avg_effort if avg_effort is not None else prefs.baseline_for(intensity)

    return SessionMetrics(
        total_sets=len(done),
        total_reps=total_reps,
        tonnage=total_tonnage,
        workload=workload,
        hard_sets=hard_sets,
        avg_effort=avg_effort,
        avg_intensity=avg_intensity,
        avg_rest_seconds=avg_rest,
        density=density,
        srpe_load=srpe_load,
        duration_minutes=duration,
        session_rpe=session_rpe,
    )


def exercise_sets(exercise: SessionExercise) -> list[LoggedSet]:
    """Sets of an exercise with the exercise-level metric profile applied."""
    if not exercise.metric_profile:
        return list(exercise.sets)
    return [replace(s, metric_profile=exercise.metric_profile) for s in exercise.sets]


def collect_completed_sets(session: Session) -> list[LoggedSet]:
    """
    Flatten a session's completed sets in exercise order.

    Args:
        session: Session to flatten

    Returns:
        Completed sets, each carrying its exercise's metric profile
    """
    ordered = sorted(session.exercises, key=lambda ex: ex.order_index)
    return [s for ex in ordered for s in exercise_sets(ex) if s.completed]


def session_metrics(
    session: Session,
    preferences: Preferences | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> SessionMetrics:
    """Live metrics for a session, recomputed from its sets."""
    return compute_session_metrics(
        session.started_at,
        session.ended_at,
        session.intensity,
        collect_completed_sets(session),
        preferences=preferences,
        config=config,
    )


def weekly_volume_by_muscle(sessions: Iterable[Session]) -> dict[str, dict[str, float]]:
    """
    Tonnage per ISO week per primary muscle.

    Exercises without a primary muscle are grouped under "other".  Sessions
    without a start time are skipped.

    Returns:
        {"2026-W03": {"quads": 5400.0, ...}, ...} with weeks in ascending order
    """
    volume: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for session in sessions:
        if session.started_at is None:
            continue
        week = iso_week_key(session.started_at)
        for ex in session.exercises:
            muscle = (ex.primary_muscle or "other").strip().lower() or "other"
            for s in exercise_sets(ex):
                if s.completed:
                    volume[week][muscle] += tonnage(s)
    return {week: dict(volume[week]) for week in sorted(volume)}
