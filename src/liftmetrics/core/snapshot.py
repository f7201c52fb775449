"""
Completion snapshot builder and snapshot-first readers.

A snapshot freezes the metrics of a finished session together with the
formula version and preferences that produced them.  Everything that reads
a completed session's numbers goes through resolve_session_metrics() so a
later formula change can never rewrite history.
"""

import json
from dataclasses import asdict, replace
from datetime import datetime
from typing import Iterable

from .config import DEFAULT_CONFIG, EngineConfig
from .exercises.base import Exercise
from .metrics import duration_minutes, effective_weight, estimated_one_rep_max, uses_time_path
from .models import (
    CompletionSnapshot,
    LoggedSet,
    Preferences,
    Session,
    SessionExercise,
    SessionMetrics,
    SnapshotMetrics,
)
from .session_metrics import collect_completed_sets, compute_session_metrics, exercise_sets
from .units import coerce_number, round_to, round_weight


def is_qualifying_set(s: LoggedSet) -> bool:
    """
    True when a set is complete enough to be kept after completion.

    Strength sets need positive reps and weight; time-based sets need a
    duration (legacy reps-as-seconds counts).
    """
    if not s.completed:
        return False
    if uses_time_path(s):
        return duration_minutes(s) is not None
    reps = coerce_number(s.reps)
    return reps is not None and reps > 0 and effective_weight(s) is not None


def qualifying_exercises(session: Session) -> list[SessionExercise]:
    """
    Copy of the session's exercises with non-qualifying sets removed.

    The stored sets keep their own metric_profile; the exercise override is
    only applied when deciding whether a set qualifies.
    """
    cleaned = []
    for ex in session.exercises:
        kept = [
            original
            for original, resolved in zip(ex.sets, exercise_sets(ex))
            if is_qualifying_set(resolved)
        ]
        cleaned.append(replace(ex, sets=kept))
    return cleaned


def _catalog_index(catalog: Iterable[Exercise] | None) -> dict[str, Exercise]:
    if not catalog:
        return {}
    return {ex.name.strip().lower(): ex for ex in catalog}


def is_e1rm_eligible(exercise: SessionExercise, index: dict[str, Exercise]) -> bool:
    """Exercise flag wins, then the catalog entry by name, else not eligible."""
    if exercise.e1rm_eligible is not None:
        return bool(exercise.e1rm_eligible)
    entry = index.get(exercise.name.strip().lower())
    return bool(entry and entry.e1rm_eligible)


def best_session_e1rm(
    exercises: Iterable[SessionExercise],
    goal: str | None = None,
    catalog: Iterable[Exercise] | None = None,
    max_reps: int = DEFAULT_CONFIG.e1rm_max_reps,
) -> tuple[float | None, str | None]:
    """
    Highest e1RM across a session and the exercise that produced it.

    The first exercise reaching the maximum keeps it on ties.

    Returns:
        (best e1RM in lb or None, exercise name or None)
    """
    index = _catalog_index(catalog)
    best: float | None = None
    best_name: str | None = None
    for ex in sorted(exercises, key=lambda e: e.order_index):
        eligible = is_e1rm_eligible(ex, index)
        if not eligible:
            continue
        for s in exercise_sets(ex):
            value = estimated_one_rep_max(s, eligible, goal, max_reps)
            if value is not None and (best is None or value > best):
                best = value
                best_name = ex.name
    return best, best_name


def _round_optional(value: float | None, digits: int) -> float | None:
    return round_to(value, digits) if value is not None else None


def freeze_metrics(
    metrics: SessionMetrics,
    best_e1rm: float | None,
    best_e1rm_exercise: str | None,
) -> SnapshotMetrics:
    """Round a live metric bundle into its stored form."""
    return SnapshotMetrics(
        tonnage=round_to(metrics.tonnage, 2),
        total_sets=metrics.total_sets,
        total_reps=metrics.total_reps,
        workload=round_to(metrics.workload, 2),
        hard_sets=metrics.hard_sets,
        avg_effort=_round_optional(metrics.avg_effort, 2),
        avg_intensity=_round_optional(metrics.avg_intensity, 3),
        avg_rest_seconds=_round_optional(metrics.avg_rest_seconds, 1),
        density=_round_optional(metrics.density, 2),
        srpe_load=_round_optional(metrics.srpe_load, 2),
        best_e1rm=round_weight(best_e1rm) if best_e1rm is not None else None,
        best_e1rm_exercise=best_e1rm_exercise,
        duration_minutes=metrics.duration_minutes,
    )


def build_completion_snapshot(
    session: Session,
    ended_at: datetime,
    preferences: Preferences,
    formula_version: str,
    body_weight_lb: float | None = None,
    catalog: Iterable[Exercise] | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> CompletionSnapshot:
    """
    Build the immutable record for a session being completed.

    Pure: the same session, preferences, formula version and ended_at give
    an identical snapshot.  captured_at is ended_at, never the wall clock.

    Args:
        session: Session being completed
        ended_at: Completion time
        preferences: Preferences in effect right now (read once by the caller)
        formula_version: Formula version in effect right now
        body_weight_lb: Body weight to freeze; defaults to the session's
        catalog: Exercise catalog for e1RM eligibility lookups
        config: Engine tunables

    Returns:
        CompletionSnapshot (a zero snapshot when no set qualifies)
    """
    cleaned = qualifying_exercises(session)
    sets = [s for ex in sorted(cleaned, key=lambda e: e.order_index) for s in exercise_sets(ex)]
    metrics = compute_session_metrics(
        session.started_at,
        ended_at,
        session.intensity,
        sets,
        preferences=preferences,
        config=config,
    )
    best, best_name = best_session_e1rm(cleaned, session.goal, catalog, config.e1rm_max_reps)

    weight = coerce_number(body_weight_lb)
    if weight is None:
        weight = coerce_number(session.body_weight_lb)

    return CompletionSnapshot(
        body_weight_lb=weight,
        preferences=replace(preferences, rpe_baselines=dict(preferences.rpe_baselines)),
        formula_version=formula_version,
        metrics=freeze_metrics(metrics, best, best_name),
        captured_at=ended_at.isoformat(),
    )


def complete_session(
    session: Session,
    ended_at: datetime,
    preferences: Preferences,
    formula_version: str,
    body_weight_lb: float | None = None,
    catalog: Iterable[Exercise] | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Session:
    """
    Transition a session to completed and attach its snapshot.

    Non-qualifying sets are purged from the returned session.  The input
    session is not modified.

    Raises:
        ValueError: If the session id is empty or the session is already completed
        TypeError: If an exercise's sets are not a list
    """
    if not isinstance(session.id, str) or not session.id.strip():
        raise ValueError("Cannot complete a session without an id")
    if session.is_completed or session.completion_snapshot is not None:
        raise ValueError(f"Session {session.id} is already completed")
    for ex in session.exercises:
        if not isinstance(ex.sets, (list, tuple)):
            raise TypeError(f"Sets of exercise {ex.name!r} must be a list")

    snapshot = build_completion_snapshot(
        session, ended_at, preferences, formula_version, body_weight_lb, catalog, config
    )
    return replace(
        session,
        status="completed",
        ended_at=ended_at,
        exercises=qualifying_exercises(session),
        body_weight_lb=snapshot.body_weight_lb,
        completion_snapshot=snapshot,
    )


def snapshot_metrics(session: Session) -> SnapshotMetrics | None:
    """Stored metrics of a completed session, or None if it has no snapshot."""
    if session.completion_snapshot is None:
        return None
    return session.completion_snapshot.metrics


def resolve_session_metrics(
    session: Session,
    preferences: Preferences | None = None,
    catalog: Iterable[Exercise] | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> SnapshotMetrics:
    """
    Metrics for display: the snapshot when present, else a live computation.

    Args:
        session: Any session
        preferences: Used only for live computation
        catalog: Used only for live e1RM eligibility
        config: Used only for live computation

    Returns:
        SnapshotMetrics
    """
    stored = snapshot_metrics(session)
    if stored is not None:
        return stored
    live = compute_session_metrics(
        session.started_at,
        session.ended_at,
        session.intensity,
        collect_completed_sets(session),
        preferences=preferences,
        config=config,
    )
    best, best_name = best_session_e1rm(session.exercises, session.goal, catalog, config.e1rm_max_reps)
    return freeze_metrics(live, best, best_name)


def session_workload(session: Session, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Workload of a session, snapshot first."""
    stored = snapshot_metrics(session)
    if stored is not None:
        return stored.workload
    return compute_session_metrics(
        session.started_at,
        session.ended_at,
        session.intensity,
        collect_completed_sets(session),
        config=config,
    ).workload


def session_body_weight(session: Session, current: float | None = None) -> float | None:
    """Body weight for a session: snapshot, then the session row, then current."""
    snap = session.completion_snapshot
    if snap is not None and snap.body_weight_lb is not None:
        return snap.body_weight_lb
    if session.body_weight_lb is not None:
        return session.body_weight_lb
    return current


def snapshot_to_dict(snapshot: CompletionSnapshot) -> dict:
    """Plain-dict form of a snapshot."""
    return asdict(snapshot)


def snapshot_to_json(snapshot: CompletionSnapshot) -> str:
    """Canonical JSON of a snapshot (sorted keys, so equal snapshots are byte-identical)."""
    return json.dumps(snapshot_to_dict(snapshot), sort_keys=True, separators=(",", ":"))
