"""
JSON serialization for liftmetrics data models.

Handles conversion between dataclasses and JSON-compatible dicts.  Stored
rows are loosely typed: keys may be camelCase or snake_case, numeric
fields may be null, "" or junk strings.  Numeric fields are coerced
defensively (unusable → absent); structural problems raise ValidationError.
"""

import json
from dataclasses import asdict
from datetime import datetime
from typing import Any

from ..core.exercises.base import SubstitutionResult
from ..core.models import (
    INTENSITIES,
    SESSION_STATUSES,
    CompletionSnapshot,
    EquipmentInventory,
    LoggedSet,
    Preferences,
    Session,
    SessionExercise,
    SessionMetrics,
    SnapshotMetrics,
    TrainingLoadSummary,
)
from ..core.snapshot import snapshot_to_dict
from ..core.units import coerce_int, coerce_number


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _get(data: dict[str, Any], key: str, default: Any = None) -> Any:
    """Read a snake_case key, falling back to its camelCase spelling."""
    if key in data:
        return data[key]
    return data.get(_camel(key), default)


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y")
    return bool(value)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _naive_local(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def parse_timestamp(value: Any, name: str = "timestamp") -> datetime | None:
    """
    Parse an ISO-8601 timestamp ("Z" suffix accepted).

    Values with a UTC offset are converted to naive local time so that
    stored and freshly logged timestamps compare.

    Args:
        value: Raw value (str, datetime or None)
        name: Field name for the error message

    Returns:
        datetime, or None when the value is absent

    Raises:
        ValidationError: If the value is present but not a valid timestamp
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _naive_local(value)
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {name}: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {value!r}. Expected ISO-8601") from e
    return _naive_local(parsed)


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


# ---------------------------------------------------------------------------
# LoggedSet
# ---------------------------------------------------------------------------


def dict_to_logged_set(data: dict[str, Any]) -> LoggedSet:
    """
    Convert a stored set row to LoggedSet.

    Numeric fields that are null, empty or non-numeric become None (never 0).
    An unparseable performed_at is dropped rather than failing the row.

    Raises:
        ValidationError: If data is not a dict
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Set record must be an object, got {type(data).__name__}")

    try:
        performed_at = parse_timestamp(_get(data, "performed_at"), "performed_at")
    except ValidationError:
        performed_at = None

    extras = _get(data, "extras")
    return LoggedSet(
        reps=coerce_int(_get(data, "reps")),
        weight=coerce_number(_get(data, "weight")),
        weight_unit=_optional_str(_get(data, "weight_unit")),
        implement_count=coerce_int(_get(data, "implement_count")),
        load_type=_optional_str(_get(data, "load_type")),
        rpe=coerce_number(_get(data, "rpe")),
        rir=coerce_number(_get(data, "rir")),
        completed=_coerce_bool(_get(data, "completed", False)),
        performed_at=performed_at,
        duration_seconds=coerce_number(_get(data, "duration_seconds")),
        distance=coerce_number(_get(data, "distance")),
        distance_unit=_optional_str(_get(data, "distance_unit")),
        rest_seconds_actual=coerce_number(_get(data, "rest_seconds_actual")),
        metric_profile=_optional_str(_get(data, "metric_profile")),
        extras=dict(extras) if isinstance(extras, dict) else {},
    )


def logged_set_to_dict(s: LoggedSet) -> dict[str, Any]:
    """Convert LoggedSet to a JSON-compatible dict (absent fields omitted)."""
    data = _drop_none({
        "reps": s.reps,
        "weight": s.weight,
        "weight_unit": s.weight_unit,
        "implement_count": s.implement_count,
        "load_type": s.load_type,
        "rpe": s.rpe,
        "rir": s.rir,
        "performed_at": _format_timestamp(s.performed_at),
        "duration_seconds": s.duration_seconds,
        "distance": s.distance,
        "distance_unit": s.distance_unit,
        "rest_seconds_actual": s.rest_seconds_actual,
        "metric_profile": s.metric_profile,
    })
    data["completed"] = s.completed
    if s.extras:
        data["extras"] = dict(s.extras)
    return data


# ---------------------------------------------------------------------------
# SessionExercise
# ---------------------------------------------------------------------------


def dict_to_session_exercise(data: dict[str, Any]) -> SessionExercise:
    """
    Convert a stored exercise row to SessionExercise.

    Raises:
        ValidationError: If the name is missing or sets is not a list
    """
    name = _optional_str(_get(data, "name") or _get(data, "exercise_name"))
    if name is None:
        raise ValidationError("Session exercise is missing a name")

    raw_sets = _get(data, "sets", [])
    if raw_sets is None:
        raw_sets = []
    if not isinstance(raw_sets, list):
        raise ValidationError(f"Sets of {name!r} must be a list, got {type(raw_sets).__name__}")

    secondary = _get(data, "secondary_muscles") or []
    eligible = _get(data, "e1rm_eligible")
    return SessionExercise(
        name=name,
        sets=[dict_to_logged_set(s) for s in raw_sets],
        primary_muscle=_optional_str(_get(data, "primary_muscle")),
        secondary_muscles=[str(m) for m in secondary] if isinstance(secondary, list) else [],
        metric_profile=_optional_str(_get(data, "metric_profile")),
        order_index=coerce_int(_get(data, "order_index")) or 0,
        e1rm_eligible=_coerce_bool(eligible) if eligible is not None else None,
    )


def session_exercise_to_dict(ex: SessionExercise) -> dict[str, Any]:
    """Convert SessionExercise to a JSON-compatible dict."""
    data = _drop_none({
        "name": ex.name,
        "primary_muscle": ex.primary_muscle,
        "metric_profile": ex.metric_profile,
        "e1rm_eligible": ex.e1rm_eligible,
    })
    if ex.secondary_muscles:
        data["secondary_muscles"] = list(ex.secondary_muscles)
    data["order_index"] = ex.order_index
    data["sets"] = [logged_set_to_dict(s) for s in ex.sets]
    return data


# ---------------------------------------------------------------------------
# Preferences and snapshot
# ---------------------------------------------------------------------------


def preferences_to_dict(prefs: Preferences) -> dict[str, Any]:
    """Convert Preferences to a JSON-compatible dict."""
    return {"units": prefs.units, "rpe_baselines": dict(prefs.rpe_baselines)}


def dict_to_preferences(data: dict[str, Any] | None) -> Preferences:
    """
    Convert a stored preferences dict; missing values use the defaults.

    Raises:
        ValidationError: If units is not lb or kg
    """
    if not data:
        return Preferences()
    baselines = dict(Preferences().rpe_baselines)
    raw = _get(data, "rpe_baselines") or {}
    if isinstance(raw, dict):
        for level in INTENSITIES:
            value = coerce_number(raw.get(level))
            if value is not None:
                baselines[level] = value
    try:
        return Preferences(units=_get(data, "units") or "lb", rpe_baselines=baselines)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def snapshot_metrics_to_dict(metrics: SnapshotMetrics | SessionMetrics) -> dict[str, Any]:
    """Convert a metric bundle to a JSON-compatible dict."""
    return asdict(metrics)


def dict_to_snapshot(data: dict[str, Any]) -> CompletionSnapshot:
    """
    Rebuild a stored CompletionSnapshot.

    Values are taken verbatim; nothing is recomputed.

    Raises:
        ValidationError: If formula_version or metrics are missing
    """
    version = _optional_str(_get(data, "formula_version"))
    raw_metrics = _get(data, "metrics")
    if version is None or not isinstance(raw_metrics, dict):
        raise ValidationError("Completion snapshot needs formula_version and metrics")

    def num(key: str) -> float | None:
        return coerce_number(_get(raw_metrics, key))

    duration = coerce_int(_get(raw_metrics, "duration_minutes"))
    metrics = SnapshotMetrics(
        tonnage=num("tonnage") or 0.0,
        total_sets=coerce_int(_get(raw_metrics, "total_sets")) or 0,
        total_reps=coerce_int(_get(raw_metrics, "total_reps")) or 0,
        workload=num("workload") or 0.0,
        hard_sets=coerce_int(_get(raw_metrics, "hard_sets")) or 0,
        avg_effort=num("avg_effort"),
        avg_intensity=num("avg_intensity"),
        avg_rest_seconds=num("avg_rest_seconds"),
        density=num("density"),
        srpe_load=num("srpe_load") if "srpe_load" in raw_metrics else num("s_rpe_load"),
        best_e1rm=num("best_e1rm"),
        best_e1rm_exercise=_optional_str(_get(raw_metrics, "best_e1rm_exercise")),
        duration_minutes=duration,
    )
    return CompletionSnapshot(
        body_weight_lb=coerce_number(_get(data, "body_weight_lb")),
        preferences=dict_to_preferences(_get(data, "preferences")),
        formula_version=version,
        metrics=metrics,
        captured_at=str(_get(data, "captured_at") or ""),
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


def session_to_dict(session: Session) -> dict[str, Any]:
    """Convert Session to a JSON-compatible dict."""
    data: dict[str, Any] = {
        "id": session.id,
        "status": session.status,
    }
    data.update(_drop_none({
        "user_id": session.user_id,
        "started_at": _format_timestamp(session.started_at),
        "ended_at": _format_timestamp(session.ended_at),
        "goal": session.goal,
        "intensity": session.intensity,
        "body_weight_lb": session.body_weight_lb,
    }))
    if session.focus_areas:
        data["focus_areas"] = list(session.focus_areas)
    data["exercises"] = [session_exercise_to_dict(ex) for ex in session.exercises]
    if session.completion_snapshot is not None:
        data["completion_snapshot"] = snapshot_to_dict(session.completion_snapshot)
    return data


def dict_to_session(data: dict[str, Any]) -> Session:
    """
    Convert a stored session row to Session.

    Raises:
        ValidationError: If the id is missing, status/intensity is unknown,
            a timestamp is malformed or exercises is not a list
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Session record must be an object, got {type(data).__name__}")

    session_id = _optional_str(_get(data, "id"))
    if session_id is None:
        raise ValidationError("Session record is missing an id")

    status = _get(data, "status") or "in_progress"
    if status not in SESSION_STATUSES:
        raise ValidationError(f"Invalid session status: {status!r}. Must be one of {SESSION_STATUSES}")

    intensity = _optional_str(_get(data, "intensity"))
    if intensity is not None and intensity not in INTENSITIES:
        raise ValidationError(f"Invalid intensity: {intensity!r}. Must be one of {INTENSITIES}")

    raw_exercises = _get(data, "exercises") or []
    if not isinstance(raw_exercises, list):
        raise ValidationError("Session exercises must be a list")

    focus = _get(data, "focus_areas") or []
    raw_snapshot = _get(data, "completion_snapshot")

    return Session(
        id=session_id,
        user_id=_optional_str(_get(data, "user_id")),
        started_at=parse_timestamp(_get(data, "started_at"), "started_at"),
        ended_at=parse_timestamp(_get(data, "ended_at"), "ended_at"),
        status=status,
        focus_areas=[str(f) for f in focus] if isinstance(focus, list) else [str(focus)],
        goal=_optional_str(_get(data, "goal")),
        intensity=intensity,
        body_weight_lb=coerce_number(_get(data, "body_weight_lb")),
        exercises=[dict_to_session_exercise(ex) for ex in raw_exercises],
        completion_snapshot=dict_to_snapshot(raw_snapshot) if isinstance(raw_snapshot, dict) else None,
    )


def session_to_json_line(session: Session) -> str:
    """
    Serialize a session to a single JSON line.

    Returns:
        JSON string (single line, no trailing newline)
    """
    return json.dumps(session_to_dict(session), separators=(",", ":"))


def json_line_to_session(line: str) -> Session:
    """
    Deserialize a JSON line to a Session.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e

    return dict_to_session(data)


# ---------------------------------------------------------------------------
# Equipment inventory
# ---------------------------------------------------------------------------


def _number_list(value: Any) -> list[float]:
    if not isinstance(value, list):
        return []
    numbers = (coerce_number(v) for v in value)
    return sorted(n for n in numbers if n is not None and n > 0)


def inventory_to_dict(inv: EquipmentInventory) -> dict[str, Any]:
    """Convert EquipmentInventory to a JSON-compatible dict."""
    return {
        "bodyweight": inv.bodyweight,
        "bench": inv.bench,
        "dumbbells": list(inv.dumbbells),
        "kettlebells": list(inv.kettlebells),
        "bands": list(inv.bands),
        "barbell": {"available": inv.barbell_available, "plates": list(inv.barbell_plates)},
        "machines": dict(inv.machines),
    }


def dict_to_inventory(data: dict[str, Any] | None) -> EquipmentInventory:
    """Convert a stored inventory; unusable loads are dropped, lists sorted."""
    if not data:
        return EquipmentInventory()
    barbell = _get(data, "barbell") or {}
    if not isinstance(barbell, dict):
        barbell = {}
    machines = _get(data, "machines") or {}
    bands = _get(data, "bands") or []
    return EquipmentInventory(
        bodyweight=_coerce_bool(_get(data, "bodyweight", True)),
        bench=_coerce_bool(_get(data, "bench", False) or _get(data, "bench_press", False)),
        dumbbells=_number_list(_get(data, "dumbbells")),
        kettlebells=_number_list(_get(data, "kettlebells")),
        bands=[str(b) for b in bands if b in ("light", "medium", "heavy")],
        barbell_available=_coerce_bool(barbell.get("available", False)),
        barbell_plates=_number_list(barbell.get("plates")),
        machines={str(k): _coerce_bool(v) for k, v in machines.items()} if isinstance(machines, dict) else {},
    )


# ---------------------------------------------------------------------------
# Derived outputs
# ---------------------------------------------------------------------------


def training_load_to_dict(summary: TrainingLoadSummary) -> dict[str, Any]:
    """Convert TrainingLoadSummary to a JSON-compatible dict."""
    data = asdict(summary)
    data["weekly_trend"] = [{"week": w.week, "load": w.load} for w in summary.weekly_trend]
    return data


def substitution_to_dict(result: SubstitutionResult) -> dict[str, Any]:
    """Convert a SubstitutionResult to a JSON-compatible dict (exercise names only)."""
    return {
        "suggestions": [
            {"exercise": s.exercise.name, "score": round(s.score, 2)} for s in result.suggestions
        ],
        "used_fallback": result.used_fallback,
    }
