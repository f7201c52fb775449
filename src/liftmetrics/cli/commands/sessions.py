"""Session commands: log-set, finish, show-session, show-history, delete-session."""

import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.engine.config_loader import load_engine_config
from ...core.exercises.registry import catalog, find_exercise
from ...core.models import INTENSITIES, LoggedSet, Session, SessionExercise
from ...core.snapshot import complete_session, resolve_session_metrics, session_workload
from ...io.serializers import ValidationError, parse_timestamp, snapshot_metrics_to_dict
from ...io.session_store import SessionStore
from .. import views
from ..app import HistoryPathOption, JsonOption, app, get_store

SessionIdOption = Annotated[
    Optional[str],
    typer.Option("--session-id", "-s", help="Session ID (default: latest in-progress session)"),
]


def _parse_at(value: str | None, name: str) -> datetime:
    """Parse an --at style option, defaulting to now."""
    if value is None:
        return datetime.now().replace(microsecond=0)
    parsed = parse_timestamp(value, name)
    assert parsed is not None
    return parsed


def _find_session(store: SessionStore, session_id: str | None, in_progress: bool = False) -> Session | None:
    """Session by id, else the latest (in-progress) one."""
    sessions = store.load_sessions()
    if session_id is not None:
        return next((s for s in sessions if s.id == session_id), None)
    candidates = [s for s in sessions if not in_progress or not s.is_completed]
    return candidates[-1] if candidates else None


def _require_store(store: SessionStore) -> None:
    if not store.exists():
        views.print_error(f"Sessions file not found: {store.sessions_path}")
        views.print_info("Run 'init' first to create profile and sessions file.")
        raise typer.Exit(1)


@app.command("log-set")
def log_set(
    exercise: Annotated[str, typer.Argument(help="Exercise ID or name, e.g. back_squat")],
    reps: Annotated[Optional[int], typer.Option("--reps", "-r", help="Reps performed")] = None,
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", help="Weight (per implement with --per-implement)"),
    ] = None,
    unit: Annotated[
        Optional[str],
        typer.Option("--unit", "-u", help="Weight unit: lb | kg (default: profile units)"),
    ] = None,
    rpe: Annotated[Optional[float], typer.Option("--rpe", help="RPE 0-10")] = None,
    rir: Annotated[Optional[float], typer.Option("--rir", help="Reps in reserve 0-6")] = None,
    duration: Annotated[
        Optional[float],
        typer.Option("--duration", "-d", help="Duration in seconds (timed, cardio, mobility)"),
    ] = None,
    rest: Annotated[Optional[float], typer.Option("--rest", help="Rest before this set in seconds")] = None,
    per_implement: Annotated[
        Optional[int],
        typer.Option("--per-implement", help="Weight is per implement; number of implements (1 or 2)"),
    ] = None,
    profile: Annotated[
        Optional[str],
        typer.Option("--profile", help="Metric profile override (strength, timed_strength, cardio, mobility)"),
    ] = None,
    at: Annotated[
        Optional[str],
        typer.Option("--at", help="When the set was performed (ISO-8601, default: now)"),
    ] = None,
    intensity: Annotated[
        Optional[str],
        typer.Option("--intensity", "-i", help="Intensity for a new session: low | moderate | high"),
    ] = None,
    goal: Annotated[Optional[str], typer.Option("--goal", help="Goal for a new session")] = None,
    session_id: SessionIdOption = None,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log one completed set into an in-progress session.

    A new session is started when there is no in-progress session (or the
    given --session-id does not exist yet).

      liftmetrics log-set back_squat --reps 5 --weight 225 --rpe 8
    """
    store = get_store(history_path)
    _require_store(store)

    if rpe is not None and not 0 <= rpe <= 10:
        views.print_error("RPE must be between 0 and 10")
        raise typer.Exit(1)
    if rir is not None and not 0 <= rir <= 6:
        views.print_error("RIR must be between 0 and 6")
        raise typer.Exit(1)
    if per_implement is not None and per_implement not in (1, 2):
        views.print_error("--per-implement must be 1 or 2")
        raise typer.Exit(1)
    if intensity is not None and intensity not in INTENSITIES:
        views.print_error(f"Intensity must be one of {', '.join(INTENSITIES)}")
        raise typer.Exit(1)

    try:
        prefs = store.load_preferences()
        performed_at = _parse_at(at, "--at")
        session = _find_session(store, session_id, in_progress=True)
        body_weight = store.load_body_weight()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if session is None:
        new_id = session_id or performed_at.strftime("%Y%m%d-%H%M%S")
        session = Session(
            id=new_id,
            started_at=performed_at,
            intensity=intensity,
            goal=goal,
            body_weight_lb=body_weight,
        )
        if not json_out:
            views.print_info(f"Started session {new_id}")
    elif session.is_completed:
        views.print_error(f"Session {session.id} is already completed")
        raise typer.Exit(1)

    entry = find_exercise(exercise)
    name = entry.name if entry is not None else exercise.strip()
    target = next((ex for ex in session.exercises if ex.name.lower() == name.lower()), None)
    if target is None:
        target = SessionExercise(
            name=name,
            primary_muscle=entry.primary_muscle if entry else None,
            secondary_muscles=list(entry.secondary_muscles) if entry else [],
            metric_profile=profile or (entry.metric_profile if entry else None),
            order_index=len(session.exercises),
            e1rm_eligible=entry.e1rm_eligible if entry else None,
        )
        session.exercises.append(target)

    target.sets.append(
        LoggedSet(
            reps=reps,
            weight=weight,
            weight_unit=unit or prefs.units,
            implement_count=per_implement,
            load_type="per_implement" if per_implement else "total",
            rpe=rpe,
            rir=rir,
            completed=True,
            performed_at=performed_at,
            duration_seconds=duration,
            rest_seconds_actual=rest,
            metric_profile=profile,
        )
    )
    store.save_session(session)

    if json_out:
        print(json.dumps({"session_id": session.id, "exercise": name, "set_number": len(target.sets)}))
        return
    views.print_success(f"Logged set {len(target.sets)} of {name} in session {session.id}")


@app.command()
def finish(
    session_id: SessionIdOption = None,
    at: Annotated[
        Optional[str],
        typer.Option("--at", help="Completion time (ISO-8601, default: now)"),
    ] = None,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Complete a session and freeze its metrics snapshot.

    Sets missing reps/weight (or duration, for timed work) are purged.
    """
    store = get_store(history_path)
    _require_store(store)
    config = load_engine_config()

    try:
        prefs = store.load_preferences()
        body_weight = store.load_body_weight()
        ended_at = _parse_at(at, "--at")
        session = _find_session(store, session_id, in_progress=True)
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if session is None:
        views.print_error("No in-progress session to finish")
        raise typer.Exit(1)

    try:
        completed = complete_session(
            session,
            ended_at,
            prefs,
            config.formula_version,
            body_weight_lb=body_weight,
            catalog=catalog(),
            config=config,
        )
    except (ValueError, TypeError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store.save_session(completed)
    snapshot = completed.completion_snapshot
    assert snapshot is not None

    if json_out:
        print(json.dumps({
            "session_id": completed.id,
            "formula_version": snapshot.formula_version,
            "captured_at": snapshot.captured_at,
            "metrics": snapshot_metrics_to_dict(snapshot.metrics),
        }, indent=2))
        return

    views.console.print(views.format_session_metrics_table(completed, snapshot.metrics, prefs.units))
    views.print_success(f"Session {completed.id} completed")


@app.command("show-session")
def show_session(
    session_id: SessionIdOption = None,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show metrics for a session (its snapshot if completed, else live)."""
    store = get_store(history_path)
    _require_store(store)
    config = load_engine_config()

    try:
        prefs = store.load_preferences()
        session = _find_session(store, session_id)
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if session is None:
        views.print_error("Session not found" if session_id else "No sessions recorded yet")
        raise typer.Exit(1)

    metrics = resolve_session_metrics(session, prefs, catalog(), config)

    if json_out:
        print(json.dumps({
            "session_id": session.id,
            "status": session.status,
            "source": "snapshot" if session.completion_snapshot is not None else "live",
            "metrics": snapshot_metrics_to_dict(metrics),
        }, indent=2))
        return

    views.console.print(views.format_session_metrics_table(session, metrics, prefs.units))


@app.command("show-history")
def show_history(
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """List all sessions with their workload."""
    store = get_store(history_path)
    _require_store(store)
    config = load_engine_config()

    try:
        sessions = store.load_sessions()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    workloads = [session_workload(s, config) for s in sessions]

    if json_out:
        print(json.dumps([
            {
                "id": s.id,
                "started_at": s.started_at.isoformat() if s.started_at else None,
                "status": s.status,
                "workload": round(w, 2),
            }
            for s, w in zip(sessions, workloads)
        ], indent=2))
        return

    if not sessions:
        views.console.print("[yellow]No sessions recorded yet.[/yellow]")
        return
    views.console.print(views.format_sessions_table(sessions, workloads))


@app.command("delete-session")
def delete_session(
    session_id: Annotated[str, typer.Argument(help="Session ID to delete")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Delete without prompting"),
    ] = False,
    history_path: HistoryPathOption = None,
) -> None:
    """Delete a session by ID."""
    store = get_store(history_path)
    _require_store(store)

    if not force and not views.confirm_action(f"Delete session {session_id}?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        store.delete_session(session_id)
    except (KeyError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Deleted session {session_id}")
