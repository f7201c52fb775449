"""Analysis commands: load, volume, readiness."""

import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.ascii_plot import create_muscle_volume_chart
from ...core.engine.config_loader import load_engine_config
from ...core.session_metrics import weekly_volume_by_muscle
from ...core.training_load import (
    ReadinessSurvey,
    load_based_readiness,
    readiness_intensity,
    readiness_level,
    readiness_score,
    summarize_training_load,
)
from ...io.serializers import ValidationError, parse_timestamp, training_load_to_dict
from .. import views
from ..app import HistoryPathOption, JsonOption, app, get_store


@app.command()
def load(
    history_path: HistoryPathOption = None,
    now: Annotated[
        Optional[str],
        typer.Option("--now", help="Reference time (ISO-8601, default: now)"),
    ] = None,
    chart: Annotated[
        bool,
        typer.Option("--chart", "-c", help="Also draw the weekly load trend"),
    ] = False,
    json_out: JsonOption = False,
) -> None:
    """
    Show acute/chronic training load and the load ratio.

    Acute covers the last 7 days, chronic the last 28.  Until four weeks of
    history exist the status is advisory only.
    """
    store = get_store(history_path)
    config = load_engine_config()

    try:
        reference = parse_timestamp(now, "--now") if now else datetime.now()
        sessions = store.load_sessions()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    summary = summarize_training_load(sessions, reference, config)
    readiness = load_based_readiness(summary)

    if json_out:
        data = training_load_to_dict(summary)
        data["readiness"] = readiness
        print(json.dumps(data, indent=2))
        return

    views.console.print(views.format_training_load(summary, readiness))
    if chart:
        views.console.print()
        views.print_weekly_load_chart(summary)


@app.command()
def volume(
    history_path: HistoryPathOption = None,
    weeks: Annotated[
        int,
        typer.Option("--weeks", "-n", help="Number of most recent weeks to show"),
    ] = 4,
    json_out: JsonOption = False,
) -> None:
    """Show weekly tonnage per primary muscle."""
    store = get_store(history_path)

    try:
        sessions = store.load_sessions()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    by_week = weekly_volume_by_muscle(sessions)
    recent = dict(list(by_week.items())[-weeks:]) if weeks > 0 else {}

    if json_out:
        print(json.dumps(
            {week: {m: round(v, 1) for m, v in muscles.items()} for week, muscles in recent.items()},
            indent=2,
        ))
        return

    if not recent:
        views.console.print("[yellow]No completed sets recorded yet.[/yellow]")
        return

    for week, muscles in recent.items():
        views.console.print(create_muscle_volume_chart(muscles, title=f"Tonnage {week}"))
        views.console.print()


@app.command()
def readiness(
    sleep: Annotated[float, typer.Option("--sleep", help="Sleep quality 1-5")],
    soreness: Annotated[float, typer.Option("--soreness", help="Muscle soreness 1-5")],
    stress: Annotated[float, typer.Option("--stress", help="Stress level 1-5")],
    motivation: Annotated[float, typer.Option("--motivation", help="Motivation 1-5")],
    json_out: JsonOption = False,
) -> None:
    """Score a morning readiness check-in and suggest a session intensity."""
    score = readiness_score(ReadinessSurvey(sleep, soreness, stress, motivation))
    level = readiness_level(score)
    intensity = readiness_intensity(level)

    if json_out:
        print(json.dumps({"score": score, "level": level, "intensity": intensity}, indent=2))
        return

    views.console.print(f"Readiness score: [bold]{score}[/bold] ({level})")
    views.console.print(f"Suggested intensity: [cyan]{intensity}[/cyan]")
