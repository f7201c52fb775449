"""Equipment commands: equipment, weights, swap."""

import json
from typing import Annotated, Optional

import typer

from ...core.equipment import build_weight_options, has_any_equipment
from ...core.exercises.registry import catalog, find_exercise, get_exercise
from ...core.substitution import suggest_substitutes
from ...io.serializers import ValidationError, inventory_to_dict, substitution_to_dict
from .. import views
from ..app import HistoryPathOption, JsonOption, app, get_store


@app.command()
def equipment(
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show the stored inventory and which catalog exercises it supports."""
    store = get_store(history_path)

    try:
        inventory = store.load_inventory()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(inventory_to_dict(inventory), indent=2))
        return

    views.console.print(views.format_equipment_table(catalog(), inventory))


@app.command()
def weights(
    exercise: Annotated[str, typer.Argument(help="Exercise ID or name")],
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """List the loads selectable for an exercise with the stored equipment."""
    store = get_store(history_path)

    try:
        entry = get_exercise(exercise)
        inventory = store.load_inventory()
        body_weight = store.load_body_weight()
    except (ValueError, FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    options = build_weight_options(inventory, entry.equipment, body_weight)

    if json_out:
        print(json.dumps([{"value": o.value, "label": o.label} for o in options], indent=2))
        return

    if not options:
        views.print_warning(f"No selectable loads for {entry.name} with the current equipment")
        return
    views.console.print(f"[bold]{entry.name}[/bold]")
    for option in options:
        views.console.print(f"  {option.label}")


@app.command()
def swap(
    exercise: Annotated[str, typer.Argument(help="Exercise ID or name to replace")],
    session_id: Annotated[
        Optional[str],
        typer.Option("--session-id", "-s", help="Session whose other exercises are excluded"),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum suggestions"),
    ] = 5,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Suggest substitutes for an exercise.

    Candidates must share a muscle with it and, where possible, be doable
    with the stored equipment.
    """
    store = get_store(history_path)

    try:
        current = get_exercise(exercise)
        inventory = store.load_inventory()
        session = store.get_session(session_id) if session_id else None
    except (ValueError, FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if session_id and session is None:
        views.print_error(f"Session not found: {session_id}")
        raise typer.Exit(1)

    in_session = []
    if session is not None:
        for ex in session.exercises:
            found = find_exercise(ex.name)
            if found is not None and found.name != current.name:
                in_session.append(found)

    result = suggest_substitutes(current, in_session, inventory, catalog(), limit=limit)

    if json_out:
        data = substitution_to_dict(result)
        data["exercise"] = current.name
        print(json.dumps(data, indent=2))
        return

    if not has_any_equipment(inventory):
        views.print_warning("No equipment recorded; suggestions ignore availability")
    if not result.suggestions:
        views.print_warning(f"No substitutes found for {current.name}")
        return
    views.console.print(views.format_suggestions_table(current, result))
