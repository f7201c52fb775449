"""Profile management commands: init, update-weight, update-equipment."""

import json
from typing import Annotated, Optional

import typer

from ...core.equipment import PRESET_NAMES, preset_inventory
from ...core.models import Preferences
from ...core.units import to_pounds
from ...io.serializers import ValidationError, inventory_to_dict
from .. import views
from ..app import HistoryPathOption, JsonOption, app, get_store


@app.command()
def init(
    history_path: HistoryPathOption = None,
    units: Annotated[
        str,
        typer.Option("--units", "-u", help="Display weight unit: lb | kg"),
    ] = "lb",
    body_weight: Annotated[
        Optional[float],
        typer.Option("--body-weight", "-w", help="Current body weight in display units"),
    ] = None,
    preset: Annotated[
        str,
        typer.Option("--preset", help=f"Equipment preset: {' | '.join(PRESET_NAMES)}"),
    ] = "home_minimal",
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Force overwrite without prompting"),
    ] = False,
) -> None:
    """
    Initialize user profile and sessions file.

    Existing sessions are kept; only profile.json is (re)written.
    """
    store = get_store(history_path)

    try:
        preferences = Preferences(units=units)
        inventory = preset_inventory(preset)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if body_weight is not None and body_weight <= 0:
        views.print_error("Body weight must be positive")
        raise typer.Exit(1)

    if store.has_profile() and not force:
        if not views.confirm_action(f"Profile already exists at {store.profile_path}. Overwrite?"):
            views.print_info("Cancelled.")
            raise typer.Exit(0)

    store.init()
    weight_lb = to_pounds(body_weight, units) if body_weight is not None else None
    store.save_profile(preferences, inventory, weight_lb)

    views.print_success(f"Initialized profile at {store.profile_path}")
    views.print_info(f"Sessions file: {store.sessions_path}")


@app.command("update-weight")
def update_weight(
    weight: Annotated[float, typer.Argument(help="Body weight in display units")],
    history_path: HistoryPathOption = None,
) -> None:
    """Update current body weight."""
    store = get_store(history_path)

    if weight <= 0:
        views.print_error("Body weight must be positive")
        raise typer.Exit(1)

    try:
        prefs = store.load_preferences()
        store.update_body_weight(to_pounds(weight, prefs.units))
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Updated body weight to {weight:g} {prefs.units}")


@app.command("update-equipment")
def update_equipment(
    preset: Annotated[
        str,
        typer.Option("--preset", help=f"Equipment preset: {' | '.join(PRESET_NAMES)}"),
    ],
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """Replace the equipment inventory with a preset."""
    store = get_store(history_path)

    try:
        inventory = preset_inventory(preset)
        store.update_inventory(inventory)
    except (ValueError, FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(inventory_to_dict(inventory), indent=2))
        return
    views.print_success(f"Equipment set to preset '{preset}'")
