"""Shared Typer app object, shared option types, and store utility."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..io.session_store import SessionStore, get_default_sessions_path

# Shared --history-path option type used across all commands
HistoryPathOption = Annotated[
    Optional[Path],
    typer.Option("--history-path", "-p", help="Path to sessions JSONL file"),
]

# Shared --json option type
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="liftmetrics",
    help="Training load and session metrics for logged workouts.",
    no_args_is_help=True,
)


def get_store(history_path: Path | None) -> SessionStore:
    """Get session store from path or the default location."""
    if history_path is None:
        history_path = get_default_sessions_path()
    return SessionStore(history_path)
