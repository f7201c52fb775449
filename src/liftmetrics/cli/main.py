"""
CLI entry point using Typer.

Provides commands for session logging and training-load analysis:
- init: Initialize user profile and sessions file
- log-set: Log a completed set
- finish: Complete a session and freeze its metrics
- show-session / show-history: Inspect sessions
- load: Acute/chronic training load
- swap: Suggest exercise substitutes
"""

from .app import app
from .commands import analysis, equipment, profile, sessions  # noqa: F401  (registers commands)

if __name__ == "__main__":
    app()
