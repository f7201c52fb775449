"""
JSONL-based storage for workout sessions.

Handles reading, writing, and managing the session file and the user
profile next to it.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.models import EquipmentInventory, Preferences, Session
from .serializers import (
    ValidationError,
    dict_to_inventory,
    dict_to_preferences,
    dict_to_session,
    inventory_to_dict,
    preferences_to_dict,
    session_to_json_line,
)


class SessionStore:
    """
    Manages sessions stored in JSONL format.

    The sessions file contains one JSON object per line, one per session.
    A separate profile.json holds preferences, equipment inventory and
    current body weight.
    """

    def __init__(self, sessions_path: str | Path):
        """
        Initialize the session store.

        Args:
            sessions_path: Path to the JSONL sessions file
        """
        self.sessions_path = Path(sessions_path)
        self.profile_path = self.sessions_path.parent / "profile.json"

    def exists(self) -> bool:
        """Check if the sessions file exists."""
        return self.sessions_path.exists()

    def init(self) -> None:
        """
        Initialize an empty sessions file if it doesn't exist.

        Creates parent directories if needed.
        """
        self.sessions_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.sessions_path.exists():
            self.sessions_path.touch()

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def _read_profile(self) -> dict[str, Any]:
        if not self.profile_path.exists():
            raise FileNotFoundError(
                f"Profile not found: {self.profile_path}. Run 'init' first."
            )
        try:
            with open(self.profile_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid profile file {self.profile_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"Invalid profile file {self.profile_path}: not an object")
        return data

    def _write_profile(self, data: dict[str, Any]) -> None:
        self.profile_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.profile_path, "w") as f:
            json.dump(data, f, indent=2)

    def save_profile(
        self,
        preferences: Preferences,
        inventory: EquipmentInventory,
        body_weight_lb: float | None = None,
    ) -> None:
        """
        Save preferences, inventory and body weight to profile.json.

        Args:
            preferences: Unit and RPE-baseline preferences
            inventory: Equipment inventory
            body_weight_lb: Current body weight in lb
        """
        data = preferences_to_dict(preferences)
        data["equipment"] = inventory_to_dict(inventory)
        data["body_weight_lb"] = body_weight_lb
        self._write_profile(data)

    def has_profile(self) -> bool:
        """True if profile.json exists."""
        return self.profile_path.exists()

    def load_preferences(self) -> Preferences:
        """
        Load preferences from profile.json.

        Raises:
            FileNotFoundError: If the profile does not exist
            ValidationError: If the profile is invalid
        """
        return dict_to_preferences(self._read_profile())

    def load_inventory(self) -> EquipmentInventory:
        """Load the equipment inventory from profile.json."""
        return dict_to_inventory(self._read_profile().get("equipment"))

    def load_body_weight(self) -> float | None:
        """
        Load current body weight from profile.json.

        Returns:
            Body weight in lb or None if not set
        """
        value = self._read_profile().get("body_weight_lb")
        try:
            return float(value) or None if value is not None else None
        except (TypeError, ValueError):
            return None

    def update_body_weight(self, body_weight_lb: float) -> None:
        """Update current body weight in profile.json."""
        data = self._read_profile()
        data["body_weight_lb"] = body_weight_lb
        self._write_profile(data)

    def update_inventory(self, inventory: EquipmentInventory) -> None:
        """Replace the equipment inventory in profile.json."""
        data = self._read_profile()
        data["equipment"] = inventory_to_dict(inventory)
        self._write_profile(data)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def load_sessions(self) -> list[Session]:
        """
        Load all sessions from the sessions file.

        Returns:
            Sessions sorted by start time (undated sessions first)

        Raises:
            FileNotFoundError: If the sessions file doesn't exist
            ValidationError: If a line cannot be parsed
        """
        if not self.sessions_path.exists():
            raise FileNotFoundError(
                f"Sessions file not found: {self.sessions_path}. Run 'init' first."
            )

        sessions: list[Session] = []

        with open(self.sessions_path, "r") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    sessions.append(dict_to_session(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.sessions_path}: {e}"
                    ) from e

        sessions.sort(key=lambda s: (s.started_at is not None, s.started_at or datetime.min))
        return sessions

    def get_session(self, session_id: str) -> Session | None:
        """Return the session with the given id, or None."""
        for session in self.load_sessions():
            if session.id == session_id:
                return session
        return None

    def save_session(self, session: Session) -> None:
        """
        Insert or replace a session (matched by id).

        Args:
            session: Session to store
        """
        sessions = self.load_sessions()
        for i, existing in enumerate(sessions):
            if existing.id == session.id:
                sessions[i] = session
                break
        else:
            sessions.append(session)
        self._write_sessions(sessions)

    def delete_session(self, session_id: str) -> None:
        """
        Delete a session by id.

        Raises:
            KeyError: If no session has that id
        """
        sessions = self.load_sessions()
        kept = [s for s in sessions if s.id != session_id]
        if len(kept) == len(sessions):
            raise KeyError(f"No session with id {session_id!r}")
        self._write_sessions(kept)

    def _write_sessions(self, sessions: list[Session]) -> None:
        """Write all sessions to the sessions file."""
        with open(self.sessions_path, "w") as f:
            for session in sessions:
                f.write(session_to_json_line(session) + "\n")


def get_default_sessions_path() -> Path:
    """Default sessions file: ~/.liftmetrics/sessions.jsonl."""
    return Path.home() / ".liftmetrics" / "sessions.jsonl"

