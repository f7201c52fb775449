"""
YAML → Exercise loader.

Loads catalog entries from individual YAML files in the bundled
``src/liftmetrics/exercises/`` directory.  Each file (e.g. back_squat.yaml)
holds one flat exercise entry; the file stem is its catalog id.

User overrides: place matching files in ``~/.liftmetrics/exercises/``.
A user file is deep-merged over the bundled entry, so only changed keys
need to be listed.  A user file with no bundled counterpart adds a new
exercise.

Usage (internal, called by registry.py):
    from .loader import load_exercises_from_yaml
    exercises = load_exercises_from_yaml()   # dict or None on failure
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path

import yaml

from .base import KIND_ALIASES, EquipmentOption, Exercise

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset({"name"})


def _str_tuple(value) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _kind(raw) -> str:
    kind = str(raw).strip().lower()
    return KIND_ALIASES.get(kind, kind)


def option_from_dict(d: dict | str) -> EquipmentOption:
    """Convert a raw option ("dumbbell" or {kind, machine_type, requires})."""
    if isinstance(d, str):
        return EquipmentOption(kind=_kind(d))
    machine = d.get("machine_type")
    return EquipmentOption(
        kind=_kind(d["kind"]),
        machine_type=str(machine) if machine else None,
        requires=tuple(_kind(r) for r in d.get("requires") or ()),
    )


def exercise_from_dict(d: dict) -> Exercise:
    """Convert a raw dict (from YAML) to an Exercise.

    Raises ValueError if a required field is absent or a value is invalid.
    """
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"Exercise missing fields: {sorted(missing)}")

    try:
        equipment = tuple(option_from_dict(o) for o in d.get("equipment") or ())
    except KeyError as exc:
        raise ValueError(f"equipment option missing {exc}") from exc

    duration = d.get("duration_minutes")
    reps = d.get("reps")

    return Exercise(
        name=str(d["name"]),
        category=d.get("category"),
        focus=d.get("focus"),
        movement_pattern=d.get("movement_pattern"),
        metric_profile=d.get("metric_profile"),
        primary_muscle=d.get("primary_muscle"),
        secondary_muscles=_str_tuple(d.get("secondary_muscles")),
        primary_body_parts=_str_tuple(d.get("primary_body_parts")),
        secondary_body_parts=_str_tuple(d.get("secondary_body_parts")),
        equipment=equipment,
        equipment_mode=str(d.get("equipment_mode", "or")),
        additional_equipment_mode=str(d.get("additional_equipment_mode", "required")),
        or_group=d.get("or_group"),
        difficulty=d.get("difficulty"),
        goal=d.get("goal"),
        reps=reps if isinstance(reps, (int, str)) else None,
        duration_minutes=float(duration) if duration is not None else None,
        e1rm_eligible=bool(d.get("e1rm_eligible", False)),
    )


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; warn and return {} on a parse or read error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"liftmetrics: cannot read {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _get_bundled_exercises_dir() -> Path | None:
    """Return path to the bundled exercises/ data directory, or None if not found."""
    # loader.py lives at src/liftmetrics/core/exercises/loader.py
    candidate = Path(__file__).parent.parent.parent / "exercises"
    return candidate if candidate.is_dir() else None


def _get_user_exercises_dir() -> Path | None:
    """Return ~/.liftmetrics/exercises/ if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".liftmetrics" / "exercises"
    return p if p.is_dir() else None


def load_exercises_from_yaml(
    bundled_dir: Path | None = None,
    user_dir: Path | None = None,
) -> dict[str, Exercise] | None:
    """Return {exercise_id: Exercise} loaded from per-exercise YAML files.

    Bundled entries come first (sorted by file name), then user-only
    entries; that order is the catalog order used for tie-breaking.

    Args:
        bundled_dir: Override for the bundled directory (tests)
        user_dir: Override for the user directory (tests)

    Returns None when no directory or no valid entry was found.
    """
    bundled_dir = bundled_dir if bundled_dir is not None else _get_bundled_exercises_dir()
    user_dir = user_dir if user_dir is not None else _get_user_exercises_dir()
    if bundled_dir is None and user_dir is None:
        return None

    raw_entries: dict[str, dict] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            raw = _load_yaml_file(p)
            if raw:
                raw_entries[p.stem] = raw
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            user_raw = _load_yaml_file(p)
            if not user_raw:
                continue
            raw_entries[p.stem] = _deep_merge(raw_entries.get(p.stem, {}), user_raw)

    result: dict[str, Exercise] = {}
    for stem, raw in raw_entries.items():
        try:
            result[stem] = exercise_from_dict(raw)
        except ValueError as exc:
            warnings.warn(f"liftmetrics: skipping exercise '{stem}' ({exc})", stacklevel=2)

    return result if result else None
