"""
YAML → typed config loader.

Loads engine tunables from config.yaml (bundled with the package) and
optionally merges user overrides from ~/.liftmetrics/config.yaml.

Usage:
    from liftmetrics.core.engine.config_loader import load_engine_config
    cfg = load_engine_config()
    cfg.chronic_window_days   # 28

If the bundled YAML cannot be parsed, the Python defaults from config.py
are used (no crash).  If the user override file exists but has parse
errors or invalid values, a warning is printed and the file is ignored.
"""

from __future__ import annotations

import os
import warnings
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from ..config import DEFAULT_CONFIG, EngineConfig

# (section, key) → EngineConfig field, with the type each value is cast to
_FIELD_MAP: dict[tuple[str, str], tuple[str, type]] = {
    ("formula", "version"): ("formula_version", str),
    ("formula", "e1rm_max_reps"): ("e1rm_max_reps", int),
    ("load", "time_load_factor"): ("time_load_factor", float),
    ("load", "hard_set_rpe"): ("hard_set_rpe", float),
    ("load", "hard_set_rir"): ("hard_set_rir", float),
    ("windows", "acute_days"): ("acute_window_days", int),
    ("windows", "chronic_days"): ("chronic_window_days", int),
    ("windows", "min_sessions_for_ratio"): ("min_sessions_for_ratio", int),
    ("thresholds", "overreaching_high_risk"): ("overreaching_high_risk_ratio", float),
    ("thresholds", "overreaching_caution"): ("overreaching_caution_ratio", float),
    ("thresholds", "undertraining"): ("undertraining_ratio", float),
}

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; warn and return {} on any error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"liftmetrics: ignoring config file {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _to_engine_config(raw: dict[str, Any], base: EngineConfig) -> EngineConfig:
    """Apply recognised keys of a merged config dict on top of *base*."""
    values: dict[str, Any] = {}
    for (section, key), (field_name, cast) in _FIELD_MAP.items():
        block = raw.get(section)
        if isinstance(block, dict) and key in block and block[key] is not None:
            values[field_name] = cast(block[key])
    return replace(base, **values)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled config.yaml, or None if not found."""
    # config_loader.py lives at src/liftmetrics/core/engine/config_loader.py
    candidate = Path(__file__).parent.parent.parent / "config.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.liftmetrics/config.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".liftmetrics" / "config.yaml"
    return p if p.exists() else None


def load_model_config(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge raw configuration sections from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/liftmetrics/config.yaml
    2. User override at ~/.liftmetrics/config.yaml (or *user_path*)

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None and user.exists():
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def load_engine_config(user_path: Path | None = None) -> EngineConfig:
    """
    Build the EngineConfig in effect for this user.

    Invalid values in the merged YAML (wrong type, thresholds out of
    order) fall back to the defaults with a warning.

    Args:
        user_path: Override file location (defaults to ~/.liftmetrics/config.yaml)

    Returns:
        EngineConfig
    """
    raw = load_model_config(user_path)
    try:
        return _to_engine_config(raw, DEFAULT_CONFIG)
    except (TypeError, ValueError) as exc:
        warnings.warn(
            f"liftmetrics: invalid engine configuration ({exc}); using defaults",
            stacklevel=2,
        )
        return DEFAULT_CONFIG
