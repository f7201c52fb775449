"""
Metric-profile normalization.

Stored rows spell the same profile many ways ("weight-reps", "weight_reps",
"reps_weight", "cardio_session" ...).  Every metric primitive calls
normalize_metric_profile() first, so no formula ever branches on a raw
spelling.
"""

import re
import warnings

from .models import MetricProfile

STRENGTH: MetricProfile = "strength"
TIMED_STRENGTH: MetricProfile = "timed_strength"
CARDIO: MetricProfile = "cardio"
MOBILITY: MetricProfile = "mobility"

# Keys are already folded by _fold(): lower case, separators collapsed to "_"
PROFILE_ALIASES: dict[str, MetricProfile] = {
    "strength": STRENGTH,
    "reps_weight": STRENGTH,
    "weight_reps": STRENGTH,
    "reps_only": STRENGTH,
    "reps": STRENGTH,
    "timed_strength": TIMED_STRENGTH,
    "duration": TIMED_STRENGTH,
    "timed": TIMED_STRENGTH,
    "isometric": TIMED_STRENGTH,
    "cardio": CARDIO,
    "cardio_session": CARDIO,
    "conditioning": CARDIO,
    "mobility": MOBILITY,
    "mobility_session": MOBILITY,
    "yoga": MOBILITY,
    "stretching": MOBILITY,
}

STRENGTH_LIKE: frozenset[str] = frozenset({STRENGTH, TIMED_STRENGTH})
TIME_BASED: frozenset[str] = frozenset({TIMED_STRENGTH, CARDIO, MOBILITY})
RECOVERY: frozenset[str] = frozenset({CARDIO, MOBILITY})

_SEPARATORS = re.compile(r"[\s\-+/]+")


def _fold(raw: str) -> str:
    return _SEPARATORS.sub("_", raw.strip().lower()).strip("_")


def normalize_metric_profile(raw: str | None) -> MetricProfile:
    """
    Map any stored profile spelling onto the canonical set.

    Missing profiles are strength (the catalog default).  Unknown spellings
    also fall back to strength, with a warning so they can be added above.

    Args:
        raw: Stored profile string, or None

    Returns:
        One of "strength", "timed_strength", "cardio", "mobility"
    """
    if raw is None or not isinstance(raw, str) or not raw.strip():
        return STRENGTH
    folded = _fold(raw)
    profile = PROFILE_ALIASES.get(folded)
    if profile is None:
        warnings.warn(
            f"liftmetrics: unknown metric profile {raw!r}; treating as strength",
            stacklevel=2,
        )
        return STRENGTH
    return profile


def is_strength_like(raw: str | None) -> bool:
    """True for rep/weight strength and timed strength."""
    return normalize_metric_profile(raw) in STRENGTH_LIKE


def is_recovery_profile(raw: str | None) -> bool:
    """True for cardio and mobility work."""
    return normalize_metric_profile(raw) in RECOVERY
