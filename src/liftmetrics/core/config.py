"""
Configuration constants for the training-load engine.

All adjustable parameters are centralized here for easy tuning.  The
bundled config.yaml mirrors these values; see core/engine/config_loader.py
for how a user override file is merged on top.
"""

from dataclasses import dataclass
from typing import Final

# =============================================================================
# FORMULA VERSION
# =============================================================================

# Bump whenever estimated_one_rep_max() or normalized_load() changes shape.
# Stored verbatim in every CompletionSnapshot.
FORMULA_VERSION: Final[str] = "epley_rir_v1"

# =============================================================================
# UNITS
# =============================================================================

LBS_PER_KG: Final[float] = 2.20462
CANONICAL_WEIGHT_UNIT: Final[str] = "lb"

METERS_PER_UNIT: Final[dict[str, float]] = {
    "m": 1.0,
    "km": 1000.0,
    "miles": 1609.344,
}

# =============================================================================
# SET-LEVEL METRICS (Section 4.1)
# =============================================================================

INTENSITY_FLOOR_RPE: Final[float] = 4.0  # Below this RPE the factor is flat
INTENSITY_FLOOR_FACTOR: Final[float] = 0.1  # Factor used below the floor
INTENSITY_RPE_OFFSET: Final[float] = 3.0  # (rpe - offset) / span
INTENSITY_RPE_SPAN: Final[float] = 7.0
DEFAULT_INTENSITY_FACTOR: Final[float] = 0.5  # Missing RPE/RIR

TIME_LOAD_FACTOR: Final[float] = 215.0  # Puts minute-based load on the tonnage scale

HARD_SET_RPE: Final[float] = 8.0  # RPE at or above this is a hard set
HARD_SET_RIR: Final[float] = 2.0  # RIR at or below this is a hard set

E1RM_MAX_REPS: Final[int] = 12  # Sets above this are too far from a single
EPLEY_DIVISOR: Final[float] = 30.0
RIR_MIN: Final[float] = 0.0
RIR_MAX: Final[float] = 6.0
RPE_MAX: Final[float] = 10.0

# Session goals that never produce a strength estimate
NON_LOAD_GOALS: Final[frozenset[str]] = frozenset({"cardio", "range_of_motion"})

# =============================================================================
# SESSION AGGREGATION (Section 4.2)
# =============================================================================

# Session RPE fallback when no set logged an effort
RPE_BASELINES: Final[dict[str, float]] = {
    "low": 6.0,
    "moderate": 7.0,
    "high": 8.5,
}

# =============================================================================
# TRAINING LOAD (Section 4.3)
# =============================================================================

ACUTE_WINDOW_DAYS: Final[int] = 7
CHRONIC_WINDOW_DAYS: Final[int] = 28

OVERREACHING_HIGH_RISK_RATIO: Final[float] = 1.5  # High risk sub-flag
OVERREACHING_CAUTION_RATIO: Final[float] = 1.3  # Caution band starts here
UNDERTRAINING_RATIO: Final[float] = 0.8  # At or below, with prior history

MIN_SESSIONS_FOR_RATIO: Final[int] = 4  # Fewer sessions → initial phase

# =============================================================================
# READINESS
# =============================================================================

READINESS_HIGH_SCORE: Final[int] = 70
READINESS_LOW_SCORE: Final[int] = 40

# =============================================================================
# SUBSTITUTION SCORING (Section 4.6)
# =============================================================================

SCORE_PRIMARY_MUSCLE: Final[float] = 4.0
SCORE_MOVEMENT_MATCH: Final[float] = 3.0
SCORE_MOVEMENT_MISMATCH: Final[float] = -2.0
SCORE_FOCUS: Final[float] = 2.0
SCORE_EQUIPMENT_OVERLAP: Final[float] = 2.0
SCORE_DIFFICULTY: Final[float] = 1.0
SCORE_GOAL: Final[float] = 1.0
SCORE_CLOSENESS_MAX: Final[float] = 2.0
REP_DELTA_DIVISOR: Final[float] = 4.0
DURATION_DELTA_DIVISOR: Final[float] = 5.0
DEFAULT_SUGGESTION_LIMIT: Final[int] = 5

GOAL_STRENGTH_MAX_REPS: Final[float] = 6.0
GOAL_HYPERTROPHY_MAX_REPS: Final[float] = 12.0


# =============================================================================
# TUNABLE BUNDLE
# =============================================================================

@dataclass(frozen=True)
class EngineConfig:
    """
    The subset of constants that callers may tune without touching formulas.

    Built from the defaults above by default; load_engine_config() merges
    values from config.yaml and the user override file.
    """

    acute_window_days: int = ACUTE_WINDOW_DAYS
    chronic_window_days: int = CHRONIC_WINDOW_DAYS
    hard_set_rpe: float = HARD_SET_RPE
    hard_set_rir: float = HARD_SET_RIR
    time_load_factor: float = TIME_LOAD_FACTOR
    overreaching_high_risk_ratio: float = OVERREACHING_HIGH_RISK_RATIO
    overreaching_caution_ratio: float = OVERREACHING_CAUTION_RATIO
    undertraining_ratio: float = UNDERTRAINING_RATIO
    min_sessions_for_ratio: int = MIN_SESSIONS_FOR_RATIO
    e1rm_max_reps: int = E1RM_MAX_REPS
    formula_version: str = FORMULA_VERSION

    def __post_init__(self) -> None:
        """Validate window and threshold ordering."""
        if self.acute_window_days <= 0:
            raise ValueError("acute_window_days must be positive")
        if self.chronic_window_days < self.acute_window_days:
            raise ValueError("chronic_window_days must be >= acute_window_days")
        if self.overreaching_high_risk_ratio < self.overreaching_caution_ratio:
            raise ValueError(
                "overreaching_high_risk_ratio must be >= overreaching_caution_ratio"
            )
        if self.undertraining_ratio >= self.overreaching_caution_ratio:
            raise ValueError("undertraining_ratio must be below the caution ratio")
        if self.time_load_factor <= 0:
            raise ValueError("time_load_factor must be positive")
        if not self.formula_version.strip():
            raise ValueError("formula_version must be a non-empty string")


DEFAULT_CONFIG: Final[EngineConfig] = EngineConfig()
