"""
Exercise substitution scoring.

Given the exercise a user wants to swap out, ranks catalog alternatives
that work the same muscles, preferring ones the user's equipment supports.
"""

import re
from typing import Sequence

from .config import (
    DEFAULT_SUGGESTION_LIMIT,
    DURATION_DELTA_DIVISOR,
    GOAL_HYPERTROPHY_MAX_REPS,
    GOAL_STRENGTH_MAX_REPS,
    REP_DELTA_DIVISOR,
    SCORE_CLOSENESS_MAX,
    SCORE_DIFFICULTY,
    SCORE_EQUIPMENT_OVERLAP,
    SCORE_FOCUS,
    SCORE_GOAL,
    SCORE_MOVEMENT_MATCH,
    SCORE_MOVEMENT_MISMATCH,
    SCORE_PRIMARY_MUSCLE,
)
from .equipment import is_exercise_equipment_satisfied
from .exercises.base import Exercise, SubstitutionResult, SwapSuggestion
from .models import EquipmentInventory
from .units import coerce_number

_NUMBER = re.compile(r"\d+(?:\.\d+)?")


def _key(name: str) -> str:
    return name.strip().lower()


def average_rep_target(reps: int | str | None) -> float | None:
    """
    Mean of the numbers in a rep target.

    10 → 10.0, "8-12" → 10.0, "AMRAP" → None.
    """
    if isinstance(reps, str):
        numbers = [float(m) for m in _NUMBER.findall(reps)]
        if not numbers:
            return None
        value = sum(numbers) / len(numbers)
    else:
        value = coerce_number(reps)
    return value if value else None


def infer_goal(exercise: Exercise) -> str | None:
    """Explicit goal, else one inferred from the rep target (≤6, ≤12, more)."""
    if exercise.goal:
        return exercise.goal
    avg = average_rep_target(exercise.reps)
    if avg is None:
        return None
    if avg <= GOAL_STRENGTH_MAX_REPS:
        return "strength"
    if avg <= GOAL_HYPERTROPHY_MAX_REPS:
        return "hypertrophy"
    return "endurance"


def score_candidate(current: Exercise, candidate: Exercise) -> float:
    """
    Similarity score of a candidate to the current exercise.

    +4 same primary muscle
    +3 same movement pattern, −2 when both declare different patterns
    +2 same focus
    +2 any shared equipment kind
    +1 same difficulty
    +1 same goal (explicit or inferred from reps)
    +0..2 rep-target closeness:      2 − |Δreps| / 4
    +0..2 duration-target closeness: 2 − |Δminutes| / 5

    Returns:
        Score; only the movement-pattern penalty can lower it
    """
    score = 0.0

    if (
        current.primary_muscle
        and candidate.primary_muscle
        and _key(current.primary_muscle) == _key(candidate.primary_muscle)
    ):
        score += SCORE_PRIMARY_MUSCLE

    if current.movement_pattern and candidate.movement_pattern:
        if _key(current.movement_pattern) == _key(candidate.movement_pattern):
            score += SCORE_MOVEMENT_MATCH
        else:
            score += SCORE_MOVEMENT_MISMATCH

    if current.focus and candidate.focus and _key(current.focus) == _key(candidate.focus):
        score += SCORE_FOCUS

    if current.equipment_kinds & candidate.equipment_kinds:
        score += SCORE_EQUIPMENT_OVERLAP

    if (
        current.difficulty
        and candidate.difficulty
        and _key(current.difficulty) == _key(candidate.difficulty)
    ):
        score += SCORE_DIFFICULTY

    current_goal = infer_goal(current)
    if current_goal and current_goal == infer_goal(candidate):
        score += SCORE_GOAL

    current_reps = average_rep_target(current.reps)
    candidate_reps = average_rep_target(candidate.reps)
    if current_reps is not None and candidate_reps is not None:
        delta = abs(current_reps - candidate_reps)
        score += max(0.0, SCORE_CLOSENESS_MAX - delta / REP_DELTA_DIVISOR)

    current_minutes = coerce_number(current.duration_minutes)
    candidate_minutes = coerce_number(candidate.duration_minutes)
    if current_minutes and candidate_minutes:
        delta = abs(current_minutes - candidate_minutes)
        score += max(0.0, SCORE_CLOSENESS_MAX - delta / DURATION_DELTA_DIVISOR)

    return score


def allowed_muscles(current: Exercise, session_exercises: Sequence[Exercise]) -> frozenset[str]:
    """Current exercise's muscles, else the union across the rest of the session."""
    if current.muscles:
        return current.muscles
    union: set[str] = set()
    for ex in session_exercises:
        union |= ex.muscles
    return frozenset(union)


def suggest_substitutes(
    current: Exercise,
    session_exercises: Sequence[Exercise],
    inventory: EquipmentInventory,
    catalog: Sequence[Exercise],
    limit: int = DEFAULT_SUGGESTION_LIMIT,
) -> SubstitutionResult:
    """
    Rank catalog alternatives for an exercise.

    1. Drop the current exercise and anything already in the session.
    2. Keep candidates sharing a muscle with the allowed set (skipped
       when that set is empty).
    3. Keep equipment-satisfiable candidates; if none are, rank the
       muscle-filtered pool instead and flag used_fallback.
    4. Score, sort descending (stable, so catalog order breaks ties), cap.

    Args:
        current: Exercise being replaced
        session_exercises: Other exercises already in today's session
        inventory: User equipment
        catalog: Full exercise catalog, in catalog order
        limit: Maximum suggestions

    Returns:
        SubstitutionResult
    """
    excluded = {_key(current.name)} | {_key(ex.name) for ex in session_exercises}
    pool = [ex for ex in catalog if _key(ex.name) not in excluded]

    allowed = allowed_muscles(current, session_exercises)
    if allowed:
        pool = [ex for ex in pool if ex.muscles & allowed]

    compatible = [ex for ex in pool if is_exercise_equipment_satisfied(inventory, ex)]
    used_fallback = not compatible
    ranked_pool = compatible if compatible else pool

    scored = [SwapSuggestion(exercise=ex, score=score_candidate(current, ex)) for ex in ranked_pool]
    scored = sorted(scored, key=lambda s: s.score, reverse=True)

    return SubstitutionResult(suggestions=tuple(scored[: max(0, limit)]), used_fallback=used_fallback)
