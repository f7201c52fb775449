"""
Unit conversion and small numeric helpers.

Everything here is pure and total: non-finite or non-numeric inputs come
back as None (or unchanged, for the converters) rather than raising.
"""

import math
from datetime import date
from typing import Any, Iterable, Sequence

from .config import CANONICAL_WEIGHT_UNIT, LBS_PER_KG, METERS_PER_UNIT


def coerce_number(value: Any) -> float | None:
    """
    Coerce a loosely typed field to a finite float.

    None, empty strings, booleans, NaN/inf and non-numeric strings all map
    to None.  Numeric strings ("12", " 7.5 ") are parsed.

    Args:
        value: Raw field value from a stored row

    Returns:
        Finite float, or None when the value is absent or unusable
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def coerce_int(value: Any) -> int | None:
    """Like coerce_number, truncated to int."""
    number = coerce_number(value)
    return int(number) if number is not None else None


def normalize_weight_unit(unit: Any) -> str:
    """Return "kg" or "lb"; anything unrecognized is treated as pounds."""
    if isinstance(unit, str) and unit.strip().lower() in ("kg", "kgs", "kilogram", "kilograms"):
        return "kg"
    return CANONICAL_WEIGHT_UNIT


def convert_weight(value: float, from_unit: str, to_unit: str) -> float:
    """
    Convert a weight between kg and lb.

    Returns the value unchanged when units match or the value is not finite.
    """
    src = normalize_weight_unit(from_unit)
    dst = normalize_weight_unit(to_unit)
    if not math.isfinite(value) or src == dst:
        return value
    return value * LBS_PER_KG if src == "kg" else value / LBS_PER_KG


def to_pounds(value: float, unit: Any = None) -> float:
    """Convert a weight logged in ``unit`` to the canonical pound scale."""
    return convert_weight(value, normalize_weight_unit(unit), CANONICAL_WEIGHT_UNIT)


def convert_distance(value: float, from_unit: str, to_unit: str) -> float:
    """
    Convert a distance between metres, kilometres and miles.

    Raises:
        ValueError: If either unit is unknown
    """
    if from_unit not in METERS_PER_UNIT or to_unit not in METERS_PER_UNIT:
        raise ValueError(
            f"Unknown distance unit: {from_unit!r} -> {to_unit!r}. "
            f"Valid units: {', '.join(METERS_PER_UNIT)}"
        )
    if not math.isfinite(value) or from_unit == to_unit:
        return value
    return value * METERS_PER_UNIT[from_unit] / METERS_PER_UNIT[to_unit]


def round_to(value: float, digits: int = 2) -> float:
    """Round half away from zero, like the UI does."""
    if not math.isfinite(value):
        return value
    factor = 10 ** digits
    scaled = abs(value) * factor
    rounded = math.floor(scaled + 0.5) / factor
    return math.copysign(rounded, value) if value else 0.0


def round_weight(value: float, digits: int = 1) -> float:
    """Round a weight for display (one decimal by default)."""
    return round_to(value, digits)


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value into [lo, hi]."""
    return max(lo, min(hi, value))


def mean(values: Iterable[float | None]) -> float | None:
    """Arithmetic mean of the non-None values, or None if there are none."""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def weighted_average(
    values: Sequence[float | None],
    weights: Sequence[float],
) -> float | None:
    """
    Weighted mean that skips missing values.

    Non-finite or non-positive weights count as 1 so that a zero-tonnage set
    still contributes its value.

    Returns:
        Weighted mean, or None if no value was usable
    """
    total = 0.0
    weight_sum = 0.0
    for i, value in enumerate(values):
        if value is None or not math.isfinite(value):
            continue
        w = weights[i] if i < len(weights) else 1.0
        if not math.isfinite(w) or w <= 0:
            w = 1.0
        total += value * w
        weight_sum += w
    if not weight_sum:
        return None
    return total / weight_sum


def iso_week_key(moment: date) -> str:
    """ISO calendar week label, e.g. "2026-W03"."""
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"
