"""
Exercise catalog for liftmetrics.

Each catalog entry is an Exercise loaded from a bundled YAML file.
"""

from .base import EquipmentOption, Exercise, SubstitutionResult, SwapSuggestion

__all__ = [
    "EquipmentOption",
    "Exercise",
    "SubstitutionResult",
    "SwapSuggestion",
]
