"""
Exercise registry.

The bundled catalog (plus user overrides) is loaded from YAML at import
time.  Use get_exercise() to look an entry up by id or display name, and
catalog() for the ordered list the substitution scorer ranks.

If no entry can be loaded a RuntimeError is raised: the CLI cannot
work without a catalog.
"""

from .base import Exercise


def _build_registry() -> dict[str, Exercise]:
    from .loader import load_exercises_from_yaml

    loaded = load_exercises_from_yaml()
    if not loaded:
        raise RuntimeError(
            "liftmetrics: no exercises could be loaded from YAML. "
            "Check that src/liftmetrics/exercises/*.yaml files are present and valid."
        )
    return loaded


EXERCISE_REGISTRY: dict[str, Exercise] = _build_registry()


def catalog() -> list[Exercise]:
    """All registered exercises in catalog order."""
    return list(EXERCISE_REGISTRY.values())


def find_exercise(name: str) -> Exercise | None:
    """Look up by id ("back_squat") or case-insensitive name ("Back Squat")."""
    key = name.strip()
    if key in EXERCISE_REGISTRY:
        return EXERCISE_REGISTRY[key]
    lowered = key.lower()
    for ex in EXERCISE_REGISTRY.values():
        if ex.name.lower() == lowered:
            return ex
    return None


def get_exercise(name: str) -> Exercise:
    """
    Return the catalog Exercise for an id or name.

    Raises:
        ValueError: If nothing matches
    """
    found = find_exercise(name)
    if found is None:
        valid = ", ".join(EXERCISE_REGISTRY)
        raise ValueError(f"Unknown exercise '{name}'. Valid IDs: {valid}")
    return found
