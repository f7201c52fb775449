"""
Equipment satisfiability.

An exercise's equipment needs are compiled into one tagged expression tree
and evaluated against a user's inventory:

  Capability(kind, machine_type)   leaf: is this piece available?
  AllOf(items)                     every child satisfied (empty → True)
  AnyOf(items)                     at least one child satisfied
  OptionalOf(item)                 always satisfied

Structured exercises compile to

  AllOf(free_weight_bucket, additional_bucket, other_bucket)

where the free-weight bucket follows equipment_mode ("or" → AnyOf,
"and" → AllOf), the additional bucket (bench, machine) follows
additional_equipment_mode ("required" → AllOf, "optional" → OptionalOf)
and the props bucket is an AnyOf.  An exercise tagged with a legacy
OR-group compiles to that group's AnyOf instead.

Also holds the inventory presets and the weight-option builder used by the
CLI when logging a set.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Union

from .exercises.base import EquipmentOption, Exercise
from .models import EquipmentInventory

FREE_WEIGHT_KINDS: frozenset[str] = frozenset(
    {"bodyweight", "dumbbell", "kettlebell", "band", "barbell"}
)
ADDITIONAL_KINDS: frozenset[str] = frozenset({"bench", "machine"})
PROP_KINDS: frozenset[str] = frozenset({"block", "bolster", "strap"})

BARBELL_BASE_LB = 45.0
BAND_LOADS_LB: dict[str, float] = {"light": 10.0, "medium": 20.0, "heavy": 30.0}


# ---------------------------------------------------------------------------
# Expression tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Capability:
    """Leaf: one equipment kind (optionally a specific machine)."""

    kind: str
    machine_type: str | None = None


@dataclass(frozen=True)
class AllOf:
    items: tuple["Requirement", ...] = ()


@dataclass(frozen=True)
class AnyOf:
    items: tuple["Requirement", ...] = ()


@dataclass(frozen=True)
class OptionalOf:
    item: "Requirement"


Requirement = Union[Capability, AllOf, AnyOf, OptionalOf]

ALWAYS: AllOf = AllOf(())


def is_capability_available(inventory: EquipmentInventory, cap: Capability) -> bool:
    """Check a single capability against the inventory."""
    kind = cap.kind
    if kind == "bodyweight":
        return bool(inventory.bodyweight)
    if kind == "bench":
        return bool(inventory.bench)
    if kind == "dumbbell":
        return len(inventory.dumbbells) > 0
    if kind == "kettlebell":
        return len(inventory.kettlebells) > 0
    if kind == "band":
        return len(inventory.bands) > 0
    if kind == "barbell":
        return bool(inventory.barbell_available)
    if kind == "machine":
        return inventory.has_machine(cap.machine_type)
    if kind in PROP_KINDS:
        return True
    return False


def evaluate(expr: Requirement, inventory: EquipmentInventory) -> bool:
    """
    Evaluate a requirement tree against an inventory.

    Args:
        expr: Requirement expression
        inventory: User equipment

    Returns:
        True if the requirement is satisfied
    """
    if isinstance(expr, Capability):
        return is_capability_available(inventory, expr)
    if isinstance(expr, AllOf):
        return all(evaluate(item, inventory) for item in expr.items)
    if isinstance(expr, AnyOf):
        return any(evaluate(item, inventory) for item in expr.items)
    if isinstance(expr, OptionalOf):
        return True
    raise TypeError(f"Not a requirement expression: {expr!r}")


# ---------------------------------------------------------------------------
# Legacy OR-groups
# ---------------------------------------------------------------------------

OR_GROUPS: dict[str, AnyOf] = {
    "free_weight_primary": AnyOf((Capability("barbell"), Capability("dumbbell"))),
    "single_implement": AnyOf((Capability("kettlebell"), Capability("dumbbell"))),
    "pull_up_infrastructure": AnyOf((Capability("bodyweight"),)),
    "treadmill_outdoor": AnyOf(
        (Capability("machine", "treadmill"), Capability("bodyweight"))
    ),
    "stationary_spin": AnyOf(
        (Capability("machine", "indoor_bicycle"), Capability("machine", "outdoor_bicycle"))
    ),
    "rowing_machines": AnyOf((Capability("machine", "rower"),)),
    "resistance_variable": AnyOf((Capability("band"), Capability("machine", "cable"))),
}


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def compile_option(option: EquipmentOption) -> Requirement:
    """An option plus everything in its requires list."""
    leaf = Capability(option.kind, option.machine_type)
    if not option.requires:
        return leaf
    return AllOf((leaf, *(Capability(kind) for kind in option.requires)))


def compile_requirement(exercise: Exercise) -> Requirement:
    """
    Compile an exercise's equipment declaration into a requirement tree.

    Args:
        exercise: Catalog exercise

    Returns:
        Requirement expression; evaluate() it against an inventory
    """
    if exercise.or_group:
        group = OR_GROUPS.get(exercise.or_group)
        if group is not None:
            return group
        warnings.warn(
            f"liftmetrics: unknown equipment OR-group {exercise.or_group!r} "
            f"on {exercise.name!r}; using its equipment options",
            stacklevel=2,
        )

    free = [compile_option(o) for o in exercise.equipment if o.kind in FREE_WEIGHT_KINDS]
    additional = [compile_option(o) for o in exercise.equipment if o.kind in ADDITIONAL_KINDS]
    other = [compile_option(o) for o in exercise.equipment if o.kind in PROP_KINDS]

    if not free:
        free_node: Requirement = ALWAYS
    elif exercise.equipment_mode == "and":
        free_node = AllOf(tuple(free))
    else:
        free_node = AnyOf(tuple(free))

    if not additional:
        additional_node: Requirement = ALWAYS
    elif exercise.additional_equipment_mode == "optional":
        additional_node = OptionalOf(AllOf(tuple(additional)))
    else:
        additional_node = AllOf(tuple(additional))

    other_node: Requirement = AnyOf(tuple(other)) if other else ALWAYS

    return AllOf((free_node, additional_node, other_node))


def is_exercise_equipment_satisfied(
    inventory: EquipmentInventory,
    exercise: Exercise,
) -> bool:
    """True when the inventory can support the exercise."""
    return evaluate(compile_requirement(exercise), inventory)


def _label(cap: Capability) -> str:
    return f"machine:{cap.machine_type}" if cap.machine_type else cap.kind


def describe_requirement(expr: Requirement) -> str:
    """
    Human-readable form of a requirement tree.

    Trivially satisfied branches are left out; an exercise with no
    equipment needs reads as "none".
    """
    if isinstance(expr, Capability):
        return _label(expr)
    if isinstance(expr, OptionalOf):
        inner = describe_requirement(expr.item)
        return f"[optional: {inner}]" if inner != "none" else "none"
    if isinstance(expr, (AllOf, AnyOf)):
        parts = [describe_requirement(item) for item in expr.items]
        parts = [p for p in parts if p != "none"]
        if not parts:
            return "none"
        if len(parts) == 1:
            return parts[0]
        joiner = " AND " if isinstance(expr, AllOf) else " OR "
        return "(" + joiner.join(parts) + ")"
    raise TypeError(f"Not a requirement expression: {expr!r}")


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

_PRESETS: dict[str, dict] = {
    "home_minimal": {
        "bodyweight": True,
        "dumbbells": [10.0, 20.0],
        "kettlebells": [],
        "bands": ["light", "medium"],
        "barbell_available": False,
        "barbell_plates": [],
        "machines": {"cable": False, "leg_press": False, "treadmill": False, "rower": False},
    },
    "full_gym": {
        "bodyweight": True,
        "bench": True,
        "dumbbells": [10.0, 15.0, 20.0, 25.0, 30.0, 35.0, 40.0, 50.0],
        "kettlebells": [15.0, 25.0, 35.0, 50.0],
        "bands": ["light", "medium", "heavy"],
        "barbell_available": True,
        "barbell_plates": [10.0, 25.0, 35.0, 45.0],
        "machines": {"cable": True, "leg_press": True, "treadmill": True, "rower": True},
    },
    "hotel": {
        "bodyweight": True,
        "dumbbells": [10.0, 15.0, 20.0],
        "kettlebells": [],
        "bands": ["light"],
        "barbell_available": False,
        "barbell_plates": [],
        "machines": {"cable": False, "leg_press": False, "treadmill": True, "rower": False},
    },
}

PRESET_NAMES: tuple[str, ...] = tuple(_PRESETS)


def preset_inventory(name: str) -> EquipmentInventory:
    """
    Fresh inventory for a named preset.

    Raises:
        ValueError: If the preset name is unknown
    """
    if name not in _PRESETS:
        raise ValueError(f"Unknown equipment preset {name!r}. Valid: {', '.join(PRESET_NAMES)}")
    raw = _PRESETS[name]
    return EquipmentInventory(
        bodyweight=raw["bodyweight"],
        bench=raw.get("bench", False),
        dumbbells=list(raw["dumbbells"]),
        kettlebells=list(raw["kettlebells"]),
        bands=list(raw["bands"]),
        barbell_available=raw["barbell_available"],
        barbell_plates=list(raw["barbell_plates"]),
        machines=dict(raw["machines"]),
    )


def has_any_equipment(inventory: EquipmentInventory) -> bool:
    """True if the inventory lists anything at all."""
    return bool(
        inventory.bodyweight
        or inventory.bench
        or inventory.dumbbells
        or inventory.kettlebells
        or inventory.bands
        or inventory.barbell_available
        or inventory.has_machine()
    )


# ---------------------------------------------------------------------------
# Weight options
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WeightOption:
    value: float
    label: str


def _fmt(value: float) -> str:
    return f"{value:g}"


def barbell_loads(inventory: EquipmentInventory) -> list[float]:
    """
    Loads reachable on a 45 lb bar with one pair of each listed plate.

    Returns:
        Sorted loads in lb, empty without a barbell
    """
    if not inventory.barbell_available:
        return []
    loads = {BARBELL_BASE_LB}
    for plate in inventory.barbell_plates:
        loads |= {load + plate * 2 for load in loads}
    return sorted(loads)


def build_weight_options(
    inventory: EquipmentInventory,
    options: tuple[EquipmentOption, ...] | list[EquipmentOption],
    body_weight_lb: float | None = None,
) -> list[WeightOption]:
    """
    Selectable loads for an exercise given the user's equipment.

    Labels include the implement when more than one kind is available.

    Args:
        inventory: User equipment
        options: The exercise's equipment options
        body_weight_lb: Offered as the bodyweight load when positive

    Returns:
        De-duplicated WeightOption list in option order
    """
    available = [o for o in options if evaluate(compile_option(o), inventory)]
    show_kind = len({o.kind for o in available}) > 1
    result: list[WeightOption] = []

    for option in available:
        if option.kind in ("dumbbell", "kettlebell"):
            loads = inventory.dumbbells if option.kind == "dumbbell" else inventory.kettlebells
            for w in loads:
                suffix = f" {option.kind}" if show_kind else ""
                result.append(WeightOption(w, f"{_fmt(w)} lb{suffix}"))
        elif option.kind == "barbell":
            for w in barbell_loads(inventory):
                result.append(WeightOption(w, f"{_fmt(w)} lb barbell"))
        elif option.kind == "band":
            for band in inventory.bands:
                w = BAND_LOADS_LB.get(band, BAND_LOADS_LB["light"])
                name = band.capitalize()
                label = f"{name} band (~{_fmt(w)} lb)" if show_kind else f"{name} band"
                result.append(WeightOption(w, label))
        elif option.kind == "bodyweight":
            if body_weight_lb is not None and body_weight_lb > 0:
                result.append(WeightOption(body_weight_lb, f"Bodyweight ({_fmt(body_weight_lb)} lb)"))

    seen: set[tuple[float, str]] = set()
    unique = []
    for opt in result:
        key = (opt.value, opt.label)
        if key not in seen:
            seen.add(key)
            unique.append(opt)
    return unique
