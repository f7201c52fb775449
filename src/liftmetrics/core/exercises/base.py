"""
Base types for exercise catalog entries.

Exercise is a read-only catalog record: muscles, movement pattern and
targets used by the substitution scorer, plus the equipment options the
satisfiability evaluator compiles into a requirement tree.
"""

from dataclasses import dataclass, field

EQUIPMENT_KINDS: tuple[str, ...] = (
    "bodyweight",
    "dumbbell",
    "kettlebell",
    "band",
    "barbell",
    "bench",
    "machine",
    "block",
    "bolster",
    "strap",
)

# Older catalog rows spell the bench as its own exercise kind
KIND_ALIASES: dict[str, str] = {"bench_press": "bench"}


@dataclass(frozen=True)
class EquipmentOption:
    """One piece of equipment an exercise can use."""

    kind: str                        # one of EQUIPMENT_KINDS
    machine_type: str | None = None  # e.g. "cable", "treadmill" (kind == "machine")
    requires: tuple[str, ...] = ()   # extra kinds needed alongside this option

    def __post_init__(self) -> None:
        """Validate equipment kind."""
        if self.kind not in EQUIPMENT_KINDS:
            raise ValueError(
                f"Unknown equipment kind {self.kind!r}. Valid kinds: {', '.join(EQUIPMENT_KINDS)}"
            )
        for req in self.requires:
            if req not in EQUIPMENT_KINDS:
                raise ValueError(f"Unknown required equipment kind {req!r}")


@dataclass(frozen=True)
class Exercise:
    """
    One catalog exercise.

    equipment_mode combines the free-weight options ("or": any one,
    "and": all).  additional_equipment_mode decides whether bench/machine
    options are "required" or merely "optional".  An or_group replaces both
    with a named substitution group.
    """

    # Identity
    name: str
    category: str | None = None         # "strength" | "cardio" | "mobility"
    focus: str | None = None            # e.g. "lower", "upper", "core"
    movement_pattern: str | None = None  # e.g. "squat", "hinge", "curl"
    metric_profile: str | None = None

    # Muscles
    primary_muscle: str | None = None
    secondary_muscles: tuple[str, ...] = ()
    primary_body_parts: tuple[str, ...] = ()
    secondary_body_parts: tuple[str, ...] = ()

    # Equipment
    equipment: tuple[EquipmentOption, ...] = ()
    equipment_mode: str = "or"
    additional_equipment_mode: str = "required"
    or_group: str | None = None

    # Targets
    difficulty: str | None = None
    goal: str | None = None
    reps: int | str | None = None       # 10 or "8-12"
    duration_minutes: float | None = None
    e1rm_eligible: bool = False

    def __post_init__(self) -> None:
        """Validate identity and modes."""
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Exercise name must be a non-empty string")
        if self.equipment_mode not in ("or", "and"):
            raise ValueError(
                f"Invalid equipment_mode {self.equipment_mode!r}. Must be 'or' or 'and'."
            )
        if self.additional_equipment_mode not in ("required", "optional"):
            raise ValueError(
                f"Invalid additional_equipment_mode {self.additional_equipment_mode!r}. "
                "Must be 'required' or 'optional'."
            )

    @property
    def muscles(self) -> frozenset[str]:
        """All muscle and body-part labels, lower-cased."""
        labels = [self.primary_muscle] if self.primary_muscle else []
        labels.extend(self.secondary_muscles)
        labels.extend(self.primary_body_parts)
        labels.extend(self.secondary_body_parts)
        return frozenset(m.strip().lower() for m in labels if m and m.strip())

    @property
    def equipment_kinds(self) -> frozenset[str]:
        """Distinct equipment kinds across options."""
        return frozenset(opt.kind for opt in self.equipment)


@dataclass(frozen=True)
class SwapSuggestion:
    """A ranked substitution candidate."""

    exercise: Exercise
    score: float


@dataclass(frozen=True)
class SubstitutionResult:
    """
    Ranked candidates for replacing an exercise.

    used_fallback is True when no candidate fit the user's equipment and
    the list was ranked without the equipment gate.
    """

    suggestions: tuple[SwapSuggestion, ...] = field(default_factory=tuple)
    used_fallback: bool = False
