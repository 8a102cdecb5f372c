"""Named state invariants."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .constants import Screen, Severity
from .state import GameState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateInvariant:
    name: str
    description: str
    severity: Severity
    validate: Callable[[GameState], bool]


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _time_consistent(s: GameState) -> bool:
    t = s.time
    return 0 <= t.minute < 60 and 0 <= t.hour < 24 and t.day >= 0 and t.total_minutes >= 0


def _equipment_within(items) -> bool:
    return all(0 <= e.durability <= e.max_durability for e in items)


DEFAULT_INVARIANTS = [
    StateInvariant(
        "energy_bounds",
        "Energy must be within [0, max]",
        Severity.ERROR,
        lambda s: 0 <= s.resources.energy.current <= s.resources.energy.max,
    ),
    StateInvariant(
        "water_bounds",
        "Water must be within [0, max]",
        Severity.ERROR,
        lambda s: 0 <= s.resources.water.current <= s.resources.water.max,
    ),
    StateInvariant(
        "gold_non_negative",
        "Gold must be non-negative",
        Severity.ERROR,
        lambda s: s.resources.gold >= 0,
    ),
    StateInvariant(
        "seed_non_negative",
        "Seed counts must be non-negative",
        Severity.ERROR,
        lambda s: all(v >= 0 for v in s.resources.seeds.values()),
    ),
    StateInvariant(
        "material_non_negative",
        "Material counts must be non-negative",
        Severity.ERROR,
        lambda s: all(v >= 0 for v in s.resources.materials.values()),
    ),
    StateInvariant(
        "time_consistency",
        "Time fields must be in range",
        Severity.ERROR,
        _time_consistent,
    ),
    StateInvariant(
        "hero_level_positive",
        "Hero level must be positive",
        Severity.ERROR,
        lambda s: s.progression.hero_level > 0,
    ),
    StateInvariant(
        "experience_non_negative",
        "Experience must be non-negative",
        Severity.ERROR,
        lambda s: s.progression.experience >= 0,
    ),
    StateInvariant(
        "farm_plots_consistent",
        "Available plots cannot exceed farm plots",
        Severity.ERROR,
        lambda s: 0 <= s.progression.available_plots <= s.progression.farm_plots,
    ),
    StateInvariant(
        "valid_screen",
        "Current screen must be a known screen",
        Severity.ERROR,
        lambda s: isinstance(s.location.current_screen, Screen),
    ),
    StateInvariant(
        "crop_progress_bounds",
        "Crop growth progress should be within [0, 1]",
        Severity.WARNING,
        lambda s: all(0 <= c.growth_progress <= 1 for c in s.processes.crops),
    ),
    StateInvariant(
        "crop_water_bounds",
        "Crop water level should be within [0, 1]",
        Severity.WARNING,
        lambda s: all(0 <= c.water_level <= 1 for c in s.processes.crops),
    ),
    StateInvariant(
        "crop_terminal_state",
        "A withered crop should never be ready to harvest",
        Severity.WARNING,
        lambda s: not any(c.is_withered and c.ready_to_harvest for c in s.processes.crops),
    ),
    StateInvariant(
        "adventure_progress_bounds",
        "Adventure progress should be within [0, 1]",
        Severity.WARNING,
        lambda s: s.processes.adventure is None
        or 0 <= s.processes.adventure.progress <= 1,
    ),
    StateInvariant(
        "tool_durability_bounds",
        "Tool durability should not exceed its maximum",
        Severity.WARNING,
        lambda s: _equipment_within(s.inventory.tools.values()),
    ),
    StateInvariant(
        "weapon_durability_bounds",
        "Weapon durability should not exceed its maximum",
        Severity.WARNING,
        lambda s: _equipment_within(s.inventory.weapons.values()),
    ),
    StateInvariant(
        "armor_durability_bounds",
        "Armor durability should not exceed its maximum",
        Severity.WARNING,
        lambda s: _equipment_within(s.inventory.armor.values()),
    ),
    StateInvariant(
        "inventory_weight",
        "Carried weight should not exceed capacity",
        Severity.WARNING,
        lambda s: s.inventory.current_weight <= s.inventory.capacity,
    ),
    StateInvariant(
        "helper_capacity",
        "Helper count should not exceed housing capacity",
        Severity.WARNING,
        lambda s: len(s.helpers.gnomes) <= s.helpers.housing_capacity,
    ),
]


class StateValidator:
    """Runs a registry of :class:`StateInvariant` checks.

    The registry starts with :data:`DEFAULT_INVARIANTS`; callers may add their
    own with :meth:`add_invariant`.
    """

    def __init__(self, invariants: Optional[List[StateInvariant]] = None) -> None:
        self.invariants: List[StateInvariant] = list(
            DEFAULT_INVARIANTS if invariants is None else invariants
        )

    def add_invariant(self, invariant: StateInvariant) -> None:
        self.invariants.append(invariant)

    def get_invariant(self, name: str) -> Optional[StateInvariant]:
        return next((i for i in self.invariants if i.name == name), None)

    def validate(self, state: GameState) -> ValidationResult:
        return self._run(state, self.invariants)

    def validate_critical(self, state: GameState) -> ValidationResult:
        """Run only error-severity invariants."""
        critical = [i for i in self.invariants if i.severity is Severity.ERROR]
        return self._run(state, critical)

    def _run(self, state: GameState, invariants) -> ValidationResult:
        result = ValidationResult(is_valid=True)
        for invariant in invariants:
            try:
                ok = invariant.validate(state)
                message = f"Invariant violation: {invariant.name} - {invariant.description}"
            except Exception as exc:  # reported as a violation
                ok = False
                message = f"Invariant check failed for {invariant.name}: {exc}"
            if ok:
                continue
            if invariant.severity is Severity.ERROR:
                result.errors.append(message)
            else:
                result.warnings.append(message)
                logger.warning(message)
        result.is_valid = not result.errors
        return result
