"""Bounded mutation of energy, gold, water, seeds and materials.

Every change to those resources goes through :class:`ResourceManager` so that
storage limits and non-negativity are enforced in one place. Expected failures
(insufficient funds, unknown ids) are reported through
:class:`ResourceChangeResult` rather than raised.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from .constants import (
    Importance,
    MATERIAL_STORAGE_LIMITS,
    Operation,
    ResourceType,
    STORAGE_UPGRADES,
    UNKNOWN_MATERIAL_LIMIT,
)
from .state import GameEvent, GameState

logger = logging.getLogger(__name__)

_INVALID_CHARS = re.compile(r"[^a-z0-9_]")
_WHITESPACE = re.compile(r"\s+")
_REPEATED_UNDERSCORE = re.compile(r"_+")


@dataclass
class ResourceChangeRequest:
    type: Union[ResourceType, str]
    operation: Union[Operation, str]
    amount: float
    item_id: Optional[str] = None
    enforce_limit: bool = True


@dataclass
class ResourceChangeResult:
    success: bool
    actual_amount: float = 0
    overflow: float = 0
    new_value: float = 0
    hit_limit: bool = False
    error: Optional[str] = None


@dataclass
class ResourceRequirements:
    """Multi-resource cost used by affordability checks."""

    energy: float = 0
    gold: int = 0
    water: float = 0
    materials: Dict[str, int] = field(default_factory=dict)
    seeds: Dict[str, int] = field(default_factory=dict)


def normalize_material_name(name: str) -> str:
    """Lower-case ``name`` and reduce it to ``[a-z0-9_]``."""
    text = _WHITESPACE.sub("_", name.strip().lower())
    text = _INVALID_CHARS.sub("", text)
    text = _REPEATED_UNDERSCORE.sub("_", text)
    return text.strip("_")


def storage_tier(unlocked_upgrades: Iterable[str]) -> int:
    """Return the highest storage tier present in ``unlocked_upgrades``."""
    unlocked = set(unlocked_upgrades)
    tier = 0
    for index, upgrade in enumerate(STORAGE_UPGRADES):
        if upgrade in unlocked:
            tier = index + 1
    return tier


def get_storage_limit(material: str, unlocked_upgrades: Iterable[str] = ()) -> int:
    entry = MATERIAL_STORAGE_LIMITS.get(normalize_material_name(material))
    if entry is None:
        return UNKNOWN_MATERIAL_LIMIT
    base, tiers = entry
    tier = storage_tier(unlocked_upgrades)
    if tier == 0 or not tiers:
        return base
    return tiers[min(tier - 1, len(tiers) - 1)]


def _failure(error: str, current: float) -> ResourceChangeResult:
    return ResourceChangeResult(success=False, new_value=current, error=error)


class ResourceManager:
    """Sole writer of the resource block of one :class:`GameState`."""

    def __init__(self, state: GameState) -> None:
        self.state = state
        self._events: List[GameEvent] = []

    # --- core contract ---------------------------------------------
    def process_resource_change(
        self, request: ResourceChangeRequest
    ) -> ResourceChangeResult:
        try:
            rtype = ResourceType(request.type)
        except ValueError:
            return _failure(f"Unknown resource type: {request.type}", 0)
        try:
            operation = Operation(request.operation)
        except ValueError:
            return _failure(
                f"Unsupported {rtype.value} operation: {request.operation}", 0
            )
        if request.amount < 0:
            return _failure(f"Amount must be non-negative: {request.amount}", 0)

        if rtype is ResourceType.ENERGY:
            return self._bounded(self.state.resources.energy, "energy", operation, request)
        if rtype is ResourceType.WATER:
            return self._bounded(self.state.resources.water, "water", operation, request)
        if rtype is ResourceType.GOLD:
            return self._gold(operation, request)
        if rtype is ResourceType.SEEDS:
            return self._seeds(operation, request)
        return self._materials(operation, request)

    def _bounded(self, pool, name: str, operation: Operation, request) -> ResourceChangeResult:
        current = pool.current
        amount = request.amount
        if operation is Operation.ADD:
            target = current + amount
            if request.enforce_limit:
                target = min(pool.max, target)
            actual = max(0, target - current)
            pool.current = current + actual
            overflow = amount - actual
            return ResourceChangeResult(
                True, actual, overflow, pool.current, overflow > 0
            )
        if operation is Operation.SUBTRACT:
            if current < amount:
                return _failure(
                    f"Insufficient {name}: need {amount}, have {current}", current
                )
            pool.current = current - amount
            return ResourceChangeResult(True, amount, 0, pool.current, False)
        target = min(pool.max, amount) if request.enforce_limit else amount
        pool.current = max(0, target)
        return ResourceChangeResult(
            True, pool.current - current, 0, pool.current, pool.current >= pool.max
        )

    def _gold(self, operation: Operation, request) -> ResourceChangeResult:
        res = self.state.resources
        current = res.gold
        amount = int(request.amount)
        if operation is Operation.ADD:
            res.gold = current + amount
            return ResourceChangeResult(True, amount, 0, res.gold, False)
        if operation is Operation.SUBTRACT:
            if current < amount:
                return _failure(
                    f"Insufficient gold: need {amount}, have {current}", current
                )
            res.gold = current - amount
            return ResourceChangeResult(True, amount, 0, res.gold, False)
        res.gold = max(0, amount)
        return ResourceChangeResult(True, res.gold - current, 0, res.gold, False)

    def _seeds(self, operation: Operation, request) -> ResourceChangeResult:
        if not request.item_id:
            return _failure("Seed ID is required for seed operations", 0)
        seeds = self.state.resources.seeds
        current = seeds.get(request.item_id, 0)
        amount = int(request.amount)
        if operation is Operation.ADD:
            seeds[request.item_id] = current + amount
        elif operation is Operation.SUBTRACT:
            if current < amount:
                return _failure(
                    f"Insufficient {request.item_id} seeds: need {amount}, have {current}",
                    current,
                )
            seeds[request.item_id] = current - amount
        else:
            seeds[request.item_id] = max(0, amount)
        new_value = seeds[request.item_id]
        return ResourceChangeResult(True, abs(new_value - current), 0, new_value, False)

    def _materials(self, operation: Operation, request) -> ResourceChangeResult:
        if not request.item_id:
            return _failure("Material ID is required for material operations", 0)
        name = normalize_material_name(request.item_id)
        if not name:
            return _failure(f"Invalid material name: {request.item_id!r}", 0)
        materials = self.state.resources.materials
        current = materials.get(name, 0)
        amount = int(request.amount)
        limit = self.get_storage_limit(name)

        if operation is Operation.ADD:
            actual = amount
            if request.enforce_limit:
                actual = min(amount, max(0, limit - current))
            materials[name] = current + actual
            overflow = amount - actual
            return ResourceChangeResult(True, actual, overflow, materials[name], overflow > 0)
        if operation is Operation.SUBTRACT:
            if current < amount:
                return _failure(
                    f"Insufficient {name}: need {amount}, have {current}", current
                )
            materials[name] = current - amount
            return ResourceChangeResult(True, amount, 0, materials[name], False)
        target = min(limit, amount) if request.enforce_limit else amount
        materials[name] = max(0, target)
        return ResourceChangeResult(
            True, abs(materials[name] - current), 0, materials[name], materials[name] >= limit
        )

    # --- queries ----------------------------------------------------
    def get_storage_limit(self, material: str) -> int:
        return get_storage_limit(material, self.state.progression.unlocked_upgrades)

    def can_afford(self, requirements: ResourceRequirements) -> bool:
        res = self.state.resources
        if res.energy.current < requirements.energy:
            return False
        if res.gold < requirements.gold:
            return False
        if res.water.current < requirements.water:
            return False
        for name, amount in requirements.materials.items():
            if res.materials.get(normalize_material_name(name), 0) < amount:
                return False
        for seed, amount in requirements.seeds.items():
            if res.seeds.get(seed, 0) < amount:
                return False
        return True

    def get_resource_amounts(self) -> Dict[str, object]:
        res = self.state.resources
        return {
            "energy": res.energy.current,
            "gold": res.gold,
            "water": res.water.current,
            "seeds": dict(res.seeds),
            "materials": dict(res.materials),
        }

    # --- convenience wrappers ---------------------------------------
    def _change(self, rtype, operation, amount, item_id=None, enforce_limit=True):
        result = self.process_resource_change(
            ResourceChangeRequest(rtype, operation, amount, item_id, enforce_limit)
        )
        if not result.success:
            logger.debug("Resource change rejected: %s", result.error)
        return result

    def add_energy(self, amount: float) -> ResourceChangeResult:
        return self._change(ResourceType.ENERGY, Operation.ADD, amount)

    def spend_energy(self, amount: float) -> ResourceChangeResult:
        return self._change(ResourceType.ENERGY, Operation.SUBTRACT, amount)

    def add_gold(self, amount: int) -> ResourceChangeResult:
        return self._change(ResourceType.GOLD, Operation.ADD, amount)

    def spend_gold(self, amount: int) -> ResourceChangeResult:
        return self._change(ResourceType.GOLD, Operation.SUBTRACT, amount)

    def add_water(self, amount: float) -> ResourceChangeResult:
        return self._change(ResourceType.WATER, Operation.ADD, amount)

    def spend_water(self, amount: float) -> ResourceChangeResult:
        return self._change(ResourceType.WATER, Operation.SUBTRACT, amount)

    def add_seeds(self, seed: str, amount: int) -> ResourceChangeResult:
        return self._change(ResourceType.SEEDS, Operation.ADD, amount, seed)

    def spend_seed(self, seed: str, amount: int = 1) -> ResourceChangeResult:
        return self._change(ResourceType.SEEDS, Operation.SUBTRACT, amount, seed)

    def add_material(self, name: str, amount: int) -> ResourceChangeResult:
        """Store ``amount`` of ``name``, emitting a warning event at the cap."""
        result = self._change(ResourceType.MATERIALS, Operation.ADD, amount, name)
        if result.success and result.hit_limit:
            self._events.append(
                GameEvent(
                    timestamp=self.state.time.total_minutes,
                    type="storage_warning",
                    description=(
                        f"{normalize_material_name(name)} storage full: "
                        f"{result.overflow} wasted"
                    ),
                    importance=Importance.MEDIUM,
                    data={"material": name, "overflow": result.overflow},
                )
            )
        return result

    def consume_materials(self, costs: Dict[str, int]) -> bool:
        """Remove every material in ``costs`` or none of them."""
        if not self.can_afford(ResourceRequirements(materials=costs)):
            return False
        for name, amount in costs.items():
            self._change(ResourceType.MATERIALS, Operation.SUBTRACT, amount, name)
        return True

    def drain_events(self) -> List[GameEvent]:
        events, self._events = self._events, []
        return events
