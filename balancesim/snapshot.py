"""Point-in-time copies of a :class:`GameState` for rollback and debugging."""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional

from .state import (
    AutomationState,
    BlueprintState,
    EnergyState,
    Equipment,
    GameState,
    HelperState,
    InventoryState,
    LocationState,
    ProcessState,
    ProgressionState,
    ResourceState,
    TimeState,
    WaterState,
)

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


# --- typed copies -----------------------------------------------------
def copy_time(t: TimeState) -> TimeState:
    return replace(t)


def copy_resources(r: ResourceState) -> ResourceState:
    return ResourceState(
        energy=EnergyState(r.energy.current, r.energy.max, r.energy.regeneration_rate),
        gold=r.gold,
        water=WaterState(r.water.current, r.water.max, r.water.auto_gen_rate),
        seeds=dict(r.seeds),
        materials=dict(r.materials),
    )


def copy_progression(p: ProgressionState) -> ProgressionState:
    return replace(
        p,
        completed_adventures=set(p.completed_adventures),
        completed_cleanups=set(p.completed_cleanups),
        unlocked_upgrades=set(p.unlocked_upgrades),
        unlocked_areas=set(p.unlocked_areas),
    )


def _copy_equipment(items: Dict[str, Equipment]) -> Dict[str, Equipment]:
    return {key: replace(item) for key, item in items.items()}


def copy_inventory(inv: InventoryState) -> InventoryState:
    return InventoryState(
        tools=_copy_equipment(inv.tools),
        weapons=_copy_equipment(inv.weapons),
        armor=_copy_equipment(inv.armor),
        blueprints={k: BlueprintState(b.id, b.purchased, b.is_built) for k, b in inv.blueprints.items()},
        capacity=inv.capacity,
        current_weight=inv.current_weight,
    )


def copy_processes(p: ProcessState) -> ProcessState:
    return ProcessState(
        crops=[replace(c) for c in p.crops],
        adventure=replace(p.adventure) if p.adventure else None,
        crafting=[replace(c) for c in p.crafting],
        mining=replace(p.mining) if p.mining else None,
    )


def copy_location(loc: LocationState) -> LocationState:
    return replace(loc, screen_history=list(loc.screen_history))


def copy_helpers(h: HelperState) -> HelperState:
    return HelperState(
        gnomes=[replace(g) for g in h.gnomes],
        housing_capacity=h.housing_capacity,
        available_roles=list(h.available_roles),
        rescue_queue=list(h.rescue_queue),
    )


def copy_automation(a: AutomationState) -> AutomationState:
    return replace(a, target_crops=dict(a.target_crops))


_SECTIONS = {
    "time": (TimeState, copy_time),
    "resources": (ResourceState, copy_resources),
    "progression": (ProgressionState, copy_progression),
    "inventory": (InventoryState, copy_inventory),
    "processes": (ProcessState, copy_processes),
    "location": (LocationState, copy_location),
    "helpers": (HelperState, copy_helpers),
    "automation": (AutomationState, copy_automation),
}


@dataclass(frozen=True)
class SnapshotMetadata:
    id: str
    timestamp: int
    reason: str
    source: str
    size: int


class StateSnapshot:
    """Private deep copy of the mutable parts of a :class:`GameState`."""

    def __init__(self, state: GameState, reason: str = "manual", source: str = "engine") -> None:
        self._data: Dict[str, object] = {
            name: copier(getattr(state, name)) for name, (_, copier) in _SECTIONS.items()
        }
        timestamp = state.time.total_minutes
        self.metadata = SnapshotMetadata(
            id=f"snapshot_{timestamp}_{next(_ids)}",
            timestamp=timestamp,
            reason=reason,
            source=source,
            size=self._measure(),
        )
        logger.debug("Created %s (%s)", self.metadata.id, reason)

    def _measure(self) -> int:
        res = self._data["resources"]
        inv = self._data["inventory"]
        proc = self._data["processes"]
        helpers = self._data["helpers"]
        return (
            len(_SECTIONS)
            + len(res.seeds)
            + len(res.materials)
            + len(inv.tools)
            + len(inv.weapons)
            + len(inv.armor)
            + len(inv.blueprints)
            + len(proc.crops)
            + len(proc.crafting)
            + len(helpers.gnomes)
        )

    def get_metadata(self) -> SnapshotMetadata:
        return self.metadata

    def get_size(self) -> int:
        return self.metadata.size

    def is_valid(self) -> bool:
        if not isinstance(self._data, dict):
            return False
        for name, (cls, _) in _SECTIONS.items():
            if not isinstance(self._data.get(name), cls):
                return False
        return True

    def restore(self, state: GameState) -> bool:
        """Overwrite ``state`` from this snapshot; ``False`` leaves it untouched."""
        if not self.is_valid():
            logger.warning("Refusing to restore corrupted %s", self.metadata.id)
            return False
        # Build every section first so assignment cannot stop halfway
        try:
            sections = {
                name: copier(self._data[name]) for name, (_, copier) in _SECTIONS.items()
            }
        except (TypeError, AttributeError, ValueError) as exc:
            logger.warning("Corrupted %s: %s", self.metadata.id, exc)
            return False
        for name, value in sections.items():
            setattr(state, name, value)
        logger.debug("Restored %s", self.metadata.id)
        return True

    def section(self, name: str) -> Optional[object]:
        """Return a copy of one captured section."""
        entry = _SECTIONS.get(name)
        if entry is None or name not in self._data:
            return None
        return entry[1](self._data[name])
