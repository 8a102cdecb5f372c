"""Background processes advanced once per tick.

The engine runs the processors in a fixed order: crops, helpers, crafting,
then mining. Each processor mutates the state it is handed and returns the
events it produced.
"""
from __future__ import annotations

import logging
import random
from typing import Any, List, Mapping, Optional

from .config import get_parameter_or
from .constants import (
    FORGE_HEAT_DECAY,
    HelperRole,
    Importance,
    MINING_DEPTH_PER_TIER,
    MINING_MATERIALS_BY_TIER,
    MINING_METERS_PER_MINUTE,
)
from .gamedata import GameDataStore
from .prerequisites import missing_prerequisites
from .resources import ResourceManager
from .state import CropState, Equipment, GameEvent, GameState

logger = logging.getLogger(__name__)

# Crop water used per minute at waterConsumptionRate 1.0
CROP_WATER_PER_MINUTE = 1 / 120
HEALTHY_WATER_LEVEL = 0.3
DRY_GROWTH_RATE = 0.25


def _event(state: GameState, type: str, description: str, importance=Importance.LOW, **data) -> GameEvent:
    return GameEvent(state.time.total_minutes, type, description, importance, data or None)


def _periods_crossed(total_minutes: int, minutes: int, period: int) -> int:
    """Number of multiples of ``period`` in ``(total - minutes, total]``."""
    return total_minutes // period - (total_minutes - minutes) // period


# --- farm operations shared with the executor --------------------------
def next_plot_id(state: GameState) -> str:
    used = {c.plot_id for c in state.processes.crops}
    index = 1
    while f"plot_{index}" in used:
        index += 1
    return f"plot_{index}"


def plant_crop(
    state: GameState,
    manager: ResourceManager,
    data: GameDataStore,
    crop_id: str,
    parameters: Mapping[str, Any],
) -> Optional[CropState]:
    """Consume one seed and put ``crop_id`` in the lowest free plot."""
    item = data.get_item_by_id(crop_id)
    if item is None or state.empty_plots <= 0:
        return None
    if not manager.spend_seed(crop_id).success:
        return None
    multiplier = get_parameter_or(parameters, "farm.cropMechanics.growthTimeMultiplier", 1.0)
    crop = CropState(
        plot_id=next_plot_id(state),
        crop_id=crop_id,
        planted_at=state.time.total_minutes,
        growth_time_required=max(1, int(item.time * multiplier)),
        max_stages=item.stages,
    )
    state.processes.crops.append(crop)
    return crop


def harvest_crop(
    state: GameState, manager: ResourceManager, data: GameDataStore, plot_id: str
) -> Optional[int]:
    """Remove the crop in ``plot_id`` and credit its gold; ``None`` if empty.

    Withered crops are cleared without any gold.
    """
    crops = state.processes.crops
    crop = next((c for c in crops if c.plot_id == plot_id), None)
    if crop is None or not (crop.ready_to_harvest or crop.is_withered):
        return None
    crops.remove(crop)
    if crop.is_withered:
        return 0
    item = data.get_item_by_id(crop.crop_id)
    gold = item.gold_reward if item else 0
    manager.add_gold(gold)
    return gold


def seed_with_fewest(state: GameState, data: GameDataStore) -> str:
    crops = [c.id for c in data.category("crop") if not missing_prerequisites(state, c.prerequisites)]
    seeds = state.resources.seeds
    return min(crops, key=lambda c: seeds.get(c, 0))


class CropProcessor:
    """Water use, drought, withering and growth of planted crops."""

    def __init__(self, data: GameDataStore, parameters: Mapping[str, Any], rng: random.Random) -> None:
        self.data = data
        self.rng = rng
        self.consumption = get_parameter_or(parameters, "farm.cropMechanics.waterConsumptionRate", 1.0)
        self.wither_chance = get_parameter_or(parameters, "farm.cropMechanics.witheredCropChance", 0.1)
        self.wither_after = get_parameter_or(parameters, "farm.cropMechanics.witherAfterMinutes", 120)

    def process(self, state: GameState, minutes: int) -> List[GameEvent]:
        events: List[GameEvent] = []
        for crop in state.processes.crops:
            if crop.is_withered or crop.ready_to_harvest:
                continue
            crop.water_level = max(0.0, crop.water_level - minutes * CROP_WATER_PER_MINUTE * self.consumption)
            if crop.water_level <= 0:
                crop.drought_time += minutes
                if crop.drought_time > self.wither_after and self.rng.random() < self.wither_chance:
                    crop.is_withered = True
                    events.append(
                        _event(state, "crop_withered", f"{crop.crop_id} in {crop.plot_id} withered",
                               Importance.MEDIUM, plot=crop.plot_id)
                    )
                    continue
            rate = 1.0 if crop.water_level > HEALTHY_WATER_LEVEL else DRY_GROWTH_RATE
            crop.growth_progress = min(1.0, crop.growth_progress + minutes * rate / crop.growth_time_required)
            crop.growth_stage = min(crop.max_stages, int(crop.growth_progress * crop.max_stages))
            if crop.growth_progress >= 1.0 - 1e-9:
                crop.growth_progress = 1.0
                crop.growth_stage = crop.max_stages
                crop.ready_to_harvest = True
                events.append(_event(state, "crop_ready", f"{crop.crop_id} ready in {crop.plot_id}",
                                     plot=crop.plot_id))
        return events


class HelperProcessor:
    """Passive work done by assigned gnomes."""

    def __init__(self, data: GameDataStore, parameters: Mapping[str, Any]) -> None:
        self.data = data
        self.parameters = parameters

    def process(self, state: GameState, minutes: int) -> List[GameEvent]:
        manager = ResourceManager(state)
        events: List[GameEvent] = []
        now = state.time.total_minutes
        for gnome in state.helpers.gnomes:
            if not gnome.is_assigned or not gnome.role:
                continue
            eff = gnome.efficiency
            role = gnome.role
            if role == HelperRole.WATERER.value:
                self._water(state, manager, max(1, int(5 * eff * minutes)))
            elif role == HelperRole.PUMP.value:
                manager.add_water(20 * eff * minutes / 60)
            elif role == HelperRole.HARVESTER.value:
                ready = state.ready_crops()
                if ready:
                    gold = harvest_crop(state, manager, self.data, ready[0].plot_id)
                    events.append(_event(state, "helper_harvest", f"{gnome.name} harvested {gold} gold"))
            elif role == HelperRole.SOWER.value:
                held = [s for s, n in state.resources.seeds.items() if n > 0]
                if held and state.empty_plots > 0:
                    plant_crop(state, manager, self.data, held[0], self.parameters)
            elif role == HelperRole.MINER.value:
                for _ in range(_periods_crossed(now, minutes, 10)):
                    manager.add_material("stone", max(1, int(eff)))
            elif role == HelperRole.CATCHER.value:
                for _ in range(_periods_crossed(now, minutes, 15)):
                    manager.add_seeds(seed_with_fewest(state, self.data), 1)
            elif role == HelperRole.FORAGER.value:
                for _ in range(_periods_crossed(now, minutes, 20)):
                    manager.add_material("wood", max(1, int(eff)))
            gnome.current_task = role
        events.extend(manager.drain_events())
        return events

    def _water(self, state: GameState, manager: ResourceManager, plots: int) -> None:
        thirsty = sorted(
            (c for c in state.processes.crops if not c.ready_to_harvest and not c.is_withered and c.water_level < 1.0),
            key=lambda c: c.water_level,
        )
        for crop in thirsty[:plots]:
            if not manager.spend_water(1).success:
                break
            crop.water_level = 1.0
            crop.drought_time = 0


class CraftingProcessor:
    """Forge heat decay and crafting progress."""

    def __init__(self, data: GameDataStore) -> None:
        self.data = data

    def process(self, state: GameState, minutes: int) -> List[GameEvent]:
        events: List[GameEvent] = []
        queue = state.processes.crafting
        for job in list(queue):
            if job.heat > 0:
                job.progress = min(1.0, job.progress + minutes / max(job.duration, 1))
            job.heat = max(0.0, job.heat - FORGE_HEAT_DECAY * minutes)
            if job.progress < 1.0 - 1e-9:
                continue
            job.is_complete = True
            queue.remove(job)
            item = self.data.get_item_by_id(job.item_id)
            kind = item.kind if item else "tool"
            inventory = state.inventory
            slot = {"weapon": inventory.weapons, "armor": inventory.armor}.get(kind, inventory.tools)
            slot[job.item_id] = Equipment(job.item_id)
            events.append(
                _event(state, "craft_complete", f"Forged {item.name if item else job.item_id}",
                       Importance.MEDIUM, item=job.item_id)
            )
        return events


class MiningProcessor:
    """Depth, energy drain and material drops of an active mining session."""

    def __init__(self, parameters: Mapping[str, Any], rng: random.Random) -> None:
        self.rng = rng
        self.drain_base = get_parameter_or(parameters, "mine.miningMechanics.energyDrainBase", 1.0)
        self.drop_rate = get_parameter_or(parameters, "mine.miningMechanics.materialDropRate", 1.0)

    def tier(self, depth: float) -> int:
        return min(int(depth // MINING_DEPTH_PER_TIER), len(MINING_MATERIALS_BY_TIER) - 1)

    def process(self, state: GameState, minutes: int) -> List[GameEvent]:
        mining = state.processes.mining
        if mining is None or not mining.is_active:
            return []
        manager = ResourceManager(state)
        events: List[GameEvent] = []
        tier = self.tier(mining.depth)
        drain = 2 ** tier * self.drain_base * minutes
        if state.inventory.has_equipped_tool("pickaxe"):
            drain *= 0.8
        energy = state.resources.energy
        manager.spend_energy(min(drain, energy.current))
        mining.energy_drain = drain
        mining.depth += MINING_METERS_PER_MINUTE * minutes
        mining.time_at_depth += minutes
        mining.session_minutes -= minutes

        for _ in range(minutes):
            if self.rng.random() < min(1.0, 0.5 * self.drop_rate):
                material = self.rng.choice(MINING_MATERIALS_BY_TIER[tier])
                manager.add_material(material, 1)

        if energy.current <= 0 or mining.session_minutes <= 0:
            mining.is_active = False
            events.append(
                _event(state, "mining_complete", f"Mining ended at {mining.depth:.0f}m",
                       depth=mining.depth)
            )
        events.extend(manager.drain_events())
        return events
