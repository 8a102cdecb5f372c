"""Apply selected actions to the game state.

Every action type has exactly one handler. A handler checks everything it
needs before touching the state, so a rejected action leaves the state
exactly as it was and produces no events.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from . import actions as act
from .combat import simulate_adventure
from .config import get_parameter_or
from .constants import (
    ActionType,
    FORGE_MAX_HEAT,
    FORGE_STOKE_HEAT,
    Importance,
    MATERIAL_VALUES,
    Screen,
)
from .decisions import tower_reach
from .filters import RESCUE_MIN_ENERGY, requirements_for
from .gamedata import GameDataStore, route_variant
from .prerequisites import (
    can_access_screen,
    current_phase,
    farm_stage_from_plots,
    has_tool,
    missing_prerequisites,
)
from .processors import harvest_crop, plant_crop, seed_with_fewest
from .resources import ResourceManager
from .state import (
    AdventureState,
    BlueprintState,
    CraftingState,
    Equipment,
    GameEvent,
    GameState,
    GnomeState,
    MiningState,
)

logger = logging.getLogger(__name__)

WEAPON_WEAR_PER_ADVENTURE = 5
HOUSING_PER_HUT = 2
STAMINA_ENERGY_BONUS = 20
CARRY_CAPACITY_BONUS = 20


@dataclass
class ActionResult:
    success: bool
    events: List[GameEvent] = field(default_factory=list)
    error: Optional[str] = None


def _fail(error: str) -> ActionResult:
    return ActionResult(False, [], error)


class ActionExecutor:
    """Validates and applies one action at a time."""

    def __init__(
        self,
        data: GameDataStore,
        parameters: Mapping[str, Any],
        rng: random.Random,
        combat: Callable[..., Any] = simulate_adventure,
    ) -> None:
        self.data = data
        self.parameters = parameters
        self.rng = rng
        self.combat = combat
        self._handlers: Dict[ActionType, Callable[[Any, GameState, ResourceManager], ActionResult]] = {
            ActionType.PLANT: self._plant,
            ActionType.HARVEST: self._harvest,
            ActionType.WATER: self._water,
            ActionType.PUMP: self._pump,
            ActionType.CLEANUP: self._cleanup,
            ActionType.MOVE: self._move,
            ActionType.CATCH_SEEDS: self._catch_seeds,
            ActionType.PURCHASE: self._purchase,
            ActionType.ADVENTURE: self._adventure,
            ActionType.BUILD: self._build,
            ActionType.CRAFT: self._craft,
            ActionType.STOKE: self._stoke,
            ActionType.MINE: self._mine,
            ActionType.ASSIGN_ROLE: self._assign_role,
            ActionType.TRAIN_HELPER: self._train_helper,
            ActionType.TRAIN: self._train,
            ActionType.RESCUE: self._rescue,
            ActionType.SELL_MATERIAL: self._sell_material,
            ActionType.WAIT: self._wait,
        }
        assert set(self._handlers) == set(ActionType), "every action type needs a handler"

    @property
    def handled_types(self):
        return frozenset(self._handlers)

    def param(self, path: str, default: Any) -> Any:
        return get_parameter_or(self.parameters, path, default)

    def execute(self, action: act.Action, state: GameState) -> ActionResult:
        energy = state.resources.energy.current
        if energy < action.energy_cost:
            return _fail(f"Insufficient energy for {action.id}: need {action.energy_cost}, have {energy}")
        manager = ResourceManager(state)
        result = self._handlers[action.type](action, state, manager)
        if result.success:
            result.events.extend(manager.drain_events())
        else:
            logger.debug("Action %s rejected: %s", action.id, result.error)
        return result

    # --- helpers ----------------------------------------------------
    def _pay(self, action: act.Action, manager: ResourceManager) -> Optional[str]:
        """Debit energy, gold and materials, or nothing at all."""
        requirements = requirements_for(action)
        requirements.seeds = {}
        if not manager.can_afford(requirements):
            return f"Cannot afford {action.id}"
        if action.energy_cost:
            manager.spend_energy(action.energy_cost)
        if action.gold_cost:
            manager.spend_gold(action.gold_cost)
        if action.material_costs:
            manager.consume_materials(action.material_costs)
        return None

    def _event(self, state: GameState, type: str, description: str,
               importance: Importance = Importance.LOW, **data) -> GameEvent:
        return GameEvent(state.time.total_minutes, type, description, importance, data or None)

    def _done(self, state: GameState, type: str, description: str,
              importance: Importance = Importance.LOW, **data) -> ActionResult:
        return ActionResult(True, [self._event(state, type, description, importance, **data)])

    @staticmethod
    def _gain_xp(state: GameState, amount: int) -> None:
        state.progression.experience += max(0, int(amount))

    # --- farm -------------------------------------------------------
    def _plant(self, action: act.Plant, state: GameState, manager: ResourceManager) -> ActionResult:
        if state.empty_plots <= 0:
            return _fail("No empty plot")
        if state.resources.seeds.get(action.crop_id, 0) < 1:
            return _fail(f"No {action.crop_id} seeds")
        if self.data.get_item_by_id(action.crop_id) is None:
            return _fail(f"Unknown crop {action.crop_id}")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        crop = plant_crop(state, manager, self.data, action.crop_id, self.parameters)
        return self._done(state, "plant", f"Planted {action.crop_id} in {crop.plot_id}", plot=crop.plot_id)

    def _harvest(self, action: act.Harvest, state: GameState, manager: ResourceManager) -> ActionResult:
        crop = next((c for c in state.processes.crops if c.plot_id == action.plot_id), None)
        if crop is None or not (crop.ready_to_harvest or crop.is_withered):
            return _fail(f"Nothing to harvest in {action.plot_id}")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        gold = harvest_crop(state, manager, self.data, action.plot_id)
        if crop.is_withered:
            return self._done(state, "clear_withered", f"Cleared withered {crop.crop_id}", plot=action.plot_id)
        self._gain_xp(state, action.reward.experience)
        return self._done(
            state, "harvest", f"Harvested {crop.crop_id} for {gold} gold", plot=action.plot_id, gold=gold
        )

    def _water(self, action: act.Water, state: GameState, manager: ResourceManager) -> ActionResult:
        thirsty = sorted(
            (c for c in state.processes.crops if not c.ready_to_harvest and not c.is_withered),
            key=lambda c: c.water_level,
        )
        if not thirsty:
            return _fail("Nothing to water")
        if state.resources.water.current < 1:
            return _fail("No water")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        watered = 0
        for crop in thirsty[: max(1, int(action.amount))]:
            if not manager.spend_water(1).success:
                break
            crop.water_level = 1.0
            crop.drought_time = 0
            watered += 1
        return self._done(state, "water", f"Watered {watered} plots", count=watered)

    def _pump(self, action: act.Pump, state: GameState, manager: ResourceManager) -> ActionResult:
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        efficiency = self.param("farm.waterSystem.pumpEfficiency", 1.0)
        added = manager.add_water(action.reward.water * efficiency).actual_amount
        return self._done(state, "pump", f"Pumped {added:.0f} water", amount=added)

    def _cleanup(self, action: act.Cleanup, state: GameState, manager: ResourceManager) -> ActionResult:
        prog = state.progression
        if not action.repeatable and action.cleanup_id in prog.completed_cleanups:
            return _fail(f"{action.cleanup_id} already cleared")
        if not has_tool(state, action.tool_required):
            return _fail(f"{action.cleanup_id} needs {action.tool_required}")
        missing = missing_prerequisites(state, action.prerequisites)
        if missing:
            return _fail(f"Missing prerequisites: {', '.join(missing)}")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        prog.farm_plots += action.plots_added
        prog.available_plots += action.plots_added
        if not action.repeatable:
            prog.completed_cleanups.add(action.cleanup_id)
        for name, amount in action.reward.materials.items():
            manager.add_material(name, amount)
        self._gain_xp(state, action.reward.experience)
        prog.farm_stage = farm_stage_from_plots(prog.farm_plots)
        importance = Importance.MEDIUM if action.plots_added else Importance.LOW
        result = self._done(
            state, "cleanup", f"Cleared {action.cleanup_id} (+{action.plots_added} plots)",
            importance, plots=prog.farm_plots,
        )
        phase = current_phase(state)
        if phase is not prog.current_phase:
            prog.current_phase = phase
            result.events.append(
                self._event(state, "phase_change", f"Entered {phase.value} phase", Importance.MEDIUM)
            )
        return result

    # --- navigation -------------------------------------------------
    def _move(self, action: act.Move, state: GameState, manager: ResourceManager) -> ActionResult:
        loc = state.location
        if action.to_screen is loc.current_screen:
            return _fail(f"Already at {action.to_screen.value}")
        if not can_access_screen(state, action.to_screen):
            return _fail(f"{action.to_screen.value} is locked")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        loc.screen_history.append(loc.current_screen)
        loc.current_screen = action.to_screen
        loc.time_on_screen = 0
        loc.navigation_reason = action.reason
        return self._done(state, "move", f"Moved to {action.to_screen.value}", screen=action.to_screen.value)

    # --- tower and town ---------------------------------------------
    def _catch_seeds(self, action: act.CatchSeeds, state: GameState, manager: ResourceManager) -> ActionResult:
        if state.location.current_screen is not Screen.TOWER:
            return _fail("Seeds can only be caught at the tower")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        rate = self.param("tower.catchMechanics.manualCatchRate", 2)
        duration = self.param("tower.catchMechanics.catchDuration", 5)
        caught = int(rate * duration * (1 + 0.25 * (tower_reach(state) - 1)))
        for _ in range(caught):
            manager.add_seeds(seed_with_fewest(state, self.data), 1)
        return self._done(state, "catch_seeds", f"Caught {caught} seeds", count=caught)

    def _purchase(self, action: act.Purchase, state: GameState, manager: ResourceManager) -> ActionResult:
        item = self.data.get_item_by_id(action.item_id)
        if item is None:
            return _fail(f"Unknown item {action.item_id}")
        prog, inv = state.progression, state.inventory
        missing = missing_prerequisites(state, item.prerequisites)
        if missing:
            return _fail(f"Missing prerequisites: {', '.join(missing)}")
        if item.kind != "material" and (
            item.id in prog.unlocked_upgrades or item.id in inv.blueprints or item.id in inv.tools
        ):
            return _fail(f"{item.id} already owned")
        error = self._pay(action, manager)
        if error:
            return _fail(error)

        importance = Importance.MEDIUM
        if item.kind == "blueprint":
            inv.blueprints[item.id] = BlueprintState(item.id)
            importance = Importance.HIGH
        elif item.kind == "tool":
            inv.tools[item.id] = Equipment(item.id)
        elif item.kind == "material":
            for name, amount in item.materials_gain.items():
                manager.add_material(name, amount)
            importance = Importance.LOW
        else:
            prog.unlocked_upgrades.add(item.id)
        return self._done(state, "purchase", f"Bought {item.name} for {action.gold_cost} gold",
                          importance, item=item.id)

    def _train(self, action: act.Train, state: GameState, manager: ResourceManager) -> ActionResult:
        prog = state.progression
        skill = self.data.get_item_by_id(action.skill_id)
        if skill is None:
            return _fail(f"Unknown skill {action.skill_id}")
        if skill.id in prog.unlocked_upgrades:
            return _fail(f"{skill.id} already trained")
        missing = missing_prerequisites(state, skill.prerequisites)
        if missing:
            return _fail(f"Missing prerequisites: {', '.join(missing)}")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        prog.unlocked_upgrades.add(skill.id)
        if skill.id == "stamina":
            state.resources.energy.max += STAMINA_ENERGY_BONUS
        elif skill.id == "carry_capacity":
            state.inventory.capacity += CARRY_CAPACITY_BONUS
        self._gain_xp(state, action.reward.experience)
        return self._done(state, "train", f"Trained {skill.name}", Importance.MEDIUM, skill=skill.id)

    def _sell_material(self, action: act.SellMaterial, state: GameState, manager: ResourceManager) -> ActionResult:
        if action.material not in MATERIAL_VALUES:
            return _fail(f"{action.material} cannot be sold")
        if state.resources.materials.get(action.material, 0) < action.amount:
            return _fail(f"Not enough {action.material}")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        gold = action.amount * MATERIAL_VALUES[action.material]
        if not action.material_costs:
            manager.consume_materials({action.material: action.amount})
        manager.add_gold(gold)
        return self._done(state, "sell_material", f"Sold {action.amount} {action.material} for {gold} gold")

    # --- adventure --------------------------------------------------
    def _adventure(self, action: act.Adventure, state: GameState, manager: ResourceManager) -> ActionResult:
        route = self.data.get_item_by_id(action.route_id)
        if route is None:
            return _fail(f"Unknown route {action.route_id}")
        missing = missing_prerequisites(state, route.prerequisites)
        if missing:
            return _fail(f"Missing prerequisites: {', '.join(missing)}")
        error = self._pay(action, manager)
        if error:
            return _fail(error)

        variant = route_variant(route, action.length)
        inv, prog, helpers = state.inventory, state.progression, state.helpers
        outcome = self.combat(
            variant, inv.weapons, inv.armor, prog.hero_level, helpers.gnomes, self.parameters, self.rng
        )
        state.processes.adventure = AdventureState(
            adventure_id=variant.id,
            started_at=state.time.total_minutes,
            duration=variant.time,
            progress=1.0,
            gold_reward=outcome.total_gold,
            xp_reward=outcome.total_xp,
            is_complete=True,
        )
        for weapon in inv.weapons.values():
            weapon.durability = max(0, weapon.durability - WEAPON_WEAR_PER_ADVENTURE)

        if not outcome.success:
            return self._done(state, "adventure_failed", f"Retreated from {variant.name}",
                              Importance.HIGH, route=variant.id)

        manager.add_gold(outcome.total_gold)
        self._gain_xp(state, outcome.total_xp)
        for name, amount in outcome.loot.items():
            manager.add_material(name, amount)
        prog.completed_adventures.add(route.id)
        gnome_id = route.unlocks
        if gnome_id and gnome_id not in helpers.rescue_queue and state.gnome(gnome_id) is None:
            helpers.rescue_queue.append(gnome_id)
        return self._done(
            state, "adventure_complete",
            f"Completed {variant.name}: {outcome.total_gold} gold, {outcome.total_xp} xp",
            Importance.HIGH, route=variant.id, gold=outcome.total_gold,
        )

    # --- building and forge -----------------------------------------
    def _build(self, action: act.Build, state: GameState, manager: ResourceManager) -> ActionResult:
        blueprint = state.inventory.blueprints.get(action.blueprint_id)
        if blueprint is None:
            return _fail(f"{action.blueprint_id} not purchased")
        if blueprint.is_built:
            return _fail(f"{action.blueprint_id} already built")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        blueprint.is_built = True
        item = self.data.get_item_by_id(action.blueprint_id)
        unlocks = item.unlocks if item else None
        if unlocks == "housing":
            state.helpers.housing_capacity += HOUSING_PER_HUT
        elif unlocks:
            state.progression.unlocked_areas.add(unlocks)
        return self._done(state, "build", f"Built {item.name if item else action.blueprint_id}",
                          Importance.HIGH, blueprint=action.blueprint_id)

    def _craft(self, action: act.Craft, state: GameState, manager: ResourceManager) -> ActionResult:
        queue = state.processes.crafting
        recipe = self.data.get_item_by_id(action.item_id)
        if recipe is None:
            return _fail(f"Unknown recipe {action.item_id}")
        if len(queue) >= self.param("forge.automation.maxConcurrent", 3):
            return _fail("Forge is full")
        if any(job.item_id == recipe.id for job in queue):
            return _fail(f"{recipe.id} already queued")
        missing = missing_prerequisites(state, recipe.prerequisites)
        if missing:
            return _fail(f"Missing prerequisites: {', '.join(missing)}")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        queue.append(
            CraftingState(
                item_id=recipe.id,
                started_at=state.time.total_minutes,
                duration=max(1, recipe.time),
                heat=FORGE_STOKE_HEAT,
            )
        )
        return self._done(state, "craft", f"Started forging {recipe.name}", item=recipe.id)

    def _stoke(self, action: act.Stoke, state: GameState, manager: ResourceManager) -> ActionResult:
        queue = state.processes.crafting
        if not queue:
            return _fail("Nothing in the forge")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        for job in queue:
            job.heat = min(FORGE_MAX_HEAT, job.heat + FORGE_STOKE_HEAT)
        return self._done(state, "stoke", f"Stoked the forge to {queue[0].heat:.0f}")

    def _mine(self, action: act.Mine, state: GameState, manager: ResourceManager) -> ActionResult:
        mining = state.processes.mining
        if mining is not None and mining.is_active:
            return _fail("Already mining")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        if mining is None:
            mining = state.processes.mining = MiningState()
        mining.is_active = True
        mining.session_minutes = action.session_minutes
        return self._done(state, "mine", f"Started mining at {mining.depth:.0f}m", depth=mining.depth)

    # --- helpers ----------------------------------------------------
    def _assign_role(self, action: act.AssignRole, state: GameState, manager: ResourceManager) -> ActionResult:
        gnome = state.gnome(action.gnome_id)
        if gnome is None:
            return _fail(f"No gnome {action.gnome_id}")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        gnome.role = action.role
        gnome.is_assigned = True
        return self._done(state, "assign_role", f"{gnome.name} is now a {action.role}", gnome=gnome.id)

    def _train_helper(self, action: act.TrainHelper, state: GameState, manager: ResourceManager) -> ActionResult:
        gnome = state.gnome(action.gnome_id)
        if gnome is None:
            return _fail(f"No gnome {action.gnome_id}")
        if gnome.level >= self.param("helpers.training.stopAtLevel", 10):
            return _fail(f"{gnome.name} is fully trained")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        gnome.level += 1
        gnome.efficiency = min(2.0, 1 + gnome.level * 0.1)
        gnome.experience += action.reward.experience
        return self._done(state, "train_helper", f"{gnome.name} reached level {gnome.level}", gnome=gnome.id)

    def _rescue(self, action: act.Rescue, state: GameState, manager: ResourceManager) -> ActionResult:
        helpers = state.helpers
        if action.gnome_id not in helpers.rescue_queue:
            return _fail(f"{action.gnome_id} is not waiting for rescue")
        if len(helpers.gnomes) >= helpers.housing_capacity:
            return _fail("No housing for another gnome")
        if state.resources.energy.current < RESCUE_MIN_ENERGY:
            return _fail("Too tired to rescue")
        error = self._pay(action, manager)
        if error:
            return _fail(error)
        helpers.rescue_queue.remove(action.gnome_id)
        name = action.gnome_id.replace("_", " ").title()
        helpers.gnomes.append(GnomeState(id=action.gnome_id, name=name))
        return self._done(state, "rescue", f"Rescued {name}", Importance.HIGH, gnome=action.gnome_id)

    def _wait(self, action: act.Wait, state: GameState, manager: ResourceManager) -> ActionResult:
        return self._done(state, "wait", "Nothing worth doing")
