"""Per-tick decision making for the simulated player.

The engine asks :class:`DecisionEngine` for at most
:data:`~balancesim.constants.MAX_ACTIONS_PER_TICK` actions each tick. The
pipeline is: persona check-in gate, candidate generation, filtering, scoring,
then a stable top-N selection.

Screen evaluators only look at the screen the player is on when the tick
starts. If a ``move`` is selected together with screen actions, those screen
actions still execute in the same tick against the screen the player just
left. This one-tick latency is intentional and covered by tests.
"""
from __future__ import annotations

import logging
import random
from typing import Any, Callable, Dict, List, Mapping, Optional

from . import actions as act
from .config import Persona, get_parameter_or
from .constants import (
    BASE_PUMP_RATE,
    BASE_WATER_AMOUNT,
    GAME_SCREENS,
    HelperRole,
    MATERIAL_VALUES,
    MAX_ACTIONS_PER_TICK,
    PUMP_RATES,
    Screen,
    VICTORY_FARM_PLOTS,
    WATERING_TOOLS,
)
from .filters import filter_actions
from .gamedata import GameDataStore, GameItem, ROUTE_LENGTHS, route_variant
from .personas import create_strategy
from .prerequisites import can_access_screen, has_tool, missing_prerequisites
from .scoring import ActionScorer, seed_shortage
from .state import CropState, GameState

logger = logging.getLogger(__name__)

HARVEST_ENERGY = 3
PLANT_ENERGY = 8
WATER_ENERGY = 1
PUMP_ENERGY = 2
EMERGENCY_PUMP_ENERGY = 5
CATCH_ENERGY = 5
MINE_ENERGY = 15
STOKE_ENERGY = 5
RESCUE_ENERGY = 10
ASSIGN_ENERGY = 5
TRAIN_HELPER_ENERGY = 5
CRITICAL_CROP_WATER = 0.2


def pump_rate(state: GameState) -> int:
    for upgrade, rate in PUMP_RATES:
        if upgrade in state.progression.unlocked_upgrades:
            return rate
    return BASE_PUMP_RATE


def watering_amount(state: GameState) -> float:
    for tool, amount in WATERING_TOOLS:
        if state.inventory.has_equipped_tool(tool):
            return amount
    return BASE_WATER_AMOUNT


def tower_reach(state: GameState) -> int:
    reach = 1
    for upgrade in state.progression.unlocked_upgrades:
        if upgrade.startswith("tower_reach_"):
            try:
                reach = max(reach, int(upgrade.rsplit("_", 1)[1]))
            except ValueError:
                continue
    return reach


def available_crops(state: GameState, data: GameDataStore) -> List[GameItem]:
    return [
        item
        for item in data.category("crop")
        if not missing_prerequisites(state, item.prerequisites)
    ]


def select_crop_to_plant(
    state: GameState, data: GameDataStore, strategy: str = "highest-value"
) -> Optional[str]:
    """Pick a seed to plant; ``None`` if no seeds are held."""
    held = [(seed, count) for seed, count in state.resources.seeds.items() if count > 0]
    if not held:
        return None
    if strategy == "highest-value":
        def value(entry):
            item = data.get_item_by_id(entry[0])
            if item is None or missing_prerequisites(state, item.prerequisites):
                return -1
            return item.gold_reward

        best = max(held, key=value)
        if value(best) >= 0:
            return best[0]
    return max(held, key=lambda entry: entry[1])[0]


class DecisionEngine:
    """Generates, filters, scores and selects actions for one persona."""

    def __init__(
        self,
        parameters: Mapping[str, Any],
        persona: Persona,
        data: GameDataStore,
        rng: random.Random,
    ) -> None:
        self.parameters = parameters
        self.persona = persona
        self.data = data
        self.rng = rng
        self.strategy = create_strategy(persona)
        self.scorer = ActionScorer(parameters, self.strategy, rng)
        self.last_check_in: Optional[int] = None
        self.last_candidates: List[act.Action] = []
        self._evaluators: Dict[Screen, Callable[[GameState], List[act.Action]]] = {
            Screen.FARM: self.evaluate_farm,
            Screen.TOWER: self.evaluate_tower,
            Screen.TOWN: self.evaluate_town,
            Screen.ADVENTURE: self.evaluate_adventure,
            Screen.FORGE: self.evaluate_forge,
            Screen.MINE: self.evaluate_mine,
        }

    def param(self, path: str, default: Any) -> Any:
        return get_parameter_or(self.parameters, path, default)

    def _seed_shortage(self, state: GameState) -> Optional[str]:
        return seed_shortage(
            state,
            self.param("tower.decisionLogic.seedTargetMultiplier", 2),
            self.param("tower.decisionLogic.minSeeds", 6),
        )

    # --- pipeline ---------------------------------------------------
    def get_next_actions(self, state: GameState) -> List[act.Action]:
        if not self.strategy.should_check_in(state, self.last_check_in, self.rng):
            return []
        self.last_check_in = state.time.total_minutes

        candidates = filter_actions(self.generate_candidates(state), state)
        for action in candidates:
            action.score = self.scorer.score(action, state)
        # sorted() is stable so equal scores keep generation order
        ranked = sorted(candidates, key=lambda a: a.score, reverse=True)
        self.last_candidates = ranked
        selected = ranked[:MAX_ACTIONS_PER_TICK]
        if selected:
            logger.debug(
                "Day %d %s chose %s",
                state.time.day,
                state.time.clock,
                ", ".join(f"{a.id}={a.score:.1f}" for a in selected),
            )
        return selected

    def generate_candidates(self, state: GameState) -> List[act.Action]:
        candidates: List[act.Action] = []
        if self.param("decisions.interrupts.enabled", True):
            candidates.extend(self.evaluate_emergencies(state))
        evaluator = self._evaluators.get(state.location.current_screen)
        if evaluator is not None:
            candidates.extend(evaluator(state))
        candidates.extend(self.evaluate_helpers(state))
        move = self.evaluate_navigation(state)
        if move is not None:
            candidates.append(move)
        if not candidates:
            candidates.append(act.Wait(screen=state.location.current_screen))
        # emergencies and screen evaluators can propose the same action
        unique: Dict[str, act.Action] = {}
        for action in candidates:
            unique.setdefault(action.id, action)
        return list(unique.values())

    # --- builders ---------------------------------------------------
    def _harvest(self, state: GameState, crop: CropState) -> act.Harvest:
        item = self.data.get_item_by_id(crop.crop_id)
        gold = item.gold_reward if item and crop.ready_to_harvest else 0
        return act.Harvest(
            screen=Screen.FARM,
            plot_id=crop.plot_id,
            energy_cost=HARVEST_ENERGY,
            reward=act.Reward(gold=gold, experience=2),
            description=f"Harvest {crop.crop_id} in {crop.plot_id}",
        )

    def _pump(self, state: GameState, energy: float) -> act.Pump:
        return act.Pump(
            screen=Screen.FARM,
            energy_cost=energy,
            reward=act.Reward(water=pump_rate(state)),
        )

    def _water(self, state: GameState) -> act.Water:
        amount = watering_amount(state)
        return act.Water(
            screen=Screen.FARM,
            amount=amount,
            energy_cost=WATER_ENERGY,
            reward=act.Reward(water=amount),
        )

    def _move(self, screen: Screen, need: float, reason: str) -> act.Move:
        return act.Move(screen=screen, to_screen=screen, need=need, reason=reason)

    # --- emergencies ------------------------------------------------
    def evaluate_emergencies(self, state: GameState) -> List[act.Action]:
        res = state.resources
        found: List[act.Action] = []
        threshold = self.param("decisions.interrupts.emergencyMode.threshold", 10)

        if res.total_seeds < state.progression.farm_plots:
            if state.location.current_screen is Screen.TOWER:
                found.append(self._catch_seeds(state))
            else:
                found.append(self._move(Screen.TOWER, 10, "seed emergency"))

        if res.water.max and res.water.current < res.water.max * 0.1:
            pump = self._pump(state, EMERGENCY_PUMP_ENERGY)
            pump.reward.water = max(pump.reward.water, 20)
            found.append(pump)

        if res.energy.current < threshold:
            found.extend(self._harvest(state, c) for c in state.ready_crops())

        dry = [c for c in state.processes.crops if c.water_level < CRITICAL_CROP_WATER and not c.ready_to_harvest]
        if dry and state.automation.watering_enabled:
            found.append(self._water(state))
        return found

    # --- screens ----------------------------------------------------
    def evaluate_farm(self, state: GameState) -> List[act.Action]:
        auto = state.automation
        res = state.resources
        found: List[act.Action] = []

        if auto.harvesting_enabled:
            for crop in state.processes.crops:
                if crop.ready_to_harvest or crop.is_withered:
                    found.append(self._harvest(state, crop))

        if auto.watering_enabled and any(
            c.water_level < auto.watering_threshold and not c.ready_to_harvest
            for c in state.processes.crops
        ):
            found.append(self._water(state))

        if auto.planting_enabled and state.empty_plots > 0 and res.energy.current > auto.energy_reserve:
            crop_id = select_crop_to_plant(state, self.data, auto.planting_strategy)
            if crop_id is not None:
                item = self.data.get_item_by_id(crop_id)
                found.append(
                    act.Plant(
                        screen=Screen.FARM,
                        crop_id=crop_id,
                        energy_cost=PLANT_ENERGY,
                        reward=act.Reward(gold=item.gold_reward if item else 0),
                        description=f"Plant {crop_id}",
                    )
                )

        if res.water.max and res.water.current < res.water.max * 0.3:
            found.append(self._pump(state, PUMP_ENERGY))

        found.extend(self._cleanup_candidates(state))

        for blueprint in state.inventory.blueprints.values():
            if blueprint.is_built:
                continue
            item = self.data.get_item_by_id(blueprint.id)
            if item is None:
                continue
            found.append(
                act.Build(
                    screen=Screen.FARM,
                    blueprint_id=blueprint.id,
                    energy_cost=item.energy_cost,
                    material_costs=dict(item.materials_cost),
                    duration=item.time,
                    description=f"Build {item.name}",
                )
            )
        return found

    def should_consider_cleanup(self, state: GameState, item: GameItem) -> bool:
        prog = state.progression
        energy_cost = self._cleanup_energy(item)
        if state.resources.energy.current < energy_cost + 20:
            return False
        if not item.repeatable and item.id in prog.completed_cleanups:
            return False
        if missing_prerequisites(state, item.prerequisites):
            return False
        if not has_tool(state, item.tool_required):
            return False
        if item.plots_added > 0:
            return prog.farm_plots < VICTORY_FARM_PLOTS
        # material-only cleanups when one of their materials runs short
        return any(
            state.resources.materials.get(name, 0) < 20 for name in item.materials_gain
        )

    def _cleanup_energy(self, item: GameItem) -> float:
        return item.energy_cost * self.param("farm.landExpansion.cleanupEnergyMultiplier", 1.0)

    def _cleanup_candidates(self, state: GameState) -> List[act.Action]:
        items = self.data.category("cleanup")
        order = state.priorities.cleanup_order
        if order:
            items.sort(key=lambda i: order.index(i.id) if i.id in order else len(order))
        found = []
        for item in items:
            if not self.should_consider_cleanup(state, item):
                continue
            found.append(
                act.Cleanup(
                    screen=Screen.FARM,
                    cleanup_id=item.id,
                    plots_added=item.plots_added,
                    repeatable=item.repeatable,
                    tool_required=item.tool_required,
                    energy_cost=self._cleanup_energy(item),
                    duration=item.time,
                    prerequisites=item.prerequisites,
                    reward=act.Reward(
                        plots=item.plots_added,
                        materials=dict(item.materials_gain),
                        experience=item.energy_cost,
                    ),
                    description=f"Clear {item.name}",
                )
            )
            if len(found) >= 2:
                break
        return found

    def _catch_seeds(self, state: GameState) -> act.CatchSeeds:
        rate = self.param("tower.catchMechanics.manualCatchRate", 2)
        duration = self.param("tower.catchMechanics.catchDuration", 5)
        expected = int(rate * duration * (1 + 0.25 * (tower_reach(state) - 1)))
        return act.CatchSeeds(
            screen=Screen.TOWER,
            energy_cost=CATCH_ENERGY,
            duration=duration,
            reward=act.Reward(seeds={"any": expected}),
        )

    def evaluate_tower(self, state: GameState) -> List[act.Action]:
        res = state.resources
        found: List[act.Action] = []
        plots = state.progression.farm_plots
        multiplier = self.param("tower.decisionLogic.seedTargetMultiplier", 2)
        minimum = self.param("tower.decisionLogic.minSeeds", 6)
        if res.total_seeds >= max(multiplier * plots, minimum):
            found.append(self._move(Screen.FARM, 8, "enough seeds"))
        if res.energy.current > 30:
            found.append(self._catch_seeds(state))
        found.extend(self._vendor_candidates(state, "tower"))
        return found

    def _vendor_candidates(self, state: GameState, feature: str) -> List[act.Action]:
        inv = state.inventory
        prog = state.progression
        threshold = self.param("town.purchasingBehavior.buyThreshold", 1.2)
        items = list(self.data.items_by_game_feature.get(feature, ()))
        order = state.priorities.vendor_priority
        if order:
            items.sort(key=lambda i: order.index(i.id) if i.id in order else len(order))
        found: List[act.Action] = []
        for item in items:
            if item.category != "vendor":
                continue
            if item.kind == "material":
                continue
            if item.id in prog.unlocked_upgrades or item.id in inv.blueprints or item.id in inv.tools:
                continue
            if state.resources.gold < item.gold_cost * threshold:
                continue
            found.append(
                act.Purchase(
                    screen=Screen(feature),
                    item_id=item.id,
                    kind=item.kind,
                    gold_cost=item.gold_cost,
                    prerequisites=item.prerequisites,
                    description=f"Buy {item.name}",
                )
            )
            if len(found) >= 3:
                break
        return found

    def evaluate_town(self, state: GameState) -> List[act.Action]:
        res = state.resources
        found: List[act.Action] = []

        if any(not b.is_built for b in state.inventory.blueprints.values()):
            found.append(self._move(Screen.FARM, 6, "blueprint to build"))

        found.extend(self._vendor_candidates(state, "town"))

        wood_threshold = self.param("town.materialTrading.woodBuyingThreshold", 10)
        if self.param("town.materialTrading.emergencyBuying", True) and res.materials.get("wood", 0) < wood_threshold:
            bundle = self.data.get_item_by_id("emergency_wood_bundle")
            if bundle is not None:
                found.append(
                    act.Purchase(
                        screen=Screen.TOWN,
                        item_id=bundle.id,
                        kind=bundle.kind,
                        gold_cost=bundle.gold_cost,
                        reward=act.Reward(materials=dict(bundle.materials_gain)),
                    )
                )

        reserve = self.param("town.skillTraining.trainingEnergyReserve", 10)
        for skill in self.data.category("training"):
            if skill.id in state.progression.unlocked_upgrades:
                continue
            if res.energy.current < skill.energy_cost + reserve:
                continue
            found.append(
                act.Train(
                    screen=Screen.TOWN,
                    skill_id=skill.id,
                    energy_cost=skill.energy_cost,
                    gold_cost=skill.gold_cost,
                    duration=skill.time,
                    prerequisites=skill.prerequisites,
                    reward=act.Reward(experience=skill.xp_reward),
                )
            )

        if self.param("town.materialTrading.enableTrading", False):
            limit = self.param("town.materialTrading.tradeThreshold", 50)
            for name, amount in res.materials.items():
                if amount > limit and name in MATERIAL_VALUES:
                    excess = amount - limit
                    found.append(
                        act.SellMaterial(
                            screen=Screen.TOWN,
                            material=name,
                            amount=excess,
                            material_costs={name: excess},
                            reward=act.Reward(gold=excess * MATERIAL_VALUES[name]),
                        )
                    )
        return found

    def evaluate_adventure(self, state: GameState) -> List[act.Action]:
        energy = state.resources.energy.current
        reserve = self.param("adventure.routeSelection.energyReserve", 30)
        routes = self.data.category("route")
        order = self.param("adventure.routeSelection.priorityOrder", []) or state.priorities.adventure_priority
        if order:
            routes.sort(key=lambda r: order.index(r.id) if r.id in order else len(order))
        found: List[act.Action] = []
        for route in routes:
            for length in ROUTE_LENGTHS:
                variant = route_variant(route, length)
                if energy < reserve + variant.energy_cost:
                    continue
                if variant.risk > self.persona.risk_tolerance:
                    continue
                found.append(
                    act.Adventure(
                        screen=Screen.ADVENTURE,
                        route_id=route.id,
                        length=length,
                        energy_cost=variant.energy_cost,
                        duration=variant.time,
                        prerequisites=route.prerequisites,
                        risk=variant.risk,
                        reward=act.Reward(gold=variant.gold_reward, experience=variant.xp_reward),
                    )
                )
        if not found:
            found.append(self._move(Screen.FARM, 4, "too tired for adventures"))
        return found

    def evaluate_forge(self, state: GameState) -> List[act.Action]:
        queue = state.processes.crafting
        inv = state.inventory
        found: List[act.Action] = []
        max_queue = self.param("forge.automation.maxConcurrent", 3)
        if len(queue) < max_queue:
            queued = {c.item_id for c in queue}
            for recipe in self.data.category("recipe"):
                if recipe.id in queued:
                    continue
                if recipe.id in inv.tools or recipe.id in inv.weapons or recipe.id in inv.armor:
                    continue
                found.append(
                    act.Craft(
                        screen=Screen.FORGE,
                        item_id=recipe.id,
                        kind=recipe.kind,
                        energy_cost=recipe.energy_cost,
                        material_costs=dict(recipe.materials_cost),
                        duration=recipe.time,
                        prerequisites=recipe.prerequisites,
                    )
                )
                if len(found) >= 2:
                    break
        minimum_heat = self.param("forge.heatManagement.minimumHeat", 30)
        wood = self.param("forge.heatManagement.stokeWoodCost", 5)
        if queue and queue[0].heat < minimum_heat:
            found.append(
                act.Stoke(
                    screen=Screen.FORGE,
                    energy_cost=STOKE_ENERGY,
                    material_costs={"wood": wood},
                )
            )
        return found

    def evaluate_mine(self, state: GameState) -> List[act.Action]:
        mining = state.processes.mining
        if mining is not None and mining.is_active:
            return []
        reserve = self.param("mine.decisionLogic.energyReserve", 40)
        target = self.param("mine.decisionLogic.materialTarget", 10)
        session = self.param("mine.decisionLogic.sessionDuration", 5)
        res = state.resources
        if res.energy.current <= reserve + 30:
            return [self._move(Screen.FARM, 4, "too tired to mine")]
        if all(res.materials.get(m, 0) >= target for m in ("stone", "copper", "iron")):
            return []
        return [
            act.Mine(
                screen=Screen.MINE,
                session_minutes=session,
                energy_cost=MINE_ENERGY,
                duration=session,
                reward=act.Reward(materials={"stone": session}),
            )
        ]

    # --- helpers ----------------------------------------------------
    def _next_role(self, state: GameState) -> str:
        distribution = self.param("helpers.roleAssignment.roleDistribution", {})
        order = self.param("helpers.acquisition.rescueOrder", [r.value for r in HelperRole])
        counts: Dict[str, int] = {}
        for gnome in state.helpers.gnomes:
            if gnome.role:
                counts[gnome.role] = counts.get(gnome.role, 0) + 1
        for role in order:
            if counts.get(role, 0) < distribution.get(role, 1):
                return role
        return order[0] if order else HelperRole.WATERER.value

    def evaluate_helpers(self, state: GameState) -> List[act.Action]:
        helpers = state.helpers
        screen = state.location.current_screen
        found: List[act.Action] = []

        if self.param("helpers.acquisition.rescuePriority", 0.7) > 0.6:
            for gnome_id in helpers.rescue_queue[:1]:
                found.append(
                    act.Rescue(
                        screen=screen,
                        gnome_id=gnome_id,
                        energy_cost=RESCUE_ENERGY,
                        description=f"Rescue {gnome_id}",
                    )
                )

        for gnome in helpers.gnomes:
            if not gnome.is_assigned:
                found.append(
                    act.AssignRole(
                        screen=screen,
                        gnome_id=gnome.id,
                        role=self._next_role(state),
                        energy_cost=ASSIGN_ENERGY,
                    )
                )
                break

        cost = self.param("helpers.training.trainingCost", 50)
        stop_at = self.param("helpers.training.stopAtLevel", 10)
        if self.param("helpers.training.enableTraining", True) and state.resources.gold >= 2 * cost:
            trainable = [g for g in helpers.gnomes if g.is_assigned and g.level < stop_at]
            if trainable:
                gnome = min(trainable, key=lambda g: g.level)
                found.append(
                    act.TrainHelper(
                        screen=screen,
                        gnome_id=gnome.id,
                        gold_cost=cost,
                        energy_cost=TRAIN_HELPER_ENERGY,
                        reward=act.Reward(experience=25),
                    )
                )

        wanted = len(helpers.gnomes) + len(helpers.rescue_queue)
        hut = self.data.get_item_by_id("blueprint_gnome_hut")
        if hut is not None and wanted > helpers.housing_capacity and hut.id not in state.inventory.blueprints:
            found.append(
                act.Purchase(
                    screen=Screen.TOWN,
                    item_id=hut.id,
                    kind=hut.kind,
                    gold_cost=hut.gold_cost,
                    prerequisites=hut.prerequisites,
                    description="Buy housing for helpers",
                )
            )
        return found

    # --- navigation -------------------------------------------------
    def screen_need(self, state: GameState, screen: Screen) -> float:
        res = state.resources
        if screen is Screen.FARM:
            crops = state.processes.crops
            tasks = sum(1 for c in crops if c.ready_to_harvest or c.is_withered)
            tasks += sum(1 for c in crops if c.water_level < state.automation.watering_threshold)
            tasks += min(state.empty_plots, res.total_seeds)
            tasks += sum(1 for b in state.inventory.blueprints.values() if not b.is_built)
            return tasks * 2
        if screen is Screen.TOWER:
            return 8 if res.total_seeds < 20 else 3
        if screen is Screen.TOWN:
            if res.gold >= 100:
                return 7
            return 5 if res.gold >= 50 else 2
        if screen is Screen.ADVENTURE:
            need = 2.0
            if res.energy.current >= 60:
                need += 4
            if res.gold < 100:
                need += 2
            return need
        if screen is Screen.FORGE:
            craftable = any(
                all(res.materials.get(m, 0) >= n for m, n in r.materials_cost.items())
                for r in self.data.category("recipe")
                if r.id not in state.inventory.tools and r.id not in state.inventory.weapons
            )
            return 6 if craftable else 1
        if screen is Screen.MINE:
            low = any(res.materials.get(m, 0) < 10 for m in ("stone", "copper", "iron"))
            return 6 if low and res.energy.current > 70 else 1
        return 0

    def evaluate_navigation(self, state: GameState) -> Optional[act.Move]:
        current = state.location.current_screen
        if current is Screen.TOWER and self._seed_shortage(state):
            return None
        best: Optional[act.Move] = None
        for screen in GAME_SCREENS:
            if screen is current or not can_access_screen(state, screen):
                continue
            need = self.screen_need(state, screen)
            if need > 3 and (best is None or need > best.need):
                best = self._move(screen, need, f"{screen.value} needs attention")
        return best
