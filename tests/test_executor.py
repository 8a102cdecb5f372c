import copy
import random

import pytest

from balancesim import actions as act
from balancesim.combat import AdventureOutcome
from balancesim.config import get_persona
from balancesim.constants import ActionType, Importance, Phase, Screen
from balancesim.decisions import DecisionEngine
from balancesim.executor import ActionExecutor
from balancesim.state import CropState, Equipment, GnomeState


@pytest.fixture
def executor(data, params):
    return ActionExecutor(data, params, random.Random(42))


def _ready_turnip(plot="plot_1"):
    return CropState(plot, "turnip", 470, 10, growth_progress=1.0, ready_to_harvest=True)


def test_every_action_type_has_a_handler(executor):
    assert executor.handled_types == frozenset(ActionType)


def test_harvest_with_little_energy(executor, state):
    state.resources.energy.current = 5
    state.processes.crops.append(_ready_turnip())
    harvest = act.Harvest(
        screen=Screen.FARM, plot_id="plot_1", energy_cost=3, reward=act.Reward(gold=5, experience=2)
    )
    result = executor.execute(harvest, state)
    assert result.success
    assert state.resources.energy.current == 2
    assert state.processes.crops == []
    assert state.resources.gold == 105
    assert state.progression.experience == 2
    assert [e.type for e in result.events] == ["harvest"]


def test_withered_crop_is_cleared_without_gold(executor, state):
    state.processes.crops.append(CropState("plot_1", "turnip", 470, 10, is_withered=True))
    result = executor.execute(act.Harvest(screen=Screen.FARM, plot_id="plot_1"), state)
    assert result.success
    assert state.resources.gold == 100
    assert result.events[0].type == "clear_withered"


def test_rejected_action_leaves_state_untouched(executor, state):
    state.resources.energy.current = 5
    before = copy.deepcopy(state)
    result = executor.execute(act.Plant(screen=Screen.FARM, crop_id="turnip", energy_cost=8), state)
    assert not result.success
    assert result.events == []
    assert "Insufficient energy" in result.error
    assert state == before


def test_failed_validation_debits_nothing(executor, state):
    before = copy.deepcopy(state)
    result = executor.execute(act.Harvest(screen=Screen.FARM, plot_id="plot_9", energy_cost=3), state)
    assert not result.success
    assert state == before


def test_cleanup_adds_plots_once(executor, data, params, state):
    cleanup = act.Cleanup(
        screen=Screen.FARM,
        cleanup_id="clear_brush",
        plots_added=3,
        energy_cost=25,
        reward=act.Reward(plots=3, materials={"wood": 4}, experience=25),
    )
    result = executor.execute(cleanup, state)
    assert result.success
    assert state.progression.farm_plots == 6
    assert state.progression.available_plots == 6
    assert "clear_brush" in state.progression.completed_cleanups
    assert state.resources.materials["wood"] == 29
    assert result.events[0].importance is Importance.MEDIUM

    decisions = DecisionEngine(params, get_persona("casual"), data, random.Random(1))
    assert not decisions.should_consider_cleanup(state, data.get_item_by_id("clear_brush"))
    assert not executor.execute(cleanup, state).success


def test_cleanup_recomputes_stage_and_phase(executor, state):
    state.progression.farm_plots = 18
    state.progression.available_plots = 18
    assert state.progression.farm_stage == 1
    assert state.progression.current_phase is Phase.TUTORIAL
    cleanup = act.Cleanup(
        screen=Screen.FARM, cleanup_id="clear_brush", plots_added=3, energy_cost=25,
        reward=act.Reward(plots=3),
    )
    result = executor.execute(cleanup, state)
    assert result.success
    assert state.progression.farm_plots == 21
    assert state.progression.farm_stage == 2
    assert state.progression.current_phase is Phase.EARLY
    assert [e.type for e in result.events] == ["cleanup", "phase_change"]


def test_repeatable_cleanup_is_not_marked_complete(executor, state):
    cleanup = act.Cleanup(
        screen=Screen.FARM, cleanup_id="collect_stones", repeatable=True, energy_cost=10,
        reward=act.Reward(materials={"stone": 3}),
    )
    assert executor.execute(cleanup, state).success
    assert executor.execute(cleanup, state).success
    assert state.resources.materials["stone"] == 24
    assert "collect_stones" not in state.progression.completed_cleanups


def test_plant_uses_lowest_free_plot(executor, state):
    state.processes.crops.append(CropState("plot_2", "beet", 470, 15))
    result = executor.execute(act.Plant(screen=Screen.FARM, crop_id="carrot", energy_cost=8), state)
    assert result.success
    crop = state.processes.crops[-1]
    assert crop.plot_id == "plot_1"
    assert crop.growth_time_required == 20
    assert state.resources.seeds["carrot"] == 4
    assert state.resources.energy.current == 92


def test_water_and_pump(executor, state):
    state.processes.crops.append(CropState("plot_1", "beet", 470, 15, water_level=0.1))
    assert executor.execute(act.Water(screen=Screen.FARM, amount=1.0, energy_cost=1), state).success
    assert state.processes.crops[0].water_level == 1.0
    assert state.resources.water.current == 99
    pump = act.Pump(screen=Screen.FARM, energy_cost=2, reward=act.Reward(water=500))
    assert executor.execute(pump, state).success
    assert state.resources.water.current == state.resources.water.max


def test_move_updates_location(executor, state):
    state.progression.hero_level = 3
    state.location.time_on_screen = 30
    result = executor.execute(act.Move(screen=Screen.FARM, to_screen=Screen.TOWN, reason="shopping"), state)
    assert result.success
    assert state.location.current_screen is Screen.TOWN
    assert state.location.screen_history == [Screen.FARM]
    assert state.location.time_on_screen == 0
    assert state.location.navigation_reason == "shopping"


def test_screen_actions_apply_after_same_tick_move(executor, state):
    # actions chosen against the farm still run after a move in the same tick
    state.progression.hero_level = 3
    state.processes.crops.append(_ready_turnip())
    move = act.Move(screen=Screen.FARM, to_screen=Screen.TOWN)
    harvest = act.Harvest(screen=Screen.FARM, plot_id="plot_1", energy_cost=3)
    assert executor.execute(move, state).success
    assert executor.execute(harvest, state).success
    assert state.location.current_screen is Screen.TOWN
    assert state.processes.crops == []


def test_catch_seeds(executor, state):
    state.location.current_screen = Screen.TOWER
    before = state.resources.total_seeds
    assert executor.execute(act.CatchSeeds(screen=Screen.TOWER, energy_cost=5), state).success
    assert state.resources.total_seeds == before + 10
    state.progression.unlocked_upgrades.add("tower_reach_3")
    assert executor.execute(act.CatchSeeds(screen=Screen.TOWER), state).success
    assert state.resources.total_seeds == before + 10 + 15


def test_purchase_and_build_tower(executor, state):
    purchase = act.Purchase(screen=Screen.TOWN, item_id="blueprint_tower", kind="blueprint", gold_cost=25)
    result = executor.execute(purchase, state)
    assert result.success
    assert result.events[0].importance is Importance.HIGH
    assert state.resources.gold == 75
    assert not executor.execute(purchase, state).success

    build = act.Build(
        screen=Screen.FARM, blueprint_id="blueprint_tower", energy_cost=20,
        material_costs={"wood": 10, "stone": 5},
    )
    assert executor.execute(build, state).success
    assert state.inventory.blueprints["blueprint_tower"].is_built
    assert "tower" in state.progression.unlocked_areas
    assert state.resources.materials["wood"] == 15
    assert state.resources.materials["stone"] == 13


def test_purchase_kinds(executor, state):
    state.resources.gold = 1000
    assert executor.execute(act.Purchase(screen=Screen.TOWN, item_id="well_pump_i", gold_cost=100), state).success
    assert "well_pump_i" in state.progression.unlocked_upgrades
    bundle = act.Purchase(screen=Screen.TOWN, item_id="emergency_wood_bundle", gold_cost=20)
    assert executor.execute(bundle, state).success
    assert executor.execute(bundle, state).success
    assert state.resources.materials["wood"] == 45
    locked = act.Purchase(screen=Screen.TOWN, item_id="material_crate_ii", gold_cost=400)
    assert executor.execute(locked, state).error == "Missing prerequisites: material_crate_i"
    assert executor.execute(act.Purchase(screen=Screen.TOWN, item_id="well_pump_ii", gold_cost=300), state).success


def test_successful_adventure(data, params, state):
    def win(route, weapons, armor, level, helpers, parameters, rng):
        return AdventureOutcome(True, total_gold=30, total_xp=40, final_hp=90)

    executor = ActionExecutor(data, params, random.Random(1), combat=win)
    state.inventory.weapons["sword_i"] = Equipment("sword_i")
    adventure = act.Adventure(screen=Screen.ADVENTURE, route_id="meadow_path", energy_cost=20)
    result = executor.execute(adventure, state)
    assert result.success
    assert state.resources.gold == 130
    assert state.progression.experience == 40
    assert "meadow_path" in state.progression.completed_adventures
    assert state.helpers.rescue_queue == ["willow_gnome"]
    assert state.inventory.weapons["sword_i"].durability == 95
    assert state.processes.adventure.is_complete
    assert result.events[0].importance is Importance.HIGH


def test_failed_adventure_gives_nothing(data, params, state):
    def lose(route, weapons, armor, level, helpers, parameters, rng):
        return AdventureOutcome(False)

    executor = ActionExecutor(data, params, random.Random(1), combat=lose)
    result = executor.execute(act.Adventure(screen=Screen.ADVENTURE, route_id="meadow_path", energy_cost=20), state)
    assert result.success
    assert result.events[0].type == "adventure_failed"
    assert result.events[0].importance is Importance.HIGH
    assert state.resources.gold == 100
    assert state.resources.energy.current == 80
    assert not state.progression.completed_adventures
    assert state.helpers.rescue_queue == []


def test_rescue_assign_and_train_helper(executor, state):
    state.helpers.rescue_queue.append("willow_gnome")
    assert executor.execute(act.Rescue(screen=Screen.FARM, gnome_id="willow_gnome", energy_cost=10), state).success
    gnome = state.gnome("willow_gnome")
    assert gnome.name == "Willow Gnome"
    assert state.helpers.rescue_queue == []

    assign = act.AssignRole(screen=Screen.FARM, gnome_id="willow_gnome", role="waterer")
    assert executor.execute(assign, state).success
    assert gnome.is_assigned and gnome.role == "waterer"

    train = act.TrainHelper(screen=Screen.FARM, gnome_id="willow_gnome", gold_cost=50, reward=act.Reward(experience=25))
    assert executor.execute(train, state).success
    assert gnome.level == 2
    assert gnome.efficiency == pytest.approx(1.2)
    assert state.resources.gold == 50


def test_rescue_needs_housing(executor, state):
    state.helpers.gnomes.append(GnomeState("fern_gnome", "Fern Gnome"))
    state.helpers.rescue_queue.append("willow_gnome")
    result = executor.execute(act.Rescue(screen=Screen.FARM, gnome_id="willow_gnome"), state)
    assert not result.success
    assert result.error == "No housing for another gnome"


def test_craft_and_stoke(executor, state):
    state.location.current_screen = Screen.FORGE
    craft = act.Craft(screen=Screen.FORGE, item_id="axe", kind="tool", energy_cost=10,
                      material_costs={"wood": 3, "stone": 2})
    assert executor.execute(craft, state).success
    assert [job.item_id for job in state.processes.crafting] == ["axe"]
    assert not executor.execute(craft, state).success
    state.processes.crafting[0].heat = 0
    assert executor.execute(act.Stoke(screen=Screen.FORGE, material_costs={"wood": 5}), state).success
    assert state.processes.crafting[0].heat == 500
    assert state.resources.materials["wood"] == 17


def test_mine_starts_session(executor, state):
    assert executor.execute(act.Mine(screen=Screen.MINE, session_minutes=5, energy_cost=15), state).success
    mining = state.processes.mining
    assert mining.is_active and mining.session_minutes == 5
    assert not executor.execute(act.Mine(screen=Screen.MINE), state).success


def test_train_skill(executor, state):
    stamina = act.Train(screen=Screen.TOWN, skill_id="stamina", gold_cost=60, energy_cost=15)
    assert not executor.execute(stamina, state).success
    state.progression.hero_level = 3
    assert executor.execute(stamina, state).success
    assert state.resources.energy.max == 120
    assert not executor.execute(stamina, state).success


def test_sell_material(executor, state):
    sell = act.SellMaterial(screen=Screen.TOWN, material="iron", amount=5, material_costs={"iron": 5})
    assert executor.execute(sell, state).success
    assert state.resources.materials["iron"] == 2
    assert state.resources.gold == 125


def test_wait_emits_low_event(executor, state):
    result = executor.execute(act.Wait(screen=Screen.FARM), state)
    assert result.success
    assert result.events[0].importance is Importance.LOW
