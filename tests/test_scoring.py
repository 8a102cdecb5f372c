import random

import pytest

from balancesim import actions as act
from balancesim.config import get_persona, set_parameter
from balancesim.constants import Screen, Urgency
from balancesim.personas import create_strategy
from balancesim.scoring import ActionScorer, seed_shortage, urgency_for
from balancesim.state import CropState


def _scorer(params, randomness=0.0, persona="casual"):
    set_parameter(params, "decisions.globalBehavior.randomness", randomness)
    return ActionScorer(params, create_strategy(get_persona(persona)), random.Random(1))


def test_urgency_bands():
    assert urgency_for(950) is Urgency.EMERGENCY
    assert urgency_for(500) is Urgency.CRITICAL
    assert urgency_for(250) is Urgency.HIGH
    assert urgency_for(100) is Urgency.NORMAL
    assert urgency_for(10) is Urgency.LOW


def test_harvest_outranks_plant(params, state):
    scorer = _scorer(params)
    harvest = act.Harvest(screen=Screen.FARM, plot_id="plot_1", energy_cost=3, reward=act.Reward(gold=5))
    plant = act.Plant(screen=Screen.FARM, crop_id="turnip", energy_cost=8, reward=act.Reward(gold=5))
    assert scorer.score(harvest, state) > scorer.score(plant, state)


def test_low_energy_bonus_for_harvest(params, state):
    scorer = _scorer(params)
    harvest = act.Harvest(screen=Screen.FARM, plot_id="plot_1")
    rested = scorer.base_score(harvest, state)
    state.resources.energy.current = 10
    assert scorer.base_score(harvest, state) == rested + 20


def test_move_base_score_uses_need(params, state):
    scorer = _scorer(params)
    move = act.Move(screen=Screen.FARM, to_screen=Screen.TOWN, need=7)
    assert scorer.base_score(move, state) == 20 + 14


def test_jitter_stays_within_randomness(params, state):
    scorer = _scorer(params, randomness=0.1)
    pump = act.Pump(screen=Screen.FARM, energy_cost=2, reward=act.Reward(water=2))
    for _ in range(50):
        b = scorer.breakdown(pump, state)
        assert b.persona * 0.95 <= b.final <= b.persona * 1.05


def test_score_has_floor_of_one(params, state):
    scorer = _scorer(params)
    adventure = act.Adventure(
        screen=Screen.ADVENTURE, route_id="mountain_pass", energy_cost=200, risk=10.0
    )
    assert scorer.score(adventure, state) == 1.0


def test_riskier_adventure_scores_lower(params, state):
    scorer = _scorer(params)
    safe = act.Adventure(screen=Screen.ADVENTURE, route_id="meadow_path", energy_cost=20, risk=0.1)
    risky = act.Adventure(screen=Screen.ADVENTURE, route_id="meadow_path", length="long", energy_cost=20, risk=0.9)
    assert scorer.score(safe, state) > scorer.score(risky, state)


def test_seed_catching_tiers(params, state):
    scorer = _scorer(params)
    catch = act.CatchSeeds(screen=Screen.TOWER)
    state.progression.farm_plots = 13
    state.location.current_screen = Screen.TOWER
    state.resources.seeds = {"turnip": 3}
    assert seed_shortage(state) == "critical"
    assert scorer.base_score(catch, state) == 9999
    state.resources.seeds = {"turnip": 15}
    assert seed_shortage(state) == "low"
    assert scorer.base_score(catch, state) == 750
    state.location.current_screen = Screen.FARM
    assert scorer.base_score(catch, state) == 400
    state.resources.seeds = {"turnip": 30}
    assert seed_shortage(state) is None
    assert scorer.base_score(catch, state) == 200
    state.resources.seeds = {"turnip": 40}
    assert scorer.base_score(catch, state) == 45


def test_navigation_during_seed_shortage(params, state):
    scorer = _scorer(params)
    state.progression.farm_plots = 13
    state.resources.seeds = {"turnip": 3}
    to_tower = act.Move(screen=Screen.FARM, to_screen=Screen.TOWER, need=10)
    assert scorer.base_score(to_tower, state) == 998
    state.location.current_screen = Screen.TOWER
    to_farm = act.Move(screen=Screen.TOWER, to_screen=Screen.FARM, need=8)
    assert scorer.base_score(to_farm, state) == 1
    state.resources.seeds = {"turnip": 15}
    assert scorer.base_score(to_farm, state) == 5


def test_catching_outranks_leaving_the_tower(params, state):
    scorer = _scorer(params, randomness=0.1, persona="speedrunner")
    state.progression.farm_plots = 13
    state.resources.seeds = {"turnip": 3}
    state.location.current_screen = Screen.TOWER
    catch = act.CatchSeeds(screen=Screen.TOWER, energy_cost=5, reward=act.Reward(seeds={"any": 10}))
    leave = act.Move(screen=Screen.TOWER, to_screen=Screen.FARM, need=30)
    assert scorer.score(catch, state) > scorer.score(leave, state)


def test_build_defaults_to_high_priority(params, state):
    scorer = _scorer(params)
    build = act.Build(screen=Screen.FARM, blueprint_id="blueprint_tower")
    assert scorer.base_score(build, state) == 900


def test_urgency_multiplier(params, state):
    scorer = _scorer(params)
    harvest = act.Harvest(screen=Screen.FARM, plot_id="plot_1")
    pump = act.Pump(screen=Screen.FARM)
    water = act.Water(screen=Screen.FARM)
    adventure = act.Adventure(screen=Screen.ADVENTURE, route_id="meadow_path")
    assert scorer.urgency_multiplier(harvest, state) == 1.0
    assert scorer.urgency_multiplier(pump, state) == 1.0
    assert scorer.urgency_multiplier(adventure, state) == 1.0

    state.resources.energy.current = 10
    state.resources.water.current = state.resources.water.max * 0.2
    state.resources.gold = 40
    assert scorer.urgency_multiplier(harvest, state) == 1.5
    assert scorer.urgency_multiplier(pump, state) == 1.3
    assert scorer.urgency_multiplier(water, state) == 1.3
    assert scorer.urgency_multiplier(adventure, state) == 1.2


def test_plant_urgency_follows_plot_use(params, state):
    scorer = _scorer(params)
    plant = act.Plant(screen=Screen.FARM, crop_id="turnip")
    assert scorer.urgency_multiplier(plant, state) == 1.4
    state.processes.crops = [CropState(f"plot_{i}", "turnip", 470, 10) for i in (1, 2)]
    assert scorer.urgency_multiplier(plant, state) == 1.0


def test_breakdown_applies_urgency_to_base(params, state):
    scorer = _scorer(params)
    state.resources.energy.current = 10
    harvest = act.Harvest(screen=Screen.FARM, plot_id="plot_1")
    b = scorer.breakdown(harvest, state)
    assert b.urgency == 1.5
    expected = b.base * 1.5 + 0.7 * b.immediate + 0.3 * b.future - 0.5 * b.risk + b.efficiency
    assert b.persona == pytest.approx(scorer.strategy.adjust_score(harvest, expected, state))
