import random

import pytest

from balancesim.config import set_parameter
from balancesim.constants import Importance
from balancesim.processors import (
    CraftingProcessor,
    CropProcessor,
    HelperProcessor,
    MiningProcessor,
    plant_crop,
    seed_with_fewest,
)
from balancesim.resources import ResourceManager
from balancesim.state import CraftingState, CropState, Equipment, GnomeState, MiningState


class FixedRng(random.Random):
    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


def _crop(**kwargs):
    values = dict(plot_id="plot_1", crop_id="turnip", planted_at=480, growth_time_required=10)
    values.update(kwargs)
    return CropState(**values)


def _gnome(role, **kwargs):
    return GnomeState("willow_gnome", "Willow Gnome", role=role, is_assigned=True, **kwargs)


def test_crop_ready_after_growth_time(data, params, state, rng):
    crop = _crop()
    state.processes.crops.append(crop)
    events = CropProcessor(data, params, rng).process(state, 10)
    assert crop.ready_to_harvest
    assert crop.growth_progress == 1.0
    assert crop.growth_stage == crop.max_stages
    assert crop.water_level == pytest.approx(1 - 10 / 120)
    assert [e.type for e in events] == ["crop_ready"]


def test_dry_crop_grows_slowly(data, params, state, rng):
    crop = _crop(water_level=0.2)
    state.processes.crops.append(crop)
    CropProcessor(data, params, rng).process(state, 1)
    assert crop.growth_progress == pytest.approx(0.025)
    assert not crop.ready_to_harvest


def test_drought_builds_up_without_withering(data, params, state, rng):
    crop = _crop(water_level=0.0)
    state.processes.crops.append(crop)
    CropProcessor(data, params, rng).process(state, 1)
    assert crop.drought_time == 1
    assert not crop.is_withered


def test_long_drought_withers_crop(data, params, state):
    crop = _crop(water_level=0.0, drought_time=200)
    state.processes.crops.append(crop)
    events = CropProcessor(data, params, FixedRng(0.0)).process(state, 1)
    assert crop.is_withered
    assert events[0].type == "crop_withered"
    assert events[0].importance is Importance.MEDIUM
    # withered crops no longer change
    CropProcessor(data, params, FixedRng(0.0)).process(state, 5)
    assert crop.drought_time == 201


def test_wither_roll_can_fail(data, params, state):
    crop = _crop(water_level=0.0, drought_time=200)
    state.processes.crops.append(crop)
    CropProcessor(data, params, FixedRng(0.99)).process(state, 1)
    assert not crop.is_withered


def test_plant_crop_scales_growth_time(data, params, state):
    set_parameter(params, "farm.cropMechanics.growthTimeMultiplier", 2.0)
    crop = plant_crop(state, ResourceManager(state), data, "potato", params)
    assert crop.growth_time_required == 60
    assert crop.max_stages == 4
    assert state.resources.seeds["potato"] == 14


def test_plant_crop_needs_a_free_plot(data, params, state):
    state.progression.farm_plots = 0
    assert plant_crop(state, ResourceManager(state), data, "turnip", params) is None
    assert state.resources.seeds["turnip"] == 12


def test_seed_with_fewest_ignores_locked_crops(data, state):
    state.resources.seeds = {"turnip": 3, "beet": 2, "carrot": 1, "potato": 4}
    assert seed_with_fewest(state, data) == "carrot"


def test_waterer_refills_thirsty_crops(data, params, state):
    crop = _crop(water_level=0.5)
    state.processes.crops.append(crop)
    state.helpers.gnomes.append(_gnome("waterer"))
    HelperProcessor(data, params).process(state, 1)
    assert crop.water_level == 1.0
    assert state.resources.water.current == 99
    assert state.helpers.gnomes[0].current_task == "waterer"


def test_harvester_collects_ready_crop(data, params, state):
    state.processes.crops.append(_crop(growth_progress=1.0, ready_to_harvest=True))
    state.helpers.gnomes.append(_gnome("harvester"))
    events = HelperProcessor(data, params).process(state, 1)
    assert state.processes.crops == []
    assert state.resources.gold == 105
    assert events[0].type == "helper_harvest"


def test_unassigned_gnome_does_nothing(data, params, state):
    state.processes.crops.append(_crop(growth_progress=1.0, ready_to_harvest=True))
    state.helpers.gnomes.append(GnomeState("willow_gnome", "Willow Gnome", role="harvester"))
    HelperProcessor(data, params).process(state, 1)
    assert len(state.processes.crops) == 1


def test_miner_and_forager_work_on_a_period(data, params, state):
    state.helpers.gnomes.append(_gnome("miner"))
    state.helpers.gnomes.append(GnomeState("fern_gnome", "Fern Gnome", role="forager", is_assigned=True))
    processor = HelperProcessor(data, params)
    state.time.total_minutes = 489
    processor.process(state, 1)
    assert state.resources.materials["stone"] == 18
    state.time.total_minutes = 500
    processor.process(state, 1)
    assert state.resources.materials["stone"] == 19
    assert state.resources.materials["wood"] == 26


def test_crafting_completes_while_hot(data, state):
    state.processes.crafting.append(CraftingState("axe", 480, 10, heat=500))
    processor = CraftingProcessor(data)
    events = []
    for _ in range(10):
        events.extend(processor.process(state, 1))
    assert state.processes.crafting == []
    assert "axe" in state.inventory.tools
    assert [e.type for e in events] == ["craft_complete"]


def test_weapons_go_to_weapon_slot(data, state):
    state.processes.crafting.append(CraftingState("sword_i", 480, 20, heat=2000))
    CraftingProcessor(data).process(state, 20)
    assert "sword_i" in state.inventory.weapons
    assert "sword_i" not in state.inventory.tools


def test_cold_forge_makes_no_progress(data, state):
    job = CraftingState("axe", 480, 10, heat=0)
    state.processes.crafting.append(job)
    CraftingProcessor(data).process(state, 5)
    assert job.progress == 0
    assert state.processes.crafting == [job]


def test_mining_drains_energy_and_digs(params, state, rng):
    state.processes.mining = MiningState(session_minutes=5)
    processor = MiningProcessor(params, rng)
    processor.process(state, 1)
    processor.process(state, 1)
    mining = state.processes.mining
    assert mining.depth == 20
    assert mining.session_minutes == 3
    assert mining.is_active
    assert state.resources.energy.current == 98
    assert state.resources.materials["stone"] >= 18


def test_pickaxe_reduces_drain(params, state, rng):
    state.inventory.tools["pickaxe"] = Equipment("pickaxe")
    state.processes.mining = MiningState(session_minutes=5)
    MiningProcessor(params, rng).process(state, 1)
    assert state.resources.energy.current == pytest.approx(99.2)


def test_deeper_tiers_drain_more(params, state, rng):
    state.processes.mining = MiningState(depth=1000, session_minutes=5)
    MiningProcessor(params, rng).process(state, 1)
    assert state.processes.mining.energy_drain == 4
    assert state.resources.energy.current == 96


def test_mining_stops_when_exhausted(params, state, rng):
    state.resources.energy.current = 1
    state.processes.mining = MiningState(session_minutes=5)
    events = MiningProcessor(params, rng).process(state, 1)
    assert state.resources.energy.current == 0
    assert not state.processes.mining.is_active
    assert "mining_complete" in [e.type for e in events]


def test_mining_stops_at_session_end(params, state, rng):
    state.processes.mining = MiningState(session_minutes=1)
    MiningProcessor(params, rng).process(state, 1)
    assert not state.processes.mining.is_active
