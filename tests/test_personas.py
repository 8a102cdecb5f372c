import random

from balancesim import actions as act
from balancesim.config import get_persona
from balancesim.constants import Screen
from balancesim.personas import (
    CasualStrategy,
    SpeedrunnerStrategy,
    WeekendWarriorStrategy,
    create_strategy,
)


class FixedRng(random.Random):
    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


def test_factory():
    assert isinstance(create_strategy(get_persona("speedrunner")), SpeedrunnerStrategy)
    assert isinstance(create_strategy(get_persona("weekend-warrior")), WeekendWarriorStrategy)
    assert isinstance(create_strategy(get_persona("completionist")), CasualStrategy)


def test_first_check_in_is_always_allowed(state):
    strategy = create_strategy(get_persona("casual"))
    assert strategy.should_check_in(state, None, FixedRng(0.5))


def test_no_check_ins_at_night(state):
    strategy = create_strategy(get_persona("speedrunner"))
    state.time.hour = 23
    assert not strategy.should_check_in(state, 0, FixedRng(0.5))
    state.time.hour = 3
    assert not strategy.should_check_in(state, 0, FixedRng(0.5))


def test_interval_spreads_check_ins_over_waking_hours(state):
    assert create_strategy(get_persona("speedrunner")).check_in_interval(state) == 96
    assert create_strategy(get_persona("casual")).check_in_interval(state) == 480


def test_forced_check_in_after_max_idle(state):
    strategy = create_strategy(get_persona("casual"))
    now = state.time.total_minutes
    assert not strategy.should_check_in(state, now - 10, FixedRng(0.5))
    assert strategy.should_check_in(state, now - 46, FixedRng(0.5))


def test_interval_check_in(state):
    strategy = create_strategy(get_persona("speedrunner"))
    now = state.time.total_minutes
    assert not strategy.should_check_in(state, now - 20, FixedRng(0.5))
    # past max idle (30) the interval no longer matters
    assert strategy.should_check_in(state, now - 31, FixedRng(0.5))


def test_interval_must_be_strictly_exceeded(state):
    strategy = create_strategy(get_persona("speedrunner"))
    strategy.max_idle = 1000
    now = state.time.total_minutes
    assert not strategy.should_check_in(state, now - 96, FixedRng(0.5))
    assert strategy.should_check_in(state, now - 97, FixedRng(0.5))


def test_casual_halves_expensive_actions(state):
    strategy = create_strategy(get_persona("casual"))
    cheap = act.Cleanup(screen=Screen.FARM, cleanup_id="x", energy_cost=40)
    costly = act.Cleanup(screen=Screen.FARM, cleanup_id="x", energy_cost=60)
    assert strategy.adjust_score(costly, 100, state) == strategy.adjust_score(cheap, 100, state) * 0.5


def test_speedrunner_favors_big_purchases(state):
    strategy = create_strategy(get_persona("speedrunner"))
    small = act.Purchase(screen=Screen.TOWN, item_id="a", gold_cost=100)
    big = act.Purchase(screen=Screen.TOWN, item_id="b", gold_cost=600)
    assert strategy.adjust_score(big, 100, state) > strategy.adjust_score(small, 100, state)


def test_weekend_warrior_weekday_dampening(state):
    strategy = create_strategy(get_persona("weekend-warrior"))
    water = act.Water(screen=Screen.FARM)
    pump = act.Pump(screen=Screen.FARM)
    state.time.day = 1
    weekday_water = strategy.adjust_score(water, 100, state)
    assert strategy.adjust_score(pump, 100, state) == weekday_water * 0.5
    state.time.day = 6
    assert strategy.adjust_score(water, 100, state) > weekday_water
