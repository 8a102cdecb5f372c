import random

import pytest

from balancesim.config import SimulationConfig, default_parameters
from balancesim.engine import SimulationEngine, create_initial_state
from balancesim.gamedata import GameDataStore

SEED = 42


@pytest.fixture
def params():
    return default_parameters()


@pytest.fixture(scope="session")
def data():
    return GameDataStore.default()


@pytest.fixture
def state(params):
    return create_initial_state(params)


@pytest.fixture
def rng():
    return random.Random(SEED)


@pytest.fixture
def engine(data):
    return SimulationEngine(SimulationConfig(seed=SEED), data=data)
