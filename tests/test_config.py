import pytest

from balancesim.config import (
    PERSONAS,
    SimulationConfig,
    apply_overrides,
    get_parameter,
    get_parameter_or,
    get_persona,
    set_parameter,
)
from balancesim.errors import ParameterPathError


def test_get_parameter_by_path(params):
    assert get_parameter(params, "farm.initialState.plots") == 3
    assert get_parameter(params, "tower.catchMechanics") == {"manualCatchRate": 2, "catchDuration": 5}


def test_missing_path_raises_key_error(params):
    with pytest.raises(ParameterPathError):
        get_parameter(params, "farm.nothing.here")
    with pytest.raises(KeyError):
        get_parameter(params, "farm.initialState.plots.deeper")


def test_get_parameter_or_default(params):
    assert get_parameter_or(params, "farm.nothing", 7) == 7


def test_set_parameter(params):
    set_parameter(params, "farm.initialState.water", 50)
    assert params["farm"]["initialState"]["water"] == 50
    set_parameter(params, "farm.initialState.bonus", 1)
    assert params["farm"]["initialState"]["bonus"] == 1
    with pytest.raises(ParameterPathError):
        set_parameter(params, "farm.missing.value", 1)


def test_apply_overrides_returns_copy(params):
    merged = apply_overrides(params, {"farm.initialState.plots": 10})
    assert merged["farm"]["initialState"]["plots"] == 10
    assert params["farm"]["initialState"]["plots"] == 3


def test_unknown_persona_falls_back_to_casual(caplog):
    assert get_persona("nobody") is PERSONAS["casual"]
    assert "nobody" in caplog.text


def test_personas():
    assert set(PERSONAS) == {"speedrunner", "casual", "weekend-warrior", "balanced", "completionist"}
    assert PERSONAS["weekend-warrior"].weekend_check_ins > PERSONAS["weekend-warrior"].weekday_check_ins


def test_config_with_overrides():
    config = SimulationConfig(persona=get_persona("speedrunner"), seed=3, max_days=10)
    changed = config.with_overrides({"farm.initialState.energy": 150})
    assert changed.parameters["farm"]["initialState"]["energy"] == 150
    assert config.parameters["farm"]["initialState"]["energy"] == 100
    assert (changed.persona.id, changed.seed, changed.max_days) == ("speedrunner", 3, 10)


def test_configs_do_not_share_parameters():
    first, second = SimulationConfig(), SimulationConfig()
    first.parameters["farm"]["initialState"]["plots"] = 9
    assert second.parameters["farm"]["initialState"]["plots"] == 3
