from balancesim.constants import Severity
from balancesim.state import CropState, Equipment, GnomeState
from balancesim.validator import StateInvariant, StateValidator


def test_initial_state_is_valid(state):
    result = StateValidator().validate(state)
    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []


def test_energy_above_max_is_an_error(state):
    state.resources.energy.current = 101
    result = StateValidator().validate(state)
    assert not result.is_valid
    assert any("energy_bounds" in e for e in result.errors)


def test_available_plots_above_farm_plots_is_an_error(state):
    state.progression.available_plots = state.progression.farm_plots + 1
    result = StateValidator().validate_critical(state)
    assert any("farm_plots_consistent" in e for e in result.errors)


def test_crop_water_out_of_range_is_only_a_warning(state):
    state.processes.crops.append(CropState("plot_1", "turnip", 480, 10, water_level=1.2))
    result = StateValidator().validate(state)
    assert result.is_valid
    assert any("crop_water_bounds" in w for w in result.warnings)


def test_validate_critical_skips_warnings(state):
    state.helpers.gnomes = [GnomeState("a", "A"), GnomeState("b", "B")]
    assert StateValidator().validate(state).warnings
    assert StateValidator().validate_critical(state).warnings == []


def test_raising_invariant_is_reported(state):
    def boom(s):
        raise RuntimeError("bad check")

    validator = StateValidator()
    validator.add_invariant(StateInvariant("boom", "always explodes", Severity.ERROR, boom))
    result = validator.validate(state)
    assert not result.is_valid
    assert "Invariant check failed for boom: bad check" in result.errors


def test_custom_invariant_registry(state):
    validator = StateValidator(invariants=[])
    validator.add_invariant(
        StateInvariant("rich", "Gold above 1000", Severity.WARNING, lambda s: s.resources.gold > 1000)
    )
    assert validator.get_invariant("rich") is not None
    assert validator.get_invariant("energy_bounds") is None
    result = validator.validate(state)
    assert result.is_valid
    assert result.warnings == ["Invariant violation: rich - Gold above 1000"]


def test_armor_over_max_durability_is_a_warning(state):
    state.inventory.armor["leather_vest"] = Equipment("leather_vest", durability=150)
    result = StateValidator().validate(state)
    assert result.is_valid
    assert any("armor_durability_bounds" in w for w in result.warnings)
