"""Parameter tree, personas and run configuration."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from .constants import DEFAULT_SEED
from .errors import ParameterPathError

logger = logging.getLogger(__name__)


def default_parameters() -> Dict[str, Any]:
    """Return a fresh parameter tree with default values."""
    return {
        "farm": {
            "initialState": {"plots": 3, "water": 100, "energy": 100},
            "cropMechanics": {
                "growthTimeMultiplier": 1.0,
                "waterConsumptionRate": 1.0,
                "witheredCropChance": 0.1,
                "witherAfterMinutes": 120,
            },
            "waterSystem": {"pumpEfficiency": 1.0, "maxWaterStorage": 200},
            "landExpansion": {
                "cleanupEnergyMultiplier": 1.0,
                "autoCleanupEnabled": False,
                "prioritizeCleanupOrder": [],
            },
            "automation": {
                "autoPlant": {"enabled": True},
                "plantingStrategy": "highest-value",
                "autoWater": True,
                "wateringThreshold": 0.3,
                "autoHarvest": True,
                "energyReserve": 20,
            },
        },
        "tower": {
            "catchMechanics": {"manualCatchRate": 2, "catchDuration": 5},
            "decisionLogic": {"seedTargetMultiplier": 2, "minSeeds": 6},
            "autoCatcher": {"cost": 1000},
        },
        "town": {
            "purchasingBehavior": {"goldReserve": 100, "buyThreshold": 1.2},
            "blueprintStrategy": {"toolPriorities": []},
            "skillTraining": {"trainingEnergyReserve": 10, "maxSkillLevel": 10},
            "materialTrading": {
                "enableTrading": False,
                "tradeThreshold": 50,
                "emergencyBuying": True,
                "woodBuyingThreshold": 10,
            },
        },
        "adventure": {
            "routeSelection": {
                "energyReserve": 30,
                "priorityOrder": [],
            },
            "combatMechanics": {"baseHP": 100, "hpPerLevel": 20},
            "lootSystem": {"goldMultiplier": 1.0, "xpMultiplier": 1.0},
        },
        "forge": {
            "heatManagement": {"minimumHeat": 30, "stokeWoodCost": 5},
            "automation": {"maxConcurrent": 3},
        },
        "mine": {
            "decisionLogic": {
                "energyReserve": 40,
                "sessionDuration": 5,
                "materialTarget": 10,
            },
            "miningMechanics": {"energyDrainBase": 1.0, "materialDropRate": 1.0},
        },
        "helpers": {
            "acquisition": {
                "rescueOrder": ["waterer", "harvester", "sower", "pump", "miner"],
                "rescuePriority": 0.7,
            },
            "roleAssignment": {
                "roleDistribution": {
                    "waterer": 2,
                    "harvester": 2,
                    "sower": 1,
                    "pump": 1,
                    "miner": 1,
                },
            },
            "training": {"enableTraining": True, "trainingCost": 50, "stopAtLevel": 10},
        },
        "resources": {
            "generation": {"energyRegenPerMinute": 0.1},
            "consumption": {"minimumReserves": {"energy": 10, "gold": 50, "water": 5}},
        },
        "decisions": {
            "globalBehavior": {"randomness": 0.1},
            "actionEvaluation": {
                "immediateValueWeight": 0.7,
                "futureValueWeight": 0.3,
                "riskWeight": 0.5,
            },
            "interrupts": {
                "enabled": True,
                "emergencyMode": {"threshold": 10},
            },
        },
    }


def get_parameter(tree: Mapping[str, Any], path: str) -> Any:
    """Return the value stored at dot ``path`` in ``tree``."""
    node: Any = tree
    for part in path.split("."):
        if not isinstance(node, Mapping) or part not in node:
            raise ParameterPathError(path)
        node = node[part]
    return node


def get_parameter_or(tree: Mapping[str, Any], path: str, default: Any) -> Any:
    try:
        return get_parameter(tree, path)
    except ParameterPathError:
        return default


def set_parameter(tree: Dict[str, Any], path: str, value: Any) -> None:
    """Set ``value`` at dot ``path``; intermediate nodes must already exist."""
    parts = path.split(".")
    node: Any = tree
    for part in parts[:-1]:
        if not isinstance(node, dict) or part not in node:
            raise ParameterPathError(path)
        node = node[part]
    if not isinstance(node, dict):
        raise ParameterPathError(path)
    node[parts[-1]] = value


def apply_overrides(
    tree: Mapping[str, Any], overrides: Mapping[str, Any]
) -> Dict[str, Any]:
    """Return a copy of ``tree`` with dot-path ``overrides`` applied."""
    merged = copy.deepcopy(dict(tree))
    for path, value in overrides.items():
        set_parameter(merged, path, value)
        logger.debug("Parameter override %s = %r", path, value)
    return merged


@dataclass(frozen=True)
class Persona:
    """Behavioural profile of a simulated player."""

    id: str
    name: str
    efficiency: float
    risk_tolerance: float
    optimization: float
    learning_rate: float
    weekday_check_ins: int
    weekend_check_ins: int
    avg_session_length: int


PERSONAS: Dict[str, Persona] = {
    p.id: p
    for p in (
        Persona("speedrunner", "Speedrunner", 0.95, 0.8, 1.0, 0.1, 10, 10, 30),
        Persona("casual", "Casual Player", 0.7, 0.3, 0.6, 0.4, 2, 2, 15),
        Persona("weekend-warrior", "Weekend Warrior", 0.8, 0.4, 0.8, 0.3, 1, 8, 45),
        Persona("balanced", "Balanced Player", 0.75, 0.5, 0.7, 0.5, 3, 5, 25),
        Persona("completionist", "Completionist", 0.85, 0.2, 0.9, 0.6, 5, 8, 40),
    )
}


def get_persona(persona_id: str) -> Persona:
    persona = PERSONAS.get(persona_id)
    if persona is None:
        logger.warning("Unknown persona %s, using casual", persona_id)
        return PERSONAS["casual"]
    return persona


@dataclass
class SimulationConfig:
    persona: Persona = field(default_factory=lambda: PERSONAS["casual"])
    parameters: Dict[str, Any] = field(default_factory=default_parameters)
    seed: int = DEFAULT_SEED
    max_days: int = 35
    strict: bool = False

    def with_overrides(self, overrides: Mapping[str, Any]) -> "SimulationConfig":
        return SimulationConfig(
            persona=self.persona,
            parameters=apply_overrides(self.parameters, overrides),
            seed=self.seed,
            max_days=self.max_days,
            strict=self.strict,
        )
