"""Multi-factor action scoring."""
from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from . import actions as act
from .config import get_parameter_or
from .constants import ActionType, Screen, Urgency
from .personas import PersonaStrategy
from .state import GameState

logger = logging.getLogger(__name__)

BASE_SCORES = {
    ActionType.HARVEST: 100,
    ActionType.WATER: 60,
    ActionType.CLEANUP: 70,
    ActionType.BUILD: 900,
    ActionType.PUMP: 50,
    ActionType.PURCHASE: 50,
    ActionType.RESCUE: 45,
    ActionType.CATCH_SEEDS: 45,
    ActionType.PLANT: 40,
    ActionType.CRAFT: 40,
    ActionType.MINE: 35,
    ActionType.ASSIGN_ROLE: 35,
    ActionType.ADVENTURE: 30,
    ActionType.TRAIN_HELPER: 30,
    ActionType.TRAIN: 30,
    ActionType.STOKE: 25,
    ActionType.MOVE: 20,
    ActionType.SELL_MATERIAL: 15,
    ActionType.WAIT: 1,
}

# Materials the mine bonus watches
_CORE_MATERIALS = ("stone", "copper", "iron")

# Share of the seed target below which seeds count as low
LOW_SEED_FRACTION = 0.7

# Seed-catching priority by shortage level: (at the tower, elsewhere)
SEED_CATCH_SCORES = {"critical": (9999, 999), "low": (750, 400)}
SEED_BUFFER_SCORE = 200

# Navigation priority during a shortage: (towards the tower, away from it)
SEED_MOVE_SCORES = {"critical": (998, 1), "low": (700, 5)}


def urgency_for(score: float) -> Urgency:
    if score >= 900:
        return Urgency.EMERGENCY
    if score >= 500:
        return Urgency.CRITICAL
    if score >= 200:
        return Urgency.HIGH
    if score >= 100:
        return Urgency.NORMAL
    return Urgency.LOW


def seed_shortage(state: GameState, multiplier: float = 2, minimum: float = 6) -> Optional[str]:
    """Return ``"critical"``, ``"low"`` or ``None`` for the current seed stock.

    Critical means fewer seeds than plots. Low means below 70% of the
    tower's seed target, ``max(multiplier * plots, minimum)``.
    """
    seeds = state.resources.total_seeds
    plots = state.progression.farm_plots
    if seeds < plots:
        return "critical"
    if seeds < math.floor(max(plots * multiplier, minimum) * LOW_SEED_FRACTION):
        return "low"
    return None


@dataclass
class ScoreBreakdown:
    base: float
    immediate: float
    future: float
    risk: float
    efficiency: float
    urgency: float
    persona: float
    final: float


class ActionScorer:
    """Combines base, value, risk, efficiency and persona factors."""

    def __init__(
        self,
        parameters: Mapping[str, Any],
        strategy: PersonaStrategy,
        rng: random.Random,
    ) -> None:
        self.strategy = strategy
        self.rng = rng
        evaluation = "decisions.actionEvaluation"
        self.immediate_weight = get_parameter_or(parameters, f"{evaluation}.immediateValueWeight", 0.7)
        self.future_weight = get_parameter_or(parameters, f"{evaluation}.futureValueWeight", 0.3)
        self.risk_weight = get_parameter_or(parameters, f"{evaluation}.riskWeight", 0.5)
        self.randomness = get_parameter_or(parameters, "decisions.globalBehavior.randomness", 0.1)
        self.seed_multiplier = get_parameter_or(parameters, "tower.decisionLogic.seedTargetMultiplier", 2)
        self.min_seeds = get_parameter_or(parameters, "tower.decisionLogic.minSeeds", 6)

    def base_score(self, action: act.Action, state: GameState) -> float:
        res = state.resources
        score = BASE_SCORES[action.type]
        if isinstance(action, act.Harvest):
            if res.energy.current < 50:
                score += 20
        elif isinstance(action, act.Water):
            if state.automation.watering_enabled:
                score += 10
        elif isinstance(action, act.Plant):
            if res.energy.current > state.automation.energy_reserve + 20:
                score += 15
        elif isinstance(action, act.Cleanup):
            score += action.plots_added * 20
            if state.progression.farm_plots < 10:
                score *= 1.5
        elif isinstance(action, act.Pump):
            ratio = res.water.current / res.water.max if res.water.max else 0
            if ratio < 0.3:
                score = 90
            elif ratio < 0.5:
                score = 70
        elif isinstance(action, act.Adventure):
            if res.energy.current > 60:
                score += 30
            score += action.reward.gold * 0.5
            if res.gold < 100:
                score += 20
        elif isinstance(action, act.Purchase):
            if res.gold > 2 * action.gold_cost:
                score += 30
            if action.kind == "blueprint":
                score += 40
        elif isinstance(action, act.Craft):
            if action.kind in ("tool", "weapon"):
                score += 20
        elif isinstance(action, act.CatchSeeds):
            score = self._seed_catch_score(state)
        elif isinstance(action, act.Move):
            score = self._navigation_score(action, state)
        elif isinstance(action, act.Mine):
            if any(res.materials.get(m, 0) < 10 for m in _CORE_MATERIALS):
                score += 25
        return max(1.0, score)

    def _shortage(self, state: GameState) -> Optional[str]:
        return seed_shortage(state, self.seed_multiplier, self.min_seeds)

    def _seed_catch_score(self, state: GameState) -> float:
        at_tower = state.location.current_screen is Screen.TOWER
        level = self._shortage(state)
        if level is not None:
            here, elsewhere = SEED_CATCH_SCORES[level]
            return here if at_tower else elsewhere
        plots = state.progression.farm_plots
        if plots and state.resources.total_seeds / plots < 3:
            return SEED_BUFFER_SCORE
        return BASE_SCORES[ActionType.CATCH_SEEDS]

    def _navigation_score(self, action: act.Move, state: GameState) -> float:
        level = self._shortage(state)
        if level is not None:
            towards, away = SEED_MOVE_SCORES[level]
            if action.to_screen is Screen.TOWER:
                return towards
            if state.location.current_screen is Screen.TOWER:
                return away
        return BASE_SCORES[ActionType.MOVE] + action.need * 2

    def urgency_multiplier(self, action: act.Action, state: GameState) -> float:
        """Boost actions that answer a pressing resource need."""
        res = state.resources
        multiplier = 1.0
        if isinstance(action, act.Harvest):
            if res.energy.max and res.energy.current / res.energy.max < 0.2:
                multiplier *= 1.5
        elif isinstance(action, (act.Pump, act.Water)):
            if res.water.max and res.water.current / res.water.max < 0.3:
                multiplier *= 1.3
        elif isinstance(action, act.Adventure):
            if res.gold < 50:
                multiplier *= 1.2
        elif isinstance(action, act.Plant):
            plots = state.progression.farm_plots
            growing = sum(1 for c in state.processes.crops if not c.ready_to_harvest)
            if plots and growing / plots < 0.5:
                multiplier *= 1.4
        return multiplier

    def immediate_value(self, action: act.Action) -> float:
        r = action.reward
        return (
            r.gold
            + r.energy
            + r.water * 0.2
            + r.experience * 0.5
            + sum(r.materials.values())
            + sum(r.seeds.values())
        )

    def future_value(self, action: act.Action) -> float:
        r = action.reward
        value = r.gold * 0.1 + r.energy * 0.5 + r.experience * 0.2 + r.plots * 15
        if action.type in (ActionType.BUILD, ActionType.CLEANUP):
            value += 20
        elif isinstance(action, act.Plant):
            value += 15
        elif isinstance(action, act.Move):
            value += 5 if action.to_screen is Screen.TOWN else 2
        return value

    def risk_value(self, action: act.Action) -> float:
        if isinstance(action, act.Adventure):
            return 10 + action.risk * 50
        if isinstance(action, act.Mine):
            return 5
        if isinstance(action, act.Move):
            return 1
        return action.risk

    def breakdown(self, action: act.Action, state: GameState) -> ScoreBreakdown:
        base = self.base_score(action, state)
        immediate = self.immediate_value(action)
        future = self.future_value(action)
        risk = self.risk_value(action)
        efficiency = 0.0
        if action.energy_cost > 0:
            efficiency = action.reward.gold / action.energy_cost * 5
        urgency = self.urgency_multiplier(action, state)
        raw = (
            base * urgency
            + self.immediate_weight * immediate
            + self.future_weight * future
            - self.risk_weight * risk
            + efficiency
        )
        adjusted = self.strategy.adjust_score(action, raw, state)
        jitter = 1 + (self.rng.random() - 0.5) * self.randomness
        final = max(1.0, adjusted * jitter)
        return ScoreBreakdown(base, immediate, future, risk, efficiency, urgency, adjusted, final)

    def score(self, action: act.Action, state: GameState) -> float:
        return self.breakdown(action, state).final
