# Simulation loop and state management
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional

from . import actions as act
from .config import SimulationConfig, get_parameter_or
from .constants import (
    EVENT_LOG_SIZE,
    HelperRole,
    Importance,
    STUCK_GOLD_PROGRESS,
    STUCK_PROGRESS_DAYS,
    STUCK_SCREEN_MINUTES,
    TICK_MINUTES,
    Urgency,
)
from .decisions import DecisionEngine
from .errors import InvariantViolationError
from .executor import ActionExecutor
from .gamedata import GameDataStore
from .prerequisites import (
    DependencyGraph,
    current_phase,
    farm_stage_from_plots,
    level_for_experience,
    victory_reached,
)
from .processors import CraftingProcessor, CropProcessor, HelperProcessor, MiningProcessor
from .resources import ResourceManager
from .scoring import urgency_for
from .snapshot import StateSnapshot
from .state import (
    AutomationState,
    EnergyState,
    GameEvent,
    GameState,
    HelperState,
    PriorityState,
    ProgressionState,
    ResourceState,
    WaterState,
)
from .validator import StateValidator

logger = logging.getLogger(__name__)

STARTING_SEEDS = {"turnip": 12, "beet": 8, "carrot": 5, "potato": 15}
STARTING_MATERIALS = {"wood": 25, "stone": 18, "iron": 7, "silver": 2}
STARTING_GOLD = 100


def create_initial_state(parameters: Mapping[str, Any]) -> GameState:
    """Build the day-one state described by ``parameters``."""

    def param(path: str, default: Any) -> Any:
        return get_parameter_or(parameters, path, default)

    plots = param("farm.initialState.plots", 3)
    energy = param("farm.initialState.energy", 100)
    auto = "farm.automation"
    state = GameState(
        resources=ResourceState(
            energy=EnergyState(
                current=energy,
                max=energy,
                regeneration_rate=param("resources.generation.energyRegenPerMinute", 0.0),
            ),
            gold=STARTING_GOLD,
            water=WaterState(
                current=param("farm.initialState.water", 100),
                max=param("farm.waterSystem.maxWaterStorage", 200),
            ),
            seeds=dict(STARTING_SEEDS),
            materials=dict(STARTING_MATERIALS),
        ),
        progression=ProgressionState(farm_plots=plots, available_plots=plots),
        helpers=HelperState(
            housing_capacity=1,
            available_roles=[role.value for role in HelperRole],
        ),
        automation=AutomationState(
            planting_enabled=param(f"{auto}.autoPlant.enabled", True),
            planting_strategy=param(f"{auto}.plantingStrategy", "highest-value"),
            watering_enabled=param(f"{auto}.autoWater", True),
            harvesting_enabled=param(f"{auto}.autoHarvest", True),
            auto_cleanup_enabled=param("farm.landExpansion.autoCleanupEnabled", False),
            watering_threshold=param(f"{auto}.wateringThreshold", 0.3),
            energy_reserve=param(f"{auto}.energyReserve", 20),
        ),
        priorities=PriorityState(
            cleanup_order=list(param("farm.landExpansion.prioritizeCleanupOrder", [])),
            helper_rescue=list(param("helpers.acquisition.rescueOrder", [])),
            adventure_priority=list(param("adventure.routeSelection.priorityOrder", [])),
        ),
    )
    state.progression.farm_stage = farm_stage_from_plots(plots)
    state.progression.current_phase = current_phase(state)
    return state


@dataclass
class ScoredDecision:
    action_id: str
    score: float
    urgency: Urgency


@dataclass
class TickResult:
    game_state: GameState
    executed_actions: List[act.Action] = field(default_factory=list)
    events: List[GameEvent] = field(default_factory=list)
    delta_time: int = TICK_MINUTES
    is_complete: bool = False
    is_stuck: bool = False
    decisions: List[ScoredDecision] = field(default_factory=list)


class SimulationEngine:
    """Owns one :class:`GameState` and advances it a minute at a time."""

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        data: Optional[GameDataStore] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or SimulationConfig()
        self.data = data or GameDataStore.default()
        self.rng = rng or random.Random(self.config.seed)
        params = self.config.parameters
        self.state = create_initial_state(params)
        self.decisions = DecisionEngine(params, self.config.persona, self.data, self.rng)
        self.executor = ActionExecutor(self.data, params, self.rng)
        # Fixed order: crops, helpers, crafting, mining
        self.processors = [
            CropProcessor(self.data, params, self.rng),
            HelperProcessor(self.data, params),
            CraftingProcessor(self.data),
            MiningProcessor(params, self.rng),
        ]
        self.dependencies = DependencyGraph.from_items(self.data)
        for cycle in self.dependencies.detect_cycles():
            logger.warning("Prerequisite cycle: %s", " -> ".join(cycle.path))
        self.validator = StateValidator()
        self.event_log: List[str] = []
        self.ticks = 0
        self._mark_progress()

    # --- tick -------------------------------------------------------
    def tick(self) -> TickResult:
        state = self.state
        delta = TICK_MINUTES * state.time.speed
        self.advance_time(delta)
        events: List[GameEvent] = []

        regen = state.resources.energy.regeneration_rate * delta
        if regen > 0:
            ResourceManager(state).add_energy(regen)

        for processor in self.processors:
            events.extend(processor.process(state, delta))

        selected = self.decisions.get_next_actions(state)
        executed: List[act.Action] = []
        for action in selected:
            result = self.executor.execute(action, state)
            if result.success:
                executed.append(action)
                events.extend(result.events)

        events.extend(self.update_progression())
        is_complete = state.progression.victory_conditions_met
        is_stuck = not is_complete and self.check_stuck()

        self._record(events)
        self._validate()
        self.ticks += 1
        return TickResult(
            game_state=state,
            executed_actions=executed,
            events=events,
            delta_time=delta,
            is_complete=is_complete,
            is_stuck=is_stuck,
            decisions=[
                ScoredDecision(a.id, a.score or 0.0, urgency_for(a.score or 0.0)) for a in selected
            ],
        )

    def advance_time(self, minutes: int) -> None:
        self.state.time.advance(minutes)
        self.state.location.time_on_screen += minutes

    def update_progression(self) -> List[GameEvent]:
        """Recompute level, farm stage, phase and victory from raw progress."""
        state = self.state
        prog = state.progression
        now = state.time.total_minutes
        events: List[GameEvent] = []

        level = level_for_experience(prog.experience)
        if level > prog.hero_level:
            prog.hero_level = level
            events.append(GameEvent(now, "level_up", f"Hero reached level {level}", Importance.HIGH))
        prog.farm_stage = farm_stage_from_plots(prog.farm_plots)

        if not prog.victory_conditions_met and victory_reached(state):
            prog.victory_conditions_met = True
            events.append(GameEvent(now, "victory", "Victory conditions met", Importance.HIGH))

        phase = current_phase(state)
        if phase is not prog.current_phase:
            prog.current_phase = phase
            events.append(GameEvent(now, "phase_change", f"Entered {phase.value} phase", Importance.MEDIUM))
        return events

    # --- stuck detection --------------------------------------------
    def _mark_progress(self) -> None:
        prog = self.state.progression
        self._progress = (prog.farm_plots, prog.hero_level, self.state.resources.gold, self.state.time.day)

    def check_stuck(self) -> bool:
        state = self.state
        if state.resources.energy.current <= 0 and state.location.time_on_screen > STUCK_SCREEN_MINUTES:
            return True
        plots, level, gold, day = self._progress
        prog = state.progression
        if (
            prog.farm_plots > plots
            or prog.hero_level > level
            or state.resources.gold >= gold + STUCK_GOLD_PROGRESS
        ):
            self._mark_progress()
            return False
        return state.time.day - day >= STUCK_PROGRESS_DAYS

    def identify_bottleneck(self) -> str:
        state = self.state
        res = state.resources
        if res.energy.current <= 0:
            return "out of energy"
        if res.total_seeds == 0 and not state.processes.crops:
            return "no seeds"
        if res.water.current < 1 and state.processes.crops:
            return "no water"
        if any(c.is_withered for c in state.processes.crops):
            return "crops withering"
        if res.gold < 20:
            return "no gold"
        return "slow progress"

    # --- snapshots --------------------------------------------------
    def take_snapshot(self, reason: str = "manual") -> StateSnapshot:
        return StateSnapshot(self.state, reason=reason, source="engine")

    def restore_snapshot(self, snapshot: StateSnapshot) -> bool:
        return snapshot.restore(self.state)

    # --- bookkeeping ------------------------------------------------
    def _record(self, events: List[GameEvent]) -> None:
        for event in events:
            if event.importance in (Importance.HIGH, Importance.CRITICAL):
                self.event_log.append(f"Day {self.state.time.day} {self.state.time.clock} {event.description}")
                logger.info(event.description)
        if len(self.event_log) > EVENT_LOG_SIZE:
            self.event_log = self.event_log[-EVENT_LOG_SIZE:]

    def _validate(self) -> None:
        result = self.validator.validate_critical(self.state)
        if result.is_valid:
            return
        if self.config.strict:
            raise InvariantViolationError(result.errors)
        for error in result.errors:
            logger.error(error)

    def run(
        self,
        max_ticks: Optional[int] = None,
        on_tick: Optional[Callable[[TickResult], None]] = None,
    ) -> TickResult:
        """Tick until victory, a stuck state, ``max_days`` or ``max_ticks``."""
        result = TickResult(game_state=self.state, delta_time=0)
        while self.state.time.day <= self.config.max_days:
            if max_ticks is not None and self.ticks >= max_ticks:
                break
            result = self.tick()
            if on_tick is not None:
                on_tick(result)
            if result.is_complete:
                logger.info("Victory on day %d", self.state.time.day)
                break
            if result.is_stuck:
                logger.warning("Stuck on day %d: %s", self.state.time.day, self.identify_bottleneck())
                break
        return result
