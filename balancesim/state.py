"""Mutable simulation state.

A :class:`GameState` is owned by exactly one engine for a whole run. Every
mapping inside it is a plain ordered ``dict`` owned by the state itself, so
two engines never share a seed, material or equipment table.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .constants import Importance, Phase, Screen


@dataclass
class TimeState:
    day: int = 1
    hour: int = 8
    minute: int = 0
    total_minutes: int = 480
    speed: int = 1

    def advance(self, minutes: int) -> None:
        """Advance the clock by ``minutes`` carrying into hours and days."""
        self.total_minutes += minutes
        self.minute += minutes
        if self.minute >= 60:
            self.hour += self.minute // 60
            self.minute %= 60
        if self.hour >= 24:
            self.day += self.hour // 24
            self.hour %= 24

    @property
    def is_weekend(self) -> bool:
        return self.day % 7 in (0, 6)

    @property
    def clock(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass
class EnergyState:
    current: float = 100
    max: float = 100
    regeneration_rate: float = 0.0


@dataclass
class WaterState:
    current: float = 100
    max: float = 200
    auto_gen_rate: float = 0.0


@dataclass
class ResourceState:
    energy: EnergyState = field(default_factory=EnergyState)
    gold: int = 100
    water: WaterState = field(default_factory=WaterState)
    seeds: Dict[str, int] = field(default_factory=dict)
    materials: Dict[str, int] = field(default_factory=dict)

    @property
    def total_seeds(self) -> int:
        return sum(self.seeds.values())


@dataclass
class ProgressionState:
    hero_level: int = 1
    experience: int = 0
    farm_stage: int = 1
    farm_plots: int = 3
    available_plots: int = 3
    current_phase: Phase = Phase.TUTORIAL
    completed_adventures: Set[str] = field(default_factory=set)
    completed_cleanups: Set[str] = field(default_factory=set)
    unlocked_upgrades: Set[str] = field(default_factory=set)
    unlocked_areas: Set[str] = field(default_factory=set)
    victory_conditions_met: bool = False


@dataclass
class Equipment:
    """Owned tool, weapon or armor piece."""

    id: str
    level: int = 1
    durability: int = 100
    max_durability: int = 100
    is_equipped: bool = True
    owned: bool = True


@dataclass
class BlueprintState:
    id: str
    purchased: bool = True
    is_built: bool = False


@dataclass
class InventoryState:
    tools: Dict[str, Equipment] = field(default_factory=dict)
    weapons: Dict[str, Equipment] = field(default_factory=dict)
    armor: Dict[str, Equipment] = field(default_factory=dict)
    blueprints: Dict[str, BlueprintState] = field(default_factory=dict)
    capacity: int = 100
    current_weight: int = 0

    def has_equipped_tool(self, tool_id: str) -> bool:
        tool = self.tools.get(tool_id)
        return tool is not None and tool.is_equipped


@dataclass
class CropState:
    plot_id: str
    crop_id: str
    planted_at: int
    growth_time_required: int
    water_level: float = 1.0
    growth_progress: float = 0.0
    growth_stage: int = 0
    max_stages: int = 3
    drought_time: int = 0
    is_withered: bool = False
    ready_to_harvest: bool = False


@dataclass
class AdventureState:
    adventure_id: str
    started_at: int
    duration: int
    progress: float = 0.0
    gold_reward: int = 0
    xp_reward: int = 0
    is_complete: bool = False


@dataclass
class CraftingState:
    item_id: str
    started_at: int
    duration: int
    progress: float = 0.0
    heat: float = 0.0
    is_complete: bool = False


@dataclass
class MiningState:
    depth: float = 0.0
    energy_drain: float = 0.0
    is_active: bool = True
    time_at_depth: int = 0
    session_minutes: int = 0


@dataclass
class ProcessState:
    crops: List[CropState] = field(default_factory=list)
    adventure: Optional[AdventureState] = None
    crafting: List[CraftingState] = field(default_factory=list)
    mining: Optional[MiningState] = None


@dataclass
class GnomeState:
    """A rescued helper."""

    id: str
    name: str
    role: Optional[str] = None
    efficiency: float = 1.0
    is_assigned: bool = False
    current_task: Optional[str] = None
    experience: int = 0
    level: int = 1


@dataclass
class HelperState:
    gnomes: List[GnomeState] = field(default_factory=list)
    housing_capacity: int = 0
    available_roles: List[str] = field(default_factory=list)
    rescue_queue: List[str] = field(default_factory=list)


@dataclass
class LocationState:
    current_screen: Screen = Screen.FARM
    time_on_screen: int = 0
    screen_history: List[Screen] = field(default_factory=list)
    navigation_reason: str = ""


@dataclass
class AutomationState:
    planting_enabled: bool = True
    planting_strategy: str = "highest-value"
    watering_enabled: bool = True
    harvesting_enabled: bool = True
    auto_cleanup_enabled: bool = False
    target_crops: Dict[str, int] = field(default_factory=dict)
    watering_threshold: float = 0.3
    energy_reserve: int = 20


@dataclass
class PriorityState:
    cleanup_order: List[str] = field(default_factory=list)
    tool_crafting: List[str] = field(default_factory=list)
    helper_rescue: List[str] = field(default_factory=list)
    adventure_priority: List[str] = field(default_factory=list)
    vendor_priority: List[str] = field(default_factory=list)


@dataclass
class GameState:
    time: TimeState = field(default_factory=TimeState)
    resources: ResourceState = field(default_factory=ResourceState)
    progression: ProgressionState = field(default_factory=ProgressionState)
    inventory: InventoryState = field(default_factory=InventoryState)
    processes: ProcessState = field(default_factory=ProcessState)
    helpers: HelperState = field(default_factory=HelperState)
    location: LocationState = field(default_factory=LocationState)
    automation: AutomationState = field(default_factory=AutomationState)
    priorities: PriorityState = field(default_factory=PriorityState)

    # --- convenience views ------------------------------------------
    @property
    def empty_plots(self) -> int:
        return max(0, self.progression.farm_plots - len(self.processes.crops))

    def ready_crops(self) -> List[CropState]:
        return [c for c in self.processes.crops if c.ready_to_harvest]

    def gnome(self, gnome_id: str) -> Optional[GnomeState]:
        return next((g for g in self.helpers.gnomes if g.id == gnome_id), None)


@dataclass
class GameEvent:
    """Domain event produced by actions and processors."""

    timestamp: int
    type: str
    description: str
    importance: Importance = Importance.LOW
    data: Optional[Dict[str, Any]] = None
