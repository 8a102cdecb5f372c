"""Closed set of simulated player actions.

Each :class:`ActionType` has exactly one variant class carrying only the
fields it needs. Common cost and reward data lives on :class:`Action`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, Optional, Tuple

from .constants import ActionType, Screen


@dataclass
class Reward:
    """Expected outcome of an action, used for scoring."""

    gold: int = 0
    energy: float = 0
    water: float = 0
    experience: int = 0
    plots: int = 0
    materials: Dict[str, int] = field(default_factory=dict)
    seeds: Dict[str, int] = field(default_factory=dict)


@dataclass(kw_only=True)
class Action:
    type: ClassVar[ActionType]

    screen: Screen
    energy_cost: float = 0
    gold_cost: int = 0
    duration: int = 1
    prerequisites: Tuple[str, ...] = ()
    material_costs: Dict[str, int] = field(default_factory=dict)
    reward: Reward = field(default_factory=Reward)
    risk: float = 0.0
    description: str = ""
    score: Optional[float] = None

    @property
    def target(self) -> Optional[str]:
        return None

    @property
    def id(self) -> str:
        target = self.target
        return f"{self.type.value}_{target}" if target else self.type.value

    def __str__(self) -> str:
        return self.id


@dataclass(kw_only=True)
class Plant(Action):
    type: ClassVar[ActionType] = ActionType.PLANT
    crop_id: str

    @property
    def target(self) -> str:
        return self.crop_id


@dataclass(kw_only=True)
class Harvest(Action):
    type: ClassVar[ActionType] = ActionType.HARVEST
    plot_id: str

    @property
    def target(self) -> str:
        return self.plot_id


@dataclass(kw_only=True)
class Water(Action):
    type: ClassVar[ActionType] = ActionType.WATER
    amount: float = 1.0


@dataclass(kw_only=True)
class Pump(Action):
    type: ClassVar[ActionType] = ActionType.PUMP


@dataclass(kw_only=True)
class Cleanup(Action):
    type: ClassVar[ActionType] = ActionType.CLEANUP
    cleanup_id: str
    plots_added: int = 0
    repeatable: bool = False
    tool_required: Optional[str] = None

    @property
    def target(self) -> str:
        return self.cleanup_id


@dataclass(kw_only=True)
class Move(Action):
    type: ClassVar[ActionType] = ActionType.MOVE
    to_screen: Screen
    reason: str = ""
    need: float = 0.0

    @property
    def target(self) -> str:
        return self.to_screen.value


@dataclass(kw_only=True)
class CatchSeeds(Action):
    type: ClassVar[ActionType] = ActionType.CATCH_SEEDS


@dataclass(kw_only=True)
class Purchase(Action):
    type: ClassVar[ActionType] = ActionType.PURCHASE
    item_id: str
    kind: str = ""

    @property
    def target(self) -> str:
        return self.item_id


@dataclass(kw_only=True)
class Adventure(Action):
    type: ClassVar[ActionType] = ActionType.ADVENTURE
    route_id: str
    length: str = "short"

    @property
    def target(self) -> str:
        return f"{self.route_id}_{self.length}"


@dataclass(kw_only=True)
class Build(Action):
    type: ClassVar[ActionType] = ActionType.BUILD
    blueprint_id: str

    @property
    def target(self) -> str:
        return self.blueprint_id


@dataclass(kw_only=True)
class Craft(Action):
    type: ClassVar[ActionType] = ActionType.CRAFT
    item_id: str
    kind: str = ""

    @property
    def target(self) -> str:
        return self.item_id


@dataclass(kw_only=True)
class Stoke(Action):
    type: ClassVar[ActionType] = ActionType.STOKE


@dataclass(kw_only=True)
class Mine(Action):
    type: ClassVar[ActionType] = ActionType.MINE
    session_minutes: int = 5


@dataclass(kw_only=True)
class AssignRole(Action):
    type: ClassVar[ActionType] = ActionType.ASSIGN_ROLE
    gnome_id: str
    role: str

    @property
    def target(self) -> str:
        return f"{self.gnome_id}:{self.role}"


@dataclass(kw_only=True)
class TrainHelper(Action):
    type: ClassVar[ActionType] = ActionType.TRAIN_HELPER
    gnome_id: str

    @property
    def target(self) -> str:
        return self.gnome_id


@dataclass(kw_only=True)
class Train(Action):
    type: ClassVar[ActionType] = ActionType.TRAIN
    skill_id: str

    @property
    def target(self) -> str:
        return self.skill_id


@dataclass(kw_only=True)
class Rescue(Action):
    type: ClassVar[ActionType] = ActionType.RESCUE
    gnome_id: str

    @property
    def target(self) -> str:
        return self.gnome_id


@dataclass(kw_only=True)
class SellMaterial(Action):
    type: ClassVar[ActionType] = ActionType.SELL_MATERIAL
    material: str
    amount: int

    @property
    def target(self) -> str:
        return self.material


@dataclass(kw_only=True)
class Wait(Action):
    type: ClassVar[ActionType] = ActionType.WAIT


ACTION_CLASSES: Dict[ActionType, type] = {cls.type: cls for cls in Action.__subclasses__()}

assert set(ACTION_CLASSES) == set(ActionType), "every action type needs a variant"
