"""Read-only static game data lookups."""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Multipliers applied to a route's base costs and rewards
ROUTE_LENGTHS = {"short": 1.0, "medium": 2.0, "long": 3.5}


@dataclass(frozen=True)
class GameItem:
    """One row of static game data."""

    id: str
    name: str
    category: str
    feature: str
    energy_cost: int = 0
    gold_cost: int = 0
    time: int = 0
    prerequisites: Tuple[str, ...] = ()
    materials_cost: Dict[str, int] = field(default_factory=dict)
    materials_gain: Dict[str, int] = field(default_factory=dict)
    plots_added: int = 0
    repeatable: bool = False
    tool_required: Optional[str] = None
    gold_reward: int = 0
    xp_reward: int = 0
    energy_value: int = 0
    stages: int = 3
    risk: float = 0.0
    kind: str = ""
    heat: int = 0
    vendor: str = ""
    unlocks: Optional[str] = None
    source_file: str = ""


class GameDataStore:
    """Index over :class:`GameItem` rows.

    Items are grouped by id, by category and by the screen (``feature``) they
    belong to. The store is never mutated after construction.
    """

    def __init__(self, items: Iterable[GameItem]) -> None:
        self._items: Dict[str, GameItem] = {}
        self.items_by_category: Dict[str, List[GameItem]] = defaultdict(list)
        self.items_by_game_feature: Dict[str, List[GameItem]] = defaultdict(list)
        self._by_file: Dict[str, List[GameItem]] = defaultdict(list)
        for item in items:
            if item.id in self._items:
                logger.warning("Duplicate game item id %s ignored", item.id)
                continue
            self._items[item.id] = item
            self.items_by_category[item.category].append(item)
            self.items_by_game_feature[item.feature].append(item)
            if item.source_file:
                self._by_file[item.source_file].append(item)

    @classmethod
    def default(cls) -> "GameDataStore":
        """Build a store from the bundled catalog modules."""
        from .catalog import ITEMS

        return cls(ITEMS)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items.values())

    def get_item_by_id(self, item_id: str) -> Optional[GameItem]:
        return self._items.get(item_id)

    def category(self, name: str) -> List[GameItem]:
        return list(self.items_by_category.get(name, ()))

    def get_specialized_data_by_file(self, filename: str) -> List[GameItem]:
        return list(self._by_file.get(filename, ()))


def route_variant(route: GameItem, length: str) -> GameItem:
    """Return ``route`` scaled to one of the :data:`ROUTE_LENGTHS`."""
    scale = ROUTE_LENGTHS[length]
    return GameItem(
        id=f"{route.id}_{length}",
        name=f"{route.name} ({length})",
        category=route.category,
        feature=route.feature,
        energy_cost=int(route.energy_cost * scale),
        time=int(route.time * scale),
        prerequisites=route.prerequisites,
        gold_reward=int(route.gold_reward * scale),
        xp_reward=int(route.xp_reward * scale),
        risk=min(1.0, route.risk * (1 + (scale - 1) * 0.25)),
        unlocks=route.unlocks,
        source_file=route.source_file,
    )


def split_route_id(target: str) -> Tuple[str, str]:
    """Split ``meadow_path_long`` into ``("meadow_path", "long")``."""
    base, _, length = target.rpartition("_")
    if length not in ROUTE_LENGTHS or not base:
        return target, "short"
    return base, length
