"""Progression rules and prerequisite checks."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .constants import (
    LAND_STAGES,
    Phase,
    SCREEN_LEVEL_REQUIREMENTS,
    Screen,
    VICTORY_FARM_PLOTS,
    VICTORY_HERO_LEVEL,
)
from .gamedata import GameItem
from .state import GameState

logger = logging.getLogger(__name__)


def farm_stage_from_plots(plots: int) -> int:
    for stage, limit in enumerate((20, 40, 65, 90), start=1):
        if plots < limit:
            return stage
    return 5


def current_phase(state: GameState) -> Phase:
    prog = state.progression
    if prog.victory_conditions_met:
        return Phase.POST
    plots, level = prog.farm_plots, prog.hero_level
    if plots < 20 and level < 3:
        return Phase.TUTORIAL
    if plots < 40 or level < 6:
        return Phase.EARLY
    if plots < 65 or level < 9:
        return Phase.MID
    if plots < 90 or level < 12:
        return Phase.LATE
    return Phase.END


def victory_reached(state: GameState) -> bool:
    prog = state.progression
    return prog.farm_plots >= VICTORY_FARM_PLOTS or prog.hero_level >= VICTORY_HERO_LEVEL


def xp_for_level(level: int) -> int:
    """Total experience needed to reach ``level``."""
    return 25 * (level - 1) * level


def level_for_experience(experience: int) -> int:
    level = 1
    while experience >= xp_for_level(level + 1):
        level += 1
    return level


def has_tool(state: GameState, tool: Optional[str]) -> bool:
    if not tool or tool == "hands":
        return True
    return tool in state.inventory.tools


def _numeric_suffix(text: str, prefix: str) -> Optional[int]:
    try:
        return int(text[len(prefix):])
    except ValueError:
        return None


def has_prerequisite(state: GameState, prereq: str) -> bool:
    """Return True if ``prereq`` is satisfied by ``state``."""
    prog = state.progression
    inv = state.inventory
    if prereq in prog.unlocked_upgrades or prereq in prog.completed_cleanups:
        return True
    if prereq in prog.completed_adventures or prereq in prog.unlocked_areas:
        return True
    if prereq in inv.blueprints or prereq in inv.tools:
        return True
    if prereq in inv.weapons or prereq in inv.armor:
        return True
    if prereq == "tutorial_complete":
        return prog.current_phase is not Phase.TUTORIAL
    if prereq in LAND_STAGES:
        return prog.farm_plots >= LAND_STAGES[prereq]
    if prereq.startswith("farm_stage_"):
        stage = _numeric_suffix(prereq, "farm_stage_")
        return stage is not None and prog.farm_stage >= stage
    if prereq.startswith("hero_level_"):
        level = _numeric_suffix(prereq, "hero_level_")
        return level is not None and prog.hero_level >= level
    return False


def missing_prerequisites(state: GameState, prereqs: Iterable[str]) -> List[str]:
    return [p for p in prereqs if not has_prerequisite(state, p)]


def can_access_screen(state: GameState, screen: Screen) -> bool:
    if screen in (Screen.FARM, Screen.MENU):
        return True
    if screen.value in state.progression.unlocked_areas:
        return True
    if screen is Screen.TOWER:
        return state.progression.current_phase is not Phase.TUTORIAL
    return state.progression.hero_level >= SCREEN_LEVEL_REQUIREMENTS[screen]


# --- dependency graph -------------------------------------------------
@dataclass
class DependencyNode:
    id: str
    prerequisites: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)
    depth: int = 0


@dataclass
class DependencyPath:
    path: List[str]
    is_cycle: bool = True


class DependencyGraph:
    """Prerequisite graph over game items keyed by their stable id.

    Cycles are detected and reported but never broken.
    """

    def __init__(self) -> None:
        self.nodes: Dict[str, DependencyNode] = {}

    @classmethod
    def from_items(cls, items: Iterable[GameItem]) -> "DependencyGraph":
        graph = cls()
        graph.build(items)
        return graph

    def build(self, items: Iterable[GameItem]) -> None:
        items = list(items)
        self.nodes = {item.id: DependencyNode(item.id) for item in items}
        for item in items:
            self.add_edges(item.id, item.prerequisites)
        self._calculate_depths()
        logger.debug("Dependency graph built with %d nodes", len(self.nodes))

    def add_edges(self, item_id: str, prerequisites: Iterable[str]) -> None:
        node = self.nodes.setdefault(item_id, DependencyNode(item_id))
        for prereq in prerequisites:
            if prereq in node.prerequisites:
                continue
            node.prerequisites.append(prereq)
            target = self.nodes.get(prereq)
            if target is not None and item_id not in target.dependents:
                target.dependents.append(item_id)

    def has_item(self, item_id: str) -> bool:
        return item_id in self.nodes

    def get_prerequisites(self, item_id: str) -> List[str]:
        node = self.nodes.get(item_id)
        return list(node.prerequisites) if node else []

    def get_dependents(self, item_id: str) -> List[str]:
        return [n.id for n in self.nodes.values() if item_id in n.prerequisites]

    def get_all_prerequisites(self, item_id: str) -> List[str]:
        visited = set()
        result: List[str] = []

        def traverse(node_id: str) -> None:
            if node_id in visited:
                return
            visited.add(node_id)
            node = self.nodes.get(node_id)
            if node is None:
                return
            for prereq in node.prerequisites:
                if prereq not in result:
                    result.append(prereq)
                traverse(prereq)

        traverse(item_id)
        return result

    def detect_cycles(self) -> List[DependencyPath]:
        cycles: List[DependencyPath] = []
        visited = set()
        on_stack = set()

        def visit(node_id: str, path: List[str]) -> None:
            if node_id in on_stack:
                start = path.index(node_id)
                cycles.append(DependencyPath(path[start:] + [node_id]))
                return
            if node_id in visited:
                return
            visited.add(node_id)
            on_stack.add(node_id)
            node = self.nodes.get(node_id)
            if node is not None:
                for prereq in node.prerequisites:
                    visit(prereq, path + [node_id])
            on_stack.discard(node_id)

        for node_id in self.nodes:
            if node_id not in visited:
                visit(node_id, [])
        return cycles

    def find_path(self, from_id: str, to_id: str) -> Optional[List[str]]:
        """Shortest path between two items following edges in either direction."""
        if from_id not in self.nodes or to_id not in self.nodes:
            return None
        queue = deque([(from_id, [from_id])])
        visited = set()
        while queue:
            node_id, path = queue.popleft()
            if node_id in visited:
                continue
            visited.add(node_id)
            if node_id == to_id:
                return path
            node = self.nodes[node_id]
            for next_id in node.prerequisites + node.dependents:
                if next_id in self.nodes and next_id not in visited:
                    queue.append((next_id, path + [next_id]))
        return None

    def _calculate_depths(self) -> None:
        visited = set()
        queue = deque()
        for node in self.nodes.values():
            node.depth = 0
            if not any(p in self.nodes for p in node.prerequisites):
                visited.add(node.id)
                queue.append(node)
        while queue:
            current = queue.popleft()
            for dep_id in current.dependents:
                dep = self.nodes.get(dep_id)
                if dep is None or dep_id in visited:
                    continue
                if all(p in visited or p not in self.nodes for p in dep.prerequisites):
                    dep.depth = 1 + max(
                        (self.nodes[p].depth for p in dep.prerequisites if p in self.nodes),
                        default=0,
                    )
                    visited.add(dep_id)
                    queue.append(dep)

    def items_at_depth(self, depth: int) -> List[str]:
        return [n.id for n in self.nodes.values() if n.depth == depth]

    def max_depth(self) -> int:
        return max((n.depth for n in self.nodes.values()), default=0)

    def stats(self) -> Dict[str, int]:
        return {
            "total_nodes": len(self.nodes),
            "total_dependencies": sum(len(n.prerequisites) for n in self.nodes.values()),
            "max_depth": self.max_depth(),
            "items_without_prereqs": sum(1 for n in self.nodes.values() if not n.prerequisites),
            "cycles": len(self.detect_cycles()),
        }
