"""Affordability and prerequisite filtering of candidate actions."""
from __future__ import annotations

import logging
from typing import List, Optional

from . import actions as act
from .constants import Screen
from .prerequisites import can_access_screen, has_prerequisite, has_tool
from .resources import ResourceManager, ResourceRequirements
from .state import GameState

logger = logging.getLogger(__name__)

RESCUE_MIN_ENERGY = 20


def requirements_for(action: act.Action) -> ResourceRequirements:
    req = ResourceRequirements(
        energy=action.energy_cost,
        gold=action.gold_cost,
        materials=dict(action.material_costs),
    )
    if isinstance(action, act.Plant):
        req.seeds = {action.crop_id: 1}
    return req


def rejection_reason(action: act.Action, state: GameState) -> Optional[str]:
    """Return why ``action`` cannot happen now, or ``None`` if it can."""
    manager = ResourceManager(state)
    if not manager.can_afford(requirements_for(action)):
        return "unaffordable"
    for prereq in action.prerequisites:
        if not has_prerequisite(state, prereq):
            return f"missing prerequisite {prereq}"

    if isinstance(action, act.Move):
        if action.to_screen is state.location.current_screen:
            return "already there"
        if not can_access_screen(state, action.to_screen):
            return f"{action.to_screen.value} locked"
    elif isinstance(action, act.CatchSeeds):
        if state.location.current_screen is not Screen.TOWER:
            return "not at tower"
    elif isinstance(action, act.Rescue):
        if state.resources.energy.current < RESCUE_MIN_ENERGY:
            return "too tired to rescue"
    elif isinstance(action, act.Plant):
        if state.empty_plots <= 0:
            return "no empty plot"
    elif isinstance(action, act.Harvest):
        crop = next((c for c in state.processes.crops if c.plot_id == action.plot_id), None)
        if crop is None or not (crop.ready_to_harvest or crop.is_withered):
            return "nothing to harvest"
    elif isinstance(action, act.Water):
        if state.resources.water.current <= 0:
            return "no water"
    elif isinstance(action, act.Cleanup):
        if not has_tool(state, action.tool_required):
            return f"needs {action.tool_required}"
        if not action.repeatable and action.cleanup_id in state.progression.completed_cleanups:
            return "already cleared"
    return None


def filter_actions(candidates: List[act.Action], state: GameState) -> List[act.Action]:
    """Keep only candidates that are affordable and unlocked right now."""
    kept = []
    for action in candidates:
        reason = rejection_reason(action, state)
        if reason is None:
            kept.append(action)
        else:
            logger.debug("Filtered %s: %s", action.id, reason)
    return kept
