# Adventure combat resolution
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .config import get_parameter_or
from .constants import HelperRole
from .gamedata import GameItem
from .state import Equipment, GnomeState

logger = logging.getLogger(__name__)

WAVE_DAMAGE = 60
ARMOR_DEFENSE_PER_LEVEL = 5
WEAPON_DEFENSE_PER_LEVEL = 3
HELPER_DAMAGE_REDUCTION = 0.1

# Special drops by route, rolled once on a successful run
ROUTE_LOOT = {
    "pine_vale": "pine_resin",
    "dark_forest": "shadow_bark",
    "mountain_pass": "mountain_stone",
}


@dataclass
class AdventureOutcome:
    success: bool
    total_gold: int = 0
    total_xp: int = 0
    final_hp: float = 0
    loot: Dict[str, int] = field(default_factory=dict)
    combat_log: List[str] = field(default_factory=list)


def simulate_adventure(
    route: GameItem,
    weapons: Mapping[str, Equipment],
    armor: Mapping[str, Equipment],
    hero_level: int,
    helpers: List[GnomeState],
    parameters: Mapping[str, Any],
    rng: random.Random,
) -> AdventureOutcome:
    """Fight through ``route`` and report what the hero brings home.

    ``route`` is a length variant from :func:`~balancesim.gamedata.route_variant`
    so its risk, gold and xp are already scaled. The outcome only depends on
    the inputs and the state of ``rng``.
    """
    base_hp = get_parameter_or(parameters, "adventure.combatMechanics.baseHP", 100)
    per_level = get_parameter_or(parameters, "adventure.combatMechanics.hpPerLevel", 20)
    gold_mult = get_parameter_or(parameters, "adventure.lootSystem.goldMultiplier", 1.0)
    xp_mult = get_parameter_or(parameters, "adventure.lootSystem.xpMultiplier", 1.0)

    hp = base_hp + per_level * hero_level
    defense = sum(a.level * ARMOR_DEFENSE_PER_LEVEL for a in armor.values() if a.is_equipped)
    defense += sum(
        w.level * WEAPON_DEFENSE_PER_LEVEL
        for w in weapons.values()
        if w.is_equipped and w.durability > 0
    )
    fighters = sum(
        1
        for g in helpers
        if g.role in (HelperRole.FIGHTER.value, HelperRole.SUPPORT.value)
    )
    reduction = max(0.0, 1 - HELPER_DAMAGE_REDUCTION * fighters)

    waves = 3 + int(route.risk * 5)
    log: List[str] = []
    for wave in range(1, waves + 1):
        damage = route.risk * WAVE_DAMAGE * rng.uniform(0.8, 1.2)
        damage = max(0.0, damage - defense) * reduction
        hp -= damage
        log.append(f"wave {wave}: took {damage:.1f}, hp {max(hp, 0):.1f}")
        if hp <= 0:
            logger.debug("Adventure %s failed at wave %d", route.id, wave)
            return AdventureOutcome(False, final_hp=0, combat_log=log)

    loot: Dict[str, int] = {}
    base_id = route.id.rsplit("_", 1)[0]
    special = ROUTE_LOOT.get(base_id)
    if special and rng.random() < 0.5:
        loot[special] = 1
    return AdventureOutcome(
        True,
        total_gold=int(route.gold_reward * gold_mult),
        total_xp=int(route.xp_reward * xp_mult),
        final_hp=hp,
        loot=loot,
        combat_log=log,
    )
