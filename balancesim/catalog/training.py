from __future__ import annotations

from ..gamedata import GameItem

FILE = "skills_training.csv"


def _skill(id, name, gold, energy, xp, *prereqs):
    return GameItem(
        id=id,
        name=name,
        category="training",
        feature="town",
        gold_cost=gold,
        energy_cost=energy,
        xp_reward=xp,
        time=15,
        prerequisites=tuple(prereqs),
    )


ITEMS = [
    _skill("carry_capacity", "Carry Capacity", 40, 10, 25),
    _skill("stamina", "Stamina", 60, 15, 40, "hero_level_3"),
    _skill("swordsmanship", "Swordsmanship", 120, 20, 80, "hero_level_5"),
]
