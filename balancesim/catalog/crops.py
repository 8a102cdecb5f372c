from __future__ import annotations

from ..gamedata import GameItem

FILE = "crops.csv"


def _crop(id, name, time, stages, energy, gold, *prereqs):
    return GameItem(
        id=id,
        name=name,
        category="crop",
        feature="farm",
        time=time,
        stages=stages,
        energy_value=energy,
        gold_reward=gold,
        prerequisites=tuple(prereqs),
    )


ITEMS = [
    _crop("turnip", "Turnip", 10, 3, 1, 5),
    _crop("beet", "Beet", 15, 3, 2, 8),
    _crop("carrot", "Carrot", 20, 3, 3, 12),
    _crop("potato", "Potato", 30, 4, 4, 18),
    _crop("corn", "Corn", 45, 4, 6, 30, "farm_stage_2"),
    _crop("pumpkin", "Pumpkin", 90, 5, 12, 60, "farm_stage_3"),
]
