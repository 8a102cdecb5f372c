from __future__ import annotations

from ..gamedata import GameItem

FILE = "forge_items.csv"


def _recipe(id, name, kind, time, heat, materials, *prereqs, energy=10):
    return GameItem(
        id=id,
        name=name,
        category="recipe",
        feature="forge",
        kind=kind,
        time=time,
        heat=heat,
        energy_cost=energy,
        materials_cost=materials,
        prerequisites=tuple(prereqs),
    )


ITEMS = [
    _recipe("axe", "Axe", "tool", 10, 1, {"wood": 3, "stone": 2}),
    _recipe("pickaxe", "Pickaxe", "tool", 15, 1, {"wood": 3, "iron": 2}),
    _recipe("watering_can_ii", "Watering Can II", "tool", 20, 1, {"iron": 4}, "hero_level_5"),
    _recipe("sword_i", "Iron Sword", "weapon", 20, 1, {"iron": 3, "wood": 2}),
    _recipe("spear_i", "Spear", "weapon", 15, 1, {"wood": 5, "stone": 2}),
    _recipe("bow_i", "Short Bow", "weapon", 25, 1, {"wood": 6, "silver": 1}, "hero_level_6"),
    _recipe("leather_armor", "Padded Armor", "armor", 20, 1, {"wood": 2, "iron": 2}),
]
