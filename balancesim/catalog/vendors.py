from __future__ import annotations

from ..gamedata import GameItem

FILE = "town_vendors.csv"


def _good(id, name, kind, gold, vendor, *prereqs, feature="town", unlocks=None, **extra):
    return GameItem(
        id=id,
        name=name,
        category="vendor",
        feature=feature,
        kind=kind,
        gold_cost=gold,
        vendor=vendor,
        prerequisites=tuple(prereqs),
        unlocks=unlocks,
        **extra,
    )


ITEMS = [
    # Blueprints are built after purchase
    _good(
        "blueprint_tower",
        "Tower Blueprint",
        "blueprint",
        25,
        "carpenter",
        unlocks="tower",
        energy_cost=20,
        time=10,
        materials_cost={"wood": 10, "stone": 5},
    ),
    _good(
        "blueprint_gnome_hut",
        "Gnome Hut Blueprint",
        "blueprint",
        120,
        "carpenter",
        unlocks="housing",
        energy_cost=30,
        time=20,
        materials_cost={"wood": 20, "stone": 10},
    ),
    _good("material_crate_i", "Material Crate I", "upgrade", 150, "carpenter"),
    _good("material_crate_ii", "Material Crate II", "upgrade", 400, "carpenter", "material_crate_i"),
    _good(
        "material_warehouse",
        "Material Warehouse",
        "upgrade",
        1000,
        "carpenter",
        "material_crate_ii",
    ),
    _good("well_pump_i", "Well Pump I", "upgrade", 100, "agronomist"),
    _good("well_pump_ii", "Well Pump II", "upgrade", 300, "agronomist", "well_pump_i"),
    _good("sprinkler_can", "Sprinkler Can", "tool", 400, "agronomist", "watering_can_ii"),
    _good("tower_reach_2", "Tower Reach II", "upgrade", 80, "land_steward", feature="tower"),
    _good(
        "tower_reach_3",
        "Tower Reach III",
        "upgrade",
        240,
        "land_steward",
        "tower_reach_2",
        feature="tower",
    ),
    _good("auto_catcher", "Auto Catcher", "upgrade", 1000, "land_steward", feature="tower"),
    _good(
        "emergency_wood_bundle",
        "Wood Bundle",
        "material",
        20,
        "carpenter",
        materials_gain={"wood": 10},
    ),
]
