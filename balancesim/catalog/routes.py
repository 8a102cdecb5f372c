from __future__ import annotations

from ..gamedata import GameItem

FILE = "adventures.csv"


def _route(id, name, energy, time, gold, xp, risk, *prereqs, rescues=None):
    return GameItem(
        id=id,
        name=name,
        category="route",
        feature="adventure",
        energy_cost=energy,
        time=time,
        gold_reward=gold,
        xp_reward=xp,
        risk=risk,
        prerequisites=tuple(prereqs),
        unlocks=rescues,
    )


ITEMS = [
    _route("meadow_path", "Meadow Path", 20, 30, 30, 40, 0.1, rescues="willow_gnome"),
    _route(
        "pine_vale", "Pine Vale", 30, 45, 50, 70, 0.25, "meadow_path", rescues="fern_gnome"
    ),
    _route(
        "dark_forest",
        "Dark Forest",
        45,
        60,
        90,
        120,
        0.4,
        "pine_vale",
        "hero_level_7",
        rescues="moss_gnome",
    ),
    _route(
        "mountain_pass",
        "Mountain Pass",
        60,
        90,
        150,
        200,
        0.6,
        "dark_forest",
        rescues="flint_gnome",
    ),
]
