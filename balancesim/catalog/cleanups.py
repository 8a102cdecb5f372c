from __future__ import annotations

from ..gamedata import GameItem

FILE = "land_cleanups.csv"


def _cleanup(id, name, energy, plots, *prereqs, tool="hands", gain=None, repeatable=False):
    return GameItem(
        id=id,
        name=name,
        category="cleanup",
        feature="farm",
        energy_cost=energy,
        time=max(1, energy // 5),
        plots_added=plots,
        prerequisites=tuple(prereqs),
        tool_required=tool,
        materials_gain=gain or {},
        repeatable=repeatable,
    )


ITEMS = [
    _cleanup("clear_weeds_1", "Weedy Patch", 15, 2),
    _cleanup("clear_weeds_2", "Overgrown Corner", 20, 2, "clear_weeds_1"),
    _cleanup("clear_brush", "Bramble Thicket", 25, 3, "clear_weeds_2", gain={"wood": 4}),
    _cleanup("remove_rocks_1", "Rocky Strip", 30, 3, "clear_weeds_2", gain={"stone": 5}),
    _cleanup(
        "remove_stumps_1", "Old Stumps", 40, 4, "clear_brush", tool="axe", gain={"wood": 8}
    ),
    _cleanup(
        "break_boulders",
        "Boulder Field",
        60,
        5,
        "remove_rocks_1",
        "farm_stage_2",
        tool="pickaxe",
        gain={"stone": 12},
    ),
    _cleanup("till_south_field", "South Field", 50, 8, "small_hold"),
    _cleanup("drain_marsh", "Marsh Edge", 70, 10, "homestead", tool="pickaxe"),
    _cleanup(
        "gather_deadwood", "Deadwood", 10, 0, tool="hands", gain={"wood": 3}, repeatable=True
    ),
    _cleanup(
        "collect_stones", "Loose Stones", 10, 0, tool="hands", gain={"stone": 3}, repeatable=True
    ),
]
