from balancesim.gamedata import GameItem
from balancesim.prerequisites import DependencyGraph


def _item(id, *prereqs):
    return GameItem(id=id, name=id.title(), category="test", feature="farm", prerequisites=prereqs)


def test_catalog_has_no_cycles(data):
    graph = DependencyGraph.from_items(data)
    assert graph.detect_cycles() == []
    assert graph.has_item("clear_brush")


def test_transitive_prerequisites_and_depth(data):
    graph = DependencyGraph.from_items(data)
    assert set(graph.get_all_prerequisites("clear_brush")) == {"clear_weeds_1", "clear_weeds_2"}
    assert graph.nodes["clear_weeds_1"].depth == 0
    assert graph.nodes["clear_weeds_2"].depth == 1
    assert graph.nodes["clear_brush"].depth == 2
    assert "clear_brush" in graph.items_at_depth(2)
    assert set(graph.get_dependents("clear_weeds_2")) == {"clear_brush", "remove_rocks_1"}


def test_find_path(data):
    graph = DependencyGraph.from_items(data)
    assert graph.find_path("clear_weeds_1", "clear_brush") == [
        "clear_weeds_1",
        "clear_weeds_2",
        "clear_brush",
    ]
    assert graph.find_path("clear_weeds_1", "missing") is None


def test_external_prerequisites_do_not_block_depth():
    graph = DependencyGraph.from_items([_item("corn", "farm_stage_2"), _item("pumpkin", "corn")])
    assert graph.nodes["corn"].depth == 0
    assert graph.nodes["pumpkin"].depth == 1
    assert graph.max_depth() == 1


def test_cycles_are_reported_not_broken():
    graph = DependencyGraph.from_items([_item("a", "c"), _item("b", "a"), _item("c", "b")])
    cycles = graph.detect_cycles()
    assert len(cycles) == 1
    assert cycles[0].path == ["a", "c", "b", "a"]
    assert cycles[0].is_cycle
    assert graph.get_prerequisites("a") == ["c"]
    assert graph.get_prerequisites("c") == ["b"]
    assert graph.stats()["cycles"] == 1


def test_stats(data):
    stats = DependencyGraph.from_items(data).stats()
    assert stats["total_nodes"] == len(data)
    assert stats["items_without_prereqs"] > 0
