from cavern.dungeon.cells import CellState
from cavern.dungeon.pruning import prune_small_regions
from cavern.dungeon.regions import extract_regions
from dungeon_test_utils import blank_grid, paint, rect


def _two_rooms():
    g = blank_grid(20, 10)
    paint(g, rect(0, 0, 9, 4))  # 50 cells
    paint(g, [(15, 8), (16, 8), (17, 8)])  # 3 cells
    return g, extract_regions(g)


def test_only_small_region_removed():
    g, regions = _two_rooms()
    assert sorted(r.size for r in regions) == [3, 50]
    removed = prune_small_regions(g, regions, 10, CellState.WALL)
    assert removed == 1
    assert [r.size for r in regions] == [50]
    assert g.get(16, 8) is CellState.WALL
    assert g.get(0, 0) is CellState.FLOOR
    assert g.count(CellState.FLOOR) == 50


def test_everything_can_be_removed():
    g, regions = _two_rooms()
    assert prune_small_regions(g, regions, 100, CellState.WALL) == 2
    assert regions == []
    assert g.count(CellState.FLOOR) == 0


def test_minimum_zero_keeps_all():
    g, regions = _two_rooms()
    assert prune_small_regions(g, regions, 0, CellState.WALL) == 0
    assert len(regions) == 2


def test_wall_islands_become_floor():
    g = blank_grid(8, 8, CellState.FLOOR)
    paint(g, [(3, 3), (4, 3)], CellState.WALL)
    paint(g, rect(0, 7, 7, 7), CellState.WALL)
    islands = extract_regions(g, CellState.WALL)
    removed = prune_small_regions(g, islands, 5, CellState.FLOOR)
    assert removed == 1
    assert g.get(3, 3) is CellState.FLOOR
    assert g.get(0, 7) is CellState.WALL
    assert all(r.size >= 5 for r in islands)
