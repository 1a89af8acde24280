import random

from cavern.dungeon.automata import smooth
from cavern.dungeon.cells import CellState, Grid
from cavern.dungeon.noise import fill_noise_field
from cavern.dungeon.regions import (
    ROOM_COLOR,
    Region,
    RegionExtractor,
    build_wall_lists,
    connected_cells,
    connected_region_ids,
    extract_regions,
    region_color,
)
from dungeon_test_utils import small_config


def _assert_partition(grid, regions, state=CellState.FLOOR):
    seen = set()
    for r in regions:
        assert r.size > 0
        assert not (seen & r.cells)
        seen |= r.cells
    assert seen == set(grid.cells_with(state))


def test_two_rooms_found_in_scan_order():
    g = Grid.from_rows([
        "#####",
        "#..##",
        "#..#.",
        "#####",
    ])
    regions = extract_regions(g)
    assert [r.id for r in regions] == [0, 1]
    assert regions[0].cells == {(1, 1), (2, 1), (1, 2), (2, 2)}
    assert regions[1].cells == {(4, 2)}
    assert regions[0].name == "Room 0"
    assert regions[0].color == ROOM_COLOR


def test_wall_regions_are_islands():
    g = Grid.from_rows([
        ".....",
        ".#...",
        "...##",
    ])
    islands = extract_regions(g, CellState.WALL)
    assert [r.size for r in islands] == [1, 2]
    assert islands[1].name == "Island 1"


def test_diagonal_cells_are_separate_regions():
    g = Grid.from_rows([
        ".#",
        "#.",
    ])
    assert len(extract_regions(g)) == 2


def test_partition_on_random_noise_grid():
    # 10x10, 45% fill, no coherent noise, no smoothing
    cfg = small_config(width=10, height=10, fill_percent=45, use_noise=False, automata_steps=0)
    g = fill_noise_field(Grid(10, 10), cfg, random.Random(2024))
    regions = extract_regions(g)
    assert sum(r.size for r in regions) == g.count(CellState.FLOOR)
    _assert_partition(g, regions)


def test_partition_after_smoothing():
    cfg = small_config()
    g = smooth(fill_noise_field(Grid(cfg.width, cfg.height), cfg, random.Random(8)), 4)
    _assert_partition(g, extract_regions(g))
    _assert_partition(g, extract_regions(g, CellState.WALL), CellState.WALL)


def test_incremental_extraction_matches_one_shot():
    cfg = small_config()
    g = smooth(fill_noise_field(Grid(cfg.width, cfg.height), cfg, random.Random(11)), 3)
    expected = [r.cells for r in extract_regions(g)]

    ex = RegionExtractor(g)
    calls = 0
    while not ex.done:
        ex.advance(7)
        calls += 1
    assert [r.cells for r in ex.regions] == expected
    assert calls > len(expected)
    assert ex.cells_processed >= sum(len(c) for c in expected)


def test_advance_returns_completed_region():
    g = Grid.from_rows(["..#.."])
    ex = RegionExtractor(g)
    first = ex.advance()
    assert first.cells == {(0, 0), (1, 0)}
    second = ex.advance()
    assert second.cells == {(3, 0), (4, 0)}
    assert ex.advance() is None
    assert ex.done


def test_region_geometry_helpers():
    r = Region(id=0, cells={(2, 1), (5, 1), (2, 4)})
    assert r.bounds() == (2, 1, 5, 4)
    assert r.center() == (3, 2)
    # (2,0) and (2,4) tie; the first in sorted order wins
    assert Region(id=1, cells={(2, 4), (2, 0)}).closest_point((2, 2)) == (2, 0)
    assert r.closest_point((9, 9)) in r.cells


def test_connected_unions_direct_and_transitive():
    a = Region(id=0, cells={(0, 0)})
    b = Region(id=1, cells={(1, 0)})
    c = Region(id=2, cells={(2, 0)})
    d = Region(id=3, cells={(9, 9)})
    a.link(b)
    b.link(c)
    regions = [a, b, c, d]
    assert connected_region_ids(regions, 0) == [0, 1, 2]
    assert connected_region_ids(regions, 0, transitive=False) == [0, 1]
    assert connected_cells(regions, 2) == {(0, 0), (1, 0), (2, 0)}
    assert connected_region_ids(regions, 3) == [3]


def test_build_wall_lists_skips_linked_floor():
    a = Region(id=0, cells={(1, 1)})
    b = Region(id=1, cells={(2, 1)})
    a.link(b)
    walls = build_wall_lists([a, b])
    assert walls[0] == [(0, 1), (1, 0), (1, 2)]
    assert (1, 1) not in walls[1]

    lone = Region(id=5, cells={(0, 0)})
    clipped = build_wall_lists([lone], Grid(3, 3))
    assert clipped[5] == [(0, 1), (1, 0)]


def test_region_colors():
    rng = random.Random(1)
    bright = region_color(rng)
    dark = region_color(rng, highlight=False)
    assert bright.startswith("#") and len(bright) == 7
    assert dark.startswith("#") and len(dark) == 7
    assert max(int(dark[i:i + 2], 16) for i in (1, 3, 5)) <= round(0.4 * 255)
    assert max(int(bright[i:i + 2], 16) for i in (1, 3, 5)) >= round(0.6 * 255)
    assert region_color(None) == ROOM_COLOR
