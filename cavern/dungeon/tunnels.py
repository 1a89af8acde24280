from typing import Iterable, List, Set

from .cells import CellState, Coord2D, Grid


def brush_offsets(width: int) -> range:
    """Offsets covered by a square brush of ``width`` on one axis."""
    neg = -(width // 2)
    return range(neg, neg + width)


def clamp_path(grid: Grid, path: Iterable[Coord2D]) -> List[Coord2D]:
    """Pull path cells that wander off the grid back onto its edge.

    Clamping moves each axis independently, so neighbouring cells stay
    neighbours.
    """
    max_x = grid.width - 1
    max_y = grid.height - 1
    return [(min(max(x, 0), max_x), min(max(y, 0), max_y)) for x, y in path]


def carve_path(grid: Grid, path: Iterable[Coord2D], width: int, state: CellState = CellState.FLOOR) -> Set[Coord2D]:
    """Stamp a ``width`` x ``width`` brush on every path cell.

    Returns the in-bounds cells that were set; out-of-bounds cells are skipped.
    """
    if width < 1:
        raise ValueError(f"brush width must be >= 1, got {width}")
    offsets = brush_offsets(width)
    carved: Set[Coord2D] = set()
    for px, py in path:
        for dx in offsets:
            for dy in offsets:
                x, y = px + dx, py + dy
                if grid.in_bounds(x, y):
                    grid.set(x, y, state)
                    carved.add((x, y))
    return carved


__all__ = ["carve_path", "clamp_path", "brush_offsets"]
