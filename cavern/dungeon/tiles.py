from typing import Iterable, List, Set

from .cells import CellState, Coord2D, Grid

# Tile characters used by the text and JSON exports
WALL = "#"
ROOM = "."
TUNNEL = "+"  # floor carved by a corridor


def grid_to_rows(grid: Grid, corridor_cells: Iterable[Coord2D] = ()) -> List[str]:
    """Render the grid as one string per row (y), top row first."""
    tunnels: Set[Coord2D] = set(corridor_cells)
    rows = []
    for y in range(grid.height):
        line = []
        for x in range(grid.width):
            if grid.get(x, y) is CellState.WALL:
                line.append(WALL)
            elif (x, y) in tunnels:
                line.append(TUNNEL)
            else:
                line.append(ROOM)
        rows.append("".join(line))
    return rows


__all__ = ["WALL", "ROOM", "TUNNEL", "grid_to_rows"]
