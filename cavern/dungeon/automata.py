"""Cellular automaton smoothing (the 4-5 cave rule)."""
from __future__ import annotations

from .cells import MOORE_DIRS, CellState, Grid

# wall survives with >= WALL_SURVIVE wall neighbours; floor turns to wall above FLOOR_TO_WALL
WALL_SURVIVE = 3
FLOOR_TO_WALL = 4


def count_wall_neighbors(grid: Grid, x: int, y: int) -> int:
    """Walls among the 8 neighbours; out-of-bounds counts as wall."""
    count = 0
    w, h = grid.width, grid.height
    cells = grid.cells
    for dx, dy in MOORE_DIRS:
        nx, ny = x + dx, y + dy
        if nx < 0 or ny < 0 or nx >= w or ny >= h:
            count += 1
        elif cells[ny * w + nx] is CellState.WALL:
            count += 1
    return count


def run_simulation_step(grid: Grid) -> Grid:
    """Return a new grid after one automaton iteration. ``grid`` is untouched."""
    out = grid.copy()
    src = grid.cells
    dst = out.cells
    w = grid.width
    for y in range(grid.height):
        for x in range(w):
            walls = count_wall_neighbors(grid, x, y)
            if src[y * w + x] is CellState.WALL:
                wall = walls >= WALL_SURVIVE
            else:
                wall = walls > FLOOR_TO_WALL
            dst[y * w + x] = CellState.WALL if wall else CellState.FLOOR
    return out


def smooth(grid: Grid, steps: int) -> Grid:
    for _ in range(steps):
        grid = run_simulation_step(grid)
    return grid


__all__ = ["count_wall_neighbors", "run_simulation_step", "smooth"]
