"""Cell states and the flat row-major grid shared by every generation phase."""
from __future__ import annotations

from enum import Enum
from typing import Iterator, List, Optional, Tuple

Coord2D = Tuple[int, int]

# 4-connected (flood fill) and 8-connected (automata) neighbourhoods
ORTHOGONAL_DIRS: Tuple[Coord2D, ...] = ((0, 1), (0, -1), (-1, 0), (1, 0))
MOORE_DIRS: Tuple[Coord2D, ...] = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
)


class CellState(Enum):
    WALL = "wall"
    FLOOR = "floor"

    @property
    def opposite(self) -> "CellState":
        return CellState.FLOOR if self is CellState.WALL else CellState.WALL


class Grid:
    """Fixed-size 2D grid of CellState stored as a flat row-major list.

    ``heights`` is an optional parallel list of per-cell integers. The
    generation core never reads or modifies it; it is only carried along by
    ``copy()`` so downstream consumers (mesh builders, renderers) keep it.
    """

    __slots__ = ("width", "height", "cells", "heights")

    def __init__(
        self,
        width: int,
        height: int,
        fill: CellState = CellState.WALL,
        heights: Optional[List[int]] = None,
    ):
        if width <= 0 or height <= 0:
            raise ValueError(f"grid dimensions must be positive, got {width}x{height}")
        if heights is not None and len(heights) != width * height:
            raise ValueError("heights must have exactly width*height entries")
        self.width = width
        self.height = height
        self.cells: List[CellState] = [fill] * (width * height)
        self.heights = list(heights) if heights is not None else None

    # ------------------------------------------------------------------
    # indexing helpers
    # ------------------------------------------------------------------
    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def index(self, x: int, y: int) -> int:
        if not self.in_bounds(x, y):
            raise IndexError(f"cell ({x},{y}) outside {self.width}x{self.height} grid")
        return y * self.width + x

    def get(self, x: int, y: int) -> CellState:
        return self.cells[self.index(x, y)]

    def set(self, x: int, y: int, state: CellState) -> None:
        self.cells[self.index(x, y)] = state

    def is_wall(self, x: int, y: int) -> bool:
        return self.cells[self.index(x, y)] is CellState.WALL

    def height_at(self, x: int, y: int) -> Optional[int]:
        if self.heights is None:
            return None
        return self.heights[self.index(x, y)]

    # ------------------------------------------------------------------
    # bulk helpers
    # ------------------------------------------------------------------
    def coords(self) -> Iterator[Coord2D]:
        """Yield every coordinate in row-major order."""
        for y in range(self.height):
            for x in range(self.width):
                yield x, y

    def cells_with(self, state: CellState) -> Iterator[Coord2D]:
        w = self.width
        for i, s in enumerate(self.cells):
            if s is state:
                yield i % w, i // w

    def count(self, state: CellState) -> int:
        return sum(1 for s in self.cells if s is state)

    def copy(self) -> "Grid":
        g = Grid.__new__(Grid)
        g.width = self.width
        g.height = self.height
        g.cells = list(self.cells)
        g.heights = list(self.heights) if self.heights is not None else None
        return g

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.cells == other.cells
            and self.heights == other.heights
        )

    def __repr__(self) -> str:
        return f"Grid({self.width}x{self.height}, floor={self.count(CellState.FLOOR)})"

    @classmethod
    def from_rows(cls, rows: List[str], wall: str = "#") -> "Grid":
        """Build a grid from strings, one per row (y), ``wall`` marking walls.

        Any other character is floor. Handy for fixtures.
        """
        if not rows:
            raise ValueError("rows must not be empty")
        width = len(rows[0])
        grid = cls(width, len(rows), CellState.FLOOR)
        for y, row in enumerate(rows):
            if len(row) != width:
                raise ValueError("all rows must have the same length")
            for x, ch in enumerate(row):
                if ch == wall:
                    grid.set(x, y, CellState.WALL)
        return grid


__all__ = ["CellState", "Grid", "Coord2D", "ORTHOGONAL_DIRS", "MOORE_DIRS"]
