"""Connected-component extraction and region helpers.

A region is a maximal 4-connected set of cells sharing one CellState. Floor
regions become rooms; wall regions are only used to find and remove small
wall islands. Corridors carved later are regions too (``is_corridor``).

Connectivity between regions is recorded only in ``Region.neighbors``; the
helpers below walk those links to build unions of connected cells.
"""
from __future__ import annotations

import colorsys
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .cells import ORTHOGONAL_DIRS, CellState, Coord2D, Grid

ROOM_COLOR = "#ffffff"
CORRIDOR_COLOR = "#404040"

Bounds = Tuple[int, int, int, int]


def region_color(rng: Optional[random.Random], highlight: bool = True) -> str:
    """Random HSV colour as ``#rrggbb``: bright for rooms, dark for corridors."""
    if rng is None:
        return ROOM_COLOR if highlight else CORRIDOR_COLOR
    h = rng.random()
    s = rng.uniform(0.6, 1.0)
    v = rng.uniform(0.6, 1.0) if highlight else rng.uniform(0.1, 0.4)
    r, g, b = colorsys.hsv_to_rgb(h, s, v)
    return "#{:02x}{:02x}{:02x}".format(round(r * 255), round(g * 255), round(b * 255))


def bounds_of(cells: Iterable[Coord2D]) -> Bounds:
    """(min_x, min_y, max_x, max_y) of a non-empty cell collection."""
    xs = []
    ys = []
    for x, y in cells:
        xs.append(x)
        ys.append(y)
    if not xs:
        raise ValueError("bounds of an empty cell set")
    return min(xs), min(ys), max(xs), max(ys)


def center_of(cells: Iterable[Coord2D]) -> Coord2D:
    """Bounding-box center, floor division."""
    min_x, min_y, max_x, max_y = bounds_of(cells)
    return (min_x + max_x) // 2, (min_y + max_y) // 2


def closest_point(cells: Iterable[Coord2D], target: Coord2D) -> Coord2D:
    """Cell nearest ``target`` by squared distance; ties go to the first in sorted order."""
    tx, ty = target
    best = None
    best_d = None
    for x, y in sorted(cells):
        d = (x - tx) * (x - tx) + (y - ty) * (y - ty)
        if best_d is None or d < best_d:
            best, best_d = (x, y), d
    if best is None:
        raise ValueError("closest point of an empty cell set")
    return best


@dataclass
class Region:
    id: int
    cells: Set[Coord2D] = field(default_factory=set)
    is_corridor: bool = False
    neighbors: Set[int] = field(default_factory=set)
    name: str = ""
    color: str = ROOM_COLOR

    @property
    def size(self) -> int:
        return len(self.cells)

    def bounds(self) -> Bounds:
        return bounds_of(self.cells)

    def center(self) -> Coord2D:
        return center_of(self.cells)

    def closest_point(self, target: Coord2D) -> Coord2D:
        return closest_point(self.cells, target)

    def link(self, other: "Region") -> None:
        """Record a bidirectional connection."""
        self.neighbors.add(other.id)
        other.neighbors.add(self.id)

    def to_dict(self) -> Dict:
        min_x, min_y, max_x, max_y = self.bounds()
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "is_corridor": self.is_corridor,
            "color": self.color,
            "neighbors": sorted(self.neighbors),
            "bounds": [min_x, min_y, max_x, max_y],
            "center": list(self.center()),
        }


class RegionExtractor:
    """Resumable flood fill over every cell whose state equals ``target``.

    ``advance(cell_budget)`` visits at most ``cell_budget`` cells (scanned or
    flooded) and returns early with the region it just completed, so callers
    can hand control back between chunks. ``run()`` finishes in one go.
    """

    def __init__(
        self,
        grid: Grid,
        target: CellState = CellState.FLOOR,
        rng: Optional[random.Random] = None,
        first_id: int = 0,
        label: Optional[str] = None,
    ):
        self.grid = grid
        self.target = target
        self.rng = rng
        self.label = label or ("Room" if target is CellState.FLOOR else "Island")
        self.regions: List[Region] = []
        self.cells_processed = 0
        self._next_id = first_id
        self._visited = bytearray(grid.width * grid.height)
        self._scan = 0
        self._queue: Optional[deque] = None
        self._current: Optional[Set[Coord2D]] = None

    @property
    def done(self) -> bool:
        return self._queue is None and self._scan >= len(self.grid.cells)

    def _start_region(self, index: int) -> None:
        w = self.grid.width
        self._visited[index] = 1
        self._queue = deque([(index % w, index // w)])
        self._current = set()

    def _finish_region(self) -> Region:
        rid = self._next_id
        self._next_id += 1
        region = Region(
            id=rid,
            cells=self._current,
            name=f"{self.label} {rid}",
            color=region_color(self.rng, highlight=True),
        )
        self.regions.append(region)
        self._queue = None
        self._current = None
        return region

    def advance(self, cell_budget: Optional[int] = None) -> Optional[Region]:
        """Do a bounded amount of work; return the region completed, if any."""
        grid = self.grid
        cells = grid.cells
        w, h = grid.width, grid.height
        visited = self._visited
        target = self.target
        total = len(cells)
        processed = 0
        while cell_budget is None or processed < cell_budget:
            if self._queue is None:
                while self._scan < total and (visited[self._scan] or cells[self._scan] is not target):
                    self._scan += 1
                    processed += 1
                    if cell_budget is not None and processed >= cell_budget:
                        self.cells_processed += processed
                        return None
                if self._scan >= total:
                    break
                self._start_region(self._scan)
            queue = self._queue
            current = self._current
            while queue:
                x, y = queue.popleft()
                current.add((x, y))
                processed += 1
                for dx, dy in ORTHOGONAL_DIRS:
                    nx, ny = x + dx, y + dy
                    if nx < 0 or ny < 0 or nx >= w or ny >= h:
                        continue
                    ni = ny * w + nx
                    if not visited[ni] and cells[ni] is target:
                        visited[ni] = 1
                        queue.append((nx, ny))
                if cell_budget is not None and processed >= cell_budget and queue:
                    self.cells_processed += processed
                    return None
            self.cells_processed += processed
            return self._finish_region()
        self.cells_processed += processed
        return None

    def run(self) -> List[Region]:
        while not self.done:
            self.advance()
        return self.regions


def extract_regions(
    grid: Grid,
    target: CellState = CellState.FLOOR,
    rng: Optional[random.Random] = None,
    first_id: int = 0,
) -> List[Region]:
    """All regions of ``target`` cells in row-major discovery order."""
    return RegionExtractor(grid, target, rng=rng, first_id=first_id).run()


def regions_by_id(regions: Iterable[Region]) -> Dict[int, Region]:
    return {r.id: r for r in regions}


def connected_region_ids(regions: Iterable[Region], start_id: int, transitive: bool = True) -> List[int]:
    """Ids reachable from ``start_id`` through ``neighbors``, in discovery order.

    With ``transitive=False`` only the start region and its direct
    neighbours are returned.
    """
    lookup = regions_by_id(regions)
    found = [start_id]
    seen = {start_id}
    for n in sorted(lookup[start_id].neighbors):
        if n not in seen:
            seen.add(n)
            found.append(n)
    if not transitive:
        return found
    i = 1
    while i < len(found):
        for n in sorted(lookup[found[i]].neighbors):
            if n not in seen:
                seen.add(n)
                found.append(n)
        i += 1
    return found


def connected_cells(regions: Iterable[Region], start_id: int, transitive: bool = True) -> Set[Coord2D]:
    """Union of the cells of every region connected to ``start_id``."""
    regions = list(regions)
    lookup = regions_by_id(regions)
    union: Set[Coord2D] = set()
    for rid in connected_region_ids(regions, start_id, transitive):
        union |= lookup[rid].cells
    return union


def build_wall_lists(regions: Iterable[Region], grid: Optional[Grid] = None) -> Dict[int, List[Coord2D]]:
    """Perimeter wall cells per region.

    A wall is any 4-neighbour of a region cell that is not floor of the region
    or of a directly linked region. With ``grid`` given, cells outside it are
    dropped.
    """
    regions = list(regions)
    walls: Dict[int, List[Coord2D]] = {}
    for region in regions:
        floor = connected_cells(regions, region.id, transitive=False)
        found: Set[Coord2D] = set()
        for x, y in region.cells:
            for dx, dy in ORTHOGONAL_DIRS:
                pos = (x + dx, y + dy)
                if pos in floor:
                    continue
                if grid is not None and not grid.in_bounds(*pos):
                    continue
                found.add(pos)
        walls[region.id] = sorted(found)
    return walls


__all__ = [
    "Region",
    "RegionExtractor",
    "extract_regions",
    "regions_by_id",
    "connected_region_ids",
    "connected_cells",
    "build_wall_lists",
    "bounds_of",
    "center_of",
    "closest_point",
    "region_color",
]
