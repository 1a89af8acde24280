"""Connectivity graph builder.

Links disjoint rooms with carved corridors until every room is reachable.
Greedy: each iteration joins the two unconnected groups whose bounding-box
centers are closest, so the result is connected but not globally shortest.
"""
from __future__ import annotations

import math
import random
from typing import Dict, List, Optional, Tuple

from .cells import Coord2D, Grid
from .config import GenerationConfig
from .paths import plan_path
from .regions import (
    Region,
    center_of,
    closest_point,
    connected_cells,
    connected_region_ids,
    region_color,
)
from .tunnels import carve_path, clamp_path
from ..logging_utils import get_logger

log = get_logger("cavern.dungeon.connectivity")


class PartialConnectivityError(RuntimeError):
    """Raised on request when the builder could not connect every room."""

    def __init__(self, reason: str, unconnected: Optional[List[int]] = None):
        super().__init__(reason)
        self.reason = reason
        self.unconnected = list(unconnected or [])


def is_fully_connected(regions: List[Region]) -> bool:
    """True when every region is reachable from the first through ``neighbors``."""
    if not regions:
        return True
    reached = set(connected_region_ids(regions, regions[0].id))
    return all(r.id in reached for r in regions)


def find_owner(regions: List[Region], cell: Coord2D) -> Optional[Region]:
    for region in regions:
        if cell in region.cells:
            return region
    return None


class ConnectivityGraphBuilder:
    """Resumable corridor builder; ``step()`` carves at most one corridor.

    ``unconnected`` holds one representative id per still-separate group.
    Each successful step merges two groups and drops the second id, so the
    loop ends after at most ``len(rooms) - 1`` steps.
    """

    def __init__(
        self,
        grid: Grid,
        regions: List[Region],
        config: GenerationConfig,
        rng: random.Random,
        metrics: Optional[Dict] = None,
    ):
        self.grid = grid
        self.regions = regions
        self.config = config
        self.rng = rng
        self.metrics = metrics if metrics is not None else {}
        self.unconnected: List[int] = [r.id for r in regions if not r.is_corridor]
        self.corridors: List[Region] = []
        self.iterations = 0
        self.failed = False
        self.failure_reason: Optional[str] = None
        self._next_id = max((r.id for r in regions), default=-1) + 1

    @property
    def done(self) -> bool:
        return self.failed or len(self.unconnected) <= 1

    def _fail(self, reason: str) -> None:
        self.failed = True
        self.failure_reason = reason
        log.warn(event="partial_connectivity", reason=reason, unconnected=len(self.unconnected))

    def closest_pair(self) -> Optional[Tuple[int, int]]:
        """Pair of unconnected ids whose connected unions have the nearest centers."""
        if len(self.unconnected) < 2:
            return None
        ordered = sorted(self.unconnected)
        centers = {rid: center_of(connected_cells(self.regions, rid)) for rid in ordered}
        best = None
        best_d = math.inf
        for a, i in enumerate(ordered):
            ci = centers[i]
            for j in ordered[a + 1:]:
                cj = centers[j]
                d = math.hypot(ci[0] - cj[0], ci[1] - cj[1])
                if d < best_d:
                    best_d = d
                    best = (i, j)
        return best

    def endpoints(self, i: int, j: int) -> Tuple[Coord2D, Coord2D]:
        """Three-bounce nearest points between the groups of ``i`` and ``j``."""
        cells_i = connected_cells(self.regions, i)
        cells_j = connected_cells(self.regions, j)
        close_i = closest_point(cells_i, center_of(cells_j))
        close_j = closest_point(cells_j, close_i)
        close_i = closest_point(cells_i, close_j)
        return close_i, close_j

    def step(self) -> Optional[Region]:
        """Connect one pair of groups. Returns the new corridor region, if any."""
        if self.done:
            return None
        pair = self.closest_pair()
        if pair is None:
            self._fail(f"no pair found with {len(self.unconnected)} unconnected rooms")
            return None
        i, j = pair
        close_i, close_j = self.endpoints(i, j)
        owner_i = find_owner(self.regions, close_i)
        owner_j = find_owner(self.regions, close_j)
        if owner_i is None or owner_j is None:
            missing = close_i if owner_i is None else close_j
            self._fail(f"no region owns corridor endpoint {missing}")
            return None

        path = plan_path(self.config.corridor_algorithm, close_i, close_j, self.config, self.rng)
        path = clamp_path(self.grid, path)
        carved = carve_path(self.grid, path, self.config.corridor_width)
        owned = set()
        for region in self.regions:
            owned |= carved & region.cells
        corridor_cells = carved - owned

        self.iterations += 1
        self.metrics["carved_cells"] = self.metrics.get("carved_cells", 0) + len(carved)
        corridor = None
        if corridor_cells:
            corridor = Region(
                id=self._next_id,
                cells=corridor_cells,
                is_corridor=True,
                name=f"Corridor {owner_i.id}-{owner_j.id}",
                color=region_color(self.rng, highlight=False),
            )
            self._next_id += 1
            corridor.link(owner_i)
            corridor.link(owner_j)
            self.regions.append(corridor)
            self.corridors.append(corridor)
            self.metrics["corridors_carved"] = self.metrics.get("corridors_carved", 0) + 1
        else:
            # endpoints touch diagonally; the brush added nothing new
            owner_i.link(owner_j)
            self.metrics["direct_links"] = self.metrics.get("direct_links", 0) + 1

        self.unconnected.remove(j)
        log.debug(
            event="corridor_carved",
            a=owner_i.id,
            b=owner_j.id,
            start=close_i,
            end=close_j,
            path_len=len(path),
            cells=len(corridor_cells),
            remaining=len(self.unconnected),
        )
        return corridor

    def build(self) -> List[Region]:
        """Run to completion and return the corridors created."""
        while not self.done:
            self.step()
        return self.corridors

    def raise_for_failure(self) -> None:
        if self.failed:
            raise PartialConnectivityError(self.failure_reason or "partial connectivity", self.unconnected)


__all__ = [
    "ConnectivityGraphBuilder",
    "PartialConnectivityError",
    "is_fully_connected",
    "find_owner",
    "connected_region_ids",
    "connected_cells",
]
