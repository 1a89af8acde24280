"""Size-based region pruning.

Small floor regions are filled in as wall and small wall islands are opened
up as floor. Pruned cells are not merged into neighbouring regions; callers
that need fresh regions re-extract them.
"""
from __future__ import annotations

from typing import List

from .cells import CellState, Grid
from .regions import Region
from ..logging_utils import get_logger

log = get_logger("cavern.dungeon.pruning")


def prune_small_regions(grid: Grid, regions: List[Region], minimum_size: int, replacement: CellState) -> int:
    """Remove every region smaller than ``minimum_size`` from ``regions``.

    Each removed region's cells are repainted to ``replacement`` in ``grid``.
    ``regions`` is modified in place. Returns the number removed; removing
    all of them is valid.
    """
    removed = 0
    while True:
        victim = next((r for r in regions if r.size < minimum_size), None)
        if victim is None:
            break
        for x, y in victim.cells:
            grid.set(x, y, replacement)
        regions.remove(victim)
        removed += 1
        log.debug(event="region_pruned", region=victim.name, size=victim.size, replacement=replacement.value)
    return removed


__all__ = ["prune_small_regions"]
