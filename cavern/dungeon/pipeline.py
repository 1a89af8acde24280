"""Pipeline orchestration for cave generation.

``DungeonGenerator`` runs the phases below as an explicit resumable state
machine. ``step()`` performs units of work until the injected yield check
asks for control back, then returns False with all state kept; it returns
True once the dungeon is finished. ``run()`` / ``generate_dungeon()`` drive
it to completion in one call.

Phases and their unit of work:

    noise          whole noise fill
    automata       one automaton iteration
    rooms          one flood fill chunk (or one region)
    prune_rooms    one pruning pass over floor regions
    islands        one flood fill chunk over wall cells
    prune_islands  one pruning pass over wall islands
    final_rooms    one flood fill chunk (rooms after islands were opened)
    connect        one corridor

A single ``random.Random`` seeded from the config drives every stochastic
choice, so identical seed + config give identical output.
"""
from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .automata import run_simulation_step
from .cells import CellState, Coord2D, Grid
from .config import GenerationConfig
from .connectivity import ConnectivityGraphBuilder, PartialConnectivityError, is_fully_connected
from .metrics import init_metrics
from .noise import fill_noise_field
from .pruning import prune_small_regions
from .regions import Region, RegionExtractor, build_wall_lists
from .scheduler import FrameBudget, YieldCheck, never_yield
from .tiles import grid_to_rows
from ..logging_utils import get_logger

log = get_logger("cavern.dungeon")

PHASES = (
    "noise",
    "automata",
    "rooms",
    "prune_rooms",
    "islands",
    "prune_islands",
    "final_rooms",
    "connect",
)
DONE = "done"


@dataclass
class GenerationResult:
    grid: Grid
    regions: List[Region]
    seed: int
    config: GenerationConfig
    fully_connected: bool = True
    failure_reason: Optional[str] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def rooms(self) -> List[Region]:
        return [r for r in self.regions if not r.is_corridor]

    @property
    def corridors(self) -> List[Region]:
        return [r for r in self.regions if r.is_corridor]

    def corridor_cells(self) -> set:
        cells = set()
        for r in self.corridors:
            cells |= r.cells
        return cells

    def rows(self) -> List[str]:
        return grid_to_rows(self.grid, self.corridor_cells())

    def wall_lists(self) -> Dict[int, List[Coord2D]]:
        return build_wall_lists(self.regions, self.grid)

    def raise_for_connectivity(self) -> None:
        if not self.fully_connected:
            raise PartialConnectivityError(self.failure_reason or "dungeon is not fully connected")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "width": self.grid.width,
            "height": self.grid.height,
            "rows": self.rows(),
            "rooms": [r.to_dict() for r in self.rooms],
            "corridors": [r.to_dict() for r in self.corridors],
            "fully_connected": self.fully_connected,
            "failure_reason": self.failure_reason,
            "config": self.config.to_dict(),
            "metrics": self.metrics,
        }


class DungeonGenerator:
    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        yield_check: YieldCheck = never_yield,
        heights: Optional[List[int]] = None,
    ):
        self.config = config or GenerationConfig()
        self.yield_check = yield_check
        self.heights = heights
        self.seed: Optional[int] = None
        self.rng: Optional[random.Random] = None
        self.grid: Optional[Grid] = None
        self.rooms: List[Region] = []
        self.islands: List[Region] = []
        self.metrics: Dict[str, Any] = init_metrics()
        self.phase: Optional[str] = None
        self.result: Optional[GenerationResult] = None
        self._automata_done = 0
        self._extractor: Optional[RegionExtractor] = None
        self._builder: Optional[ConnectivityGraphBuilder] = None
        self._phase_s: Dict[str, float] = {}
        self._started = 0.0

    @property
    def done(self) -> bool:
        return self.phase == DONE

    def init(self) -> None:
        """Validate the config and reset all run state. Raises InvalidConfigError."""
        cfg = self.config.validate()
        self.seed = cfg.resolved_seed()
        self.rng = random.Random(self.seed)
        self.grid = None
        self.rooms = []
        self.islands = []
        self.metrics = init_metrics()
        self.result = None
        self._automata_done = 0
        self._extractor = None
        self._builder = None
        self._phase_s = {}
        self._started = time.perf_counter()
        self.phase = PHASES[0]
        log.info(
            event="generation_start",
            seed=self.seed,
            width=cfg.width,
            height=cfg.height,
            corridor=cfg.corridor_algorithm.value,
        )

    def step(self) -> bool:
        """Work until the yield check fires or generation ends. True when finished."""
        if self.phase is None:
            self.init()
        if self.phase == DONE:
            return True
        if isinstance(self.yield_check, FrameBudget):
            self.yield_check.start()
        self.metrics["steps"] += 1
        while self.phase != DONE:
            self._run_unit()
            if self.phase != DONE and self.yield_check():
                self.metrics["yields"] += 1
                return False
        return True

    def run(self) -> GenerationResult:
        while not self.step():
            pass
        return self.result

    # ------------------------------------------------------------------
    # phase units
    # ------------------------------------------------------------------
    def _run_unit(self) -> None:
        phase = self.phase
        t0 = time.perf_counter()
        getattr(self, f"_unit_{phase}")()
        self._phase_s[phase] = self._phase_s.get(phase, 0.0) + (time.perf_counter() - t0)
        if self.phase != phase:
            log.debug(event="phase_done", phase=phase, ms=int(self._phase_s[phase] * 1000))

    def _advance_phase(self) -> None:
        idx = PHASES.index(self.phase)
        self.phase = PHASES[idx + 1] if idx + 1 < len(PHASES) else DONE
        if self.phase == DONE:
            self._finish()

    def _unit_noise(self) -> None:
        cfg = self.config
        self.grid = Grid(cfg.width, cfg.height, CellState.WALL, heights=self.heights)
        fill_noise_field(self.grid, cfg, self.rng)
        self._advance_phase()

    def _unit_automata(self) -> None:
        if self._automata_done < self.config.automata_steps:
            self.grid = run_simulation_step(self.grid)
            self._automata_done += 1
        if self._automata_done >= self.config.automata_steps:
            self._advance_phase()

    def _flood(self, target: CellState) -> Optional[List[Region]]:
        if self._extractor is None:
            self._extractor = RegionExtractor(self.grid, target, rng=self.rng)
        ex = self._extractor
        ex.advance(self.config.flood_fill_chunk)
        if not ex.done:
            return None
        self.metrics["flood_fill_cells"] += ex.cells_processed
        self._extractor = None
        return ex.regions

    def _unit_rooms(self) -> None:
        regions = self._flood(CellState.FLOOR)
        if regions is not None:
            self.rooms = regions
            self.metrics["rooms_found"] = len(regions)
            self._advance_phase()

    def _unit_prune_rooms(self) -> None:
        removed = prune_small_regions(self.grid, self.rooms, self.config.min_room_size, CellState.WALL)
        self.metrics["rooms_pruned"] = removed
        log.debug(event="rooms_pruned", removed=removed, kept=len(self.rooms))
        self._advance_phase()

    def _unit_islands(self) -> None:
        regions = self._flood(CellState.WALL)
        if regions is not None:
            self.islands = regions
            self.metrics["wall_islands_found"] = len(regions)
            self._advance_phase()

    def _unit_prune_islands(self) -> None:
        removed = prune_small_regions(self.grid, self.islands, self.config.min_wall_island_size, CellState.FLOOR)
        self.metrics["wall_islands_pruned"] = removed
        log.debug(event="islands_pruned", removed=removed, kept=len(self.islands))
        self._advance_phase()

    def _unit_final_rooms(self) -> None:
        regions = self._flood(CellState.FLOOR)
        if regions is not None:
            self.rooms = regions
            self._advance_phase()

    def _unit_connect(self) -> None:
        if self._builder is None:
            self._builder = ConnectivityGraphBuilder(self.grid, self.rooms, self.config, self.rng, self.metrics)
        builder = self._builder
        if not builder.done:
            builder.step()
        if builder.done:
            self.metrics["connect_iterations"] = builder.iterations
            self._advance_phase()

    def _finish(self) -> None:
        builder = self._builder
        regions = builder.regions if builder is not None else self.rooms
        failure = builder.failure_reason if builder is not None else None
        connected = failure is None and is_fully_connected(regions)
        if failure is None and not connected:
            failure = "rooms remain unconnected"
            log.warn(event="partial_connectivity", reason=failure, seed=self.seed)
        self.metrics["fully_connected"] = connected
        self.metrics["runtime_ms"] = int((time.perf_counter() - self._started) * 1000)
        self.metrics["phase_ms"] = {k: int(v * 1000) for k, v in self._phase_s.items()}
        self.result = GenerationResult(
            grid=self.grid,
            regions=regions,
            seed=self.seed,
            config=self.config,
            fully_connected=connected,
            failure_reason=failure,
            metrics=self.metrics,
        )
        log.info(
            event="generation_done",
            seed=self.seed,
            rooms=len(self.result.rooms),
            corridors=len(self.result.corridors),
            fully_connected=connected,
            ms=self.metrics["runtime_ms"],
        )


def generate_dungeon(
    config: Optional[GenerationConfig] = None,
    heights: Optional[List[int]] = None,
    **overrides,
) -> GenerationResult:
    """One-shot generation. Keyword overrides are applied on top of ``config``."""
    cfg = config or GenerationConfig()
    if overrides:
        data = cfg.to_dict()
        data.update(overrides)
        cfg = GenerationConfig.from_mapping(data)
    return DungeonGenerator(cfg, heights=heights).run()


__all__ = ["DungeonGenerator", "GenerationResult", "generate_dungeon", "PHASES"]
