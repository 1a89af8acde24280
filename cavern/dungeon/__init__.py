"""Public dungeon package interface."""

from .cells import CellState, Grid  # noqa: F401
from .config import CorridorAlgorithm, GenerationConfig, InvalidConfigError, coerce_seed  # noqa: F401
from .connectivity import ConnectivityGraphBuilder, PartialConnectivityError, is_fully_connected  # noqa: F401
from .pipeline import DungeonGenerator, GenerationResult, generate_dungeon  # noqa: F401
from .regions import Region, RegionExtractor, extract_regions  # noqa: F401
from .scheduler import FrameBudget, always_yield, never_yield  # noqa: F401
from .tiles import ROOM, TUNNEL, WALL  # noqa: F401

__all__ = [
    "CellState",
    "Grid",
    "CorridorAlgorithm",
    "GenerationConfig",
    "InvalidConfigError",
    "coerce_seed",
    "ConnectivityGraphBuilder",
    "PartialConnectivityError",
    "is_fully_connected",
    "DungeonGenerator",
    "GenerationResult",
    "generate_dungeon",
    "Region",
    "RegionExtractor",
    "extract_regions",
    "FrameBudget",
    "always_yield",
    "never_yield",
    "ROOM",
    "TUNNEL",
    "WALL",
]
