"""Corridor path planners.

Every planner takes ``(start, end)`` and returns a list of grid cells that
begins with ``start`` and ends with ``end``; ``start == end`` gives
``[start]``. Randomness comes only from the RNG handed in.
"""
from __future__ import annotations

import math
import random
from typing import Callable, Dict, List, Tuple

from .cells import Coord2D
from .config import CorridorAlgorithm, GenerationConfig

Path = List[Coord2D]

# organic walks give up after (|dx| + |dy| + 1) * ORGANIC_STEP_FACTOR moves
ORGANIC_STEP_FACTOR = 50


def _sign(v: int) -> int:
    return (v > 0) - (v < 0)


def straight_line(start: Coord2D, end: Coord2D) -> Path:
    """Bresenham line, both endpoints included."""
    x0, y0 = start
    x1, y1 = end
    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy
    line = []
    while True:
        line.append((x0, y0))
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x0 += sx
        if e2 < dx:
            err += dx
            y0 += sy
    return line


def orthogonal_line(start: Coord2D, end: Coord2D, rng: random.Random) -> Path:
    """Run fully along one axis then the other (axis order picked at random)."""
    x, y = start
    ex, ey = end
    line = []
    x_first = rng.randrange(2) == 0
    if x_first:
        while x != ex:
            line.append((x, y))
            x += 1 if x < ex else -1
    while y != ey:
        line.append((x, y))
        y += 1 if y < ey else -1
    while x != ex:
        line.append((x, y))
        x += 1 if x < ex else -1
    line.append(end)
    return line


def organic_line(start: Coord2D, end: Coord2D, rng: random.Random, jitter: float) -> Path:
    """Greedy diagonal walk toward ``end`` with random wiggles.

    With probability ``jitter`` one axis (chosen at random) is forced to a
    random +/-1 step. If the walk hits its step cap the remainder is drawn
    as a straight line.
    """
    path = []
    cx, cy = start
    ex, ey = end
    cap = (abs(ex - cx) + abs(ey - cy) + 1) * ORGANIC_STEP_FACTOR
    steps = 0
    while (cx, cy) != end:
        if steps >= cap:
            tail = straight_line((cx, cy), end)
            path.extend(tail[:-1])
            break
        path.append((cx, cy))
        dx = _sign(ex - cx)
        dy = _sign(ey - cy)
        if rng.random() < jitter:
            if rng.random() < 0.5:
                dx = -1 if rng.random() < 0.5 else 1
            else:
                dy = -1 if rng.random() < 0.5 else 1
        cx += dx
        cy += dy
        steps += 1
    path.append(end)
    return path


def _cubic_bezier(p0, p1, p2, p3, t: float) -> Tuple[float, float]:
    u = 1.0 - t
    a = u * u * u
    b = 3 * u * u * t
    c = 3 * u * t * t
    d = t * t * t
    return (
        a * p0[0] + b * p1[0] + c * p2[0] + d * p3[0],
        a * p0[1] + b * p1[1] + c * p2[1] + d * p3[1],
    )


def _dist(a, b) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def curved_line(
    start: Coord2D,
    end: Coord2D,
    rng: random.Random,
    control_offset: float,
    max_control: float,
) -> Path:
    """Cubic Bezier from start to end with randomly bent control points.

    Short corridors get a proportionally smaller bend:
    ``control = min(control_offset, int(length / max_control))``.
    """
    if start == end:
        return [start]
    p0 = (float(start[0]), float(start[1]))
    p3 = (float(end[0]), float(end[1]))
    chord = _dist(p0, p3)
    mid = ((p0[0] + p3[0]) * 0.5, (p0[1] + p3[1]) * 0.5)
    ux = (p3[0] - p0[0]) / chord
    uy = (p3[1] - p0[1]) / chord
    perp = (-uy, ux)

    length = int(chord)
    control = min(control_offset, int(length / max_control))

    def _control_point(anchor):
        bend = rng.uniform(-control, control)
        qx = anchor[0] + (mid[0] - anchor[0]) * 0.5
        qy = anchor[1] + (mid[1] - anchor[1]) * 0.5
        return qx + perp[0] * bend, qy + perp[1] * bend

    p1 = _control_point(p0)
    p2 = _control_point(p3)

    steps = int((chord + _dist(p0, p1) + _dist(p1, p2) + _dist(p2, p3)) / 2.0)
    if steps <= 0:
        return straight_line(start, end)

    samples = [start]
    for i in range(1, steps):
        bx, by = _cubic_bezier(p0, p1, p2, p3, i / steps)
        samples.append((int(round(bx)), int(round(by))))
    samples.append(end)

    # bridge rounding jumps so consecutive cells always touch
    dense = [start]
    for prev, cell in zip(samples, samples[1:]):
        if cell != prev:
            dense.extend(straight_line(prev, cell)[1:])
    return _erase_loops(dense)


def _erase_loops(cells: Path) -> Path:
    """Drop revisits by cutting the path back to a cell's first occurrence."""
    path: Path = []
    index: Dict[Coord2D, int] = {}
    for cell in cells:
        seen_at = index.get(cell)
        if seen_at is not None:
            for dropped in path[seen_at + 1:]:
                del index[dropped]
            del path[seen_at + 1:]
            continue
        index[cell] = len(path)
        path.append(cell)
    return path


def plan_path(
    algorithm: CorridorAlgorithm,
    start: Coord2D,
    end: Coord2D,
    config: GenerationConfig,
    rng: random.Random,
) -> Path:
    """Dispatch to the planner selected by ``algorithm``."""
    algorithm = CorridorAlgorithm.coerce(algorithm)
    if start == end:
        return [start]
    planner = _PLANNERS[algorithm]
    return planner(start, end, config, rng)


_PLANNERS: Dict[CorridorAlgorithm, Callable[..., Path]] = {
    CorridorAlgorithm.STRAIGHT: lambda s, e, cfg, rng: straight_line(s, e),
    CorridorAlgorithm.ORTHOGONAL: lambda s, e, cfg, rng: orthogonal_line(s, e, rng),
    CorridorAlgorithm.ORGANIC: lambda s, e, cfg, rng: organic_line(s, e, rng, cfg.organic_jitter),
    CorridorAlgorithm.CURVED: lambda s, e, cfg, rng: curved_line(
        s, e, rng, cfg.curve_control_offset, cfg.curve_max_control
    ),
}


__all__ = ["straight_line", "orthogonal_line", "organic_line", "curved_line", "plan_path", "Path"]
