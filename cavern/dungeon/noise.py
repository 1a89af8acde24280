"""Noise-seeded grid initialisation.

Border cells are forced to wall, the soft border band is filled at random
using ``fill_percent``, and the interior is decided by two layers of
coherent gradient noise compared against ``noise_threshold``.
"""
from __future__ import annotations

import math
import random
from typing import List

from .cells import CellState, Grid
from .config import GenerationConfig

NOISE_OFFSET_RANGE = 10000.0


class PerlinNoise:
    """Seeded 2D gradient noise with output in [0, 1].

    The permutation table is shuffled by the supplied RNG so two runs with
    the same seed sample the same field.
    """

    _GRADIENTS = (
        (1.0, 1.0), (-1.0, 1.0), (1.0, -1.0), (-1.0, -1.0),
        (1.0, 0.0), (-1.0, 0.0), (0.0, 1.0), (0.0, -1.0),
    )

    def __init__(self, rng: random.Random):
        perm = list(range(256))
        rng.shuffle(perm)
        # duplicated so lookups at i+1 never wrap
        self._perm: List[int] = perm + perm

    @staticmethod
    def _fade(t: float) -> float:
        return t * t * t * (t * (t * 6 - 15) + 10)

    @staticmethod
    def _lerp(a: float, b: float, t: float) -> float:
        return a + t * (b - a)

    def _grad(self, h: int, x: float, y: float) -> float:
        gx, gy = self._GRADIENTS[h & 7]
        return gx * x + gy * y

    def sample(self, x: float, y: float) -> float:
        xi = math.floor(x)
        yi = math.floor(y)
        xf = x - xi
        yf = y - yi
        xi &= 255
        yi &= 255
        p = self._perm
        aa = p[p[xi] + yi]
        ab = p[p[xi] + yi + 1]
        ba = p[p[xi + 1] + yi]
        bb = p[p[xi + 1] + yi + 1]
        u = self._fade(xf)
        v = self._fade(yf)
        x1 = self._lerp(self._grad(aa, xf, yf), self._grad(ba, xf - 1, yf), u)
        x2 = self._lerp(self._grad(ab, xf, yf - 1), self._grad(bb, xf - 1, yf - 1), u)
        value = self._lerp(x1, x2, v)
        # raw range is about [-1, 1] for these gradients
        return min(1.0, max(0.0, (value + 1.0) / 2.0))

    __call__ = sample


def border_distance(grid: Grid, x: int, y: int) -> int:
    return min(x, y, grid.width - 1 - x, grid.height - 1 - y)


def fill_noise_field(grid: Grid, config: GenerationConfig, rng: random.Random) -> Grid:
    """Populate every cell of ``grid`` in place and return it."""
    fill = config.fill_percent
    soft = config.soft_border_size
    noise = None
    if config.use_noise:
        noise = PerlinNoise(rng)
        ox = rng.uniform(0.0, NOISE_OFFSET_RANGE)
        oy = rng.uniform(0.0, NOISE_OFFSET_RANGE)
        wl = config.noise_wavelength
        wl2 = config.noise2_wavelength
        amp = config.noise2_amplitude
        threshold = config.noise_threshold

    cells = grid.cells
    w = grid.width
    for y in range(grid.height):
        row = y * w
        for x in range(w):
            d = border_distance(grid, x, y)
            if d == 1:
                wall = True
            elif d <= soft:
                wall = rng.randrange(100) < fill
            elif noise is not None:
                n1 = noise((x + ox) * wl, (y + oy) * wl)
                n2 = noise((x - ox) * wl2, (y - oy) * wl2)
                wall = (n1 + n2 * amp) / (1.0 + amp) > threshold
            else:
                wall = rng.randrange(100) < fill
            cells[row + x] = CellState.WALL if wall else CellState.FLOOR
    return grid


__all__ = ["PerlinNoise", "fill_noise_field", "border_distance"]
