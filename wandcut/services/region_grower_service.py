from __future__ import annotations
from typing import Tuple
import logging

import numpy as np

from ..models.errors import InvalidSeedError
from ..models.pixel_buffer import PixelBuffer
from .color_service import ColorService

logger = logging.getLogger(__name__)

Coordinate = Tuple[int, int]


def as_coordinate(x, y) -> Coordinate:
    """
    Whole-pixel (x, y) as ints.  1.0 is accepted, 1.5, NaN, None and
    strings raise InvalidSeedError rather than being truncated.
    """
    try:
        cx, cy = int(x), int(y)
        exact = cx == x and cy == y
    except (TypeError, ValueError, OverflowError):
        exact = False
    if not exact:
        raise InvalidSeedError(x, y)
    return cx, cy


class RegionGrowerService:
    """
    Magic-wand flood fill.

    Erases (alpha -> 0) the 4-connected region around a seed pixel whose
    RGB lies within ``tolerance`` of the seed's RGB.

    *   Explicit LIFO stack, no recursion, so region size is bounded only
        by memory.
    *   Neighbours are bounds-checked before being pushed; the stack never
        holds an out-of-range coordinate.  The visited check happens on pop.
    *   Push order is right, left, down, up, so "up" is explored first.
        Order changes peak stack size only, never the resulting region.
    """

    def __init__(self, color_service: ColorService | None = None):
        self.color_service = color_service or ColorService()

    # ─── Public API ────────────────────────────────────────────────
    def grow(self, buffer: PixelBuffer, seed: Coordinate, tolerance: float) -> PixelBuffer:
        """
        Erase the region in place and return the same buffer.

        A seed that is already fully transparent is a no-op.
        """
        region = self.select_region(buffer, seed, tolerance)
        count = int(np.count_nonzero(region))
        if count:
            buffer.alpha[region] = 0
        logger.debug(f"Magic wand at {tuple(seed)} (tol={tolerance}) erased {count} px")
        return buffer

    def select_region(self, buffer: PixelBuffer, seed: Coordinate, tolerance: float) -> np.ndarray:
        """
        Returns
        -------
        region : np.ndarray  (H*W,)  bool, True for pixels in the seed's region.
                 All False when the seed is already transparent.
        """
        sx, sy = as_coordinate(*seed)
        if not buffer.contains(sx, sy):
            raise InvalidSeedError(sx, sy, buffer.width, buffer.height)
        tolerance = self.color_service.validate_tolerance(tolerance)

        width, height = buffer.width, buffer.height
        region = np.zeros(width * height, dtype=bool)

        target = buffer.rgba_at(sx, sy)
        if target[3] == 0:
            return region

        inside = self.color_service.match_mask(buffer.data, target, tolerance).tolist()
        visited = bytearray(width * height)
        stack = [(sx, sy)]
        filled = []

        while stack:
            x, y = stack.pop()
            i = y * width + x
            if visited[i]:
                continue
            visited[i] = 1

            if not inside[i]:
                continue  # boundary pixel
            filled.append(i)

            if x < width - 1:
                stack.append((x + 1, y))
            if x > 0:
                stack.append((x - 1, y))
            if y < height - 1:
                stack.append((x, y + 1))
            if y > 0:
                stack.append((x, y - 1))

        region[filled] = True
        return region
