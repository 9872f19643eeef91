"""
Euclidean RGB color distance, shared by the magic wand and the color key.

Both entry points must agree on what "within tolerance" means, so the
formula and the inclusive ``<=`` comparison live here and nowhere else.
"""
from __future__ import annotations
import math
from typing import Sequence

import numpy as np

from ..models.errors import InvalidColorError, InvalidToleranceError

RGB = Sequence[int]

MAX_DISTANCE = math.sqrt(3 * 255 ** 2)  # ≈ 441.67


class ColorService:
    """Stateless helpers; safe to share between threads."""

    # ─── Validation ────────────────────────────────────────────────
    @staticmethod
    def validate_tolerance(tolerance: float) -> float:
        try:
            tolerance = float(tolerance)
        except (TypeError, ValueError):
            raise InvalidToleranceError(f"Tolerance must be a number, got {tolerance!r}")
        if math.isnan(tolerance) or tolerance < 0:
            raise InvalidToleranceError(f"Tolerance must be >= 0, got {tolerance}")
        return tolerance

    @staticmethod
    def validate_color(color: RGB) -> tuple[int, int, int]:
        """
        Accepts RGB or RGBA (alpha is ignored).  Returns a plain int triple.
        """
        if len(color) not in (3, 4):
            raise InvalidColorError(f"Color must have 3 or 4 channels, got {len(color)}")
        try:
            rgb = tuple(int(c) for c in color[:3])
        except (TypeError, ValueError):
            raise InvalidColorError(f"Color channels must be integers, got {color!r}")
        if any(c < 0 or c > 255 for c in rgb):
            raise InvalidColorError(f"Color channels must be in [0, 255], got {rgb}")
        return rgb

    # ─── Scalar primitive ──────────────────────────────────────────
    @staticmethod
    def distance(p: RGB, q: RGB) -> float:
        """sqrt((pr-qr)^2 + (pg-qg)^2 + (pb-qb)^2).  Alpha is ignored."""
        dr = int(p[0]) - int(q[0])
        dg = int(p[1]) - int(q[1])
        db = int(p[2]) - int(q[2])
        return math.sqrt(dr * dr + dg * dg + db * db)

    def matches(self, p: RGB, q: RGB, tolerance: float) -> bool:
        return self.distance(p, q) <= tolerance

    # ─── Vectorised over a whole buffer ────────────────────────────
    @staticmethod
    def distance_map(data: np.ndarray, target: RGB) -> np.ndarray:
        """
        Args
        ----
        data   : np.ndarray  (N*4,)  uint8  flat RGBA
        target : (R, G, B)

        Returns
        -------
        dist : np.ndarray  (N,)  float64
        """
        rgb = data.reshape(-1, 4)[:, :3].astype(np.int32)
        diff = rgb - np.asarray(target[:3], dtype=np.int32)
        # exact integer sum of squares, then one correctly-rounded sqrt,
        # so this agrees bit-for-bit with distance()
        return np.sqrt((diff * diff).sum(axis=1).astype(np.float64))

    def match_mask(self, data: np.ndarray, target: RGB, tolerance: float) -> np.ndarray:
        """(N,) bool, True where the pixel is within tolerance of target."""
        return self.distance_map(data, target) <= tolerance
