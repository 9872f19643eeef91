from __future__ import annotations
import logging

import numpy as np

from ..models.pixel_buffer import PixelBuffer
from .color_service import ColorService, RGB

logger = logging.getLogger(__name__)


class ColorKeyService:
    """
    Global chroma-key: erases a color everywhere it appears, connected or not.
    Use RegionGrowerService to erase only one contiguous area.
    """

    def __init__(self, color_service: ColorService | None = None):
        self.color_service = color_service or ColorService()

    def apply_color_key(self, buffer: PixelBuffer, target: RGB, tolerance: float) -> PixelBuffer:
        """Single pass; alpha -> 0 wherever distance(pixel, target) <= tolerance."""
        target = self.color_service.validate_color(target)
        tolerance = self.color_service.validate_tolerance(tolerance)

        mask = self.color_service.match_mask(buffer.data, target, tolerance)
        buffer.alpha[mask] = 0
        logger.debug(f"Color key {target} (tol={tolerance}) erased {int(np.count_nonzero(mask))} px")
        return buffer
