from __future__ import annotations
from dataclasses import dataclass
import logging
import os

import cv2
import numpy as np
from dotenv import load_dotenv

from ..models.errors import DimensionMismatchError
from ..models.pixel_buffer import PixelBuffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanvasPlacement:
    """Where the scaled source lands on the target canvas."""
    scale: float
    width: int
    height: int
    offset_x: int
    offset_y: int


class CanvasService:
    """
    Fits an image onto a fixed-size transparent canvas.

    Uniform scale, aspect ratio preserved, never cropped, centered.
    Returns a *new* buffer; the source is left untouched.
    """

    def __init__(self, target_width: int = None, target_height: int = None):
        self.target_width = target_width if target_width is not None else int(os.getenv("CANVAS_TARGET_WIDTH", "320"))
        self.target_height = target_height if target_height is not None else int(os.getenv("CANVAS_TARGET_HEIGHT", "270"))

    @staticmethod
    def placement(src_width: int, src_height: int,
                  target_width: int, target_height: int) -> CanvasPlacement:
        """
        scale = min(tw/sw, th/sh); scaled size rounded to whole pixels
        (at least 1), offset = (target - scaled) // 2.
        """
        if min(src_width, src_height, target_width, target_height) <= 0:
            raise DimensionMismatchError(
                f"Cannot fit {src_width}x{src_height} onto {target_width}x{target_height}"
            )
        scale = min(target_width / src_width, target_height / src_height)
        width = min(target_width, max(1, round(src_width * scale)))
        height = min(target_height, max(1, round(src_height * scale)))
        return CanvasPlacement(
            scale=scale,
            width=width,
            height=height,
            offset_x=(target_width - width) // 2,
            offset_y=(target_height - height) // 2,
        )

    @staticmethod
    def _resize_premultiplied(pixels: np.ndarray, width: int, height: int,
                              interpolation: int) -> np.ndarray:
        """
        Resample in premultiplied alpha, so the RGB left behind under
        erased (alpha 0) pixels cannot bleed into the kept edges.
        """
        rgba = pixels.astype(np.float32)
        rgba[:, :, :3] *= rgba[:, :, 3:] / 255.0

        scaled = cv2.resize(rgba, (width, height), interpolation=interpolation)
        scaled = scaled.reshape(height, width, 4)

        alpha = scaled[:, :, 3:]
        visible = alpha > 0
        rgb = np.where(visible, scaled[:, :, :3] * 255.0 / np.where(visible, alpha, 1.0), 0.0)
        out = np.concatenate([rgb, alpha], axis=2)
        return np.clip(np.rint(out), 0, 255).astype(np.uint8)

    def resize(self, source: PixelBuffer,
               target_width: int = None, target_height: int = None) -> PixelBuffer:
        if target_width is None:
            target_width = self.target_width
        if target_height is None:
            target_height = self.target_height
        if target_width <= 0 or target_height <= 0:
            raise DimensionMismatchError(
                f"Resize target must be positive, got {target_width}x{target_height}"
            )

        place = self.placement(source.width, source.height, target_width, target_height)

        # INTER_AREA for shrinking, bilinear for enlarging
        interpolation = cv2.INTER_AREA if place.scale < 1 else cv2.INTER_LINEAR
        scaled = self._resize_premultiplied(source.pixels, place.width, place.height, interpolation)

        canvas = PixelBuffer.blank(target_width, target_height)
        canvas.pixels[place.offset_y:place.offset_y + place.height,
                      place.offset_x:place.offset_x + place.width] = scaled

        logger.debug(
            f"Resized {source.width}x{source.height} -> {place.width}x{place.height} "
            f"at ({place.offset_x},{place.offset_y}) on {target_width}x{target_height}"
        )
        return canvas
