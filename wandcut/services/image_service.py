from __future__ import annotations
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union
import logging
import os

import numpy as np
from dotenv import load_dotenv

from ..models.errors import InvalidSeedError
from ..models.pixel_buffer import PixelBuffer
from ..repositories.pixel_buffer_repository import PixelBufferRepository
from .animation_service import AnimationService
from .canvas_service import CanvasService
from .color_key_service import ColorKeyService
from .color_service import ColorService
from .region_grower_service import RegionGrowerService, as_coordinate

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class ImageService:
    """
    Business-level facade: I/O through the repository, edits through the
    algorithm services.  Routes, the CLI and the pipeline only talk to this.
    """
    def __init__(self):
        self.default_tolerance = float(os.getenv("WAND_DEFAULT_TOLERANCE", "32"))
        self.repository = PixelBufferRepository()
        self.color_service = ColorService()
        self.region_grower = RegionGrowerService(self.color_service)
        self.color_key = ColorKeyService(self.color_service)
        self.canvas_service = CanvasService()
        self.animation_service = AnimationService()

    # ─── I/O ───────────────────────────────────────────────────────
    def create_buffer(self, pixels: np.ndarray, path: Union[str, Path] = None) -> PixelBuffer:
        return self.repository.create_buffer(pixels, path)

    def load(self, path: Union[str, Path]) -> PixelBuffer:
        """Load a single image from disk into an RGBA buffer."""
        return self.repository.load(path)

    def decode(self, data: bytes) -> PixelBuffer:
        return self.repository.decode(data)

    def encode_png(self, buffer: PixelBuffer) -> bytes:
        return self.repository.encode_png(buffer)

    def save(self, buffer: PixelBuffer, path: Union[str, Path] = None) -> Path:
        return self.repository.save(buffer, path)

    def stream_gallery(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[PixelBuffer]:
        """
        Yield buffers lazily instead of returning a gigantic list.
        """
        return self.repository.iter_dir(folder, recursive=recursive, exts=exts)

    def load_frames(self, path: Union[str, Path]):
        return self.repository.load_frames(path)

    # ─── Edits (in place) ──────────────────────────────────────────
    def _tolerance(self, tolerance: Optional[float]) -> float:
        return self.default_tolerance if tolerance is None else tolerance

    def magic_wand(self, buffer: PixelBuffer, x: int, y: int,
                   tolerance: float = None) -> PixelBuffer:
        """Erase the contiguous region around (x, y)."""
        return self.region_grower.grow(buffer, (x, y), self._tolerance(tolerance))

    def remove_color(self, buffer: PixelBuffer, color: Sequence[int],
                     tolerance: float = None) -> PixelBuffer:
        """Erase ``color`` everywhere in the image."""
        return self.color_key.apply_color_key(buffer, color, self._tolerance(tolerance))

    def pick_color(self, buffer: PixelBuffer, x: int, y: int) -> Tuple[int, int, int, int]:
        """RGBA under the cursor, for choosing a color-key target."""
        x, y = as_coordinate(x, y)
        if not buffer.contains(x, y):
            raise InvalidSeedError(x, y, buffer.width, buffer.height)
        return buffer.rgba_at(x, y)

    def transparent_ratio(self, buffer: PixelBuffer) -> float:
        return float(np.count_nonzero(buffer.alpha == 0)) / (buffer.width * buffer.height)

    # ─── New buffers / bytes ───────────────────────────────────────
    def fit_canvas(self, buffer: PixelBuffer, width: int = None, height: int = None) -> PixelBuffer:
        """
        Returns a *new* buffer of exactly width x height with the image
        scaled to fit and centered.
        """
        return self.canvas_service.resize(buffer, width, height)

    def encode_animation(self, frames: Sequence[PixelBuffer],
                         delay_ms: int = None, loop: int = None) -> Optional[bytes]:
        return self.animation_service.encode_apng(frames, delay_ms=delay_ms, loop=loop)
