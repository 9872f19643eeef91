from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import numpy as np

from .errors import DimensionMismatchError

CHANNELS = 4  # R, G, B, A


@dataclass(eq=False)
class PixelBuffer:
    """
    Simple data object: flat RGBA pixels (+ optional source path for bookkeeping).

    Pixel (x, y) lives at offset (y * width + x) * 4.  Services mutate
    ``data`` in place and hand back the same object.
    """
    width: int
    height: int
    data: np.ndarray # Shape (width*height*4,), dtype uint8, RGBA order, row-major.
    path: Path | None = None # Source of the image.

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise DimensionMismatchError(
                f"Buffer dimensions must be positive, got {self.width}x{self.height}"
            )
        expected = self.width * self.height * CHANNELS
        if self.data.ndim != 1 or self.data.size != expected:
            raise DimensionMismatchError(
                f"Buffer of {self.width}x{self.height} needs {expected} values, "
                f"got shape {self.data.shape}"
            )
        if self.data.dtype != np.uint8:
            raise DimensionMismatchError(f"Buffer dtype must be uint8, got {self.data.dtype}")
        # ``pixels`` must be a view, never a copy
        if not self.data.flags["C_CONTIGUOUS"]:
            raise ValueError("Buffer data must be C-contiguous")

    # ── Views ────────────────────────────────────────────────────────
    @property
    def pixels(self) -> np.ndarray:
        """(H, W, 4) view sharing memory with ``data``."""
        return self.data.reshape(self.height, self.width, CHANNELS)

    @property
    def alpha(self) -> np.ndarray:
        """(H*W,) view of the alpha channel."""
        return self.data[3::CHANNELS]

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def offset(self, x: int, y: int) -> int:
        return (y * self.width + x) * CHANNELS

    def rgba_at(self, x: int, y: int) -> tuple[int, int, int, int]:
        i = self.offset(x, y)
        r, g, b, a = self.data[i:i + CHANNELS]
        return int(r), int(g), int(b), int(a)

    # ── Constructors ─────────────────────────────────────────────────
    @classmethod
    def from_array(cls, pixels: np.ndarray, path: Path | str | None = None) -> PixelBuffer:
        """Build from an (H, W, 4) uint8 array.  The array is copied."""
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise DimensionMismatchError(f"Expected (H, W, 4) array, got {pixels.shape}")
        height, width = pixels.shape[:2]
        data = np.ascontiguousarray(pixels, dtype=np.uint8).reshape(-1).copy()
        return cls(width=width, height=height, data=data,
                   path=Path(path) if path is not None else None)

    @classmethod
    def blank(cls, width: int, height: int) -> PixelBuffer:
        """Fully transparent (0, 0, 0, 0) buffer."""
        if width <= 0 or height <= 0:
            raise DimensionMismatchError(f"Buffer dimensions must be positive, got {width}x{height}")
        return cls(width=width, height=height,
                   data=np.zeros(width * height * CHANNELS, dtype=np.uint8))

    @classmethod
    def filled(cls, width: int, height: int, rgba: tuple[int, int, int, int]) -> PixelBuffer:
        buf = cls.blank(width, height)
        buf.pixels[:, :] = rgba
        return buf

    def copy(self) -> PixelBuffer:
        return PixelBuffer(width=self.width, height=self.height,
                           data=self.data.copy(), path=self.path)
