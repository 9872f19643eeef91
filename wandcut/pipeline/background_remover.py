# pipeline/background_remover.py
from __future__ import annotations
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple
import logging
import os

from dotenv import load_dotenv
from tqdm import tqdm

from ..models.pixel_buffer import PixelBuffer
from ..services.image_service import ImageService

# ------------------------------------------------------------------
# env‑vars
load_dotenv()
PROCESSED_DIR = os.getenv("PROCESSED_DIR_PATH", "data/processed")

logger = logging.getLogger(__name__)

Seed = Tuple[int, int]


def corner_seeds(buffer: PixelBuffer) -> List[Seed]:
    """The four corners, where a flat studio background usually shows."""
    w, h = buffer.width - 1, buffer.height - 1
    return [(0, 0), (w, 0), (0, h), (w, h)]


def remove_background(
    gallery: Iterable[PixelBuffer],
    *,
    image_service: ImageService = None,
    seeds: Optional[Sequence[Seed]] = None,
    tolerance: float = None,
    color: Optional[Sequence[int]] = None,
) -> List[PixelBuffer]:
    """
    For every buffer in *gallery*:
        • color given  → global color key
        • otherwise    → magic wand from each seed (default: the four corners)
    Buffers are edited in place; the same objects are returned.
    """
    image_service = image_service or ImageService()
    processed = []
    for buffer in tqdm(gallery, desc="remove-bg", ncols=70):
        if color is not None:
            image_service.remove_color(buffer, color, tolerance)
        else:
            # an already-erased corner is a no-op, so overlapping seeds are fine
            for x, y in (seeds or corner_seeds(buffer)):
                if buffer.contains(x, y):
                    image_service.magic_wand(buffer, x, y, tolerance)
                else:
                    logger.warning(f"Seed ({x}, {y}) outside {buffer.width}x{buffer.height}, skipped")
        processed.append(buffer)
    return processed


def save_gallery(
    gallery: Iterable[PixelBuffer],
    *,
    image_service: ImageService = None,
    processed_dir: str | Path = PROCESSED_DIR,
) -> List[Path]:
    """Write each buffer as ``<processed_dir>/<stem>.png``."""
    image_service = image_service or ImageService()
    processed_dir = Path(processed_dir)
    paths = []
    for i, buffer in enumerate(gallery):
        stem = buffer.path.stem if buffer.path else f"image_{i:03d}"
        paths.append(image_service.save(buffer, processed_dir / f"{stem}.png"))
    logger.info(f"Saved {len(paths)} images to {processed_dir}")
    return paths
