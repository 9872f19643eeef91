from __future__ import annotations
from io import BytesIO
from pathlib import Path
from typing import Union, Iterable, List, Iterator
import logging
import os

import numpy as np
from PIL import Image as PILImage
from PIL import ImageSequence
from dotenv import load_dotenv

from ..models.frame_sequence import FrameSequence
from ..models.pixel_buffer import PixelBuffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class PixelBufferRepository:
    """
    Handles file I/O and byte encoding for PixelBuffer entities.
    Everything comes in and goes out as RGBA.
    """
    def __init__(self):
        exts = os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.gif,.bmp,.webp")
        self.VALID_EXTS = {ext.strip().lower() for ext in exts.split(",") if ext.strip()}

    @staticmethod
    def create_buffer(pixels: np.ndarray, path: Union[str, Path] = None) -> PixelBuffer:
        return PixelBuffer.from_array(pixels, path)

    @staticmethod
    def _from_pil(pil_img: PILImage.Image, path: Union[str, Path] = None) -> PixelBuffer:
        arr = np.asarray(pil_img.convert("RGBA"), dtype=np.uint8)
        return PixelBuffer.from_array(arr, path)

    @staticmethod
    def _to_pil(buffer: PixelBuffer) -> PILImage.Image:
        return PILImage.fromarray(buffer.pixels)

    def load(self, path: Union[str, Path]) -> PixelBuffer:
        path = Path(path)
        try:
            with PILImage.open(path) as pil_img:
                return self._from_pil(pil_img, path)
        # Pillow reports truncated or corrupt data as OSError (sometimes SyntaxError)
        except (OSError, SyntaxError) as err:
            raise FileNotFoundError(f"Image not found or unreadable: {path}") from err

    def decode(self, data: bytes) -> PixelBuffer:
        """Decode encoded image bytes (PNG, JPEG, ...) into a buffer."""
        try:
            with PILImage.open(BytesIO(data)) as pil_img:
                return self._from_pil(pil_img)
        except (OSError, SyntaxError) as err:
            raise ValueError("Uploaded data is not a readable image") from err

    def encode_png(self, buffer: PixelBuffer) -> bytes:
        out = BytesIO()
        self._to_pil(buffer).save(out, format="PNG")
        return out.getvalue()

    def _png_path(self, path: Path) -> Path:
        """
        Alpha needs PNG.  A known image extension is swapped for .png,
        anything else gets .png appended (out.v2 -> out.v2.png).
        """
        suffix = path.suffix.lower()
        if suffix == ".png":
            return path
        if suffix in self.VALID_EXTS:
            png_path = path.with_suffix(".png")
        else:
            png_path = path.with_name(path.name + ".png")
        logger.warning(f"Saving {path.name} as {png_path.name} to keep transparency")
        return png_path

    def save(self, buffer: PixelBuffer, path: Union[str, Path] = None) -> Path:
        """
        Save as PNG (alpha needs a format that keeps it).  Writes to
        ``buffer.path`` unless ``path`` is given.
        """
        target = Path(path) if path is not None else buffer.path
        if target is None:
            raise ValueError("Buffer has no path to save to")
        target = self._png_path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        self._to_pil(buffer).save(target, format="PNG")
        buffer.path = target
        return target

    @staticmethod
    def save_bytes(data: bytes, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def load_frames(self, path: Union[str, Path]) -> FrameSequence:
        """
        Split an animated file (GIF, APNG, WebP) into RGBA frames.
        Still images come back as a one-frame sequence.
        """
        path = Path(path)
        try:
            with PILImage.open(path) as pil_img:
                # info is per-frame once we start seeking; take timing from frame 0
                delay = int(pil_img.info.get("duration", 100) or 100)
                loop = int(pil_img.info.get("loop", 0))
                frames = [self._from_pil(frame, path) for frame in ImageSequence.Iterator(pil_img)]
        except (OSError, SyntaxError) as err:
            raise FileNotFoundError(f"Image not found or unreadable: {path}") from err
        return FrameSequence(frames=frames, delay_ms=delay, loop=loop)

    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[PixelBuffer]:
        """
        Yield buffers one at a time, sorted by path.  Nothing accumulates in memory.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if p.suffix.lower() not in allowed or not p.is_file():
                logger.debug(f"Skipping {p}")
                continue
            try:
                yield self.load(p)
            except FileNotFoundError as err:
                logger.warning(f"Skipping {p.name}: {err}")

    def load_dir(
        self, folder: Union[str, Path], *, recursive=False, exts=None
    ) -> List[PixelBuffer]:
        return list(self.iter_dir(folder, recursive=recursive, exts=exts))
