from __future__ import annotations
from io import BytesIO
from typing import Optional, Sequence
import logging
import os

from dotenv import load_dotenv
from PIL import Image as PILImage
from PIL import PngImagePlugin

from ..models.errors import DimensionMismatchError
from ..models.frame_sequence import FrameSequence
from ..models.pixel_buffer import PixelBuffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class AnimationService:
    """
    Encodes RGBA frames into an animated PNG (APNG) with Pillow.

    *   Every frame must share the first frame's size.
    *   Each frame fully replaces the previous one (dispose to background,
        source blend), so transparent areas stay transparent.
    *   Pillow folds consecutive identical frames into one longer frame.
    """

    def __init__(self, delay_ms: int = None, loop: int = None):
        self.delay_ms = delay_ms if delay_ms is not None else int(os.getenv("APNG_FRAME_DELAY_MS", "100"))
        self.loop = loop if loop is not None else int(os.getenv("APNG_LOOP", "0"))

    @staticmethod
    def _check_sizes(frames: Sequence[PixelBuffer]) -> None:
        width, height = frames[0].size
        for i, frame in enumerate(frames[1:], start=1):
            if frame.size != (width, height):
                raise DimensionMismatchError(
                    f"Frame {i} is {frame.width}x{frame.height}, expected {width}x{height}"
                )

    def encode_apng(
        self,
        frames: Sequence[PixelBuffer],
        delay_ms: int = None,
        loop: int = None,
    ) -> Optional[bytes]:
        """
        Args:
            frames: ordered, equal-size buffers
            delay_ms: per-frame delay in milliseconds
            loop: 0 = infinite

        Returns:
            APNG bytes, or None when ``frames`` is empty.
        """
        if len(frames) == 0:
            logger.info("No frames to encode")
            return None

        delay_ms = self.delay_ms if delay_ms is None else int(delay_ms)
        loop = self.loop if loop is None else int(loop)
        if delay_ms < 0 or loop < 0:
            raise ValueError(f"Delay and loop must be >= 0, got delay={delay_ms}, loop={loop}")

        self._check_sizes(frames)

        images = [PILImage.fromarray(frame.pixels) for frame in frames]
        out = BytesIO()
        images[0].save(
            out,
            format="PNG",
            save_all=True,
            append_images=images[1:],
            duration=delay_ms,
            loop=loop,
            disposal=PngImagePlugin.Disposal.OP_BACKGROUND,
            blend=PngImagePlugin.Blend.OP_SOURCE,
        )
        data = out.getvalue()
        logger.info(f"Encoded {len(images)} frames ({frames[0].width}x{frames[0].height}) "
                    f"into {len(data)} bytes")
        return data

    def encode_sequence(self, sequence: FrameSequence) -> Optional[bytes]:
        return self.encode_apng(sequence.frames, delay_ms=sequence.delay_ms, loop=sequence.loop)
