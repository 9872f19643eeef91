# pipeline/animation_builder.py
from typing import Optional, Sequence
import logging

from ..models.pixel_buffer import PixelBuffer
from ..services.image_service import ImageService

logger = logging.getLogger(__name__)


def build_animation(
    frames: Sequence[PixelBuffer],
    *,
    image_service: ImageService = None,
    width: int = None,
    height: int = None,
    delay_ms: int = None,
    loop: int = None,
) -> Optional[bytes]:
    """
    Fit every frame onto the same fixed-size canvas, then encode as APNG.

    Frames may start out with different sizes; after fitting they all
    match, which is what the encoder needs.  Returns None for no frames.
    """
    image_service = image_service or ImageService()
    if not frames:
        return None

    fitted = [image_service.fit_canvas(frame, width, height) for frame in frames]
    logger.info(f"Fitted {len(fitted)} frames onto {fitted[0].width}x{fitted[0].height}")
    return image_service.encode_animation(fitted, delay_ms=delay_ms, loop=loop)
