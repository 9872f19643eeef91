"""
wandcut: magic-wand background removal for RGBA images.
"""
from .models.pixel_buffer import PixelBuffer
from .models.frame_sequence import FrameSequence
from .services.region_grower_service import RegionGrowerService
from .services.color_key_service import ColorKeyService

__all__ = ["PixelBuffer", "FrameSequence", "RegionGrowerService", "ColorKeyService"]
__version__ = "1.0.0"
