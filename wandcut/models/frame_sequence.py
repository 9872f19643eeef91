from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

from .pixel_buffer import PixelBuffer


@dataclass
class FrameSequence:
    """
    Data object for an animation: ordered frames plus timing.
    """
    frames: List[PixelBuffer] = field(default_factory=list)
    delay_ms: int = 100  # Per-frame delay
    loop: int = 0        # 0 = loop forever

    def __len__(self) -> int:
        return len(self.frames)

    def append(self, frame: PixelBuffer) -> None:
        self.frames.append(frame)
