"""
Exceptions raised by wandcut.

Every error subclasses ValueError, so callers that only care about
"bad input" can keep catching that.
"""


class WandcutError(ValueError):
    """Base class for all wandcut input errors."""


class InvalidSeedError(WandcutError):
    """Seed coordinate is not a whole pixel or lies outside the buffer."""

    def __init__(self, x, y, width: int = None, height: int = None):
        self.x = x
        self.y = y
        if width is None or height is None:
            message = f"Seed ({x!r}, {y!r}) is not a whole-pixel coordinate"
        else:
            message = f"Seed ({x}, {y}) is outside the {width}x{height} buffer"
        super().__init__(message)


class InvalidToleranceError(WandcutError):
    """Tolerance is negative or not a number."""


class InvalidColorError(WandcutError):
    """Color is not an (R, G, B) triple of 0-255 values."""


class DimensionMismatchError(WandcutError):
    """Sizes do not line up (buffer length, frame sizes, resize targets)."""
