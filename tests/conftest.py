"""
Shared fixtures: small hand-built RGBA buffers.
"""
from io import BytesIO

import numpy as np
import pytest
from PIL import Image as PILImage

from wandcut.models.pixel_buffer import PixelBuffer


def buffer_from_rows(rows, alpha=255):
    """rows: list of rows of (r, g, b) or (r, g, b, a) tuples."""
    arr = np.array(
        [[tuple(px) + ((alpha,) if len(px) == 3 else ()) for px in row] for row in rows],
        dtype=np.uint8,
    )
    return PixelBuffer.from_array(arr)


def transparent_set(buffer):
    """{(x, y)} of pixels with alpha 0."""
    ys, xs = np.nonzero(buffer.pixels[:, :, 3] == 0)
    return {(int(x), int(y)) for x, y in zip(xs, ys)}


def png_bytes(buffer):
    out = BytesIO()
    PILImage.fromarray(buffer.pixels).save(out, format="PNG")
    return out.getvalue()


def noise_buffer(width=64, height=64, seed=7):
    """Random RGBA noise; compresses badly, so the PNG has a long IDAT."""
    rng = np.random.default_rng(seed)
    return PixelBuffer.from_array(rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8))


def write_truncated_png(path):
    """A PNG whose header parses but whose pixel data stops halfway."""
    data = png_bytes(noise_buffer())
    path.write_bytes(data[: len(data) // 2])
    return path


@pytest.fixture
def make_buffer():
    return buffer_from_rows


@pytest.fixture
def black_with_white_center():
    """3x3 black, center pixel white."""
    black, white = (0, 0, 0), (255, 255, 255)
    return buffer_from_rows([
        [black, black, black],
        [black, white, black],
        [black, black, black],
    ])


@pytest.fixture
def two_islands():
    """
    7x3: two blue 2x1 islands separated by a red column, all inside red.

        R R R R R R R
        R B B R B B R
        R R R R R R R
    """
    R, B = (200, 0, 0), (0, 0, 255)
    return buffer_from_rows([
        [R, R, R, R, R, R, R],
        [R, B, B, R, B, B, R],
        [R, R, R, R, R, R, R],
    ])


@pytest.fixture
def random_buffer():
    rng = np.random.default_rng(1234)
    arr = rng.integers(0, 256, size=(24, 32, 4), dtype=np.uint8)
    arr[:, :, 3] = 255
    return PixelBuffer.from_array(arr)
