import numpy as np
import pytest


def uniform_buffer(width, height, color, bytes_per_pixel=3):
    pixel = list(color) + ([255] if bytes_per_pixel == 4 else [])
    return np.tile(np.array(pixel, dtype=np.uint8), width * height)


@pytest.fixture
def random_image():
    """A 7x5 BGR image with reproducible noise."""
    rng = np.random.default_rng(1234)
    width, height = 7, 5
    return rng.integers(0, 256, size=width * height * 3, dtype=np.uint8), width, height


@pytest.fixture
def random_image_bgra():
    rng = np.random.default_rng(99)
    width, height = 6, 4
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    return pixels.reshape(-1), width, height


@pytest.fixture
def sharpen_example():
    """The 2x2 image (B, G, R) from the worked Sharpen3x3 example."""
    pixels = [(10, 20, 30), (40, 50, 60), (70, 80, 90), (100, 110, 120)]
    return np.array(pixels, dtype=np.uint8).reshape(-1), 2, 2
