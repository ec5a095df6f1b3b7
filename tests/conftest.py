import numpy as np
import pytest

from bmptool.chainable.basex import LogManager, RGBImage
from bmptool.chainable.bitmapx import write_bitmap


@pytest.fixture(autouse=True)
def reset_log_manager():
    yield
    LogManager.cleanup()


@pytest.fixture
def gradient_image() -> RGBImage:
    """5x3 image where every channel of every pixel holds a distinct value."""
    pixels = np.arange(5 * 3 * 3, dtype=np.uint8).reshape(5, 3, 3)
    return RGBImage.from_array(pixels)


@pytest.fixture
def noise_image() -> RGBImage:
    """Random 7x4 image; the odd width exercises scanline padding."""
    rng = np.random.default_rng(1234)
    return RGBImage.from_array(rng.integers(0, 256, size=(7, 4, 3), dtype=np.uint8))


@pytest.fixture
def square_image() -> RGBImage:
    """300x300 image whose red/green channels encode the coordinates of each pixel."""
    x, y = np.meshgrid(np.arange(300), np.arange(300), indexing='ij')
    pixels = np.stack([x % 256, y % 256, (x + y) % 256], axis=2).astype(np.uint8)
    return RGBImage.from_array(pixels)


@pytest.fixture
def bitmap_file(tmp_path, noise_image):
    path = tmp_path / "noise.bmp"
    write_bitmap(path, noise_image)
    return path
