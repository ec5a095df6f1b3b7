"""
CPU pixel kernels for the color and scaling filters.

Images are ``uint8`` arrays of shape (width, height, 3). Kernels are compiled
with Numba and always allocate their output; the source array is only read.
"""

import numpy as np
from numba import jit


@jit(nopython=True)
def amplify_value(value, ratio):
    """Scale one channel value, truncating toward zero and clamping at 255."""
    amplified = int(value * ratio)
    return amplified if amplified < 255 else 255


@jit(nopython=True)
def amplify_cpu(pixels: np.ndarray, red: float, green: float, blue: float) -> np.ndarray:
    """Multiply each channel by its ratio."""
    width, height = pixels.shape[0], pixels.shape[1]
    output = np.empty((width, height, 3), dtype=np.uint8)
    for x in range(width):
        for y in range(height):
            output[x, y, 0] = amplify_value(pixels[x, y, 0], red)
            output[x, y, 1] = amplify_value(pixels[x, y, 1], green)
            output[x, y, 2] = amplify_value(pixels[x, y, 2], blue)
    return output


@jit(nopython=True)
def invert_cpu(pixels: np.ndarray) -> np.ndarray:
    """Replace every channel value v with 255 - v."""
    width, height = pixels.shape[0], pixels.shape[1]
    output = np.empty((width, height, 3), dtype=np.uint8)
    for x in range(width):
        for y in range(height):
            for c in range(3):
                output[x, y, c] = 255 - pixels[x, y, c]
    return output


@jit(nopython=True)
def block_scale_cpu(pixels: np.ndarray, factor: int) -> np.ndarray:
    """Grow the image by an integer factor, each pixel becoming a factor x factor block."""
    width, height = pixels.shape[0], pixels.shape[1]
    output = np.empty((width * factor, height * factor, 3), dtype=np.uint8)
    for x in range(width):
        for y in range(height):
            scaled_x = x * factor
            scaled_y = y * factor
            for xs in range(factor):
                for ys in range(factor):
                    for c in range(3):
                        output[scaled_x + xs, scaled_y + ys, c] = pixels[x, y, c]
    return output
