"""
Geometric transformation components.

Cropping, horizontal reflection, quarter-turn rotation and integer block
scaling. Every filter allocates a new image and leaves its source untouched.
"""

import numpy as np
from typing import Dict, Any, Tuple

from .basex import ImageFilter, RGBImage, InvalidArgumentError
from ..cpu.pixel_ops import block_scale_cpu


class ImageCropper(ImageFilter):
    """Crops the rectangle between two corner points out of an image."""

    def __init__(self, x1: int, y1: int, x2: int, y2: int):
        """
        Initialize the cropper.

        Args:
            x1: Left edge, inclusive
            y1: Top edge, inclusive
            x2: Right edge, exclusive
            y2: Bottom edge, exclusive

        Raises:
            InvalidArgumentError: If the second corner lies left of or above the first
        """
        super().__init__("ImageCropper")

        if x2 < x1 or y2 < y1:
            raise InvalidArgumentError(
                f"Crop corners must satisfy x1 <= x2 and y1 <= y2, got ({x1},{y1}) ({x2},{y2})",
                component=self.name
            )

        self.x1, self.y1, self.x2, self.y2 = int(x1), int(y1), int(x2), int(y2)

    @property
    def size(self) -> Tuple[int, int]:
        return self.x2 - self.x1, self.y2 - self.y1

    def get_params(self) -> Dict[str, Any]:
        return {'x1': self.x1, 'y1': self.y1, 'x2': self.x2, 'y2': self.y2}

    def filter(self, image: RGBImage) -> RGBImage:
        """
        Return the cropped region of the image.

        Raises:
            OutOfBoundsError: If the crop rectangle does not fit inside the image
        """
        width, height = self.size
        return image.subimage(self.x1, self.y1, width, height)


class ImageReflector(ImageFilter):
    """Mirrors an image horizontally."""

    def __init__(self):
        super().__init__("ImageReflector")

    def filter(self, image: RGBImage) -> RGBImage:
        # axis 0 of the buffer is x
        return RGBImage.from_array(image.pixels[::-1, :, :])


class ImageRotator(ImageFilter):
    """
    Rotates an image counter-clockwise by a number of quarter turns.

    Any integer is accepted and normalized into [0, 4). Odd turn counts swap
    width and height. For one quarter turn the pixel at (x, y) moves to
    (height - 1 - y, x).
    """

    def __init__(self, quarter_turns: int):
        super().__init__("ImageRotator")
        self.quarter_turns = ((int(quarter_turns) % 4) + 4) % 4

    def get_params(self) -> Dict[str, Any]:
        return {'quarter_turns': self.quarter_turns}

    def rotated_size(self, width: int, height: int) -> Tuple[int, int]:
        if self.quarter_turns % 2 == 0:
            return width, height
        return height, width

    def filter(self, image: RGBImage) -> RGBImage:
        # np.rot90 over the (x, y) axes gives out[h-1-y, x] = in[x, y] for one turn
        return RGBImage.from_array(np.rot90(image.pixels, k=self.quarter_turns, axes=(0, 1)))


class ImageScaler(ImageFilter):
    """Scales an image up by a positive integer factor, pixel by pixel."""

    def __init__(self, scale: int):
        """
        Initialize the scaler.

        Args:
            scale: Integer scale factor, at least 1

        Raises:
            InvalidArgumentError: If scale is less than 1
        """
        super().__init__("ImageScaler")

        if scale < 1:
            raise InvalidArgumentError(
                "ImageScaler scale cannot be less than 1",
                component=self.name,
                details={'scale': scale}
            )
        self.scale = int(scale)

    def get_params(self) -> Dict[str, Any]:
        return {'scale': self.scale}

    def filter(self, image: RGBImage) -> RGBImage:
        return RGBImage.from_array(block_scale_cpu(image.to_array(), self.scale))


# Convenience functions for one-off use
def crop_image(image: RGBImage, x1: int, y1: int, x2: int, y2: int) -> RGBImage:
    return ImageCropper(x1, y1, x2, y2).filter(image)


def reflect_image(image: RGBImage) -> RGBImage:
    return ImageReflector().filter(image)


def rotate_image(image: RGBImage, quarter_turns: int) -> RGBImage:
    """
    Convenience function to rotate one image.

    Args:
        image: Source image
        quarter_turns: Counter-clockwise quarter turns, any integer

    Returns:
        Rotated copy of the image
    """
    return ImageRotator(quarter_turns).filter(image)


def scale_image(image: RGBImage, scale: int) -> RGBImage:
    return ImageScaler(scale).filter(image)
