"""
Color filtering components.

Per-channel amplification and inversion filters, and the separator that splits
an image into its red, green and blue component images.
"""

from typing import Dict, Any, List

from .basex import ImageFilter, ImageSeparator, RGBImage, InvalidArgumentError, LogManager
from ..cpu.pixel_ops import amplify_cpu, invert_cpu


class ColorAmplifier(ImageFilter):
    """
    Amplifies the colors of an image pixel by pixel.

    Each channel is multiplied by its ratio, truncated toward zero and clamped
    to 255.
    """

    def __init__(self, red_ratio: float, green_ratio: float, blue_ratio: float):
        """
        Initialize the amplifier.

        Args:
            red_ratio: Amplification ratio for red, must not be negative
            green_ratio: Amplification ratio for green, must not be negative
            blue_ratio: Amplification ratio for blue, must not be negative

        Raises:
            InvalidArgumentError: If any ratio is negative or NaN
        """
        super().__init__("ColorAmplifier")

        # NaN fails every comparison, so test for the valid range
        if not all(ratio >= 0 for ratio in (red_ratio, green_ratio, blue_ratio)):
            raise InvalidArgumentError(
                "Color amplification ratios must be non-negative numbers.",
                component=self.name,
                details={'ratios': (red_ratio, green_ratio, blue_ratio)}
            )

        self.red_ratio = float(red_ratio)
        self.green_ratio = float(green_ratio)
        self.blue_ratio = float(blue_ratio)

    def get_params(self) -> Dict[str, Any]:
        return {
            'red_ratio': self.red_ratio,
            'green_ratio': self.green_ratio,
            'blue_ratio': self.blue_ratio
        }

    def filter(self, image: RGBImage) -> RGBImage:
        """Return an amplified copy of the image."""
        return RGBImage.from_array(
            amplify_cpu(image.to_array(), self.red_ratio, self.green_ratio, self.blue_ratio)
        )


class ColorInverter(ImageFilter):
    """Inverts the colors of an image: every channel value v becomes 255 - v."""

    def __init__(self):
        super().__init__("ColorInverter")

    def filter(self, image: RGBImage) -> RGBImage:
        return RGBImage.from_array(invert_cpu(image.to_array()))


class ColorSplitter(ImageSeparator):
    """
    Splits an image into red, green and blue component images.

    Each component is a full size copy of the source with the two other
    channels zeroed, produced in the fixed order red, green, blue.
    """

    def __init__(self):
        super().__init__("ColorSplitter")
        self.red_filter = ColorAmplifier(1, 0, 0)
        self.green_filter = ColorAmplifier(0, 1, 0)
        self.blue_filter = ColorAmplifier(0, 0, 1)

    def separate(self, image: RGBImage) -> List[RGBImage]:
        LogManager.log_debug(self.name, f"Splitting {image.width}x{image.height} image into channels")
        return [
            self.red_filter.filter(image),
            self.green_filter.filter(image),
            self.blue_filter.filter(image),
        ]


# Convenience functions for one-off use
def amplify_colors(image: RGBImage, red_ratio: float, green_ratio: float, blue_ratio: float) -> RGBImage:
    """
    Convenience function to amplify the colors of one image.

    Args:
        image: Source image
        red_ratio: Ratio for red
        green_ratio: Ratio for green
        blue_ratio: Ratio for blue

    Returns:
        Amplified copy of the image
    """
    return ColorAmplifier(red_ratio, green_ratio, blue_ratio).filter(image)


def invert_colors(image: RGBImage) -> RGBImage:
    return ColorInverter().filter(image)


def split_colors(image: RGBImage) -> List[RGBImage]:
    return ColorSplitter().separate(image)
