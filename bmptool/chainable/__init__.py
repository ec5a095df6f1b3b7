"""
Chainable image processing components.

This package provides a modular, chainable image processing architecture where
each component has a single responsibility and can be linked together to form
a complete bitmap manipulation pipeline.
"""

from .basex import (Pixel, RGBImage, ChainComponent, ImageFilter, ImageSeparator,
                    ProcessingError, InvalidArgumentError, OutOfBoundsError, BitmapFileError,
                    ProgressReporter, LogManager)
from .bitmapx import (BitmapHeader, BitmapOpener, BitmapSaver, read_bitmap, write_bitmap,
                      write_bitmaps, encode_bitmap, decode_bitmap, open_bitmap)
from .colorx import ColorAmplifier, ColorInverter, ColorSplitter, amplify_colors, invert_colors, split_colors
from .geometryx import (ImageCropper, ImageReflector, ImageRotator, ImageScaler,
                        crop_image, reflect_image, rotate_image, scale_image)
from .slicex import ImageSlicer, slice_image
from .pipelinex import build_chain, run_pipeline

__all__ = [
    # Data model
    'Pixel',
    'RGBImage',

    # Base classes
    'ChainComponent',
    'ImageFilter',
    'ImageSeparator',
    'ProgressReporter',
    'LogManager',

    # Errors
    'ProcessingError',
    'InvalidArgumentError',
    'OutOfBoundsError',
    'BitmapFileError',

    # Codec
    'BitmapHeader',
    'BitmapOpener',
    'BitmapSaver',
    'read_bitmap',
    'write_bitmap',
    'write_bitmaps',
    'encode_bitmap',
    'decode_bitmap',

    # Components
    'ColorAmplifier',
    'ColorInverter',
    'ColorSplitter',
    'ImageCropper',
    'ImageReflector',
    'ImageRotator',
    'ImageScaler',
    'ImageSlicer',

    # Pipeline
    'build_chain',
    'run_pipeline',

    # Convenience functions
    'open_bitmap',
    'amplify_colors',
    'invert_colors',
    'split_colors',
    'crop_image',
    'reflect_image',
    'rotate_image',
    'scale_image',
    'slice_image'
]
