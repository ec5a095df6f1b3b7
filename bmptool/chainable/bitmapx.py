"""
Bitmap file reading and writing components.

This module translates between uncompressed 24-bit bitmap files and RGBImage
buffers, and provides the chain endpoints that open the source image and save
the final image set.
"""

import io
import struct
import numpy as np
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from .basex import (ChainComponent, RGBImage, BitmapFileError, ProcessingError,
                    LogManager, CHANNELS)


PathLike = Union[str, Path]

# Header layout of a 24-bit bitmap. All integers are little-endian.
BMP_IDENTIFIER = 0x4D42  # "BM"
FILE_SIZE_INDEX = 2
DATA_START_INDEX_INDEX = 10
DATA_START_INDEX = 54
HEADER_SIZE_INDEX = 14
HEADER_SIZE = 40
WIDTH_INDEX = 18
HEIGHT_INDEX = 22
PLANES_INDEX = 26
PLANES = 1
BIT_DEPTH_INDEX = 28
PIXEL_SIZE = CHANNELS
BIT_DEPTH = PIXEL_SIZE * 8
IMAGE_SIZE_INDEX = 34

# file header (14 bytes) followed by the 40 byte info header
_HEADER_STRUCT = struct.Struct('<HIHHIIiiHHIIiiII')


def scanline_padding(width: int) -> int:
    """Number of zero bytes that pad a scanline of ``width`` pixels to a multiple of 4."""
    return (4 - (width * PIXEL_SIZE) % 4) % 4


def scanline_size(width: int) -> int:
    return width * PIXEL_SIZE + scanline_padding(width)


def image_data_size(width: int, height: int) -> int:
    """Size in bytes of the pixel region, padding included."""
    return scanline_size(width) * height


@dataclass
class BitmapHeader:
    """The header fields of a 24-bit bitmap that this codec reads or writes."""
    width: int
    height: int
    file_size: int
    data_offset: int = DATA_START_INDEX
    header_size: int = HEADER_SIZE
    planes: int = PLANES
    bit_depth: int = BIT_DEPTH
    image_size: int = 0
    signature: int = BMP_IDENTIFIER

    @classmethod
    def for_image(cls, width: int, height: int) -> 'BitmapHeader':
        """Build the header describing an image of the given dimensions."""
        data_size = image_data_size(width, height)
        return cls(
            width=width,
            height=height,
            file_size=DATA_START_INDEX + data_size,
            image_size=data_size
        )

    @classmethod
    def unpack(cls, data: bytes) -> 'BitmapHeader':
        """Parse the first 54 bytes of a bitmap file."""
        (signature, file_size, _reserved1, _reserved2, data_offset, header_size,
         width, height, planes, bit_depth, _compression, image_size,
         _x_ppm, _y_ppm, _colors_used, _colors_important) = _HEADER_STRUCT.unpack(data[:DATA_START_INDEX])
        return cls(
            width=width,
            height=height,
            file_size=file_size,
            data_offset=data_offset,
            header_size=header_size,
            planes=planes,
            bit_depth=bit_depth,
            image_size=image_size,
            signature=signature
        )

    def pack(self) -> bytes:
        return _HEADER_STRUCT.pack(
            self.signature, self.file_size, 0, 0, self.data_offset, self.header_size,
            self.width, self.height, self.planes, self.bit_depth, 0, self.image_size,
            0, 0, 0, 0
        )

    def expected_file_size(self) -> int:
        """File size implied by the data offset and the dimensions."""
        return self.data_offset + image_data_size(self.width, self.height)


def _read_header(stream: BinaryIO, filename: str) -> BitmapHeader:
    raw = stream.read(DATA_START_INDEX)
    if len(raw) < 2 or int.from_bytes(raw[:2], 'little') != BMP_IDENTIFIER:
        raise BitmapFileError(filename, "File is not a bitmap")
    if len(raw) < DATA_START_INDEX:
        raise BitmapFileError(filename, "File is not a valid bitmap")

    header = BitmapHeader.unpack(raw)
    # the declared size must agree with the padded scanlines
    if header.width < 0 or header.height < 0 or header.file_size != header.expected_file_size():
        raise BitmapFileError(filename, "File is not a valid bitmap")
    if header.bit_depth != BIT_DEPTH or header.planes != PLANES:
        LogManager.log_warning(
            "BitmapCodec",
            f"{filename}: header declares {header.bit_depth} bit depth and {header.planes} planes, "
            f"decoding as {BIT_DEPTH}-bit"
        )
    return header


def _decode_pixels(region: bytes, width: int, height: int) -> np.ndarray:
    """Turn bottom-up, BGR, padded scanlines into a (width, height, 3) RGB array."""
    rows = np.frombuffer(region, dtype=np.uint8).reshape(height, scanline_size(width))
    rows = rows[:, :width * PIXEL_SIZE].reshape(height, width, PIXEL_SIZE)
    # last scanline in the file is the top row of the image
    return rows[::-1, :, ::-1].transpose(1, 0, 2)


def _encode_pixels(image: RGBImage) -> bytes:
    """Turn an image into bottom-up, BGR, zero padded scanlines."""
    rows = image.pixels.transpose(1, 0, 2)[::-1, :, ::-1]
    padded = np.zeros((image.height, scanline_size(image.width)), dtype=np.uint8)
    padded[:, :image.width * PIXEL_SIZE] = rows.reshape(image.height, image.width * PIXEL_SIZE)
    return padded.tobytes()


def _read_stream(stream: BinaryIO, filename: str) -> RGBImage:
    header = _read_header(stream, filename)

    data_size = image_data_size(header.width, header.height)
    stream.seek(header.data_offset)
    region = stream.read(data_size)
    if len(region) < data_size:
        raise BitmapFileError(filename, "File is not a valid bitmap")

    image = RGBImage.from_array(_decode_pixels(region, header.width, header.height))
    LogManager.log_debug("BitmapCodec", f"Decoded {filename}: {header.width}x{header.height}")
    return image


def decode_bitmap(data: bytes, filename: str = "<memory>") -> RGBImage:
    """
    Decode a bitmap held in memory.

    Args:
        data: Complete file contents
        filename: Name reported in errors

    Returns:
        Decoded RGBImage

    Raises:
        BitmapFileError: If the data is not a valid 24-bit bitmap
    """
    return _read_stream(io.BytesIO(data), filename)


def encode_bitmap(image: RGBImage) -> bytes:
    """Encode an image as the complete contents of a bitmap file."""
    header = BitmapHeader.for_image(image.width, image.height)
    return header.pack() + _encode_pixels(image)


def read_bitmap(path: PathLike) -> RGBImage:
    """
    Load a 24-bit bitmap file.

    The header is validated before any pixel data is read: the signature must
    be "BM" and the declared file size must match the size computed from the
    data offset, dimensions and scanline padding.

    Args:
        path: Bitmap file to load

    Returns:
        Decoded RGBImage

    Raises:
        BitmapFileError: If the file cannot be opened, is not a bitmap or is corrupt
    """
    filename = str(path)
    try:
        stream = open(filename, 'rb')
    except OSError as e:
        raise BitmapFileError(filename, "File cannot be read or does not exist") from e

    with stream:
        return _read_stream(stream, filename)


def write_bitmap(path: PathLike, image: RGBImage):
    """
    Save an image as a 24-bit bitmap file.

    Raises:
        BitmapFileError: If the file cannot be written
    """
    filename = str(path)
    header = BitmapHeader.for_image(image.width, image.height)
    try:
        with open(filename, 'wb') as stream:
            stream.write(header.pack())
            stream.seek(header.data_offset)
            stream.write(_encode_pixels(image))
    except OSError as e:
        raise BitmapFileError(filename, "File cannot be written") from e
    LogManager.log_debug("BitmapCodec", f"Encoded {filename}: {image.width}x{image.height}")


def indexed_path(path: PathLike, index: int) -> Path:
    """Insert an index before the file extension: ``out.bmp`` -> ``out3.bmp``."""
    path = Path(path)
    return path.with_name(f"{path.stem}{index}{path.suffix}")


def write_bitmaps(path: PathLike, images: List[RGBImage]) -> List[Path]:
    """
    Save a sequence of images.

    A single image is written to ``path`` itself. Several images are written
    to indexed names (``out0.bmp``, ``out1.bmp``, ...) in sequence order.

    Returns:
        The paths written, in order
    """
    if len(images) == 1:
        write_bitmap(path, images[0])
        return [Path(path)]

    written = []
    for index, image in enumerate(images):
        target = indexed_path(path, index)
        write_bitmap(target, image)
        written.append(target)
    return written


class BitmapOpener(ChainComponent):
    """Chain entry point that loads the source bitmap."""

    def __init__(self, file_path: PathLike):
        super().__init__("BitmapOpener")
        self.file_path = Path(file_path)

    def get_params(self):
        return {'file_path': str(self.file_path)}

    def open(self) -> List[RGBImage]:
        image = read_bitmap(self.file_path)
        self.logger.info(f"Loaded {self.file_path}: {image.width}x{image.height}")
        LogManager.log_info(self.name, f"Loaded {self.file_path}: {image.width}x{image.height}")
        return [image]

    def apply_over(self, images: List[RGBImage]) -> List[RGBImage]:
        """Load the source image, appended after any images already in the set."""
        return list(images) + self.open()

    def execute(self, images: Optional[List[RGBImage]] = None) -> List[RGBImage]:
        return super().execute(images if images is not None else [])


class BitmapSaver(ChainComponent):
    """Chain end point that writes the image set and passes it through unchanged."""

    def __init__(self, file_path: PathLike):
        super().__init__("BitmapSaver")
        self.file_path = Path(file_path)
        self.written: List[Path] = []

    def get_params(self):
        return {'file_path': str(self.file_path)}

    def _validate_input(self, images: List[RGBImage]):
        super()._validate_input(images)
        if not images:
            raise ProcessingError("No images to save", component=self.name)

    def apply_over(self, images: List[RGBImage]) -> List[RGBImage]:
        self.written = write_bitmaps(self.file_path, images)
        for target in self.written:
            self.logger.info(f"Saved {target}")
        LogManager.log_info(self.name, f"Saved {len(self.written)} bitmap(s) from {self.file_path}")
        return images


def open_bitmap(file_path: PathLike) -> RGBImage:
    """
    Convenience function to load a single bitmap.

    Args:
        file_path: Bitmap file to load

    Returns:
        Decoded RGBImage
    """
    return BitmapOpener(file_path).open()[0]
