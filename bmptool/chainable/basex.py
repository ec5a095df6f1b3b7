"""
Base architecture for chainable image processing components.

This module provides the pixel and image data structures, the error taxonomy
and the abstract filter/separator classes that every pipeline stage builds on,
together with the logging support shared by all components.
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, Any, Optional, List, Callable, Iterable
from abc import ABC, abstractmethod
import logging
import traceback
from pathlib import Path
from datetime import datetime


BYTE_MAX = 255
CHANNELS = 3


class ProcessingError(Exception):
    """Custom exception for image processing errors."""
    def __init__(self, message: str, component: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class InvalidArgumentError(ProcessingError, ValueError):
    """Raised for parameters that violate a precondition (negative ratio, scale < 1, ...)."""


class OutOfBoundsError(InvalidArgumentError):
    """Raised when a coordinate or region lies outside the extents of an image."""


class BitmapFileError(ProcessingError):
    """Raised when a bitmap file cannot be opened, written or validated."""

    def __init__(self, filename: str, message: str = "", component: Optional[str] = None):
        super().__init__(message, component=component, details={'filename': str(filename)})
        self.filename = str(filename)

    def __str__(self) -> str:
        return f"{self.message}: {self.filename}"


@dataclass(frozen=True)
class Pixel:
    """A 24-bit color value. Channels wrap to 8 bits like the bytes they are stored in."""
    r: int = 0
    g: int = 0
    b: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'r', int(self.r) & BYTE_MAX)
        object.__setattr__(self, 'g', int(self.g) & BYTE_MAX)
        object.__setattr__(self, 'b', int(self.b) & BYTE_MAX)

    @classmethod
    def from_bgr(cls, data: bytes) -> 'Pixel':
        """Build a pixel from three bytes in file (blue, green, red) order."""
        b, g, r = data[0], data[1], data[2]
        return cls(r, g, b)

    def to_bgr(self) -> bytes:
        return bytes((self.b, self.g, self.r))

    def __str__(self) -> str:
        return f"r: {self.r} g: {self.g} b: {self.b}"


class RGBImage:
    """
    In-memory 24-bit image.

    Pixels live in a ``uint8`` array of shape ``(width, height, 3)`` so the
    flattened buffer is column-major over the image (``x * height + y``).
    The origin is the top left corner. Dimensions are fixed at construction;
    build a new image to "change" the size.
    """

    def __init__(self, width: int = 0, height: int = 0):
        if width < 0 or height < 0:
            raise InvalidArgumentError(
                f"Dimensions must not be negative. Width: {width} Height: {height}",
                details={'width': width, 'height': height}
            )
        self._pixels = np.zeros((width, height, CHANNELS), dtype=np.uint8)

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> 'RGBImage':
        """Create an image from a ``(width, height, 3)`` array. The array is copied."""
        pixels = np.asarray(pixels)
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise InvalidArgumentError(
                f"Pixel array must have shape (width, height, 3), got {pixels.shape}"
            )
        image = cls.__new__(cls)
        image._pixels = np.array(pixels, dtype=np.uint8, copy=True)
        return image

    @property
    def width(self) -> int:
        """Get image width in pixels."""
        return self._pixels.shape[0]

    @property
    def height(self) -> int:
        """Get image height in pixels."""
        return self._pixels.shape[1]

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the pixel buffer."""
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    def to_array(self) -> np.ndarray:
        return self._pixels.copy()

    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def _assert_bounds(self, x: int, y: int):
        if 0 <= x < self.width and 0 <= y < self.height:
            return
        # zero sized images are placeholders waiting for assignment or decode
        if self.is_empty():
            message = (f"Image not properly initialized: bounds of 0. "
                       f"width: {self.width} height: {self.height}")
        else:
            message = f"Bounds error: ({x},{y}), width: {self.width} height: {self.height}"
        raise OutOfBoundsError(message, details={'x': x, 'y': y, 'width': self.width, 'height': self.height})

    def get_rgb(self, x: int, y: int) -> Pixel:
        """
        Get the pixel at the given coordinates.

        Raises:
            OutOfBoundsError: If the coordinates are outside the image
        """
        self._assert_bounds(x, y)
        r, g, b = self._pixels[x, y]
        return Pixel(int(r), int(g), int(b))

    def set_rgb(self, x: int, y: int, pixel: Pixel):
        """
        Store a pixel at the given coordinates.

        Raises:
            OutOfBoundsError: If the coordinates are outside the image
        """
        self._assert_bounds(x, y)
        self._pixels[x, y] = (pixel.r, pixel.g, pixel.b)

    def subimage(self, x_offset: int, y_offset: int, width: int, height: int) -> 'RGBImage':
        """
        Get a copy of a rectangular region of this image.

        Args:
            x_offset: Left edge of the region
            y_offset: Top edge of the region
            width: Region width
            height: Region height

        Returns:
            New RGBImage holding a copy of the region

        Raises:
            OutOfBoundsError: If the region overflows the source image
        """
        if (x_offset < 0 or y_offset < 0 or width < 0 or height < 0
                or x_offset + width > self.width
                or y_offset + height > self.height):
            raise OutOfBoundsError(
                f"SubImage dimensions out of bounds:\n"
                f"SubImage: x: {x_offset} y: {y_offset} width: {width} height: {height}\n"
                f"SrcImage: width: {self.width} height: {self.height}",
                details={'x': x_offset, 'y': y_offset, 'width': width, 'height': height}
            )
        return RGBImage.from_array(self._pixels[x_offset:x_offset + width, y_offset:y_offset + height])

    def copy(self) -> 'RGBImage':
        return RGBImage.from_array(self._pixels)

    def __copy__(self) -> 'RGBImage':
        return self.copy()

    def __deepcopy__(self, memo) -> 'RGBImage':
        return self.copy()

    def __eq__(self, other) -> bool:
        if not isinstance(other, RGBImage):
            return NotImplemented
        if self.width != other.width or self.height != other.height:
            return False
        if self._pixels is other._pixels:
            return True
        return bool(np.array_equal(self._pixels, other._pixels))

    def __ne__(self, other) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def __repr__(self) -> str:
        return f"RGBImage(width={self.width}, height={self.height})"

    def dump(self) -> str:
        """Render every pixel as ``pix: (x,y): r: R g: G b: B``, row by row."""
        lines = []
        for y in range(self.height):
            for x in range(self.width):
                lines.append(f"pix: ({x},{y}): {self.get_rgb(x, y)}")
        return "\n".join(lines)


class LogManager:
    """Manages detailed logging for chainable components with full traceback support."""

    _log_file_path: Optional[Path] = None
    _file_handler: Optional[logging.FileHandler] = None
    _initialized = False
    console_level = logging.INFO

    @classmethod
    def initialize(cls, log_dir: str = "logs"):
        """Initialize the log manager with a clean log file for this processing run."""
        if cls._initialized:
            cls.cleanup()

        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        cls._log_file_path = log_path / f"bmptool_run_{timestamp}.log"

        cls._file_handler = logging.FileHandler(cls._log_file_path, mode='w', encoding='utf-8')
        cls._file_handler.setLevel(logging.DEBUG)

        file_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        cls._file_handler.setFormatter(file_formatter)

        cls._initialized = True

        root_logger = logging.getLogger('bmptool')
        root_logger.addHandler(cls._file_handler)
        root_logger.setLevel(logging.DEBUG)

        cls.log_info("LogManager", f"Initialized logging to: {cls._log_file_path}")

    @classmethod
    def cleanup(cls):
        """Clean up logging resources."""
        if cls._file_handler:
            for logger_name in list(logging.Logger.manager.loggerDict):
                if logger_name.startswith('bmptool'):
                    logger = logging.getLogger(logger_name)
                    if cls._file_handler in logger.handlers:
                        logger.removeHandler(cls._file_handler)

            cls._file_handler.close()
            cls._file_handler = None

        cls._initialized = False

    @classmethod
    def set_console_level(cls, level: int):
        """Set the level of the console handlers of every component logger."""
        cls.console_level = level
        for logger_name in list(logging.Logger.manager.loggerDict):
            if logger_name.startswith('bmptool.'):
                logger = logging.getLogger(logger_name)
                for handler in logger.handlers:
                    if handler is not cls._file_handler:
                        handler.setLevel(level)

    @classmethod
    def log_info(cls, component: str, message: str):
        """Log an info message."""
        if cls._initialized:
            logging.getLogger(f'bmptool.{component}').info(message)

    @classmethod
    def log_error(cls, component: str, message: str, exception: Optional[Exception] = None):
        """Log an error message with full traceback."""
        if cls._initialized:
            logger = logging.getLogger(f'bmptool.{component}')
            logger.error(message)

            if exception:
                tb_str = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
                logger.error(f"Full traceback:\n{tb_str}")

    @classmethod
    def log_warning(cls, component: str, message: str):
        """Log a warning message."""
        if cls._initialized:
            logging.getLogger(f'bmptool.{component}').warning(message)

    @classmethod
    def log_debug(cls, component: str, message: str):
        """Log a debug message."""
        if cls._initialized:
            logging.getLogger(f'bmptool.{component}').debug(message)

    @classmethod
    def get_log_file_path(cls) -> Optional[Path]:
        """Get the current log file path."""
        return cls._log_file_path


class ChainComponent(ABC):
    """Abstract base class for chainable image processing stages."""

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.__class__.__name__
        self.next_component: Optional['ChainComponent'] = None
        self.scheduler = None
        self.logger = self._setup_logger()

    def _setup_logger(self) -> logging.Logger:
        """Set up logger for the component."""
        logger = logging.getLogger(f"bmptool.{self.name}")
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                f'[{self.name}] %(levelname)s: %(message)s'
            )
            handler.setFormatter(formatter)
            handler.setLevel(LogManager.console_level)
            logger.addHandler(handler)
            logger.setLevel(logging.DEBUG)
        return logger

    def set_next(self, component: Optional['ChainComponent']) -> Optional['ChainComponent']:
        """Set the next component in the chain."""
        self.next_component = component
        return component

    def get_params(self) -> Dict[str, Any]:
        """Parameters this stage was built with, for logs and help output."""
        return {}

    @abstractmethod
    def apply_over(self, images: List[RGBImage]) -> List[RGBImage]:
        """Apply this stage to every image of a sequence. Must be implemented by subclasses."""
        pass

    def _map(self, func: Callable[[RGBImage], Any], images: Iterable[RGBImage]) -> List[Any]:
        """Map ``func`` over the images, through the scheduler when one is attached."""
        if self.scheduler is not None:
            return self.scheduler.map(func, list(images), description=self.name)
        return [func(image) for image in images]

    def execute(self, images: List[RGBImage]) -> List[RGBImage]:
        """Execute this component and continue the chain."""
        processed = self.run(images)

        # Continue the chain if there's a next component
        if self.next_component:
            return self.next_component.execute(processed)
        return processed

    def run(self, images: List[RGBImage]) -> List[RGBImage]:
        """Execute this component alone, ignoring any chain link."""
        try:
            self._validate_input(images)

            LogManager.log_info(self.name, f"Starting processing {len(images)} images with {self.get_params()}")
            self.logger.info(f"Processing {len(images)} images...")

            processed = self.apply_over(images)

            self._validate_output(processed)

            LogManager.log_info(self.name, f"Processing completed successfully: {len(processed)} images")
            self.logger.info("Processing completed successfully")

        except Exception as e:
            error_msg = f"Processing failed: {str(e)}"
            LogManager.log_error(self.name, error_msg, e)
            self.logger.error(error_msg)

            if isinstance(e, ProcessingError):
                if e.component is None:
                    e.component = self.name
                raise
            raise ProcessingError(
                error_msg,
                component=self.name,
                details={'original_exception': type(e).__name__}
            ) from e

        return processed

    def _validate_input(self, images: List[RGBImage]):
        """Validate input data. Override in subclasses for specific validation."""
        if not isinstance(images, list) or not all(isinstance(img, RGBImage) for img in images):
            raise ProcessingError(
                f"Expected a list of RGBImage, got {type(images)}",
                component=self.name
            )

    def _validate_output(self, images: List[RGBImage]):
        """Validate output data. Override in subclasses for specific validation."""
        if not isinstance(images, list) or not all(isinstance(img, RGBImage) for img in images):
            raise ProcessingError(
                f"Component produced invalid output: expected a list of RGBImage, got {type(images)}",
                component=self.name
            )


class ImageFilter(ChainComponent):
    """A stage that turns one image into one new image."""

    @abstractmethod
    def filter(self, image: RGBImage) -> RGBImage:
        """Return a filtered copy of the image. The source image is never modified."""
        pass

    def apply_over(self, images: List[RGBImage]) -> List[RGBImage]:
        """Filter every image, keeping sequence order 1:1."""
        return self._map(self.filter, images)


class ImageSeparator(ChainComponent):
    """A stage that splits one image into an ordered list of images."""

    @abstractmethod
    def separate(self, image: RGBImage) -> List[RGBImage]:
        """Split the image into component images."""
        pass

    def apply_over(self, images: List[RGBImage]) -> List[RGBImage]:
        """Separate every image and concatenate the results in order."""
        separated: List[RGBImage] = []
        for parts in self._map(self.separate, images):
            separated.extend(parts)
        return separated


class ProgressReporter:
    """Simple progress reporter for processing operations."""

    def __init__(self, total_items: int, description: str = "Processing"):
        self.total_items = total_items
        self.current_item = 0
        self.description = description
        self.logger = logging.getLogger("bmptool.progress")

    def update(self, increment: int = 1):
        """Update progress by increment."""
        self.current_item += increment
        if self.current_item > self.total_items:
            self.current_item = self.total_items

        if self.total_items == 0:
            return
        percentage = (self.current_item / self.total_items) * 100
        if self.current_item % max(1, self.total_items // 10) == 0 or self.current_item == self.total_items:
            self.logger.debug(f"{self.description}: {percentage:.1f}% ({self.current_item}/{self.total_items})")

    def finish(self):
        """Mark progress as finished."""
        self.current_item = self.total_items
        self.logger.debug(f"{self.description}: Complete!")
