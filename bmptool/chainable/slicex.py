"""
Grid slicing component.

Separates an image into a grid of equally sized, non-overlapping crops.
"""

from typing import Dict, Any, List

from .basex import ImageSeparator, RGBImage, InvalidArgumentError, LogManager
from .geometryx import ImageCropper


class ImageSlicer(ImageSeparator):
    """
    Slices an image into ``rows`` x ``columns`` crops.

    Row height is ``height // rows`` and column width is ``width // columns``.
    Pixels left over when the dimensions do not divide evenly belong to no
    slice. Slices come out row-major: slice ``r * columns + c`` has its top
    left corner at ``(c * column_width, r * row_height)``.
    """

    def __init__(self, rows: int, columns: int):
        super().__init__("ImageSlicer")

        if rows < 1 or columns < 1:
            raise InvalidArgumentError(
                f"ImageSlicer needs at least one row and one column, got {rows}x{columns}",
                component=self.name,
                details={'rows': rows, 'columns': columns}
            )
        self.rows = int(rows)
        self.columns = int(columns)

    def get_params(self) -> Dict[str, Any]:
        return {'rows': self.rows, 'columns': self.columns}

    def separate(self, image: RGBImage) -> List[RGBImage]:
        row_height = image.height // self.rows
        column_width = image.width // self.columns

        if row_height * self.rows != image.height or column_width * self.columns != image.width:
            LogManager.log_warning(
                self.name,
                f"{image.width}x{image.height} image does not divide into {self.rows}x{self.columns}, "
                f"dropping {image.width - column_width * self.columns} columns and "
                f"{image.height - row_height * self.rows} rows of pixels"
            )

        slices = []
        for r in range(self.rows):
            for c in range(self.columns):
                cropper = ImageCropper(
                    c * column_width, r * row_height,
                    c * column_width + column_width, r * row_height + row_height
                )
                slices.append(cropper.filter(image))
        return slices


def slice_image(image: RGBImage, rows: int, columns: int) -> List[RGBImage]:
    """
    Convenience function to slice one image.

    Args:
        image: Source image
        rows: Number of rows
        columns: Number of columns

    Returns:
        List of rows * columns slices in row-major order
    """
    return ImageSlicer(rows, columns).separate(image)
