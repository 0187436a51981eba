import io
from dataclasses import dataclass
from enum import Enum

import numpy as np
from PIL import Image

POINTS_PER_INCH = 72.0
OUTPUT_DPI = 300  # 4 x 6 inches at 300 DPI -> 1200 x 1800


class LabelExtractorError(Exception):
    """Base exception for label extraction errors."""
    pass


class PageClass(Enum):
    FOUR_BY_SIX = "4x6"
    LETTER_PORTRAIT = "letter_portrait"
    LETTER_LANDSCAPE = "letter_landscape"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PageDimensions:
    """Physical page size in inches."""
    width: float
    height: float

    @classmethod
    def from_points(cls, width_pt: float, height_pt: float) -> "PageDimensions":
        return cls(width_pt / POINTS_PER_INCH, height_pt / POINTS_PER_INCH)


@dataclass(frozen=True)
class BorderBox:
    """Pixel rectangle believed to contain the printed label.

    ``right`` and ``bottom`` are exclusive when the box is used as a crop,
    so the cropped region is ``width`` x ``height`` pixels.
    """
    left: int
    top: int
    right: int
    bottom: int
    detected: bool = True

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top


@dataclass(frozen=True)
class OutputLabel:
    """A composited 4x6 label ready for display or download."""
    page_number: int
    sub_index: int
    image: np.ndarray
    orientation: str
    source: str
    filename: str

    def __post_init__(self):
        self.image.flags.writeable = False

    @property
    def label_id(self) -> str:
        return f"{self.page_number}-{self.sub_index}"

    def to_png(self) -> bytes:
        """Encode the label image as PNG bytes tagged with 300 DPI."""
        with io.BytesIO() as output:
            Image.fromarray(self.image).save(output, format="PNG", dpi=(OUTPUT_DPI, OUTPUT_DPI))
            return output.getvalue()
