import numpy as np
from PIL import Image
from typing import Optional, Tuple

from .image_processing import crop_border
from .models import BorderBox

# Target label dimensions in pixels (4" x 6" at 300 DPI)
LABEL_WIDTH_PX = 1200
LABEL_HEIGHT_PX = 1800
PORTRAIT_CANVAS = (LABEL_WIDTH_PX, LABEL_HEIGHT_PX)
LANDSCAPE_CANVAS = (LABEL_HEIGHT_PX, LABEL_WIDTH_PX)

WHITE = (255, 255, 255)


def fit_to_canvas(source_width: int, source_height: int,
                  canvas_width: int, canvas_height: int) -> Tuple[int, int, int, int]:
    """Return (x, y, width, height) of the source scaled to fit and centered on the canvas.

    A single uniform scale is used for both axes, so the aspect ratio is kept and the
    leftover space becomes white margins.
    """
    scale = min(canvas_width / source_width, canvas_height / source_height)
    scaled_width = min(max(round(source_width * scale), 1), canvas_width)
    scaled_height = min(max(round(source_height * scale), 1), canvas_height)
    x_offset = (canvas_width - scaled_width) // 2
    y_offset = (canvas_height - scaled_height) // 2
    return x_offset, y_offset, scaled_width, scaled_height


def composite_label(image: np.ndarray, border: Optional[BorderBox] = None,
                    canvas_size: Tuple[int, int] = PORTRAIT_CANVAS) -> np.ndarray:
    """Crop to the border (or take the whole image), scale to fit and center on a white canvas.

    canvas_size is (width, height). The result is always an RGB array of exactly that size.
    """
    canvas_width, canvas_height = canvas_size
    region = crop_border(image, border)
    source_height, source_width = region.shape[:2]

    canvas = Image.new("RGB", (canvas_width, canvas_height), WHITE)
    if source_width == 0 or source_height == 0:
        return np.array(canvas)

    x_offset, y_offset, scaled_width, scaled_height = fit_to_canvas(
        source_width, source_height, canvas_width, canvas_height
    )

    source = Image.fromarray(np.ascontiguousarray(region)).convert("RGB")
    scaled = source.resize((scaled_width, scaled_height), Image.Resampling.LANCZOS)
    canvas.paste(scaled, (x_offset, y_offset))
    return np.array(canvas)
