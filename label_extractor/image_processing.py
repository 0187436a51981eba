import cv2
import numpy as np
import structlog
from typing import Optional, Tuple

from .models import BorderBox

logger = structlog.get_logger(__name__)

EDGE_THRESHOLD = 30  # Minimum luminance step between neighbours to count as an edge
SCAN_MARGIN_RATIO = 0.05  # Skip this share of the short side at each end of a scan
MIN_BORDER_RATIO = 0.30  # A border line must cover this share of the short side
MAX_BORDER_RATIO = 0.95  # A box this close to the full page is not a border


def _luminance_sum(image: np.ndarray) -> np.ndarray:
    """Return R+G+B per pixel as int32 (three times the mean luminance)."""
    if image.ndim == 2:
        return image.astype(np.int32) * 3
    return image[..., :3].astype(np.int32).sum(axis=2)


def build_edge_mask(image: np.ndarray) -> np.ndarray:
    """Mark pixels whose luminance differs from the right or lower neighbour by more than EDGE_THRESHOLD.

    Luminance is the unweighted mean of R, G and B. The outer one pixel frame is never marked.
    """
    height, width = image.shape[:2]
    mask = np.zeros((height, width), dtype=bool)
    if height < 3 or width < 3:
        return mask

    lum = _luminance_sum(image)
    center = lum[1:height - 1, 1:width - 1]
    diff_right = np.abs(center - lum[1:height - 1, 2:width])
    diff_down = np.abs(center - lum[2:height, 1:width - 1])

    # Compare sums against 3 * threshold so the test matches the mean exactly
    mask[1:height - 1, 1:width - 1] = np.maximum(diff_right, diff_down) > EDGE_THRESHOLD * 3
    return mask


def _scan_inward(counts: np.ndarray, start: int, stop: int, step: int, min_border_pixels: int) -> Optional[int]:
    """Return the first line in range(start, stop, step) whose edge count exceeds min_border_pixels."""
    lines = np.arange(start, stop, step)
    hits = np.flatnonzero(counts[lines] > min_border_pixels)
    if hits.size == 0:
        return None
    return int(lines[hits[0]])


def detect_border(image: np.ndarray) -> Optional[BorderBox]:
    """Find the label's rectangular border by scanning the edge mask inward from each side.

    Returns None when no plausible border is found; callers then use the full image.
    """
    height, width = image.shape[:2]
    short_side = min(width, height)
    margin = int(short_side * SCAN_MARGIN_RATIO)
    min_border_pixels = int(short_side * MIN_BORDER_RATIO)

    edges = build_edge_mask(image)
    row_counts = edges[:, margin:width - margin].sum(axis=1)  # Edge pixels per row
    col_counts = edges[margin:height - margin, :].sum(axis=0)  # Edge pixels per column

    # Each side stops at the center line; a side with no qualifying line keeps the outer edge
    top = _scan_inward(row_counts, margin, (height + 1) // 2, 1, min_border_pixels)
    bottom = _scan_inward(row_counts, height - margin - 1, height // 2, -1, min_border_pixels)
    left = _scan_inward(col_counts, margin, (width + 1) // 2, 1, min_border_pixels)
    right = _scan_inward(col_counts, width - margin - 1, width // 2, -1, min_border_pixels)

    top = 0 if top is None else top
    bottom = height - 1 if bottom is None else bottom
    left = 0 if left is None else left
    right = width - 1 if right is None else right

    found_width = right - left
    found_height = bottom - top
    min_size = short_side * MIN_BORDER_RATIO

    if (found_width > min_size and found_height > min_size
            and found_width < width * MAX_BORDER_RATIO and found_height < height * MAX_BORDER_RATIO):
        logger.debug("border detected", left=left, top=top, right=right, bottom=bottom, width=width, height=height)
        return BorderBox(left=left, top=top, right=right, bottom=bottom, detected=True)

    logger.debug("no border detected", found_width=found_width, found_height=found_height, width=width, height=height)
    return None


def crop_border(image: np.ndarray, border: Optional[BorderBox]) -> np.ndarray:
    """Crop the region defined by the border, or return the whole image when there is none."""
    if border:
        return image[border.top:border.bottom, border.left:border.right]  # Crop the detected rectangle
    return image


def split_top_bottom(image: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Split into two halves of equal height."""
    half = image.shape[0] // 2
    return image[:half].copy(), image[half:2 * half].copy()


def split_left_right(image: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Split into two halves of equal width."""
    half = image.shape[1] // 2
    return image[:, :half].copy(), image[:, half:2 * half].copy()


def rotate_clockwise(image: np.ndarray) -> np.ndarray:
    """Rotate 90 degrees clockwise; width and height swap."""
    return cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE)
