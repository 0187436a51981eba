"""Shared fixtures: synthetic page buffers and small PDFs built with PyMuPDF."""

import fitz  # PyMuPDF
import numpy as np
import pytest
import structlog


def white_page(height: int, width: int) -> np.ndarray:
    return np.full((height, width, 3), 255, dtype=np.uint8)


def draw_outline(image: np.ndarray, left: int, top: int, right: int, bottom: int, thickness: int = 3) -> np.ndarray:
    """Draw a black rectangle outline covering rows [top, bottom) and columns [left, right)."""
    image[top:top + thickness, left:right] = 0
    image[bottom - thickness:bottom, left:right] = 0
    image[top:bottom, left:left + thickness] = 0
    image[top:bottom, right - thickness:right] = 0
    return image


def build_pdf(page_sizes, border_inset=None) -> bytes:
    """Build a PDF with one blank page per (width, height) in points.

    When border_inset is given, each page gets a black rectangle that many points in from every side.
    """
    doc = fitz.open()
    for width, height in page_sizes:
        page = doc.new_page(width=width, height=height)
        if border_inset is not None:
            rect = fitz.Rect(border_inset, border_inset, width - border_inset, height - border_inset)
            page.draw_rect(rect, color=(0, 0, 0), width=2)
    data = doc.tobytes()
    doc.close()
    return data


LETTER_PORTRAIT_PT = (612, 792)
LETTER_LANDSCAPE_PT = (792, 612)
FOUR_BY_SIX_PT = (288, 432)
SQUARE_PT = (500, 500)


@pytest.fixture
def mixed_pdf_bytes() -> bytes:
    return build_pdf([LETTER_PORTRAIT_PT, FOUR_BY_SIX_PT, LETTER_LANDSCAPE_PT, SQUARE_PT])


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()
