"""
Page pipeline: classify a rasterized page, split and rotate it as its size
requires, detect the label border on each working region and composite every
region onto a 4x6 canvas.

Page classes and their output:

- 4x6 page: one label from the whole page.
- 8.5x11 portrait: top and bottom halves, each rotated 90 degrees clockwise
  before border detection.
- 11x8.5 landscape: left and right halves, no rotation.
- Unknown size: one label from the whole page.

Standalone images are upscaled to a working resolution first and keep their
own orientation (a wide image yields a 6x4 canvas).
"""

import os
import structlog
import numpy as np
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from document_pkg import is_pdf_bytes

from .classifier import classify_page
from .compositor import LANDSCAPE_CANVAS, PORTRAIT_CANVAS, composite_label
from .image_processing import detect_border, rotate_clockwise, split_left_right, split_top_bottom
from .models import OutputLabel, PageClass, PageDimensions
from .pdf_processing import (
    RasterizeError,
    load_image_bytes,
    open_pdf_bytes,
    page_dimensions,
    rasterize_pdf_page,
    upscale_to_working_resolution,
)

logger = structlog.get_logger(__name__)

IMAGE_LABEL_FILENAME = "shipping_label.png"
DEFAULT_PAGE_WORKERS = min(32, (os.cpu_count() or 1) + 4)  # ThreadPoolExecutor's own default


@dataclass(frozen=True)
class PageResult:
    """Labels produced from one PDF page, or the error that prevented rendering it."""
    page_number: int
    labels: Tuple[OutputLabel, ...] = ()
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _detected(border) -> str:
    return ", border detected" if border else ""


def _whole_page_label(image: np.ndarray, page_number: int, sub_index: int, filename: str, source: str) -> OutputLabel:
    border = detect_border(image)
    return OutputLabel(
        page_number=page_number,
        sub_index=sub_index,
        image=composite_label(image, border, PORTRAIT_CANVAS),
        orientation="portrait",
        source=f"{source} (border detected)" if border else source,
        filename=filename,
    )


def _letter_portrait_labels(image: np.ndarray, page_number: int) -> List[OutputLabel]:
    labels = []
    for sub_index, (position, half) in enumerate(zip(("top", "bottom"), split_top_bottom(image)), start=1):
        # Each half is wider than tall; detection must run on the rotated half
        rotated = rotate_clockwise(half)
        border = detect_border(rotated)
        labels.append(OutputLabel(
            page_number=page_number,
            sub_index=sub_index,
            image=composite_label(rotated, border, PORTRAIT_CANVAS),
            orientation="portrait",
            source=f"8.5x11 portrait ({position}, rotated{_detected(border)})",
            filename=f"label_page{page_number}_{position}.png",
        ))
    return labels


def _letter_landscape_labels(image: np.ndarray, page_number: int) -> List[OutputLabel]:
    labels = []
    for sub_index, (position, half) in enumerate(zip(("left", "right"), split_left_right(image)), start=1):
        border = detect_border(half)
        labels.append(OutputLabel(
            page_number=page_number,
            sub_index=sub_index,
            image=composite_label(half, border, PORTRAIT_CANVAS),
            orientation="portrait",
            source=f"11x8.5 landscape ({position}{_detected(border)})",
            filename=f"label_page{page_number}_{position}.png",
        ))
    return labels


def process_page(image: np.ndarray, dimensions: PageDimensions, page_number: int) -> List[OutputLabel]:
    """Turn one rasterized page into its 4x6 labels, ordered top/bottom or left/right."""
    page_class = classify_page(dimensions)
    logger.info(
        "page classified",
        page=page_number,
        page_class=page_class.value,
        width_in=round(dimensions.width, 2),
        height_in=round(dimensions.height, 2),
    )

    match page_class:
        case PageClass.FOUR_BY_SIX:
            return [_whole_page_label(image, page_number, 1, f"label_page{page_number}_1.png", "4x6 page")]
        case PageClass.LETTER_PORTRAIT:
            return _letter_portrait_labels(image, page_number)
        case PageClass.LETTER_LANDSCAPE:
            return _letter_landscape_labels(image, page_number)
        case _:
            return [_whole_page_label(image, page_number, 1, f"label_page{page_number}.png", "unknown size page")]


def process_image(image: np.ndarray) -> OutputLabel:
    """Turn a standalone raster image into one label whose canvas follows the image's orientation."""
    height, width = image.shape[:2]
    is_landscape = width > height

    working = upscale_to_working_resolution(image)
    border = detect_border(working)

    return OutputLabel(
        page_number=1,
        sub_index=1,
        image=composite_label(working, border, LANDSCAPE_CANVAS if is_landscape else PORTRAIT_CANVAS),
        orientation="landscape" if is_landscape else "portrait",
        source="image upload (border detected)" if border else "image upload",
        filename=IMAGE_LABEL_FILENAME,
    )


def extract_labels_from_pdf(pdf_bytes: bytes, max_workers: Optional[int] = None) -> List[PageResult]:
    """Rasterize every page and process the pages in a thread pool.

    Pages are rendered one at a time since a PyMuPDF document is not shared across
    threads. No more than max_workers rendered pages are in flight; the next page
    is rendered only once one of them has finished. A page that cannot be rendered
    is reported on its PageResult; the other pages are still processed. Results
    are in page order.
    """
    workers = max_workers or DEFAULT_PAGE_WORKERS
    results: Dict[int, PageResult] = {}
    in_flight: Dict[Future, int] = {}

    def collect(futures) -> None:
        for future in futures:
            page_number = in_flight.pop(future)
            results[page_number] = PageResult(page_number, labels=tuple(future.result()))

    doc = open_pdf_bytes(pdf_bytes)
    try:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            for page_num in range(doc.page_count):
                page_number = page_num + 1
                if len(in_flight) >= workers:
                    done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                    collect(done)
                try:
                    dimensions = page_dimensions(doc, page_num)
                    image = rasterize_pdf_page(doc, page_num)
                except RasterizeError as e:
                    logger.error("page could not be rendered", page=page_number, error=str(e))
                    results[page_number] = PageResult(page_number, error=e)
                    continue
                in_flight[executor.submit(process_page, image, dimensions, page_number)] = page_number
                del image

            collect(list(in_flight))
    finally:
        doc.close()

    return [results[page_number] for page_number in sorted(results)]


def extract_labels_from_image(image_bytes: bytes) -> List[OutputLabel]:
    """Decode a raster image and produce its single label."""
    return [process_image(load_image_bytes(image_bytes))]


def collect_labels(results: List[PageResult]) -> List[OutputLabel]:
    """Flatten page results into labels in page order, skipping failed pages."""
    return [label for result in results for label in result.labels]

def process_path_and_save_labels(input_path: str, output_dir: str) -> List[Path]:
    """Extract labels from a PDF or image file and save each one as a PNG in output_dir."""
    with open(input_path, "rb") as f:
        data = f.read()

    if is_pdf_bytes(data):
        results = extract_labels_from_pdf(data)
        for result in results:
            if not result.ok:
                logger.error("skipped page", input_path=input_path, page=result.page_number, error=str(result.error))
        labels = collect_labels(results)
    else:
        labels = extract_labels_from_image(data)

    os.makedirs(output_dir, exist_ok=True)
    saved = []
    for label in labels:
        output_path = Path(output_dir) / label.filename
        output_path.write_bytes(label.to_png())
        logger.info("label saved", output_path=str(output_path), source=label.source)
        saved.append(output_path)
    return saved
