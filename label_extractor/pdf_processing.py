import io
import cv2
import fitz  # PyMuPDF
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .models import LabelExtractorError, PageDimensions

PDF_RENDER_ZOOM = 3.0  # Render PDF pages at 3x for detection and output quality
MIN_WORKING_SIDE_PX = 2000  # Standalone images are upscaled until the longer side reaches this


class RasterizeError(LabelExtractorError):
    """Raised when a document or page cannot be turned into pixels."""
    pass


def open_pdf_path(pdf_path: str) -> fitz.Document:
    """Open a PDF file from a file path."""
    try:
        return fitz.open(pdf_path)
    except Exception as e:
        raise RasterizeError(f"Failed to open PDF {pdf_path}: {e}") from e


def open_pdf_bytes(pdf_bytes: bytes) -> fitz.Document:
    """Open a PDF file from bytes."""
    try:
        return fitz.open(stream=pdf_bytes, filetype="pdf")  # Open PDF from bytes
    except Exception as e:
        raise RasterizeError(f"Failed to open PDF bytes: {e}") from e


def page_dimensions(doc: fitz.Document, page_num: int) -> PageDimensions:
    """Physical size of a page in inches, taken from its (rotation aware) page rectangle."""
    try:
        rect = doc[page_num].rect
    except Exception as e:
        raise RasterizeError(f"Failed to read page {page_num + 1}: {e}") from e
    return PageDimensions.from_points(rect.width, rect.height)


def rasterize_pdf_page(doc: fitz.Document, page_num: int, zoom: float = PDF_RENDER_ZOOM) -> np.ndarray:
    """Render a PDF page to an RGB array.
       Use zoom scaling to improve edge detection and text quality
    """
    try:
        page = doc[page_num]  # Select the desired page
        matrix = fitz.Matrix(zoom, zoom)  # Scale the image to increase resolution
        pix = page.get_pixmap(matrix=matrix, alpha=False)  # Render the page as a pixel map
    except Exception as e:
        raise RasterizeError(f"Failed to render page {page_num + 1}: {e}") from e
    image = Image.frombytes("RGB", [pix.width, pix.height], pix.samples)  # Convert to a PIL image
    return np.array(image)  # Convert the image to a NumPy array for processing


def load_image_bytes(image_bytes: bytes) -> np.ndarray:
    """Decode a raster image to an RGB array, honouring EXIF orientation and flattening transparency onto white."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image = ImageOps.exif_transpose(image)
            if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
                image = image.convert("RGBA")
                background = Image.new("RGBA", image.size, (255, 255, 255, 255))
                image = Image.alpha_composite(background, image)
            return np.array(image.convert("RGB"))
    except (UnidentifiedImageError, OSError) as e:
        raise RasterizeError(f"Failed to decode image: {e}") from e


def upscale_to_working_resolution(image: np.ndarray, min_side: int = MIN_WORKING_SIDE_PX) -> np.ndarray:
    """Upscale so the longer side reaches min_side. Larger images are returned unchanged."""
    height, width = image.shape[:2]
    scale = max(min_side / max(width, height), 1.0)
    if scale == 1.0:
        return image
    new_size = (round(width * scale), round(height * scale))
    return cv2.resize(image, new_size, interpolation=cv2.INTER_CUBIC)
